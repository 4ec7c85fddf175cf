"""Bearer token settings."""

from server.settings.components import config

# Falls back to SECRET_KEY when empty
JWT_SECRET = config('JWT_SECRET', default='')
JWT_ALGORITHM = 'HS256'

# Seven days, the same lifetime the login flow has always used
JWT_EXPIRATION_SECONDS = config(
    'JWT_EXPIRATION_SECONDS',
    cast=int,
    default=7 * 24 * 60 * 60,
)
