"""Django settings assembled with django-split-settings.

Shared components live in ``components/``, the environment-specific file
is picked with the ``DJANGO_ENV`` variable (``development`` by default).
Values come from the process environment or ``config/.env``.
"""

from os import environ

from split_settings.tools import include, optional

_ENV = environ.get('DJANGO_ENV') or 'development'

_base_settings = (
    'components/common.py',
    'components/logging.py',
    'components/storages.py',
    'components/tokens.py',
    'components/library.py',
    # Select the right env:
    'environments/{0}.py'.format(_ENV),
    # Optionally override some settings:
    optional('environments/local.py'),
)

include(*_base_settings)
