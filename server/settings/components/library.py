"""Settings for the library app (departments, folders, resources)."""

from server.settings.components import config

# Max binary payloads accepted by one batch upload
RESOURCE_BATCH_UPLOAD_LIMIT = config(
    'RESOURCE_BATCH_UPLOAD_LIMIT',
    cast=int,
    default=10,
)

# Key prefix for every object written to storage
RESOURCE_STORAGE_PREFIX = config(
    'RESOURCE_STORAGE_PREFIX',
    default='resource-hub',
)
