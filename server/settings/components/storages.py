"""Django storage configuration for S3-compatible object storage.

This module configures django-storages to work with:
- MinIO for local development
- any S3-compatible provider (AWS S3, Cloudflare R2) for production

Uploaded resource files are served straight from the bucket (or a CDN
domain in front of it), so URLs are not signed.
"""

from typing import Any, Final

from botocore.config import Config

from server.settings.components import config

# Every storage call is bounded by these timeouts (seconds)
_STORAGE_CLIENT_CONFIG: Final = Config(
    connect_timeout=config('STORAGE_CONNECT_TIMEOUT', cast=int, default=5),
    read_timeout=config('STORAGE_READ_TIMEOUT', cast=int, default=30),
    retries={
        'max_attempts': config('STORAGE_MAX_ATTEMPTS', cast=int, default=3),
        'mode': 'standard',
    },
)

STORAGES: Final[dict[str, dict[str, Any]]] = {
    'default': {
        'BACKEND': 'server.apps.library.infrastructure.storage.ObjectStorage',
        'OPTIONS': {
            'bucket_name': config(
                'AWS_STORAGE_BUCKET_NAME',
                default='resource-hub',
            ),
            'access_key': config('AWS_ACCESS_KEY_ID', default=None),
            'secret_key': config('AWS_SECRET_ACCESS_KEY', default=None),
            'endpoint_url': config(
                'AWS_S3_ENDPOINT_URL',
                default=None,
            ),
            'region_name': config(
                'AWS_S3_REGION_NAME',
                default='us-east-1',
            ),
            'custom_domain': config(
                'AWS_S3_CUSTOM_DOMAIN',
                default=None,
            ) or None,
            'client_config': _STORAGE_CLIENT_CONFIG,
            'file_overwrite': False,  # Prevent accidental overwrites
            'querystring_auth': False,  # Public, unsigned URLs
            'default_acl': None,  # Inherit bucket ACL
        },
    },
    'staticfiles': {
        # Keep static files separate from uploaded resources
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}
