"""Metadata and normalization utilities for resources and files."""

import mimetypes
from collections.abc import Iterable
from pathlib import Path
from typing import BinaryIO, Final

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import URLValidator
from django.utils.text import slugify

_DEFAULT_MIME_TYPE: Final = 'application/octet-stream'
_LIST_DELIMITER: Final = ','

# Extension groups for File.type, checked after the MIME major type
_DOCUMENT_EXTENSIONS: Final = frozenset(('doc', 'docx', 'odt', 'rtf', 'txt', 'md'))
_SPREADSHEET_EXTENSIONS: Final = frozenset(('xls', 'xlsx', 'ods', 'csv'))
_PRESENTATION_EXTENSIONS: Final = frozenset(('ppt', 'pptx', 'odp', 'key'))
_ARCHIVE_EXTENSIONS: Final = frozenset(('zip', 'rar', '7z', 'tar', 'gz', 'bz2'))

_url_validator = URLValidator(schemes=('http', 'https'))


def detect_mime_type(filename: str) -> str:
    """Detect MIME type from filename extension.

    Args:
        filename: Filename with extension.

    Returns:
        MIME type string, 'application/octet-stream' when unknown.
    """
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or _DEFAULT_MIME_TYPE


def get_file_extension(filename: str) -> str:
    """Get file extension from filename.

    Args:
        filename: Filename (e.g., 'document.pdf').

    Returns:
        Extension without dot, lowercase (e.g., 'pdf').
        Returns empty string if no extension.
    """
    return Path(filename).suffix.lstrip('.').lower()


def get_file_size(file_obj: BinaryIO) -> int:
    """Get payload size in bytes, leaving the stream at its start.

    Args:
        file_obj: File-like object.

    Returns:
        File size in bytes.
    """
    size = getattr(file_obj, 'size', None)
    if size is not None:
        return size
    file_obj.seek(0)
    size = len(file_obj.read())
    file_obj.seek(0)
    return size


def categorize_file(filename: str) -> str:
    """Pick the File.type category of an uploaded payload.

    Args:
        filename: Original filename.

    Returns:
        One of image, video, pdf, document, spreadsheet,
        presentation, archive, other.
    """
    extension = get_file_extension(filename)
    major_type = detect_mime_type(filename).split('/', 1)[0]
    if major_type in {'image', 'video'}:
        return major_type
    if extension == 'pdf':
        return 'pdf'
    if extension in _DOCUMENT_EXTENSIONS:
        return 'document'
    if extension in _SPREADSHEET_EXTENSIONS:
        return 'spreadsheet'
    if extension in _PRESENTATION_EXTENSIONS:
        return 'presentation'
    if extension in _ARCHIVE_EXTENSIONS:
        return 'archive'
    return 'other'


def delivery_type(filename: str) -> str:
    """Pick the File.resource_type of an uploaded payload.

    Args:
        filename: Original filename.

    Returns:
        'image' or 'video' for media, 'raw' otherwise.
    """
    major_type = detect_mime_type(filename).split('/', 1)[0]
    if major_type in {'image', 'video'}:
        return major_type
    return 'raw'


def is_valid_url(url: str) -> bool:
    """Check that ``url`` is an absolute http(s) URL."""
    try:
        _url_validator(url)
    except DjangoValidationError:
        return False
    return True


def normalize_list(value: str | Iterable[str] | None) -> list[str]:
    """Normalize a list or comma-separated string to trimmed items.

    Args:
        value: ``['a', ' b']``, ``'a, b'`` or None.

    Returns:
        Non-empty trimmed items in their original order.
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(_LIST_DELIMITER)
    return [item.strip() for item in value if item and item.strip()]


def normalize_tags(value: str | Iterable[str] | None) -> list[str]:
    """Normalize tags: trimmed, lowercased, first occurrence wins.

    Args:
        value: List or comma-separated string of tags.

    Returns:
        Deduplicated lowercase tags.
    """
    return list(dict.fromkeys(item.lower() for item in normalize_list(value)))


def make_slug(name: str) -> str:
    """Derive a URL slug from a display name.

    Args:
        name: Display name.

    Returns:
        Slug (falls back to 'untitled' when nothing survives).
    """
    return slugify(name) or 'untitled'
