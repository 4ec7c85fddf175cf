"""Database models for library app."""

from pathlib import Path
from typing import ClassVar, Final, final, override

from django.conf import settings
from django.db import models

# Constants for field max lengths
_NAME_MAX_LENGTH: Final = 50
_TITLE_MAX_LENGTH: Final = 100
_DEPARTMENT_DESCRIPTION_MAX_LENGTH: Final = 500
_FOLDER_DESCRIPTION_MAX_LENGTH: Final = 200
_RESOURCE_DESCRIPTION_MAX_LENGTH: Final = 500
_URL_MAX_LENGTH: Final = 2048
_PUBLIC_ID_MAX_LENGTH: Final = 512
_FORMAT_MAX_LENGTH: Final = 32
_CHOICE_MAX_LENGTH: Final = 16
_ICON_MAX_LENGTH: Final = 16
_COLOR_MAX_LENGTH: Final = 7  # Hex color: #RRGGBB
_TAG_NAME_MAX_LENGTH: Final = 50
_FILE_NAME_MAX_LENGTH: Final = 255

DEFAULT_ICON: Final = '📁'
DEFAULT_COLOR: Final = '#3B82F6'


class ActiveManager(models.Manager):
    """Manager hiding soft-deleted rows."""

    @override
    def get_queryset(self) -> models.QuerySet:
        """Restrict queryset to active rows."""
        return super().get_queryset().filter(is_active=True)


@final
class Department(models.Model):
    """Top-level grouping of folders and resources.

    ``folder_count`` is maintained incrementally by folder operations,
    ``resource_count`` is recomputed by the counter refresh.
    """

    name = models.CharField(max_length=_NAME_MAX_LENGTH, unique=True)

    slug = models.SlugField(max_length=_NAME_MAX_LENGTH, unique=True)

    description = models.CharField(
        max_length=_DEPARTMENT_DESCRIPTION_MAX_LENGTH,
        blank=True,
        default='',
    )

    icon = models.CharField(max_length=_ICON_MAX_LENGTH, default=DEFAULT_ICON)
    color = models.CharField(max_length=_COLOR_MAX_LENGTH, default=DEFAULT_COLOR)

    # Denormalized counters
    resource_count = models.PositiveIntegerField(default=0)
    folder_count = models.IntegerField(default=0)

    is_active = models.BooleanField(default=True, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    modified_at = models.DateTimeField(auto_now=True)

    objects = ActiveManager()
    all_objects = models.Manager()

    class Meta:
        """Model metadata."""

        verbose_name = 'Department'  # type: ignore[mutable-override]
        verbose_name_plural = 'Departments'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['name']
        base_manager_name = 'all_objects'

    @override
    def __str__(self) -> str:
        """String representation."""
        return self.name


@final
class Folder(models.Model):
    """Folder grouping resources inside a department."""

    name = models.CharField(max_length=_NAME_MAX_LENGTH)

    slug = models.SlugField(max_length=_NAME_MAX_LENGTH, blank=True, default='')

    description = models.CharField(
        max_length=_FOLDER_DESCRIPTION_MAX_LENGTH,
        blank=True,
        default='',
    )

    department = models.ForeignKey(
        Department,
        on_delete=models.PROTECT,
        related_name='folders',
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name='folders',
        null=True,
        blank=True,
    )

    icon = models.CharField(max_length=_ICON_MAX_LENGTH, default=DEFAULT_ICON)
    color = models.CharField(max_length=_COLOR_MAX_LENGTH, default=DEFAULT_COLOR)

    resource_count = models.PositiveIntegerField(default=0)

    # Position in listings
    order = models.IntegerField(default=0)

    is_active = models.BooleanField(default=True, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    modified_at = models.DateTimeField(auto_now=True)

    objects = ActiveManager()
    all_objects = models.Manager()

    class Meta:
        """Model metadata."""

        verbose_name = 'Folder'  # type: ignore[mutable-override]
        verbose_name_plural = 'Folders'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['order', '-created_at']
        base_manager_name = 'all_objects'

        constraints: ClassVar[list[models.BaseConstraint]] = [
            # Soft-deleted folders must not block re-creating the name
            models.UniqueConstraint(
                fields=['department', 'name'],
                condition=models.Q(is_active=True),
                name='folders_department_name_active_unique',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.department_id}:{self.name}'

    @property
    def owner_id(self) -> int | None:
        """Creator of the folder."""
        return self.created_by_id


@final
class Tag(models.Model):
    """Lowercase search tag attached to resources."""

    name = models.CharField(max_length=_TAG_NAME_MAX_LENGTH, unique=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Tag'  # type: ignore[mutable-override]
        verbose_name_plural = 'Tags'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['name']

    @override
    def __str__(self) -> str:
        """String representation."""
        return self.name


@final
class Resource(models.Model):
    """Uploaded file or external link shared within a department.

    Type is fixed at creation. File metadata (``public_id``, ``format``,
    ``size``) is populated only for files, ``link_type`` only for links.
    Extra sub-files live in ``files`` and change only through explicit
    attach/detach operations.
    """

    class Type(models.TextChoices):
        """Kind of resource."""

        FILE = 'file', 'File'
        LINK = 'link', 'Link'

    class LinkType(models.TextChoices):
        """Where a link points to."""

        DRIVE = 'drive', 'Drive'
        FIGMA = 'figma', 'Figma'
        NOTION = 'notion', 'Notion'
        GITHUB = 'github', 'GitHub'
        OTHER = 'other', 'Other'

    title = models.CharField(max_length=_TITLE_MAX_LENGTH)

    description = models.CharField(
        max_length=_RESOURCE_DESCRIPTION_MAX_LENGTH,
        blank=True,
        default='',
    )

    type = models.CharField(
        max_length=_CHOICE_MAX_LENGTH,
        choices=Type.choices,
        db_index=True,
    )

    url = models.URLField(max_length=_URL_MAX_LENGTH)

    # For uploaded files
    public_id = models.CharField(
        max_length=_PUBLIC_ID_MAX_LENGTH,
        blank=True,
        default='',
        help_text='Object storage key',
    )
    format = models.CharField(max_length=_FORMAT_MAX_LENGTH, blank=True, default='')
    size = models.BigIntegerField(
        null=True,
        blank=True,
        help_text='File size in bytes',
    )

    # For links
    link_type = models.CharField(
        max_length=_CHOICE_MAX_LENGTH,
        choices=LinkType.choices,
        blank=True,
        default='',
    )

    department = models.ForeignKey(
        Department,
        on_delete=models.PROTECT,
        related_name='resources',
    )

    folder = models.ForeignKey(
        Folder,
        on_delete=models.SET_NULL,
        related_name='resources',
        null=True,
        blank=True,
    )

    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name='resources',
        null=True,
        blank=True,
    )

    tags = models.ManyToManyField(
        Tag,
        related_name='resources',
        blank=True,
    )

    contributors = models.JSONField(default=list, blank=True)

    # Analytics
    views = models.PositiveBigIntegerField(default=0)
    downloads = models.PositiveBigIntegerField(default=0)

    favorited_by = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through='Favorite',
        related_name='favorite_resources',
        blank=True,
    )

    is_active = models.BooleanField(default=True, db_index=True)

    uploaded_at = models.DateTimeField(auto_now_add=True, db_index=True)
    modified_at = models.DateTimeField(auto_now=True)

    objects = ActiveManager()
    all_objects = models.Manager()

    class Meta:
        """Model metadata."""

        verbose_name = 'Resource'  # type: ignore[mutable-override]
        verbose_name_plural = 'Resources'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-uploaded_at']
        base_manager_name = 'all_objects'

        indexes: ClassVar[list[models.Index]] = [
            models.Index(
                fields=['department', 'folder', 'is_active'],
                name='resources_dept_folder_idx',
            ),
            models.Index(
                fields=['uploaded_by', 'is_active'],
                name='resources_uploader_idx',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.title} ({self.type})'

    @property
    def owner_id(self) -> int | None:
        """Uploader of the resource."""
        return self.uploaded_by_id

    @property
    def tag_names(self) -> list[str]:
        """Tag names, sorted."""
        return [tag.name for tag in self.tags.all()]


@final
class ResourceFile(models.Model):
    """Extra file attached to a resource."""

    resource = models.ForeignKey(
        Resource,
        on_delete=models.CASCADE,
        related_name='files',
    )

    url = models.URLField(max_length=_URL_MAX_LENGTH)

    public_id = models.CharField(
        max_length=_PUBLIC_ID_MAX_LENGTH,
        blank=True,
        default='',
        help_text='Object storage key, empty for external links',
    )
    format = models.CharField(max_length=_FORMAT_MAX_LENGTH, blank=True, default='')
    size = models.BigIntegerField(default=0)

    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Resource File'  # type: ignore[mutable-override]
        verbose_name_plural = 'Resource Files'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['uploaded_at', 'id']

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.resource_id}:{Path(self.public_id or self.url).name}'


@final
class Favorite(models.Model):
    """Membership of a user in a resource's favorites."""

    resource = models.ForeignKey(
        Resource,
        on_delete=models.CASCADE,
        related_name='favorites',
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='favorites',
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Favorite'  # type: ignore[mutable-override]
        verbose_name_plural = 'Favorites'  # type: ignore[mutable-override]

        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.UniqueConstraint(
                fields=['resource', 'user'],
                name='favorites_resource_user_unique',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.user_id}->{self.resource_id}'


@final
class File(models.Model):
    """Entry of the bulk-upload registry (uploaded file or external link)."""

    class Type(models.TextChoices):
        """Category of the content."""

        IMAGE = 'image', 'Image'
        VIDEO = 'video', 'Video'
        PDF = 'pdf', 'PDF'
        DOCUMENT = 'document', 'Document'
        SPREADSHEET = 'spreadsheet', 'Spreadsheet'
        PRESENTATION = 'presentation', 'Presentation'
        ARCHIVE = 'archive', 'Archive'
        LINK = 'link', 'Link'
        OTHER = 'other', 'Other'

    class ResourceType(models.TextChoices):
        """How the object is delivered by storage."""

        IMAGE = 'image', 'Image'
        VIDEO = 'video', 'Video'
        RAW = 'raw', 'Raw'
        AUTO = 'auto', 'Auto'
        LINK = 'link', 'Link'

    name = models.CharField(max_length=_FILE_NAME_MAX_LENGTH)

    url = models.URLField(max_length=_URL_MAX_LENGTH)

    public_id = models.CharField(
        max_length=_PUBLIC_ID_MAX_LENGTH,
        blank=True,
        default='',
        help_text='Object storage key, empty for external links',
    )
    format = models.CharField(max_length=_FORMAT_MAX_LENGTH, blank=True, default='')
    size = models.BigIntegerField(default=0)

    type = models.CharField(
        max_length=_CHOICE_MAX_LENGTH,
        choices=Type.choices,
        default=Type.OTHER,
        db_index=True,
    )
    resource_type = models.CharField(
        max_length=_CHOICE_MAX_LENGTH,
        choices=ResourceType.choices,
        default=ResourceType.AUTO,
        db_index=True,
    )

    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name='files',
        null=True,
        blank=True,
    )

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    modified_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'File'  # type: ignore[mutable-override]
        verbose_name_plural = 'Files'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-created_at']

    @override
    def __str__(self) -> str:
        """String representation."""
        return self.name

    @property
    def owner_id(self) -> int | None:
        """Uploader of the file."""
        return self.uploaded_by_id
