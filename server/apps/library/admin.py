"""Django admin configuration for library app."""

from typing import Final

from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest
from django.utils.html import format_html

from server.apps.library.models import (
    Department,
    File,
    Folder,
    Resource,
    ResourceFile,
    Tag,
)

_KILOBYTE: Final = 1024


def _format_bytes(size_bytes: int | None) -> str:
    """Format bytes in human-readable format.

    Args:
        size_bytes: Size in bytes, None for links.

    Returns:
        Formatted size string (e.g., '1.5 MB', '234 KB').
    """
    if size_bytes is None:
        return '-'
    size = float(size_bytes)
    for unit in ('B', 'KB', 'MB'):
        if size < _KILOBYTE:
            return f'{size:.0f} {unit}' if unit == 'B' else f'{size:.1f} {unit}'
        size /= _KILOBYTE
    return f'{size:.1f} GB'


def _color_swatch(color: str) -> str:
    return format_html(
        '<span style="background-color: {color}; '
        'padding: 2px 10px; border: 1px solid #ccc;">'
        '&nbsp;</span> {color}',
        color=color,
    )


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    """Admin interface for Department model (inactive rows included)."""

    list_display = [
        'name',
        'slug',
        'color_display',
        'resource_count',
        'folder_count',
        'is_active',
    ]
    list_filter = ['is_active']
    search_fields = ['name', 'slug']
    readonly_fields = ['resource_count', 'folder_count', 'created_at', 'modified_at']

    def color_display(self, obj: Department) -> str:
        """Display color swatch with hex code."""
        return _color_swatch(obj.color)
    color_display.short_description = 'Color'  # type: ignore[attr-defined]

    def get_queryset(self, request: HttpRequest) -> QuerySet[Department]:
        """Show soft-deleted departments too.

        Args:
            request: HTTP request.

        Returns:
            QuerySet over every department.
        """
        return Department.all_objects.all()


@admin.register(Folder)
class FolderAdmin(admin.ModelAdmin):
    """Admin interface for Folder model (inactive rows included)."""

    list_display = [
        'name',
        'department',
        'created_by',
        'resource_count',
        'order',
        'is_active',
    ]
    list_filter = ['is_active', 'department']
    search_fields = ['name', 'description']
    readonly_fields = ['resource_count', 'created_at', 'modified_at']

    def get_queryset(self, request: HttpRequest) -> QuerySet[Folder]:
        """Show soft-deleted folders too, with related rows joined.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return Folder.all_objects.select_related('department', 'created_by')


class ResourceFileInline(admin.TabularInline):
    """Sub-files of a resource."""

    model = ResourceFile
    extra = 0
    readonly_fields = ['url', 'public_id', 'format', 'size', 'uploaded_at']


@admin.register(Resource)
class ResourceAdmin(admin.ModelAdmin):
    """Admin interface for Resource model (inactive rows included)."""

    list_display = [
        'title',
        'type',
        'department',
        'folder',
        'uploaded_by',
        'size_display',
        'views',
        'downloads',
        'is_active',
    ]
    list_filter = ['type', 'link_type', 'is_active', 'department']
    search_fields = ['title', 'description', 'public_id']
    readonly_fields = [
        'type',
        'public_id',
        'format',
        'size',
        'views',
        'downloads',
        'uploaded_at',
        'modified_at',
    ]
    filter_horizontal = ['tags']
    inlines = [ResourceFileInline]

    fieldsets = (
        ('Resource', {
            'fields': ('title', 'description', 'type', 'url', 'link_type'),
        }),
        ('Placement', {
            'fields': ('department', 'folder', 'uploaded_by'),
        }),
        ('Storage', {
            'fields': ('public_id', 'format', 'size'),
        }),
        ('Search', {
            'fields': ('tags', 'contributors'),
        }),
        ('Analytics', {
            'fields': ('views', 'downloads', 'is_active'),
        }),
        ('Timestamps', {
            'fields': ('uploaded_at', 'modified_at'),
        }),
    )

    def size_display(self, obj: Resource) -> str:
        """Display size in human-readable format."""
        return _format_bytes(obj.size)
    size_display.short_description = 'Size'  # type: ignore[attr-defined]

    def get_queryset(self, request: HttpRequest) -> QuerySet[Resource]:
        """Show soft-deleted resources too, with related rows joined.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return Resource.all_objects.select_related(
            'department',
            'folder',
            'uploaded_by',
        )


@admin.register(Tag)
class TagAdmin(admin.ModelAdmin):
    """Admin interface for Tag model."""

    list_display = ['name', 'resource_count', 'created_at']
    search_fields = ['name']
    readonly_fields = ['created_at']

    def resource_count(self, obj: Tag) -> int:
        """Count of resources with this tag.

        Args:
            obj: Tag instance.

        Returns:
            Number of resources tagged with this tag.
        """
        return obj.resources.count()
    resource_count.short_description = 'Resources'  # type: ignore[attr-defined]


@admin.register(File)
class FileAdmin(admin.ModelAdmin):
    """Admin interface for the upload registry."""

    list_display = [
        'name',
        'type',
        'resource_type',
        'size_display',
        'uploaded_by',
        'created_at',
    ]
    list_filter = ['type', 'resource_type', 'created_at']
    search_fields = ['name', 'public_id', 'url']
    readonly_fields = [
        'url',
        'public_id',
        'format',
        'size',
        'created_at',
        'modified_at',
    ]

    def size_display(self, obj: File) -> str:
        """Display size in human-readable format."""
        return _format_bytes(obj.size)
    size_display.short_description = 'Size'  # type: ignore[attr-defined]

    def get_queryset(self, request: HttpRequest) -> QuerySet[File]:
        """Optimize queryset with select_related.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return super().get_queryset(request).select_related('uploaded_by')
