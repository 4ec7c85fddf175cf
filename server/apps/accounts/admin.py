"""Django admin configuration for accounts app."""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.db.models import QuerySet
from django.http import HttpRequest

from server.apps.accounts.models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin interface for User model, keyed by email."""

    list_display = [
        'email',
        'name',
        'role',
        'department',
        'resources_uploaded',
        'is_active',
        'date_joined',
    ]
    list_filter = ['role', 'is_active', 'is_staff', 'department']
    search_fields = ['email', 'name']
    ordering = ['-date_joined']
    readonly_fields = [
        'resources_uploaded',
        'total_views',
        'total_downloads',
        'last_login',
        'date_joined',
    ]

    fieldsets = (
        ('Account', {
            'fields': ('email', 'password', 'name', 'role', 'department'),
        }),
        ('Profile', {
            'fields': ('avatar', 'bio', 'phone', 'social'),
        }),
        ('Statistics', {
            'fields': ('resources_uploaded', 'total_views', 'total_downloads'),
        }),
        ('Permissions', {
            'fields': (
                'is_active',
                'is_staff',
                'is_superuser',
                'groups',
                'user_permissions',
            ),
        }),
        ('Timestamps', {
            'fields': ('last_login', 'date_joined'),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'name', 'role', 'password1', 'password2'),
        }),
    )

    def get_queryset(self, request: HttpRequest) -> QuerySet[User]:
        """Optimize queryset with select_related.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return super().get_queryset(request).select_related('department')
