"""Database models for accounts app."""

from typing import Any, Final, final, override

from django.contrib.auth.base_user import AbstractBaseUser, BaseUserManager
from django.contrib.auth.models import PermissionsMixin
from django.db import models
from django.utils import timezone

# Constants for field max lengths
_NAME_MAX_LENGTH: Final = 50
_BIO_MAX_LENGTH: Final = 200
_PHONE_MAX_LENGTH: Final = 32
_ROLE_MAX_LENGTH: Final = 16


class Role(models.TextChoices):
    """Roles ordered by administrative power, lowest first."""

    VISITOR = 'visitor', 'Visitor'
    MEMBER = 'member', 'Member'
    CO_MANAGER = 'co-manager', 'Co-manager'


class UserManager(BaseUserManager):
    """Manager creating users identified by email."""

    use_in_migrations = True

    def create_user(
        self,
        email: str,
        password: str | None = None,
        **extra_fields: Any,
    ) -> 'User':
        """Create and save a user with a hashed password.

        Args:
            email: Login email, stored lowercased.
            password: Raw password (hashed before saving).
            extra_fields: Additional model fields.

        Returns:
            Created User instance.
        """
        if not email:
            raise ValueError('Email is required')
        user = self.model(email=self.normalize_email(email).lower(), **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(
        self,
        email: str,
        password: str | None = None,
        **extra_fields: Any,
    ) -> 'User':
        """Create an administrator with admin site access.

        Args:
            email: Login email.
            password: Raw password.
            extra_fields: Additional model fields.

        Returns:
            Created User instance.
        """
        extra_fields.setdefault('role', Role.CO_MANAGER)
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        return self.create_user(email, password, **extra_fields)


@final
class User(AbstractBaseUser, PermissionsMixin):
    """Account of a person using the resource hub.

    Users are never hard-deleted: deactivation flips ``is_active``.
    The counters are denormalized copies of the user's resource
    statistics, refreshed by the counter operations.
    """

    name = models.CharField(max_length=_NAME_MAX_LENGTH)

    email = models.EmailField(unique=True)

    role = models.CharField(
        max_length=_ROLE_MAX_LENGTH,
        choices=Role.choices,
        default=Role.MEMBER,
        db_index=True,
    )

    department = models.ForeignKey(
        'library.Department',
        on_delete=models.SET_NULL,
        related_name='members',
        null=True,
        blank=True,
    )

    # Profile
    avatar = models.URLField(blank=True, default='')
    bio = models.CharField(max_length=_BIO_MAX_LENGTH, blank=True, default='')
    phone = models.CharField(max_length=_PHONE_MAX_LENGTH, blank=True, default='')
    social = models.JSONField(
        default=dict,
        blank=True,
        help_text='Links: linkedin, github, twitter, portfolio',
    )

    # Account status
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(
        default=False,
        help_text='Can log into the admin site',
    )
    date_joined = models.DateTimeField(default=timezone.now)

    # Statistics
    resources_uploaded = models.PositiveIntegerField(default=0)
    total_views = models.PositiveBigIntegerField(default=0)
    total_downloads = models.PositiveBigIntegerField(default=0)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = ['name']

    class Meta:
        """Model metadata."""

        verbose_name = 'User'  # type: ignore[mutable-override]
        verbose_name_plural = 'Users'  # type: ignore[mutable-override]
        ordering = ['-date_joined']

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.name} <{self.email}>'

    @property
    def owner_id(self) -> int:
        """A user owns their own account."""
        return self.pk
