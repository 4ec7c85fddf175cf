"""Environment-specific settings, selected with ``DJANGO_ENV``."""
