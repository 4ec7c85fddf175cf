"""Infrastructure layer for library app.

This package contains integrations with external systems:
- S3-compatible object storage backend
- Metadata detection and input normalization

Keep infrastructure concerns separate from business logic.
"""
