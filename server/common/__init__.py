"""Code shared by every app: error taxonomy and pagination."""
