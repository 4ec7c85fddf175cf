"""Business logic layer for library app.

This package contains the lifecycle of departments, folders,
resources and uploaded files, plus favorites, download tracking,
statistics and counter maintenance.

Every operation receives the acting identity explicitly and asks
the authorization policy before touching the database.
"""
