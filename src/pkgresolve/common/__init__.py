"""Shared helpers used across the versioning and repository packages."""
