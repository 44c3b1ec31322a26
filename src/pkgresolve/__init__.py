"""pkgresolve - dependency version resolution for org-scoped packages."""

__version__ = "0.1.0"
