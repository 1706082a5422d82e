"""Database access, repositories and logging for managing returned orders."""

__version__ = "0.1.0"