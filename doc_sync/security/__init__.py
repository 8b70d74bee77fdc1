"""Input validation for doc-sync."""

from .validators import RepositoryValidator, PathValidator

__all__ = ["RepositoryValidator", "PathValidator"]
