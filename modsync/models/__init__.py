"""SQLAlchemy ORM models — one file per table."""

from modsync.models.dependency_repo import DependencyRepo

__all__ = [
    "DependencyRepo",
]
