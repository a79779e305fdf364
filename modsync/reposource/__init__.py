"""Package coordinates for the ecosystems synced into repositories."""

from modsync.reposource.go_modules import (
    GO_SCHEME,
    GoDependency,
    InvalidDependencyError,
    parse_go_dependency,
    parse_go_dependency_from_repo_name,
)
from modsync.reposource.module import LATEST, ModuleError

__all__ = [
    "GO_SCHEME",
    "LATEST",
    "GoDependency",
    "InvalidDependencyError",
    "ModuleError",
    "parse_go_dependency",
    "parse_go_dependency_from_repo_name",
]
