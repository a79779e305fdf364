"""Go modules repository source — reconciles configured and tracked modules."""

from modsync.engines.go_modules_source.models import (
    DependenciesStore,
    ExternalRepoSpec,
    Repo,
    SourceInfo,
    SourceResult,
)
from modsync.engines.go_modules_source.runner import SyncRunner, SyncSummary
from modsync.engines.go_modules_source.source import STORE_PAGE_SIZE, GoModulesSource

__all__ = [
    "STORE_PAGE_SIZE",
    "DependenciesStore",
    "ExternalRepoSpec",
    "GoModulesSource",
    "Repo",
    "SourceInfo",
    "SourceResult",
    "SyncRunner",
    "SyncSummary",
]
