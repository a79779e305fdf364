"""Data models for the Go modules repository source."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from modsync.engines.go_modules_source.source import GoModulesSource


@dataclass(frozen=True)
class ExternalRepoSpec:
    id: str
    service_id: str
    service_type: str


@dataclass(frozen=True)
class SourceInfo:
    id: str
    clone_url: str


@dataclass
class Repo:
    """A repository record derived from a package; never persisted here."""

    name: str
    uri: str
    external_repo: ExternalRepoSpec
    private: bool = False
    sources: dict[str, SourceInfo] = field(default_factory=dict)


@dataclass
class SourceResult:
    """One item of a ``list_repos`` stream: either a repo or an error."""

    source: GoModulesSource | None = None
    repo: Repo | None = None
    err: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.err is None


class TrackedPackage(Protocol):
    id: int
    name: str
    version: str


class DependenciesStore(Protocol):
    """Read-only view of the persisted package versions."""

    async def list_dependency_repos(
        self,
        *,
        scheme: str,
        after: int = 0,
        limit: int = 100,
        newest_first: bool = False,
    ) -> list[TrackedPackage]: ...
