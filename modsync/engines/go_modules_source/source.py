"""GoModulesSource — yields repositories for Go modules published on module proxies.

A run reconciles two inputs:

1. the ``dependencies`` listed in the connection config, each confirmed
   against the proxies;
2. every Go package version recorded in the dependency store, paged
   newest-first and kept only while the proxies still list that version.
"""

from __future__ import annotations

import asyncio

import httpx
import structlog

from modsync.dao.dependency_repo_dao import StoreQueryError
from modsync.engines.go_modules_source.models import (
    DependenciesStore,
    ExternalRepoSpec,
    Repo,
    SourceInfo,
    SourceResult,
)
from modsync.engines.gomodproxy.client import GoModProxyClient, ProxyError
from modsync.engines.gomodproxy.ratelimit import (
    DEFAULT_REGISTRY,
    LimiterRegistry,
    check_deadline,
)
from modsync.reposource.go_modules import (
    GO_SCHEME,
    GoDependency,
    InvalidDependencyError,
    parse_go_dependency,
    parse_go_dependency_from_repo_name,
)
from modsync.schemas.connection import (
    GO_MODULES_SERVICE_TYPE,
    ExternalService,
    GoModuleProxiesConnection,
)

log = structlog.get_logger("modsync.engine")

STORE_PAGE_SIZE = 100

# Failures of a single proxy lookup; they are reported per item.
# DeadlineExceeded is not among them and ends the run.
_LOOKUP_ERRORS = (ProxyError, httpx.HTTPError, ValueError)


class GoModulesSource:
    """Repository source for one Go module proxies external service."""

    def __init__(
        self,
        svc: ExternalService,
        config: GoModuleProxiesConnection,
        client: GoModProxyClient,
        deps_store: DependenciesStore | None = None,
    ) -> None:
        self._svc = svc
        self._config = config
        self._client = client
        self._deps_store = deps_store

    @classmethod
    def from_external_service(
        cls,
        svc: ExternalService,
        http_client: httpx.AsyncClient | None = None,
        *,
        registry: LimiterRegistry = DEFAULT_REGISTRY,
    ) -> GoModulesSource:
        """Build a source from *svc*'s JSON config.

        Raises ``SourceConfigError`` if the config does not validate.
        """
        config = svc.parse_config()
        client = GoModProxyClient.from_config(config, http_client, registry=registry)
        return cls(svc, config, client)

    @property
    def client(self) -> GoModProxyClient:
        return self._client

    def set_store(self, deps_store: DependenciesStore) -> None:
        self._deps_store = deps_store

    def external_services(self) -> list[ExternalService]:
        return [self._svc]

    # ── list ──────────────────────────────────────────────────────────────

    async def list_repos(
        self,
        results: asyncio.Queue[SourceResult],
        *,
        deadline: float | None = None,
    ) -> None:
        """Put a SourceResult on *results* for every repo or per-item error.

        Configured dependencies come first, in config order, then store
        entries in page order. A failing store query ends the run with one
        final error result. Once *deadline* passes, ``DeadlineExceeded``
        propagates and nothing more is fetched.
        """
        emitted: set[str] = set()

        total_config = await self._list_configured(results, emitted, deadline)
        fetched, resolved = await self._list_tracked(results, emitted, deadline)

        log.info(
            "go_modules.list_repos.done",
            service=self._svc.urn(),
            total_config=total_config,
            total_db_fetched=fetched,
            total_db_resolved=resolved,
        )

    async def _list_configured(
        self,
        results: asyncio.Queue[SourceResult],
        emitted: set[str],
        deadline: float | None,
    ) -> int:
        for raw in self._config.dependencies:
            check_deadline(deadline, "configured dependency lookup")
            try:
                dep = parse_go_dependency(raw)
            except InvalidDependencyError as exc:
                await results.put(SourceResult(source=self, err=exc))
                continue

            try:
                await self._client.get_version(
                    dep.package_syntax(), dep.package_version(), deadline=deadline
                )
            except _LOOKUP_ERRORS as exc:
                await results.put(SourceResult(source=self, err=exc))
                continue

            await self._emit(results, emitted, dep)
        return len(self._config.dependencies)

    async def _list_tracked(
        self,
        results: asyncio.Queue[SourceResult],
        emitted: set[str],
        deadline: float | None,
    ) -> tuple[int, int]:
        if self._deps_store is None:
            log.debug("go_modules.no_store", service=self._svc.urn())
            return 0, 0

        # module path -> versions the proxies list; scoped to this run
        known_versions: dict[str, frozenset[str]] = {}
        fetched = resolved = 0
        last_id = 0

        while True:
            check_deadline(deadline, "dependency store page")
            try:
                page = await self._deps_store.list_dependency_repos(
                    scheme=GO_SCHEME,
                    after=last_id,
                    limit=STORE_PAGE_SIZE,
                    newest_first=True,
                )
            except Exception as exc:
                err = exc if isinstance(exc, StoreQueryError) else StoreQueryError(str(exc))
                log.error("go_modules.store_query_failed", after=last_id, error=str(exc))
                await results.put(SourceResult(source=self, err=err))
                return fetched, resolved

            if not page:
                break

            last_id = page[-1].id
            fetched += len(page)

            for row in page:
                try:
                    dep = parse_go_dependency(f"{row.name}@{row.version}")
                except InvalidDependencyError as exc:
                    log.error(
                        "go_modules.parse_failed",
                        package=row.name,
                        version=row.version,
                        error=str(exc),
                    )
                    continue

                mod = dep.package_syntax()
                versions = known_versions.get(mod)
                if versions is None:
                    try:
                        listed = await self._client.list_versions(mod, deadline=deadline)
                        versions = frozenset(v.version for v in listed)
                    except _LOOKUP_ERRORS as exc:
                        versions = frozenset()
                        await results.put(SourceResult(source=self, err=exc))
                    known_versions[mod] = versions

                if dep.package_version() not in versions:
                    continue

                resolved += 1
                await self._emit(results, emitted, dep)

        return fetched, resolved

    async def _emit(
        self,
        results: asyncio.Queue[SourceResult],
        emitted: set[str],
        dep: GoDependency,
    ) -> None:
        name = dep.repo_name()
        if name in emitted:
            return
        emitted.add(name)
        await results.put(SourceResult(source=self, repo=self.make_repo(dep)))

    # ── single repo ───────────────────────────────────────────────────────

    async def get_repo(self, name: str, *, deadline: float | None = None) -> Repo:
        """Return the repo for *name* (``go/<module>`` or ``<module>``).

        Raises ``InvalidDependencyError`` for a bad name and ``ProxyError``
        when no proxy knows the module.
        """
        dep = parse_go_dependency_from_repo_name(name)
        await self._client.list_versions(dep.package_syntax(), deadline=deadline)
        return self.make_repo(dep)

    def make_repo(self, dep: GoDependency) -> Repo:
        urn = self._svc.urn()
        repo_name = dep.repo_name()
        return Repo(
            name=repo_name,
            uri=repo_name,
            external_repo=ExternalRepoSpec(
                id=repo_name,
                service_id=GO_MODULES_SERVICE_TYPE,
                service_type=GO_MODULES_SERVICE_TYPE,
            ),
            private=False,
            sources={urn: SourceInfo(id=urn, clone_url=repo_name)},
        )
