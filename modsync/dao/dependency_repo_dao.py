"""DependencyRepoDAO — dependency_repos table operations."""

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from modsync.dao.base import BaseDAO
from modsync.models.dependency_repo import DependencyRepo

GO_MODULES_SCHEME = "go"


class StoreQueryError(Exception):
    """Raised when the dependency store cannot be queried."""


class DependencyRepoDAO(BaseDAO[DependencyRepo]):
    model = DependencyRepo

    # ── read ──────────────────────────────────────────────────────────────

    async def list_dependency_repos(
        self,
        session: AsyncSession,
        *,
        scheme: str,
        after: int = 0,
        limit: int = 100,
        newest_first: bool = False,
    ) -> list[DependencyRepo]:
        """One page of tracked package versions for *scheme*.

        With *newest_first* rows come in ``id DESC`` order and *after* is an
        exclusive upper bound; otherwise ``id ASC`` with an exclusive lower
        bound.
        """
        query = select(DependencyRepo).where(DependencyRepo.scheme == scheme)
        return await self.keyset_page(
            session, query, after=after, limit=limit, descending=newest_first
        )

    # ── write ─────────────────────────────────────────────────────────────

    async def upsert(
        self,
        session: AsyncSession,
        *,
        scheme: str,
        name: str,
        version: str,
    ) -> DependencyRepo:
        """Insert a package version or return the existing row."""
        stmt = (
            insert(DependencyRepo)
            .values(scheme=scheme, name=name, version=version)
            .on_conflict_do_nothing(constraint="uq_dependency_repos_scheme_name_version")
            .returning(DependencyRepo)
        )
        result = await session.execute(stmt)
        row = result.scalars().first()
        if row is None:
            # Conflict: row already existed, fetch it
            row = await self.get_by_field(session, scheme=scheme, name=name, version=version)
        return row


class DatabaseDependenciesStore:
    """Dependency store backed by PostgreSQL, one short session per page."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        dao: DependencyRepoDAO | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._dao = dao or DependencyRepoDAO()

    async def list_dependency_repos(
        self,
        *,
        scheme: str,
        after: int = 0,
        limit: int = 100,
        newest_first: bool = False,
    ) -> list[DependencyRepo]:
        try:
            async with self._session_factory() as session:
                return await self._dao.list_dependency_repos(
                    session,
                    scheme=scheme,
                    after=after,
                    limit=limit,
                    newest_first=newest_first,
                )
        except (SQLAlchemyError, OSError) as exc:
            raise StoreQueryError(f"list dependency repos (scheme={scheme}): {exc}") from exc
