"""dependency_repos table."""

from sqlalchemy import BigInteger, Index, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from modsync.core.database import Base


class DependencyRepo(Base):
    """A package version seen by code intelligence, tracked for syncing.

    ``name`` is the package name in the ecosystem's own syntax (for Go the
    module path), never the ``go/``-prefixed repository name.
    """

    __tablename__ = "dependency_repos"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    scheme: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    version: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "scheme", "name", "version",
            name="uq_dependency_repos_scheme_name_version",
        ),
        Index("idx_dependency_repos_scheme_id", "scheme", "id"),
    )
