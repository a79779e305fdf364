"""Go module dependencies and their mapping to repository names."""

from __future__ import annotations

from dataclasses import dataclass

from modsync.reposource.module import LATEST, ModuleError, check, check_path

GO_SCHEME = "go"
REPO_NAME_PREFIX = GO_SCHEME + "/"


class InvalidDependencyError(ValueError):
    """Raised when a ``<module>@<version>`` string cannot be parsed."""

    def __init__(self, dependency: str, reason: ModuleError) -> None:
        self.dependency = dependency
        self.reason = reason
        super().__init__(f"invalid go dependency {dependency!r}: {reason}")


@dataclass(frozen=True)
class GoDependency:
    """A "versioned package" for use by go commands, such as ``go get``.

    A missing version is the ``latest`` sentinel, which the module proxy
    resolves to the newest release.
    """

    path: str
    version: str = LATEST

    @property
    def scheme(self) -> str:
        return GO_SCHEME

    def package_syntax(self) -> str:
        """The module path, e.g. ``github.com/gorilla/mux``."""
        return self.path

    def package_version(self) -> str:
        return self.version

    def package_manager_syntax(self) -> str:
        """The dependency as accepted by ``go get``: ``path@version``."""
        return f"{self.path}@{self.version}"

    def repo_name(self) -> str:
        """Globally unique repository name, e.g. ``go/github.com/gorilla/mux``."""
        return REPO_NAME_PREFIX + self.path

    def git_tag_from_version(self) -> str:
        return self.version if self.version.startswith("v") else "v" + self.version

    def is_latest(self) -> bool:
        return self.version == LATEST

    def __str__(self) -> str:
        return self.package_manager_syntax()


def parse_go_dependency(dependency: str) -> GoDependency:
    """Parse a ``<module>@<version>`` string into a GoDependency.

    The string is split on the last ``@``. Without one the version is
    ``latest``. Raises ``InvalidDependencyError`` when the module path or
    version breaks the Go module rules.
    """
    path, sep, version = dependency.rpartition("@")
    if not sep:
        path, version = dependency, LATEST

    try:
        if version == LATEST:
            check_path(path)
        else:
            check(path, version)
    except ModuleError as exc:
        raise InvalidDependencyError(dependency, exc) from exc
    return GoDependency(path=path, version=version)


def parse_go_dependency_from_repo_name(name: str) -> GoDependency:
    """Parse a repo name in a ``go/<module>(@<version>)?`` format."""
    return parse_go_dependency(name.removeprefix(REPO_NAME_PREFIX))
