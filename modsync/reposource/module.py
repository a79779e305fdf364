"""Go module path and version rules.

Mirrors the checks the ``go`` command applies to ``module@version`` pairs:
path syntax, canonical semantic versions, the major-version suffix
(``/v2``, ``gopkg.in/yaml.v3``) and the case-encoding used in proxy URLs.
"""

from __future__ import annotations

import re

LATEST = "latest"

_SEMVER_RE = re.compile(
    r"^v(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

_ELEM_CHARS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-._~")
_FIRST_ELEM_CHARS = frozenset("abcdefghijklmnopqrstuvwxyz0123456789-.")

# Windows reserved device names may not be used as a path element stem.
_RESERVED_NAMES = frozenset(
    ["CON", "PRN", "AUX", "NUL"]
    + [f"COM{i}" for i in range(1, 10)]
    + [f"LPT{i}" for i in range(1, 10)]
)


class ModuleError(ValueError):
    """A module path or version violates the Go module rules."""

    def __init__(self, path: str, version: str, reason: str) -> None:
        self.path = path
        self.version = version
        self.reason = reason
        if version:
            super().__init__(f"{path}@{version}: {reason}")
        else:
            super().__init__(f"malformed module path {path!r}: {reason}")


# ── versions ──────────────────────────────────────────────────────────────


def is_valid_semver(version: str) -> bool:
    """True for a full ``vMAJOR.MINOR.PATCH[-pre][+build]`` version."""
    m = _SEMVER_RE.match(version)
    if m is None:
        return False
    pre = m.group("pre")
    if pre:
        for ident in pre.split("."):
            if ident.isdigit() and len(ident) > 1 and ident[0] == "0":
                return False
    return True


def semver_major(version: str) -> str:
    """``v1.2.3`` → ``v1``; empty string for an invalid version."""
    m = _SEMVER_RE.match(version)
    return f"v{m.group('major')}" if m else ""


def semver_build(version: str) -> str:
    m = _SEMVER_RE.match(version)
    if m is None or m.group("build") is None:
        return ""
    return "+" + m.group("build")


def check_version(path: str, version: str) -> None:
    """Raise ``ModuleError`` unless *version* is a canonical module version."""
    if not is_valid_semver(version):
        raise ModuleError(path, version, "not a semantic version")
    build = semver_build(version)
    if build and build != "+incompatible":
        raise ModuleError(path, version, "build metadata other than +incompatible is not allowed")


# ── paths ─────────────────────────────────────────────────────────────────


def _split_gopkg_in(path: str) -> tuple[str, str, bool]:
    if not path.startswith("gopkg.in/"):
        return path, "", False
    i = len(path)
    if path.endswith("-unstable"):
        i -= len("-unstable")
    while i > 0 and path[i - 1].isdigit():
        i -= 1
    if i <= 1 or path[i - 1] != "v" or path[i - 2] != ".":
        return path, "", False
    prefix, path_major = path[: i - 2], path[i - 2 :]
    if len(path_major) <= 2 or (path_major[2] == "0" and path_major != ".v0"):
        return path, "", False
    return prefix, path_major, True


def split_path_version(path: str) -> tuple[str, str, bool]:
    """Split *path* into ``(prefix, path_major, ok)``.

    ``path_major`` is ``/vN`` (or ``.vN`` for gopkg.in) when present.
    ``ok`` is False when the trailing version element is malformed, e.g.
    ``/v1`` or ``/v02``.
    """
    if path.startswith("gopkg.in/"):
        return _split_gopkg_in(path)

    i = len(path)
    dot = False
    while i > 0 and (path[i - 1].isdigit() or path[i - 1] == "."):
        if path[i - 1] == ".":
            dot = True
        i -= 1
    if i <= 1 or i == len(path) or path[i - 1] != "v" or path[i - 2] != "/":
        return path, "", True
    prefix, path_major = path[: i - 2], path[i - 2 :]
    if dot or len(path_major) <= 2 or path_major[2] == "0" or path_major == "/v1":
        return path, "", False
    return prefix, path_major, True


def _check_elem(path: str, elem: str) -> None:
    if elem == "":
        raise ModuleError(path, "", "empty path element")
    if elem.count(".") == len(elem):
        raise ModuleError(path, "", f"invalid path element {elem!r}")
    if elem[0] == ".":
        raise ModuleError(path, "", "leading dot in path element")
    if elem[-1] == ".":
        raise ModuleError(path, "", "trailing dot in path element")
    for ch in elem:
        if ch not in _ELEM_CHARS:
            raise ModuleError(path, "", f"invalid char {ch!r}")
    stem = elem.split(".", 1)[0]
    if stem.upper() in _RESERVED_NAMES:
        raise ModuleError(path, "", f"{stem!r} disallowed as path element component on Windows")


def check_path(path: str) -> None:
    """Raise ``ModuleError`` unless *path* is a valid module path."""
    if path == "":
        raise ModuleError(path, "", "empty string")
    if path[0] == "/":
        raise ModuleError(path, "", "leading slash")
    if path[0] == "-":
        raise ModuleError(path, "", "leading dash")
    if "//" in path:
        raise ModuleError(path, "", "double slash")
    if path[-1] == "/":
        raise ModuleError(path, "", "trailing slash")
    for elem in path.split("/"):
        _check_elem(path, elem)

    first = path.split("/", 1)[0]
    if "." not in first:
        raise ModuleError(path, "", "missing dot in first path element")
    for ch in first:
        if ch not in _FIRST_ELEM_CHARS:
            raise ModuleError(path, "", f"invalid char {ch!r} in first path element")

    if not split_path_version(path)[2]:
        raise ModuleError(path, "", "invalid version")


def check_path_major(path: str, version: str, path_major: str) -> None:
    """Raise unless *version*'s major version agrees with the path suffix."""
    if path_major.startswith(".v") and path_major.endswith("-unstable"):
        return
    major = semver_major(version)
    incompatible = semver_build(version) == "+incompatible"
    if incompatible:
        if path_major:
            raise ModuleError(
                path, version, "+incompatible suffix not allowed: module path includes a major version suffix"
            )
        if major in ("v0", "v1"):
            raise ModuleError(path, version, f"+incompatible suffix not allowed: major version {major} is compatible")
        return
    if path_major == "":
        if major in ("v0", "v1"):
            return
        expected = "v0 or v1"
    else:
        expected = path_major[1:]
        if major == expected:
            return
        # gopkg.in/x.v1 historically accepted v0 pseudo-versions.
        if path_major == ".v1" and version.startswith("v0.0.0-"):
            return
    raise ModuleError(path, version, f"should be {expected}, not {major}")


def check(path: str, version: str) -> None:
    """Validate a module path and a (non-sentinel) version together."""
    check_path(path)
    check_version(path, version)
    _, path_major, _ = split_path_version(path)
    check_path_major(path, version, path_major)


# ── proxy escaping ────────────────────────────────────────────────────────


def _escape(path: str, value: str) -> str:
    out = []
    for ch in value:
        if ch == "!" or not ch.isascii():
            raise ModuleError(path, "", f"internal error: inconsistency in escape of {value!r}")
        if "A" <= ch <= "Z":
            out.append("!" + ch.lower())
        else:
            out.append(ch)
    return "".join(out)


def escape_path(path: str) -> str:
    """Case-encode *path* for use in a proxy URL (``Azure`` → ``!azure``)."""
    check_path(path)
    return _escape(path, path)


def escape_version(version: str) -> str:
    return _escape("", version)
