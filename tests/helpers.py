"""Test doubles for proxies and the dependency store."""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field

import httpx

PROXY_A = "https://proxy-a.example.com"
PROXY_B = "https://proxy-b.example.com"


@dataclass
class FakeProxy:
    """Routes full URLs to canned ``(status, body)`` responses; unknown URLs 404."""

    routes: dict[str, tuple[int, bytes]] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)

    def add(self, url: str, status: int = 200, body: bytes | str | dict = b"") -> None:
        if isinstance(body, dict):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode()
        self.routes[url] = (status, body)

    def add_info(self, base: str, mod: str, version: str) -> None:
        self.add(
            f"{base}/{mod}/@v/{version}.info",
            body={"Version": version, "Time": "2024-01-02T03:04:05Z"},
        )

    def add_list(self, base: str, mod: str, versions: list[str]) -> None:
        self.add(f"{base}/{mod}/@v/list", body="\n".join(versions) + "\n")

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls.append(url)
        status, body = self.routes.get(url, (404, b"not found"))
        return httpx.Response(status, content=body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def calls_to(self, predicate: Callable[[str], bool]) -> list[str]:
        return [c for c in self.calls if predicate(c)]


@dataclass
class FakeRow:
    id: int
    name: str
    version: str


class FakeStore:
    """In-memory dependency store that serves pre-built pages in order."""

    def __init__(self, pages: list[list[FakeRow]] | None = None, error: Exception | None = None):
        self.pages = list(pages or [])
        self.error = error
        self.calls: list[dict] = []

    async def list_dependency_repos(self, *, scheme, after=0, limit=100, newest_first=False):
        self.calls.append(
            {"scheme": scheme, "after": after, "limit": limit, "newest_first": newest_first}
        )
        if self.error is not None:
            raise self.error
        return self.pages.pop(0) if self.pages else []
