"""Async client for Go module proxies with endpoint failover and rate limiting.

Protocol reference: https://go.dev/ref/mod#goproxy-protocol
"""

from __future__ import annotations

import io
import json
import os
import time
from collections.abc import Iterator
from typing import BinaryIO

import httpx
import structlog

from modsync.engines.gomodproxy.models import ModuleVersion, parse_time
from modsync.engines.gomodproxy.ratelimit import (
    DEFAULT_REGISTRY,
    DeadlineExceeded,
    LimiterRegistry,
    RateLimiter,
    check_deadline,
)
from modsync.reposource.module import LATEST, escape_path, escape_version
from modsync.schemas.connection import GoModuleProxiesConnection

log = structlog.get_logger("modsync.engine")

_SLOW_WAIT_THRESHOLD = 0.2  # seconds
_NOT_FOUND_CODES = frozenset({404, 410})


class ProxyError(Exception):
    """Non-200 response from a Go module proxy."""

    def __init__(self, path: str, code: int, message: str) -> None:
        self.path = path
        self.code = code
        self.message = message
        super().__init__(
            f"bad go module proxy response with status code {code} for {path}: {message}"
        )

    def is_not_found(self) -> bool:
        """404 and 410 mean "not on this proxy"; the module may exist elsewhere."""
        return self.code in _NOT_FOUND_CODES


def _default_timeout() -> float:
    return float(os.environ.get("MODSYNC_HTTP_TIMEOUT", "30"))


class GoModProxyClient:
    """Fetches module metadata and zips from an ordered list of proxies.

    Requests go to each proxy in turn, moving on only when a proxy answers
    404/410. Every proxy URL is throttled through the limiter that
    *registry* holds for it, so clients sharing a registry share limits.
    """

    def __init__(
        self,
        urls: list[str],
        http_client: httpx.AsyncClient | None = None,
        limiter: RateLimiter | None = None,
        *,
        registry: LimiterRegistry = DEFAULT_REGISTRY,
    ) -> None:
        if not urls:
            raise ValueError("at least one proxy URL is required")
        self._urls = list(urls)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=_default_timeout(), follow_redirects=True
        )
        self._limiter = limiter or RateLimiter(float("inf"))
        self._registry = registry

    @classmethod
    def from_config(
        cls,
        config: GoModuleProxiesConnection,
        http_client: httpx.AsyncClient | None = None,
        *,
        registry: LimiterRegistry = DEFAULT_REGISTRY,
    ) -> GoModProxyClient:
        limiter = RateLimiter.per_hour(config.requests_per_hour(), config.burst())
        return cls(config.urls, http_client, limiter, registry=registry)

    @property
    def urls(self) -> list[str]:
        return list(self._urls)

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> GoModProxyClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def get_version(
        self, mod: str, version: str, *, deadline: float | None = None
    ) -> ModuleVersion:
        """Get a single version of *mod* if it exists.

        ``latest`` is resolved through the proxy's ``@latest`` endpoint.
        """
        if version == LATEST:
            body = await self._get(escape_path(mod), "@latest", deadline=deadline)
        else:
            body = await self._get(
                escape_path(mod), "@v", escape_version(version) + ".info", deadline=deadline
            )

        info = json.loads(body)
        if not isinstance(info, dict):
            raise ValueError(
                f"{mod}@{version}: version info is {type(info).__name__}, not a JSON object"
            )
        return ModuleVersion(
            path=mod,
            version=info.get("Version", version),
            time=parse_time(info.get("Time")),
        )

    async def list_versions(
        self, mod: str, *, deadline: float | None = None
    ) -> Iterator[ModuleVersion]:
        """List the known versions of *mod*.

        The result is a single-pass iterator over the response lines.
        """
        body = await self._get(escape_path(mod), "@v", "list", deadline=deadline)
        return (
            ModuleVersion(path=mod, version=line.strip())
            for line in body.decode("utf-8").splitlines()
            if line.strip()
        )

    async def get_zip(
        self, mod: str, version: str, *, deadline: float | None = None
    ) -> BinaryIO:
        """Return the zip archive of *mod* at *version*."""
        body = await self._get(
            escape_path(mod), "@v", escape_version(version) + ".zip", deadline=deadline
        )
        return io.BytesIO(body)

    # ── internal ───────────────────────────────────────────────────────────

    async def _get(self, *paths: str, deadline: float | None = None) -> bytes:
        last_err: ProxyError | None = None
        for base_url in self._urls:
            limiter = self._registry.get_or_set(base_url, self._limiter)

            check_deadline(deadline, f"request to {base_url}")
            start_wait = time.monotonic()
            await limiter.wait(deadline=deadline)
            delay = time.monotonic() - start_wait
            if delay > _SLOW_WAIT_THRESHOLD:
                log.warning(
                    "gomodproxy.rate_limited",
                    reason="request delayed longer than expected due to self-enforced rate limit",
                    proxy=base_url,
                    delay=round(delay, 3),
                )

            url = base_url.rstrip("/") + "/" + "/".join(paths)
            try:
                return await self._do(url, deadline)
            except ProxyError as exc:
                if not exc.is_not_found():
                    raise
                log.debug("gomodproxy.not_found", proxy=base_url, path=exc.path, status=exc.code)
                last_err = exc

        if last_err is None:
            raise ValueError("no go module proxy URLs configured")
        raise last_err

    async def _do(self, url: str, deadline: float | None) -> bytes:
        kwargs = {}
        if deadline is not None:
            kwargs["timeout"] = max(deadline - time.monotonic(), 0.001)
        try:
            resp = await self._client.get(url, **kwargs)
        except httpx.TimeoutException as exc:
            if deadline is not None and time.monotonic() >= deadline:
                raise DeadlineExceeded(f"deadline exceeded during request to {url}") from exc
            raise

        # Redirects (3xx) are followed by the transport. Any status other
        # than 200 is an error; error bodies are short plain text.
        if resp.status_code != 200:
            raise ProxyError(path=resp.request.url.path, code=resp.status_code, message=resp.text)
        return resp.content
