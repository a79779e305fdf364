"""SyncRunner — drives several sources into one bounded result queue."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable
from dataclasses import dataclass, field

import structlog

from modsync.engines.go_modules_source.models import Repo, SourceResult
from modsync.engines.go_modules_source.source import GoModulesSource

log = structlog.get_logger("modsync.engine")

_DONE = object()


def _buffer_size() -> int:
    return int(os.environ.get("MODSYNC_RESULTS_BUFFER", "100"))


@dataclass
class SyncSummary:
    """Everything one sync produced, in arrival order."""

    repos: list[Repo] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)


class SyncRunner:
    """Run ``list_repos`` for every source concurrently and consume the results.

    Producers block on the bounded queue while the consumer is behind.
    *on_result* sees each result as it arrives.
    """

    def __init__(
        self,
        sources: list[GoModulesSource],
        *,
        buffer_size: int | None = None,
        on_result: Callable[[SourceResult], None] | None = None,
    ) -> None:
        self._sources = sources
        self._buffer_size = buffer_size if buffer_size is not None else _buffer_size()
        self._on_result = on_result

    async def run(self, *, deadline: float | None = None) -> SyncSummary:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._buffer_size)
        summary = SyncSummary()

        async def _produce_all() -> None:
            await asyncio.gather(*(self._produce(src, queue, deadline) for src in self._sources))
            await queue.put(_DONE)

        producer = asyncio.create_task(_produce_all(), name="modsync-producers")
        try:
            while True:
                item = await queue.get()
                if item is _DONE:
                    break
                if item.err is not None:
                    summary.errors.append(item.err)
                else:
                    summary.repos.append(item.repo)
                if self._on_result is not None:
                    self._on_result(item)
        finally:
            if not producer.done():
                producer.cancel()
                await asyncio.gather(producer, return_exceptions=True)

        log.info("sync.done", repos=len(summary.repos), errors=len(summary.errors))
        return summary

    @staticmethod
    async def _produce(
        source: GoModulesSource,
        queue: asyncio.Queue,
        deadline: float | None,
    ) -> None:
        try:
            await source.list_repos(queue, deadline=deadline)
        except Exception as exc:
            log.error("sync.source_failed", error=str(exc))
            await queue.put(SourceResult(source=source, err=exc))
