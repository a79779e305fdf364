"""Tests for SyncRunner — multiple sources, failure isolation, streaming."""

from __future__ import annotations

import asyncio
import time

import pytest
from helpers import PROXY_A, PROXY_B, FakeRow, FakeStore

from modsync.engines.go_modules_source import GoModulesSource, SourceResult, SyncRunner
from modsync.engines.gomodproxy import DeadlineExceeded, GoModProxyClient
from modsync.schemas.connection import ExternalService, GoModuleProxiesConnection

MUX = "github.com/gorilla/mux"
CHI = "github.com/go-chi/chi"


def _source(proxy, registry, svc_id, base, dependencies=(), store=None) -> GoModulesSource:
    config = GoModuleProxiesConnection(urls=[base], dependencies=list(dependencies))
    svc = ExternalService(id=svc_id, config=config.model_dump_json(by_alias=True))
    client = GoModProxyClient(config.urls, proxy.client(), registry=registry)
    return GoModulesSource(svc, config, client, store)


class _ExplodingSource:
    async def list_repos(self, results, *, deadline=None):
        raise RuntimeError("exploded")


class TestSyncRunner:
    @pytest.mark.anyio
    async def test_collects_from_every_source(self, proxy, registry):
        proxy.add_info(PROXY_A, MUX, "v1.8.0")
        proxy.add_info(PROXY_B, CHI, "v1.5.5")
        a = _source(proxy, registry, 1, PROXY_A, [f"{MUX}@v1.8.0"])
        b = _source(proxy, registry, 2, PROXY_B, [f"{CHI}@v1.5.5"])

        summary = await SyncRunner([a, b], buffer_size=1).run()

        assert sorted(r.name for r in summary.repos) == [f"go/{CHI}", f"go/{MUX}"]
        assert summary.errors == []

    @pytest.mark.anyio
    async def test_source_exception_becomes_error_result(self, proxy, registry):
        proxy.add_info(PROXY_A, MUX, "v1.8.0")
        good = _source(proxy, registry, 1, PROXY_A, [f"{MUX}@v1.8.0"])

        summary = await SyncRunner([_ExplodingSource(), good]).run()

        assert [r.name for r in summary.repos] == [f"go/{MUX}"]
        assert len(summary.errors) == 1
        assert str(summary.errors[0]) == "exploded"

    @pytest.mark.anyio
    async def test_on_result_sees_results_in_order(self, proxy, registry):
        proxy.add_list(PROXY_A, MUX, ["v1.8.0"])
        store = FakeStore([[FakeRow(2, "not a module", "v1"), FakeRow(1, MUX, "v1.8.0")]])
        source = _source(proxy, registry, 1, PROXY_A, ["!!!invalid!!!"], store=store)
        seen: list[SourceResult] = []

        summary = await SyncRunner([source], on_result=seen.append).run()

        assert [r.ok for r in seen] == [False, True]
        assert summary.repos == [seen[1].repo]
        assert summary.errors == [seen[0].err]

    @pytest.mark.anyio
    async def test_past_deadline_is_one_error_per_source(self, proxy, registry):
        proxy.add_info(PROXY_A, MUX, "v1.8.0")
        store = FakeStore([[FakeRow(2, MUX, "v1.8.0")], [FakeRow(1, CHI, "v1.5.5")]])
        source = _source(proxy, registry, 1, PROXY_A, [f"{MUX}@v1.8.0"], store=store)

        summary = await SyncRunner([source]).run(deadline=time.monotonic() - 1)

        assert summary.repos == []
        assert len(summary.errors) == 1
        assert isinstance(summary.errors[0], DeadlineExceeded)
        assert store.calls == []

    @pytest.mark.anyio
    async def test_empty_sources(self):
        summary = await SyncRunner([], buffer_size=1).run()
        assert summary.repos == [] and summary.errors == []

    def test_buffer_size_from_env(self, monkeypatch):
        monkeypatch.setenv("MODSYNC_RESULTS_BUFFER", "7")
        assert SyncRunner([])._buffer_size == 7

    @pytest.mark.anyio
    async def test_cancelled_run_stops_producers(self):
        started = asyncio.Event()

        def _block(result: SourceResult) -> None:
            started.set()

        class _Slow:
            async def list_repos(self, results, *, deadline=None):
                await results.put(SourceResult(err=RuntimeError("first")))
                await asyncio.sleep(3600)

        run = asyncio.create_task(SyncRunner([_Slow()], on_result=_block).run())
        await started.wait()
        run.cancel()
        with pytest.raises(asyncio.CancelledError):
            await run
        # no producer task left behind
        assert not [t for t in asyncio.all_tasks() if t.get_name() == "modsync-producers"]
