"""Shared pytest fixtures for modsync tests.

Proxy traffic is served by ``httpx.MockTransport``; nothing leaves the process.
"""

from __future__ import annotations

import pytest
from helpers import FakeProxy

from modsync.engines.gomodproxy.ratelimit import LimiterRegistry


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def registry() -> LimiterRegistry:
    return LimiterRegistry()


@pytest.fixture
def proxy() -> FakeProxy:
    return FakeProxy()
