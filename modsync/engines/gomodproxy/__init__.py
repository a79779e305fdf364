"""Go module proxy client — metadata, version lists and zips without DB access."""

from modsync.engines.gomodproxy.client import GoModProxyClient, ProxyError
from modsync.engines.gomodproxy.models import ModuleVersion
from modsync.engines.gomodproxy.ratelimit import (
    DEFAULT_REGISTRY,
    DeadlineExceeded,
    LimiterRegistry,
    RateLimitCancelled,
    RateLimiter,
)

__all__ = [
    "DEFAULT_REGISTRY",
    "DeadlineExceeded",
    "GoModProxyClient",
    "LimiterRegistry",
    "ModuleVersion",
    "ProxyError",
    "RateLimitCancelled",
    "RateLimiter",
]
