"""Go module proxies connection config."""

from __future__ import annotations

import math
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, ValidationError

GO_MODULES_KIND = "GOMODULES"
GO_MODULES_SERVICE_TYPE = "gomodules"


class SourceConfigError(ValueError):
    """Raised when an external service carries an unusable config."""


class RateLimit(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    enabled: bool = False
    requests_per_hour: float = Field(default=0.0, ge=0, alias="requestsPerHour")
    burst: int = Field(default=1, ge=1)


class GoModuleProxiesConnection(BaseModel):
    """Configuration for a connection to one or more Go module proxies.

    ``dependencies`` lists ``<module>@<version>`` strings to sync even when
    no code intelligence data references them.
    """

    model_config = ConfigDict(populate_by_name=True)

    urls: list[str] = Field(min_length=1)
    rate_limit: RateLimit | None = Field(default=None, alias="rateLimit")
    dependencies: list[str] = []

    def requests_per_hour(self) -> float:
        """Configured rate, or ``inf`` when rate limiting is off."""
        if self.rate_limit is None or not self.rate_limit.enabled:
            return math.inf
        return self.rate_limit.requests_per_hour

    def burst(self) -> int:
        return self.rate_limit.burst if self.rate_limit is not None else 1


@dataclass
class ExternalService:
    """A configured code host connection; only its identity and config are used here."""

    id: int
    config: str
    kind: str = GO_MODULES_KIND
    display_name: str = "Go modules"

    def urn(self) -> str:
        return f"extsvc:{self.kind.lower()}:{self.id}"

    def parse_config(self) -> GoModuleProxiesConnection:
        try:
            return GoModuleProxiesConnection.model_validate_json(self.config)
        except ValidationError as exc:
            raise SourceConfigError(f"external service id={self.id} config error: {exc}") from exc
