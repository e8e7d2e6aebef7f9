from __future__ import annotations

from datetime import datetime
from typing import Self

from pydantic import BaseModel, ConfigDict, Field

from ...core.enums import ErrorClass, HealthCheckStatus, ReconnectState


class ReconnectResult(BaseModel):
    """Outcome of one run of the reconnect protocol."""

    model_config = ConfigDict(frozen=True)

    status: ReconnectState
    trigger: ErrorClass
    attempts: int = Field(ge=0)
    elapsed_s: float = Field(ge=0)
    error: str | None = None
    timestamp: datetime = Field(default_factory=datetime.now)

    @property
    def succeeded(self) -> bool:
        return self.status == ReconnectState.HEALTHY


class HealthCheckResult(BaseModel):
    """Result of pinging the client's current connection."""

    model_config = ConfigDict(frozen=True)

    status: HealthCheckStatus
    latency_s: float | None = None
    message: str | None = None
    reconnect_count: int = 0
    timestamp: datetime = Field(default_factory=datetime.now)

    def is_healthy(self) -> bool:
        return self.status == HealthCheckStatus.HEALTHY

    @classmethod
    def initializing(cls: type[Self], reconnect_count: int) -> Self:
        """Create result for a client whose connection is closed.

        The next ``execute`` will reconnect lazily.
        """
        return cls(
            status=HealthCheckStatus.INITIALIZING,
            message="Connection closed; will reconnect on next use",
            reconnect_count=reconnect_count,
        )

    @classmethod
    def unhealthy(cls: type[Self], error: str, reconnect_count: int) -> Self:
        return cls(
            status=HealthCheckStatus.UNHEALTHY,
            message=error,
            reconnect_count=reconnect_count,
        )

    @classmethod
    def healthy(cls: type[Self], latency_s: float, reconnect_count: int) -> Self:
        return cls(
            status=HealthCheckStatus.HEALTHY,
            latency_s=latency_s,
            message="Connection is healthy",
            reconnect_count=reconnect_count,
        )
