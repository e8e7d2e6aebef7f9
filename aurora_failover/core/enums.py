from __future__ import annotations

from enum import StrEnum


class HealthCheckStatus(StrEnum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    INITIALIZING = "initializing"


class ErrorClass(StrEnum):
    """How a driver error message is handled by the failover client."""

    FATAL = "fatal"
    READ_ONLY_FAILOVER = "read-only-failover"
    CONNECTION_LOST = "connection-lost"

    @property
    def is_transient(self) -> bool:
        return self is not ErrorClass.FATAL


class ReconnectState(StrEnum):
    IDLE = "idle"
    BACKOFF = "backoff"
    RECONNECTING = "reconnecting"
    VERIFYING = "verifying"
    HEALTHY = "healthy"
    FAILED = "failed"
