"""Keep a MySQL connection usable across Aurora-style writer failovers."""

from __future__ import annotations

from .core.enums import ErrorClass, HealthCheckStatus, ReconnectState
from .infrastructure.mysql import (
    ClientClosedError,
    ConnectionLostError,
    DriverAdapter,
    DriverConnection,
    DriverError,
    FailoverClient,
    FailoverClientConfig,
    FailoverError,
    FailoverSettings,
    FatalDriverError,
    HealthCheckResult,
    MySQLConnectionSettings,
    MySQLDriver,
    QueryResult,
    ReadOnlyFailoverError,
    ReconnectResult,
    SessionSettings,
    StillReadOnlyError,
)
from .logger import LoggingConfig, configure_logging, get_logger
from .resilience import ErrorClassifier, RetryPolicy, backoff_delay

__all__ = [
    "ClientClosedError",
    "ConnectionLostError",
    "DriverAdapter",
    "DriverConnection",
    "DriverError",
    "ErrorClass",
    "ErrorClassifier",
    "FailoverClient",
    "FailoverClientConfig",
    "FailoverError",
    "FailoverSettings",
    "FatalDriverError",
    "HealthCheckResult",
    "HealthCheckStatus",
    "LoggingConfig",
    "MySQLConnectionSettings",
    "MySQLDriver",
    "QueryResult",
    "ReadOnlyFailoverError",
    "ReconnectResult",
    "ReconnectState",
    "RetryPolicy",
    "SessionSettings",
    "StillReadOnlyError",
    "backoff_delay",
    "configure_logging",
    "get_logger",
]
