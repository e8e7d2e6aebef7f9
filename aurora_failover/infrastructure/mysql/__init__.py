"""Failover-aware MySQL client built on mysql-connector-python.

This module provides:

- `FailoverClient`: one connection that reconnects and verifies writability after a failover
- `FailoverClientConfig`: connection, session and failover settings
- `MySQLDriver`: the default driver adapter

Usage
-----
::

    config = FailoverClientConfig(
        connection=MySQLConnectionSettings(host="cluster.example.com", user="app"),
        failover=FailoverSettings(max_retry=3, read_only_variable="innodb_read_only"),
    )
    with FailoverClient(config) as client:
        client.execute("UPDATE accounts SET active = 1 WHERE id = %s", (42,))
"""

from .adapter import DriverAdapter, DriverConnection, QueryArgs, QueryResult
from .client import READ_ONLY_STATUS_QUERY, FailoverClient
from .config import (
    FailoverClientConfig,
    FailoverSettings,
    MySQLConnectionSettings,
    SessionConfig,
    SessionSettings,
)
from .driver import MySQLConnection, MySQLDriver
from .exceptions import (
    ClientClosedError,
    ConnectionLostError,
    DriverError,
    FailoverError,
    FatalDriverError,
    ReadOnlyFailoverError,
    StillReadOnlyError,
)
from .health import HealthCheckResult, ReconnectResult

__all__ = [
    "READ_ONLY_STATUS_QUERY",
    "ClientClosedError",
    "ConnectionLostError",
    "DriverAdapter",
    "DriverConnection",
    "DriverError",
    "FailoverClient",
    "FailoverClientConfig",
    "FailoverError",
    "FailoverSettings",
    "FatalDriverError",
    "HealthCheckResult",
    "MySQLConnection",
    "MySQLConnectionSettings",
    "MySQLDriver",
    "QueryArgs",
    "QueryResult",
    "ReadOnlyFailoverError",
    "ReconnectResult",
    "SessionConfig",
    "SessionSettings",
    "StillReadOnlyError",
]
