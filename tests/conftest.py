"""Shared fixtures: a scriptable in-memory driver for failover protocol tests.

`FakeDriver.connect` consumes ``connect_errors`` first (``None`` entries let a
connect through), then pops one dict from ``plan`` per successful connection
and applies it as attributes on the new `FakeConnection`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

import pytest

from aurora_failover.infrastructure.mysql import (
    READ_ONLY_STATUS_QUERY,
    ConnectionLostError,
    DriverError,
    FailoverClient,
    FailoverClientConfig,
    FailoverSettings,
    MySQLConnectionSettings,
    QueryResult,
    SessionSettings,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from aurora_failover.infrastructure.mysql import QueryArgs, SessionConfig


class FakeConnection:
    def __init__(self, index: int) -> None:
        self.index = index
        self.closed = False
        self.session: SessionConfig = {}
        self.queries: list[tuple[str, QueryArgs]] = []
        self.calls: list[str] = []
        self.execute_errors: list[Exception] = []
        self.read_only_value: Any = "OFF"
        self.ping_error: Exception | None = None
        self.session_error: Exception | None = None
        self.close_error: Exception | None = None
        self.apply_errors: list[Exception] = []

    def execute(self, query: str, args: QueryArgs = None) -> QueryResult:
        self.queries.append((query, args))
        if self.closed:
            raise ConnectionLostError("MySQL Connection not available.")
        if query == READ_ONLY_STATUS_QUERY:
            if self.read_only_value is None:
                return QueryResult(rows=[], rowcount=0)
            variable = args[0] if isinstance(args, tuple) else None
            return QueryResult(rows=[{"Variable_name": variable, "Value": self.read_only_value}], rowcount=1)
        if self.execute_errors:
            raise self.execute_errors.pop(0)
        return QueryResult(rows=[{"id": 1, "connection": self.index}], rowcount=1, last_insert_id=1)

    def is_closed(self) -> bool:
        return self.closed

    def close(self) -> None:
        self.closed = True
        if self.close_error is not None:
            raise self.close_error

    def ping(self) -> None:
        self.calls.append("ping")
        if self.closed:
            raise ConnectionLostError("MySQL Connection not available.")
        if self.ping_error is not None:
            raise self.ping_error

    def session_config(self) -> SessionConfig:
        if self.session_error is not None:
            raise self.session_error
        return dict(self.session)

    def apply_session_config(self, config: SessionConfig) -> None:
        if self.apply_errors:
            raise self.apply_errors.pop(0)
        self.session.update(config)

    def cursor(self, **kwargs: Any) -> tuple[str, dict[str, Any]]:
        self.calls.append("cursor")
        return ("cursor", kwargs)

    def commit(self) -> None:
        self.calls.append("commit")

    def rollback(self) -> None:
        self.calls.append("rollback")

    @property
    def server_version(self) -> tuple[int, ...] | None:
        return (8, 0, 36)

    @property
    def connection_id(self) -> int | None:
        return 100 + self.index

    @property
    def database(self) -> str | None:
        return "app"


class FakeDriver:
    error_type: ClassVar[type[Exception]] = DriverError
    paramstyle: ClassVar[str] = "pyformat"

    def __init__(self) -> None:
        self.connections: list[FakeConnection] = []
        self.connect_errors: list[Exception | None] = []
        self.plan: list[dict[str, Any]] = []
        self.connect_calls = 0

    def connect(self, config: FailoverClientConfig) -> FakeConnection:
        self.connect_calls += 1
        if self.connect_errors:
            error = self.connect_errors.pop(0)
            if error is not None:
                raise error

        connection = FakeConnection(len(self.connections))
        connection.apply_session_config(config.session.to_session_config())
        if self.plan:
            for key, value in self.plan.pop(0).items():
                setattr(connection, key, value)
        self.connections.append(connection)
        return connection


@pytest.fixture
def fake_driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def make_config() -> Callable[..., FailoverClientConfig]:
    """Build a config with explicit failover settings (environment-independent)."""

    def _make(**failover: Any) -> FailoverClientConfig:
        settings: dict[str, Any] = {
            "max_retry": 5,
            "disconnect_on_read_only": False,
            "sleep_before_disconnect": 0.0,
            "read_only_variable": "innodb_read_only",
        }
        settings.update(failover)
        return FailoverClientConfig(
            connection=MySQLConnectionSettings(host="writer.cluster.local", user="app", database="app"),
            session=SessionSettings(autocommit=True),
            failover=FailoverSettings(**settings),
        )

    return _make


@pytest.fixture
def make_client(
    fake_driver: FakeDriver,
    sleeps: list[float],
    make_config: Callable[..., FailoverClientConfig],
) -> Iterator[Callable[..., FailoverClient]]:
    created: list[FailoverClient] = []

    def _make(**failover: Any) -> FailoverClient:
        before_sleep = failover.pop("before_sleep", None)
        client = FailoverClient(make_config(**failover), fake_driver, before_sleep=before_sleep, sleep=sleeps.append)
        created.append(client)
        return client

    yield _make

    for client in created:
        client.close()


@pytest.fixture
def client(make_client: Callable[..., FailoverClient]) -> FailoverClient:
    return make_client()
