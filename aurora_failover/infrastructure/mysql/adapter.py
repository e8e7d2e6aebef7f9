"""Contract between the failover client and a database driver.

The client never talks to a driver library directly. It goes through a
`DriverAdapter` (type-level: connect, error type, paramstyle) and the
`DriverConnection` handles it returns (instance-level operations).
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from .config import FailoverClientConfig, SessionConfig

type QueryArgs = Sequence[Any] | dict[str, Any] | None


class QueryResult(BaseModel):
    """Rows and counters produced by one statement."""

    model_config = ConfigDict(frozen=True)

    rows: list[dict[str, Any]] = Field(default_factory=list)
    rowcount: int = -1
    last_insert_id: int | None = None

    def first(self) -> dict[str, Any] | None:
        return self.rows[0] if self.rows else None


@runtime_checkable
class DriverConnection(Protocol):
    """A live connection handle."""

    def execute(self, query: str, args: QueryArgs = None) -> QueryResult: ...

    def is_closed(self) -> bool: ...

    def close(self) -> None: ...

    def ping(self) -> None: ...

    def session_config(self) -> SessionConfig: ...

    def apply_session_config(self, config: SessionConfig) -> None: ...

    def cursor(self, **kwargs: Any) -> Any: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    @property
    def server_version(self) -> tuple[int, ...] | None: ...

    @property
    def connection_id(self) -> int | None: ...

    @property
    def database(self) -> str | None: ...


class DriverAdapter(Protocol):
    """Creates connection handles and describes the driver."""

    error_type: ClassVar[type[Exception]]
    paramstyle: ClassVar[str]

    def connect(self, config: FailoverClientConfig) -> DriverConnection: ...
