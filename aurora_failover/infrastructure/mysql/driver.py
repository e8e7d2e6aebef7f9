"""MySQL driver adapter built on ``mysql-connector-python``.

Every ``mysql.connector.Error`` is translated into the `DriverError`
taxonomy so the failover client only ever sees one error type. Session
configuration is tracked on the handle itself, which keeps it readable after
the server side of the connection is gone.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager, suppress
from typing import TYPE_CHECKING, Any, ClassVar

import mysql.connector

from ...logger import get_logger
from .adapter import QueryResult
from .exceptions import DriverError

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

    from ...resilience.classifier import ErrorClassifier
    from .adapter import QueryArgs
    from .config import FailoverClientConfig, SessionConfig

logger: BoundLogger = get_logger(__name__)

# Session options mapped onto mysql.connector connection attributes.
SESSION_ATTRIBUTES: frozenset[str] = frozenset(
    {"autocommit", "time_zone", "sql_mode", "get_warnings", "raise_on_warnings"}
)


class MySQLConnection:
    """One physical mysql.connector connection."""

    __slots__ = ("_classifier", "_closed", "_raw", "_session")

    def __init__(self, raw: Any, classifier: ErrorClassifier) -> None:
        self._raw = raw
        self._classifier = classifier
        self._session: SessionConfig = {}
        self._closed = False

    @contextmanager
    def _translate_errors(self) -> Iterator[None]:
        try:
            yield
        except mysql.connector.Error as exc:
            raise DriverError.from_exception(exc, self._classifier) from exc

    @property
    def raw(self) -> Any:
        """The underlying mysql.connector connection."""
        return self._raw

    def execute(self, query: str, args: QueryArgs = None) -> QueryResult:
        with self._translate_errors():
            cursor = self._raw.cursor(dictionary=True, buffered=True)
            try:
                cursor.execute(query, args)
                rows = [dict(row) for row in cursor.fetchall()] if cursor.with_rows else []
                return QueryResult(
                    rows=rows,
                    rowcount=cursor.rowcount,
                    last_insert_id=cursor.lastrowid or None,
                )
            finally:
                cursor.close()

    def is_closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        with suppress(mysql.connector.Error, OSError):
            self._raw.close()

    def ping(self) -> None:
        with self._translate_errors():
            self._raw.ping(reconnect=False)

    def session_config(self) -> SessionConfig:
        return dict(self._session)

    def apply_session_config(self, config: SessionConfig) -> None:
        """Apply session options to the live connection.

        Raises
        ------
        ValueError
            If a key is not a supported session option.
        DriverError
            If the server rejects a setting.
        """
        unknown = set(config) - SESSION_ATTRIBUTES
        if unknown:
            raise ValueError(f"Unsupported session options: {sorted(unknown)}")

        with self._translate_errors():
            for key, value in config.items():
                setattr(self._raw, key, value)
                self._session[key] = value

    def cursor(self, **kwargs: Any) -> Any:
        with self._translate_errors():
            return self._raw.cursor(**kwargs)

    def commit(self) -> None:
        with self._translate_errors():
            self._raw.commit()

    def rollback(self) -> None:
        with self._translate_errors():
            self._raw.rollback()

    @property
    def server_version(self) -> tuple[int, ...] | None:
        return self._raw.get_server_version()

    @property
    def connection_id(self) -> int | None:
        return self._raw.connection_id

    @property
    def database(self) -> str | None:
        with self._translate_errors():
            return self._raw.database


class MySQLDriver:
    """Connects to MySQL with mysql.connector.

    Parameters
    ----------
    classifier
        Picks the `DriverError` subclass for translated errors. Defaults to
        the classifier described by the client's `FailoverSettings`.
    """

    error_type: ClassVar[type[Exception]] = DriverError
    paramstyle: ClassVar[str] = mysql.connector.paramstyle

    def __init__(self, classifier: ErrorClassifier | None = None) -> None:
        self._classifier = classifier

    def connect(self, config: FailoverClientConfig) -> MySQLConnection:
        classifier = self._classifier or config.failover.classifier()

        try:
            raw = mysql.connector.connect(**config.to_connect_params())
        except mysql.connector.Error as exc:
            raise DriverError.from_exception(exc, classifier) from exc

        connection = MySQLConnection(raw, classifier)
        try:
            connection.apply_session_config(config.session.to_session_config())
        except Exception:
            connection.close()
            raise

        logger.debug(
            "MySQL connection established",
            host=config.connection.host,
            port=config.connection.port,
            connection_id=connection.connection_id,
        )
        return connection
