"""Failover-aware MySQL client.

`FailoverClient` holds exactly one driver connection and keeps it usable
across a failover: when a query fails because the server went read-only or
the connection dropped, it replaces the connection (keeping session
settings), verifies the new one, and re-raises the original error. The
failed query itself is never re-run.
"""

from __future__ import annotations

import time
from contextlib import suppress
from typing import TYPE_CHECKING, Any, Self

from tenacity import RetryError, Retrying, retry_if_exception_type, stop_after_attempt

from ...core.enums import ErrorClass, ReconnectState
from ...logger import get_logger
from ...resilience.backoff import wait_failover_backoff
from .config import FailoverClientConfig
from .driver import MySQLDriver
from .exceptions import ClientClosedError, StillReadOnlyError
from .health import HealthCheckResult, ReconnectResult

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from structlog.stdlib import BoundLogger
    from tenacity import RetryCallState

    from ...resilience.classifier import ErrorClassifier
    from ...resilience.config import RetryPolicy
    from ...resilience.types import BeforeSleepCallback, SleepFunction
    from .adapter import DriverAdapter, DriverConnection, QueryArgs, QueryResult
    from .config import SessionConfig

logger: BoundLogger = get_logger(__name__)

READ_ONLY_STATUS_QUERY = "SHOW GLOBAL VARIABLES LIKE %s"


class FailoverClient:
    """A single MySQL connection that survives writer failovers.

    Construction connects immediately; a failure there is raised as-is.

    Parameters
    ----------
    config
        Connection, session and failover settings.
    driver
        Driver adapter used to open connections. Defaults to `MySQLDriver`.
    before_sleep
        Called with tenacity's ``RetryCallState`` before every backoff sleep.
    sleep
        Blocking sleep used for backoff. Defaults to ``time.sleep``.

    Examples
    --------
    >>> with FailoverClient.from_options({"host": "writer.example.com", "max_retry": 3}) as client:
    ...     client.execute("INSERT INTO events (name) VALUES (%s)", ("signup",))

    Notes
    -----
    One call in flight per instance. The backoff sleep blocks the calling
    thread; use one client per worker thread.
    """

    __slots__ = (
        "_before_sleep",
        "_classifier",
        "_closed",
        "_config",
        "_driver",
        "_handle",
        "_last_reconnect",
        "_policy",
        "_reconnect_count",
        "_sleep",
        "_state",
        "_wait",
    )

    def __init__(
        self,
        config: FailoverClientConfig,
        driver: DriverAdapter | None = None,
        *,
        before_sleep: BeforeSleepCallback | None = None,
        sleep: SleepFunction = time.sleep,
    ) -> None:
        self._config = config
        self._driver: DriverAdapter = driver if driver is not None else MySQLDriver()
        self._policy = config.failover.retry_policy()
        self._classifier = config.failover.classifier()
        self._wait = wait_failover_backoff.from_policy(self._policy)
        self._before_sleep = before_sleep
        self._sleep = sleep
        self._state = ReconnectState.IDLE
        self._reconnect_count = 0
        self._last_reconnect: ReconnectResult | None = None
        self._closed = False
        self._handle: DriverConnection = self._driver.connect(config)

        logger.info(
            "FailoverClient connected",
            host=config.connection.host,
            port=config.connection.port,
            max_retry=self._policy.max_retry,
            disconnect_on_read_only=config.failover.disconnect_on_read_only,
        )

    @classmethod
    def from_options(
        cls,
        options: Mapping[str, Any],
        driver: DriverAdapter | None = None,
        **kwargs: Any,
    ) -> Self:
        """Create a client from one flat mapping of driver and failover options.

        See `FailoverClientConfig.from_options` for how keys are split.
        """
        return cls(FailoverClientConfig.from_options(options), driver, **kwargs)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None and exc_val is not None:
            logger.error(
                "FailoverClient context manager exiting with exception",
                exc_type=exc_type.__name__,
                exc_val=str(exc_val),
            )
        self.close()

    # ------------------------------------------------------------------
    # Query execution
    # ------------------------------------------------------------------

    def execute(self, query: str, args: QueryArgs = None) -> QueryResult:
        """Run a statement on the current connection.

        A closed connection is reopened first. When the statement fails with
        a read-only or connection-lost error the connection is repaired
        before the original error is re-raised, so the *next* call can
        succeed. Fatal errors are re-raised untouched.

        Parameters
        ----------
        query
            SQL statement.
        args
            Statement parameters in the driver's paramstyle.

        Returns
        -------
        QueryResult
            The driver's result, unchanged.
        """
        self._ensure_open()

        if self._handle.is_closed():
            logger.info("Connection closed, reconnecting before query")
            self._reconnect(self._capture_session_config(self._handle))

        try:
            return self._handle.execute(query, args)
        except self.error_type as error:
            error_class = self._classifier.classify_error(error)
            if not error_class.is_transient:
                raise

            if error_class is ErrorClass.READ_ONLY_FAILOVER and self._config.failover.disconnect_on_read_only:
                self._disconnect_on_read_only(error)
            else:
                self._recover(error_class, error)
            raise

    # ------------------------------------------------------------------
    # Reconnect protocol
    # ------------------------------------------------------------------

    def _recover(self, trigger: ErrorClass, error: BaseException) -> ReconnectResult:
        started = time.monotonic()
        max_retry = self._policy.max_retry

        if max_retry == 0:
            logger.warning(
                "Reconnect disabled, raising original error",
                trigger=str(trigger),
                attempt=0,
                max_retry=0,
                delay_s=0.0,
                error=str(error),
            )
            return self._finish(ReconnectState.FAILED, trigger, 0, started, str(error))

        retrying = Retrying(
            stop=stop_after_attempt(max_retry),
            wait=self._wait,
            retry=retry_if_exception_type(Exception),
            before=lambda retry_state: self._log_attempt(trigger, retry_state),
            before_sleep=self._on_backoff,
            sleep=self._sleep,
            reraise=False,
        )

        # Taken once so a half-configured attempt cannot shrink it.
        session = self._capture_session_config(self._handle)
        attempts = 0
        try:
            for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    self._state = ReconnectState.RECONNECTING
                    self._reconnect(session)
                    self._verify(trigger)
        except RetryError as exc:
            last_error = exc.last_attempt.exception()
            result = self._finish(ReconnectState.FAILED, trigger, attempts, started, str(last_error))
            logger.warning(
                "Reconnect attempts exhausted, raising original error",
                trigger=str(trigger),
                attempt=attempts,
                max_retry=max_retry,
                delay_s=self._wait.delay_for(attempts),
                last_error=str(last_error),
                error=str(error),
            )
            return result

        result = self._finish(ReconnectState.HEALTHY, trigger, attempts, started, None)
        logger.warning(
            "Reconnected after failover",
            trigger=str(trigger),
            attempt=attempts,
            max_retry=max_retry,
            delay_s=self._wait.delay_for(attempts),
            elapsed_s=round(result.elapsed_s, 3),
        )
        return result

    def _finish(
        self,
        status: ReconnectState,
        trigger: ErrorClass,
        attempts: int,
        started: float,
        error: str | None,
    ) -> ReconnectResult:
        self._state = status
        self._last_reconnect = ReconnectResult(
            status=status,
            trigger=trigger,
            attempts=attempts,
            elapsed_s=time.monotonic() - started,
            error=error,
        )
        return self._last_reconnect

    def _log_attempt(self, trigger: ErrorClass, retry_state: RetryCallState) -> None:
        self._state = ReconnectState.BACKOFF
        logger.warning(
            "Database failover detected, reconnecting",
            trigger=str(trigger),
            attempt=retry_state.attempt_number,
            max_retry=self._policy.max_retry,
            delay_s=self._wait.delay_for(retry_state.attempt_number),
        )

    def _on_backoff(self, retry_state: RetryCallState) -> None:
        self._state = ReconnectState.BACKOFF
        outcome = retry_state.outcome
        logger.warning(
            "Reconnect attempt failed, backing off",
            attempt=retry_state.attempt_number,
            max_retry=self._policy.max_retry,
            delay_s=retry_state.next_action.sleep if retry_state.next_action else 0.0,
            error=str(outcome.exception()) if outcome is not None else None,
        )
        if self._before_sleep is not None:
            self._before_sleep(retry_state)

    def _reconnect(self, session: SessionConfig) -> None:
        """Replace the current connection and apply ``session`` to the new one.

        The outgoing connection is closed before connecting. The new handle is
        installed only once its session is applied; if ``connect`` or the
        session apply fails, the client keeps the closed handle and the error
        propagates.
        """
        self._close_handle(self._handle)

        incoming = self._driver.connect(self._config)
        self._reconnect_count += 1
        if session:
            try:
                incoming.apply_session_config(session)
            except Exception:
                self._close_handle(incoming)
                raise
        self._handle = incoming

        logger.debug("Connection replaced", session_keys=sorted(session), reconnect_count=self._reconnect_count)

    def _verify(self, trigger: ErrorClass) -> None:
        self._state = ReconnectState.VERIFYING

        if trigger is ErrorClass.CONNECTION_LOST:
            self._handle.ping()
            return

        variable = self._config.failover.read_only_variable
        row = self._handle.execute(READ_ONLY_STATUS_QUERY, (variable,)).first()
        value = row.get("Value") if row else None
        if isinstance(value, (bytes, bytearray)):
            value = value.decode()
        if value is None or str(value).upper() != "OFF":
            raise StillReadOnlyError(variable, value)

    def _disconnect_on_read_only(self, error: BaseException) -> None:
        delay = self._config.failover.sleep_before_disconnect
        logger.warning(
            "Database is read-only, disconnecting",
            attempt=0,
            delay_s=delay,
            error=str(error),
        )
        self._close_handle(self._handle)
        if delay > 0:
            self._sleep(delay)

    @staticmethod
    def _capture_session_config(handle: DriverConnection) -> SessionConfig:
        try:
            return dict(handle.session_config())
        except Exception as e:
            logger.debug("Session config unreadable, reconnecting with defaults", error=str(e))
            return {}

    @staticmethod
    def _close_handle(handle: DriverConnection) -> None:
        with suppress(Exception):
            handle.close()

    def _ensure_open(self) -> None:
        if self._closed:
            raise ClientClosedError("FailoverClient is closed")

    # ------------------------------------------------------------------
    # Lifecycle and health
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the client and its connection. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._close_handle(self._handle)
        logger.info("FailoverClient closed", reconnect_count=self._reconnect_count)

    @property
    def closed(self) -> bool:
        return self._closed

    def health_check(self) -> HealthCheckResult:
        """Ping the current connection and measure latency."""
        if self._closed:
            return HealthCheckResult.unhealthy(error="FailoverClient is closed", reconnect_count=self._reconnect_count)
        if self._handle.is_closed():
            return HealthCheckResult.initializing(reconnect_count=self._reconnect_count)

        started = time.perf_counter()
        try:
            self._handle.ping()
        except Exception as e:
            return HealthCheckResult.unhealthy(error=str(e), reconnect_count=self._reconnect_count)

        return HealthCheckResult.healthy(
            latency_s=time.perf_counter() - started,
            reconnect_count=self._reconnect_count,
        )

    @property
    def state(self) -> ReconnectState:
        """Reconnect protocol state; the terminal state of the last run once it ends."""
        return self._state

    @property
    def last_reconnect(self) -> ReconnectResult | None:
        return self._last_reconnect

    @property
    def reconnect_count(self) -> int:
        """Number of physical connections opened after the initial one."""
        return self._reconnect_count

    @property
    def config(self) -> FailoverClientConfig:
        return self._config

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._policy

    @property
    def classifier(self) -> ErrorClassifier:
        return self._classifier

    # ------------------------------------------------------------------
    # Passthrough to the current connection
    # ------------------------------------------------------------------

    @property
    def handle(self) -> DriverConnection:
        """The current driver connection. Replaced, not mutated, on reconnect."""
        return self._handle

    @property
    def error_type(self) -> type[Exception]:
        return type(self._driver).error_type

    @property
    def paramstyle(self) -> str:
        return type(self._driver).paramstyle

    def is_closed(self) -> bool:
        return self._closed or self._handle.is_closed()

    def ping(self) -> None:
        self._ensure_open()
        self._handle.ping()

    def cursor(self, **kwargs: Any) -> Any:
        self._ensure_open()
        return self._handle.cursor(**kwargs)

    def commit(self) -> None:
        self._ensure_open()
        self._handle.commit()

    def rollback(self) -> None:
        self._ensure_open()
        self._handle.rollback()

    def session_config(self) -> SessionConfig:
        self._ensure_open()
        return self._handle.session_config()

    def set_session(self, **options: Any) -> None:
        """Change session settings; they are re-applied after every reconnect."""
        self._ensure_open()
        self._handle.apply_session_config(options)

    @property
    def server_version(self) -> tuple[int, ...] | None:
        self._ensure_open()
        return self._handle.server_version

    @property
    def connection_id(self) -> int | None:
        self._ensure_open()
        return self._handle.connection_id

    @property
    def database(self) -> str | None:
        self._ensure_open()
        return self._handle.database
