from __future__ import annotations

from typing import TYPE_CHECKING

from ...core.enums import ErrorClass

if TYPE_CHECKING:
    from ...resilience.classifier import ErrorClassifier


class FailoverError(Exception):
    """Base class for every error raised by this package."""


class DriverError(FailoverError):
    """A database driver failure, carrying the server or network message."""

    def __init__(self, message: str, *, errno: int | None = None, sqlstate: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errno = errno
        self.sqlstate = sqlstate

    @classmethod
    def from_exception(cls, exc: BaseException, classifier: ErrorClassifier) -> DriverError:
        """Wrap a raw driver exception in the subclass matching its message."""
        message = str(exc)
        error_cls = _ERROR_CLASS_TYPES[classifier.classify(message)]
        return error_cls(
            message,
            errno=getattr(exc, "errno", None),
            sqlstate=getattr(exc, "sqlstate", None),
        )


class FatalDriverError(DriverError):
    """Not recoverable by reconnecting; propagated immediately."""


class ReadOnlyFailoverError(DriverError):
    """The server rejected a write because it is not the writable primary."""


class ConnectionLostError(DriverError):
    """The server is unreachable or dropped the connection."""


class StillReadOnlyError(FailoverError):
    """A reconnected handle still reports the read-only flag as set.

    Only used inside the reconnect loop; never raised to callers.
    """

    def __init__(self, variable: str, value: object) -> None:
        super().__init__(f"{variable} is {value!r}, expected 'OFF'")
        self.variable = variable
        self.value = value


class ClientClosedError(FailoverError):
    """The failover client was closed explicitly."""


_ERROR_CLASS_TYPES: dict[ErrorClass, type[DriverError]] = {
    ErrorClass.FATAL: FatalDriverError,
    ErrorClass.READ_ONLY_FAILOVER: ReadOnlyFailoverError,
    ErrorClass.CONNECTION_LOST: ConnectionLostError,
}
