"""Text-based classification of driver errors.

Drivers surface failover conditions only through their error messages, so
classification is a case-insensitive substring match over two ordered marker
sets. Read-only markers are checked first: a message such as
``"lost connection ... read-only"`` is a read-only failover.
"""

from __future__ import annotations

from collections.abc import Iterable

from ..core.enums import ErrorClass

DEFAULT_READ_ONLY_MARKERS: tuple[str, ...] = ("read-only", "read only")
DEFAULT_CONNECTION_LOST_MARKERS: tuple[str, ...] = (
    "not connected",
    "lost connection",
    "can't connect",
    "shutdown in progress",
    "server has gone away",
    "connection not available",
)


class ErrorClassifier:
    """Maps an error message to exactly one `ErrorClass`.

    Examples
    --------
    >>> classifier = ErrorClassifier()
    >>> classifier.classify("1290 (HY000): The MySQL server is running with the --read-only option")
    <ErrorClass.READ_ONLY_FAILOVER: 'read-only-failover'>
    >>> classifier.classify("1064 (42000): You have an error in your SQL syntax")
    <ErrorClass.FATAL: 'fatal'>
    """

    __slots__ = ("_connection_lost_markers", "_read_only_markers")

    def __init__(
        self,
        read_only_markers: Iterable[str] = DEFAULT_READ_ONLY_MARKERS,
        connection_lost_markers: Iterable[str] = DEFAULT_CONNECTION_LOST_MARKERS,
    ) -> None:
        self._read_only_markers = self._normalize(read_only_markers)
        self._connection_lost_markers = self._normalize(connection_lost_markers)

    @staticmethod
    def _normalize(markers: Iterable[str]) -> tuple[str, ...]:
        return tuple(marker.casefold() for marker in markers if marker)

    @property
    def read_only_markers(self) -> tuple[str, ...]:
        return self._read_only_markers

    @property
    def connection_lost_markers(self) -> tuple[str, ...]:
        return self._connection_lost_markers

    def classify(self, message: str | None) -> ErrorClass:
        text = (message or "").casefold()

        if any(marker in text for marker in self._read_only_markers):
            return ErrorClass.READ_ONLY_FAILOVER
        if any(marker in text for marker in self._connection_lost_markers):
            return ErrorClass.CONNECTION_LOST
        return ErrorClass.FATAL

    def classify_error(self, error: BaseException) -> ErrorClass:
        return self.classify(str(error))
