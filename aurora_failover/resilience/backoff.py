from __future__ import annotations

from typing import TYPE_CHECKING

from tenacity.wait import wait_base

if TYPE_CHECKING:
    from tenacity import RetryCallState

    from .config import RetryPolicy


def backoff_delay(attempt: int, factor: float = 1.5, cap: float = 10.0) -> float:
    """Seconds to sleep before reconnect attempt ``attempt`` (1-based).

    >>> [backoff_delay(n) for n in range(1, 7)]
    [0.0, 1.5, 3.0, 4.5, 6.0, 7.5]
    """
    if attempt < 1:
        raise ValueError(f"attempt numbering starts at 1, got {attempt}")
    return float(min(factor * (attempt - 1), cap))


class wait_failover_backoff(wait_base):  # noqa: N801
    """Linear capped backoff in tenacity's wait protocol.

    tenacity asks for the wait *after* attempt ``n`` failed, which is the
    sleep that precedes attempt ``n + 1``. Attempt 1 never waits, matching
    ``backoff_delay(1) == 0``.
    """

    def __init__(self, factor: float = 1.5, cap: float = 10.0) -> None:
        self.factor = factor
        self.cap = cap

    @classmethod
    def from_policy(cls, policy: RetryPolicy) -> wait_failover_backoff:
        return cls(factor=policy.backoff_factor, cap=policy.backoff_cap)

    def delay_for(self, attempt: int) -> float:
        return backoff_delay(attempt, self.factor, self.cap)

    def __call__(self, retry_state: RetryCallState) -> float:
        return self.delay_for(retry_state.attempt_number + 1)
