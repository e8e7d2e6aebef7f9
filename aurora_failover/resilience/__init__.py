"""Retry policy, backoff and error classification for failover handling."""

from __future__ import annotations

from .backoff import backoff_delay, wait_failover_backoff
from .classifier import DEFAULT_CONNECTION_LOST_MARKERS, DEFAULT_READ_ONLY_MARKERS, ErrorClassifier
from .config import RetryPolicy
from .types import BeforeSleepCallback, SleepFunction

__all__ = [
    "DEFAULT_CONNECTION_LOST_MARKERS",
    "DEFAULT_READ_ONLY_MARKERS",
    "BeforeSleepCallback",
    "ErrorClassifier",
    "RetryPolicy",
    "SleepFunction",
    "backoff_delay",
    "wait_failover_backoff",
]
