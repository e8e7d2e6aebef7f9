"""Core module exports."""

from __future__ import annotations

from .enums import ErrorClass, HealthCheckStatus, ReconnectState

__all__ = [
    "ErrorClass",
    "HealthCheckStatus",
    "ReconnectState",
]
