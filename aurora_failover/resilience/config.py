from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RetryPolicy(BaseModel):
    """Reconnect policy used after a failover-class error.

    Attempt ``n`` (starting at 1) waits ``min(backoff_factor * (n - 1), backoff_cap)``
    seconds before reconnecting, so the default sequence is 0, 1.5, 3.0, ... capped at 10.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    max_retry: int = Field(default=5, ge=0, description="Maximum reconnect attempts (0 disables reconnecting)")
    backoff_factor: float = Field(default=1.5, ge=0, description="Seconds added per attempt")
    backoff_cap: float = Field(default=10.0, ge=0, description="Upper bound for a single backoff sleep")
