"""Configuration models for the failover-aware MySQL client.

- `MySQLConnectionSettings`: where and how to connect
- `SessionSettings`: per-connection settings carried across reconnects
- `FailoverSettings`: retry and verification behaviour (environment aware)
- `FailoverClientConfig`: the complete client configuration
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from ...resilience.classifier import DEFAULT_CONNECTION_LOST_MARKERS, DEFAULT_READ_ONLY_MARKERS, ErrorClassifier
from ...resilience.config import RetryPolicy

type SessionConfig = dict[str, Any]


class MySQLConnectionSettings(BaseModel):
    """Connection settings for a MySQL (or Aurora MySQL) endpoint."""

    model_config = ConfigDict(extra="forbid")

    host: str = Field(default="localhost", description="Database host or cluster endpoint")
    port: int = Field(default=3306, ge=1, le=65535, description="Database port")
    database: str | None = Field(default=None, description="Default schema")
    user: str = Field(default="root", description="Database user")
    password: SecretStr | None = Field(default=None, description="Database password")
    connect_timeout: float = Field(default=10.0, gt=0, le=300.0, description="Connect timeout (seconds)")
    ssl_ca: str | None = Field(default=None, description="Path to CA certificate for TLS verification")
    options: dict[str, Any] = Field(
        default_factory=dict, description="Extra keyword arguments passed to mysql.connector.connect()"
    )


class SessionSettings(BaseModel):
    """Initial session configuration applied to every new connection.

    ``None`` leaves the server/driver default untouched.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    autocommit: bool | None = Field(default=None, description="Session autocommit mode")
    time_zone: str | None = Field(default=None, description="Session time_zone, e.g. '+00:00'")
    sql_mode: str | None = Field(default=None, description="Session sql_mode")
    get_warnings: bool | None = Field(default=None, description="Fetch warnings after each statement")
    raise_on_warnings: bool | None = Field(default=None, description="Raise an error when a statement warns")

    def to_session_config(self) -> SessionConfig:
        return self.model_dump(exclude_none=True)


class FailoverSettings(BaseSettings):
    """Failover handling options.

    Every field can be overridden from the environment with the
    ``AURORA_FAILOVER_`` prefix, e.g. ``AURORA_FAILOVER_MAX_RETRY=3``.
    """

    model_config = SettingsConfigDict(
        env_prefix="AURORA_FAILOVER_",
        extra="forbid",
        frozen=True,
    )

    max_retry: int = Field(default=5, ge=0, description="Maximum reconnect attempts after a failover error")
    backoff_factor: float = Field(default=1.5, ge=0, description="Seconds added to the backoff per attempt")
    backoff_cap: float = Field(default=10.0, ge=0, description="Maximum single backoff sleep (seconds)")
    disconnect_on_read_only: bool = Field(
        default=False, description="On a read-only error, disconnect and raise instead of reconnecting"
    )
    sleep_before_disconnect: float = Field(
        default=0.0, ge=0, description="Sleep before raising when disconnect_on_read_only is set (seconds)"
    )
    read_only_variable: str = Field(
        default="innodb_read_only",
        pattern=r"^[A-Za-z0-9_]+$",
        description="Global variable that reports whether the server rejects writes",
    )
    read_only_markers: tuple[str, ...] = Field(
        default=DEFAULT_READ_ONLY_MARKERS, description="Substrings marking a read-only failover error"
    )
    connection_lost_markers: tuple[str, ...] = Field(
        default=DEFAULT_CONNECTION_LOST_MARKERS, description="Substrings marking a lost connection"
    )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retry=self.max_retry,
            backoff_factor=self.backoff_factor,
            backoff_cap=self.backoff_cap,
        )

    def classifier(self) -> ErrorClassifier:
        return ErrorClassifier(
            read_only_markers=self.read_only_markers,
            connection_lost_markers=self.connection_lost_markers,
        )


class FailoverClientConfig(BaseModel):
    """Complete configuration for a `FailoverClient`.

    Examples
    --------
    >>> config = FailoverClientConfig(
    ...     connection=MySQLConnectionSettings(
    ...         host="mycluster.cluster-abc.us-east-1.rds.amazonaws.com",
    ...         user="app",
    ...         password=SecretStr("secret"),
    ...         database="app",
    ...     ),
    ...     failover=FailoverSettings(max_retry=3),
    ... )
    >>> with FailoverClient(config) as client:
    ...     client.execute("SELECT 1")
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    connection: MySQLConnectionSettings = Field(default_factory=MySQLConnectionSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    failover: FailoverSettings = Field(default_factory=FailoverSettings)

    def to_connect_params(self) -> dict[str, Any]:
        """Convert config to mysql.connector.connect() parameters.

        Returns
        -------
        dict[str, Any]
            Keyword arguments for mysql.connector.connect().
        """
        conn = self.connection
        params: dict[str, Any] = {
            "host": conn.host,
            "port": conn.port,
            "user": conn.user,
            "connection_timeout": conn.connect_timeout,
        }
        if conn.password is not None:
            params["password"] = conn.password.get_secret_value()
        if conn.database:
            params["database"] = conn.database
        if conn.ssl_ca:
            params["ssl_ca"] = conn.ssl_ca
        return {**params, **conn.options}

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> Self:
        """Build a config from one flat mapping of driver and failover options.

        Keys naming a `FailoverSettings` or `SessionSettings` field go there,
        keys naming a `MySQLConnectionSettings` field go to the connection,
        and anything else is passed through to the driver untouched.

        Parameters
        ----------
        options
            Flat options, e.g. ``{"host": "db", "max_retry": 3, "charset": "utf8mb4"}``.

        Returns
        -------
        Self
            The validated configuration.
        """
        failover: dict[str, Any] = {}
        session: dict[str, Any] = {}
        connection: dict[str, Any] = {}
        driver_options: dict[str, Any] = {}

        for key, value in options.items():
            if key in FailoverSettings.model_fields:
                failover[key] = value
            elif key in SessionSettings.model_fields:
                session[key] = value
            elif key in MySQLConnectionSettings.model_fields and key != "options":
                connection[key] = value
            else:
                driver_options[key] = value

        return cls(
            connection=MySQLConnectionSettings(**connection, options=driver_options),
            session=SessionSettings(**session),
            failover=FailoverSettings(**failover),
        )
