"""structlog setup for the failover client.

Reconnect diagnostics are plain structlog events on the ``aurora_failover``
loggers; `configure_logging` decides how they are rendered and where they go.
Applications that already configure structlog can skip it entirely.
"""

from __future__ import annotations

import logging
import sys
from functools import lru_cache
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Literal, cast

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from structlog.processors import CallsiteParameter

if TYPE_CHECKING:
    from structlog.types import Processor

type BoundLogger = structlog.stdlib.BoundLogger
type LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"]


class LoggingConfig(BaseSettings):
    """Logging options, overridable with ``LOG_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="LOG_",
        extra="ignore",
        frozen=True,
    )

    level: LogLevel = Field(default="INFO")
    json_output: bool = Field(default=False, description="Render JSON lines instead of console output")
    service_name: str = Field(default="aurora-failover", description="Bound as ``service`` on every event")
    file_path: str | None = Field(default=None, description="Write to a rotating file instead of stderr")
    max_bytes: int = Field(default=50_000_000, ge=1024)
    backup_count: int = Field(default=10, ge=0)
    library_log_levels: dict[str, LogLevel] = Field(default_factory=lambda: {"mysql.connector": "WARNING"})


def _build_processors(config: LoggingConfig) -> list[Processor]:
    timestamper = (
        structlog.processors.TimeStamper(fmt="iso", utc=True)
        if config.json_output
        else structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False)
    )
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.CallsiteParameterAdder(
            parameters=[CallsiteParameter.FILENAME, CallsiteParameter.LINENO, CallsiteParameter.MODULE]
        ),
        timestamper,
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if config.json_output:
        return [*processors, structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [*processors, structlog.dev.ConsoleRenderer()]


def _build_handler(config: LoggingConfig) -> logging.Handler:
    handler: logging.Handler
    if config.file_path:
        log_path = Path(config.file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            filename=str(log_path),
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    else:
        # stdout is left to the application.
        handler = logging.StreamHandler(sys.stderr)

    handler.setLevel(config.level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


@lru_cache(maxsize=1)
def _get_default_config() -> LoggingConfig:
    return LoggingConfig()


def configure_logging(config: LoggingConfig | None = None) -> BoundLogger:
    """Route structlog through the stdlib root logger.

    Parameters
    ----------
    config
        Logging options. Defaults to `LoggingConfig` read from the environment.

    Returns
    -------
    BoundLogger
        A logger bound to the configured pipeline.
    """
    config = config if config is not None else _get_default_config()

    structlog.configure(
        processors=_build_processors(config),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers = [_build_handler(config)]
    root.setLevel(config.level)

    for lib_name, lib_level in config.library_log_levels.items():
        logging.getLogger(lib_name).setLevel(lib_level)

    structlog.contextvars.bind_contextvars(service=config.service_name)
    return cast(BoundLogger, structlog.get_logger())


def get_logger(name: str | None = None) -> BoundLogger:
    return cast(BoundLogger, structlog.get_logger(name))


def bind_context(**kwargs: str | float | bool | None) -> None:
    """Bind values (e.g. ``cluster="orders"``) to every event in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
