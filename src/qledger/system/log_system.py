"""Centralized structlog setup for QLedger.

Every module obtains its logger through LoggerFactory.get_logger() and logs
dotted event names with keyword context:

    logger = LoggerFactory.get_logger()
    logger.info("portfolio.updated", portfolio="main", periods=21)

Decimal and date values in the context are rendered as strings, so the JSON
file output never loses precision on monetary amounts.
"""

import inspect
import logging
import sys
from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Iterator, Literal

import structlog
from pydantic import BaseModel, Field

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_LOG_FILE = Path("logs/qledger.log")

_LEVEL_COLORS = {
    "debug": "\033[36m",
    "info": "\033[32m",
    "warning": "\033[33m",
    "error": "\033[31m",
    "critical": "\033[35m",
}
_RESET = "\033[0m"
_DIM = "\033[90m"


class LoggingConfig(BaseModel):
    """Configuration for the logging system.

    What each level carries:

    INFO (default):
    - Portfolio created / removed, transactions recorded through the service
    - Update cycles completed

    DEBUG:
    - Ledger rows with running position and cost
    - Valuation periods appended or invalidated, summary rebuilds

    WARNING:
    - Close prices carried forward (stale valuation rows)
    - Back-dated transactions forcing recomputation

    ERROR:
    - Price or FX rate unavailable for a required period

    Timestamp formats: "iso" (2025-10-22T20:50:07.288824+00:00),
    "compact" (251022-205007.28), "time" (20:50:07.28), "short" (1022T205007).
    """

    level: LogLevel = Field(default="INFO", description="Minimum level for console output")
    format: Literal["console", "json"] = Field(default="console", description="Console output format")
    timestamp_format: Literal["iso", "compact", "time", "short"] = Field(
        default="compact",
        description="Timestamp format added as 'log_timestamp'",
    )
    enable_file: bool = Field(default=False, description="Also write JSON lines to a file")
    file_path: Path | None = Field(default=None, description="Log file (logs/qledger.log if None)")
    file_level: LogLevel = Field(default="WARNING", description="Minimum level for file output")
    file_rotation: bool = Field(default=True, description="Rotate the file when it grows too large")
    max_file_size_mb: int = Field(default=10, description="File size in MB that triggers rotation")
    backup_count: int = Field(default=3, description="Rotated files to keep")


def _stringify_values(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Render Decimal and date context values as strings."""
    for key, value in event_dict.items():
        if isinstance(value, Decimal):
            event_dict[key] = str(value)
        elif isinstance(value, date):
            event_dict[key] = value.isoformat()
    return event_dict


def _timestamper(fmt: str) -> Callable[[Any, str, dict[str, Any]], dict[str, Any]]:
    """
    Build a processor stamping wall-clock time under 'log_timestamp'.

    'timestamp' is left alone: ledger and valuation events use it for trade
    time and period end.
    """

    def stamp(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        centis = now.microsecond // 10000
        if fmt == "compact":
            event_dict["log_timestamp"] = now.strftime(f"%y%m%d-%H%M%S.{centis:02d}")
        elif fmt == "time":
            event_dict["log_timestamp"] = now.strftime(f"%H:%M:%S.{centis:02d}")
        elif fmt == "short":
            event_dict["log_timestamp"] = now.strftime("%m%dT%H%M%S")
        else:
            event_dict["log_timestamp"] = now.isoformat()
        return event_dict

    return stamp


def _render_console(logger: Any, method_name: str, event_dict: dict[str, Any]) -> str:
    """One line per event: time, colored level, event, sorted context, (module:line)."""
    stamp = event_dict.pop("log_timestamp", "")
    level = str(event_dict.pop("level", method_name)).lower()
    event = event_dict.pop("event", "")
    filename = event_dict.pop("filename", "")
    lineno = event_dict.pop("lineno", "")
    logger_name = event_dict.pop("logger", "")

    line = [stamp, f"[{_LEVEL_COLORS.get(level, '')}{level}{_RESET}]", str(event)]

    context = " ".join(f"{key}={value}" for key, value in sorted(event_dict.items()) if not key.startswith("_"))
    if context:
        line.append(f"{_DIM}|{_RESET} {context}")

    if filename and lineno:
        # Logger names are module paths; keep the last package segment only
        package = logger_name.rsplit(".", 2)[-2] if logger_name.count(".") >= 1 else ""
        location = f"{package}.{Path(filename).stem}" if package else Path(filename).stem
        line.append(f"{_DIM}({location}:{lineno}){_RESET}")

    return " ".join(part for part in line if part)


@contextmanager
def portfolio_context(name: str) -> Iterator[None]:
    """
    Bind portfolio=name to every event logged inside the block.

    Example:
        >>> with portfolio_context("main"):
        ...     aggregator.update(period_end, prices)
    """
    with structlog.contextvars.bound_contextvars(portfolio=name):
        yield


class LoggerFactory:
    """
    Configures structlog once and hands out loggers.

    get_logger() configures with defaults on first use, so library code can
    log without the application calling configure() first.

    Example:
        >>> LoggerFactory.configure(LoggingConfig(level="DEBUG"))
        >>> logger = LoggerFactory.get_logger()
        >>> logger.debug("ledger.transaction_recorded", symbol="IBM", pos_qty=Decimal("100"))
    """

    _config: LoggingConfig | None = None
    _configured: bool = False

    @classmethod
    def configure(cls, config: LoggingConfig | None = None) -> None:
        """
        Route structlog through stdlib logging with console and optional file handlers.

        Args:
            config: Logging configuration (defaults if None)
        """
        config = config if config is not None else LoggingConfig()
        if config.enable_file and config.file_path is None:
            config.file_path = DEFAULT_LOG_FILE
        cls._config = config

        pre_chain = cls._shared_processors(config.timestamp_format)
        handlers = [cls._console_handler(config, pre_chain)]
        root_level = getattr(logging, config.level)
        if config.enable_file:
            handlers.append(cls._file_handler(config, pre_chain))
            root_level = min(root_level, getattr(logging, config.file_level))

        logging.basicConfig(level=root_level, handlers=handlers, force=True)

        structlog.configure(
            processors=[
                *pre_chain,
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        cls._configured = True

    @staticmethod
    def _shared_processors(timestamp_format: str) -> list[Any]:
        return [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            _timestamper(timestamp_format),
            _stringify_values,
            structlog.processors.CallsiteParameterAdder(
                [
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
        ]

    @staticmethod
    def _console_handler(config: LoggingConfig, pre_chain: list[Any]) -> logging.Handler:
        renderer: Any = _render_console if config.format == "console" else structlog.processors.JSONRenderer()
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setLevel(getattr(logging, config.level))
        handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain))
        return handler

    @staticmethod
    def _file_handler(config: LoggingConfig, pre_chain: list[Any]) -> logging.Handler:
        """JSON-lines file handler, rotating unless disabled."""
        path = config.file_path or DEFAULT_LOG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)

        handler: logging.Handler
        if config.file_rotation:
            handler = RotatingFileHandler(
                filename=str(path),
                maxBytes=config.max_file_size_mb * 1024 * 1024,
                backupCount=config.backup_count,
                encoding="utf-8",
            )
        else:
            handler = logging.FileHandler(filename=str(path), encoding="utf-8")

        handler.setLevel(getattr(logging, config.file_level))
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=pre_chain,
            )
        )
        return handler

    @classmethod
    def get_logger(cls, name: str | None = None):
        """
        Get a logger, configuring with defaults on first use.

        Args:
            name: Logger name (default: the calling module's __name__)
        """
        if not cls._configured:
            cls.configure()

        if name is None:
            frame = inspect.currentframe()
            caller = frame.f_back if frame else None
            name = caller.f_globals.get("__name__", "qledger") if caller else "qledger"

        return structlog.get_logger(name)

    @classmethod
    def get_config(cls) -> LoggingConfig:
        return cls._config if cls._config is not None else LoggingConfig()

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured

    @classmethod
    def reset(cls) -> None:
        """Drop handlers and structlog configuration (mainly for testing)."""
        root = logging.getLogger()
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()
        root.setLevel(logging.NOTSET)
        structlog.contextvars.clear_contextvars()
        structlog.reset_defaults()
        cls._config = None
        cls._configured = False
