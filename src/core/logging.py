"""Structured logging system built on Loguru.

This module configures the process-wide log sinks and provides the helpers
used by the rest of the application to emit structured records.

Every record written to a file is a JSON object shaped as::

    {"status": 404, "message": "User not found", "context": {...},
     "level": "WARNING", "timestamp": "..."}

Sinks:
- **stdout**: human-readable console format in development, JSON otherwise
- **app.log**: every application record (access records excluded)
- **error.log**: records at ERROR severity and above
- **access.log**: one record per HTTP request

Standard library logging (uvicorn, SQLAlchemy) is intercepted and routed
through Loguru so that all output shares the same sinks.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, cast

from loguru import logger

from src.core.types import LogContext

if TYPE_CHECKING:
    from loguru import Record

    from src.core.config import Settings


class _LoggingState:
    """Simple state holder to track if logging has been configured."""

    def __init__(self) -> None:
        self.configured = False


_state = _LoggingState()

APP_LOG_FILE: Final[str] = "app.log"
ERROR_LOG_FILE: Final[str] = "error.log"
ACCESS_LOG_FILE: Final[str] = "access.log"

DEFAULT_LOG_FORMAT: Final[str] = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "{message}"
)
CORRELATION_ID_DISPLAY_LENGTH: Final[int] = 8
MAX_FIELD_VALUE_LENGTH: Final[int] = 100

# Extra keys with a dedicated meaning; everything else is context
_RESERVED_EXTRA: Final[frozenset[str]] = frozenset({"status", "context", "access"})


def record_context(record: Record) -> LogContext:
    """Collect the structured context of a record.

    Explicit context passed to the log helpers is merged with request-scoped
    values bound through ``logger.contextualize`` (correlation ID, method...).

    Args:
        record: Loguru record.

    Returns:
        LogContext: The merged context dictionary.
    """
    extra = record["extra"]
    context: LogContext = {
        key: value
        for key, value in extra.items()
        if key not in _RESERVED_EXTRA and not key.startswith("_")
    }
    explicit = extra.get("context")
    if isinstance(explicit, dict):
        context.update(explicit)
    return context


def build_log_entry(record: Record) -> dict[str, Any]:
    """Build the structured object written for a log record.

    Args:
        record: Loguru record.

    Returns:
        dict[str, Any]: Entry with status, message, context, level and timestamp.
    """
    context = record_context(record)

    if exc := record["exception"]:
        context["exception"] = {
            "type": exc.type.__name__ if exc.type else None,
            "value": str(exc.value) if exc.value else None,
        }

    return {
        "status": record["extra"].get("status"),
        "message": record["message"],
        "context": context,
        "level": record["level"].name,
        "timestamp": record["time"].isoformat(),
    }


def serialize_for_json(record: Record) -> str:
    """Format log record as a single JSON line.

    Args:
        record: Loguru record to format.

    Returns:
        str: JSON-formatted log entry with newline.
    """
    return json.dumps(build_log_entry(record), default=str) + "\n"


def _json_format(record: Record) -> str:
    """Loguru format callable emitting the pre-serialized JSON entry."""
    record["extra"]["_json"] = serialize_for_json(record).rstrip("\n")
    return "{extra[_json]}\n"


def _escape(value: object) -> str:
    return str(value).replace("{", "{{").replace("}", "}}").replace("<", r"\<")


def _format_context_fields(record: Record) -> list[str]:
    """Format status and context fields for console display.

    Args:
        record: Loguru record.

    Returns:
        list[str]: List of formatted context parts.
    """
    parts = []

    status = record["extra"].get("status")
    if status is not None:
        status_str = str(status)
        if status_str.startswith("2"):
            parts.append(f"<green>{status_str}</green>")
        elif status_str.startswith(("4", "5")):
            parts.append(f"<red>{status_str}</red>")
        else:
            parts.append(f"<yellow>{status_str}</yellow>")

    for key, value in record_context(record).items():
        if value is None:
            continue
        if key == "correlation_id":
            str_value = str(value)[:CORRELATION_ID_DISPLAY_LENGTH]
        else:
            str_value = str(value)
            if len(str_value) > MAX_FIELD_VALUE_LENGTH:
                str_value = str_value[: MAX_FIELD_VALUE_LENGTH - 3] + "..."
        parts.append(f"<dim>{_escape(key)}={_escape(str_value)}</dim>")

    return parts


def format_console_with_context(record: Record) -> str:
    """Format log record for console with all context fields visible.

    Args:
        record: Loguru record to format.

    Returns:
        str: Formatted log template with context.
    """
    try:
        parts = [
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green>",
            "<level>{level: <8}</level>",
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan>",
        ]

        context_parts = _format_context_fields(record)
        if context_parts:
            parts.append(" ".join(f"[{part}]" for part in context_parts))

        parts.append("{message}")

        formatted = " | ".join(parts)
        if record["exception"]:
            formatted += "\n{exception}"
        return formatted + "\n"
    except (AttributeError, TypeError, ValueError, KeyError):
        return DEFAULT_LOG_FORMAT + "\n"


class InterceptHandler(logging.Handler):
    """Intercept standard logging and redirect to Loguru.

    This handler captures logs from libraries using standard logging
    and forwards them to Loguru for consistent formatting.
    """

    def emit(self, record: logging.LogRecord) -> None:
        """Forward log record to Loguru.

        Args:
            record: Standard library LogRecord to forward.
        """
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).bind(
            logger_name=record.name
        ).log(level, record.getMessage())


def _is_access_record(record: Record) -> bool:
    return bool(record["extra"].get("access"))


def _is_app_record(record: Record) -> bool:
    return not record["extra"].get("access")


def setup_logging(settings: Settings) -> None:
    """Configure Loguru sinks for console and log files.

    Args:
        settings: Application settings containing log configuration.

    Note:
        This function ensures it's only called once using module state.
    """
    if _state.configured:
        return

    logger.remove()

    log_level = settings.log_config.log_level
    formatter_type = settings.log_config.log_formatter_type or "console"
    # Production stdout is collected by the platform: JSON lines only
    if settings.environment == "production":
        formatter_type = "json"

    if formatter_type == "console":
        logger.add(
            sys.stdout,
            format=cast("Any", format_console_with_context),
            level=log_level,
            enqueue=True,
            colorize=True,
            diagnose=settings.debug,
            backtrace=settings.debug,
        )
    else:
        logger.add(
            sys.stdout,
            format=cast("Any", _json_format),
            level=log_level,
            enqueue=True,
            diagnose=False,
            backtrace=False,
        )

    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    file_sinks = [
        (APP_LOG_FILE, log_level, _is_app_record),
        (ERROR_LOG_FILE, "ERROR", _is_app_record),
        (ACCESS_LOG_FILE, "INFO", _is_access_record),
    ]
    for filename, level, record_filter in file_sinks:
        logger.add(
            str(log_dir / filename),
            format=cast("Any", _json_format),
            level=level,
            filter=cast("Any", record_filter),
            enqueue=True,
            diagnose=False,
            backtrace=False,
        )

    # Configure standard library logging to use Loguru
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for logger_name in ["uvicorn", "uvicorn.error"]:
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.handlers = [InterceptHandler()]
        uvicorn_logger.propagate = False

    # Requests are already written to access.log by the request middleware
    logging.getLogger("uvicorn.access").disabled = True

    logger.info(
        "Logging configured with {} formatter",
        formatter_type,
        log_dir=str(log_dir),
        log_level=log_level,
    )

    _state.configured = True


def _emit(level: str, status: int | None, message: str, context: LogContext) -> None:
    logger.opt(depth=2).bind(status=status, context=context).log(level, message)


def log_info(status: int | None, message: str, **context: Any) -> None:  # noqa: ANN401
    """Emit an info record ``{status, message, context}``.

    Example:
        >>> log_info(200, "Listing users", event="LIST_USERS", count=3)
    """
    _emit("INFO", status, message, context)


def log_warning(status: int | None, message: str, **context: Any) -> None:  # noqa: ANN401
    """Emit a warning record ``{status, message, context}``."""
    _emit("WARNING", status, message, context)


def log_error(status: int | None, message: str, **context: Any) -> None:  # noqa: ANN401
    """Emit an error record ``{status, message, context}``."""
    _emit("ERROR", status, message, context)


def log_access(status: int, message: str, **context: Any) -> None:  # noqa: ANN401
    """Emit an access record, routed to ``access.log`` only."""
    logger.opt(depth=1).bind(status=status, context=context, access=True).info(
        message
    )
