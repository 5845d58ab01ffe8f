"""Structured logging for eventgate.

Routes the standard library loggers used throughout the package through
structlog, with:
- Correlation ID propagation (e.g. one ID per ingested batch)
- JSON output for production, pretty output for development
- Common fields (version, hostname)
- Log injection protection for event messages

Example usage:
    from eventgate.core.logging import configure_logging, correlation_context

    configure_logging(level="DEBUG")

    with correlation_context("batch-42"):
        buffer.admit(batch)  # buffer debug logs carry correlation_id
"""

import logging
import re
import socket
import sys
import uuid
from contextvars import ContextVar
from functools import lru_cache
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

EVENTGATE_VERSION = "0.1.0"

MAX_LOG_MESSAGE_LENGTH = 10000

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*[a-zA-Z]")

# Context variable for correlation ID propagation
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# Context variable for additional bound context
_bound_context: ContextVar[dict[str, Any]] = ContextVar("bound_context", default={})


def generate_correlation_id() -> str:
    """Generate a unique correlation ID (UUID4 format)."""
    return str(uuid.uuid4())


def get_correlation_id() -> str | None:
    """Get the current correlation ID from context."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None) -> None:
    """Set the correlation ID in the current context.

    Args:
        correlation_id: The correlation ID to set, or None to clear.
    """
    _correlation_id.set(correlation_id)


class correlation_context:
    """Context manager establishing a correlation ID scope.

    Example:
        with correlation_context("batch-123"):
            logger.info("processing")  # Includes correlation_id="batch-123"
    """

    def __init__(self, correlation_id: str | None = None) -> None:
        """Initialize the correlation context.

        Args:
            correlation_id: Optional correlation ID. If None, generates a new one.
        """
        self.correlation_id = correlation_id or generate_correlation_id()
        self._token: Any = None

    def __enter__(self) -> str:
        self._token = _correlation_id.set(self.correlation_id)
        return self.correlation_id

    def __exit__(self, *args: Any) -> None:
        _correlation_id.reset(self._token)


class bind_context:
    """Context manager to bind additional context to logs.

    Example:
        with bind_context(stream="orders"):
            logger.info("action")  # Includes stream="orders"
    """

    def __init__(self, **kwargs: Any) -> None:
        self.ctx = kwargs
        self._token: Any = None

    def __enter__(self) -> "bind_context":
        new_context = {**_bound_context.get(), **self.ctx}
        self._token = _bound_context.set(new_context)
        return self

    def __exit__(self, *args: Any) -> None:
        _bound_context.reset(self._token)


# =============================================================================
# Structlog Processors
# =============================================================================


def add_correlation_id(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add correlation ID to log events if available."""
    correlation_id = get_correlation_id()
    if correlation_id is not None:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def add_bound_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add bound context variables to log events."""
    for key, value in _bound_context.get().items():
        event_dict.setdefault(key, value)
    return event_dict


@lru_cache(maxsize=1)
def _get_hostname() -> str:
    try:
        return socket.gethostname()
    except OSError:
        return "unknown"


def add_common_fields(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add common fields like version and hostname."""
    event_dict.setdefault("eventgate_version", EVENTGATE_VERSION)
    event_dict.setdefault("hostname", _get_hostname())
    return event_dict


def sanitize_log_message(message: str) -> str:
    """Neutralize line breaks and ANSI escapes, and cap the length.

    Event identities and payloads come from outside the process and may end
    up in log messages verbatim.
    """
    if not message:
        return message

    sanitized = message.replace("\r", "\\r").replace("\n", "\\n")
    sanitized = _ANSI_ESCAPE.sub("", sanitized)

    if len(sanitized) > MAX_LOG_MESSAGE_LENGTH:
        sanitized = sanitized[: MAX_LOG_MESSAGE_LENGTH - 20] + "... [TRUNCATED]"

    return sanitized


def sanitize_event(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Sanitize log messages to prevent log injection."""
    event = event_dict.get("event", "")
    if isinstance(event, str):
        event_dict["event"] = sanitize_log_message(event)
    return event_dict


# =============================================================================
# Logging Configuration
# =============================================================================


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        add_correlation_id,
        add_bound_context,
        add_common_fields,
        sanitize_event,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.processors.format_exc_info,
    ]


def configure_logging(
    level: str | int = logging.INFO,
    json_output: bool | None = None,
    log_file: str | None = None,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Global log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Use JSON output format. If None, auto-detects:
                     True if not a TTY (production), False otherwise (dev)
        log_file: Optional file path for log output
    """
    if json_output is None:
        json_output = not sys.stdout.isatty()

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    shared_processors = _shared_processors()

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if json_output:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def configure_logging_from_settings() -> None:
    """Configure logging from the cached eventgate settings."""
    # Import here to avoid circular imports
    from eventgate.core.settings import get_cached_settings

    settings = get_cached_settings()

    configure_logging(
        level=settings.logging.level,
        json_output=settings.logging.json_output,
        log_file=settings.logging.file,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__).

    Returns:
        A structured logger instance.
    """
    return structlog.get_logger(name)


def reset_logging() -> None:
    """Reset logging configuration to defaults.

    Primarily useful for tests to ensure clean state between them.
    """
    _correlation_id.set(None)
    _bound_context.set({})

    structlog.reset_defaults()

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
