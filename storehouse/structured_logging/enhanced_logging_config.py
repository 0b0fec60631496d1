"""
structlog-based logging configuration for storehouse.

This is the main entry point for the logging system. All modules obtain their
loggers through get_logger() and log structured key/value events:

    from ..structured_logging.enhanced_logging_config import get_logger
    logger = get_logger(__name__)
    logger.info("Withdrawal complete", identity=str(identity), withdrawn=12)
"""

import logging
import re
from typing import TYPE_CHECKING, Any, cast

import structlog
from structlog.contextvars import merge_contextvars
from structlog.stdlib import BoundLogger, LoggerFactory

from .logging_context import bind_operation_context, clear_operation_context, get_current_context
from .logging_file_setup import close_file_logging, setup_file_logging

if TYPE_CHECKING:
    from ..config.models import LoggingConfig

__all__ = [
    "bind_operation_context",
    "clear_operation_context",
    "configure_structlog",
    "get_current_context",
    "get_logger",
    "log_exception_once",
    "setup_logging",
]

_ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


class _LoggingState:  # pylint: disable=too-few-public-methods
    """Whether setup_logging has run, and where it is writing."""

    initialized: bool = False
    log_path: str | None = None


_logging_state = _LoggingState()


def _strip_ansi_renderer(bound_logger: Any, name: str, event_dict: dict[str, Any]) -> str:
    """Render key/value pairs with ANSI escape sequences removed."""
    formatted = structlog.processors.KeyValueRenderer(key_order=["timestamp", "level", "event"])(
        bound_logger, name, event_dict
    )
    return _ANSI_ESCAPE.sub("", formatted)


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog processors on top of the standard logging module.

    Args:
        log_level: Minimum level name for the root logger
    """
    logging.getLogger().setLevel(getattr(logging, log_level.upper(), logging.INFO))

    structlog.configure(
        processors=[
            merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            _strip_ansi_renderer,
        ],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=BoundLogger,
        cache_logger_on_first_use=False,
    )


def setup_logging(config: "LoggingConfig", *, force_reconfigure: bool = False) -> None:
    """
    Set up logging from the logging section of the application configuration.

    Args:
        config: Logging configuration
        force_reconfigure: Replace an earlier setup instead of keeping it
    """
    if _logging_state.initialized and not force_reconfigure:
        get_logger("storehouse.structured_logging").debug(
            "setup_logging skipped; logging system already initialized",
            log_path=_logging_state.log_path,
        )
        return

    close_file_logging()
    configure_structlog(config.level)

    if not config.enabled:
        logging.getLogger().setLevel(logging.CRITICAL + 1)
        _logging_state.initialized = True
        _logging_state.log_path = None
        return

    log_path = setup_file_logging(config.file, config.level, reset_on_start=config.reset_on_start)

    _logging_state.initialized = True
    _logging_state.log_path = str(log_path)

    get_logger("storehouse.structured_logging").info(
        "Logging system initialized",
        log_path=str(log_path),
        log_level=config.level,
        reset_on_start=config.reset_on_start,
    )


def get_logger(name: str) -> Any:
    """Return the structlog logger for a module; pass __name__."""
    return structlog.get_logger(name)


def log_exception_once(
    bound_logger: BoundLogger,
    level: str,
    message: str,
    *,
    exc: Exception | None = None,
    mark_logged: bool = True,
    **kwargs: Any,
) -> None:
    """
    Log an exception unless something already reported it.

    Args:
        bound_logger: Logger to write to
        level: Method name on the logger, such as "error" or "warning"
        message: Event text
        exc: Exception whose type and text are added to the event
        mark_logged: Flag exc so later handlers skip it
        **kwargs: Extra event fields
    """
    if exc is not None:
        if getattr(exc, "already_logged", False):
            return
        kwargs.setdefault("error_type", type(exc).__name__)
        kwargs.setdefault("error", str(exc))

    log_method = getattr(bound_logger, level.lower(), bound_logger.error)
    log_method(message, **kwargs)

    if exc is not None and mark_logged:
        marker = getattr(exc, "mark_logged", None)
        if callable(marker):
            marker()  # pylint: disable=not-callable
        else:
            cast(Any, exc).already_logged = True
