"""
Context management utilities for structured logging.

Operation context (which command is running, a correlation id for the pass)
is bound into structlog's context variables so every log entry emitted while
an allocator runs carries it automatically.
"""

import uuid
from typing import Any

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars


def bind_operation_context(
    operation: str,
    correlation_id: str | None = None,
    **kwargs: Any,
) -> str:
    """
    Bind operation context to the current logging context.

    Args:
        operation: Name of the running command (refresh, withdraw, deposit)
        correlation_id: Unique id for this operation, generated when omitted
        **kwargs: Additional context variables

    Returns:
        The correlation id that was bound
    """
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())

    context_vars = {"operation": operation, "correlation_id": correlation_id, **kwargs}
    context_vars = {k: v for k, v in context_vars.items() if v is not None}

    bind_contextvars(**context_vars)
    return correlation_id


def clear_operation_context() -> None:
    """Clear the current operation context from logging."""
    clear_contextvars()


def get_current_context() -> dict[str, Any]:
    """Get the current logging context."""
    try:
        return structlog.contextvars.get_contextvars()
    except (AttributeError, KeyError):
        return {}
