"""
Exception hierarchy for storehouse.

Only conditions that must stop an operation are exceptions. Short transfers
and under-supply are ordinary outcomes reported through returned quantities.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ErrorContext:
    """
    Where in the storage network an error happened.

    The operation, backend and slot let the operator find what to inspect.
    """

    operation: str | None = None
    backend: str | None = None
    slot: int | None = None
    identity: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict form of the context, for log events and error payloads."""
        return {
            "operation": self.operation,
            "backend": self.backend,
            "slot": self.slot,
            "identity": self.identity,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


class StorehouseError(Exception):
    """
    Base exception for all storehouse errors.

    Every subclass logs itself once at construction and carries an
    operator-facing message alongside the technical one.
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        details: dict[str, Any] | None = None,
        user_friendly: str | None = None,
    ):
        """
        Initialize storehouse error.

        Args:
            message: Message for the log
            context: Location of the failure in the network
            details: Extra key/value data for the log and error payload
            user_friendly: Operator-facing error message
        """
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.details = details or {}
        self.user_friendly = user_friendly or message
        self.timestamp = datetime.now()
        self.already_logged = False

        self._log_error()

    def _log_error(self) -> None:
        """Emit one structured error event describing this failure."""
        logger.error(
            "Storehouse error occurred",
            error_type=self.__class__.__name__,
            message=self.message,
            context=self.context.to_dict(),
            details=self.details,
        )
        self.mark_logged()

    def mark_logged(self) -> None:
        """Record that the error has been reported, so it is not logged twice."""
        self.already_logged = True

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for the command layer."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "user_friendly": self.user_friendly,
            "context": self.context.to_dict(),
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class TransferRoutingError(StorehouseError):
    """No usable transfer channel exists between the actor and a backend."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        backend_name: str | None = None,
        channels: list[str] | None = None,
        **kwargs,
    ):
        super().__init__(message, context, **kwargs)
        self.backend_name = backend_name
        self.channels = list(channels or [])
        if backend_name:
            self.details["backend_name"] = backend_name
        self.details["channels"] = self.channels


class ValidationError(StorehouseError):
    """Invalid arguments passed to a storehouse operation."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        field: str | None = None,
        value: Any | None = None,
        **kwargs,
    ):
        super().__init__(message, context, **kwargs)
        self.field = field
        self.value = value
        if field:
            self.details["field"] = field
        if value is not None:
            self.details["value"] = str(value)


class InvalidQuantityError(ValidationError):
    """A requested quantity is negative or not an integer."""


class BackendPayloadError(ValidationError):
    """A backend described a slot with a payload that fails validation."""


class ConfigurationError(StorehouseError):
    """Invalid settings or an unusable network layout."""

    def __init__(self, message: str, context: ErrorContext | None = None, config_key: str | None = None, **kwargs):
        super().__init__(message, context, **kwargs)
        self.config_key = config_key
        if config_key:
            self.details["config_key"] = config_key


def create_error_context(**kwargs) -> ErrorContext:
    """
    Build an ErrorContext from keyword fields (operation, backend, slot, identity, metadata).
    """
    return ErrorContext(**kwargs)
