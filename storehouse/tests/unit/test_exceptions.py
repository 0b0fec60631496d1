"""
Unit tests for the storehouse exception hierarchy.
"""

from unittest.mock import patch

from storehouse.exceptions import (
    BackendPayloadError,
    ConfigurationError,
    ErrorContext,
    InvalidQuantityError,
    StorehouseError,
    TransferRoutingError,
    ValidationError,
    create_error_context,
)


def test_error_context_to_dict():
    context = create_error_context(operation="withdraw", backend="chest_a", slot=3, identity="minecraft:dirt:0")
    context.metadata["attempt"] = 1

    data = context.to_dict()

    assert data["operation"] == "withdraw"
    assert data["backend"] == "chest_a"
    assert data["slot"] == 3
    assert data["identity"] == "minecraft:dirt:0"
    assert data["metadata"] == {"attempt": 1}
    assert isinstance(data["timestamp"], str)


def test_storehouse_error_defaults():
    error = StorehouseError("technical detail")

    assert error.user_friendly == "technical detail"
    assert isinstance(error.context, ErrorContext)
    assert error.details == {}


def test_storehouse_error_is_marked_logged_after_creation():
    error = StorehouseError("technical detail")
    assert error.already_logged is True


def test_storehouse_error_logs_on_creation():
    with patch("storehouse.exceptions.logger") as fake_logger:
        StorehouseError("boom", details={"k": "v"})

    fake_logger.error.assert_called_once()
    assert fake_logger.error.call_args.kwargs["error_type"] == "StorehouseError"
    assert fake_logger.error.call_args.kwargs["details"] == {"k": "v"}


def test_mark_logged():
    error = StorehouseError("boom")
    error.mark_logged()
    assert error.already_logged is True


def test_transfer_routing_error_details():
    error = TransferRoutingError(
        "no route",
        backend_name="chest_a",
        channels=["chest_b"],
        user_friendly="Storage chest_a is not connected to this actor.",
    )

    data = error.to_dict()

    assert data["error_type"] == "TransferRoutingError"
    assert data["user_friendly"] == "Storage chest_a is not connected to this actor."
    assert data["details"] == {"backend_name": "chest_a", "channels": ["chest_b"]}


def test_validation_error_hierarchy():
    error = InvalidQuantityError("negative", field="quantity", value=-1)

    assert isinstance(error, ValidationError)
    assert isinstance(error, StorehouseError)
    assert error.details == {"field": "quantity", "value": "-1"}
    assert issubclass(BackendPayloadError, ValidationError)


def test_configuration_error_records_key():
    error = ConfigurationError("missing actor", config_key="actor")

    assert error.config_key == "actor"
    assert error.details["config_key"] == "actor"
