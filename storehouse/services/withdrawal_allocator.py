"""Withdrawal of items from the aggregate into the actor's inventory."""

from __future__ import annotations

from dataclasses import dataclass

from ..exceptions import InvalidQuantityError, create_error_context
from ..models.stack import StackRecord
from ..structured_logging.enhanced_logging_config import get_logger
from .transfer_routing import TransferRouter

logger = get_logger(__name__)


def _validate_quantity(quantity: int, stack: StackRecord) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
        raise InvalidQuantityError(
            f"Withdrawal quantity must be a non-negative integer, got {quantity!r}",
            create_error_context(operation="withdraw", identity=str(stack.identity)),
            field="quantity",
            value=quantity,
            user_friendly="Quantity must be zero or a positive whole number.",
        )


@dataclass
class WithdrawalAllocator:
    """
    Distributes a withdrawal across the provenance entries of one stack record.

    Entries are drained in their stored order. Only the count a backend reports
    as moved is booked, and a short transfer is accepted without retrying the
    same entry.
    """

    router: TransferRouter

    def withdraw(self, stack: StackRecord, quantity: int | None = None) -> int:
        """
        Move up to quantity units of stack into the actor's inventory.

        Args:
            stack: Stack record to withdraw from
            quantity: Units wanted; defaults to one full stack of the item

        Returns:
            Units actually withdrawn, which is less than requested when the
            aggregate holds too few or backends move short

        Raises:
            InvalidQuantityError: If quantity is negative
            TransferRoutingError: If a backend that must be used has no route
        """
        requested = stack.max_stack if quantity is None else quantity
        _validate_quantity(requested, stack)

        remaining = requested
        withdrawn = 0

        for entry in stack.provenance:
            if remaining <= 0:
                break

            offer = min(remaining, entry.quantity)
            if offer <= 0:
                continue

            channel = self.router.resolve(entry.backend)
            reported = entry.backend.adapter.push(channel, entry.slot, offer)
            moved = max(0, min(int(reported), offer))

            if moved < offer:
                logger.debug(
                    "Short transfer accepted",
                    backend=entry.backend.name,
                    slot=entry.slot,
                    offered=offer,
                    moved=moved,
                )

            entry.quantity = max(0, entry.quantity - moved)
            stack.quantity = max(0, stack.quantity - moved)
            remaining -= moved
            withdrawn += moved

        logger.info(
            "Withdrawal complete",
            identity=str(stack.identity),
            requested=requested,
            withdrawn=withdrawn,
            remaining_in_storage=stack.quantity,
        )
        return withdrawn
