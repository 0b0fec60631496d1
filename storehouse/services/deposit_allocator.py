"""
Deposit of items from the actor's inventory into the aggregate.

A deposit first tops up slots that already hold the same item, then places
what is left into empty backend slots. Empty slots are read once per deposit
pass into a FreeSlotSnapshot, and slots filled during the pass are removed
from it, so later deposits in the same pass do not aim at them.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from ..backends.base import LocalInventory
from ..exceptions import InvalidQuantityError, create_error_context
from ..models.stack import BackendRef, ItemIdentity, SlotItem, StackRecord
from ..structured_logging.enhanced_logging_config import get_logger
from .item_index import ItemIndex
from .transfer_routing import TransferRouter

logger = get_logger(__name__)


@dataclass
class FreeSlotSnapshot:
    """Empty slots per backend, read lazily the first time a backend is scanned."""

    _free: dict[str, list[int]] = field(default_factory=dict)

    def free_slots(self, backend: BackendRef) -> list[int]:
        if backend.name not in self._free:
            capacity = backend.adapter.slot_count()
            occupied = set(backend.adapter.list_occupied_slots()) if capacity > 0 else set()
            self._free[backend.name] = [slot for slot in range(1, capacity + 1) if slot not in occupied]
        return list(self._free[backend.name])

    def claim(self, backend: BackendRef, slot: int) -> None:
        """Mark a slot as no longer empty."""
        free = self._free.get(backend.name)
        if free is not None and slot in free:
            free.remove(slot)


@dataclass
class DepositResult:
    """Outcome of a full deposit pass over the local inventory."""

    deposited: int = 0
    offered: int = 0
    per_slot: dict[int, int] = field(default_factory=dict)

    @property
    def left_behind(self) -> int:
        return self.offered - self.deposited


@dataclass
class DepositAllocator:
    """
    Places items from local slots into backends and records them in the index.

    Attributes:
        index: Item index updated in place
        backends: Aggregated backends in scan order
        router: Transfer channel resolver
    """

    index: ItemIndex
    backends: Sequence[BackendRef]
    router: TransferRouter

    def deposit(
        self,
        identity: ItemIdentity,
        local_slot: int,
        quantity: int,
        snapshot: FreeSlotSnapshot | None = None,
    ) -> int:
        """
        Deposit up to quantity units held in local_slot.

        Args:
            identity: Item held in the local slot
            local_slot: Slot of the actor's inventory to take items from
            quantity: Units available in that slot
            snapshot: Free-slot snapshot shared by a deposit pass

        Returns:
            Units actually deposited; the rest stays in the local slot

        Raises:
            InvalidQuantityError: If quantity is negative
            TransferRoutingError: If a backend that must be used has no route
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise InvalidQuantityError(
                f"Deposit quantity must be a non-negative integer, got {quantity!r}",
                create_error_context(operation="deposit", identity=str(identity), slot=local_slot),
                field="quantity",
                value=quantity,
            )

        if snapshot is None:
            snapshot = FreeSlotSnapshot()

        stack = self.index.lookup(identity)
        remaining = quantity
        deposited = 0

        if stack is not None:
            filled = self._fill_partial_stacks(stack, local_slot, remaining, snapshot)
            deposited += filled
            remaining -= filled

        if remaining > 0:
            placed = self._fill_free_slots(identity, local_slot, remaining, snapshot)
            deposited += placed
            remaining -= placed

        logger.info(
            "Deposit complete",
            identity=str(identity),
            local_slot=local_slot,
            offered=quantity,
            deposited=deposited,
        )
        return deposited

    def deposit_all(self, inventory: LocalInventory, slot_count: int | None = None) -> DepositResult:
        """
        Deposit every occupied local slot, sharing one free-slot snapshot.

        Args:
            inventory: The actor's inventory
            slot_count: Number of local slots to visit; defaults to inventory.size

        Returns:
            Totals for the pass
        """
        snapshot = FreeSlotSnapshot()
        result = DepositResult()
        last_slot = inventory.size if slot_count is None else slot_count

        for slot in range(1, last_slot + 1):
            payload = inventory.get_slot_item(slot)
            if payload is None:
                continue
            item = SlotItem.from_payload(payload, backend="local", slot=slot)
            if item.count <= 0:
                continue

            moved = self.deposit(item.identity, slot, item.count, snapshot)
            result.offered += item.count
            result.deposited += moved
            result.per_slot[slot] = moved

        logger.info("Deposit pass complete", offered=result.offered, deposited=result.deposited)
        return result

    def _fill_partial_stacks(
        self, stack: StackRecord, local_slot: int, quantity: int, snapshot: FreeSlotSnapshot
    ) -> int:
        remaining = quantity
        deposited = 0

        for entry in stack.provenance:
            if remaining <= 0:
                break

            free_space = max(0, stack.max_stack - entry.quantity)
            if free_space <= 0:
                continue

            wanted = min(free_space, remaining)
            channel = self.router.resolve(entry.backend)
            reported = entry.backend.adapter.pull(channel, local_slot, wanted, entry.slot)
            moved = max(0, min(int(reported), wanted))
            if moved <= 0:
                continue

            if entry.quantity == 0:
                snapshot.claim(entry.backend, entry.slot)
            entry.quantity += moved
            stack.quantity += moved
            deposited += moved
            remaining -= moved

        return deposited

    def _fill_free_slots(
        self, identity: ItemIdentity, local_slot: int, quantity: int, snapshot: FreeSlotSnapshot
    ) -> int:
        remaining = quantity
        deposited = 0

        for backend in self.backends:
            if remaining <= 0:
                break

            for slot in snapshot.free_slots(backend):
                if remaining <= 0:
                    break

                channel = self.router.resolve(backend)
                reported = backend.adapter.pull(channel, local_slot, remaining, slot)
                moved = max(0, min(int(reported), remaining))
                if moved <= 0:
                    continue

                snapshot.claim(backend, slot)
                stack = self.index.lookup(identity)
                if stack is None:
                    item = SlotItem.from_payload(backend.adapter.get_slot_item(slot), backend=backend.name, slot=slot)
                    stack = StackRecord(identity=identity, display_name=item.label, max_stack=item.max_count)
                    self.index.insert(stack)
                    logger.info("New stack record created", identity=str(identity), display_name=stack.display_name)

                stack.record_transfer_in(backend, slot, moved)
                deposited += moved
                remaining -= moved

        return deposited
