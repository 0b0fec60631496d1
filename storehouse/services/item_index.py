"""
Item Index: the aggregated view of every backend's contents.

The index is rebuilt from scratch by build() and afterwards only changes
through the allocators, which adjust quantities for transfers they performed
themselves. Changes made to backends by anything else are not noticed until
the next build.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from ..models.stack import BackendRef, ItemIdentity, SlotItem, StackRecord
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


class ItemIndex:
    """Mapping from item identity to its stack record."""

    def __init__(self, stacks: Iterable[StackRecord] = ()):
        self._stacks: dict[ItemIdentity, StackRecord] = {}
        for stack in stacks:
            self.insert(stack)

    @classmethod
    def build(cls, backends: Iterable[BackendRef]) -> ItemIndex:
        """
        Scan every occupied slot of every backend into a fresh index.

        Backends are visited in the order given and slots in ascending order,
        so provenance entries are in scan order.

        Raises:
            BackendPayloadError: If a backend describes a slot with an invalid payload.
        """
        index = cls()
        slot_total = 0
        backend_total = 0

        for backend in backends:
            backend_total += 1
            for slot in sorted(backend.adapter.list_occupied_slots()):
                item = SlotItem.from_payload(backend.adapter.get_slot_item(slot), backend=backend.name, slot=slot)
                if item.count <= 0:
                    continue

                stack = index.lookup(item.identity)
                if stack is None:
                    stack = StackRecord.from_slot_item(item)
                    index.insert(stack)
                stack.add_provenance(backend, slot, item.count)
                slot_total += 1

        logger.info("Item index built", backends=backend_total, slots=slot_total, stacks=len(index))
        return index

    def lookup(self, identity: ItemIdentity) -> StackRecord | None:
        """Return the stack record for identity, or None when nothing is known about it."""
        return self._stacks.get(identity)

    def insert(self, stack: StackRecord) -> None:
        if stack.identity in self._stacks:
            raise ValueError(f"Stack record for {stack.identity} already exists")
        self._stacks[stack.identity] = stack

    def stacks(self) -> list[StackRecord]:
        return list(self._stacks.values())

    def total_quantity(self) -> int:
        return sum(stack.quantity for stack in self._stacks.values())

    def inconsistent_stacks(self) -> list[StackRecord]:
        """Stack records whose quantity differs from the sum of their provenance entries."""
        return [stack for stack in self._stacks.values() if not stack.is_consistent()]

    def __contains__(self, identity: object) -> bool:
        return identity in self._stacks

    def __iter__(self) -> Iterator[StackRecord]:
        return iter(self._stacks.values())

    def __len__(self) -> int:
        return len(self._stacks)
