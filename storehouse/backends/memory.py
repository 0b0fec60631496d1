"""
In-memory storage network.

MemoryChest implements the StorageBackend protocol over plain dictionaries and
MemoryInventory stands in for the actor's own inventory. Both live on a
MemoryNetwork, which resolves the channel names used by push and pull. The
network backs the command-line tool and the test suite.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..models.stack import SlotItem
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TransferRecord:
    """One push or pull performed by a MemoryChest."""

    kind: str
    chest: str
    peer: str
    source_slot: int
    requested: int | None
    destination_slot: int | None
    moved: int


class MemoryInventory:
    """A fixed-size slotted inventory on a MemoryNetwork."""

    def __init__(self, name: str, size: int, network: MemoryNetwork | None = None):
        if size < 0:
            raise ValueError("Inventory size cannot be negative")
        self.name = name
        self._size = size
        self.network = network
        self.slots: dict[int, SlotItem] = {}

    @property
    def size(self) -> int:
        return self._size

    def slot_count(self) -> int:
        return self._size

    def list_occupied_slots(self) -> list[int]:
        return sorted(slot for slot, item in self.slots.items() if item.count > 0)

    def get_slot_item(self, slot: int) -> SlotItem | None:
        return self.slots.get(slot)

    def set_slot(self, slot: int, item: SlotItem | Mapping[str, Any]) -> None:
        """Place an item directly into a slot, replacing its contents."""
        if not 1 <= slot <= self._size:
            raise ValueError(f"Slot {slot} is outside 1..{self._size} of {self.name}")
        parsed = SlotItem.from_payload(item, backend=self.name, slot=slot)
        if parsed.count > 0:
            self.slots[slot] = parsed
        else:
            self.slots.pop(slot, None)

    def total(self, name: str, damage: int = 0) -> int:
        """Units of one item held across all slots."""
        return sum(item.count for item in self.slots.values() if item.name == name and item.damage == damage)

    def accept(self, item: SlotItem, count: int, destination_slot: int | None = None) -> int:
        """
        Store up to count units of item, returning how many were stored.

        An explicit destination slot is the only slot considered. Otherwise
        matching partial stacks are topped up first, then empty slots used.
        """
        if count <= 0:
            return 0

        if destination_slot is not None:
            if not 1 <= destination_slot <= self._size:
                return 0
            return self._fill_slot(destination_slot, item, count)

        placed = 0
        for slot in sorted(self.slots):
            if placed >= count:
                break
            current = self.slots[slot]
            if current.identity == item.identity:
                placed += self._fill_slot(slot, item, count - placed)

        for slot in range(1, self._size + 1):
            if placed >= count:
                break
            if slot not in self.slots:
                placed += self._fill_slot(slot, item, count - placed)

        return placed

    def release(self, slot: int, count: int) -> int:
        """Remove up to count units from a slot, returning how many were removed."""
        current = self.slots.get(slot)
        if current is None or count <= 0:
            return 0
        removed = min(count, current.count)
        remaining = current.count - removed
        if remaining > 0:
            self.slots[slot] = current.model_copy(update={"count": remaining})
        else:
            del self.slots[slot]
        return removed

    def _fill_slot(self, slot: int, item: SlotItem, count: int) -> int:
        current = self.slots.get(slot)
        if current is None:
            moved = min(count, item.max_count)
            self.slots[slot] = item.model_copy(update={"count": moved})
            return moved
        if current.identity != item.identity:
            return 0
        moved = min(count, max(0, current.max_count - current.count))
        if moved:
            self.slots[slot] = current.model_copy(update={"count": current.count + moved})
        return moved

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, size={self._size})"


class MemoryChest(MemoryInventory):
    """
    A storage chest implementing the StorageBackend protocol.

    transfer_limit caps every push and pull, which simulates a backend that
    moves fewer units than requested.
    """

    def __init__(
        self,
        name: str,
        size: int,
        network: MemoryNetwork | None = None,
        *,
        transfer_limit: int | None = None,
    ):
        super().__init__(name, size, network)
        self.transfer_limit = transfer_limit
        self.transfers: list[TransferRecord] = []

    def list_transfer_channels(self) -> list[str]:
        if self.network is None:
            return []
        return [name for name in self.network.names() if name != self.name]

    def push(self, destination: str, source_slot: int, count: int, destination_slot: int | None = None) -> int:
        target = self._peer(destination)
        item = self.slots.get(source_slot)
        moved = 0
        if item is not None:
            moved = target.accept(item, self._limit(min(count, item.count)), destination_slot)
            self.release(source_slot, moved)

        record = TransferRecord("push", self.name, destination, source_slot, count, destination_slot, moved)
        self.transfers.append(record)
        logger.debug("Memory push", chest=self.name, destination=destination, slot=source_slot, moved=moved)
        return moved

    def pull(self, source: str, source_slot: int, count: int | None = None, destination_slot: int | None = None) -> int:
        origin = self._peer(source)
        item = origin.slots.get(source_slot)
        moved = 0
        if item is not None:
            wanted = item.count if count is None else min(count, item.count)
            moved = self.accept(item, self._limit(wanted), destination_slot)
            origin.release(source_slot, moved)

        record = TransferRecord("pull", self.name, source, source_slot, count, destination_slot, moved)
        self.transfers.append(record)
        logger.debug("Memory pull", chest=self.name, source=source, slot=source_slot, moved=moved)
        return moved

    def _limit(self, count: int) -> int:
        if self.transfer_limit is None:
            return max(0, count)
        return max(0, min(count, self.transfer_limit))

    def _peer(self, name: str) -> MemoryInventory:
        if self.network is None:
            raise ValueError(f"{self.name} is not attached to a network")
        return self.network.get(name)


class MemoryNetwork:
    """Named inventories that can transfer items between each other."""

    def __init__(self) -> None:
        self._members: dict[str, MemoryInventory] = {}

    def add_chest(self, name: str, size: int, *, transfer_limit: int | None = None) -> MemoryChest:
        chest = MemoryChest(name, size, self, transfer_limit=transfer_limit)
        self._add(chest)
        return chest

    def add_inventory(self, name: str, size: int = 16) -> MemoryInventory:
        inventory = MemoryInventory(name, size, self)
        self._add(inventory)
        return inventory

    def get(self, name: str) -> MemoryInventory:
        try:
            return self._members[name]
        except KeyError:
            raise ValueError(f"Target '{name}' does not exist") from None

    def names(self) -> list[str]:
        return sorted(self._members)

    def candidates(self) -> dict[str, MemoryInventory]:
        """Every attached inventory keyed by name, as seen by backend discovery."""
        return dict(self._members)

    @classmethod
    def from_layout(cls, layout: Mapping[str, Any]) -> MemoryNetwork:
        """
        Build a network from a layout mapping.

        The layout has a "chests" mapping of name to {"size", "transfer_limit",
        "slots"} and an "inventories" mapping of name to {"size", "slots"},
        where "slots" maps slot numbers to item payloads.
        """
        network = cls()
        for name, entry in layout.get("chests", {}).items():
            chest = network.add_chest(name, int(entry.get("size", 27)), transfer_limit=entry.get("transfer_limit"))
            for slot, payload in entry.get("slots", {}).items():
                chest.set_slot(int(slot), payload)
        for name, entry in layout.get("inventories", {}).items():
            inventory = network.add_inventory(name, int(entry.get("size", 16)))
            for slot, payload in entry.get("slots", {}).items():
                inventory.set_slot(int(slot), payload)
        return network

    def to_layout(self) -> dict[str, Any]:
        """Inverse of from_layout, used to save the state of a network."""
        layout: dict[str, Any] = {"chests": {}, "inventories": {}}
        for name, member in sorted(self._members.items()):
            slots = {str(slot): item.model_dump(by_alias=True) for slot, item in sorted(member.slots.items())}
            if isinstance(member, MemoryChest):
                entry: dict[str, Any] = {"size": member.size, "slots": slots}
                if member.transfer_limit is not None:
                    entry["transfer_limit"] = member.transfer_limit
                layout["chests"][name] = entry
            else:
                layout["inventories"][name] = {"size": member.size, "slots": slots}
        return layout

    def _add(self, member: MemoryInventory) -> None:
        if member.name in self._members:
            raise ValueError(f"Duplicate network name '{member.name}'")
        self._members[member.name] = member
