"""
Capability protocols for storage backends and the actor's local inventory.

Explicit typing.Protocol definitions replace probing objects for individual
methods. Discovery classifies candidates against StorageBackend once per
refresh; the allocators only ever see objects that passed that check.
"""

# pylint: disable=unnecessary-ellipsis  # Reason: Protocol method bodies use ... per typing.Protocol convention

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..models.stack import SlotItem


@runtime_checkable
class StorageBackend(Protocol):
    """
    Protocol for one storage container that can be aggregated.

    Slots are numbered from 1. Transfer methods return the number of units
    actually moved, which may be lower than requested.
    """

    def list_occupied_slots(self) -> Iterable[int]:
        """Slot numbers currently holding items."""
        ...

    def get_slot_item(self, slot: int) -> SlotItem | Mapping[str, Any]:
        """Item identity, display name, count and per-slot capacity of an occupied slot."""
        ...

    def slot_count(self) -> int:
        """Total number of addressable slots."""
        ...

    def push(self, destination: str, source_slot: int, count: int, destination_slot: int | None = None) -> int:
        """Move up to count units from source_slot to the named destination."""
        ...

    def pull(self, source: str, source_slot: int, count: int | None = None, destination_slot: int | None = None) -> int:
        """Move up to count units from source_slot of the named source into this backend."""
        ...

    def list_transfer_channels(self) -> Sequence[str]:
        """Names this backend can push to or pull from, in a stable order."""
        ...


@runtime_checkable
class LocalInventory(Protocol):
    """Protocol for the actor's own inventory."""

    @property
    def size(self) -> int:
        """Number of local slots, addressed 1..size."""
        ...

    def get_slot_item(self, slot: int) -> SlotItem | Mapping[str, Any] | None:
        """Contents of a local slot, or None when it is empty."""
        ...
