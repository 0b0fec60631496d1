"""
Item identity, provenance and stack records.

A StackRecord is the aggregated view of one item identity across every
backend. Its quantity always equals the sum of its provenance entries.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import BackendPayloadError, create_error_context

if TYPE_CHECKING:
    from ..backends.base import StorageBackend


@dataclass(frozen=True, order=True)
class ItemIdentity:
    """Composite key of a fungible item class: item type plus damage/variant value."""

    name: str
    damage: int = 0

    def __str__(self) -> str:
        return f"{self.name}:{self.damage}"


class SlotItem(BaseModel):
    """Validated description of the contents of one slot, as reported by a backend."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    name: str = Field(min_length=1)
    damage: int = 0
    display_name: str = Field(default="", alias="displayName")
    count: int = Field(ge=0)
    max_count: int = Field(default=64, ge=1, alias="maxCount")

    @property
    def identity(self) -> ItemIdentity:
        return ItemIdentity(self.name, self.damage)

    @property
    def label(self) -> str:
        return self.display_name or self.name

    @classmethod
    def from_payload(
        cls,
        payload: SlotItem | Mapping[str, Any],
        *,
        backend: str | None = None,
        slot: int | None = None,
    ) -> SlotItem:
        """
        Validate a backend payload.

        Raises:
            BackendPayloadError: If the payload is missing fields or has invalid values.
        """
        if isinstance(payload, SlotItem):
            return payload
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            context = create_error_context(operation="read_slot", backend=backend, slot=slot)
            raise BackendPayloadError(
                f"Backend {backend!r} returned an invalid item for slot {slot}: {exc.errors()}",
                context,
                field="slot_item",
                user_friendly=f"Storage {backend} reported an unreadable item in slot {slot}.",
            ) from exc


@dataclass(frozen=True)
class BackendRef:
    """A named storage backend and the adapter used to talk to it."""

    name: str
    adapter: StorageBackend = field(compare=False, repr=False)


@dataclass
class ProvenanceEntry:
    """One backend slot contributing to a stack record's total."""

    backend: BackendRef
    slot: int
    quantity: int


@dataclass
class StackRecord:
    """Aggregated quantity of one item identity across all backends."""

    identity: ItemIdentity
    display_name: str
    max_stack: int
    quantity: int = 0
    provenance: list[ProvenanceEntry] = field(default_factory=list)

    @classmethod
    def from_slot_item(cls, item: SlotItem) -> StackRecord:
        return cls(identity=item.identity, display_name=item.label, max_stack=item.max_count)

    def add_provenance(self, backend: BackendRef, slot: int, quantity: int) -> ProvenanceEntry:
        """Append a provenance entry and add its quantity to the total."""
        entry = ProvenanceEntry(backend=backend, slot=slot, quantity=quantity)
        self.provenance.append(entry)
        self.quantity += quantity
        return entry

    def record_transfer_in(self, backend: BackendRef, slot: int, quantity: int) -> ProvenanceEntry:
        """Book units placed into a slot, reusing the entry that already tracks it."""
        for entry in self.provenance:
            if entry.backend == backend and entry.slot == slot:
                entry.quantity += quantity
                self.quantity += quantity
                return entry
        return self.add_provenance(backend, slot, quantity)

    def provenance_total(self) -> int:
        return sum(entry.quantity for entry in self.provenance)

    def is_consistent(self) -> bool:
        return self.quantity == self.provenance_total()

    def __str__(self) -> str:
        return f"{self.display_name} x{self.quantity}"
