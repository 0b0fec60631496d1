"""Data model for aggregated storage."""

from .stack import BackendRef, ItemIdentity, ProvenanceEntry, SlotItem, StackRecord

__all__ = ["BackendRef", "ItemIdentity", "ProvenanceEntry", "SlotItem", "StackRecord"]
