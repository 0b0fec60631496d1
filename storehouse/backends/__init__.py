"""Storage backend contract, discovery and the in-memory network."""

from .base import LocalInventory, StorageBackend
from .discovery import discover_backends

__all__ = ["LocalInventory", "StorageBackend", "discover_backends"]
