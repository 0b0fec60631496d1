"""Shared storage network fixtures and doubles for storehouse tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest

from storehouse.backends.memory import MemoryInventory, MemoryNetwork
from storehouse.models.stack import BackendRef
from storehouse.services.transfer_routing import TransferRouter

ACTOR = "turtle_1"


def item(name: str, count: int, *, max_count: int = 64, damage: int = 0, display_name: str | None = None) -> dict:
    """Slot payload in the shape backends report."""
    return {
        "name": name,
        "damage": damage,
        "displayName": display_name or name.split(":")[-1].replace("_", " ").title(),
        "count": count,
        "maxCount": max_count,
    }


def mock_backend(
    name: str,
    *,
    slots: dict[int, dict] | None = None,
    size: int = 27,
    channels: list[str] | None = None,
    push_result: Callable[..., int] | None = None,
    pull_result: Callable[..., int] | None = None,
) -> BackendRef:
    """A call-counting backend whose transfers report whatever the given callables return."""
    contents: dict[int, dict[str, Any]] = dict(slots or {})
    adapter = MagicMock(name=name)
    adapter.list_occupied_slots.side_effect = lambda: sorted(contents)
    adapter.get_slot_item.side_effect = lambda slot: contents[slot]
    adapter.slot_count.return_value = size
    adapter.list_transfer_channels.return_value = channels if channels is not None else [ACTOR]
    adapter.push.side_effect = push_result or (lambda _dest, _slot, count, *_args: count)
    adapter.pull.side_effect = pull_result or (lambda _src, _slot, count=None, *_args: count)
    return BackendRef(name=name, adapter=adapter)


@pytest.fixture
def network() -> MemoryNetwork:
    return MemoryNetwork()


@pytest.fixture
def actor(network: MemoryNetwork) -> MemoryInventory:
    return network.add_inventory(ACTOR, 16)


@pytest.fixture
def router() -> TransferRouter:
    return TransferRouter(actor_pattern=r"^turtle_")


@pytest.fixture
def chest_refs(network: MemoryNetwork) -> Callable[[], list[BackendRef]]:
    """Backend references for every chest on the network, in name order."""

    def _refs() -> list[BackendRef]:
        return [
            BackendRef(name=name, adapter=member)
            for name, member in sorted(network.candidates().items())
            if hasattr(member, "push")
        ]

    return _refs
