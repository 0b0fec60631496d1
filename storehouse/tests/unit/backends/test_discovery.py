"""
Unit tests for storage backend discovery.
"""

from types import SimpleNamespace

from storehouse.backends.discovery import discover_backends
from storehouse.tests.fixtures.storage_fixtures import ACTOR


def test_discovery_orders_backends_by_name(network, actor):
    network.add_chest("chest_2", 9)
    network.add_chest("chest_10", 9)
    network.add_chest("chest_1", 9)

    backends = discover_backends(network.candidates(), actor_pattern=r"^turtle_")

    assert [backend.name for backend in backends] == ["chest_1", "chest_10", "chest_2"]


def test_discovery_skips_objects_without_storage_capabilities(network, actor):
    network.add_chest("chest_0", 9)
    candidates = {**network.candidates(), "monitor_0": SimpleNamespace(write=lambda text: None)}

    backends = discover_backends(candidates)

    assert [backend.name for backend in backends] == ["chest_0"]


def test_discovery_skips_names_matching_actor_pattern(network):
    network.add_chest("chest_0", 9)
    network.add_chest("turtle_7", 9)

    backends = discover_backends(network.candidates(), actor_pattern=r"^turtle_")

    assert [backend.name for backend in backends] == ["chest_0"]
    assert ACTOR not in [backend.name for backend in backends]


def test_discovery_keeps_adapter_handle(network):
    chest = network.add_chest("chest_0", 9)

    (backend,) = discover_backends(network.candidates())

    assert backend.adapter is chest
