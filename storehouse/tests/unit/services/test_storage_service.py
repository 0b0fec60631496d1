"""
Unit tests for the storage service command surface.
"""

import pytest
from structlog.testing import capture_logs

from storehouse.config.models import AppConfig, InventoryConfig, RoutingConfig
from storehouse.exceptions import TransferRoutingError
from storehouse.models.stack import ItemIdentity
from storehouse.services.display_projection import SortMode
from storehouse.services.storage_service import StorageService
from storehouse.tests.fixtures.storage_fixtures import item

DIRT = ItemIdentity("minecraft:dirt")


@pytest.fixture
def service(network, actor):
    chest_a = network.add_chest("chest_a", 4)
    chest_b = network.add_chest("chest_b", 4)
    chest_a.set_slot(1, item("minecraft:dirt", 40))
    chest_a.set_slot(2, item("minecraft:cobblestone", 50))
    chest_b.set_slot(3, item("minecraft:dirt", 20))
    chest_b.set_slot(4, item("minecraft:diamond", 3))
    storage = StorageService(candidates=network.candidates, local_inventory=actor)
    storage.refresh()
    return storage


def test_refresh_builds_index_and_display(service):
    assert [backend.name for backend in service.backends] == ["chest_a", "chest_b"]
    assert service.index.lookup(DIRT).quantity == 60
    assert [stack.display_name for stack in service.display_stacks] == ["Dirt", "Cobblestone", "Diamond"]


def test_refresh_discards_previous_index(service, network):
    network.get("chest_b").release(3, 20)

    service.refresh()

    assert service.index.lookup(DIRT).quantity == 40


def test_refresh_marks_backends_as_managed(service):
    assert service.router.managed == frozenset({"chest_a", "chest_b"})


def test_withdraw_updates_index_and_display(service, actor):
    stack = service.index.lookup(DIRT)

    withdrawn = service.withdraw(stack, 50)

    assert withdrawn == 50
    assert actor.total("minecraft:dirt") == 50
    assert stack.quantity == 10
    assert [stack.display_name for stack in service.display_stacks] == ["Cobblestone", "Dirt", "Diamond"]


def test_withdrawn_to_zero_record_is_kept_until_refresh(service):
    stack = service.index.lookup(DIRT)

    service.withdraw(stack, 60)

    assert service.index.lookup(DIRT) is stack
    assert stack.quantity == 0

    service.deposit_all()
    service.refresh()
    assert service.index.lookup(DIRT).quantity == 60


def test_deposit_all_returns_local_items_to_storage(service, actor, network):
    actor.set_slot(1, item("minecraft:dirt", 10))
    actor.set_slot(2, item("minecraft:sand", 5))

    outcome = service.deposit_all()

    assert outcome.deposited == 15
    assert service.index.lookup(DIRT).quantity == 70
    assert service.index.lookup(ItemIdentity("minecraft:sand")).quantity == 5
    assert actor.list_occupied_slots() == []
    assert service.index.inconsistent_stacks() == []


def test_withdraw_then_deposit_round_trip_restores_totals(service):
    before = service.index.total_quantity()
    stack = service.index.lookup(DIRT)

    service.withdraw(stack, 45)
    service.deposit_all()

    assert service.index.total_quantity() == before
    service.refresh()
    assert service.index.total_quantity() == before


def test_routing_failure_propagates_and_display_is_refreshed(network, actor):
    chest = network.add_chest("chest_a", 2)
    chest.set_slot(1, item("minecraft:dirt", 5))
    storage = StorageService(candidates=network.candidates, local_inventory=actor)
    storage.refresh()
    storage.router.excluded = frozenset({"turtle_1"})

    with pytest.raises(TransferRoutingError):
        storage.withdraw(storage.index.lookup(DIRT), 5)

    assert storage.display_stacks[0].quantity == 5


def test_search_and_sort(service):
    assert [s.display_name for s in service.set_search("d")] == ["Dirt", "Diamond"]
    assert [s.display_name for s in service.set_sort_mode("lexical")] == ["Diamond", "Dirt"]

    assert service.toggle_sort_mode() is SortMode.QUANTITY
    assert [s.display_name for s in service.display_stacks] == ["Dirt", "Diamond"]


def test_from_config_applies_settings(network, actor):
    config = AppConfig(
        routing=RoutingConfig(actor_pattern=r"^bot_", excluded_channels=["bot_9"]),
        inventory=InventoryConfig(local_slot_count=4, default_sort_mode="lexical"),
    )

    storage = StorageService.from_config(config, network.candidates, actor)

    assert storage.router.actor_pattern == r"^bot_"
    assert storage.router.excluded == frozenset({"bot_9"})
    assert storage.local_slot_count == 4
    assert storage.sort_mode is SortMode.NAME


def test_deposit_all_visits_configured_slot_count(network, actor):
    network.add_chest("chest_a", 4)
    actor.set_slot(1, item("minecraft:dirt", 5))
    actor.set_slot(6, item("minecraft:dirt", 5))
    storage = StorageService(candidates=network.candidates, local_inventory=actor, local_slot_count=4)
    storage.refresh()

    outcome = storage.deposit_all()

    assert outcome.deposited == 5
    assert actor.get_slot_item(6).count == 5


def test_deposit_all_visits_every_slot_of_a_large_inventory(network):
    network.add_chest("chest_a", 4)
    big_actor = network.add_inventory("turtle_big", 27)
    big_actor.set_slot(20, item("minecraft:dirt", 5))
    storage = StorageService.from_config(AppConfig(), network.candidates, big_actor)
    storage.refresh()

    outcome = storage.deposit_all()

    assert outcome.deposited == 5
    assert big_actor.get_slot_item(20) is None
    assert storage.index.lookup(DIRT).quantity == 5


def test_deposit_all_caps_configured_slot_count_at_inventory_size(network, actor):
    network.add_chest("chest_a", 4)
    actor.set_slot(16, item("minecraft:dirt", 5))
    storage = StorageService(candidates=network.candidates, local_inventory=actor, local_slot_count=40)
    storage.refresh()

    with capture_logs() as logs:
        outcome = storage.deposit_all()

    assert outcome.deposited == 5
    assert any(
        entry["event"] == "Configured local slot count differs from the inventory size"
        and entry["inventory_size"] == 16
        for entry in logs
    )
