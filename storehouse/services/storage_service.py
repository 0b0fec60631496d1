"""
Storage service: the command surface used by the user interface.

The service owns the item index, the discovered backends and the display
state (search text and sort mode). Every command leaves the display
projection up to date for the next render.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..backends.base import LocalInventory
from ..backends.discovery import discover_backends
from ..models.stack import BackendRef, StackRecord
from ..structured_logging.enhanced_logging_config import (
    bind_operation_context,
    clear_operation_context,
    get_logger,
)
from .deposit_allocator import DepositAllocator, DepositResult
from .display_projection import SortMode, project
from .item_index import ItemIndex
from .transfer_routing import TransferRouter
from .withdrawal_allocator import WithdrawalAllocator

if TYPE_CHECKING:
    from ..config.models import AppConfig

logger = get_logger(__name__)


@dataclass
class StorageService:
    """
    Aggregated storage for one actor.

    Attributes:
        candidates: Returns the objects attached to the network, keyed by name
        local_inventory: The actor's own inventory
        router: Transfer channel policy
        local_slot_count: Local slots visited by deposit_all, capped at the inventory size (all when None)
        page_size: Rows shown by one page of the list command
        search: Current search text
        sort_mode: Current display ordering
    """

    candidates: Callable[[], Mapping[str, object]]
    local_inventory: LocalInventory
    router: TransferRouter = field(default_factory=TransferRouter)
    local_slot_count: int | None = None
    page_size: int = 16
    search: str = ""
    sort_mode: SortMode = SortMode.QUANTITY

    index: ItemIndex = field(default_factory=ItemIndex, init=False)
    backends: list[BackendRef] = field(default_factory=list, init=False)
    display_stacks: list[StackRecord] = field(default_factory=list, init=False)

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        candidates: Callable[[], Mapping[str, object]],
        local_inventory: LocalInventory,
    ) -> StorageService:
        return cls(
            candidates=candidates,
            local_inventory=local_inventory,
            router=TransferRouter(
                actor_pattern=config.routing.actor_pattern,
                excluded=frozenset(config.routing.excluded_channels),
            ),
            local_slot_count=config.inventory.local_slot_count,
            page_size=config.inventory.page_size,
            sort_mode=SortMode.parse(config.inventory.default_sort_mode),
        )

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        bind_operation_context(name)
        try:
            yield
        finally:
            self._check_consistency()
            clear_operation_context()

    def refresh(self) -> int:
        """
        Rediscover backends and rebuild the item index from a full scan.

        Returns:
            Number of stack records in the new index
        """
        with self._operation("refresh"):
            self.backends = discover_backends(self.candidates(), actor_pattern=self.router.actor_pattern)
            self.router = self.router.with_managed(self.backends)
            self.index = ItemIndex.build(self.backends)
            self.update_display()
            logger.info("Refresh complete", backends=len(self.backends), stacks=len(self.index))
            return len(self.index)

    def withdraw(self, stack: StackRecord, quantity: int | None = None) -> int:
        """
        Withdraw units of a stack into the local inventory.

        Raises:
            TransferRoutingError: If a backend holding the stack cannot reach the actor
        """
        with self._operation("withdraw"):
            try:
                return WithdrawalAllocator(self.router).withdraw(stack, quantity)
            finally:
                self.update_display()

    def deposit_all(self) -> DepositResult:
        """
        Deposit every occupied local slot into storage.

        Raises:
            TransferRoutingError: If a backend chosen for the deposit cannot reach the actor
        """
        with self._operation("deposit"):
            allocator = DepositAllocator(index=self.index, backends=self.backends, router=self.router)
            try:
                return allocator.deposit_all(self.local_inventory, self._deposit_slot_count())
            finally:
                self.update_display()

    def _deposit_slot_count(self) -> int:
        size = self.local_inventory.size
        if self.local_slot_count is None or self.local_slot_count == size:
            return size
        logger.warning(
            "Configured local slot count differs from the inventory size",
            local_slot_count=self.local_slot_count,
            inventory_size=size,
        )
        return min(self.local_slot_count, size)

    def set_search(self, text: str) -> list[StackRecord]:
        self.search = text
        return self.update_display()

    def set_sort_mode(self, mode: SortMode | str) -> list[StackRecord]:
        self.sort_mode = SortMode.parse(mode)
        return self.update_display()

    def toggle_sort_mode(self) -> SortMode:
        self.set_sort_mode(self.sort_mode.toggled())
        return self.sort_mode

    def update_display(self) -> list[StackRecord]:
        self.display_stacks = project(self.index, self.search, self.sort_mode)
        return self.display_stacks

    def _check_consistency(self) -> None:
        broken = self.index.inconsistent_stacks()
        if broken:
            logger.warning(
                "Stack records out of balance with their provenance",
                identities=[str(stack.identity) for stack in broken],
            )
