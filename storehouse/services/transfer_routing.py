"""
Transfer channel resolution between the actor and a storage backend.

Items only ever travel between a backend and the actor's own inventory. The
channel used must look like an actor, must not be excluded (other actors on
the same network) and must never be another aggregated backend, which would
move units from one tracked chest into another.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from ..exceptions import TransferRoutingError, create_error_context
from ..models.stack import BackendRef
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class TransferRouter:
    """
    Picks the transfer channel to use for each backend.

    Attributes:
        actor_pattern: Regular expression matching actor channel names
        excluded: Channel names that must never be used
        managed: Names of the aggregated backends, never valid channels
    """

    actor_pattern: str = r"^turtle_"
    excluded: frozenset[str] = field(default_factory=frozenset)
    managed: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        self._actor_re = re.compile(self.actor_pattern)
        self.excluded = frozenset(self.excluded)
        self.managed = frozenset(self.managed)

    def with_managed(self, backends: Iterable[BackendRef]) -> TransferRouter:
        """Return a router that also refuses the names of the given backends."""
        return TransferRouter(
            actor_pattern=self.actor_pattern,
            excluded=self.excluded,
            managed=frozenset(backend.name for backend in backends),
        )

    def resolve(self, backend: BackendRef) -> str:
        """
        Return the channel linking backend to the actor.

        Raises:
            TransferRoutingError: If the backend exposes no acceptable channel.
        """
        channels = list(backend.adapter.list_transfer_channels())
        for channel in channels:
            if channel in self.excluded or channel in self.managed or channel == backend.name:
                continue
            if self._actor_re.search(channel):
                return channel

        context = create_error_context(operation="resolve_route", backend=backend.name)
        context.metadata["actor_pattern"] = self.actor_pattern
        raise TransferRoutingError(
            f"No transfer channel from {backend.name} matches {self.actor_pattern!r}",
            context,
            backend_name=backend.name,
            channels=channels,
            user_friendly=f"Storage {backend.name} is not connected to this actor. Check the network and refresh.",
        )
