"""Classify attached candidates into the list of aggregated storage backends."""

from __future__ import annotations

import re
from collections.abc import Mapping

from ..models.stack import BackendRef
from ..structured_logging.enhanced_logging_config import get_logger
from .base import StorageBackend

logger = get_logger(__name__)


def discover_backends(candidates: Mapping[str, object], *, actor_pattern: str | None = None) -> list[BackendRef]:
    """
    Select the candidates that can be aggregated as storage backends.

    Candidates are visited in lexical order of their names, which fixes the
    order used by index builds and free-slot scans. Objects that do not
    provide the StorageBackend capabilities are skipped, as are candidates
    whose name matches the actor pattern (other actors are never storage).

    Args:
        candidates: Attached objects keyed by their network name
        actor_pattern: Regular expression matching actor names

    Returns:
        Backend references ordered by name
    """
    actor_re = re.compile(actor_pattern) if actor_pattern else None
    backends: list[BackendRef] = []

    for name in sorted(candidates):
        candidate = candidates[name]
        if actor_re is not None and actor_re.search(name):
            logger.debug("Skipping actor candidate", name=name)
            continue
        if not isinstance(candidate, StorageBackend):
            logger.debug("Skipping candidate without storage capabilities", name=name)
            continue

        logger.info("Found storage backend", name=name)
        backends.append(BackendRef(name=name, adapter=candidate))

    return backends
