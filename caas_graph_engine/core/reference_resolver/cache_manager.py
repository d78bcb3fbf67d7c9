"""
Request-scoped cache of resolved (mapped) entities.

The cache is the source of truth for "has this entity already been fetched
and mapped". Registry keys and cache keys share the same canonical id scheme,
which is what keeps cyclic reference graphs from being fetched twice.

Key Features:
- One instance per top-level mapping request, never shared across requests
- Keyed by canonical id (`{id}.{locale}` or `{remoteProjectId}#{id}.{locale}`)
- Thread-safe inserts, since batches of a round are mapped concurrently
"""

import logging
import threading
from typing import Any, Dict, Iterable, Optional, Set

from .identifiers import get_item_id

logger = logging.getLogger(__name__)


class ResolvedReferenceCache:
    """
    Mapping from canonical id to mapped entity.

    Writes for an id that is already present overwrite it; the scheduler never
    re-fetches an id that is present, so in practice each id is written once.
    """

    def __init__(self):
        self._entries: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def put(self, item: Any, remote_project_id: Optional[str] = None) -> Optional[str]:
        """
        Store a mapped entity under its own canonical id.

        Args:
            item: Mapped entity (or an unmapped raw item passed through)
            remote_project_id: Remote project the entity was fetched from

        Returns:
            The id the entity was stored under, or None if it carries no id
        """
        item_id = get_item_id(item, remote_project_id)
        if not item_id:
            logger.warning("No id for item, not caching it: %r", item)
            return None

        with self._lock:
            self._entries[item_id] = item
        logger.debug("Resolved reference cache SET: %s", item_id)
        return item_id

    def get(self, item_id: str) -> Optional[Any]:
        with self._lock:
            item = self._entries.get(item_id)
        if item is not None:
            logger.debug("Resolved reference cache HIT: %s", item_id)
        return item

    def __contains__(self, item_id: str) -> bool:
        with self._lock:
            return item_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def keys(self) -> Set[str]:
        """Snapshot of the cached ids."""
        with self._lock:
            return set(self._entries)

    def missing(self, item_ids: Iterable[str]) -> list:
        """Return the ids (in input order) that are not cached yet."""
        with self._lock:
            return [item_id for item_id in item_ids if item_id not in self._entries]

    def as_dict(self) -> Dict[str, Any]:
        """Snapshot of the whole cache, used as `resolved_references`."""
        with self._lock:
            return dict(self._entries)

    def get_stats(self) -> dict:
        """
        Get cache statistics.

        Returns:
            Dictionary with the entry count and a breakdown by entity type
        """
        with self._lock:
            entries = list(self._entries.items())

        type_breakdown: Dict[str, int] = {}
        remote_entries = 0
        for item_id, item in entries:
            item_type = getattr(item, "type", None) or (
                item.get("fsType") if isinstance(item, dict) else None
            ) or "unknown"
            type_breakdown[item_type] = type_breakdown.get(item_type, 0) + 1
            if "#" in item_id:
                remote_entries += 1

        return {
            "total_entries": len(entries),
            "remote_entries": remote_entries,
            "type_breakdown": type_breakdown,
        }
