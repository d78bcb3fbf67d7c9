"""
Registry of references encountered while mapping a content tree.

Every reference the mapper does not recurse into is registered here, keyed by
canonical id, together with the path at which it was found. There is one
bucket for the local project and one per configured remote project. The
registry only ever grows during a request.
"""

import logging
import threading
from typing import Dict, Iterable, List, Optional

from .config import RemoteProjectConfig
from .identifiers import unify_id
from .models import NestedPath

logger = logging.getLogger(__name__)

LOCAL_ITEM_TOKEN = "[REFERENCED-ITEM-{id}]"
REMOTE_ITEM_TOKEN = "[REFERENCED-REMOTE-ITEM-{id}]"
IMAGE_MAP_TOKEN = "IMAGEMAP___{resolution}___{id}"


def build_placeholder(canonical_id: str, remote: bool = False, image_map_resolution: Optional[str] = None) -> str:
    if image_map_resolution:
        return IMAGE_MAP_TOKEN.format(resolution=image_map_resolution, id=canonical_id)
    return (REMOTE_ITEM_TOKEN if remote else LOCAL_ITEM_TOKEN).format(id=canonical_id)


class ReferenceRegistry:
    """
    Per-project mapping of canonical id -> list of paths referencing it.

    Registering the same id from several paths records every path but the id
    is still fetched only once, since the scheduler works on the key set.
    """

    def __init__(self, locale: str, remotes: Optional[Iterable[RemoteProjectConfig]] = None):
        """
        Args:
            locale: Locale of the active request
            remotes: Configured remote projects; each gets its own bucket
        """
        self.locale = locale
        self._remotes: Dict[str, RemoteProjectConfig] = {remote.id: remote for remote in (remotes or [])}
        self._local: Dict[str, List[NestedPath]] = {}
        self._remote_buckets: Dict[str, Dict[str, List[NestedPath]]] = {
            remote_id: {} for remote_id in self._remotes
        }
        self._lock = threading.Lock()

    def get_remote_config(self, remote_project_id: Optional[str]) -> Optional[RemoteProjectConfig]:
        if not remote_project_id:
            return None
        return self._remotes.get(remote_project_id)

    def register(
        self,
        identifier: str,
        path: NestedPath,
        remote_project_id: Optional[str] = None,
        image_map_resolution: Optional[str] = None,
        locale: Optional[str] = None,
    ) -> str:
        """
        Register a referenced item to be fetched later.

        Args:
            identifier: Raw item identifier, `{id}` or `{id}.{locale}`
            path: Location of the reference inside the mapped tree
            remote_project_id: If given, the item is fetched from that remote project
            image_map_resolution: Resolution requested by an image map, if any
            locale: Locale of the item holding the reference; defaults to the request locale.
                Ignored for remote projects, which always use their configured locale

        Returns:
            The placeholder token substituted for the reference
        """
        remote_config = self.get_remote_config(remote_project_id)
        if remote_project_id and not remote_config:
            logger.warning(
                "Item with identifier '%s' was tried to register from remote project '%s' "
                "but no remote configuration was found. Treating it as local.",
                identifier,
                remote_project_id,
            )

        unified_id = unify_id(identifier, locale or self.locale, remote_config)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Registering referenced item %s (remote project: %s) at %s",
                identifier,
                remote_config.id if remote_config else None,
                "/".join(str(segment) for segment in path),
            )

        with self._lock:
            bucket = self._remote_buckets[remote_config.id] if remote_config else self._local
            bucket.setdefault(unified_id, []).append(list(path))

        return build_placeholder(unified_id, remote=remote_config is not None, image_map_resolution=image_map_resolution)

    def project_ids(self) -> List[Optional[str]]:
        """Bucket keys: None for the local project, then every remote project id."""
        return [None, *self._remote_buckets.keys()]

    def referenced_ids(self, remote_project_id: Optional[str] = None) -> List[str]:
        """Canonical ids registered for one project, in registration order."""
        with self._lock:
            bucket = self._remote_buckets.get(remote_project_id, {}) if remote_project_id else self._local
            return list(bucket.keys())

    def paths(self, canonical_id: str) -> List[NestedPath]:
        with self._lock:
            if canonical_id in self._local:
                return [list(path) for path in self._local[canonical_id]]
            for bucket in self._remote_buckets.values():
                if canonical_id in bucket:
                    return [list(path) for path in bucket[canonical_id]]
        return []

    def merged(self) -> Dict[str, List[NestedPath]]:
        """All buckets merged into one id -> paths map (the `reference_map`)."""
        with self._lock:
            merged: Dict[str, List[NestedPath]] = {
                key: [list(path) for path in paths] for key, paths in self._local.items()
            }
            for bucket in self._remote_buckets.values():
                for key, paths in bucket.items():
                    merged[key] = [list(path) for path in paths]
        return merged

    def __len__(self) -> int:
        with self._lock:
            return len(self._local) + sum(len(bucket) for bucket in self._remote_buckets.values())
