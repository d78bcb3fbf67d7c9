"""
Resolution scheduler component.

Drives the fetch loop that turns registered references into cached entities.
Each round computes the pending delta (registered ids that are neither cached
nor already requested), splits it into chunks of at most
REFERENCED_ITEMS_CHUNK_SIZE ids per project and locale, fetches the chunks
concurrently, maps every returned item and stores it in the cache. Mapping
fetched items may register further references, so rounds repeat until nothing
is pending or the depth limit is reached.

Core features:
- Deduplicated fetching: an id is requested at most once per request
- Cycle safety through the shared cache (cached ids are never pending)
- Depth control (max_depth rounds) and an optional wall-clock deadline
- Failure isolation per batch; the first failure is re-raised after the round
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Set, Tuple

from .cache_manager import ResolvedReferenceCache
from .config import DEFAULT_MAX_REFERENCE_DEPTH, DEFAULT_MAX_WORKERS, REFERENCED_ITEMS_CHUNK_SIZE
from .content_mapper import CaaSMapper
from .identifiers import split_canonical_id
from .models import ComparisonOperator, QueryFilter
from .reference_registry import ReferenceRegistry

logger = logging.getLogger(__name__)

# (remote project id or None, locale) -> store ids
PendingBatches = Dict[Tuple[Optional[str], str], List[str]]
# canonical id -> (remote project id or None, locale, store id)
PendingIds = Dict[str, Tuple[Optional[str], str, str]]


class ResolutionScheduler:
    """
    Depth-bounded, batched, deduplicated resolution of registered references.

    One scheduler serves one mapping request and shares that request's
    registry, cache and mapper.
    """

    def __init__(
        self,
        api: Any,
        mapper: CaaSMapper,
        registry: ReferenceRegistry,
        cache: ResolvedReferenceCache,
        locale: str,
        max_depth: int = DEFAULT_MAX_REFERENCE_DEPTH,
        max_workers: int = DEFAULT_MAX_WORKERS,
        deadline: Optional[float] = None,
        chunk_size: int = REFERENCED_ITEMS_CHUNK_SIZE,
    ):
        """
        Args:
            api: Transport exposing fetch_raw
            mapper: Mapper of the active request
            registry: Registry of the active request
            cache: Cache of the active request
            locale: Locale of the active request
            max_depth: Maximum number of fetch rounds
            max_workers: Maximum number of batches fetched concurrently
            deadline: time.monotonic() value after which no new round starts
            chunk_size: Maximum number of ids per fetch
        """
        self.api = api
        self.mapper = mapper
        self.registry = registry
        self.cache = cache
        self.locale = locale
        self.max_depth = max_depth
        self.max_workers = max(1, max_workers)
        self.deadline = deadline
        self.chunk_size = chunk_size
        self.depth = 0
        self._requested: Set[str] = set()

    def resolve_all_references(self) -> int:
        """
        Run fetch rounds until no reference is pending or a limit is reached.

        Returns:
            The number of rounds performed

        Raises:
            Exception: The first batch failure of a round, after the round completes
        """
        while True:
            pending_ids = self._pending_ids()
            if not pending_ids:
                logger.debug("Nothing to fetch")
                break

            pending = self._group(pending_ids)
            pending_count = sum(len(ids) for ids in pending.values())
            if self.depth >= self.max_depth:
                logger.warning(
                    f"Maximum reference depth ({self.max_depth}) exceeded, "
                    f"{pending_count} references left unresolved"
                )
                break
            if self.deadline is not None and time.monotonic() >= self.deadline:
                logger.warning(f"Resolution deadline exceeded, {pending_count} references left unresolved")
                break

            self.depth += 1
            logger.info(f"Starting resolution round {self.depth} for {pending_count} references")
            self._run_round(pending, pending_ids)

        return self.depth

    def pending_batches(self) -> PendingBatches:
        """
        Compute the ids still to fetch, grouped by project and locale.

        Registered ids that are cached or were already requested are skipped.
        Store ids are deduplicated within each group. Inspecting the pending
        work does not mark anything as requested.
        """
        return self._group(self._pending_ids())

    def _pending_ids(self) -> PendingIds:
        """Canonical id -> (project id, fetch locale, store id) for every id still to fetch."""
        pending_ids: PendingIds = {}
        for project_id in self.registry.project_ids():
            remote_config = self.registry.get_remote_config(project_id)
            for canonical_id in self.cache.missing(self.registry.referenced_ids(project_id)):
                if canonical_id in self._requested:
                    continue
                _, store_id, locale = split_canonical_id(canonical_id)
                if remote_config:
                    locale = remote_config.locale
                pending_ids[canonical_id] = (project_id, locale or self.locale, store_id)
        return pending_ids

    def _group(self, pending_ids: PendingIds) -> PendingBatches:
        pending: PendingBatches = {}
        for project_id, locale, store_id in pending_ids.values():
            group = pending.setdefault((project_id, locale), [])
            if store_id not in group:
                group.append(store_id)

        if logger.isEnabledFor(logging.DEBUG):
            for (project_id, locale), ids in pending.items():
                logger.debug(f"Pending ids for project {project_id or 'local'} ({locale}): {ids}")
        return pending

    def _run_round(self, pending: PendingBatches, pending_ids: PendingIds) -> None:
        batches = [
            (project_id, locale, ids[start:start + self.chunk_size])
            for (project_id, locale), ids in pending.items()
            for start in range(0, len(ids), self.chunk_size)
        ]
        logger.info(f"Fetching {len(batches)} batches in round {self.depth}")

        # At most one request per id, whatever the store returns for it
        self._requested.update(pending_ids)

        errors: List[Exception] = []
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(batches))) as executor:
            futures = [
                executor.submit(self._fetch_and_map, ids, project_id, locale)
                for project_id, locale, ids in batches
            ]
            for future in futures:
                try:
                    future.result()
                except Exception as e:
                    logger.error(f"Batch failed in round {self.depth}: {e}")
                    errors.append(e)

        if errors:
            raise errors[0]
        logger.info(f"Finished resolution round {self.depth}, {len(self.cache)} entities cached")

    def _fetch_and_map(self, ids: List[str], project_id: Optional[str], locale: str) -> int:
        """Fetch one batch, map its items and cache them. Returns the number of items cached."""
        raw_page = self.api.fetch_raw(
            filters=[QueryFilter(field="identifier", operator=ComparisonOperator.IN, value=ids)],
            locale=locale,
            pagesize=self.chunk_size,
            remote_project=project_id,
        )

        cached = 0
        for index, raw_item in enumerate(raw_page.items):
            mapped = self.mapper.map_item(raw_item, locale, project_id, index)
            if mapped is None:
                continue
            if self.cache.put(mapped, project_id):
                cached += 1

        if cached < len(ids):
            logger.debug(f"Store returned {cached} of {len(ids)} requested items for project {project_id or 'local'}")
        return cached
