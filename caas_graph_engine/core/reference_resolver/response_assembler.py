"""
Response assembler component.

Orchestrates one top-level mapping request: maps the initial batch, seeds the
request's cache with it, runs the ResolutionScheduler to a fixed point and
returns the normalized result (mapped items, resolved references and the
reference map) ready for denormalization.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from .cache_manager import ResolvedReferenceCache
from .config import DEFAULT_MAX_REFERENCE_DEPTH, DEFAULT_MAX_WORKERS
from .content_mapper import CaaSMapper
from .identifiers import raw_locale
from .models import CustomMapper, MapResponse, RawItem
from .reference_registry import ReferenceRegistry
from .resolution_scheduler import ResolutionScheduler
from .rich_text_parser import RichTextParser

logger = logging.getLogger(__name__)


class ResponseAssembler:
    """
    Entry point of the engine: one `map_batch` call per top-level request.

    The assembler itself holds configuration only. Registry, cache, mapper and
    scheduler are created fresh for every call, so concurrent or subsequent
    requests never share state.
    """

    def __init__(
        self,
        api: Any,
        locale: Optional[str] = None,
        custom_mapper: Optional[CustomMapper] = None,
        max_reference_depth: int = DEFAULT_MAX_REFERENCE_DEPTH,
        max_workers: int = DEFAULT_MAX_WORKERS,
        timeout: Optional[float] = None,
        rich_text_parser: Optional[RichTextParser] = None,
    ):
        """
        Args:
            api: Transport exposing fetch_raw, remotes and content_mode
            locale: Default request locale
            custom_mapper: Optional hook intercepting data entries
            max_reference_depth: Maximum number of resolution rounds
            max_workers: Maximum number of batches fetched concurrently
            timeout: Seconds after which no new resolution round starts
            rich_text_parser: Parser for DOM fields
        """
        self.api = api
        self.locale = locale
        self.custom_mapper = custom_mapper
        self.max_reference_depth = max_reference_depth
        self.max_workers = max_workers
        self.timeout = timeout
        self.rich_text_parser = rich_text_parser or RichTextParser()

    def map_batch(
        self,
        raw_items: List[RawItem],
        locale: Optional[str] = None,
        remote_project_locale: Optional[str] = None,
        remote_project_id: Optional[str] = None,
    ) -> MapResponse:
        """
        Map a batch of raw top-level items and resolve everything they reference.

        Args:
            raw_items: Raw entities as returned by the store
            locale: Request locale (defaults to the assembler's, then the first item's)
            remote_project_locale: Locale of the remote project the items come from
            remote_project_id: Remote project the items come from

        Returns:
            MapResponse with mapped items in input order, resolved references
            keyed by canonical id and the reference map

        Raises:
            ValueError: If no request locale can be determined
            CaaSMapperError: If the content is structurally broken
            CaaSApiError: If a resolution fetch fails
        """
        locale = locale or self.locale or (raw_locale(raw_items[0]) if raw_items else None)
        if not locale and raw_items:
            raise ValueError("A locale is required to map items that carry none")

        remotes = getattr(self.api, "remotes", None) or {}
        registry = ReferenceRegistry(locale, remotes.values())
        cache = ResolvedReferenceCache()
        mapper = CaaSMapper(
            registry,
            locale,
            content_mode=getattr(self.api, "content_mode", "release"),
            api=self.api,
            custom_mapper=self.custom_mapper,
            rich_text_parser=self.rich_text_parser,
        )

        logger.info(f"Mapping batch of {len(raw_items)} items (locale: {locale})")
        mapped_items = [
            mapper.map_item(raw_item, remote_project_locale, remote_project_id, index)
            for index, raw_item in enumerate(raw_items)
        ]
        mapped_items = [item for item in mapped_items if item is not None]

        item_ids = [cache.put(item, remote_project_id) for item in mapped_items]

        deadline = time.monotonic() + self.timeout if self.timeout is not None else None
        scheduler = ResolutionScheduler(
            self.api,
            mapper,
            registry,
            cache,
            locale,
            max_depth=self.max_reference_depth,
            max_workers=self.max_workers,
            deadline=deadline,
        )
        rounds = scheduler.resolve_all_references()

        final_items = [
            self._final_version(cache, item_id, item) for item_id, item in zip(item_ids, mapped_items)
        ]
        logger.info(
            f"Mapped {len(final_items)} items in {rounds} rounds, "
            f"{len(cache)} entities resolved, {len(registry)} ids referenced"
        )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Resolved reference cache stats: {cache.get_stats()}")

        return MapResponse(
            mapped_items=final_items,
            resolved_references=cache.as_dict(),
            reference_map=registry.merged(),
        )

    def _final_version(self, cache: ResolvedReferenceCache, item_id: Optional[str], item: Any) -> Any:
        if not item_id:
            return item
        cached = cache.get(item_id)
        return cached if cached is not None else item


def summarize_response(response: MapResponse) -> Dict[str, Any]:
    """Counts describing a MapResponse, used for logging and by the command-line driver."""
    unresolved = [key for key in response.reference_map if key not in response.resolved_references]
    return {
        "mapped_items": len(response.mapped_items),
        "resolved_references": len(response.resolved_references),
        "referenced_ids": len(response.reference_map),
        "unresolved_ids": unresolved,
    }
