"""
Denormalization: inline resolved entities in place of placeholder tokens.

Every string in the mapped tree that is exactly a placeholder token is
replaced by the resolved entity with the canonical id embedded in the token.
Inlined entities are denormalized in turn. Each resolved entity is inlined as
one shared object, so cyclic reference graphs produce cyclic object graphs
instead of infinite copies. Tokens without a resolved entity stay as they are.

The input structures are not modified: dataclasses, lists and dicts on the
way are copied.
"""

import copy
import dataclasses
import logging
import re
from typing import Any, Dict, List, Optional

from .models import Image, NestedPath

logger = logging.getLogger(__name__)

ITEM_TOKEN_PATTERN = re.compile(r"^\[REFERENCED-(?:REMOTE-)?ITEM-(?P<id>.+)\]$")
IMAGE_MAP_TOKEN_PATTERN = re.compile(r"^IMAGEMAP___(?P<resolution>.+?)___(?P<id>.+)$")


def denormalize_resolved_references(
    mapped_items: List[Any],
    reference_map: Dict[str, List[NestedPath]],
    resolved_references: Dict[str, Any],
) -> List[Any]:
    """
    Return a copy of mapped_items with every resolvable placeholder token inlined.

    Args:
        mapped_items: Top-level mapped items containing placeholder tokens
        reference_map: Canonical id -> paths at which it is referenced
        resolved_references: Canonical id -> mapped entity

    Returns:
        The denormalized top-level items, in input order
    """
    unresolved = [key for key in reference_map if key not in resolved_references]
    if unresolved:
        logger.debug(f"{len(unresolved)} referenced ids could not be resolved: {unresolved}")

    return _Denormalizer(resolved_references).run(mapped_items)


class _Denormalizer:
    def __init__(self, resolved_references: Dict[str, Any]):
        self.resolved_references = resolved_references
        # Memo of already denormalized entities, keyed by canonical id and resolution
        self._inlined: Dict[tuple, Any] = {}

    def run(self, mapped_items: List[Any]) -> List[Any]:
        return [self._walk(item) for item in mapped_items]

    def _walk(self, value: Any) -> Any:
        if isinstance(value, str):
            return self._substitute(value)
        if isinstance(value, list):
            return [self._walk(child) for child in value]
        if isinstance(value, dict):
            return {key: self._walk(child) for key, child in value.items()}
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            duplicate = copy.copy(value)
            self._fill_fields(duplicate)
            return duplicate
        return value

    def _fill_fields(self, duplicate: Any) -> None:
        for field in dataclasses.fields(duplicate):
            setattr(duplicate, field.name, self._walk(getattr(duplicate, field.name)))

    def _substitute(self, value: str) -> Any:
        inlined = None
        match = IMAGE_MAP_TOKEN_PATTERN.match(value)
        if match:
            inlined = self._inline(match.group("id"), match.group("resolution"))
        else:
            match = ITEM_TOKEN_PATTERN.match(value)
            if match:
                inlined = self._inline(match.group("id"))
        return value if inlined is None else inlined

    def _inline(self, canonical_id: str, resolution: Optional[str] = None) -> Any:
        key = (canonical_id, resolution)
        if key in self._inlined:
            return self._inlined[key]

        entity = self.resolved_references.get(canonical_id)
        if entity is None:
            return None

        if not (dataclasses.is_dataclass(entity) or isinstance(entity, (dict, list))):
            self._inlined[key] = entity
            return entity

        # Register the copy before walking it so that cycles resolve to it
        if isinstance(entity, dict):
            duplicate: Any = {}
            self._inlined[key] = duplicate
            duplicate.update({name: self._walk(child) for name, child in entity.items()})
        elif isinstance(entity, list):
            duplicate = []
            self._inlined[key] = duplicate
            duplicate.extend(self._walk(child) for child in entity)
        else:
            duplicate = copy.copy(entity)
            self._inlined[key] = duplicate
            self._fill_fields(duplicate)

        if resolution and isinstance(duplicate, Image) and resolution in duplicate.resolutions:
            duplicate.resolutions = {resolution: duplicate.resolutions[resolution]}
        return duplicate
