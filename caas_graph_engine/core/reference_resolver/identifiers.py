"""
Identifier algebra shared by the registry, the cache and the scheduler.

Canonical identifiers look like `{uuid}.{locale}` for the local project and
`{remoteProjectId}#{uuid}.{locale}` for entities of a remote project. Raw
identifiers coming from content trees may omit the locale suffix.
"""

from typing import Any, Optional, Tuple

from .config import RemoteProjectConfig

REMOTE_PREFIX_SEPARATOR = "#"
LOCALE_SEPARATOR = "."


def unify_id(
    identifier: str,
    locale: str,
    remote_project_config: Optional[RemoteProjectConfig] = None,
) -> str:
    """
    Unify the two accepted id spellings `{id}` and `{id}.{locale}` into `{id}.{locale}`.

    A remote project's locale always wins over the locale carried by the id.
    When a remote configuration is given, the result is prefixed with the
    remote project id to avoid uuid clashes between projects.

    Args:
        identifier: Raw id, either `{id}` or `{id}.{locale}`
        locale: Locale of the active request, used when the id has none
        remote_project_config: Configuration of the owning remote project, if any

    Returns:
        `{id}.{locale}` or `{remoteProjectId}#{id}.{locale}`
    """
    separator_index = identifier.find(LOCALE_SEPARATOR)
    remote_locale = remote_project_config.locale if remote_project_config else None

    if separator_index > 0:
        id_with_locale = (
            f"{identifier[:separator_index]}{LOCALE_SEPARATOR}{remote_locale}"
            if remote_locale
            else identifier
        )
    else:
        id_with_locale = f"{identifier}{LOCALE_SEPARATOR}{remote_locale or locale}"

    if remote_project_config:
        return f"{remote_project_config.id}{REMOTE_PREFIX_SEPARATOR}{id_with_locale}"
    return id_with_locale


def build_preview_id(identifier: str, locale: str) -> str:
    return LOCALE_SEPARATOR.join([identifier, locale])


def split_canonical_id(canonical_id: str) -> Tuple[Optional[str], str, Optional[str]]:
    """Split `[remote#]id[.locale]` into (remote project id, store id, locale)."""
    remote_project_id, _, without_prefix = canonical_id.rpartition(REMOTE_PREFIX_SEPARATOR)
    store_id, _, locale = without_prefix.partition(LOCALE_SEPARATOR)
    return remote_project_id or None, store_id, locale or None


def raw_locale(raw_item: Any) -> Optional[str]:
    """Return `language_country` from a raw item's locale block, if present."""
    locale = raw_item.get("locale") if isinstance(raw_item, dict) else None
    if not isinstance(locale, dict):
        return None
    language = locale.get("language")
    country = locale.get("country")
    if not language or not country:
        return None
    return f"{language}_{country}"


def get_item_id(item: Any, remote_project_id: Optional[str] = None) -> Optional[str]:
    """
    Compute the canonical id under which an entity is cached.

    Mapped entities are addressed by their preview id. Pages are addressed by
    their page-ref id (which is what their preview id is built from), since
    several page refs may point at the same page content. Unmapped raw items
    fall back to `identifier` and their own locale block.

    Returns:
        The canonical id, or None when the item carries no usable id
    """
    if item is None:
        return None

    if isinstance(item, dict):
        identifier = item.get("identifier") or item.get("id")
        locale = raw_locale(item)
        if not identifier or not locale:
            return None
        item_id = build_preview_id(identifier, locale)
    else:
        item_id = getattr(item, "preview_id", None)
        if not item_id:
            return None

    if remote_project_id:
        return f"{remote_project_id}{REMOTE_PREFIX_SEPARATOR}{item_id}"
    return item_id
