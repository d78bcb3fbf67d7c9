"""
CaaSMapper: maps raw CaaS content trees into the application-facing object graph.

The mapper walks one polymorphic node at a time and dispatches on its `fsType`.
Fields that reference other top-level entities (media, datasets, index
records, image-map media) are not followed: the mapper registers them with the
ReferenceRegistry and substitutes the placeholder token the registry returns.
Fetching those entities later is the ResolutionScheduler's job.

Policies:
- Unknown data-entry kinds pass through unchanged (the store may add kinds)
- Unknown page-body content kinds raise UnknownBodyContentError
- An image map without a usable value raises ImageMapValueError
- A custom mapping hook sees every data entry first; a non-None result wins
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .errors import ImageMapValueError, UnknownBodyContentError
from .identifiers import build_preview_id, get_item_id, raw_locale
from .models import (
    CatalogPage,
    ContentMode,
    CustomMapper,
    CustomMapperContext,
    Dataset,
    File,
    GCAPage,
    Image,
    ImageMap,
    ImageMapArea,
    ImageMapAreaCircle,
    ImageMapAreaLink,
    ImageMapAreaPoly,
    ImageMapAreaRect,
    ImageMapAreaType,
    Link,
    NestedPath,
    Option,
    Page,
    PageBody,
    Permission,
    PermissionActivity,
    PermissionGroup,
    ProjectProperties,
    RawItem,
    Reference,
    RichTextElement,
    Section,
)
from .reference_registry import ReferenceRegistry
from .rich_text_parser import RichTextParser

logger = logging.getLogger(__name__)


class CaaSMapper:
    """
    Maps raw CaaS entities and their data entries.

    One instance serves one top-level mapping request: it shares that request's
    ReferenceRegistry and must not be reused across requests.
    """

    def __init__(
        self,
        registry: ReferenceRegistry,
        locale: str,
        content_mode: str = ContentMode.RELEASE.value,
        api: Any = None,
        custom_mapper: Optional[CustomMapper] = None,
        rich_text_parser: Optional[RichTextParser] = None,
    ):
        """
        Args:
            registry: Registry collecting the references found while mapping
            locale: Locale of the active request
            content_mode: "preview" or "release"; preview adds revisions to media URLs
            api: Transport handed to the custom mapping hook
            custom_mapper: Optional hook intercepting data entries
            rich_text_parser: Parser for DOM fields (a default one is created if None)
        """
        self.registry = registry
        self.locale = locale
        self.content_mode = content_mode
        self.api = api
        self.custom_mapper = custom_mapper
        self.rich_text_parser = rich_text_parser or RichTextParser()

        self._data_entry_mappers: Dict[str, Callable[..., Any]] = {
            "CMS_INPUT_COMBOBOX": self._map_combobox,
            "CMS_INPUT_DOM": self._map_rich_text,
            "CMS_INPUT_DOMTABLE": self._map_rich_text,
            "CMS_INPUT_NUMBER": self._map_simple_value,
            "CMS_INPUT_TEXT": self._map_simple_value,
            "CMS_INPUT_TEXTAREA": self._map_simple_value,
            "CMS_INPUT_RADIOBUTTON": self._map_radiobutton,
            "CMS_INPUT_DATE": self._map_date,
            "CMS_INPUT_LINK": self._map_link,
            "CMS_INPUT_LIST": self._map_entry_list,
            "CMS_INPUT_CHECKBOX": self._map_entry_list,
            "CMS_INPUT_IMAGEMAP": self._map_image_map_entry,
            "FS_DATASET": self._map_dataset_entry,
            "CMS_INPUT_TOGGLE": self._map_toggle,
            "FS_CATALOG": self._map_catalog,
            "FS_REFERENCE": self._map_reference,
            "FS_INDEX": self._map_index,
            "Option": self._map_option,
            "CMS_INPUT_PERMISSION": self._map_permission,
        }

        self._item_mappers: Dict[str, Callable[..., Any]] = {
            "Dataset": self.map_dataset,
            "PageRef": self.map_page_ref,
            "Media": self.map_media,
            "GCAPage": self.map_gca_page,
            "ProjectProperties": self.map_project_properties,
        }

        logger.debug("Created new CaaSMapper for locale %s", locale)

    # --- Helpers exposed to custom mappers ---

    def register_referenced_item(
        self,
        identifier: str,
        path: NestedPath,
        remote_project_id: Optional[str] = None,
        image_map_resolution: Optional[str] = None,
        locale: Optional[str] = None,
    ) -> str:
        return self.registry.register(identifier, path, remote_project_id, image_map_resolution, locale)

    def build_preview_id(self, identifier: str, remote_project_locale: Optional[str] = None) -> str:
        return build_preview_id(identifier, remote_project_locale or self.locale)

    def build_media_url(self, url: str, rev: Optional[int] = None) -> str:
        if rev and self.content_mode == ContentMode.PREVIEW.value:
            url += f"{'&' if '?' in url else '?'}rev={rev}"
        return url

    def _custom_mapper_context(self) -> CustomMapperContext:
        return CustomMapperContext(
            api=self.api,
            rich_text_parser=self.rich_text_parser,
            register_referenced_item=self.register_referenced_item,
            build_preview_id=self.build_preview_id,
            build_media_url=self.build_media_url,
            map_data_entries=self.map_data_entries,
        )

    # --- Top-level items ---

    def top_level_item_id(
        self,
        raw_item: RawItem,
        remote_project_locale: Optional[str] = None,
        remote_project_id: Optional[str] = None,
    ) -> Optional[str]:
        """Id a raw top-level item will be cached under once mapped; it roots all its paths."""
        identifier = raw_item.get("identifier") if isinstance(raw_item, dict) else None
        if not identifier:
            return get_item_id(raw_item, remote_project_id)
        return get_item_id(
            {"identifier": identifier, "locale": _locale_block(remote_project_locale or self.locale)},
            remote_project_id,
        )

    def map_item(
        self,
        raw_item: RawItem,
        remote_project_locale: Optional[str] = None,
        remote_project_id: Optional[str] = None,
        index: Optional[int] = None,
    ) -> Any:
        """
        Map one top-level item by its kind.

        Items of an unrecognized kind are logged and returned unmapped.

        Args:
            raw_item: Raw entity as returned by the store
            remote_project_locale: Locale of the remote project the item comes from
            remote_project_id: Remote project the item comes from
            index: Position in the batch, for logging

        Returns:
            The mapped entity, the raw item, or None for a null media item
        """
        fs_type = raw_item.get("fsType") if isinstance(raw_item, dict) else None
        item_mapper = self._item_mappers.get(fs_type)
        if item_mapper is None:
            logger.warning("Item at index [%s] with type [%s] could not be mapped!", index, fs_type)
            return raw_item

        path = [self.top_level_item_id(raw_item, remote_project_locale, remote_project_id)]
        return item_mapper(raw_item, path, remote_project_locale, remote_project_id)

    # --- Data entries ---

    def map_data_entries(
        self,
        entries: Optional[Dict[str, Any]],
        path: NestedPath,
        remote_project_locale: Optional[str] = None,
        remote_project_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Map a form-data dict; key order is preserved."""
        return {
            key: self.map_data_entry(entry, [*path, key], remote_project_locale, remote_project_id)
            for key, entry in (entries or {}).items()
        }

    def map_data_entry(
        self,
        entry: Any,
        path: NestedPath,
        remote_project_locale: Optional[str] = None,
        remote_project_id: Optional[str] = None,
    ) -> Any:
        """
        Map a single data entry, dispatching on its fsType.

        Args:
            entry: Raw data entry
            path: Location of the entry inside the mapped tree
            remote_project_locale: Locale of the owning remote project, if any
            remote_project_id: Owning remote project, if any

        Returns:
            The mapped value; unknown kinds are returned unchanged
        """
        if self.custom_mapper:
            result = self.custom_mapper(entry, path, self._custom_mapper_context())
            if result is not None:
                return result

        if not isinstance(entry, dict):
            return entry

        entry_mapper = self._data_entry_mappers.get(entry.get("fsType"))
        if entry_mapper is None:
            return entry
        return entry_mapper(entry, path, remote_project_locale, remote_project_id)

    def _map_combobox(self, entry, path, remote_project_locale, remote_project_id) -> Optional[Option]:
        value = entry.get("value")
        if not value:
            return None
        return Option(key=value.get("identifier"), value=value.get("label"))

    def _map_rich_text(self, entry, path, remote_project_locale, remote_project_id) -> List[RichTextElement]:
        elements = self.rich_text_parser.parse(entry.get("value")) if entry.get("value") else []
        return self.map_links_in_rich_text_elements(elements, path, remote_project_locale, remote_project_id)

    def _map_simple_value(self, entry, path, remote_project_locale, remote_project_id) -> Any:
        return entry.get("value")

    def _map_radiobutton(self, entry, path, remote_project_locale, remote_project_id) -> Optional[Option]:
        value = entry.get("value")
        if not value:
            return None
        return Option(key=value.get("identifier"), value=value.get("label"), extra=dict(value))

    def _map_date(self, entry, path, remote_project_locale, remote_project_id) -> Optional[datetime]:
        value = entry.get("value")
        if not value:
            return None
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except (TypeError, ValueError) as e:
            logger.warning("Could not parse date %r at %s: %s", value, path, e)
            return None

    def _map_link(self, entry, path, remote_project_locale, remote_project_id) -> Optional[Link]:
        value = entry.get("value")
        if not value:
            return None
        return Link(
            template=(value.get("template") or {}).get("uid"),
            data=self.map_data_entries(value.get("formData"), [*path, "data"], remote_project_locale, remote_project_id),
            meta=self.map_data_entries(value.get("metaFormData"), [*path, "meta"], remote_project_locale, remote_project_id),
        )

    def _map_entry_list(self, entry, path, remote_project_locale, remote_project_id) -> List[Any]:
        return [
            self.map_data_entry(child, [*path, index], remote_project_locale, remote_project_id)
            for index, child in enumerate(entry.get("value") or [])
        ]

    def _map_image_map_entry(self, entry, path, remote_project_locale, remote_project_id) -> Optional[ImageMap]:
        if not entry.get("value"):
            return None
        return self.map_image_map(entry, path, remote_project_locale, remote_project_id)

    def _map_dataset_entry(self, entry, path, remote_project_locale, remote_project_id) -> Any:
        value = entry.get("value")
        if not value:
            return None
        if isinstance(value, list):
            return [
                self.map_data_entry(child, [*path, index], remote_project_locale, remote_project_id)
                for index, child in enumerate(value)
            ]
        if isinstance(value, dict) and value.get("fsType") == "DatasetReference":
            return self.register_referenced_item(
                value["target"]["identifier"], path, remote_project_id, locale=remote_project_locale
            )
        return None

    def _map_toggle(self, entry, path, remote_project_locale, remote_project_id) -> bool:
        return entry.get("value") or False

    def _map_catalog(self, entry, path, remote_project_locale, remote_project_id) -> List[Any]:
        cards = []
        for index, card in enumerate(entry.get("value") or []):
            template = card.get("template") or {}
            template_type = template.get("fsType")
            if template_type in ("SectionTemplate", "LinkTemplate"):
                section = {
                    **card,
                    "fsType": "Section",
                    "name": template.get("name"),
                    "displayName": template.get("displayName"),
                }
                cards.append(self.map_section(section, [*path, index], remote_project_locale, remote_project_id))
            elif template_type == "PageTemplate":
                cards.append(
                    CatalogPage(
                        id=card.get("identifier"),
                        preview_id=self.build_preview_id(card.get("identifier"), remote_project_locale),
                        template=template.get("uid"),
                        data=self.map_data_entries(
                            card.get("formData"), [*path, index, "data"], remote_project_locale, remote_project_id
                        ),
                    )
                )
            else:
                cards.append(card)
        return cards

    def _map_reference(self, entry, path, remote_project_locale, remote_project_id) -> Any:
        value = entry.get("value")
        if not value:
            return None
        fs_type = value.get("fsType")
        remote_project = value.get("remoteProject") or remote_project_id
        if fs_type == "Media":
            return self.register_referenced_item(value["identifier"], path, remote_project, locale=remote_project_locale)
        if fs_type in ("PageRef", "GCAPage"):
            return Reference(
                reference_id=value["identifier"],
                reference_type=fs_type,
                reference_remote_project=remote_project,
                section=value.get("section"),
            )
        return entry

    def _map_index(self, entry, path, remote_project_locale, remote_project_id) -> Any:
        if entry.get("dapType") != "DatasetDataAccessPlugin":
            return entry
        placeholders = []
        for index, record in enumerate(entry.get("value") or []):
            identifier = (((record or {}).get("value") or {}).get("target") or {}).get("identifier")
            if not identifier:
                continue
            placeholders.append(
                self.register_referenced_item(identifier, [*path, index], remote_project_id, locale=remote_project_locale)
            )
        return placeholders

    def _map_option(self, entry, path, remote_project_locale, remote_project_id) -> Option:
        return Option(key=entry.get("identifier"), value=entry.get("label"))

    def _map_permission(self, entry, path, remote_project_locale, remote_project_id) -> Permission:
        return Permission(
            fs_type=entry.get("fsType"),
            name=entry.get("name"),
            value=[
                PermissionActivity(
                    allowed=[self._map_permission_group(group) for group in activity.get("allowed", [])],
                    forbidden=[self._map_permission_group(group) for group in activity.get("forbidden", [])],
                )
                for activity in entry.get("value") or []
            ],
        )

    def _map_permission_group(self, group: Dict[str, Any]) -> PermissionGroup:
        group_path = group.get("groupPath", "")
        return PermissionGroup(
            group_id=group_path.split("/")[-1],
            group_name=group.get("groupName"),
            group_path=group_path,
        )

    def map_links_in_rich_text_elements(
        self,
        elements: List[RichTextElement],
        path: NestedPath,
        remote_project_locale: Optional[str] = None,
        remote_project_id: Optional[str] = None,
    ) -> List[RichTextElement]:
        """
        Return a copy of the rich-text tree in which every link node's data is mapped.

        Link data goes through the standard data-entry path, so references
        inside links are registered like any other.
        """
        mapped = []
        for index, element in enumerate(elements):
            data = element.data
            if element.type == "link":
                raw_link = element.data or {}
                data = Link(
                    template=raw_link.get("type"),
                    data=self.map_data_entries(
                        raw_link.get("data"),
                        [*path, index, "data", "data"],
                        remote_project_locale,
                        remote_project_id,
                    ),
                    meta={},
                )
            content = element.content
            if isinstance(content, list):
                content = self.map_links_in_rich_text_elements(
                    content, [*path, index, "content"], remote_project_locale, remote_project_id
                )
            mapped.append(RichTextElement(type=element.type, content=content, data=data))
        return mapped

    # --- Sections and page bodies ---

    def map_section(
        self,
        section: RawItem,
        path: NestedPath,
        remote_project_locale: Optional[str] = None,
        remote_project_id: Optional[str] = None,
    ) -> Section:
        return Section(
            id=section.get("identifier"),
            preview_id=self.build_preview_id(section.get("identifier"), remote_project_locale),
            section_type=(section.get("template") or {}).get("uid"),
            data=self.map_data_entries(section.get("formData"), [*path, "data"], remote_project_locale, remote_project_id),
            displayed=section.get("displayed"),
            children=[],
        )

    def map_content2section(self, content2section: RawItem, remote_project_locale: Optional[str] = None) -> Section:
        return Section(
            id=content2section.get("identifier"),
            preview_id=self.build_preview_id(content2section.get("identifier"), remote_project_locale),
            section_type=(content2section.get("template") or {}).get("uid"),
            data={
                "entityType": content2section.get("entityType"),
                "filterParams": content2section.get("filterParams"),
                "maxPageCount": content2section.get("maxPageCount"),
                "ordering": content2section.get("ordering"),
                "query": content2section.get("query"),
                "recordCountPerPage": content2section.get("recordCountPerPage"),
                "schema": content2section.get("schema"),
            },
            children=[],
        )

    def map_body_content(
        self,
        content: RawItem,
        path: NestedPath,
        remote_project_locale: Optional[str] = None,
        remote_project_id: Optional[str] = None,
    ) -> Section:
        """
        Map one child of a page body.

        Raises:
            UnknownBodyContentError: If the content kind is not a section kind
        """
        fs_type = content.get("fsType") if isinstance(content, dict) else None
        if fs_type == "Content2Section":
            return self.map_content2section(content, remote_project_locale)
        if fs_type in ("Section", "SectionReference", "GCASection"):
            return self.map_section(content, path, remote_project_locale, remote_project_id)
        raise UnknownBodyContentError(fs_type)

    def map_page_body(
        self,
        body: RawItem,
        path: NestedPath,
        remote_project_locale: Optional[str] = None,
        remote_project_id: Optional[str] = None,
    ) -> PageBody:
        return PageBody(
            name=body.get("name"),
            preview_id=self.build_preview_id(body.get("identifier"), remote_project_locale),
            children=[
                self.map_body_content(child, [*path, "children", index], remote_project_locale, remote_project_id)
                for index, child in enumerate(body.get("children") or [])
            ],
        )

    def _map_page_bodies(self, bodies, path, remote_project_locale, remote_project_id) -> List[PageBody]:
        return [
            self.map_page_body(child, [*path, "children", index], remote_project_locale, remote_project_id)
            for index, child in enumerate(bodies or [])
        ]

    # --- Entity kinds ---

    def map_page_ref(
        self,
        page_ref: RawItem,
        path: Optional[NestedPath] = None,
        remote_project_locale: Optional[str] = None,
        remote_project_id: Optional[str] = None,
    ) -> Page:
        path = path or []
        page = page_ref.get("page") or {}
        meta_page_ref = None
        if page_ref.get("metaFormData"):
            meta_page_ref = self.map_data_entries(
                page_ref["metaFormData"], [*path, "metaPageRef"], remote_project_locale, remote_project_id
            )
        return Page(
            id=page.get("identifier"),
            ref_id=page_ref.get("identifier"),
            preview_id=self.build_preview_id(page_ref.get("identifier"), remote_project_locale),
            name=page.get("name"),
            layout=(page.get("template") or {}).get("uid"),
            children=self._map_page_bodies(page.get("children"), path, remote_project_locale, remote_project_id),
            data=self.map_data_entries(page.get("formData"), [*path, "data"], remote_project_locale, remote_project_id),
            meta=self.map_data_entries(page.get("metaFormData"), [*path, "meta"], remote_project_locale, remote_project_id),
            meta_page_ref=meta_page_ref,
            remote_project_id=remote_project_id,
        )

    def map_gca_page(
        self,
        gca_page: RawItem,
        path: Optional[NestedPath] = None,
        remote_project_locale: Optional[str] = None,
        remote_project_id: Optional[str] = None,
    ) -> GCAPage:
        path = path or []
        return GCAPage(
            id=gca_page.get("identifier"),
            preview_id=self.build_preview_id(gca_page.get("identifier"), remote_project_locale),
            name=gca_page.get("name"),
            layout=(gca_page.get("template") or {}).get("uid"),
            children=self._map_page_bodies(gca_page.get("children"), path, remote_project_locale, remote_project_id),
            data=self.map_data_entries(gca_page.get("formData"), [*path, "data"], remote_project_locale, remote_project_id),
            meta=self.map_data_entries(gca_page.get("metaFormData"), [*path, "meta"], remote_project_locale, remote_project_id),
            remote_project_id=remote_project_id,
        )

    def map_project_properties(
        self,
        properties: RawItem,
        path: Optional[NestedPath] = None,
        remote_project_locale: Optional[str] = None,
        remote_project_id: Optional[str] = None,
    ) -> ProjectProperties:
        path = path or []
        return ProjectProperties(
            id=properties.get("identifier"),
            preview_id=self.build_preview_id(properties.get("identifier"), remote_project_locale),
            name=properties.get("name"),
            layout=(properties.get("template") or {}).get("uid"),
            data=self.map_data_entries(properties.get("formData"), [*path, "data"], remote_project_locale, remote_project_id),
            meta=self.map_data_entries(properties.get("metaFormData"), [*path, "meta"], remote_project_locale, remote_project_id),
            remote_project_id=remote_project_id,
        )

    def map_dataset(
        self,
        dataset: RawItem,
        path: Optional[NestedPath] = None,
        remote_project_locale: Optional[str] = None,
        remote_project_id: Optional[str] = None,
    ) -> Dataset:
        path = path or []
        return Dataset(
            id=dataset.get("identifier"),
            preview_id=self.build_preview_id(dataset.get("identifier"), remote_project_locale),
            schema=dataset.get("schema"),
            entity_type=dataset.get("entityType"),
            data=self.map_data_entries(dataset.get("formData"), [*path, "data"], remote_project_locale, remote_project_id),
            route=dataset.get("route"),
            routes=dataset.get("routes") or [],
            template=(dataset.get("template") or {}).get("uid"),
            locale=raw_locale(dataset),
            remote_project_id=remote_project_id,
            children=[],
        )

    def map_image_map_area(
        self,
        area: Dict[str, Any],
        path: NestedPath,
        remote_project_locale: Optional[str] = None,
        remote_project_id: Optional[str] = None,
    ) -> Optional[ImageMapArea]:
        link = None
        if area.get("link"):
            link = ImageMapAreaLink(
                template=(area["link"].get("template") or {}).get("uid"),
                data=self.map_data_entries(
                    area["link"].get("formData"), [*path, "link", "data"], remote_project_locale, remote_project_id
                ),
            )

        area_type = area.get("areaType")
        if area_type == ImageMapAreaType.RECT.value:
            return ImageMapAreaRect(
                area_type=area_type, link=link, left_top=area.get("leftTop"), right_bottom=area.get("rightBottom")
            )
        if area_type == ImageMapAreaType.CIRCLE.value:
            return ImageMapAreaCircle(area_type=area_type, link=link, center=area.get("center"), radius=area.get("radius"))
        if area_type == ImageMapAreaType.POLY.value:
            return ImageMapAreaPoly(area_type=area_type, link=link, points=area.get("points") or [])
        return None

    def map_image_map(
        self,
        image_map: RawItem,
        path: NestedPath,
        remote_project_locale: Optional[str] = None,
        remote_project_id: Optional[str] = None,
    ) -> ImageMap:
        """
        Map an image map. Its media is registered as a resolution-specific reference.

        Raises:
            ImageMapValueError: If the image map carries no value payload
        """
        value = image_map.get("value") if isinstance(image_map, dict) else None
        if not isinstance(value, dict) or not value:
            raise ImageMapValueError()

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Mapping image map at %s", "/".join(str(segment) for segment in path))

        areas = [
            self.map_image_map_area(area, [*path, "areas", index], remote_project_locale, remote_project_id)
            for index, area in enumerate(value.get("areas") or [])
        ]

        media = value.get("media")
        image = None
        if media:
            image = self.register_referenced_item(
                media["identifier"],
                [*path, "media"],
                media.get("remoteProject") or remote_project_id,
                (value.get("resolution") or {}).get("uid"),
                locale=remote_project_locale,
            )

        return ImageMap(areas=[area for area in areas if area is not None], media=image)

    def map_media_picture(
        self,
        item: RawItem,
        path: Optional[NestedPath] = None,
        remote_project_locale: Optional[str] = None,
        remote_project_id: Optional[str] = None,
    ) -> Image:
        path = path or []
        return Image(
            id=item.get("identifier"),
            preview_id=self.build_preview_id(item.get("identifier"), remote_project_locale),
            meta=self.map_data_entries(item.get("metaFormData"), [*path, "meta"], remote_project_locale, remote_project_id),
            description=item.get("description"),
            resolutions=self.map_media_picture_resolution_urls(
                item.get("resolutionsMetaData") or {}, (item.get("changeInfo") or {}).get("revision")
            ),
            remote_project_id=remote_project_id,
        )

    def map_media_picture_resolution_urls(
        self, resolutions: Dict[str, Dict[str, Any]], rev: Optional[int] = None
    ) -> Dict[str, Dict[str, Any]]:
        return {
            name: {**resolution, "url": self.build_media_url(resolution.get("url", ""), rev)}
            for name, resolution in resolutions.items()
        }

    def map_media_file(
        self,
        item: RawItem,
        path: NestedPath,
        remote_project_locale: Optional[str] = None,
        remote_project_id: Optional[str] = None,
    ) -> File:
        return File(
            id=item.get("identifier"),
            preview_id=self.build_preview_id(item.get("identifier"), remote_project_locale),
            meta=self.map_data_entries(item.get("metaFormData"), [*path, "meta"], remote_project_locale, remote_project_id),
            file_name=item.get("fileName"),
            file_meta_data=item.get("fileMetaData") or {},
            url=item.get("url"),
            remote_project_id=remote_project_id,
        )

    def map_media(
        self,
        item: Optional[RawItem],
        path: NestedPath,
        remote_project_locale: Optional[str] = None,
        remote_project_id: Optional[str] = None,
    ) -> Any:
        if item is None:
            return None
        media_type = item.get("mediaType")
        if media_type == "PICTURE":
            return self.map_media_picture(item, path, remote_project_locale, remote_project_id)
        if media_type == "FILE":
            return self.map_media_file(item, path, remote_project_locale, remote_project_id)
        return item


def _locale_block(locale: str) -> Dict[str, str]:
    language, _, country = locale.partition("_")
    return {"language": language, "country": country}
