"""
Data models for the CaaS graph engine.

Raw content arrives as JSON dicts from the content store. Everything the
mapper produces is one of the dataclasses below; each carries a constant
`type` tag so downstream consumers can dispatch on it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union


# --- Aliases ---

PathSegment = Union[str, int]
NestedPath = List[PathSegment]
RawItem = Dict[str, Any]


# --- Enums ---

class ComparisonOperator(Enum):
    EQUALS = "$eq"
    NOT_EQUALS = "$ne"
    IN = "$in"
    NOT_IN = "$nin"
    GREATER_THAN = "$gt"
    GREATER_THAN_EQUALS = "$gte"
    LESS_THAN = "$lt"
    LESS_THAN_EQUALS = "$lte"


class ImageMapAreaType(Enum):
    RECT = "RECT"
    CIRCLE = "CIRCLE"
    POLY = "POLY"


class ContentMode(Enum):
    PREVIEW = "preview"
    RELEASE = "release"


# --- Requests / responses ---

@dataclass
class QueryFilter:
    """One filter clause of a fetch-by-filter request."""
    field: str
    operator: ComparisonOperator
    value: Any


@dataclass
class RawPage:
    """A page of raw, unmapped entities as returned by the content store."""
    items: List[RawItem]
    page: int = 1
    pagesize: int = 30
    size: Optional[int] = None
    total_pages: Optional[int] = None


@dataclass
class MapResponse:
    """
    Result of one top-level mapping request.

    - mapped_items: top-level entities in input order, placeholders embedded
    - resolved_references: canonical id -> mapped entity
    - reference_map: canonical id -> paths at which the id was referenced
    """
    mapped_items: List[Any]
    resolved_references: Dict[str, Any]
    reference_map: Dict[str, List[NestedPath]]


@dataclass
class FetchResponse:
    """Transport-level response of a fetch-by-filter call."""
    items: List[Any]
    page: int = 1
    pagesize: int = 30
    size: Optional[int] = None
    total_pages: Optional[int] = None
    reference_map: Optional[Dict[str, List[NestedPath]]] = None
    resolved_references: Optional[Dict[str, Any]] = None


# --- Field value kinds ---

@dataclass
class Option:
    key: Any
    value: Any
    extra: Dict[str, Any] = field(default_factory=dict)
    type: str = field(default="Option", init=False)


@dataclass
class Link:
    template: str
    data: Dict[str, Any]
    meta: Dict[str, Any] = field(default_factory=dict)
    type: str = field(default="Link", init=False)


@dataclass
class Reference:
    """Edge descriptor to a page or GCA page; data, not a navigable pointer."""
    reference_id: str
    reference_type: str
    reference_remote_project: Optional[str] = None
    section: Optional[Any] = None
    type: str = field(default="Reference", init=False)


@dataclass
class PermissionGroup:
    group_id: str
    group_name: str
    group_path: str


@dataclass
class PermissionActivity:
    allowed: List[PermissionGroup]
    forbidden: List[PermissionGroup]


@dataclass
class Permission:
    fs_type: str
    name: str
    value: List[PermissionActivity]
    type: str = field(default="Permission", init=False)


@dataclass
class ImageMapAreaLink:
    template: str
    data: Dict[str, Any]


@dataclass
class ImageMapAreaRect:
    area_type: str
    link: Optional[ImageMapAreaLink]
    left_top: Any
    right_bottom: Any


@dataclass
class ImageMapAreaCircle:
    area_type: str
    link: Optional[ImageMapAreaLink]
    center: Any
    radius: Any


@dataclass
class ImageMapAreaPoly:
    area_type: str
    link: Optional[ImageMapAreaLink]
    points: List[Any]


ImageMapArea = Union[ImageMapAreaRect, ImageMapAreaCircle, ImageMapAreaPoly]


@dataclass
class ImageMap:
    # media holds an IMAGEMAP___ placeholder until denormalized
    areas: List[ImageMapArea]
    media: Any
    type: str = field(default="ImageMap", init=False)


@dataclass
class RichTextElement:
    """One node of a parsed rich-text tree. Text nodes carry a str content."""
    type: str
    content: Union[str, List["RichTextElement"]]
    data: Any = field(default_factory=dict)


# --- Entity kinds ---

@dataclass
class Section:
    id: str
    preview_id: str
    section_type: str
    data: Dict[str, Any]
    displayed: Optional[bool] = None
    children: List[Any] = field(default_factory=list)
    type: str = field(default="Section", init=False)


@dataclass
class CatalogPage:
    """A page-template card inside an FS_CATALOG."""
    id: str
    preview_id: str
    template: str
    data: Dict[str, Any]


@dataclass
class PageBody:
    name: str
    preview_id: str
    children: List[Section]
    type: str = field(default="PageBody", init=False)


@dataclass
class Page:
    id: str
    ref_id: str
    preview_id: str
    name: str
    layout: str
    children: List[PageBody]
    data: Dict[str, Any]
    meta: Dict[str, Any]
    meta_page_ref: Optional[Dict[str, Any]] = None
    remote_project_id: Optional[str] = None
    type: str = field(default="Page", init=False)


@dataclass
class GCAPage:
    id: str
    preview_id: str
    name: str
    layout: str
    children: List[PageBody]
    data: Dict[str, Any]
    meta: Dict[str, Any]
    remote_project_id: Optional[str] = None
    type: str = field(default="GCAPage", init=False)


@dataclass
class ProjectProperties:
    id: str
    preview_id: str
    name: str
    layout: str
    data: Dict[str, Any]
    meta: Dict[str, Any]
    remote_project_id: Optional[str] = None
    type: str = field(default="ProjectProperties", init=False)


@dataclass
class Dataset:
    id: str
    preview_id: str
    schema: str
    entity_type: str
    data: Dict[str, Any]
    route: Optional[str]
    routes: List[Any]
    template: Optional[str]
    locale: str
    remote_project_id: Optional[str] = None
    children: List[Any] = field(default_factory=list)
    type: str = field(default="Dataset", init=False)


@dataclass
class Image:
    id: str
    preview_id: str
    meta: Dict[str, Any]
    description: Optional[str]
    resolutions: Dict[str, Dict[str, Any]]
    remote_project_id: Optional[str] = None
    type: str = field(default="Image", init=False)


@dataclass
class File:
    id: str
    preview_id: str
    meta: Dict[str, Any]
    file_name: str
    file_meta_data: Dict[str, Any]
    url: str
    remote_project_id: Optional[str] = None
    type: str = field(default="File", init=False)


@dataclass
class CustomMapperContext:
    """Helpers handed to a custom mapping hook."""
    api: Any
    rich_text_parser: Any
    register_referenced_item: Callable[..., str]
    build_preview_id: Callable[..., str]
    build_media_url: Callable[..., str]
    map_data_entries: Callable[..., Dict[str, Any]]


# (raw_entry, path, context) -> mapped value, or None to defer to built-in mapping
CustomMapper = Callable[[RawItem, NestedPath, CustomMapperContext], Any]
