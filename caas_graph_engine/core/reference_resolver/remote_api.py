"""
HTTP transport for the CaaS content store.

CaaSRemoteApi builds CaaS URLs, runs filter queries through a
requests.Session and hands the raw documents to a fresh ResponseAssembler.
It is also the `api` collaborator the ResolutionScheduler fetches batches
through (`fetch_raw`).
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

import requests

from .config import DEFAULT_PAGE_SIZE, CaaSConfig, RemoteProjectConfig
from .denormalizer import denormalize_resolved_references
from .errors import CaaSApiError, NotAuthorizedError, NotFoundError, UnknownRemoteProjectError
from .models import ComparisonOperator, CustomMapper, FetchResponse, QueryFilter, RawPage
from .response_assembler import ResponseAssembler

logger = logging.getLogger(__name__)

# (items, filter_context) -> items that survive
CaaSItemFilter = Callable[[List[Any], Any], List[Any]]

REQUEST_TIMEOUT = 30


class CaaSRemoteApi:
    """Client for one CaaS project and its configured remote projects."""

    def __init__(
        self,
        config: CaaSConfig,
        custom_mapper: Optional[CustomMapper] = None,
        caas_item_filter: Optional[CaaSItemFilter] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            config: Validated connection settings
            custom_mapper: Optional hook intercepting data entries while mapping
            caas_item_filter: Optional hook filtering mapped items and resolved references
            session: requests session to use (a new one is created if None)
        """
        self.config = config
        self.custom_mapper = custom_mapper
        self.caas_item_filter = caas_item_filter
        self.session = session or requests.Session()

    @property
    def remotes(self) -> Dict[str, RemoteProjectConfig]:
        return self.config.remotes

    @property
    def content_mode(self) -> str:
        return self.config.content_mode

    @property
    def authorization_header(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.config.api_key}"}

    def get_remote_config_by_id(self, remote_project_id: str) -> RemoteProjectConfig:
        for remote in self.remotes.values():
            if remote.id == remote_project_id:
                return remote
        raise UnknownRemoteProjectError(remote_project_id)

    def build_caas_url(self, identifier: Optional[str] = None, locale: Optional[str] = None,
                       remote_project: Optional[str] = None) -> str:
        """Build the collection URL, or a document URL when an identifier is given."""
        project_id = self.config.project_id
        if remote_project:
            project_id = self.get_remote_config_by_id(remote_project).id

        url = f"{self.config.caas_url}/{self.config.tenant_id}/{project_id}.{self.content_mode}.content"
        if identifier:
            url += f"/{quote(identifier, safe='')}"
            if locale:
                url += f".{quote(locale, safe='')}"
        return url

    def build_query_params(
        self,
        filters: Optional[List[QueryFilter]] = None,
        locale: Optional[str] = None,
        page: Optional[int] = None,
        pagesize: Optional[int] = None,
        additional_params: Optional[Dict[str, Any]] = None,
        sort: Optional[List[Dict[str, str]]] = None,
    ) -> List[tuple]:
        """Query parameters as (name, value) pairs; repeated names are allowed."""
        params: List[tuple] = []
        for key, value in (additional_params or {}).items():
            if isinstance(value, list):
                params.extend((key, json.dumps(entry)) for entry in value)
            elif isinstance(value, dict):
                params.append((key, json.dumps(value)))
            else:
                params.append((key, value))

        if filters is not None:
            all_filters = list(filters)
            if locale:
                language, _, country = locale.partition("_")
                all_filters += [
                    QueryFilter(field="locale.language", operator=ComparisonOperator.EQUALS, value=language),
                    QueryFilter(field="locale.country", operator=ComparisonOperator.EQUALS, value=country),
                ]
            params.extend(("filter", json.dumps(_build_query(query_filter))) for query_filter in all_filters)

        if page:
            params.append(("page", page))
        if pagesize:
            params.append(("pagesize", pagesize))
        for entry in sort or []:
            prefix = "-" if entry.get("order") == "desc" else ""
            params.append(("sort", f"{prefix}{entry['name']}"))
        return params

    def fetch_raw(
        self,
        filters: List[QueryFilter],
        locale: Optional[str] = None,
        page: int = 1,
        pagesize: int = DEFAULT_PAGE_SIZE,
        remote_project: Optional[str] = None,
        additional_params: Optional[Dict[str, Any]] = None,
        sort: Optional[List[Dict[str, str]]] = None,
    ) -> RawPage:
        """
        Run one filter query and return the raw documents.

        Raises:
            NotAuthorizedError: On HTTP 401
            UnknownRemoteProjectError: If remote_project is not configured
            CaaSApiError: On any other failed request
        """
        if pagesize < 1:
            logger.warning(f"pagesize must be greater than zero! Using fallback of {DEFAULT_PAGE_SIZE}.")
            pagesize = DEFAULT_PAGE_SIZE
        if page < 1:
            logger.warning("page must be greater than zero! Using fallback of 1.")
            page = 1

        url = self.build_caas_url(remote_project=remote_project)
        params = self.build_query_params(
            filters=filters,
            locale=locale,
            page=page,
            pagesize=pagesize,
            additional_params={**(additional_params or {}), "rep": "hal"},
            sort=sort,
        )
        logger.info(f"Fetching {url} (page {page}, pagesize {pagesize})")

        data = self._get_json(url, params)
        embedded = data.get("_embedded") or {}
        return RawPage(
            items=embedded.get("rh:doc") or [],
            page=page,
            pagesize=pagesize,
            size=data.get("_size"),
            total_pages=data.get("_total_pages"),
        )

    def fetch_by_filter(
        self,
        filters: List[QueryFilter],
        locale: Optional[str] = None,
        page: int = 1,
        pagesize: int = DEFAULT_PAGE_SIZE,
        remote_project: Optional[str] = None,
        additional_params: Optional[Dict[str, Any]] = None,
        sort: Optional[List[Dict[str, str]]] = None,
        normalized: bool = False,
        filter_context: Any = None,
    ) -> FetchResponse:
        """
        Fetch, map and resolve the documents matching the filters.

        Args:
            filters: Filter clauses
            locale: Locale to filter on and to map with (defaults to the first item's)
            page: Page number, starting at 1
            pagesize: Number of documents per page
            remote_project: Remote project id to query instead of the local project
            additional_params: Extra query parameters; `keys` returns items unmapped
            sort: Sort clauses as {"name": ..., "order": "asc" | "desc"}
            normalized: Return placeholders plus reference map and resolved references
                instead of inlined items
            filter_context: Passed through to the item filter hook

        Returns:
            FetchResponse with the page's items
        """
        raw_page = self.fetch_raw(filters, locale, page, pagesize, remote_project, additional_params, sort)
        if not raw_page.items:
            return FetchResponse(items=[])

        if additional_params and additional_params.get("keys"):
            return FetchResponse(
                items=raw_page.items,
                page=raw_page.page,
                pagesize=raw_page.pagesize,
                size=raw_page.size,
                total_pages=raw_page.total_pages,
            )

        remote_locale = self.get_remote_config_by_id(remote_project).locale if remote_project else None
        assembler = ResponseAssembler(
            self,
            locale=locale,
            custom_mapper=self.custom_mapper,
            max_reference_depth=self.config.max_reference_depth,
            max_workers=self.config.max_workers,
        )
        response = assembler.map_batch(raw_page.items, remote_project_locale=remote_locale, remote_project_id=remote_project)

        mapped_items = response.mapped_items
        reference_map = response.reference_map
        resolved_references = response.resolved_references
        if self.caas_item_filter:
            mapped_items, reference_map, resolved_references = self.filter_map_response(
                mapped_items, reference_map, resolved_references, filter_context
            )

        return FetchResponse(
            items=mapped_items if normalized else denormalize_resolved_references(
                mapped_items, reference_map, resolved_references
            ),
            page=raw_page.page,
            pagesize=raw_page.pagesize,
            size=raw_page.size,
            total_pages=raw_page.total_pages,
            reference_map=reference_map if normalized else None,
            resolved_references=resolved_references if normalized else None,
        )

    def filter_map_response(self, mapped_items, reference_map, resolved_references, filter_context=None):
        """Apply the item filter hook to the top-level items and the resolved references."""
        filtered_items = self.caas_item_filter(mapped_items, filter_context)
        kept_ids = {id(item) for item in self.caas_item_filter(list(resolved_references.values()), filter_context)}
        filtered_references = {
            key: item for key, item in resolved_references.items() if id(item) in kept_ids
        }
        filtered_reference_map = {
            key: paths for key, paths in reference_map.items()
            if key in filtered_references or key not in resolved_references
        }
        return filtered_items, filtered_reference_map, filtered_references

    def fetch_element(
        self,
        identifier: str,
        locale: Optional[str] = None,
        remote_project: Optional[str] = None,
        normalized: bool = False,
        filter_context: Any = None,
    ) -> Any:
        """
        Fetch a single element by id.

        Raises:
            NotFoundError: If no element with that id exists in the locale
        """
        if remote_project:
            locale = self.get_remote_config_by_id(remote_project).locale

        response = self.fetch_by_filter(
            filters=[QueryFilter(field="identifier", operator=ComparisonOperator.EQUALS, value=identifier)],
            locale=locale,
            remote_project=remote_project,
            normalized=normalized,
            filter_context=filter_context,
        )
        if not response.items:
            raise NotFoundError()
        return response.items[0]

    def _get_json(self, url: str, params: List[tuple]) -> Dict[str, Any]:
        try:
            response = self.session.get(url, params=params, headers=self.authorization_header, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            logger.error(f"Request to {url} failed: {e}")
            raise CaaSApiError(CaaSApiError.UNKNOWN_ERROR) from e

        if response.status_code == 401:
            logger.error(f"Request to {url} was not authorized")
            raise NotAuthorizedError(response.status_code)
        if response.status_code == 404:
            raise NotFoundError(response.status_code)
        if not response.ok:
            message = ""
            if response.status_code == 400:
                try:
                    message = response.json().get("message", "")
                except ValueError:
                    message = response.text
            logger.error(f"Request to {url} failed with status {response.status_code}: {message}")
            raise CaaSApiError(CaaSApiError.UNKNOWN_ERROR, response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise CaaSApiError(CaaSApiError.UNKNOWN_ERROR, response.status_code) from e


def _build_query(query_filter: QueryFilter) -> Dict[str, Any]:
    return {query_filter.field: {query_filter.operator.value: query_filter.value}}
