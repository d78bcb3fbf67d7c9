"""
Pytest configuration and fixtures for the CaaS graph engine tests.
"""

import threading
from typing import Any, Dict, List, Optional

import pytest

from caas_graph_engine.core.reference_resolver.config import RemoteProjectConfig
from caas_graph_engine.core.reference_resolver.errors import CaaSApiError
from caas_graph_engine.core.reference_resolver.identifiers import raw_locale
from caas_graph_engine.core.reference_resolver.models import QueryFilter, RawPage


class FakeContentStore:
    """In-memory stand-in for CaaSRemoteApi: serves identifier queries from a dict."""

    def __init__(self, remotes: Optional[Dict[str, RemoteProjectConfig]] = None, content_mode: str = "release"):
        self.remotes = remotes or {}
        self.content_mode = content_mode
        self.documents: Dict[tuple, Dict[str, Any]] = {}
        self.calls: List[Dict[str, Any]] = []
        self.failing_ids = set()
        self._lock = threading.Lock()

    def add(self, document: Dict[str, Any], remote_project: Optional[str] = None) -> Dict[str, Any]:
        self.documents[(remote_project, document["identifier"], raw_locale(document))] = document
        return document

    def fetch_raw(self, filters: List[QueryFilter], locale: Optional[str] = None, page: int = 1,
                  pagesize: int = 30, remote_project: Optional[str] = None, **kwargs) -> RawPage:
        ids = filters[0].value
        if not isinstance(ids, list):
            ids = [ids]
        with self._lock:
            self.calls.append({"ids": list(ids), "locale": locale, "remote_project": remote_project, "pagesize": pagesize})

        if self.failing_ids.intersection(ids):
            raise CaaSApiError(CaaSApiError.UNKNOWN_ERROR, 500)

        items = [
            self.documents[(remote_project, identifier, locale)]
            for identifier in ids
            if (remote_project, identifier, locale) in self.documents
        ]
        return RawPage(items=items, page=page, pagesize=pagesize, size=len(items))

    @property
    def requested_ids(self) -> List[str]:
        return [identifier for call in self.calls for identifier in call["ids"]]


def locale_block(locale: str = "en_GB") -> Dict[str, str]:
    language, _, country = locale.partition("_")
    return {"language": language, "country": country, "identifier": language.upper()}


@pytest.fixture
def store():
    """Empty fake content store without remote projects."""
    return FakeContentStore()


@pytest.fixture
def remote_store():
    """Fake content store with one remote project ("media-hub", locale de_DE)."""
    return FakeContentStore(remotes={"hub": RemoteProjectConfig(id="media-hub", locale="de_DE")})


@pytest.fixture
def make_picture():
    """Factory for raw PICTURE media documents."""
    def _make(identifier: str, locale: str = "en_GB", revision: int = 3, meta: Optional[dict] = None):
        return {
            "fsType": "Media",
            "mediaType": "PICTURE",
            "identifier": identifier,
            "locale": locale_block(locale),
            "description": f"Picture {identifier}",
            "metaFormData": meta or {},
            "resolutionsMetaData": {
                "ORIGINAL": {"url": f"https://media.example.com/{identifier}/ORIGINAL", "width": 800, "height": 600},
                "teaser": {"url": f"https://media.example.com/{identifier}/teaser", "width": 200, "height": 150},
            },
            "changeInfo": {"revision": revision},
        }
    return _make


@pytest.fixture
def make_page_ref():
    """Factory for raw PageRef documents with one body."""
    def _make(identifier: str, form_data: Optional[dict] = None, locale: str = "en_GB",
              sections: Optional[list] = None, meta_page_ref: Optional[dict] = None):
        return {
            "fsType": "PageRef",
            "identifier": identifier,
            "locale": locale_block(locale),
            "metaFormData": meta_page_ref or {},
            "page": {
                "fsType": "Page",
                "identifier": f"page-{identifier}",
                "name": "homepage",
                "template": {"uid": "standard"},
                "formData": form_data or {},
                "metaFormData": {},
                "children": [
                    {
                        "fsType": "Body",
                        "name": "content",
                        "identifier": f"body-{identifier}",
                        "children": sections or [],
                    }
                ],
            },
        }
    return _make


@pytest.fixture
def make_dataset():
    """Factory for raw Dataset documents."""
    def _make(identifier: str, form_data: Optional[dict] = None, locale: str = "en_GB"):
        return {
            "fsType": "Dataset",
            "identifier": identifier,
            "locale": locale_block(locale),
            "schema": "products",
            "entityType": "product",
            "template": {"uid": "product"},
            "route": f"/products/{identifier}",
            "routes": [{"pageRef": "p1", "route": f"/products/{identifier}"}],
            "formData": form_data or {},
        }
    return _make


def media_reference(identifier: str, remote_project: Optional[str] = None) -> Dict[str, Any]:
    value = {"fsType": "Media", "identifier": identifier}
    if remote_project:
        value["remoteProject"] = remote_project
    return {"fsType": "FS_REFERENCE", "name": "image", "value": value}


def dataset_reference(identifier: str) -> Dict[str, Any]:
    return {
        "fsType": "FS_DATASET",
        "name": "related",
        "value": {"fsType": "DatasetReference", "target": {"identifier": identifier}},
    }


@pytest.fixture
def media_ref():
    """Factory for FS_REFERENCE data entries pointing at media."""
    return media_reference


@pytest.fixture
def dataset_ref():
    """Factory for FS_DATASET data entries holding a DatasetReference."""
    return dataset_reference
