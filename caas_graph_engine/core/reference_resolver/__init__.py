"""
CaaS reference resolver module.

This module maps raw CaaS content trees into an application object graph,
resolving the references between entities with a depth-bounded, batched
fetch loop and a request-scoped cache.

The main entry point is the ResponseAssembler class in response_assembler.py;
CaaSRemoteApi in remote_api.py wires it to a live content store.
"""

# Core components
from caas_graph_engine.core.reference_resolver.cache_manager import ResolvedReferenceCache
from caas_graph_engine.core.reference_resolver.content_mapper import CaaSMapper
from caas_graph_engine.core.reference_resolver.reference_registry import ReferenceRegistry
from caas_graph_engine.core.reference_resolver.resolution_scheduler import ResolutionScheduler
from caas_graph_engine.core.reference_resolver.rich_text_parser import RichTextParser

# Main entry points
from caas_graph_engine.core.reference_resolver.response_assembler import ResponseAssembler
from caas_graph_engine.core.reference_resolver.remote_api import CaaSRemoteApi
from caas_graph_engine.core.reference_resolver.denormalizer import denormalize_resolved_references

# Configuration and identifiers
from caas_graph_engine.core.reference_resolver.config import CaaSConfig, RemoteProjectConfig
from caas_graph_engine.core.reference_resolver.identifiers import build_preview_id, get_item_id, unify_id

# Errors
from caas_graph_engine.core.reference_resolver.errors import (
    CaaSApiError,
    CaaSGraphError,
    CaaSMapperError,
    ConfigurationError,
    ImageMapValueError,
    NotAuthorizedError,
    NotFoundError,
    UnknownBodyContentError,
    UnknownRemoteProjectError,
)

# Data models
from caas_graph_engine.core.reference_resolver.models import (
    ComparisonOperator,
    CustomMapperContext,
    Dataset,
    FetchResponse,
    File,
    GCAPage,
    Image,
    ImageMap,
    Link,
    MapResponse,
    Option,
    Page,
    PageBody,
    ProjectProperties,
    QueryFilter,
    RawPage,
    Reference,
    Section,
)

__all__ = [
    # Main entry points
    'ResponseAssembler',
    'CaaSRemoteApi',
    'denormalize_resolved_references',

    # Core components
    'CaaSMapper',
    'ReferenceRegistry',
    'ResolutionScheduler',
    'ResolvedReferenceCache',
    'RichTextParser',

    # Configuration and identifiers
    'CaaSConfig',
    'RemoteProjectConfig',
    'build_preview_id',
    'get_item_id',
    'unify_id',

    # Errors
    'CaaSApiError',
    'CaaSGraphError',
    'CaaSMapperError',
    'ConfigurationError',
    'ImageMapValueError',
    'NotAuthorizedError',
    'NotFoundError',
    'UnknownBodyContentError',
    'UnknownRemoteProjectError',

    # Data models
    'ComparisonOperator',
    'CustomMapperContext',
    'Dataset',
    'FetchResponse',
    'File',
    'GCAPage',
    'Image',
    'ImageMap',
    'Link',
    'MapResponse',
    'Option',
    'Page',
    'PageBody',
    'ProjectProperties',
    'QueryFilter',
    'RawPage',
    'Reference',
    'Section',
]
