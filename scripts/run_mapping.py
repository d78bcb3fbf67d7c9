#!/usr/bin/env python3
"""
Map and resolve CaaS documents.

Two sources are supported:
- a live CaaS project, configured through CAAS_* environment variables
  (loaded from .env.local at the project root)
- a JSON export of raw documents of the local project, for offline runs;
  references are then resolved against the same export

The normalized result (mapped items with placeholders, resolved references and
the reference map) is written as JSON.

Usage:
    python scripts/run_mapping.py --id 2f3c... --locale en_GB
    python scripts/run_mapping.py --documents export.json --id 2f3c... --locale en_GB --output out.json
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from caas_graph_engine.core.reference_resolver.config import DEFAULT_MAX_REFERENCE_DEPTH, CaaSConfig  # noqa: E402
from caas_graph_engine.core.reference_resolver.errors import CaaSGraphError  # noqa: E402
from caas_graph_engine.core.reference_resolver.identifiers import raw_locale  # noqa: E402
from caas_graph_engine.core.reference_resolver.models import (  # noqa: E402
    ComparisonOperator,
    QueryFilter,
    RawPage,
)
from caas_graph_engine.core.reference_resolver.remote_api import CaaSRemoteApi  # noqa: E402
from caas_graph_engine.core.reference_resolver.response_assembler import (  # noqa: E402
    ResponseAssembler,
    summarize_response,
)

logger = logging.getLogger(__name__)


class ExportedDocumentStore:
    """Serves `fetch_raw` identifier queries from a JSON export of local-project documents."""

    def __init__(self, documents: List[Dict[str, Any]]):
        self.documents = documents
        self.remotes = {}
        self.content_mode = "release"

    def fetch_raw(self, filters: List[QueryFilter], locale: Optional[str] = None, pagesize: int = 30,
                  remote_project: Optional[str] = None, **kwargs) -> RawPage:
        ids = set()
        for query_filter in filters:
            if query_filter.field != "identifier":
                continue
            if query_filter.operator == ComparisonOperator.IN:
                ids.update(query_filter.value)
            else:
                ids.add(query_filter.value)

        items = [
            document for document in self.documents
            if document.get("identifier") in ids and (not locale or raw_locale(document) == locale)
        ]
        return RawPage(items=items[:pagesize], pagesize=pagesize, size=len(items))


def _to_json(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    return value


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Map CaaS documents and resolve their references")
    parser.add_argument("--id", dest="ids", action="append", required=True, help="Identifier of a top-level document (repeatable)")
    parser.add_argument("--locale", required=True, help="Request locale, e.g. en_GB")
    parser.add_argument("--documents", type=Path, help="JSON export of raw documents (offline mode)")
    parser.add_argument("--remote-project", help="Remote project id to fetch the documents from")
    parser.add_argument("--max-depth", type=int, help="Override the maximum reference depth")
    parser.add_argument("--output", type=Path, help="Write the normalized result to this file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)
    if args.documents and args.remote_project:
        parser.error("--remote-project needs a live project; a JSON export carries no remote project configuration")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    remote_project_locale = None
    filters = [QueryFilter(field="identifier", operator=ComparisonOperator.IN, value=args.ids)]

    try:
        if args.documents:
            documents = json.loads(args.documents.read_text(encoding="utf-8"))
            api = ExportedDocumentStore(documents)
            max_depth = args.max_depth if args.max_depth is not None else DEFAULT_MAX_REFERENCE_DEPTH
            print(f"📂 Loaded {len(documents)} documents from {args.documents}")
        else:
            env_file = project_root / ".env.local"
            load_dotenv(env_file)
            config = CaaSConfig.from_env()
            if args.max_depth is not None:
                config.max_reference_depth = args.max_depth
            api = CaaSRemoteApi(config)
            max_depth = config.max_reference_depth
            if args.remote_project:
                remote_project_locale = api.get_remote_config_by_id(args.remote_project).locale
            print(f"🌐 Using CaaS project {config.project_id} ({config.content_mode})")

        raw_page = api.fetch_raw(
            filters, locale=remote_project_locale or args.locale, remote_project=args.remote_project
        )
        print(f"🔍 Fetched {len(raw_page.items)} top-level documents")

        assembler = ResponseAssembler(api, locale=args.locale, max_reference_depth=max_depth)
        response = assembler.map_batch(
            raw_page.items, remote_project_locale=remote_project_locale, remote_project_id=args.remote_project
        )
    except CaaSGraphError as e:
        print(f"❌ Mapping failed: {e}")
        sys.exit(1)

    summary = summarize_response(response)
    print(f"✅ Mapped {summary['mapped_items']} items, resolved {summary['resolved_references']} references")
    if summary["unresolved_ids"]:
        print(f"⚠️  Unresolved ids: {', '.join(summary['unresolved_ids'])}")

    result = {
        "mapped_items": [_to_json(item) for item in response.mapped_items],
        "resolved_references": {key: _to_json(item) for key, item in response.resolved_references.items()},
        "reference_map": response.reference_map,
    }
    output = json.dumps(result, indent=2, ensure_ascii=False, default=str)
    if args.output:
        args.output.write_text(output, encoding="utf-8")
        print(f"💾 Result written to {args.output}")
    else:
        print(output)


if __name__ == "__main__":
    main()
