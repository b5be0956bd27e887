"""
Command-line front end for the backfill importer.

    graphsync-import -s "people:Person(first_name,last_name)" -H http://localhost:9200

Neo4j connection details come from the environment (NEO4J_URI, NEO4J_USER,
NEO4J_PASSWORD). Chunk size and search client settings are read from
config/<ENV>.yaml or CONFIG_PATH; --chunk-size overrides the configured value.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional, TextIO

from neo4j.exceptions import AuthError, ServiceUnavailable

# Structured logs go to stderr so stdout stays readable (or valid JSON)
logging.basicConfig(level=logging.WARNING, format="%(message)s", stream=sys.stderr)

from graphsync.backfill.importer import BackfillImporter, BackfillReport  # noqa: E402
from graphsync.indexing.errors import ConfigError  # noqa: E402
from graphsync.indexing.spec import IndexSpecTable  # noqa: E402
from graphsync.shared.config import load_config  # noqa: E402
from graphsync.shared.connections import ConnectionManager  # noqa: E402
from graphsync.shared.observability import get_logger  # noqa: E402

logger = get_logger(__name__)

DEFAULT_HOST = "http://localhost:9200"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="graphsync-import",
        description="Import index specs from Neo4j to Elasticsearch",
    )
    parser.add_argument(
        "-s",
        "--spec",
        required=True,
        help="Indexing specification (eg: people:Person(first_name,last_name))",
    )
    parser.add_argument(
        "-H",
        "--host",
        default=DEFAULT_HOST,
        help=f"Elasticsearch host. Default is {DEFAULT_HOST}",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help="Split each index into bulk requests of at most this many documents",
    )
    parser.add_argument("--database", default=None, help="Neo4j database name")
    parser.add_argument(
        "--json", action="store_true", help="Print one JSON object per index spec"
    )
    return parser


def run_import(
    importer: BackfillImporter,
    table: IndexSpecTable,
    out: TextIO,
    json_mode: bool = False,
) -> List[BackfillReport]:
    reports: List[BackfillReport] = []
    for spec in table.all_specs():
        if not json_mode:
            print(f"Indexing {spec.label} to {spec.index_name}", file=out)
        report = importer.import_spec(spec)
        reports.append(report)
        if json_mode:
            print(json.dumps(report.as_dict()), file=out, flush=True)
        elif not report.succeeded:
            print(
                f"  {report.failed_requests} of {report.requests} bulk request(s) "
                f"failed: {report.errors[0]}",
                file=out,
            )
    return reports


def main(argv: Optional[List[str]] = None, out: TextIO = sys.stdout) -> int:
    args = build_parser().parse_args(argv)

    try:
        table = IndexSpecTable.load(args.spec)
    except ConfigError as exc:
        print(f"Invalid index spec: {exc}", file=sys.stderr)
        return 2

    try:
        # The spec comes from -s, so only the file and environment are checked
        config, settings = load_config(validate=False)
    except ConfigError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    with ConnectionManager(settings, config) as connections:
        search_client = connections.get_search_client(args.host)
        if not args.json:
            print(f"Connected to ES cluster: {args.host}", file=out)

        try:
            driver = connections.get_neo4j_driver()
        except (ServiceUnavailable, AuthError) as exc:
            print(f"Cannot connect to Neo4j: {exc}", file=sys.stderr)
            return 1

        importer = BackfillImporter(
            driver,
            search_client,
            table,
            chunk_size=args.chunk_size or config.backfill.chunk_size,
            include_document_type=config.dispatch.include_document_type,
            database=args.database,
        )
        reports = run_import(importer, table, out, json_mode=args.json)

    return 0 if all(report.succeeded for report in reports) else 1


if __name__ == "__main__":
    sys.exit(main())
