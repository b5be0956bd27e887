"""
One-shot backfill of existing graph nodes into the search index.

For every index spec the importer reads all nodes with the spec's label
through a Cypher query and sends them as index operations in bulk. It is not
transactional and does not recover from partial failures; each failed bulk
request is logged and counted, and the import moves on.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from neo4j import Driver

from graphsync.clients.search_client import SearchClient
from graphsync.indexing.errors import DispatchError
from graphsync.indexing.operations import DocumentKey, Upsert, to_bulk_actions
from graphsync.indexing.spec import IndexSpec, IndexSpecTable
from graphsync.shared.observability import get_logger
from graphsync.shared.observability.metrics import backfill_documents_total

logger = get_logger(__name__)

ID_COLUMN = "__node_id"
LABELS_COLUMN = "__node_labels"


def quote_identifier(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


def generate_query(spec: IndexSpec) -> str:
    """Cypher returning id, labels and the projected properties of each node."""
    columns = [f"id(n) AS {ID_COLUMN}", f"labels(n) AS {LABELS_COLUMN}"]
    columns.extend(
        f"n.{quote_identifier(prop)} AS {quote_identifier(prop)}"
        for prop in spec.properties
    )
    return f"MATCH (n:{quote_identifier(spec.label)}) RETURN " + ", ".join(columns)


def row_to_upsert(row: Mapping[str, Any], spec: IndexSpec) -> Upsert:
    document_id = str(row[ID_COLUMN])
    body: Dict[str, Any] = {
        "id": document_id,
        "labels": list(row.get(LABELS_COLUMN) or []),
    }
    for prop in spec.properties:
        # Cypher yields null for a missing property; keep it out of the document
        value = row.get(prop)
        if value is not None:
            body[prop] = value
    return Upsert(
        key=DocumentKey(spec.index_name, document_id),
        doc_type=spec.label,
        body=body,
    )


def _chunks(items: Iterable[Upsert], size: Optional[int]) -> Iterator[List[Upsert]]:
    chunk: List[Upsert] = []
    for item in items:
        chunk.append(item)
        if size and len(chunk) >= size:
            yield chunk
            chunk = []
    if chunk:
        yield chunk


@dataclass
class BackfillReport:
    index_name: str
    label: str
    documents: int = 0
    requests: int = 0
    failed_requests: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.failed_requests == 0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "index_name": self.index_name,
            "label": self.label,
            "documents": self.documents,
            "requests": self.requests,
            "failed_requests": self.failed_requests,
            "errors": list(self.errors),
        }


class BackfillImporter:
    """Reads labeled nodes from Neo4j and bulk-indexes them."""

    def __init__(
        self,
        driver: Driver,
        search_client: SearchClient,
        table: IndexSpecTable,
        chunk_size: Optional[int] = None,
        include_document_type: bool = False,
        database: Optional[str] = None,
    ):
        self.driver = driver
        self.search_client = search_client
        self.table = table
        self.chunk_size = chunk_size
        self.include_document_type = include_document_type
        self.database = database

    def import_spec(self, spec: IndexSpec) -> BackfillReport:
        report = BackfillReport(index_name=spec.index_name, label=spec.label)
        query = generate_query(spec)
        logger.info("backfill_started", index=spec.index_name, label=spec.label)

        with self.driver.session(database=self.database) as session:
            records = session.run(query)
            upserts = (row_to_upsert(record.data(), spec) for record in records)
            for chunk in _chunks(upserts, self.chunk_size):
                self._send(chunk, report)

        logger.info(
            "backfill_finished",
            index=spec.index_name,
            label=spec.label,
            documents=report.documents,
            failed_requests=report.failed_requests,
        )
        return report

    def _send(self, chunk: List[Upsert], report: BackfillReport) -> None:
        report.requests += 1
        actions = to_bulk_actions(chunk, self.include_document_type)
        try:
            result = self.search_client.execute(actions)
        except DispatchError as exc:
            report.failed_requests += 1
            report.errors.append(str(exc))
            logger.warning("backfill_bulk_failed", index=report.index_name, error=str(exc))
            return

        report.documents += len(chunk)
        backfill_documents_total.labels(index_name=report.index_name).inc(len(chunk))
        if not result.succeeded:
            report.failed_requests += 1
            report.errors.append(result.error_message or "bulk request failed")
            logger.warning(
                "backfill_bulk_failed",
                index=report.index_name,
                error=result.error_message,
            )

    def run(self) -> List[BackfillReport]:
        return [self.import_spec(spec) for spec in self.table.all_specs()]


__all__ = [
    "BackfillImporter",
    "BackfillReport",
    "generate_query",
    "row_to_upsert",
]
