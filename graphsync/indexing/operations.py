"""
Bulk operation value objects.

Operations are identified by their DocumentKey; a PendingBatch keeps at most
one operation per key, the last one put.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, NamedTuple, Union


class DocumentKey(NamedTuple):
    index_name: str
    document_id: str


@dataclass(frozen=True)
class Upsert:
    """Create or fully replace the document at ``key``."""

    key: DocumentKey
    doc_type: str
    body: Mapping[str, Any] = field(default_factory=dict, hash=False)

    op_type = "index"

    def __post_init__(self):
        object.__setattr__(self, "body", MappingProxyType(dict(self.body)))

    def action_lines(self, include_document_type: bool = False) -> List[Dict[str, Any]]:
        return [
            {self.op_type: _action_meta(self.key, self.doc_type, include_document_type)},
            dict(self.body),
        ]


@dataclass(frozen=True)
class Delete:
    """Remove the document at ``key``."""

    key: DocumentKey
    doc_type: str

    op_type = "delete"

    def action_lines(self, include_document_type: bool = False) -> List[Dict[str, Any]]:
        return [
            {self.op_type: _action_meta(self.key, self.doc_type, include_document_type)}
        ]


BulkOperation = Union[Upsert, Delete]


def _action_meta(
    key: DocumentKey, doc_type: str, include_document_type: bool
) -> Dict[str, Any]:
    meta: Dict[str, Any] = {"_index": key.index_name, "_id": key.document_id}
    # Mapping types only exist on pre-7.x clusters
    if include_document_type:
        meta["_type"] = doc_type
    return meta


def to_bulk_actions(
    operations: List[BulkOperation], include_document_type: bool = False
) -> List[Dict[str, Any]]:
    """Flatten operations into the action/source line list of a bulk request."""
    actions: List[Dict[str, Any]] = []
    for operation in operations:
        actions.extend(operation.action_lines(include_document_type))
    return actions


class PendingBatch:
    """Per-transaction accumulator of operations, deduplicated by DocumentKey."""

    def __init__(self):
        self._operations: Dict[DocumentKey, BulkOperation] = {}

    def put(self, operation: BulkOperation) -> None:
        self._operations[operation.key] = operation

    def get(self, key: DocumentKey):
        return self._operations.get(key)

    def keys(self):
        return self._operations.keys()

    def operations(self) -> List[BulkOperation]:
        return list(self._operations.values())

    def is_empty(self) -> bool:
        return not self._operations

    def __contains__(self, key: object) -> bool:
        return key in self._operations

    def __iter__(self) -> Iterator[BulkOperation]:
        return iter(self._operations.values())

    def __len__(self) -> int:
        return len(self._operations)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PendingBatch):
            return NotImplemented
        return self._operations == other._operations

    def __repr__(self) -> str:
        return f"PendingBatch({self.operations()!r})"


__all__ = [
    "DocumentKey",
    "Upsert",
    "Delete",
    "BulkOperation",
    "PendingBatch",
    "to_bulk_actions",
]
