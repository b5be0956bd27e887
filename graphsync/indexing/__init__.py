"""
Change capture to bulk index operations.

The dispatcher and handler modules talk to the search client and are
imported from their own modules.
"""

from graphsync.indexing.errors import (
    ConfigError,
    DispatchError,
    GraphSyncError,
    IndexSpecParseError,
    ParseError,
    TranslationError,
)
from graphsync.indexing.inclusion import InclusionFilter
from graphsync.indexing.operations import (
    BulkOperation,
    Delete,
    DocumentKey,
    PendingBatch,
    Upsert,
)
from graphsync.indexing.spec import IndexSpec, IndexSpecTable, parse_index_spec
from graphsync.indexing.transaction import (
    FilteredTransactionData,
    NodeChange,
    NodeState,
    TransactionData,
)
from graphsync.indexing.translator import MutationTranslator, project_document

__all__ = [
    "BulkOperation",
    "ConfigError",
    "Delete",
    "DispatchError",
    "DocumentKey",
    "FilteredTransactionData",
    "GraphSyncError",
    "InclusionFilter",
    "IndexSpec",
    "IndexSpecParseError",
    "IndexSpecTable",
    "MutationTranslator",
    "NodeChange",
    "NodeState",
    "ParseError",
    "PendingBatch",
    "TransactionData",
    "TranslationError",
    "Upsert",
    "parse_index_spec",
    "project_document",
]
