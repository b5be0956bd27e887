"""
Mutation translator: turns a filtered transaction snapshot into bulk operations.

Nodes are processed in a fixed order (created, deleted, changed) and each
produces one operation per (index, node id) for every index spec registered
under one of its labels. Later operations replace earlier ones for the same
document key, so the batch carries only the final outcome per document.

Translation does no I/O. It runs inside the graph store's pre-commit hook and
only reads the immutable node states it is given.
"""

from typing import Any, Dict, Iterable, List, Set

from .errors import TranslationError
from .operations import Delete, DocumentKey, PendingBatch, Upsert
from .spec import IndexSpecTable
from .transaction import FilteredTransactionData, NodeChange, NodeState


def project_document(state: NodeState, properties: Iterable[str]) -> Dict[str, Any]:
    """
    Build the indexed document body for a node.

    The body always carries ``id`` and the node's ``labels`` in order, then
    each requested property the node actually has. Missing properties are
    left out rather than written as null; values are passed through as is.
    """
    document: Dict[str, Any] = {
        "id": state.document_id,
        "labels": list(state.labels),
    }
    for prop in properties:
        if state.has_property(prop):
            document[prop] = state.get_property(prop)
    return document


class MutationTranslator:
    """Translates created, deleted and changed nodes into a PendingBatch."""

    def __init__(self, table: IndexSpecTable, prune_stale_documents: bool = False):
        self.table = table
        self.prune_stale_documents = prune_stale_documents

    def _matching_specs(self, state: NodeState):
        for label in state.labels:
            for spec in self.table.specs_for(label):
                yield label, spec

    def upserts(self, state: NodeState) -> List[Upsert]:
        return [
            Upsert(
                key=DocumentKey(spec.index_name, state.document_id),
                doc_type=label,
                body=project_document(state, spec.properties),
            )
            for label, spec in self._matching_specs(state)
        ]

    def deletes(self, state: NodeState) -> List[Delete]:
        return [
            Delete(key=DocumentKey(spec.index_name, state.document_id), doc_type=label)
            for label, spec in self._matching_specs(state)
        ]

    def stale_deletes(self, change: NodeChange) -> List[Delete]:
        """
        Deletes for indices the node was mapped to before the change but no
        longer is, although it is still relevant to some other index.
        """
        if change.previous is None:
            return []
        current_indices: Set[str] = {
            spec.index_name for _, spec in self._matching_specs(change.current)
        }
        return [
            delete
            for delete in self.deletes(change.previous)
            if delete.key.index_name not in current_indices
        ]

    def translate(
        self,
        created_nodes: Iterable[NodeState] = (),
        deleted_nodes: Iterable[NodeState] = (),
        changed_nodes: Iterable[NodeChange] = (),
    ) -> PendingBatch:
        batch = PendingBatch()

        for state in created_nodes:
            for upsert in self.upserts(state):
                batch.put(upsert)

        for state in deleted_nodes:
            for delete in self.deletes(state):
                batch.put(delete)

        for change in changed_nodes:
            if change.current is None:
                raise TranslationError(
                    f"changed node entry has no current state: {change!r}"
                )
            if self.prune_stale_documents:
                for delete in self.stale_deletes(change):
                    batch.put(delete)
            for upsert in self.upserts(change.current):
                batch.put(upsert)

        return batch

    def translate_transaction(self, transaction: FilteredTransactionData) -> PendingBatch:
        return self.translate(
            transaction.created_nodes,
            transaction.deleted_nodes,
            transaction.changed_nodes,
        )


__all__ = ["MutationTranslator", "project_document"]
