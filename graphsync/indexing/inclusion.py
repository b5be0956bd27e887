# Node inclusion policy: only nodes carrying an indexed label are synchronized.
# Relationships are never indexed.

from typing import Iterable, List, Optional

from .spec import IndexSpecTable
from .transaction import FilteredTransactionData, NodeChange, NodeState, TransactionData


class InclusionFilter:
    """Decides which observed nodes are relevant to the index table."""

    def __init__(self, table: IndexSpecTable):
        self._labels = table.labels()

    def is_relevant(self, labels: Iterable[str]) -> bool:
        return any(label in self._labels for label in labels)

    def include_node(self, state: Optional[NodeState]) -> bool:
        return state is not None and self.is_relevant(state.labels)

    def filter(self, transaction: TransactionData) -> FilteredTransactionData:
        """
        Restrict a transaction snapshot to relevant nodes.

        A changed node is classified by whether it was relevant before and
        after the transaction: relevant on both sides it stays a change; a
        node that stops being relevant is reported as deleted (with its
        previous state); a node that becomes relevant is reported as created.
        """
        created: List[NodeState] = [
            state for state in transaction.created_nodes if self.include_node(state)
        ]
        deleted: List[NodeState] = [
            state for state in transaction.deleted_nodes if self.include_node(state)
        ]
        changed: List[NodeChange] = []

        for change in transaction.changed_nodes:
            was_included = self.include_node(change.previous)
            is_included = self.include_node(change.current)
            if was_included and is_included:
                changed.append(change)
            elif was_included:
                deleted.append(change.previous)
            elif is_included:
                created.append(change.current)

        return FilteredTransactionData(
            created_nodes=tuple(created),
            deleted_nodes=tuple(deleted),
            changed_nodes=tuple(changed),
        )


__all__ = ["InclusionFilter"]
