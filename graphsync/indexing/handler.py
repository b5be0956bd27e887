"""
Transaction hooks for keeping the search index in sync.

The embedding application calls ``before_commit`` from the graph store's
pre-commit hook, while the transaction still holds its locks, and passes the
returned operations to ``after_commit`` once the transaction is durable.
Nothing is sent for a transaction that rolls back.
"""

from typing import List, Optional

from graphsync.shared.observability import get_logger
from graphsync.shared.observability.metrics import transactions_total

from .dispatcher import BulkDispatcher
from .inclusion import InclusionFilter
from .operations import BulkOperation
from .spec import IndexSpecTable
from .transaction import TransactionData
from .translator import MutationTranslator

logger = get_logger(__name__)


class IndexSyncHandler:
    def __init__(
        self,
        table: IndexSpecTable,
        dispatcher: BulkDispatcher,
        prune_stale_documents: bool = False,
    ):
        self.table = table
        self.dispatcher = dispatcher
        self.inclusion = InclusionFilter(table)
        self.translator = MutationTranslator(
            table, prune_stale_documents=prune_stale_documents
        )

    def before_commit(self, transaction: TransactionData) -> List[BulkOperation]:
        filtered = self.inclusion.filter(transaction)
        if filtered.is_empty():
            return []
        return self.translator.translate_transaction(filtered).operations()

    def after_commit(
        self,
        transaction: Optional[TransactionData],
        operations: List[BulkOperation],
    ):
        if not operations:
            transactions_total.labels(outcome="skipped").inc()
            return None
        transactions_total.labels(outcome="translated").inc()
        logger.debug("dispatching_index_updates", operations=len(operations))
        return self.dispatcher.dispatch(operations)

    def after_rollback(
        self,
        transaction: Optional[TransactionData],
        operations: List[BulkOperation],
    ) -> None:
        logger.debug("transaction_rolled_back", discarded=len(operations or ()))


__all__ = ["IndexSyncHandler"]
