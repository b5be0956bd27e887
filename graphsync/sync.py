"""
Wiring for the sync handler.

Typical embedding::

    config, settings = init_config()
    setup_logging(settings.log_level)
    manager = ConnectionManager(settings, config)
    handler = build_sync_handler(config, manager.get_search_client())

    # inside the graph store's transaction hooks
    state = handler.before_commit(tx_data)
    handler.after_commit(tx_data, state)
"""

from typing import Optional

from graphsync.clients.search_client import SearchClient
from graphsync.indexing.dispatcher import BulkDispatcher, ResultSink
from graphsync.indexing.handler import IndexSyncHandler
from graphsync.shared.config import Config, load_index_spec_table
from graphsync.shared.observability import get_logger, setup_metrics

logger = get_logger(__name__)


def build_sync_handler(
    config: Config,
    search_client: SearchClient,
    sink: Optional[ResultSink] = None,
) -> IndexSyncHandler:
    """Create a handler from configuration and an owned search client."""
    table = load_index_spec_table(config)
    if config.monitoring.metrics_enabled:
        setup_metrics(config.app.name, config.app.version)
    dispatcher = BulkDispatcher(
        search_client,
        mode=config.dispatch.mode,
        sink=sink,
        include_document_type=config.dispatch.include_document_type,
        refresh=config.dispatch.refresh,
    )
    logger.info(
        "Index sync handler ready",
        labels=sorted(table.labels()),
        mode=config.dispatch.mode.value,
        prune_stale_documents=config.indexing.prune_stale_documents,
    )
    return IndexSyncHandler(
        table,
        dispatcher,
        prune_stale_documents=config.indexing.prune_stale_documents,
    )


__all__ = ["build_sync_handler"]
