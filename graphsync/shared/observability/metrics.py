# Prometheus metrics for graph-to-search-index synchronization

from prometheus_client import Counter, Histogram, Info, generate_latest

from .logging import get_logger

logger = get_logger(__name__)

# ===== Translation metrics =====
transactions_total = Counter(
    "graphsync_transactions_total",
    "Committed transactions seen by the sync handler",
    ["outcome"],  # translated | skipped
)

bulk_operations_total = Counter(
    "graphsync_bulk_operations_total",
    "Bulk operations produced by the mutation translator",
    ["op_type"],  # index | delete
)

# ===== Dispatch metrics =====
dispatch_total = Counter(
    "graphsync_dispatch_total",
    "Bulk requests dispatched to the search engine",
    ["mode", "status"],
)

dispatch_duration_seconds = Histogram(
    "graphsync_dispatch_duration_seconds",
    "Bulk request round-trip duration in seconds",
    ["mode"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# ===== Backfill metrics =====
backfill_documents_total = Counter(
    "graphsync_backfill_documents_total",
    "Documents sent to the search engine by the backfill importer",
    ["index_name"],
)

service_info = Info("graphsync_service", "Sync component information")


def setup_metrics(service_name: str, version: str) -> None:
    """
    Setup Prometheus metrics collection.

    Args:
        service_name: Name reported in the service info metric
        version: Package version
    """
    service_info.info({"version": version, "service_name": service_name})
    logger.info("Prometheus metrics enabled", service_name=service_name)


def get_metrics() -> bytes:
    """
    Get current metrics in Prometheus exposition format.

    Returns:
        Metrics as bytes
    """
    return generate_latest()
