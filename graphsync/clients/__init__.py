from graphsync.clients.search_client import BulkResult, SearchClient

__all__ = ["BulkResult", "SearchClient"]
