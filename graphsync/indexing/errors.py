"""
Exception hierarchy for graph-to-search-index synchronization.

ConfigError is fatal at startup. TranslationError signals a malformed
transaction snapshot from the graph store and is never handled by the core.
DispatchError covers transport failures and item-level failures reported by
the search engine; the dispatcher always catches and logs it.
"""

from typing import Optional


class GraphSyncError(Exception):
    """Base class for all graphsync errors."""


class ConfigError(GraphSyncError):
    """Raised when the sync configuration cannot be loaded."""


class IndexSpecParseError(ConfigError):
    """Raised when an index specification string is malformed."""

    def __init__(self, message: str, spec_text: Optional[str] = None):
        self.spec_text = spec_text
        if spec_text is not None:
            message = f"{message} (in index spec {spec_text!r})"
        super().__init__(message)


# Short name used by callers of IndexSpecTable.load
ParseError = IndexSpecParseError


class TranslationError(GraphSyncError):
    """Raised when a transaction snapshot violates its contract."""


class DispatchError(GraphSyncError):
    """Raised by the search client when a bulk request fails."""

    def __init__(self, message: str, item_errors: Optional[list] = None):
        super().__init__(message)
        self.item_errors = item_errors or []


__all__ = [
    "GraphSyncError",
    "ConfigError",
    "IndexSpecParseError",
    "ParseError",
    "TranslationError",
    "DispatchError",
]
