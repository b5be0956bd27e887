# Test fixtures for graph-to-search-index synchronization
# In-memory stand-ins for Elasticsearch and the Neo4j driver; no services needed.

import os
import sys
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set test environment
os.environ["ENV"] = "development"
os.environ.setdefault("NEO4J_PASSWORD", "testpassword123")

INDEX = "test-index"
LABEL = "Label"


class FakeElasticsearch:
    """Applies bulk operations to an in-memory document store."""

    def __init__(self):
        self.documents: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.requests: List[List[Dict[str, Any]]] = []
        self.refresh_args: List[Optional[str]] = []
        self.raise_on_bulk: Optional[Exception] = None
        self.failing_ids: set = set()
        self.closed = False
        self._lock = threading.Lock()

    def bulk(self, operations, refresh=None):
        if self.raise_on_bulk is not None:
            raise self.raise_on_bulk
        with self._lock:
            self.requests.append(list(operations))
            self.refresh_args.append(refresh)
            items = []
            lines = iter(operations)
            for action in lines:
                (op_type, meta), = action.items()
                key = (meta["_index"], meta["_id"])
                outcome = {"_index": key[0], "_id": key[1]}
                if key[1] in self.failing_ids:
                    if op_type == "index":
                        next(lines)
                    outcome.update(
                        status=400,
                        error={"type": "mapper_parsing_exception", "reason": "bad doc"},
                    )
                elif op_type == "index":
                    self.documents[key] = next(lines)
                    outcome.update(status=201, result="created")
                elif op_type == "delete":
                    if self.documents.pop(key, None) is None:
                        outcome.update(status=404, result="not_found")
                    else:
                        outcome.update(status=200, result="deleted")
                items.append({op_type: outcome})
            return {
                "took": 3,
                "errors": any("error" in next(iter(i.values())) for i in items),
                "items": items,
            }

    def get_source(self, index: str, document_id: str) -> Optional[Dict[str, Any]]:
        return self.documents.get((index, document_id))

    def close(self):
        self.closed = True


class RecordingSink:
    """Collects dispatch outcomes; lets tests wait for async completions."""

    def __init__(self):
        self.outcomes = []
        self._event = threading.Event()

    def record(self, outcome):
        self.outcomes.append(outcome)
        self._event.set()

    def wait(self, timeout: float = 5.0):
        assert self._event.wait(timeout), "no dispatch outcome recorded"
        return self.outcomes[-1]


@pytest.fixture
def fake_es():
    return FakeElasticsearch()


@pytest.fixture
def search_client(fake_es):
    from graphsync.clients.search_client import SearchClient

    client = SearchClient(fake_es, max_workers=2)
    yield client
    client.close()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def table():
    from graphsync.indexing.spec import IndexSpecTable

    return IndexSpecTable.load(f"{INDEX}:{LABEL}(foo,bar)")
