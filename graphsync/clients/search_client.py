from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from elastic_transport import TransportError
from elasticsearch import ApiError, Elasticsearch

from graphsync.indexing.errors import DispatchError
from graphsync.shared.observability import get_logger

logger = get_logger(__name__)

BulkCallback = Callable[[bool, Optional[str]], None]


@dataclass
class BulkResult:
    """Outcome of one bulk request as reported by the search engine."""

    succeeded: bool
    error_message: Optional[str] = None
    took_ms: Optional[int] = None
    item_count: int = 0
    item_errors: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_response(cls, body: Dict[str, Any]) -> "BulkResult":
        items = body.get("items") or []
        item_errors: List[Dict[str, Any]] = []
        for item in items:
            for op_type, outcome in item.items():
                if outcome.get("error"):
                    item_errors.append(
                        {
                            "op_type": op_type,
                            "index": outcome.get("_index"),
                            "id": outcome.get("_id"),
                            "status": outcome.get("status"),
                            "error": outcome.get("error"),
                        }
                    )

        error_message = None
        if item_errors:
            error_message = (
                f"{len(item_errors)} of {len(items)} bulk items failed; first: "
                f"{_describe_item_error(item_errors[0])}"
            )
        elif body.get("errors"):
            error_message = "bulk response reported errors"

        return cls(
            succeeded=error_message is None,
            error_message=error_message,
            took_ms=body.get("took"),
            item_count=len(items),
            item_errors=item_errors,
        )


def _describe_item_error(item_error: Dict[str, Any]) -> str:
    error = item_error.get("error")
    if isinstance(error, dict):
        reason = error.get("reason") or error.get("type") or str(error)
    else:
        reason = str(error)
    return (
        f"{item_error['op_type']} {item_error['index']}/{item_error['id']} "
        f"(status {item_error['status']}): {reason}"
    )


class SearchClient:
    """Bulk-oriented wrapper around the Elasticsearch client.

    Owns a small worker pool so bulk requests can run off the caller's
    thread; completion callbacks run on that pool, never on the caller.
    """

    def __init__(
        self,
        es: Elasticsearch,
        max_workers: int = 4,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self._es = es
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="graphsync-bulk"
        )

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        api_key: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        request_timeout: float = 30.0,
        verify_certs: bool = True,
        max_workers: int = 4,
    ) -> "SearchClient":
        kwargs: Dict[str, Any] = {
            "request_timeout": request_timeout,
            "verify_certs": verify_certs,
        }
        if api_key:
            kwargs["api_key"] = api_key
        elif username:
            kwargs["basic_auth"] = (username, password or "")
        logger.info("Initializing Elasticsearch client", url=url)
        return cls(Elasticsearch(url, **kwargs), max_workers=max_workers)

    @property
    def es(self) -> Elasticsearch:
        return self._es

    def execute(
        self, actions: Sequence[Dict[str, Any]], refresh: Optional[str] = None
    ) -> BulkResult:
        """Send one bulk request and wait for the response.

        Raises:
            DispatchError: if the request fails at the transport or API level
        """
        try:
            response = self._es.bulk(operations=list(actions), refresh=refresh)
        except (ApiError, TransportError) as exc:
            raise DispatchError(f"bulk request failed: {exc}") from exc
        body = response.body if hasattr(response, "body") else response
        return BulkResult.from_response(body)

    def execute_async(
        self,
        actions: Sequence[Dict[str, Any]],
        callback: BulkCallback,
        refresh: Optional[str] = None,
    ) -> Future:
        """Submit a bulk request to the worker pool and return immediately.

        ``callback(success, error_message)`` is invoked on the worker thread
        once the request completes or fails.
        """
        payload = list(actions)
        future = self._executor.submit(self.execute, payload, refresh)

        def _on_done(done: Future) -> None:
            try:
                result = done.result()
            except Exception as exc:
                callback(False, str(exc))
                return
            callback(result.succeeded, result.error_message)

        future.add_done_callback(_on_done)
        return future

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        self._es.close()


__all__ = ["BulkCallback", "BulkResult", "SearchClient"]
