"""
Bulk dispatcher: sends a translated batch to the search engine.

Dispatch happens after the graph transaction committed. A failed write to
the search index must never reach the graph store, so every failure is
caught here, reported to the result sink and dropped. There is no retry.
"""

import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable, List, Optional, Protocol

from graphsync.shared.observability import get_logger
from graphsync.shared.observability.metrics import (
    bulk_operations_total,
    dispatch_duration_seconds,
    dispatch_total,
)

from .errors import DispatchError
from .operations import BulkOperation, to_bulk_actions

if TYPE_CHECKING:
    from concurrent.futures import Future

    from graphsync.clients.search_client import SearchClient

logger = get_logger(__name__)


class DispatchMode(str, Enum):
    SYNC = "sync"
    ASYNC = "async"


@dataclass(frozen=True)
class DispatchOutcome:
    """Aggregate result of one dispatched batch."""

    batch_id: str
    mode: DispatchMode
    success: bool
    operation_count: int
    error_message: Optional[str] = None
    duration_seconds: Optional[float] = None


class ResultSink(Protocol):
    def record(self, outcome: DispatchOutcome) -> None:
        ...


class LoggingResultSink:
    """Logs dispatch outcomes and keeps the dispatch counters current."""

    def record(self, outcome: DispatchOutcome) -> None:
        status = "success" if outcome.success else "failure"
        dispatch_total.labels(mode=outcome.mode.value, status=status).inc()
        if outcome.duration_seconds is not None:
            dispatch_duration_seconds.labels(mode=outcome.mode.value).observe(
                outcome.duration_seconds
            )

        if outcome.success:
            logger.debug(
                "bulk_dispatch_succeeded",
                batch_id=outcome.batch_id,
                mode=outcome.mode.value,
                operations=outcome.operation_count,
            )
        else:
            logger.warning(
                f"Search index update failed: {outcome.error_message}",
                batch_id=outcome.batch_id,
                mode=outcome.mode.value,
                operations=outcome.operation_count,
                error=outcome.error_message,
            )


class BulkDispatcher:
    """Packs operations into one bulk request and submits it once."""

    def __init__(
        self,
        client: "SearchClient",
        mode: DispatchMode = DispatchMode.ASYNC,
        sink: Optional[ResultSink] = None,
        include_document_type: bool = False,
        refresh: Optional[str] = None,
    ):
        self.client = client
        self.mode = DispatchMode(mode)
        self.sink = sink or LoggingResultSink()
        self.include_document_type = include_document_type
        self.refresh = refresh

    def dispatch(
        self,
        batch: Iterable[BulkOperation],
        mode: Optional[DispatchMode] = None,
    ) -> Optional["Future"]:
        """
        Send ``batch`` as a single bulk request.

        Returns the pending future in async mode, None otherwise. An empty
        batch makes no request at all.
        """
        operations: List[BulkOperation] = list(batch)
        if not operations:
            return None

        mode = DispatchMode(mode) if mode is not None else self.mode
        batch_id = uuid.uuid4().hex
        for operation in operations:
            bulk_operations_total.labels(op_type=operation.op_type).inc()

        try:
            actions = to_bulk_actions(operations, self.include_document_type)
            if mode is DispatchMode.ASYNC:
                return self._dispatch_async(batch_id, operations, actions)
            self._dispatch_sync(batch_id, operations, actions)
        except Exception as exc:
            # Submission itself failed (e.g. the worker pool is shut down)
            self._report(batch_id, mode, operations, False, str(exc), None)
        return None

    def _dispatch_sync(self, batch_id, operations, actions) -> None:
        started = time.perf_counter()
        try:
            result = self.client.execute(actions, refresh=self.refresh)
        except DispatchError as exc:
            self._report(
                batch_id,
                DispatchMode.SYNC,
                operations,
                False,
                str(exc),
                time.perf_counter() - started,
            )
            return
        self._report(
            batch_id,
            DispatchMode.SYNC,
            operations,
            result.succeeded,
            result.error_message,
            time.perf_counter() - started,
        )

    def _dispatch_async(self, batch_id, operations, actions) -> "Future":
        started = time.perf_counter()

        def _completed(success: bool, error_message: Optional[str]) -> None:
            self._report(
                batch_id,
                DispatchMode.ASYNC,
                operations,
                success,
                error_message,
                time.perf_counter() - started,
            )

        return self.client.execute_async(actions, _completed, refresh=self.refresh)

    def _report(
        self, batch_id, mode, operations, success, error_message, duration
    ) -> None:
        outcome = DispatchOutcome(
            batch_id=batch_id,
            mode=mode,
            success=success,
            operation_count=len(operations),
            error_message=error_message,
            duration_seconds=duration,
        )
        try:
            self.sink.record(outcome)
        except Exception:
            logger.exception("result_sink_failed", batch_id=batch_id)


__all__ = [
    "BulkDispatcher",
    "DispatchMode",
    "DispatchOutcome",
    "LoggingResultSink",
    "ResultSink",
]
