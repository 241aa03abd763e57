"""
Mock Warehouse Backend - in-memory lookups, container operations and submitter.

Used by the CLI and by tests. Failures can be scripted:

    backend = MockWarehouseBackend()
    backend.fail_next_submission(500, "timeout")
    result = await backend.submit_fact_action("t-1", fact, "/tasks")
    # result.success is False, backend.submissions holds the attempt
"""

from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, Tuple
import asyncio
import logging

import warehouse_operator.core.models.domain as dm
from warehouse_operator.adapters.base import (
    ObjectLookup, OperationResult, RemoteSubmitter, SubmitResult, T, WarehouseOperations,
)

logger = logging.getLogger(__name__)


class InMemoryLookup(ObjectLookup[T], Generic[T]):
    """
    Lookup over a fixed list of objects.

    Args:
        objects: Objects to serve
        code_of: Extracts the scannable code of an object
        text_of: Extracts searchable text (defaults to code_of)
        delay: Artificial latency in seconds
    """

    def __init__(
        self,
        objects: Iterable[T],
        code_of: Callable[[T], str],
        text_of: Optional[Callable[[T], str]] = None,
        delay: float = 0.0,
    ):
        self.objects = list(objects)
        self.code_of = code_of
        self.text_of = text_of or code_of
        self.delay = delay
        self.calls: List[Tuple[str, Any]] = []

    async def by_code(self, code: str) -> Optional[T]:
        self.calls.append(('by_code', code))
        if self.delay:
            await asyncio.sleep(self.delay)
        for obj in self.objects:
            if self.code_of(obj) == code:
                return obj
        return None

    async def search(self, query: str, filters: Optional[Dict[str, Any]] = None) -> List[T]:
        self.calls.append(('search', query))
        if self.delay:
            await asyncio.sleep(self.delay)
        query = (query or "").strip().lower()
        matches = []
        for obj in self.objects:
            if query and query not in self.text_of(obj).lower():
                continue
            if not _matches_filters(obj, filters or {}):
                continue
            matches.append(obj)
        return matches


def _matches_filters(obj: Any, filters: Dict[str, Any]) -> bool:
    for key, expected in filters.items():
        if expected is None:
            continue
        actual = getattr(obj, key, None)
        if isinstance(expected, (set, frozenset, list, tuple)):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True


def product_lookup(products: Iterable[dm.Product], delay: float = 0.0) -> InMemoryLookup[dm.Product]:
    return InMemoryLookup(
        products,
        code_of=lambda p: p.barcode,
        text_of=lambda p: f"{p.name} {p.article_number} {p.barcode}",
        delay=delay,
    )


def container_lookup(containers: Iterable[dm.Container], delay: float = 0.0) -> InMemoryLookup[dm.Container]:
    return InMemoryLookup(containers, code_of=lambda c: c.code, delay=delay)


def location_lookup(locations: Iterable[dm.Location], delay: float = 0.0) -> InMemoryLookup[dm.Location]:
    return InMemoryLookup(
        locations,
        code_of=lambda b: b.code,
        text_of=lambda b: f"{b.code} {b.zone}",
        delay=delay,
    )


class MockWarehouseBackend(WarehouseOperations, RemoteSubmitter):
    """In-memory task server: container operations plus fact submission."""

    def __init__(self, delay: float = 0.0, container_prefix: str = "PAL"):
        self.delay = delay
        self.container_prefix = container_prefix
        self.submissions: List[Tuple[str, dm.FactRecord, Optional[str]]] = []
        self.created: List[dm.Container] = []
        self.closed_codes: List[str] = []
        self.printed_codes: List[str] = []
        self._scripted_failures: List[SubmitResult] = []
        self._failing_operations: Dict[str, str] = {}
        self._sequence = 0

    # -----------------------------------------------------------------
    # Scripting
    # -----------------------------------------------------------------

    def fail_next_submission(self, code: int, message: str, times: int = 1) -> None:
        for _ in range(times):
            self._scripted_failures.append(SubmitResult.error(code, message))

    def fail_operation(self, name: str, error: str) -> None:
        """Make create_container / close_container / print_label fail until cleared."""
        self._failing_operations[name] = error

    def clear_failures(self) -> None:
        self._scripted_failures.clear()
        self._failing_operations.clear()

    # -----------------------------------------------------------------
    # WarehouseOperations
    # -----------------------------------------------------------------

    async def create_container(self) -> OperationResult[dm.Container]:
        await self._latency()
        if 'create_container' in self._failing_operations:
            return OperationResult.failed(self._failing_operations['create_container'])
        self._sequence += 1
        container = dm.Container(code=f"{self.container_prefix}{self._sequence:06d}")
        self.created.append(container)
        logger.info(f"[MOCK] Created container {container.code}")
        return OperationResult.ok(container)

    async def close_container(self, code: str) -> OperationResult[bool]:
        await self._latency()
        if 'close_container' in self._failing_operations:
            return OperationResult.failed(self._failing_operations['close_container'])
        self.closed_codes.append(code)
        logger.info(f"[MOCK] Closed container {code}")
        return OperationResult.ok(True)

    async def print_label(self, code: str) -> OperationResult[bool]:
        await self._latency()
        if 'print_label' in self._failing_operations:
            return OperationResult.failed(self._failing_operations['print_label'])
        self.printed_codes.append(code)
        logger.info(f"[MOCK] Printed label for {code}")
        return OperationResult.ok(True)

    # -----------------------------------------------------------------
    # RemoteSubmitter
    # -----------------------------------------------------------------

    async def submit_fact_action(
        self,
        task_id: str,
        fact: dm.FactRecord,
        endpoint: Optional[str],
    ) -> SubmitResult:
        await self._latency()
        self.submissions.append((task_id, fact, endpoint))
        if self._scripted_failures:
            result = self._scripted_failures.pop(0)
            logger.info(f"[MOCK] Rejected fact {fact.id} for task {task_id}: {result.message}")
            return result
        logger.info(f"[MOCK] Accepted fact {fact.id} for task {task_id} at {endpoint}")
        return SubmitResult.ok()

    async def _latency(self) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
