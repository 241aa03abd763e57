"""
Warehouse Adapter Base - Abstract interfaces the engine consumes.

Provides:
    - ObjectLookup: by-code and search lookups, one instance per object kind
    - WarehouseOperations: side-effecting container / label calls
    - RemoteSubmitter: sends a finished fact record to the task server
    - SubmitResult / OperationResult: failures are values, not exceptions

Transport (HTTP, auth, DTO mapping) lives behind these interfaces and is not
owned by the engine. Timeouts are the adapter's responsibility.

Usage:
    from warehouse_operator.adapters.base import RemoteSubmitter
    submitter: RemoteSubmitter = MockWarehouseBackend()
    result = await submitter.submit_fact_action(task_id, fact, endpoint)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, TypeVar
import logging

import warehouse_operator.core.models.domain as dm

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class SubmitResult:
    """Outcome of a remote fact submission."""
    success: bool
    code: int = 200
    message: str = ""

    @classmethod
    def ok(cls) -> 'SubmitResult':
        return cls(success=True)

    @classmethod
    def error(cls, code: int, message: str) -> 'SubmitResult':
        return cls(success=False, code=code, message=message)

    def to_dict(self) -> Dict[str, Any]:
        return {'success': self.success, 'code': self.code, 'message': self.message}


@dataclass
class OperationResult(Generic[T]):
    """Outcome of a side-effecting warehouse call."""
    success: bool
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, value: Optional[T] = None) -> 'OperationResult[T]':
        return cls(success=True, value=value)

    @classmethod
    def failed(cls, error: str) -> 'OperationResult[T]':
        return cls(success=False, error=error)


class ObjectLookup(ABC, Generic[T]):
    """Lookup of one object kind (products, containers, locations)."""

    @abstractmethod
    async def by_code(self, code: str) -> Optional[T]:
        """Find a single object by its scanned code. None when not found."""
        ...

    @abstractmethod
    async def search(self, query: str, filters: Optional[Dict[str, Any]] = None) -> List[T]:
        """Free-text search, narrowed by filters (e.g. zone, allowed ids)."""
        ...


class WarehouseOperations(ABC):
    """Side-effecting calls made while the operator waits on a step."""

    @abstractmethod
    async def create_container(self) -> OperationResult[dm.Container]:
        ...

    @abstractmethod
    async def close_container(self, code: str) -> OperationResult[bool]:
        ...

    @abstractmethod
    async def print_label(self, code: str) -> OperationResult[bool]:
        ...


class RemoteSubmitter(ABC):
    """Task server endpoint receiving fact records."""

    @abstractmethod
    async def submit_fact_action(
        self,
        task_id: str,
        fact: dm.FactRecord,
        endpoint: Optional[str],
    ) -> SubmitResult:
        """
        Send a finished fact record.

        Not idempotent: every call may create a fact server-side.
        """
        ...
