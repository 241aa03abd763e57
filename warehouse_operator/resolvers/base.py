"""
Step Resolver Base - turns a scan, a manual value or a remote call into a step value.

Provides:
    - StepOutcome: success/failure value returned by every resolver call
    - ResolverContext: the planned action plus the lookups and operations a resolver may use
    - StepResolver: base class, one subclass per object kind
    - SKIPPED: value recorded for an optional step the operator skipped

Resolvers never raise for operator-facing problems (not found, invalid
input, remote failure): they return StepOutcome.failed(message) and the
step stays active. Adapter exceptions are caught here and converted.

Each resolver runs at most one remote call per step at a time; a second
call for the same step while one is outstanding returns an ignored outcome.

Usage:
    resolver = registry.get(ObjectKind.ITEM)
    outcome = await resolver.resolve_scan(step, "4600000000017", snapshot)
    if outcome.success:
        result = resolver.merge(result, outcome.value, step)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set
import logging

import warehouse_operator.core.models.domain as dm
from warehouse_operator.adapters.base import ObjectLookup, WarehouseOperations
from warehouse_operator.config.wizard_config_loader import WizardConfig
from warehouse_operator.core.models.results import WizardResult
from warehouse_operator.wizard.sequencer import WizardStep

logger = logging.getLogger(__name__)


class _Skipped:
    def __repr__(self):
        return 'SKIPPED'


SKIPPED = _Skipped()


@dataclass
class StepOutcome:
    """Result of one resolution attempt."""
    success: bool
    value: Any = None
    error: Optional[str] = None
    ignored: bool = False          # dropped by the single-flight guard

    @classmethod
    def ok(cls, value: Any) -> 'StepOutcome':
        return cls(success=True, value=value)

    @classmethod
    def failed(cls, error: str) -> 'StepOutcome':
        return cls(success=False, error=error)

    @classmethod
    def busy(cls) -> 'StepOutcome':
        return cls(success=False, error="Request already in progress", ignored=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'value': repr(self.value) if self.value is not None else None,
            'error': self.error,
            'ignored': self.ignored,
        }


@dataclass
class ResolverContext:
    """Everything a resolver may consult for one wizard."""
    action: dm.PlannedAction
    products: Optional[ObjectLookup[dm.Product]] = None
    containers: Optional[ObjectLookup[dm.Container]] = None
    locations: Optional[ObjectLookup[dm.Location]] = None
    operations: Optional[WarehouseOperations] = None
    config: WizardConfig = field(default_factory=WizardConfig)


class StepResolver(ABC):
    """
    Base resolver.

    Subclasses set the capability flags they support and override the
    matching hook (_from_scan, _search, _perform). accept_value() checks a
    manually supplied value; merge() writes an accepted value into the result.
    """

    kind: dm.ObjectKind = None
    supports_scan: bool = False
    supports_search: bool = False
    supports_action: bool = False

    def __init__(self, context: ResolverContext):
        self.context = context
        self._in_progress: Set[str] = set()

    @property
    def action(self) -> dm.PlannedAction:
        return self.context.action

    def is_busy(self, step: WizardStep) -> bool:
        return step.id in self._in_progress

    # -----------------------------------------------------------------
    # Entry points used by the controller
    # -----------------------------------------------------------------

    async def resolve_scan(self, step: WizardStep, code: str, snapshot: WizardResult) -> StepOutcome:
        if not self.supports_scan:
            return StepOutcome.failed("Scanning is not available for this step")
        return await self._guarded(step, 'scan', lambda: self._from_scan(step, code, snapshot))

    async def search(self, step: WizardStep, query: str, snapshot: WizardResult) -> List[Any]:
        if not self.supports_search:
            return []
        outcome = await self._guarded(step, 'search', lambda: self._search_outcome(step, query, snapshot))
        return outcome.value if outcome.success else []

    async def perform(self, step: WizardStep, snapshot: WizardResult) -> StepOutcome:
        if not self.supports_action:
            return StepOutcome.failed("This step has no action to perform")
        return await self._guarded(step, 'action', lambda: self._perform(step, snapshot))

    def accept_value(self, step: WizardStep, value: Any, snapshot: WizardResult) -> StepOutcome:
        """Check a manually supplied value. Default: accept as is."""
        return StepOutcome.ok(value)

    @abstractmethod
    def merge(self, result: WizardResult, value: Any, step: WizardStep) -> WizardResult:
        """Write an accepted value into the step's field group."""
        ...

    # -----------------------------------------------------------------
    # Hooks
    # -----------------------------------------------------------------

    async def _from_scan(self, step: WizardStep, code: str, snapshot: WizardResult) -> StepOutcome:
        return StepOutcome.failed("Scanning is not available for this step")

    async def _search(self, step: WizardStep, query: str, snapshot: WizardResult) -> List[Any]:
        return []

    async def _perform(self, step: WizardStep, snapshot: WizardResult) -> StepOutcome:
        return StepOutcome.failed("This step has no action to perform")

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------

    async def _search_outcome(self, step: WizardStep, query: str, snapshot: WizardResult) -> StepOutcome:
        return StepOutcome.ok(await self._search(step, query, snapshot))

    async def _guarded(
        self,
        step: WizardStep,
        what: str,
        call: Callable[[], Awaitable[StepOutcome]],
    ) -> StepOutcome:
        if step.id in self._in_progress:
            logger.debug(f"Step {step.id}: {what} ignored, request already in progress")
            return StepOutcome.busy()

        self._in_progress.add(step.id)
        try:
            return await call()
        except Exception as e:
            logger.error(f"Step {step.id} ({step.kind.value}) {what} failed: {e}")
            return StepOutcome.failed(f"Request failed: {e}")
        finally:
            self._in_progress.discard(step.id)

    @staticmethod
    def _is_from_plan(step: WizardStep) -> bool:
        return step.step.selection_condition == dm.SelectionCondition.FROM_PLAN

    @staticmethod
    def _zone(step: WizardStep) -> Optional[str]:
        return step.step.params.get('zone') or None
