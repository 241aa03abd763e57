"""
Container selection - storage (source) and placement (destination) pallets.

Both resolve by scan or zone-filtered search and write into the field group
the step targets. A FROM_PLAN step only accepts the pallet planned on the
action for that group, when one is planned.
"""

from typing import Any, List, Optional
import logging

import warehouse_operator.core.models.domain as dm
from warehouse_operator.core.models.results import WizardResult
from warehouse_operator.resolvers.base import StepOutcome, StepResolver
from warehouse_operator.wizard.sequencer import WizardStep

logger = logging.getLogger(__name__)


class ContainerSelectionResolver(StepResolver):
    """Shared scan / search / plan rules for container steps."""

    supports_scan = True
    supports_search = True
    allow_closed = True

    async def _from_scan(self, step: WizardStep, code: str, snapshot: WizardResult) -> StepOutcome:
        lookup = self.context.containers
        if lookup is None:
            return StepOutcome.failed("Container lookup is not available")

        container = await lookup.by_code(code)
        if container is None:
            return StepOutcome.failed(f"Pallet not found: {code}")
        return self.accept_value(step, container, snapshot)

    async def _search(self, step: WizardStep, query: str, snapshot: WizardResult) -> List[dm.Container]:
        lookup = self.context.containers
        if lookup is None:
            return []
        filters = {'zone': self._zone(step)}
        planned = self._planned(step)
        if self._is_from_plan(step) and planned is not None:
            filters['code'] = {planned.code}
        return await lookup.search(query, filters)

    def accept_value(self, step: WizardStep, value: Any, snapshot: WizardResult) -> StepOutcome:
        if not isinstance(value, dm.Container):
            return StepOutcome.failed("Select a pallet")

        planned = self._planned(step)
        if self._is_from_plan(step) and planned is not None and planned.code != value.code:
            logger.info(f"Pallet {value.code} rejected: action {self.action.id} plans {planned.code}")
            return StepOutcome.failed(f"Pallet {value.code} is not planned, expected {planned.code}")

        zone = self._zone(step)
        if zone and value.zone and value.zone != zone:
            return StepOutcome.failed(f"Pallet {value.code} is not in zone {zone}")

        if value.is_closed and not self.allow_closed:
            return StepOutcome.failed(f"Pallet {value.code} is closed")
        return StepOutcome.ok(value)

    def merge(self, result: WizardResult, value: Any, step: WizardStep) -> WizardResult:
        return result.with_container(step.target, value)

    def _planned(self, step: WizardStep) -> Optional[dm.Container]:
        if step.target == dm.TargetField.SOURCE_CONTAINER:
            return self.action.source_container
        if step.target == dm.TargetField.DESTINATION_CONTAINER:
            return self.action.destination_container
        return None


class StorageContainerResolver(ContainerSelectionResolver):
    kind = dm.ObjectKind.STORAGE_CONTAINER


class PlacementContainerResolver(ContainerSelectionResolver):
    kind = dm.ObjectKind.PLACEMENT_CONTAINER
    allow_closed = False
