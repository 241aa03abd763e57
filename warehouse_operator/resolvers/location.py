"""Bin selection - destination location, optionally restricted to a zone."""

from typing import Any, List
import logging

import warehouse_operator.core.models.domain as dm
from warehouse_operator.core.models.results import WizardResult
from warehouse_operator.resolvers.base import StepOutcome, StepResolver
from warehouse_operator.wizard.sequencer import WizardStep

logger = logging.getLogger(__name__)


class LocationResolver(StepResolver):
    kind = dm.ObjectKind.LOCATION
    supports_scan = True
    supports_search = True

    async def _from_scan(self, step: WizardStep, code: str, snapshot: WizardResult) -> StepOutcome:
        lookup = self.context.locations
        if lookup is None:
            return StepOutcome.failed("Bin lookup is not available")

        location = await lookup.by_code(code)
        if location is None:
            return StepOutcome.failed(f"Bin not found: {code}")
        return self.accept_value(step, location, snapshot)

    async def _search(self, step: WizardStep, query: str, snapshot: WizardResult) -> List[dm.Location]:
        lookup = self.context.locations
        if lookup is None:
            return []
        return await lookup.search(query, {'zone': self._zone(step)})

    def accept_value(self, step: WizardStep, value: Any, snapshot: WizardResult) -> StepOutcome:
        if not isinstance(value, dm.Location):
            return StepOutcome.failed("Select a bin")

        zone = self._zone(step)
        if zone and value.zone != zone:
            return StepOutcome.failed(f"Bin {value.code} is not in zone {zone}")

        planned = self.action.destination_location
        if self._is_from_plan(step) and planned is not None and planned.code != value.code:
            logger.info(f"Bin {value.code} rejected: action {self.action.id} plans {planned.code}")
            return StepOutcome.failed(f"Bin {value.code} is not planned, expected {planned.code}")
        return StepOutcome.ok(value)

    def merge(self, result: WizardResult, value: Any, step: WizardStep) -> WizardResult:
        return result.with_destination_location(value)
