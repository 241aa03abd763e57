"""Condition selection - standard / defective / expired."""

from typing import Any, List

import warehouse_operator.core.models.domain as dm
from warehouse_operator.core.models.results import WizardResult
from warehouse_operator.resolvers.base import StepOutcome, StepResolver
from warehouse_operator.wizard.sequencer import WizardStep


class ConditionResolver(StepResolver):
    kind = dm.ObjectKind.CONDITION
    supports_search = True

    async def _search(self, step: WizardStep, query: str, snapshot: WizardResult) -> List[dm.ProductStatus]:
        query = (query or "").strip().lower()
        return [s for s in dm.ProductStatus if not query or query in s.value]

    def accept_value(self, step: WizardStep, value: Any, snapshot: WizardResult) -> StepOutcome:
        if isinstance(value, dm.ProductStatus):
            return StepOutcome.ok(value)
        if isinstance(value, str):
            key = value.strip().lower()
            for status in dm.ProductStatus:
                if key in (status.value, status.name.lower()):
                    return StepOutcome.ok(status)
        return StepOutcome.failed(f"Unknown condition: {value}")

    def merge(self, result: WizardResult, value: Any, step: WizardStep) -> WizardResult:
        return result.with_status(value)
