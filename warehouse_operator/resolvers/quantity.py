"""Quantity entry - manual only."""

import math
from typing import Any

import warehouse_operator.core.models.domain as dm
from warehouse_operator.core.models.results import WizardResult
from warehouse_operator.resolvers.base import StepOutcome, StepResolver
from warehouse_operator.wizard.sequencer import WizardStep


class QuantityResolver(StepResolver):
    kind = dm.ObjectKind.QUANTITY

    def accept_value(self, step: WizardStep, value: Any, snapshot: WizardResult) -> StepOutcome:
        if isinstance(value, bool):
            return StepOutcome.failed("Enter a number")
        try:
            quantity = float(str(value).replace(',', '.'))
        except ValueError:
            return StepOutcome.failed(f"Not a number: {value}")

        if not math.isfinite(quantity):
            return StepOutcome.failed(f"Not a number: {value}")
        if not quantity > 0:
            return StepOutcome.failed("Quantity must be greater than zero")
        if not self.context.config.quantity.allow_fractional and not quantity.is_integer():
            return StepOutcome.failed("Quantity must be a whole number")
        return StepOutcome.ok(quantity)

    def merge(self, result: WizardResult, value: Any, step: WizardStep) -> WizardResult:
        return result.with_quantity(value)
