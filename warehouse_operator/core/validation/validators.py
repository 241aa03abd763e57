"""
Step Validation - decides whether a step's current value is good enough to move past.

Used by the wizard controller before it moves past any step, both for fresh
values and for `advance()` (re-confirming an already recorded value).
"""

import logging
import math
from typing import List, Tuple

from warehouse_operator.core.models.domain import ObjectKind, TargetField
from warehouse_operator.core.models.results import WizardResult
from warehouse_operator.wizard.sequencer import WizardStep

logger = logging.getLogger(__name__)


_CONTAINER_STEP_KINDS = {
    ObjectKind.STORAGE_CONTAINER,
    ObjectKind.PLACEMENT_CONTAINER,
    ObjectKind.CONTAINER_CREATION,
}


class StepValidator:
    """Per-step acceptance rules. Anything not listed here is accepted."""

    @staticmethod
    def validate(step: WizardStep, snapshot: WizardResult) -> Tuple[bool, List[str]]:
        """
        Validate the accumulator snapshot for a step

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []

        if step.kind == ObjectKind.QUANTITY:
            if snapshot.item is None:
                errors.append("Select an item before entering a quantity")
            elif not math.isfinite(snapshot.item.quantity) or not snapshot.item.quantity > 0:
                errors.append("Quantity must be greater than zero")

        elif step.kind == ObjectKind.EXPIRATION_DATE:
            item = snapshot.item
            if item is not None and item.product.requires_expiration and not item.has_expiration_date():
                errors.append(f"Expiration date is required for {item.product.name}")

        elif step.kind in _CONTAINER_STEP_KINDS:
            if step.target == TargetField.SOURCE_CONTAINER and snapshot.source_container is None:
                errors.append("Source container is not selected")
            elif step.target == TargetField.DESTINATION_CONTAINER and snapshot.destination_container is None:
                errors.append("Destination container is not selected")

        return (len(errors) == 0, errors)

    @classmethod
    def accepts(cls, step: WizardStep, snapshot: WizardResult) -> bool:
        is_valid, errors = cls.validate(step, snapshot)
        if not is_valid:
            logger.debug(f"Step {step.id} ({step.kind.value}) rejected: {errors}")
        return is_valid
