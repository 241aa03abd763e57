"""
Side-effecting container steps: creation, closing, label printing.

The operator waits on the remote call. On success the step forwards the
container itself (closing forwards it marked closed); on failure the step
stays active with the error.
"""

from typing import Any
import logging

import warehouse_operator.core.models.domain as dm
from warehouse_operator.core.models.results import WizardResult
from warehouse_operator.resolvers.base import StepOutcome, StepResolver
from warehouse_operator.wizard.sequencer import WizardStep

logger = logging.getLogger(__name__)


class _ContainerOperationResolver(StepResolver):
    supports_action = True

    def accept_value(self, step: WizardStep, value: Any, snapshot: WizardResult) -> StepOutcome:
        if not isinstance(value, dm.Container):
            return StepOutcome.failed("Select a pallet")
        return StepOutcome.ok(value)

    def merge(self, result: WizardResult, value: Any, step: WizardStep) -> WizardResult:
        return result.with_container(step.target, value)

    def _operations(self):
        if self.context.operations is None:
            raise RuntimeError("Warehouse operations are not available")
        return self.context.operations


class ContainerCreationResolver(_ContainerOperationResolver):
    kind = dm.ObjectKind.CONTAINER_CREATION

    async def _perform(self, step: WizardStep, snapshot: WizardResult) -> StepOutcome:
        result = await self._operations().create_container()
        if not result.success or result.value is None:
            return StepOutcome.failed(result.error or "Pallet was not created")
        logger.info(f"Step {step.id}: created pallet {result.value.code} for {step.target.value}")
        return StepOutcome.ok(result.value)


class ContainerClosingResolver(_ContainerOperationResolver):
    kind = dm.ObjectKind.CONTAINER_CLOSING

    async def _perform(self, step: WizardStep, snapshot: WizardResult) -> StepOutcome:
        container = snapshot.container_for(step.target)
        if container is None:
            return StepOutcome.failed("No pallet to close")

        result = await self._operations().close_container(container.code)
        if not result.success:
            return StepOutcome.failed(result.error or f"Pallet {container.code} was not closed")
        logger.info(f"Step {step.id}: closed pallet {container.code}")
        return StepOutcome.ok(container.closed())


class LabelPrintingResolver(_ContainerOperationResolver):
    kind = dm.ObjectKind.LABEL_PRINTING

    async def _perform(self, step: WizardStep, snapshot: WizardResult) -> StepOutcome:
        container = snapshot.container_for(step.target)
        if container is None:
            return StepOutcome.failed("No pallet to print a label for")

        result = await self._operations().print_label(container.code)
        if not result.success:
            return StepOutcome.failed(result.error or f"Label for {container.code} was not printed")
        return StepOutcome.ok(container)

    def merge(self, result: WizardResult, value: Any, step: WizardStep) -> WizardResult:
        return super().merge(result, value, step).with_extra('label_printed', value.code)
