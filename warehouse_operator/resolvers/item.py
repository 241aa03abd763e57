"""
Item selection - resolves which product the operator is handling.

A FROM_PLAN step only accepts products planned on the action. The item
record starts with quantity 0; a quantity step fills it in.
"""

from typing import Any, List
import logging

import warehouse_operator.core.models.domain as dm
from warehouse_operator.core.models.results import WizardResult
from warehouse_operator.resolvers.base import StepOutcome, StepResolver
from warehouse_operator.wizard.sequencer import WizardStep

logger = logging.getLogger(__name__)


class ItemResolver(StepResolver):
    kind = dm.ObjectKind.ITEM
    supports_scan = True
    supports_search = True

    async def _from_scan(self, step: WizardStep, code: str, snapshot: WizardResult) -> StepOutcome:
        lookup = self.context.products
        if lookup is None:
            return StepOutcome.failed("Product lookup is not available")

        product = await lookup.by_code(code)
        if product is None:
            return StepOutcome.failed(f"Product not found: {code}")
        return self.accept_value(step, product, snapshot)

    async def _search(self, step: WizardStep, query: str, snapshot: WizardResult) -> List[dm.Product]:
        lookup = self.context.products
        if lookup is None:
            return []
        filters = {}
        allowed = self._allowed_ids(step)
        if allowed is not None:
            filters['id'] = allowed
        return await lookup.search(query, filters)

    def accept_value(self, step: WizardStep, value: Any, snapshot: WizardResult) -> StepOutcome:
        if isinstance(value, dm.TaskProduct):
            product = value.product
        elif isinstance(value, dm.Product):
            product = value
        else:
            return StepOutcome.failed("Select a product")

        allowed = self._allowed_ids(step)
        if allowed is not None and product.id not in allowed:
            logger.info(f"Product {product.id} rejected: not planned on action {self.action.id}")
            return StepOutcome.failed(f"{product.name} is not part of this task")
        return StepOutcome.ok(value)

    def merge(self, result: WizardResult, value: Any, step: WizardStep) -> WizardResult:
        if isinstance(value, dm.TaskProduct):
            return result.with_item(value)
        return result.with_product(value)

    def _allowed_ids(self, step: WizardStep):
        """Planned product ids, or None when any product is acceptable."""
        if not self._is_from_plan(step):
            return None
        planned = self.action.planned_product_ids()
        return planned or None
