"""
Wizard Result - field-addressed accumulator of resolved step values.

Every writer returns a new WizardResult and touches exactly one field group:
    item                    (item + quantity + condition + expiry, one sub-object)
    source_container
    destination_container
    destination_location
    extras                  (generic key/value data)

Writers against the item record merge into the existing TaskProduct, so
`with_quantity(...)` followed by `with_expiration(...)` keeps the quantity.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, Optional

from warehouse_operator.core.models.domain import (
    Container, Location, Product, ProductStatus, TargetField, TaskProduct,
)


@dataclass(frozen=True)
class WizardResult:
    """Snapshot of everything resolved so far."""
    item: Optional[TaskProduct] = None
    source_container: Optional[Container] = None
    destination_container: Optional[Container] = None
    destination_location: Optional[Location] = None
    extras: Dict[str, Any] = field(default_factory=dict)

    # -----------------------------------------------------------------
    # Item record
    # -----------------------------------------------------------------

    def with_item(self, item: TaskProduct) -> 'WizardResult':
        return replace(self, item=item)

    def with_product(self, product: Product) -> 'WizardResult':
        """Select a product, keeping quantity/condition/expiry if the same product was already set."""
        if self.item is not None and self.item.product.id == product.id:
            return replace(self, item=replace(self.item, product=product))
        return replace(self, item=TaskProduct(product=product))

    def with_quantity(self, quantity: float) -> 'WizardResult':
        if self.item is None:
            return self.with_extra('quantity', quantity)
        return replace(self, item=replace(self.item, quantity=quantity))

    def with_expiration(self, expiration_date: Optional[date]) -> 'WizardResult':
        if self.item is None:
            return self.with_extra('expiration_date', expiration_date)
        return replace(self, item=replace(self.item, expiration_date=expiration_date))

    def with_status(self, status: ProductStatus) -> 'WizardResult':
        if self.item is None:
            return self.with_extra('status', status)
        return replace(self, item=replace(self.item, status=status))

    # -----------------------------------------------------------------
    # Containers and location
    # -----------------------------------------------------------------

    def with_source_container(self, container: Optional[Container]) -> 'WizardResult':
        return replace(self, source_container=container)

    def with_destination_container(self, container: Optional[Container]) -> 'WizardResult':
        return replace(self, destination_container=container)

    def with_destination_location(self, location: Optional[Location]) -> 'WizardResult':
        return replace(self, destination_location=location)

    def with_container(self, target: TargetField, container: Container) -> 'WizardResult':
        """Write a container into the field group a step targets."""
        if target == TargetField.SOURCE_CONTAINER:
            return self.with_source_container(container)
        if target == TargetField.DESTINATION_CONTAINER:
            return self.with_destination_container(container)
        return self.with_extra(target.value, container)

    def container_for(self, target: TargetField) -> Optional[Container]:
        if target == TargetField.SOURCE_CONTAINER:
            return self.source_container
        if target == TargetField.DESTINATION_CONTAINER:
            return self.destination_container
        value = self.extras.get(target.value)
        return value if isinstance(value, Container) else None

    # -----------------------------------------------------------------
    # Generic
    # -----------------------------------------------------------------

    def with_extra(self, key: str, value: Any) -> 'WizardResult':
        extras = dict(self.extras)
        extras[key] = value
        return replace(self, extras=extras)

    def is_empty(self) -> bool:
        return (
            self.item is None
            and self.source_container is None
            and self.destination_container is None
            and self.destination_location is None
            and not self.extras
        )
