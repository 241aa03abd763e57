"""
Warehouse Domain Models - Tasks, Planned Actions, Fact Records

DESIGN PRINCIPLES:
1. Plain dataclasses - no rendering or transport concerns
2. Copy-on-write - resolved objects are replaced, never mutated in place
3. Templates drive steps - a planned action knows nothing about screens

USAGE:
    template = ActionTemplate(
        id="tpl-put",
        name="Put away",
        wms_operation=WmsOperation.PUT,
        storage_steps=[ActionStep(id="s1", object_kind=ObjectKind.ITEM)],
        placement_steps=[ActionStep(id="p1", object_kind=ObjectKind.LOCATION)],
    )
    action = PlannedAction(id="pa-1", task_id="t-1", template=template)
    task = Task(id="t-1", name="Inbound 42", planned_actions=[action])
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, date
from enum import Enum
from typing import List, Optional, Dict, Any
import uuid


# ============================================================================
# Enumerations
# ============================================================================

class WmsOperation(Enum):
    """Warehouse operation a planned action performs"""
    PUT = "put"
    TAKE = "take"
    RECEIPT = "receipt"
    EXPENSE = "expense"
    RECOUNT = "recount"
    USE = "use"


class ObjectKind(Enum):
    """What a single step resolves"""
    ITEM = "item"
    QUANTITY = "quantity"
    EXPIRATION_DATE = "expiration_date"
    CONDITION = "condition"
    STORAGE_CONTAINER = "storage_container"
    PLACEMENT_CONTAINER = "placement_container"
    CONTAINER_CREATION = "container_creation"
    CONTAINER_CLOSING = "container_closing"
    LABEL_PRINTING = "label_printing"
    LOCATION = "location"


class SelectionCondition(Enum):
    """Where a step is allowed to pick its object from"""
    FROM_PLAN = "from_plan"
    ANY = "any"


class TargetField(Enum):
    """Field group of the fact record a step writes into"""
    ITEM = "item"
    SOURCE_CONTAINER = "source_container"
    DESTINATION_CONTAINER = "destination_container"
    DESTINATION_LOCATION = "destination_location"
    GENERIC = "generic"


class ProductStatus(Enum):
    """Physical condition of the goods"""
    STANDARD = "standard"
    DEFECTIVE = "defective"
    EXPIRED = "expired"


class AccountingModel(Enum):
    """How an item is tracked in stock"""
    QTY = "qty"          # Plain quantity
    BATCH = "batch"      # Batch / expiry tracked


class CompletionCondition(Enum):
    """When a planned action counts as done"""
    ON_FACT = "on_fact"                # Any fact record completes it
    PLAN_ACHIEVED = "plan_achieved"    # Fact quantities must reach the plan


# Container-bearing kinds default their target from the list they sit in
_CONTAINER_KINDS = {
    ObjectKind.CONTAINER_CREATION,
    ObjectKind.CONTAINER_CLOSING,
    ObjectKind.LABEL_PRINTING,
}

_DEFAULT_TARGETS = {
    ObjectKind.ITEM: TargetField.ITEM,
    ObjectKind.QUANTITY: TargetField.ITEM,
    ObjectKind.EXPIRATION_DATE: TargetField.ITEM,
    ObjectKind.CONDITION: TargetField.ITEM,
    ObjectKind.STORAGE_CONTAINER: TargetField.SOURCE_CONTAINER,
    ObjectKind.PLACEMENT_CONTAINER: TargetField.DESTINATION_CONTAINER,
    ObjectKind.LOCATION: TargetField.DESTINATION_LOCATION,
}


# ============================================================================
# Warehouse objects
# ============================================================================

@dataclass(frozen=True)
class Product:
    """Catalogue item"""
    id: str
    name: str
    barcode: str = ""
    article_number: str = ""
    accounting_model: AccountingModel = AccountingModel.QTY

    @property
    def requires_expiration(self) -> bool:
        return self.accounting_model == AccountingModel.BATCH


@dataclass(frozen=True)
class TaskProduct:
    """
    Item record of a fact: item + quantity + condition + expiry.

    Quantity starts at zero when the item is picked; the quantity step fills it.
    """
    product: Product
    quantity: float = 0.0
    status: ProductStatus = ProductStatus.STANDARD
    expiration_date: Optional[date] = None

    def has_expiration_date(self) -> bool:
        return self.expiration_date is not None


@dataclass(frozen=True)
class Container:
    """Pallet / tote"""
    code: str
    is_closed: bool = False
    zone: str = ""

    def closed(self) -> 'Container':
        return replace(self, is_closed=True)


@dataclass(frozen=True)
class Location:
    """Storage bin"""
    code: str
    zone: str = ""


# ============================================================================
# Templates and plan
# ============================================================================

@dataclass
class ActionStep:
    """One input-resolution step of an action template"""
    id: str
    object_kind: ObjectKind
    prompt: str = ""
    selection_condition: SelectionCondition = SelectionCondition.ANY
    params: Dict[str, Any] = field(default_factory=dict)
    order: int = 0
    target: Optional[TargetField] = None    # None = derive from kind and list
    required: bool = True

    def resolved_target(self, placement: bool = False) -> TargetField:
        """Target field group, defaulting from the kind and the list the step is in."""
        if self.target is not None:
            return self.target
        if self.object_kind in _CONTAINER_KINDS:
            return TargetField.DESTINATION_CONTAINER if placement else TargetField.SOURCE_CONTAINER
        return _DEFAULT_TARGETS.get(self.object_kind, TargetField.GENERIC)


@dataclass
class ActionTemplate:
    """Storage steps (what / how much) followed by placement steps (where)"""
    id: str
    name: str = ""
    wms_operation: WmsOperation = WmsOperation.PUT
    storage_steps: List[ActionStep] = field(default_factory=list)
    placement_steps: List[ActionStep] = field(default_factory=list)
    completion_condition: CompletionCondition = CompletionCondition.ON_FACT


@dataclass
class PlannedAction:
    """A unit of work scheduled on a task"""
    id: str
    task_id: str
    template: ActionTemplate
    wms_operation: Optional[WmsOperation] = None     # None = template's operation
    order: int = 0
    item: Optional[TaskProduct] = None
    quantity: float = 0.0
    source_container: Optional[Container] = None
    destination_container: Optional[Container] = None
    destination_location: Optional[Location] = None
    completed: bool = False

    @property
    def operation(self) -> WmsOperation:
        return self.wms_operation or self.template.wms_operation

    def planned_product_ids(self) -> set:
        return {self.item.product.id} if self.item else set()

    def get_completed_quantity(self, facts: List['FactRecord']) -> float:
        return sum(f.quantity for f in facts if f.planned_action_id == self.id)

    def get_remaining_quantity(self, facts: List['FactRecord']) -> float:
        if self.quantity <= 0:
            return 0.0
        return max(self.quantity - self.get_completed_quantity(facts), 0.0)

    def is_action_completed(self, facts: List['FactRecord']) -> bool:
        """Completion rule applied when a new fact is recorded."""
        if (self.template.completion_condition == CompletionCondition.PLAN_ACHIEVED
                and self.quantity > 0):
            return self.get_completed_quantity(facts) >= self.quantity
        return any(f.planned_action_id == self.id for f in facts)


@dataclass
class Task:
    """Task as held by the task cache"""
    id: str
    name: str = ""
    barcode: str = ""
    endpoint: Optional[str] = None
    planned_actions: List[PlannedAction] = field(default_factory=list)
    fact_actions: List['FactRecord'] = field(default_factory=list)
    last_modified_at: Optional[datetime] = None

    def find_planned_action(self, action_id: str) -> Optional[PlannedAction]:
        for action in self.planned_actions:
            if action.id == action_id:
                return action
        return None


# ============================================================================
# Engine output
# ============================================================================

@dataclass(frozen=True)
class FactRecord:
    """Operator-confirmed outcome of a planned action"""
    task_id: str
    planned_action_id: str
    item: Optional[TaskProduct] = None
    source_container: Optional[Container] = None
    destination_container: Optional[Container] = None
    destination_location: Optional[Location] = None
    action_template_id: Optional[str] = None
    wms_operation: WmsOperation = WmsOperation.PUT
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    extras: Dict[str, Any] = field(default_factory=dict, hash=False)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def quantity(self) -> float:
        return self.item.quantity if self.item else 0.0

    def to_dict(self) -> Dict[str, Any]:
        item = None
        if self.item:
            item = {
                'product_id': self.item.product.id,
                'product_name': self.item.product.name,
                'quantity': self.item.quantity,
                'status': self.item.status.value,
                'expiration_date': (
                    self.item.expiration_date.isoformat() if self.item.expiration_date else None
                ),
            }
        return {
            'id': self.id,
            'task_id': self.task_id,
            'planned_action_id': self.planned_action_id,
            'action_template_id': self.action_template_id,
            'wms_operation': self.wms_operation.value,
            'item': item,
            'source_container': self.source_container.code if self.source_container else None,
            'destination_container': (
                self.destination_container.code if self.destination_container else None
            ),
            'destination_location': (
                self.destination_location.code if self.destination_location else None
            ),
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'extras': {key: _plain(value) for key, value in self.extras.items()},
        }


def _plain(value: Any) -> Any:
    """Serializable form of an extras value."""
    if isinstance(value, (Container, Location)):
        return value.code
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value
