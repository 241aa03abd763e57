"""
Test Fixtures - Shared across all unit tests.

Provides:
- Sample catalogue (products, pallets, bins)
- Action templates for the common step layouts
- In-memory task cache with one task
- Mock warehouse backend and lookups
- A wizard factory with a manual clock
"""

import pytest

import warehouse_operator.core.models.domain as dm
from warehouse_operator.adapters.mock_adapter import (
    MockWarehouseBackend, container_lookup, location_lookup, product_lookup,
)
from warehouse_operator.config.wizard_config_loader import WizardConfig
from warehouse_operator.repositories.task_cache import TaskCache
from warehouse_operator.wizard.controller import WizardController


# =============================================================================
# Known constants for deterministic tests
# =============================================================================

TASK_ID = 'T-1'
ACTION_ID = 'PA-1'
SKU1_BARCODE = 'SKU1'
BATCH_BARCODE = 'BATCH1'


class ManualClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# =============================================================================
# Catalogue
# =============================================================================

@pytest.fixture
def sku1():
    return dm.Product(id='P-1', name='Water 0.5L', barcode=SKU1_BARCODE, article_number='W05')


@pytest.fixture
def batch_product():
    """An expiry-tracked product."""
    return dm.Product(
        id='P-2', name='Yogurt', barcode=BATCH_BARCODE,
        accounting_model=dm.AccountingModel.BATCH,
    )


@pytest.fixture
def other_product():
    return dm.Product(id='P-3', name='Juice 1L', barcode='SKU3')


@pytest.fixture
def products(sku1, batch_product, other_product):
    return [sku1, batch_product, other_product]


@pytest.fixture
def containers():
    return [
        dm.Container(code='PAL1', zone='DOCK'),
        dm.Container(code='PAL2', zone='A'),
        dm.Container(code='PAL9', zone='A', is_closed=True),
    ]


@pytest.fixture
def locations():
    return [
        dm.Location(code='A-01', zone='A'),
        dm.Location(code='A-02', zone='A'),
        dm.Location(code='B-01', zone='B'),
    ]


# =============================================================================
# Templates
# =============================================================================

def make_template(storage, placement=(), template_id='TPL-1', **kwargs) -> dm.ActionTemplate:
    """Build a template from (kind, extra-kwargs) pairs; step ids are s0.. / p0..."""
    def steps(specs, prefix):
        built = []
        for i, entry in enumerate(specs):
            kind, extra = entry if isinstance(entry, tuple) else (entry, {})
            built.append(dm.ActionStep(id=f"{prefix}{i}", object_kind=kind, order=i, **extra))
        return built

    return dm.ActionTemplate(
        id=template_id,
        name='Test template',
        storage_steps=steps(storage, 's'),
        placement_steps=steps(placement, 'p'),
        **kwargs,
    )


@pytest.fixture
def item_quantity_template():
    return make_template([dm.ObjectKind.ITEM, dm.ObjectKind.QUANTITY])


@pytest.fixture
def full_template():
    return make_template(
        [
            dm.ObjectKind.ITEM,
            dm.ObjectKind.QUANTITY,
            dm.ObjectKind.EXPIRATION_DATE,
            dm.ObjectKind.STORAGE_CONTAINER,
        ],
        [
            dm.ObjectKind.PLACEMENT_CONTAINER,
            (dm.ObjectKind.LOCATION, {'params': {'zone': 'A'}}),
        ],
    )


# =============================================================================
# Task cache / backend
# =============================================================================

def make_task(template, item=None, **action_kwargs) -> dm.Task:
    action = dm.PlannedAction(
        id=ACTION_ID, task_id=TASK_ID, template=template, item=item,
        quantity=item.quantity if item else 0.0, **action_kwargs,
    )
    return dm.Task(id=TASK_ID, name='Inbound', endpoint='/tasks/T-1/facts', planned_actions=[action])


@pytest.fixture
def task(item_quantity_template, sku1):
    return make_task(item_quantity_template, item=dm.TaskProduct(product=sku1, quantity=5.0))


@pytest.fixture
def cache(task):
    return TaskCache([task])


@pytest.fixture
def backend():
    return MockWarehouseBackend()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def signals():
    return []


@pytest.fixture
def make_wizard(cache, backend, products, containers, locations, clock, signals):
    """Factory: a wizard wired to the fixtures, optionally over another cache."""
    def _make(cache_override=None, config=None):
        return WizardController(
            cache_override or cache,
            submitter=backend,
            operations=backend,
            products=product_lookup(products),
            containers=container_lookup(containers),
            locations=location_lookup(locations),
            config=config or WizardConfig(),
            on_signal=signals.append,
            clock=clock,
        )
    return _make


@pytest.fixture
def wizard(make_wizard):
    """Initialized wizard on the item + quantity action."""
    w = make_wizard()
    w.initialize(TASK_ID, ACTION_ID)
    return w
