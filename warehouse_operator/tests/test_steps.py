"""
Tests for step sequencing, target resolution and step validation.
"""

from datetime import date

import warehouse_operator.core.models.domain as dm
from warehouse_operator.core.models.results import WizardResult
from warehouse_operator.core.validation.validators import StepValidator
from warehouse_operator.wizard.sequencer import build_steps

from conftest import make_template


class TestBuildSteps:

    def test_storage_before_placement(self):
        template = make_template(
            [dm.ObjectKind.ITEM, dm.ObjectKind.QUANTITY],
            [dm.ObjectKind.LOCATION],
        )
        steps = build_steps(template)

        assert [s.id for s in steps] == ['s0', 's1', 'p0']
        assert [s.is_placement for s in steps] == [False, False, True]

    def test_sorted_by_order_within_list(self):
        template = dm.ActionTemplate(
            id='TPL',
            storage_steps=[
                dm.ActionStep(id='b', object_kind=dm.ObjectKind.QUANTITY, order=2),
                dm.ActionStep(id='a', object_kind=dm.ObjectKind.ITEM, order=1),
            ],
            placement_steps=[
                dm.ActionStep(id='z', object_kind=dm.ObjectKind.LOCATION, order=0),
            ],
        )
        assert [s.id for s in build_steps(template)] == ['a', 'b', 'z']

    def test_no_deduplication(self):
        template = make_template([dm.ObjectKind.ITEM, dm.ObjectKind.ITEM])
        assert len(build_steps(template)) == 2

    def test_empty_template(self):
        assert build_steps(make_template([])) == []


class TestTargets:

    def test_default_targets(self):
        template = make_template(
            [dm.ObjectKind.ITEM, dm.ObjectKind.STORAGE_CONTAINER, dm.ObjectKind.CONTAINER_CREATION],
            [dm.ObjectKind.PLACEMENT_CONTAINER, dm.ObjectKind.CONTAINER_CREATION, dm.ObjectKind.LOCATION],
        )
        targets = [s.target for s in build_steps(template)]
        assert targets == [
            dm.TargetField.ITEM,
            dm.TargetField.SOURCE_CONTAINER,
            dm.TargetField.SOURCE_CONTAINER,
            dm.TargetField.DESTINATION_CONTAINER,
            dm.TargetField.DESTINATION_CONTAINER,
            dm.TargetField.DESTINATION_LOCATION,
        ]

    def test_explicit_target_wins(self):
        step = dm.ActionStep(
            id='x', object_kind=dm.ObjectKind.CONTAINER_CLOSING,
            target=dm.TargetField.SOURCE_CONTAINER,
        )
        assert step.resolved_target(placement=True) == dm.TargetField.SOURCE_CONTAINER


class TestStepValidator:

    @staticmethod
    def step(kind, placement=False):
        template = make_template([] if placement else [kind], [kind] if placement else [])
        return build_steps(template)[0]

    def test_default_accepts(self):
        assert StepValidator.accepts(self.step(dm.ObjectKind.CONDITION), WizardResult())

    def test_quantity_needs_item(self):
        is_valid, errors = StepValidator.validate(self.step(dm.ObjectKind.QUANTITY), WizardResult())
        assert not is_valid
        assert 'item' in errors[0]

    def test_quantity_must_be_positive(self, sku1):
        step = self.step(dm.ObjectKind.QUANTITY)
        assert not StepValidator.accepts(step, WizardResult().with_product(sku1))
        assert StepValidator.accepts(step, WizardResult().with_product(sku1).with_quantity(0.5))

    def test_expiration_optional_for_untracked(self, sku1):
        step = self.step(dm.ObjectKind.EXPIRATION_DATE)
        assert StepValidator.accepts(step, WizardResult().with_product(sku1))

    def test_expiration_required_for_batch(self, batch_product):
        step = self.step(dm.ObjectKind.EXPIRATION_DATE)
        snapshot = WizardResult().with_product(batch_product)
        assert not StepValidator.accepts(step, snapshot)
        assert StepValidator.accepts(step, snapshot.with_expiration(date(2027, 5, 1)))

    def test_container_step_checks_its_own_target(self):
        storage = self.step(dm.ObjectKind.STORAGE_CONTAINER)
        placement = self.step(dm.ObjectKind.PLACEMENT_CONTAINER, placement=True)
        snapshot = WizardResult().with_source_container(dm.Container(code='PAL1'))

        assert StepValidator.accepts(storage, snapshot)
        assert not StepValidator.accepts(placement, snapshot)
