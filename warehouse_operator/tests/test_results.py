"""
Tests for the field-addressed result accumulator and the fact record.
"""

from datetime import date

import warehouse_operator.core.models.domain as dm
from warehouse_operator.core.models.results import WizardResult


class TestFieldPreservation:
    """Writing one field group never clears another."""

    def test_expiration_after_quantity_keeps_quantity(self, sku1):
        result = WizardResult().with_product(sku1).with_quantity(3.0)
        result = result.with_expiration(date(2027, 1, 31))

        assert result.item.quantity == 3.0
        assert result.item.expiration_date == date(2027, 1, 31)

    def test_status_merges_into_item(self, sku1):
        result = WizardResult().with_product(sku1).with_quantity(2.0).with_status(dm.ProductStatus.DEFECTIVE)
        assert result.item.quantity == 2.0
        assert result.item.status == dm.ProductStatus.DEFECTIVE

    def test_destination_keeps_source(self):
        source = dm.Container(code='PAL1')
        result = WizardResult().with_source_container(source)
        result = result.with_destination_container(dm.Container(code='PAL2'))

        assert result.source_container == source
        assert result.destination_container.code == 'PAL2'

    def test_location_keeps_item_and_containers(self, sku1):
        result = (
            WizardResult()
            .with_product(sku1)
            .with_quantity(1.0)
            .with_source_container(dm.Container(code='PAL1'))
            .with_destination_location(dm.Location(code='A-01', zone='A'))
        )
        assert result.item.quantity == 1.0
        assert result.source_container.code == 'PAL1'
        assert result.destination_location.code == 'A-01'

    def test_reselecting_same_product_keeps_quantity(self, sku1):
        result = WizardResult().with_product(sku1).with_quantity(4.0).with_product(sku1)
        assert result.item.quantity == 4.0

    def test_other_product_starts_fresh(self, sku1, other_product):
        result = WizardResult().with_product(sku1).with_quantity(4.0).with_product(other_product)
        assert result.item.product == other_product
        assert result.item.quantity == 0.0

    def test_writers_do_not_mutate(self, sku1):
        empty = WizardResult()
        empty.with_product(sku1).with_extra('k', 'v')
        assert empty.is_empty()

    def test_quantity_without_item_goes_to_extras(self):
        result = WizardResult().with_quantity(2.0)
        assert result.item is None
        assert result.extras['quantity'] == 2.0

    def test_container_by_target(self):
        result = WizardResult().with_container(dm.TargetField.DESTINATION_CONTAINER, dm.Container(code='PAL7'))
        assert result.container_for(dm.TargetField.DESTINATION_CONTAINER).code == 'PAL7'
        assert result.container_for(dm.TargetField.SOURCE_CONTAINER) is None


class TestFactRecord:

    def test_to_dict(self, sku1):
        fact = dm.FactRecord(
            task_id='T-1',
            planned_action_id='PA-1',
            item=dm.TaskProduct(product=sku1, quantity=3.0, expiration_date=date(2027, 1, 31)),
            destination_location=dm.Location(code='A-01'),
            wms_operation=dm.WmsOperation.RECEIPT,
        )
        data = fact.to_dict()

        assert data['id'] == fact.id
        assert data['wms_operation'] == 'receipt'
        assert data['item']['quantity'] == 3.0
        assert data['item']['expiration_date'] == '2027-01-31'
        assert data['destination_location'] == 'A-01'
        assert data['source_container'] is None

    def test_ids_are_unique(self):
        a = dm.FactRecord(task_id='T-1', planned_action_id='PA-1')
        b = dm.FactRecord(task_id='T-1', planned_action_id='PA-1')
        assert a.id != b.id

    def test_to_dict_includes_extras(self):
        fact = dm.FactRecord(
            task_id='T-1',
            planned_action_id='PA-1',
            extras={
                'label_printed': 'PAL000001',
                'generic': dm.Container(code='PAL7'),
                'status': dm.ProductStatus.DEFECTIVE,
                'expiration_date': date(2027, 1, 31),
            },
        )
        assert fact.to_dict()['extras'] == {
            'label_printed': 'PAL000001',
            'generic': 'PAL7',
            'status': 'defective',
            'expiration_date': '2027-01-31',
        }
