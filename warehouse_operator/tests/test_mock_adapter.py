"""
Tests for the in-memory lookups and mock warehouse backend.
"""

import asyncio

import warehouse_operator.core.models.domain as dm
from warehouse_operator.adapters.base import SubmitResult
from warehouse_operator.adapters.mock_adapter import MockWarehouseBackend, location_lookup, product_lookup


class TestLookups:

    def test_by_code(self, products, sku1):
        lookup = product_lookup(products)
        assert asyncio.run(lookup.by_code('SKU1')) == sku1
        assert asyncio.run(lookup.by_code('missing')) is None
        assert lookup.calls == [('by_code', 'SKU1'), ('by_code', 'missing')]

    def test_search_by_name_and_article(self, products):
        lookup = product_lookup(products)
        assert [p.id for p in asyncio.run(lookup.search('w05'))] == ['P-1']
        assert len(asyncio.run(lookup.search(''))) == 3

    def test_membership_filter(self, products):
        lookup = product_lookup(products)
        found = asyncio.run(lookup.search('', {'id': {'P-2', 'P-3'}}))
        assert [p.id for p in found] == ['P-2', 'P-3']

    def test_none_filter_ignored(self, locations):
        found = asyncio.run(location_lookup(locations).search('', {'zone': None}))
        assert len(found) == 3


class TestMockBackend:

    def test_created_codes_are_sequential(self):
        backend = MockWarehouseBackend()
        first = asyncio.run(backend.create_container())
        second = asyncio.run(backend.create_container())
        assert [first.value.code, second.value.code] == ['PAL000001', 'PAL000002']

    def test_scripted_submission_failures(self):
        backend = MockWarehouseBackend()
        backend.fail_next_submission(500, 'timeout')
        fact = dm.FactRecord(task_id='T-1', planned_action_id='PA-1')

        first = asyncio.run(backend.submit_fact_action('T-1', fact, '/facts'))
        second = asyncio.run(backend.submit_fact_action('T-1', fact, '/facts'))

        assert first == SubmitResult.error(500, 'timeout')
        assert second.success
        assert len(backend.submissions) == 2

    def test_clear_failures(self):
        backend = MockWarehouseBackend()
        backend.fail_operation('close_container', 'nope')
        assert asyncio.run(backend.close_container('PAL1')).success is False
        backend.clear_failures()
        assert asyncio.run(backend.close_container('PAL1')).success is True
        assert backend.closed_codes == ['PAL1']
