"""
Test suite for Specs module
Tests: status sync rules, quote acceptance, invoice eligibility, spec item API
"""
from decimal import Decimal
from django.test import TestCase
from rest_framework import status
from renovo.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from renovo.specs.models import SpecItem, ItemActivity
from renovo.specs.status_sync import sync_item_status, sync_items_status, is_status_ahead


class StatusSyncTests(TestCase):
    """Forward-only status synchronisation"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(user=self.user)

    def test_trigger_moves_item_forward(self):
        item = TestDataFactory.create_spec_item(self.project)
        result = sync_item_status(item, 'rfq_sent', actor=self.user)
        self.assertTrue(result.updated)
        self.assertEqual(result.previous_status, 'DRAFT')
        item.refresh_from_db()
        self.assertEqual(item.spec_status, 'RFQ_SENT')
        self.assertTrue(ItemActivity.objects.filter(item=item, activity_type='STATUS_CHANGED').exists())

    def test_never_moves_backwards(self):
        item = TestDataFactory.create_spec_item(self.project, spec_status='ORDERED')
        result = sync_item_status(item, 'quote_received')
        self.assertFalse(result.updated)
        self.assertEqual(result.new_status, 'ORDERED')
        item.refresh_from_db()
        self.assertEqual(item.spec_status, 'ORDERED')
        self.assertFalse(ItemActivity.objects.filter(item=item).exists())

    def test_manual_status_is_kept(self):
        item = TestDataFactory.create_spec_item(self.project, spec_status='NEED_SAMPLE')
        result = sync_item_status(item, 'order_delivered')
        self.assertFalse(result.updated)
        self.assertIn('manual', result.reason)
        self.assertEqual(result.new_status, 'NEED_SAMPLE')
        item.refresh_from_db()
        self.assertEqual(item.spec_status, 'NEED_SAMPLE')

    def test_unknown_trigger(self):
        item = TestDataFactory.create_spec_item(self.project)
        result = sync_item_status(item, 'teleported')
        self.assertFalse(result.updated)
        self.assertEqual(result.reason, 'Unknown trigger: teleported')

    def test_batch_accepts_ids(self):
        first = TestDataFactory.create_spec_item(self.project)
        second = TestDataFactory.create_spec_item(self.project, spec_status='SHIPPED')
        results = sync_items_status([first.id, second.id], 'order_created')
        self.assertEqual(sorted(result.updated for result in results), [False, True])

    def test_status_order(self):
        self.assertTrue(is_status_ahead('CLIENT_PAID', 'INVOICED_TO_CLIENT'))
        self.assertFalse(is_status_ahead('DRAFT', 'SELECTED'))
        self.assertFalse(is_status_ahead('ISSUE', 'DRAFT'))


class InvoiceEligibilityTests(TestCase):
    """Which items can be put on a client invoice"""

    def setUp(self):
        self.project = TestDataFactory.create_project()

    def test_needs_rrp_and_approval(self):
        item = TestDataFactory.create_spec_item(self.project, rrp=Decimal('100'), client_approved=True)
        self.assertTrue(item.is_invoice_eligible())
        self.assertIsNone(item.ineligibility_reason())

    def test_missing_rrp(self):
        item = TestDataFactory.create_spec_item(self.project, trade_price=Decimal('100'), client_approved=True)
        self.assertFalse(item.is_invoice_eligible())
        self.assertEqual(item.ineligibility_reason(), 'No RRP')

    def test_not_approved(self):
        item = TestDataFactory.create_spec_item(self.project, rrp=Decimal('100'))
        self.assertEqual(item.ineligibility_reason(), 'Not approved by client')

    def test_client_ordered_item(self):
        item = TestDataFactory.create_spec_item(
            self.project, rrp=Decimal('100'), client_approved=True, spec_status='CLIENT_TO_ORDER'
        )
        self.assertFalse(item.is_invoice_eligible())

    def test_component_client_price(self):
        trade_item = TestDataFactory.create_spec_item(self.project, trade_price=Decimal('100'), markup_percent=Decimal('50'))
        rrp_item = TestDataFactory.create_spec_item(self.project, rrp=Decimal('300'), markup_percent=Decimal('50'))
        marked_up = TestDataFactory.create_component(trade_item, price=Decimal('20'), quantity=2)
        raw = TestDataFactory.create_component(rrp_item, price=Decimal('20'))
        self.assertEqual(marked_up.client_price, Decimal('30.00'))
        self.assertEqual(raw.client_price, Decimal('20'))
        self.assertEqual(trade_item.get_components_total(), Decimal('60.00'))


class SpecItemAPITests(TestCase):
    """Test spec item endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.project = TestDataFactory.create_project(user=self.user)

    def test_create_item(self):
        data = {'name': 'Pendant light', 'section_name': 'Lighting', 'rrp': '450.00', 'quantity': 2}
        response = self.client.post(f'/api/v1/projects/{self.project.id}/ffe-specs/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['selling_price'], '450.00')
        self.assertEqual(response.data['spec_status'], 'DRAFT')

    def test_create_item_without_name(self):
        response = self.client.post(f'/api/v1/projects/{self.project.id}/ffe-specs/', {'name': '  '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filters(self):
        TestDataFactory.create_spec_item(self.project, name='Priced', rrp=Decimal('10'), client_approved=True)
        TestDataFactory.create_spec_item(self.project, name='Unpriced')
        TestDataFactory.create_spec_item(self.project, name='Hidden', spec_status='HIDDEN')

        response = self.client.get(f'/api/v1/projects/{self.project.id}/ffe-specs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

        response = self.client.get(f'/api/v1/projects/{self.project.id}/ffe-specs/?has_price=true&approved=true')
        self.assertEqual([item['name'] for item in response.data['items']], ['Priced'])

    def test_approve_item(self):
        item = TestDataFactory.create_spec_item(self.project, rrp=Decimal('10'), spec_status='BUDGET_SENT')
        response = self.client.post(f'/api/v1/ffe-specs/{item.id}/approve/', {'via': 'email'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        item.refresh_from_db()
        self.assertTrue(item.client_approved)
        self.assertEqual(item.client_approved_via, 'email')
        self.assertEqual(item.spec_status, 'BUDGET_APPROVED')

    def test_sync_status_unknown_trigger(self):
        item = TestDataFactory.create_spec_item(self.project)
        response = self.client.post('/api/v1/ffe-specs/sync-status/', {'trigger': 'nope', 'item_ids': [item.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_sync_status_batch(self):
        item = TestDataFactory.create_spec_item(self.project)
        response = self.client.post('/api/v1/ffe-specs/sync-status/', {'trigger': 'rfq_sent', 'item_ids': [item.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['updated'], 1)
        self.assertEqual(SpecItem.objects.get(pk=item.id).spec_status, 'RFQ_SENT')
