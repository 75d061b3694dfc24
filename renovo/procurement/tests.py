"""
Test suite for Procurement module
Tests: RFQs, supplier portal, supplier quotes, purchase orders and order actions
"""
from datetime import timedelta
from decimal import Decimal
from django.core import mail
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from renovo.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from renovo.invoicing.models import ClientQuoteLineItem
from renovo.procurement import services
from renovo.procurement.models import RFQ, SupplierRFQ, SupplierQuote, Order, OrderActivity


class RFQTests(TestCase):
    """Test RFQ creation and sending"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.project = TestDataFactory.create_project(user=self.user)
        self.supplier = TestDataFactory.create_supplier(name='Lumen', email='sales@lumen.test')
        self.item = TestDataFactory.create_spec_item(self.project, name='Wall sconce', quantity=4)

    def test_create_rfq_from_spec_items(self):
        data = {'title': 'Lighting pricing', 'spec_item_ids': [self.item.id]}
        response = self.client.post(f'/api/v1/projects/{self.project.id}/rfqs/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['rfq_number'].startswith('RFQ-'))
        self.assertEqual(response.data['status'], 'DRAFT')
        self.assertEqual(response.data['line_items'][0]['item_name'], 'Wall sconce')
        self.assertEqual(response.data['line_items'][0]['quantity'], 4)

    def test_create_rfq_requires_title(self):
        response = self.client.post(f'/api/v1/projects/{self.project.id}/rfqs/', {'title': ' '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_send_rfq(self):
        rfq = services.create_rfq(self.project, 'Lighting', actor=self.user, spec_items=[self.item])
        response = self.client.post(f'/api/v1/rfqs/{rfq.id}/send/', {'supplier_ids': [self.supplier.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['sent_count'], 1)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ['sales@lumen.test'])

        rfq.refresh_from_db()
        self.assertEqual(rfq.status, 'SENT')
        supplier_rfq = rfq.supplier_rfqs.get()
        self.assertEqual(supplier_rfq.status, 'SENT')
        self.assertIsNotNone(supplier_rfq.token_expires_at)
        self.item.refresh_from_db()
        self.assertEqual(self.item.spec_status, 'RFQ_SENT')

    def test_send_empty_rfq(self):
        rfq = services.create_rfq(self.project, 'Empty', actor=self.user)
        response = self.client.post(f'/api/v1/rfqs/{rfq.id}/send/', {'supplier_ids': [self.supplier.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'RFQ must have at least one line item')

    def test_send_without_recipients(self):
        rfq = services.create_rfq(self.project, 'Lighting', actor=self.user, spec_items=[self.item])
        response = self.client.post(f'/api/v1/rfqs/{rfq.id}/send/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_send_to_vendor_without_registered_supplier(self):
        rfq = services.create_rfq(self.project, 'Lighting', actor=self.user, spec_items=[self.item])
        data = {'vendors': [{'name': 'Corner Shop', 'email': 'shop@example.com'}]}
        response = self.client.post(f'/api/v1/rfqs/{rfq.id}/send/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['results'][0]['supplier_name'], 'Corner Shop')

    def test_send_rejects_malformed_vendors(self):
        rfq = services.create_rfq(self.project, 'Lighting', actor=self.user, spec_items=[self.item])
        response = self.client.post(f'/api/v1/rfqs/{rfq.id}/send/', {'vendors': ['a@b.test']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)

        response = self.client.post(f'/api/v1/rfqs/{rfq.id}/send/', {'vendors': [{'email': 'not-an-email'}]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        rfq.refresh_from_db()
        self.assertEqual(rfq.status, 'DRAFT')
        self.assertFalse(rfq.supplier_rfqs.exists())

    def test_quick_quote_matches_supplier_name(self):
        self.item.supplier_name = 'lumen inc.'
        self.item.save()
        data = {'project': self.project.id, 'item_ids': [self.item.id]}
        response = self.client.post('/api/v1/rfq/quick-quote/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertFalse(response.data['needs_supplier_selection'])
        self.assertEqual(RFQ.objects.get(pk=response.data['rfq_id']).supplier_rfqs.get().supplier, self.supplier)

    def test_quick_quote_without_match(self):
        data = {'project': self.project.id, 'item_ids': [self.item.id]}
        response = self.client.post('/api/v1/rfq/quick-quote/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['needs_supplier_selection'])
        self.assertFalse(RFQ.objects.exists())


class SupplierQuoteRequestTests(TestCase):
    """Test one-RFQ-per-supplier quote requests"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.project = TestDataFactory.create_project(user=self.user)
        self.lumen = TestDataFactory.create_supplier(name='Lumen', email='sales@lumen.test')
        self.stone = TestDataFactory.create_supplier(name='Stone Works', email='quotes@stone.test')
        self.sconce = TestDataFactory.create_spec_item(self.project, name='Sconce')
        self.sconce.supplier_name = 'lumen'
        self.sconce.save()
        self.pendant = TestDataFactory.create_spec_item(self.project, name='Pendant', supplier=self.lumen)
        self.tile = TestDataFactory.create_spec_item(self.project, name='Tile', supplier=self.stone)
        self.rug = TestDataFactory.create_spec_item(self.project, name='Rug')
        self.url = '/api/v1/rfq/supplier-quote/'
        self.item_ids = [self.sconce.id, self.pendant.id, self.tile.id, self.rug.id]

    def test_one_rfq_per_supplier(self):
        data = {'project': self.project.id, 'item_ids': self.item_ids}
        response = self.client.post(self.url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['rfqs']), 2)
        self.assertEqual(response.data['sent'], 2)
        self.assertEqual([item['name'] for item in response.data['unmatched_items']], ['Rug'])

        by_supplier = {rfq['supplier_name']: sorted(rfq['item_ids']) for rfq in response.data['rfqs']}
        self.assertEqual(by_supplier, {
            'Lumen': sorted([self.sconce.id, self.pendant.id]),
            'Stone Works': [self.tile.id],
        })
        lumen_rfq = RFQ.objects.get(pk=next(rfq['rfq_id'] for rfq in response.data['rfqs'] if rfq['supplier_name'] == 'Lumen'))
        self.assertEqual(lumen_rfq.supplier_rfqs.get().supplier, self.lumen)
        self.assertEqual(lumen_rfq.line_items.count(), 2)
        self.assertEqual(sorted(message.to[0] for message in mail.outbox), ['quotes@stone.test', 'sales@lumen.test'])

    def test_already_sent_items_are_skipped(self):
        self.client.post(self.url, {'project': self.project.id, 'item_ids': [self.pendant.id]}, format='json')
        self.assertEqual(RFQ.objects.count(), 1)

        data = {'project': self.project.id, 'item_ids': [self.pendant.id, self.tile.id]}
        response = self.client.post(self.url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['skipped_item_ids'], [self.pendant.id])
        self.assertEqual([rfq['supplier_name'] for rfq in response.data['rfqs']], ['Stone Works'])

        response = self.client.post(self.url, {'project': self.project.id, 'item_ids': [self.pendant.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['success'])
        self.assertTrue(response.data['needs_confirmation'])
        self.assertEqual(response.data['already_sent_item_ids'], [self.pendant.id])
        self.assertEqual(RFQ.objects.count(), 2)

        data = {'project': self.project.id, 'item_ids': [self.pendant.id], 'override_supplier': True}
        response = self.client.post(self.url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(RFQ.objects.count(), 3)

    def test_cancelled_rfq_does_not_block(self):
        self.client.post(self.url, {'project': self.project.id, 'item_ids': [self.pendant.id]}, format='json')
        RFQ.objects.update(status='CANCELLED')
        response = self.client.post(self.url, {'project': self.project.id, 'item_ids': [self.pendant.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['skipped_already_sent'], 0)

    def test_preview(self):
        self.client.post(self.url, {'project': self.project.id, 'item_ids': [self.pendant.id]}, format='json')
        ids = ','.join(str(item_id) for item_id in self.item_ids)
        response = self.client.get(f'{self.url}?project={self.project.id}&item_ids={ids}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['summary'], {
            'total_items': 4, 'ready_to_send': 2, 'already_sent': 1, 'no_supplier': 1,
        })

    def test_no_matching_supplier(self):
        response = self.client.post(self.url, {'project': self.project.id, 'item_ids': [self.rug.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'No matching suppliers found for the selected items')
        self.assertFalse(RFQ.objects.exists())

    def test_requires_item_ids(self):
        response = self.client.post(self.url, {'project': self.project.id, 'item_ids': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class SupplierPortalTests(TestCase):
    """Test the public supplier quote link"""

    def setUp(self):
        self.project = TestDataFactory.create_project()
        self.supplier = TestDataFactory.create_supplier(name='Tilecraft')
        self.item = TestDataFactory.create_spec_item(self.project, name='Floor tile', quantity=10, spec_status='RFQ_SENT')
        self.rfq = services.create_rfq(self.project, 'Tile', spec_items=[self.item])
        self.supplier_rfq = SupplierRFQ.objects.create(
            rfq=self.rfq, supplier=self.supplier, status='SENT',
            token_expires_at=timezone.now() + timedelta(days=30)
        )
        self.url = f'/api/v1/supplier-portal/{self.supplier_rfq.access_token}/'
        self.client = AuthenticatedAPIClient()

    def test_view_marks_viewed(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['rfq']['rfq_number'], self.rfq.rfq_number)
        self.assertEqual(len(response.data['line_items']), 1)
        self.supplier_rfq.refresh_from_db()
        self.assertEqual(self.supplier_rfq.status, 'VIEWED')

    def test_submit_quote(self):
        rfq_line = self.rfq.line_items.get()
        data = {'line_items': [{'rfq_line_item': rfq_line.id, 'unit_price': '12.50', 'lead_time': '3 weeks'}]}
        response = self.client.post(self.url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['quote']['total_amount'], '125.00')

        self.item.refresh_from_db()
        self.assertEqual(self.item.trade_price, Decimal('12.50'))
        self.assertEqual(self.item.lead_time, '3 weeks')
        self.assertEqual(self.item.spec_status, 'QUOTE_RECEIVED')
        self.rfq.refresh_from_db()
        self.assertEqual(self.rfq.status, 'FULLY_QUOTED')

    def test_submit_without_lines(self):
        response = self.client.post(self.url, {'line_items': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(SupplierQuote.objects.exists())

    def test_decline(self):
        SupplierRFQ.objects.create(rfq=self.rfq, vendor_name='Other', vendor_email='o@example.com', status='SENT')
        response = self.client.post(self.url, {'action': 'decline', 'decline_reason': 'Out of stock'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.supplier_rfq.refresh_from_db()
        self.assertEqual(self.supplier_rfq.status, 'DECLINED')
        self.rfq.refresh_from_db()
        self.assertEqual(self.rfq.status, 'PARTIALLY_QUOTED')

    def test_unknown_token(self):
        response = self.client.get('/api/v1/supplier-portal/unknown/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_expired_token(self):
        self.supplier_rfq.token_expires_at = timezone.now() - timedelta(minutes=1)
        self.supplier_rfq.save()
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_410_GONE)


class SupplierQuoteTests(TestCase):
    """Test accepting and rejecting supplier quotes"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.project = TestDataFactory.create_project(user=self.user)
        self.supplier = TestDataFactory.create_supplier(name='Stoneworks')
        self.item = TestDataFactory.create_spec_item(self.project, name='Counter', spec_status='QUOTE_RECEIVED')
        rfq = services.create_rfq(self.project, 'Counter', spec_items=[self.item])
        supplier_rfq = SupplierRFQ.objects.create(rfq=rfq, supplier=self.supplier, status='SENT')
        self.quote = services.submit_supplier_quote(supplier_rfq, {
            'line_items': [{'rfq_line_item': rfq.line_items.get().id, 'unit_price': Decimal('800.00')}],
        })

    def test_accept_quote(self):
        response = self.client.post(f'/api/v1/supplier-quotes/{self.quote.id}/accept/', {'markup_percent': '25'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['results'][0]['accepted'])
        self.assertEqual(response.data['quote']['status'], 'ACCEPTED')

        self.item.refresh_from_db()
        self.assertEqual(self.item.trade_price, Decimal('800.00'))
        self.assertEqual(self.item.supplier, self.supplier)
        self.assertEqual(self.item.markup_percent, Decimal('25.00'))
        self.assertEqual(self.item.spec_status, 'QUOTE_APPROVED')

    def test_rejected_quote_cannot_be_accepted(self):
        response = self.client.post(f'/api/v1/supplier-quotes/{self.quote.id}/reject/', {'reason': 'Too expensive'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.post(f'/api/v1/supplier-quotes/{self.quote.id}/accept/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_quotes(self):
        response = self.client.get(f'/api/v1/projects/{self.project.id}/supplier-quotes/?status=submitted')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)


class OrderTests(TestCase):
    """Test purchase order creation and actions"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.project = TestDataFactory.create_project(user=self.user)
        self.supplier = TestDataFactory.create_supplier(name='Fixture Co', email='orders@fixture.test')
        self.item = TestDataFactory.create_spec_item(
            self.project, name='Faucet', rrp=Decimal('300'), trade_price=Decimal('150'), quantity=2,
            client_approved=True, supplier=self.supplier, spec_status='INVOICED_TO_CLIENT'
        )
        self.invoice = TestDataFactory.create_client_quote(
            self.project, status='SENT_TO_CLIENT', sent=True, total_amount=Decimal('600.00'), items=[self.item]
        )

    def test_create_from_unpaid_invoice(self):
        data = {'client_quote': self.invoice.id}
        response = self.client.post(f'/api/v1/projects/{self.project.id}/orders/create-from-invoice/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invoice has not been paid. Please record payment first.')
        self.assertFalse(Order.objects.exists())

    def test_create_from_paid_invoice(self):
        TestDataFactory.create_payment(self.invoice, Decimal('300.00'))
        url = f'/api/v1/projects/{self.project.id}/orders/create-from-invoice/'

        preview = self.client.get(f'{url}?client_quote={self.invoice.id}')
        self.assertEqual(preview.status_code, status.HTTP_200_OK)
        self.assertTrue(preview.data['can_create_orders'])
        self.assertEqual(preview.data['payment_percent'], 50)

        response = self.client.post(url, {'client_quote': self.invoice.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['orders']), 1)
        self.assertEqual(response.data['orders'][0]['subtotal'], '300.00')
        self.assertEqual(response.data['orders'][0]['supplier_email'], 'orders@fixture.test')

        self.item.refresh_from_db()
        self.assertEqual(self.item.spec_status, 'ORDERED')

        response = self.client.post(url, {'client_quote': self.invoice.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('existing_orders', response.data)

    def test_invoice_items_selected_by_spec_item_id(self):
        """Only spec item ids select items; an invoice line id with the same value does not"""
        towel_bar = TestDataFactory.create_spec_item(
            self.project, name='Towel bar', rrp=Decimal('120'), trade_price=Decimal('80'),
            client_approved=True, supplier=self.supplier
        )
        invoice = TestDataFactory.create_client_quote(self.project, status='SENT_TO_CLIENT', sent=True)
        line = ClientQuoteLineItem.objects.create(
            id=towel_bar.id + 500,
            client_quote=invoice,
            spec_item=towel_bar,
            display_name=towel_bar.name,
            quantity=1,
            client_unit_price=Decimal('120.00'),
            client_total_price=Decimal('120.00'),
        )

        groups, _, _ = services.group_invoice_items(invoice, item_ids=[line.id])
        self.assertEqual(groups, [])

        groups, _, _ = services.group_invoice_items(invoice, item_ids=[towel_bar.id])
        self.assertEqual([entry['name'] for entry in groups[0]['items']], ['Towel bar'])

    def test_create_manual_order(self):
        data = {
            'vendor_name': 'Corner Hardware',
            'items': [{'name': 'Hinges', 'quantity': 4, 'unit_price': '5.00'}],
            'shipping_cost': '10.00',
            'deposit_percent': '50',
        }
        response = self.client.post(f'/api/v1/projects/{self.project.id}/orders/create-manual/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        order = response.data['order']
        self.assertEqual(order['status'], 'PAYMENT_RECEIVED')
        self.assertEqual(order['total_amount'], '30.00')
        self.assertEqual(order['deposit_required'], '15.00')
        self.assertEqual(order['balance_due'], '15.00')

    def test_manual_order_for_already_ordered_item(self):
        TestDataFactory.create_order(self.project, supplier=self.supplier, items=[self.item])
        data = {'supplier': self.supplier.id, 'items': [{'spec_item': self.item.id, 'unit_price': '150.00'}]}
        response = self.client.post(f'/api/v1/projects/{self.project.id}/orders/create-manual/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Some items already have orders')

    def test_order_actions_move_items(self):
        order = TestDataFactory.create_order(self.project, supplier=self.supplier, user=self.user, items=[self.item])
        url = f'/api/v1/orders/{order.id}/'

        response = self.client.post(url, {'action': 'place_order'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order']['status'], 'ORDERED')

        response = self.client.post(url, {'action': 'add_tracking', 'tracking_number': '1Z999', 'carrier': 'UPS'}, format='json')
        self.assertEqual(response.data['order']['status'], 'SHIPPED')
        self.item.refresh_from_db()
        self.assertEqual(self.item.spec_status, 'SHIPPED')

        response = self.client.post(url, {'action': 'mark_delivered', 'delivery_date': '2024-05-01'}, format='json')
        self.assertEqual(response.data['order']['status'], 'DELIVERED')
        self.item.refresh_from_db()
        self.assertEqual(self.item.spec_status, 'DELIVERED')

        response = self.client.post(url, {'action': 'cancel'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Cannot cancel a delivered order')

    def test_pay_supplier_requires_method(self):
        order = TestDataFactory.create_order(self.project, supplier=self.supplier)
        response = self.client.post(f'/api/v1/orders/{order.id}/', {'action': 'pay_supplier'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(
            f'/api/v1/orders/{order.id}/', {'action': 'pay_supplier', 'payment_method': 'WIRE'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertIsNotNone(order.supplier_paid_at)
        self.assertEqual(order.supplier_payment_amount, Decimal('100.00'))

    def test_invalid_action(self):
        order = TestDataFactory.create_order(self.project, supplier=self.supplier)
        response = self.client.post(f'/api/v1/orders/{order.id}/', {'action': 'teleport'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid action')

    def test_patch_status_logs_activity(self):
        order = TestDataFactory.create_order(self.project, supplier=self.supplier, status='ORDERED', items=[self.item])
        response = self.client.patch(f'/api/v1/orders/{order.id}/', {'status': 'CONFIRMED'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertIsNotNone(order.confirmed_at)
        self.assertTrue(OrderActivity.objects.filter(order=order, activity_type='STATUS_CHANGED').exists())
        self.item.refresh_from_db()
        self.assertEqual(self.item.spec_status, 'ORDERED')

    def test_delete_order_resets_items(self):
        self.item.spec_status = 'ORDERED'
        self.item.payment_status = 'FULLY_PAID'
        self.item.save()
        order = TestDataFactory.create_order(self.project, supplier=self.supplier, items=[self.item])
        response = self.client.delete(f'/api/v1/orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['reset_items'], [self.item.id])
        self.item.refresh_from_db()
        self.assertEqual(self.item.spec_status, 'CLIENT_PAID')

    def test_send_order(self):
        order = TestDataFactory.create_order(self.project, supplier=self.supplier, items=[self.item])
        response = self.client.post(f'/api/v1/orders/{order.id}/send/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(mail.outbox[0].to, ['orders@fixture.test'])

    def test_list_orders_by_status(self):
        TestDataFactory.create_order(self.project, supplier=self.supplier, status='ORDERED')
        TestDataFactory.create_order(self.project, supplier=self.supplier, status='CANCELLED')
        response = self.client.get(f'/api/v1/projects/{self.project.id}/orders/?status=ordered,shipped')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
