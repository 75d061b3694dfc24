"""
Test suite for Invoicing module
Tests: invoice wizard, invoice creation, billing status, payments, sending and the client portal
"""
from datetime import timedelta
from decimal import Decimal
from django.core import mail
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from renovo.core.models import AuditLog
from renovo.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from renovo.invoicing.models import ClientQuote
from renovo.invoicing.services import billing_stats
from renovo.invoicing.wizard import InvoiceWizard, InvoiceWizardStep, WizardError


class InvoiceWizardTests(TestCase):
    """Step guards and line building"""

    def setUp(self):
        self.project = TestDataFactory.create_project()
        self.eligible = TestDataFactory.create_spec_item(
            self.project, name='Sofa', rrp=Decimal('1000'), client_approved=True, section_name='Furniture'
        )
        self.unapproved = TestDataFactory.create_spec_item(self.project, name='Rug', rrp=Decimal('300'))

    def _wizard(self, preselected_ids=None):
        return InvoiceWizard(self.project.spec_items.all(), preselected_ids=preselected_ids)

    def test_starts_at_item_selection(self):
        wizard = self._wizard()
        self.assertEqual(wizard.step, InvoiceWizardStep.ITEM_SELECTION)
        self.assertEqual([item.id for item in wizard.selectable_items()], [self.eligible.id])
        self.assertEqual(wizard.ineligible_items()[0]['reason'], 'Not approved by client')

    def test_preselection_skips_item_selection(self):
        wizard = self._wizard([self.eligible.id, self.unapproved.id])
        self.assertEqual(wizard.step, InvoiceWizardStep.DETAILS)
        self.assertEqual(wizard.selected_ids, [self.eligible.id])
        self.assertEqual(len(wizard.line_items), 1)

    def test_toggle_ineligible_item(self):
        wizard = self._wizard()
        with self.assertRaises(WizardError):
            wizard.toggle_item(self.unapproved.id)
        self.assertTrue(wizard.toggle_item(self.eligible.id))
        self.assertFalse(wizard.toggle_item(self.eligible.id))

    def test_advance_requires_selection_and_title(self):
        wizard = self._wizard()
        with self.assertRaisesMessage(WizardError, 'Please select at least one item'):
            wizard.advance()

        wizard.toggle_item(self.eligible.id)
        self.assertEqual(wizard.advance(), InvoiceWizardStep.DETAILS)
        with self.assertRaisesMessage(WizardError, 'Please enter an invoice title'):
            wizard.advance()

        wizard.title = 'Living room'
        self.assertEqual(wizard.advance(), InvoiceWizardStep.REVIEW)
        self.assertEqual(wizard.advance(), InvoiceWizardStep.SEND)
        with self.assertRaises(WizardError):
            wizard.advance()

    def test_select_category_toggles(self):
        wizard = self._wizard()
        self.assertEqual(wizard.select_category('furniture'), [self.eligible.id])
        self.assertEqual(wizard.select_category('Furniture'), [])
        self.assertEqual(wizard.selected_ids, [])

    def test_component_lines(self):
        TestDataFactory.create_component(self.eligible, name='Cushion', price=Decimal('25'), quantity=2)
        TestDataFactory.create_component(self.eligible, name='Unpriced')
        wizard = self._wizard([self.eligible.id])
        self.assertEqual([line['display_name'] for line in wizard.line_items], ['Sofa', '↳ Cushion'])
        self.assertTrue(wizard.line_items[1]['is_component'])
        self.assertEqual(wizard.totals().subtotal, Decimal('1050.00'))

    def test_review_edits(self):
        wizard = self._wizard([self.eligible.id])
        with self.assertRaises(WizardError):
            wizard.set_line_quantity(0, 2)
        wizard.title = 'Invoice'
        wizard.advance()
        wizard.set_line_quantity(0, 2)
        wizard.set_line_price(0, '900')
        self.assertEqual(wizard.line_total(0), Decimal('1800.00'))
        with self.assertRaises(WizardError):
            wizard.set_line_quantity(0, 0)


class BillingStatusTests(TestCase):
    """Derived billing status and summary stats"""

    def setUp(self):
        self.project = TestDataFactory.create_project()

    def test_billing_statuses(self):
        today = timezone.localdate()
        draft = TestDataFactory.create_client_quote(self.project)
        sent = TestDataFactory.create_client_quote(self.project, status='SENT_TO_CLIENT', sent=True)
        overdue = TestDataFactory.create_client_quote(
            self.project, status='SENT_TO_CLIENT', sent=True, valid_until=today - timedelta(days=1)
        )
        partial = TestDataFactory.create_client_quote(self.project, status='SENT_TO_CLIENT', sent=True)
        TestDataFactory.create_payment(partial, Decimal('40.00'))
        paid = TestDataFactory.create_client_quote(self.project, status='APPROVED', sent=True)
        TestDataFactory.create_payment(paid, Decimal('100.00'))
        TestDataFactory.create_payment(paid, Decimal('500.00'), status='FAILED')

        self.assertEqual(draft.get_billing_status(today), 'DRAFT')
        self.assertEqual(sent.get_billing_status(today), 'SENT')
        self.assertEqual(overdue.get_billing_status(today), 'OVERDUE')
        self.assertEqual(partial.get_billing_status(today), 'PARTIAL')
        self.assertEqual(paid.get_billing_status(today), 'PAID')
        self.assertEqual(paid.get_balance(), Decimal('0.00'))

        stats = billing_stats([draft, sent, overdue, partial, paid], today=today)
        self.assertEqual(stats['total'], 5)
        self.assertEqual(stats['overdue'], 1)
        self.assertEqual(stats['total_billed'], '500.00')
        self.assertEqual(stats['total_paid'], '140.00')
        self.assertEqual(stats['outstanding'], '360.00')


class ClientInvoiceAPITests(TestCase):
    """Test invoice create, update, delete and list endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.project = TestDataFactory.create_project(user=self.user)
        self.item = TestDataFactory.create_spec_item(
            self.project, name='Vanity', rrp=Decimal('100'), client_approved=True, spec_status='BUDGET_APPROVED'
        )
        self.url = f'/api/v1/projects/{self.project.id}/client-invoices/'

    def test_create_from_spec_items(self):
        response = self.client.post(self.url, {'title': 'Bathroom', 'item_ids': [self.item.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['quote_number'].startswith('INV-'))
        self.assertEqual(response.data['status'], 'DRAFT')
        self.assertEqual(response.data['subtotal'], '100.00')
        self.assertEqual(response.data['total_amount'], '114.98')

        self.item.refresh_from_db()
        self.assertEqual(self.item.spec_status, 'INVOICED_TO_CLIENT')
        self.assertEqual(self.item.payment_status, 'INVOICED')
        self.assertTrue(AuditLog.objects.filter(model_name='ClientQuote', action='create').exists())

    def test_create_from_line_items(self):
        data = {
            'title': 'Sample',
            'line_items': [
                {'display_name': 'A', 'quantity': 1, 'client_unit_price': '10.00'},
                {'display_name': 'B', 'quantity': 2, 'client_unit_price': '20.00'},
                {'display_name': 'C', 'quantity': 3, 'client_unit_price': '5.00'},
            ],
            'deposit_percent': '50',
        }
        response = self.client.post(self.url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total_amount'], '74.73')
        self.assertEqual(response.data['deposit_amount'], '37.37')
        self.assertEqual(len(response.data['line_items']), 3)

    def test_create_requires_title(self):
        response = self.client.post(self.url, {'item_ids': [self.item.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Title is required')

    def test_create_requires_items(self):
        response = self.client.post(self.url, {'title': 'Empty'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'At least one item is required')
        self.assertFalse(ClientQuote.objects.exists())

    def test_create_rejects_item_from_other_project(self):
        other = TestDataFactory.create_spec_item(TestDataFactory.create_project(), rrp=Decimal('10'))
        data = {'title': 'Wrong', 'line_items': [{'spec_item': other.id, 'display_name': 'X', 'client_unit_price': '10'}]}
        response = self.client.post(self.url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_with_billing_status_filter(self):
        TestDataFactory.create_client_quote(self.project)
        TestDataFactory.create_client_quote(self.project, status='SENT_TO_CLIENT', sent=True)

        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['invoices']), 2)
        self.assertEqual(response.data['stats']['sent'], 1)

        response = self.client.get(f'{self.url}?status=sent')
        self.assertEqual([invoice['status'] for invoice in response.data['invoices']], ['SENT'])

    def test_selectable_items(self):
        TestDataFactory.create_spec_item(self.project, name='No price', client_approved=True)
        response = self.client.get(f'{self.url}selectable-items/?item_ids={self.item.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['start_step'], 1)
        self.assertEqual(response.data['selected_ids'], [self.item.id])
        self.assertEqual(response.data['ineligible_items'][0]['reason'], 'No RRP')

        response = self.client.get(f'{self.url}selectable-items/?item_ids=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_recalculates_totals(self):
        client_quote = TestDataFactory.create_client_quote(self.project, items=[self.item])
        data = {'line_items': [{'display_name': 'Vanity', 'quantity': 2, 'client_unit_price': '100.00'}]}
        response = self.client.patch(f'/api/v1/client-quotes/{client_quote.id}/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['subtotal'], '200.00')
        self.assertEqual(response.data['total_amount'], '229.95')

    def test_approved_invoice_is_frozen(self):
        client_quote = TestDataFactory.create_client_quote(self.project, status='APPROVED')
        response = self.client.patch(f'/api/v1/client-quotes/{client_quote.id}/', {'title': 'New'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_only_drafts_can_be_deleted(self):
        sent = TestDataFactory.create_client_quote(self.project, status='SENT_TO_CLIENT', sent=True)
        response = self.client.delete(f'/api/v1/client-quotes/{sent.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        draft = TestDataFactory.create_client_quote(self.project)
        response = self.client.delete(f'/api/v1/client-quotes/{draft.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ClientQuote.objects.filter(pk=draft.id).exists())


class InvoiceActionTests(TestCase):
    """Test send, test email and client response actions"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.project = TestDataFactory.create_project(user=self.user)
        self.item = TestDataFactory.create_spec_item(self.project, rrp=Decimal('100'), client_approved=True)
        self.client_quote = TestDataFactory.create_client_quote(self.project, items=[self.item])
        self.url = f'/api/v1/client-quotes/{self.client_quote.id}/'

    def test_send_invoice(self):
        response = self.client.post(self.url, {'action': 'send'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['sent_to'], self.project.client.email)
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn(self.client_quote.quote_number, mail.outbox[0].subject)
        self.client_quote.refresh_from_db()
        self.assertIn(self.client_quote.access_token, mail.outbox[0].body)
        self.assertEqual(self.client_quote.status, 'SENT_TO_CLIENT')
        self.assertIsNotNone(self.client_quote.sent_to_client_at)
        self.assertIsNotNone(self.client_quote.token_expires_at)
        self.item.refresh_from_db()
        self.assertEqual(self.item.spec_status, 'INVOICED_TO_CLIENT')

    def test_send_without_email(self):
        self.project.client.email = ''
        self.project.client.save()
        response = self.client.post(self.url, {'action': 'send'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Client email not found')
        self.assertEqual(len(mail.outbox), 0)

    def test_test_email_keeps_status(self):
        response = self.client.post(self.url, {'action': 'test_email', 'email': 'me@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(mail.outbox[0].subject.startswith('[TEST]'))
        self.client_quote.refresh_from_db()
        self.assertEqual(self.client_quote.status, 'DRAFT')

    def test_record_response(self):
        response = self.client.post(self.url, {'action': 'record_response', 'decision': 'approved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'APPROVED')

    def test_invalid_action(self):
        response = self.client.post(self.url, {'action': 'explode'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid action')

    def test_print(self):
        response = self.client.get(f'{self.url}print/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn(self.client_quote.quote_number, response.content.decode())


class PaymentTests(TestCase):
    """Test payment recording and spec item payment status"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.project = TestDataFactory.create_project(user=self.user)
        self.item = TestDataFactory.create_spec_item(
            self.project, rrp=Decimal('100'), client_approved=True, spec_status='INVOICED_TO_CLIENT'
        )
        self.client_quote = TestDataFactory.create_client_quote(
            self.project, status='SENT_TO_CLIENT', sent=True, items=[self.item]
        )
        self.url = f'/api/v1/client-quotes/{self.client_quote.id}/payments/'

    def test_partial_payment(self):
        response = self.client.post(self.url, {'amount': '40.00', 'method': 'CREDIT_CARD'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['billing_status'], 'PARTIAL')
        self.assertEqual(response.data['balance'], '60.00')

        self.item.refresh_from_db()
        self.assertEqual(self.item.payment_status, 'DEPOSIT_PAID')
        self.assertEqual(self.item.paid_amount, Decimal('40.00'))
        self.assertEqual(self.item.spec_status, 'INVOICED_TO_CLIENT')

    def test_full_payment_moves_items(self):
        response = self.client.post(self.url, {'amount': '100.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['billing_status'], 'PAID')

        self.item.refresh_from_db()
        self.assertEqual(self.item.payment_status, 'FULLY_PAID')
        self.assertEqual(self.item.spec_status, 'CLIENT_PAID')

    def test_non_positive_amount(self):
        response = self.client.post(self.url, {'amount': '0'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_payments(self):
        TestDataFactory.create_payment(self.client_quote, Decimal('25.00'))
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['payments']), 1)
        self.assertEqual(response.data['total_paid'], '25.00')


class ClientPortalTests(TestCase):
    """Test the public invoice link"""

    def setUp(self):
        self.project = TestDataFactory.create_project()
        self.client_quote = TestDataFactory.create_client_quote(self.project, status='SENT_TO_CLIENT', sent=True)
        self.client = AuthenticatedAPIClient()

    def test_open_invoice(self):
        response = self.client.get(f'/api/v1/client-portal/invoices/{self.client_quote.access_token}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertNotIn('access_token', response.data)
        self.client_quote.refresh_from_db()
        self.assertEqual(self.client_quote.status, 'CLIENT_REVIEWING')
        self.assertEqual(self.client_quote.view_count, 1)
        self.assertIsNotNone(self.client_quote.email_opened_at)

    def test_unknown_token(self):
        response = self.client.get('/api/v1/client-portal/invoices/not-a-token/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_expired_token(self):
        self.client_quote.token_expires_at = timezone.now() - timedelta(days=1)
        self.client_quote.save()
        response = self.client.get(f'/api/v1/client-portal/invoices/{self.client_quote.access_token}/')
        self.assertEqual(response.status_code, status.HTTP_410_GONE)
