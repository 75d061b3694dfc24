"""
Test suite for Reports module
Tests: Dashboard, Project Procurement Report, Cache Invalidation, Procurement Sync Check
"""
from decimal import Decimal
from io import StringIO
from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from rest_framework import status
from renovo.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from renovo.procurement.models import RFQ


class DashboardTests(TestCase):
    """Test the company dashboard"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.project = TestDataFactory.create_project(user=self.user)

    def test_dashboard_figures(self):
        """Billing totals skip drafts, supplier spend skips cancelled orders"""
        sent = TestDataFactory.create_client_quote(self.project, status='SENT_TO_CLIENT', sent=True)
        TestDataFactory.create_payment(sent, Decimal('40.00'))
        TestDataFactory.create_client_quote(self.project, total_amount=Decimal('50.00'))
        TestDataFactory.create_order(self.project, status='ORDERED', total_amount=Decimal('300.00'))
        TestDataFactory.create_order(self.project, status='CANCELLED', total_amount=Decimal('999.00'))
        RFQ.objects.create(rfq_number='RFQ-2024-0001', project=self.project, title='Tile', status='SENT')

        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['projects_by_status'], {'IN_PROGRESS': 1})
        self.assertEqual(response.data['open_rfqs'], 1)
        self.assertEqual(response.data['billing'], {
            'invoices_sent': 1,
            'total_billed': 100.0,
            'total_paid': 40.0,
            'outstanding': 60.0,
        })
        self.assertEqual(response.data['supplier_spend'], {'committed': 300.0, 'unpaid': 300.0})
        self.assertEqual(response.data['orders_by_status'], {'CANCELLED': 1, 'ORDERED': 1})

    def test_dashboard_refreshes_after_changes(self):
        """Saving a watched model invalidates the cached dashboard"""
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.data['billing']['invoices_sent'], 0)

        TestDataFactory.create_client_quote(self.project, status='SENT_TO_CLIENT', sent=True)
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.data['billing']['invoices_sent'], 1)

    def test_dashboard_with_date_range(self):
        """Test dashboard with date range"""
        response = self.client.get('/api/v1/reports/dashboard/?date_from=2024-01-01&date_to=2024-12-31')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['period'], {'from': '2024-01-01', 'to': '2024-12-31'})
        self.assertEqual(response.data['billing']['invoices_sent'], 0)

    def test_dashboard_invalid_dates(self):
        response = self.client.get('/api/v1/reports/dashboard/?date_from=2024-13-01')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get('/api/v1/reports/dashboard/?date_from=2024-05-01&date_to=2024-04-01')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_dashboard_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class ProjectProcurementReportTests(TestCase):
    """Test the per-project procurement report"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.project = TestDataFactory.create_project(user=self.user)
        self.project.budget = Decimal('1000.00')
        self.project.save()
        self.supplier = TestDataFactory.create_supplier(name='Lumen')

    def test_project_report(self):
        priced = TestDataFactory.create_spec_item(
            self.project, rrp=Decimal('100'), quantity=2, client_approved=True, spec_status='ORDERED'
        )
        TestDataFactory.create_spec_item(self.project)
        TestDataFactory.create_order(self.project, supplier=self.supplier, status='ORDERED',
                                     total_amount=Decimal('300.00'), items=[priced])
        TestDataFactory.create_client_quote(self.project, status='SENT_TO_CLIENT', sent=True, items=[priced])

        response = self.client.get(f'/api/v1/reports/projects/{self.project.id}/procurement/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        spec_items = response.data['spec_items']
        self.assertEqual(spec_items['total'], 2)
        self.assertEqual(spec_items['by_status'], {'DRAFT': 1, 'ORDERED': 1})
        self.assertEqual(spec_items['client_approved'], 1)
        self.assertEqual(spec_items['unpriced'], 1)
        self.assertEqual(spec_items['client_value'], 200.0)
        self.assertEqual(response.data['orders'], {'ORDERED': 1})
        self.assertEqual(response.data['invoices']['sent'], 1)
        self.assertEqual(response.data['supplier_spend'], [{'supplier': 'Lumen', 'orders': 1, 'total': 300.0}])
        self.assertEqual(response.data['budget'], {'budget': 1000.0, 'committed': 300.0, 'remaining': 700.0})

    def test_unknown_project(self):
        response = self.client.get('/api/v1/reports/projects/99999/procurement/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class CheckProcurementSyncCommandTests(TestCase):
    """Test the check_procurement_sync management command"""

    def setUp(self):
        self.project = TestDataFactory.create_project()
        self.lagging = TestDataFactory.create_spec_item(self.project, name='Lagging', spec_status='INVOICED_TO_CLIENT')
        self.manual = TestDataFactory.create_spec_item(self.project, name='Sample', spec_status='NEED_SAMPLE')
        TestDataFactory.create_order(self.project, status='SHIPPED', items=[self.lagging, self.manual])

    def test_reports_without_fixing(self):
        out = StringIO()
        call_command('check_procurement_sync', stdout=out)
        output = out.getvalue()
        self.assertIn('Lagging', output)
        self.assertNotIn('Sample', output)
        self.assertIn('Items out of sync: 1', output)
        self.lagging.refresh_from_db()
        self.assertEqual(self.lagging.spec_status, 'INVOICED_TO_CLIENT')

    def test_fix(self):
        out = StringIO()
        call_command('check_procurement_sync', project_id=self.project.id, fix=True, stdout=out)
        self.assertIn('Fixed 1 item(s)', out.getvalue())
        self.lagging.refresh_from_db()
        self.manual.refresh_from_db()
        self.assertEqual(self.lagging.spec_status, 'SHIPPED')
        self.assertEqual(self.manual.spec_status, 'NEED_SAMPLE')

    def test_fully_paid_item(self):
        self.lagging.spec_status = 'BUDGET_APPROVED'
        self.lagging.payment_status = 'FULLY_PAID'
        self.lagging.save()
        self.lagging.order_items.all().delete()

        out = StringIO()
        call_command('check_procurement_sync', fix=True, stdout=out)
        self.lagging.refresh_from_db()
        self.assertEqual(self.lagging.spec_status, 'CLIENT_PAID')

    def test_in_sync(self):
        self.lagging.spec_status = 'DELIVERED'
        self.lagging.save()
        out = StringIO()
        call_command('check_procurement_sync', stdout=out)
        self.assertIn('All spec items are in sync', out.getvalue())
