"""
Test suite for Pricing module
Tests: selling price, line totals, GST/QST totals, margins, category markups and the preview endpoint
"""
from decimal import Decimal
from django.test import SimpleTestCase, TestCase
from rest_framework import status
from renovo.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from renovo.pricing import calculations
from renovo.pricing.models import CategoryMarkup
from renovo.pricing.services import markup_for_category


class CalculationTests(SimpleTestCase):
    """Pure price arithmetic"""

    def test_selling_price_prefers_rrp(self):
        self.assertEqual(calculations.selling_price('120', '80', '50'), Decimal('120.00'))

    def test_selling_price_marks_up_cost(self):
        self.assertEqual(calculations.selling_price(None, '80', '25'), Decimal('100.00'))

    def test_selling_price_without_any_price(self):
        self.assertIsNone(calculations.selling_price(None, None, '25'))
        self.assertIsNone(calculations.selling_price('0', None))

    def test_line_total_rounds_half_up(self):
        self.assertEqual(calculations.line_total(3, '0.335'), Decimal('1.01'))

    def test_sample_invoice_totals(self):
        """Quantities 1, 2, 3 at $10, $20, $5: subtotal $65, total $74.73"""
        totals = calculations.calculate_totals([
            {'quantity': 1, 'unit_price': '10'},
            {'quantity': 2, 'unit_price': '20'},
            {'quantity': 3, 'unit_price': '5'},
        ])
        self.assertEqual(totals.subtotal, Decimal('65.00'))
        self.assertEqual(totals.gst_amount, Decimal('3.25'))
        self.assertEqual(totals.qst_amount, Decimal('6.48'))
        self.assertEqual(totals.total, Decimal('74.73'))
        self.assertEqual(totals.line_totals, [Decimal('10.00'), Decimal('40.00'), Decimal('15.00')])

    def test_total_is_rounded_once(self):
        """Total equals subtotal x (1 + gst + qst) rounded to cents, not the sum of rounded taxes"""
        totals = calculations.calculate_totals([{'quantity': 1, 'unit_price': '10.10'}])
        self.assertEqual(totals.gst_amount, Decimal('0.51'))
        self.assertEqual(totals.qst_amount, Decimal('1.01'))
        self.assertEqual(totals.total, Decimal('11.61'))

        expected = {
            '0.10': Decimal('0.11'),
            '10.10': Decimal('11.61'),
            '65.00': Decimal('74.73'),
            '99.99': Decimal('114.96'),
            '1234.56': Decimal('1419.44'),
        }
        for subtotal, total in expected.items():
            with self.subTest(subtotal=subtotal):
                totals = calculations.calculate_totals([{'quantity': 1, 'unit_price': subtotal}])
                self.assertEqual(totals.total, total)
                self.assertEqual(
                    totals.total,
                    (Decimal(subtotal) * Decimal('1.14975')).quantize(Decimal('0.01'), rounding='ROUND_HALF_UP'),
                )

    def test_usd_lines_are_not_taxed(self):
        totals = calculations.calculate_totals([
            {'quantity': 1, 'unit_price': '100', 'currency': 'CAD'},
            {'quantity': 1, 'unit_price': '50', 'currency': 'USD'},
        ])
        self.assertEqual(totals.subtotal, Decimal('150.00'))
        self.assertEqual(totals.usd_subtotal, Decimal('50.00'))
        self.assertEqual(totals.taxable_amount, Decimal('100.00'))
        self.assertEqual(totals.gst_amount, Decimal('5.00'))

    def test_fees_are_taxed(self):
        totals = calculations.calculate_totals(
            [{'quantity': 1, 'unit_price': '100'}],
            delivery_fee='50',
            custom_fees=[{'name': 'Install', 'amount': '50'}],
        )
        self.assertEqual(totals.fees_total, Decimal('50.00'))
        self.assertEqual(totals.taxable_amount, Decimal('200.00'))
        self.assertEqual(totals.gst_amount, Decimal('10.00'))
        self.assertEqual(totals.qst_amount, Decimal('19.95'))
        self.assertEqual(totals.total, Decimal('229.95'))

    def test_component_price_with_markup(self):
        self.assertEqual(calculations.component_price_with_markup('40', '50'), Decimal('60.00'))
        self.assertEqual(calculations.component_price_with_markup('40', None), Decimal('40.00'))
        self.assertIsNone(calculations.component_price_with_markup(None, '50'))

    def test_item_rrp_total_includes_components(self):
        self.assertEqual(calculations.item_rrp_total('100', 2, '15'), Decimal('230.00'))

    def test_margin(self):
        result = calculations.margin('100', '60')
        self.assertEqual(result.amount, Decimal('40.00'))
        self.assertEqual(result.percent, Decimal('40.00'))
        self.assertEqual(calculations.margin('0', '0').percent, Decimal('0.00'))

    def test_deposit_amount(self):
        self.assertEqual(calculations.deposit_amount('74.73', '50'), Decimal('37.37'))
        self.assertEqual(calculations.deposit_amount('74.73', None), Decimal('0.00'))

    def test_invalid_amount(self):
        with self.assertRaises(ValueError):
            calculations.to_decimal('abc')


class CategoryMarkupTests(TestCase):
    """Test category markup lookup and API"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_markup_for_category_is_case_insensitive(self):
        CategoryMarkup.objects.create(category_name='Lighting', markup_percent=Decimal('35.00'))
        self.assertEqual(markup_for_category(' lighting '), Decimal('35.00'))
        self.assertEqual(markup_for_category('Plumbing'), Decimal('0'))
        self.assertEqual(markup_for_category(''), Decimal('0'))

    def test_create_negative_markup_fails(self):
        response = self.client.post('/api/v1/category-markups/', {'category_name': 'Tile', 'markup_percent': '-5'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_apply_markup_skips_items_with_markup(self):
        project = TestDataFactory.create_project(user=self.user)
        unset = TestDataFactory.create_spec_item(project, trade_price=Decimal('10'), section_name='Lighting')
        explicit = TestDataFactory.create_spec_item(project, trade_price=Decimal('10'), markup_percent=Decimal('10'), section_name='Lighting')
        markup = CategoryMarkup.objects.create(category_name='lighting', markup_percent=Decimal('40.00'))

        response = self.client.post(f'/api/v1/category-markups/{markup.id}/apply/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['affected_count'], 1)
        unset.refresh_from_db()
        explicit.refresh_from_db()
        self.assertEqual(unset.markup_percent, Decimal('40.00'))
        self.assertEqual(explicit.markup_percent, Decimal('10.00'))


class PricingPreviewTests(TestCase):
    """Test the live totals endpoint"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_preview_sample_totals(self):
        data = {
            'line_items': [
                {'name': 'A', 'quantity': 1, 'unit_price': '10.00'},
                {'name': 'B', 'quantity': 2, 'unit_price': '20.00'},
                {'name': 'C', 'quantity': 3, 'rrp': '5.00'},
            ],
            'deposit_percent': '50',
        }
        response = self.client.post('/api/v1/pricing/preview/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['subtotal'], '65.00')
        self.assertEqual(response.data['total'], '74.73')
        self.assertEqual(response.data['deposit_amount'], '37.37')
        self.assertEqual(response.data['line_items'][1]['total_price'], '40.00')

    def test_preview_unpriced_line(self):
        data = {'line_items': [{'name': 'Sconce', 'quantity': 1}]}
        response = self.client.post('/api/v1/pricing/preview/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Sconce', response.data['error'])

    def test_preview_requires_authentication(self):
        self.client.logout()
        response = self.client.post('/api/v1/pricing/preview/', {'line_items': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
