"""
Test suite for Core module
Tests: Authentication, Users, Settings, Audit Logs, Document Numbers, Global Search
"""
from django.test import TestCase
from rest_framework import status
from renovo.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from renovo.core.models import AuditLog, Setting
from renovo.core.utils import next_document_number, parse_bool
from renovo.invoicing.models import ClientQuote


class AuthenticationTests(TestCase):
    """Test registration, login and the current user endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register(self):
        data = {
            'username': 'designer',
            'email': 'designer@test.com',
            'password': 'Sup3r-Secret-Pass',
            'password_confirm': 'Sup3r-Secret-Pass',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['username'], 'designer')
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_register_password_mismatch(self):
        data = {
            'username': 'designer',
            'password': 'Sup3r-Secret-Pass',
            'password_confirm': 'Different-Pass-99',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login(self):
        """Test user login returns an access/refresh pair"""
        TestDataFactory.create_user(username='login_user', password='testpass123')
        response = self.client.post(
            '/api/v1/auth/login/', {'username': 'login_user', 'password': 'testpass123'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_login_wrong_password(self):
        TestDataFactory.create_user(username='login_user', password='testpass123')
        response = self.client.post(
            '/api/v1/auth/login/', {'username': 'login_user', 'password': 'wrong'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me(self):
        user = TestDataFactory.create_user(is_staff=True)
        self.client.authenticate_user(user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], user.username)
        self.assertTrue(response.data['is_admin'])
        self.assertEqual(response.data['groups'], [])

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class UserManagementTests(TestCase):
    """User endpoints are staff only"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(is_staff=True)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_list_users(self):
        TestDataFactory.create_user()
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_non_staff_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_deactivate_user(self):
        user = TestDataFactory.create_user()
        response = self.client.patch(f'/api/v1/users/{user.id}/', {'is_active': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertFalse(user.is_active)


class SettingTests(TestCase):
    """Test key/value settings"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(is_staff=True)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_create_and_update_setting(self):
        response = self.client.post(
            '/api/v1/settings/', {'key': 'default_markup', 'value': '30'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        setting_id = response.data['id']

        response = self.client.patch(f'/api/v1/settings/{setting_id}/', {'value': '35'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Setting.objects.get(pk=setting_id).value, '35')

    def test_duplicate_key(self):
        Setting.objects.create(key='default_markup', value='30')
        response = self.client.post(
            '/api/v1/settings/', {'key': 'default_markup', 'value': '40'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_ordered_by_key(self):
        Setting.objects.create(key='tax_region', value='QC')
        Setting.objects.create(key='currency', value='CAD')
        response = self.client.get('/api/v1/settings/')
        self.assertEqual([row['key'] for row in response.data], ['currency', 'tax_region'])


class AuditLogTests(TestCase):
    """Test audit log listing and visibility"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.other = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.own_log = AuditLog.objects.create(
            user=self.user, action='invoice_send', model_name='ClientQuote',
            object_id='1', object_reference='INV-2024-0001'
        )
        self.other_log = AuditLog.objects.create(
            user=self.other, action='order_create', model_name='Order',
            object_id='2', object_reference='PO-2024-0001'
        )

    def test_user_sees_own_entries(self):
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['object_reference'], 'INV-2024-0001')

    def test_staff_filters(self):
        self.client.authenticate_user(TestDataFactory.create_user(is_staff=True))
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/audit-logs/?model_name=Order')
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/v1/audit-logs/?reference=inv-2024')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['action'], 'invoice_send')

    def test_detail_permission(self):
        response = self.client.get(f'/api/v1/audit-logs/{self.own_log.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.get(f'/api/v1/audit-logs/{self.other_log.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Permission denied')


class DocumentNumberTests(TestCase):
    """Sequential yearly document numbers"""

    def setUp(self):
        self.project = TestDataFactory.create_project()

    def test_first_number(self):
        self.assertEqual(next_document_number(ClientQuote, 'quote_number', 'INV', year=2024), 'INV-2024-0001')

    def test_increments_within_year(self):
        ClientQuote.objects.create(quote_number='INV-2024-0007', project=self.project, title='Deposit')
        ClientQuote.objects.create(quote_number='INV-2023-0042', project=self.project, title='Old')
        self.assertEqual(next_document_number(ClientQuote, 'quote_number', 'INV', year=2024), 'INV-2024-0008')
        self.assertEqual(next_document_number(ClientQuote, 'quote_number', 'INV', year=2025), 'INV-2025-0001')

    def test_parse_bool(self):
        self.assertTrue(parse_bool('true'))
        self.assertTrue(parse_bool('1'))
        self.assertFalse(parse_bool('no'))
        self.assertFalse(parse_bool(None))


class GlobalSearchTests(TestCase):
    """Test search across projects, suppliers and clients"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_empty_query(self):
        response = self.client.get('/api/v1/search/?q=')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['projects'], [])
        self.assertEqual(response.data['suppliers'], [])

    def test_search(self):
        TestDataFactory.create_project(name='Maple House')
        TestDataFactory.create_project(name='Harbour Loft')
        TestDataFactory.create_supplier(name='Maple Lighting')

        response = self.client.get('/api/v1/search/?q=maple')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([project['name'] for project in response.data['projects']], ['Maple House'])
        self.assertEqual([supplier['name'] for supplier in response.data['suppliers']], ['Maple Lighting'])
        self.assertEqual(response.data['orders'], [])
