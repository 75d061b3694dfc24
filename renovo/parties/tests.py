"""
Test suite for Parties module
Tests: Clients, Supplier phonebook, Supplier name matching
"""
from django.test import TestCase
from rest_framework import status
from renovo.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from renovo.core.models import AuditLog
from renovo.parties.models import Client, Supplier
from renovo.parties.utils import match_supplier, normalize_name


class SupplierMatchingTests(TestCase):
    """Case-insensitive supplier lookup by name"""

    def setUp(self):
        self.lumen = TestDataFactory.create_supplier(name='Lumen Inc.')
        self.stone = TestDataFactory.create_supplier(name='Stone Works')

    def test_normalize_name(self):
        self.assertEqual(normalize_name('  Lumen Inc. '), 'lumen inc.')
        self.assertEqual(normalize_name(None), '')

    def test_exact_match_wins(self):
        exact = TestDataFactory.create_supplier(name='Lumen')
        self.assertEqual(match_supplier('LUMEN', Supplier.objects.all()), exact)

    def test_partial_match(self):
        self.assertEqual(match_supplier('stone', Supplier.objects.all()), self.stone)
        self.assertEqual(match_supplier('Stone Works Montreal', Supplier.objects.all()), self.stone)

    def test_no_match(self):
        self.assertIsNone(match_supplier('Tilecraft', Supplier.objects.all()))
        self.assertIsNone(match_supplier('   ', Supplier.objects.all()))


class ClientTests(TestCase):
    """Test client endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_client(self):
        data = {'name': 'Jordan Lee', 'email': 'jordan@test.com', 'phone': '5145550101'}
        response = self.client.post('/api/v1/clients/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['project_count'], 0)
        client = Client.objects.get(pk=response.data['id'])
        self.assertEqual(client.created_by, self.user)
        self.assertTrue(AuditLog.objects.filter(model_name='Client', action='create').exists())

    def test_list_search(self):
        TestDataFactory.create_client(name='Beta Homes')
        TestDataFactory.create_client(name='Alpha Design')
        response = self.client.get('/api/v1/clients/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['name'] for row in response.data['results']], ['Alpha Design', 'Beta Homes'])

        response = self.client.get('/api/v1/clients/?search=beta')
        self.assertEqual(response.data['count'], 1)

    def test_cannot_delete_client_with_projects(self):
        project = TestDataFactory.create_project()
        response = self.client.delete(f'/api/v1/clients/{project.client_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Client.objects.filter(pk=project.client_id).exists())

    def test_delete_client(self):
        client = TestDataFactory.create_client()
        response = self.client.delete(f'/api/v1/clients/{client.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Client.objects.filter(pk=client.id).exists())


class SupplierTests(TestCase):
    """Test supplier phonebook endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_supplier(self):
        data = {'name': '  Lumen Inc.  ', 'email': 'sales@lumen.test', 'category': 'Lighting'}
        response = self.client.post('/api/v1/suppliers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Lumen Inc.')

    def test_create_supplier_blank_name(self):
        response = self.client.post('/api/v1/suppliers/', {'name': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filters(self):
        TestDataFactory.create_supplier(name='Lumen', category='Lighting')
        TestDataFactory.create_supplier(name='Stone Works', category='Tile')
        inactive = TestDataFactory.create_supplier(name='Old Lamps', category='Lighting')
        inactive.is_active = False
        inactive.save()

        response = self.client.get('/api/v1/suppliers/?category=lighting')
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/suppliers/?category=lighting&is_active=true')
        self.assertEqual([row['name'] for row in response.data['results']], ['Lumen'])

    def test_update_supplier(self):
        supplier = TestDataFactory.create_supplier(name='Lumen')
        response = self.client.patch(
            f'/api/v1/suppliers/{supplier.id}/', {'contact_name': 'Sam'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        supplier.refresh_from_db()
        self.assertEqual(supplier.contact_name, 'Sam')
