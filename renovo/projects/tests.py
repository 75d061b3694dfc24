"""
Test suite for Projects module
Tests: Projects, Rooms, Document uploads
"""
import shutil
import tempfile
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from rest_framework import status
from renovo.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from renovo.core.models import AuditLog
from renovo.projects.models import Project, ProjectDocument

MEDIA_ROOT = tempfile.mkdtemp()


class ProjectTests(TestCase):
    """Test project endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_client(name='Jordan Lee')

    def test_create_project(self):
        data = {'name': 'Maple House', 'client': self.customer.id, 'budget': '50000.00'}
        response = self.client.post('/api/v1/projects/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'DRAFT')
        self.assertEqual(response.data['client_name'], 'Jordan Lee')
        self.assertEqual(response.data['rooms'], [])
        self.assertEqual(Project.objects.get(pk=response.data['id']).created_by, self.user)

    def test_create_project_blank_name(self):
        response = self.client.post('/api/v1/projects/', {'name': '  '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filters(self):
        TestDataFactory.create_project(name='Active', client=self.customer)
        TestDataFactory.create_project(name='Paused', status='ON_HOLD')
        TestDataFactory.create_project(name='Done', status='COMPLETED')

        response = self.client.get('/api/v1/projects/?status=IN_PROGRESS,ON_HOLD')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

        response = self.client.get(f'/api/v1/projects/?client={self.customer.id}')
        self.assertEqual([row['name'] for row in response.data['results']], ['Active'])

        response = self.client.get('/api/v1/projects/?search=jordan')
        self.assertEqual(response.data['count'], 1)

    def test_detail_includes_status_counts(self):
        project = TestDataFactory.create_project(client=self.customer)
        TestDataFactory.create_spec_item(project)
        TestDataFactory.create_spec_item(project, spec_status='ORDERED')
        response = self.client.get(f'/api/v1/projects/{project.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['spec_item_count'], 2)
        self.assertEqual(response.data['spec_status_counts'], {'DRAFT': 1, 'ORDERED': 1})

    def test_status_change_is_audited(self):
        project = TestDataFactory.create_project(client=self.customer)
        response = self.client.patch(f'/api/v1/projects/{project.id}/', {'status': 'URGENT'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        log = AuditLog.objects.get(model_name='Project', action='status_change')
        self.assertEqual(log.changes['status'], {'old': 'IN_PROGRESS', 'new': 'URGENT'})

    def test_unknown_project(self):
        response = self.client.get('/api/v1/projects/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class RoomTests(TestCase):
    """Test room endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.project = TestDataFactory.create_project(user=self.user)

    def test_rooms_are_appended_in_order(self):
        first = self.client.post(f'/api/v1/projects/{self.project.id}/rooms/', {'name': 'Kitchen'}, format='json')
        second = self.client.post(f'/api/v1/projects/{self.project.id}/rooms/', {'name': 'Bath'}, format='json')
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(first.data['order'], 0)
        self.assertEqual(second.data['order'], 1)

        response = self.client.get(f'/api/v1/projects/{self.project.id}/rooms/')
        self.assertEqual([row['name'] for row in response.data], ['Kitchen', 'Bath'])

    def test_rename_room(self):
        room = TestDataFactory.create_room(self.project, name='Kitchen')
        TestDataFactory.create_spec_item(self.project, room=room)
        response = self.client.patch(f'/api/v1/rooms/{room.id}/', {'name': 'Main kitchen'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Main kitchen')
        self.assertEqual(response.data['item_count'], 1)


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class DocumentUploadTests(TestCase):
    """Test project document uploads"""

    @classmethod
    def tearDownClass(cls):
        super().tearDownClass()
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.project = TestDataFactory.create_project(user=self.user)

    def make_file(self, name='plan.pdf'):
        return SimpleUploadedFile(name, b'%PDF-1.4 test', content_type='application/pdf')

    def test_upload(self):
        response = self.client.post('/api/v1/documents/upload/', {
            'file': self.make_file(),
            'project': self.project.id,
            'document_type': 'DRAWING',
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'plan.pdf')
        self.assertEqual(response.data['document_type'], 'DRAWING')
        self.assertEqual(response.data['size'], len(b'%PDF-1.4 test'))
        self.assertTrue(AuditLog.objects.filter(action='upload', model_name='ProjectDocument').exists())

        response = self.client.get(f'/api/v1/projects/{self.project.id}/documents/')
        self.assertEqual(len(response.data), 1)

    def test_upload_errors(self):
        response = self.client.post('/api/v1/documents/upload/', {'project': self.project.id}, format='multipart')
        self.assertEqual(response.data['error'], 'No file provided')

        response = self.client.post('/api/v1/documents/upload/', {'file': self.make_file()}, format='multipart')
        self.assertEqual(response.data['error'], 'Project is required')

        response = self.client.post('/api/v1/documents/upload/', {
            'file': self.make_file(),
            'project': self.project.id,
            'document_type': 'RECEIPT',
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid document type: RECEIPT')
        self.assertFalse(ProjectDocument.objects.exists())

    def test_delete_document(self):
        response = self.client.post('/api/v1/documents/upload/', {
            'file': self.make_file(),
            'project': self.project.id,
        }, format='multipart')
        document_id = response.data['id']
        response = self.client.delete(f'/api/v1/documents/{document_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ProjectDocument.objects.filter(pk=document_id).exists())
