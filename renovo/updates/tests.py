"""
Test suite for Updates module
Tests: project updates, site survey uploads, task board, task dependencies and the project calendar
"""
import io
import shutil
import tempfile
from datetime import date, timedelta
from decimal import Decimal
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.utils import timezone
from PIL import Image
from rest_framework import status
from renovo.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from renovo.updates import services
from renovo.updates.models import ProjectUpdate, UpdatePhoto, Task

MEDIA_ROOT = tempfile.mkdtemp()


def make_png(name='photo.png', size=(8, 6)):
    buffer = io.BytesIO()
    Image.new('RGB', size, color=(200, 120, 40)).save(buffer, format='PNG')
    return SimpleUploadedFile(name, buffer.getvalue(), content_type='image/png')


class ProjectUpdateTests(TestCase):
    """Test project update endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.project = TestDataFactory.create_project(user=self.user)

    def test_create_update(self):
        data = {'update_type': 'ISSUE', 'category': 'SAFETY', 'title': 'Loose railing'}
        response = self.client.post(f'/api/v1/projects/{self.project.id}/updates/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['author'], self.user.id)
        self.assertEqual(response.data['photo_count'], 0)

    def test_room_from_other_project(self):
        room = TestDataFactory.create_room(TestDataFactory.create_project())
        data = {'title': 'Wrong room', 'room': room.id}
        response = self.client.post(f'/api/v1/projects/{self.project.id}/updates/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filters(self):
        ProjectUpdate.objects.create(project=self.project, update_type='ISSUE', title='Leak')
        ProjectUpdate.objects.create(project=self.project, update_type='PHOTO', title='Photos')
        ProjectUpdate.objects.create(project=self.project, update_type='GENERAL', title='Note')
        response = self.client.get(f'/api/v1/projects/{self.project.id}/updates/?update_type=issue,photo')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

    def test_completing_sets_timestamp(self):
        update = ProjectUpdate.objects.create(project=self.project, title='Paint')
        response = self.client.patch(f'/api/v1/updates/{update.id}/', {'status': 'COMPLETED'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        update.refresh_from_db()
        self.assertIsNotNone(update.completed_at)

        self.client.patch(f'/api/v1/updates/{update.id}/', {'status': 'ACTIVE'}, format='json')
        update.refresh_from_db()
        self.assertIsNone(update.completed_at)


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class SiteSurveyTests(TestCase):
    """Test batch photo uploads"""

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.project = TestDataFactory.create_project(user=self.user)
        self.room = TestDataFactory.create_room(self.project, name='Kitchen')
        self.url = f'/api/v1/projects/{self.project.id}/site-survey/'

    def test_partial_upload(self):
        bad = SimpleUploadedFile('notes.png', b'not an image', content_type='image/png')
        data = {
            'images': [make_png('one.png'), bad, make_png('two.png')],
            'title': 'Kitchen survey',
            'room': self.room.id,
            'is_before_photo': 'true',
        }
        response = self.client.post(self.url, data, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['uploaded'], 2)
        self.assertEqual(response.data['failed'], 1)
        failed = [result for result in response.data['results'] if not result['success']]
        self.assertEqual(failed[0]['name'], 'notes.png')

        update = ProjectUpdate.objects.get(pk=response.data['update']['id'])
        self.assertEqual(update.update_type, 'PHOTO')
        self.assertEqual(update.title, 'Kitchen survey')
        photos = list(update.photos.all())
        self.assertEqual(len(photos), 2)
        self.assertTrue(all(photo.is_before_photo and photo.room == self.room for photo in photos))
        self.assertEqual((photos[0].width, photos[0].height), (8, 6))

    def test_no_valid_files(self):
        bad = SimpleUploadedFile('notes.txt', b'plain text', content_type='text/plain')
        response = self.client.post(self.url, {'images': [bad]}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['uploaded'], 0)
        self.assertEqual(response.data['failed'], 1)
        self.assertFalse(ProjectUpdate.objects.exists())

    def test_no_files(self):
        response = self.client.post(self.url, {'title': 'Empty'}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'No images provided')

    def test_default_title(self):
        response = self.client.post(self.url, {'images': [make_png()]}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['update']['title'], f'Site survey {timezone.localdate().isoformat()}')

    def test_single_photo_upload(self):
        update = ProjectUpdate.objects.create(project=self.project, title='Progress')
        url = f'/api/v1/updates/{update.id}/photos/'
        response = self.client.post(url, {'caption': 'North wall'}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(url, {'image': make_png(), 'caption': 'North wall'}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['caption'], 'North wall')
        self.assertTrue(response.data['url'])
        self.assertEqual(UpdatePhoto.objects.filter(update=update).count(), 1)


class TaskTests(TestCase):
    """Test task creation, board moves and dependencies"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.project = TestDataFactory.create_project(user=self.user)
        self.url = f'/api/v1/projects/{self.project.id}/tasks/'

    def test_create_appends_to_column(self):
        TestDataFactory.create_task(self.project, status='IN_PROGRESS', position=0)
        response = self.client.post(self.url, {'title': 'Tile backsplash', 'status': 'IN_PROGRESS'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['position'], 1)
        self.assertIsNotNone(response.data['started_at'])
        self.assertIsNone(response.data['completed_at'])

    def test_create_requires_title(self):
        response = self.client.post(self.url, {'title': ''}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_dependency(self):
        response = self.client.post(self.url, {'title': 'Grout', 'dependency_ids': [99999]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Some dependency tasks not found')

    def test_dependency_cycle(self):
        first = TestDataFactory.create_task(self.project, title='Demo')
        second = TestDataFactory.create_task(self.project, title='Framing', position=1)
        second.dependencies.add(first)

        response = self.client.patch(f'/api/v1/tasks/{first.id}/', {'dependency_ids': [second.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Circular task dependency')

        response = self.client.patch(f'/api/v1/tasks/{first.id}/', {'dependency_ids': [first.id]}, format='json')
        self.assertEqual(response.data['error'], 'Task cannot depend on itself')

    def test_move_reorders_column(self):
        first = TestDataFactory.create_task(self.project, title='A', position=0)
        second = TestDataFactory.create_task(self.project, title='B', position=1)
        third = TestDataFactory.create_task(self.project, title='C', position=2)

        response = self.client.post(f'/api/v1/tasks/{third.id}/move/', {'status': 'TODO', 'position': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        positions = dict(Task.objects.filter(project=self.project).values_list('title', 'position'))
        self.assertEqual(positions, {'C': 0, 'A': 1, 'B': 2})

    def test_move_to_done_stamps_completion(self):
        task = TestDataFactory.create_task(self.project)
        TestDataFactory.create_task(self.project, status='DONE', position=0)
        response = self.client.post(f'/api/v1/tasks/{task.id}/move/', {'status': 'DONE'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['position'], 1)
        task.refresh_from_db()
        self.assertIsNotNone(task.completed_at)

        completed_at = task.completed_at
        services.move_task(task, 'IN_REVIEW')
        services.move_task(task, 'DONE')
        self.assertEqual(task.completed_at, completed_at)

    def test_move_invalid_status(self):
        task = TestDataFactory.create_task(self.project)
        response = self.client.post(f'/api/v1/tasks/{task.id}/move/', {'status': 'LATER'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_patch_status_moves_to_end_of_column(self):
        TestDataFactory.create_task(self.project, status='IN_PROGRESS', position=0)
        task = TestDataFactory.create_task(self.project)
        response = self.client.patch(f'/api/v1/tasks/{task.id}/', {'status': 'IN_PROGRESS'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['position'], 1)
        self.assertIsNotNone(response.data['started_at'])

    def test_list_stats_and_filters(self):
        yesterday = timezone.localdate() - timedelta(days=1)
        TestDataFactory.create_task(self.project, title='Late', due_date=yesterday, estimated_hours=Decimal('2.5'))
        TestDataFactory.create_task(self.project, title='Done', status='DONE', due_date=yesterday)
        TestDataFactory.create_task(self.project, title='Urgent', priority='URGENT')

        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 3)
        stats = response.data['stats']
        self.assertEqual(stats['total'], 3)
        self.assertEqual(stats['completed'], 1)
        self.assertEqual(stats['overdue'], 1)
        self.assertEqual(Decimal(stats['totals']['estimated_hours']), Decimal('2.5'))

        response = self.client.get(f'{self.url}?overdue=true')
        self.assertEqual([task['title'] for task in response.data['results']], ['Late'])
        response = self.client.get(f'{self.url}?priority=urgent')
        self.assertEqual(response.data['count'], 1)

    def test_board_columns(self):
        TestDataFactory.create_task(self.project, title='B', position=1)
        TestDataFactory.create_task(self.project, title='A', position=0)
        TestDataFactory.create_task(self.project, title='Review', status='IN_REVIEW')

        response = self.client.get(f'/api/v1/projects/{self.project.id}/task-board/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        columns = {column['status']: column for column in response.data['columns']}
        self.assertEqual(list(columns), Task.BOARD_COLUMNS)
        self.assertEqual([task['title'] for task in columns['TODO']['tasks']], ['A', 'B'])
        self.assertEqual(columns['IN_REVIEW']['count'], 1)
        self.assertEqual(columns['DONE']['count'], 0)


class CalendarTests(TestCase):
    """Test the project calendar feed"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.project = TestDataFactory.create_project(user=self.user)
        self.url = f'/api/v1/projects/{self.project.id}/calendar/'

    def test_events_in_range(self):
        TestDataFactory.create_task(self.project, title='Inspection', due_date=date(2024, 3, 5))
        TestDataFactory.create_task(self.project, title='Dropped', status='CANCELLED', due_date=date(2024, 3, 6))
        TestDataFactory.create_task(self.project, title='Later', due_date=date(2024, 5, 1))
        TestDataFactory.create_order(self.project, expected_delivery=date(2024, 3, 4))
        TestDataFactory.create_client_quote(
            self.project, status='SENT_TO_CLIENT', sent=True, valid_until=date(2024, 3, 10)
        )
        TestDataFactory.create_client_quote(self.project, valid_until=date(2024, 3, 11))

        response = self.client.get(f'{self.url}?start=2024-03-01&end=2024-03-31')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        events = response.data['events']
        self.assertEqual([event['type'] for event in events], ['delivery', 'task', 'invoice_due'])
        self.assertEqual(events[1]['title'], 'Inspection')
        self.assertTrue(events[1]['overdue'])
        self.assertEqual(events[2]['status'], 'OVERDUE')

    def test_default_range(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        start = timezone.localdate().replace(day=1)
        self.assertEqual(response.data['start'], start.isoformat())
        self.assertEqual(response.data['end'], (start + timedelta(days=41)).isoformat())

    def test_invalid_ranges(self):
        for query in ('start=03/01/2024', 'start=2024-03-10&end=2024-03-01', 'start=2024-01-01&end=2025-06-01'):
            response = self.client.get(f'{self.url}?{query}')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, query)
