import logging
from datetime import date, timedelta
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone
from .filters import TaskFilter
from .models import ProjectUpdate, UpdatePhoto, Task
from .serializers import (
    ProjectUpdateSerializer, ProjectUpdateDetailSerializer, UpdatePhotoSerializer,
    TaskSerializer, TaskMoveSerializer, SiteSurveySerializer,
)
from . import services
from .services import TaskError
from renovo.core.utils import create_audit_log, paginate_queryset
from renovo.projects.models import Project
from renovo.projects.views import MAX_UPLOAD_SIZE

logger = logging.getLogger(__name__)

MAX_CALENDAR_DAYS = 366


# Update views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def update_list_create(request, project_id):
    """List a project's updates or post a new one"""
    project = get_object_or_404(Project, pk=project_id)

    if request.method == 'GET':
        queryset = project.updates.select_related('author', 'room')

        update_type = request.query_params.get('update_type', None)
        category = request.query_params.get('category', None)
        status_filter = request.query_params.get('status', None)

        if update_type:
            queryset = queryset.filter(update_type__in=update_type.upper().split(','))
        if category:
            queryset = queryset.filter(category__in=category.upper().split(','))
        if status_filter:
            queryset = queryset.filter(status__in=status_filter.upper().split(','))

        return Response(paginate_queryset(request, queryset, ProjectUpdateSerializer))

    serializer = ProjectUpdateSerializer(data=request.data, context={'project': project})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    update = serializer.save(project=project, author=request.user)
    create_audit_log(
        request=request,
        action='create',
        model_name='ProjectUpdate',
        object_id=update.id,
        object_name=str(update),
        object_reference=project.name,
        changes={'update_type': update.update_type, 'category': update.category}
    )
    return Response(ProjectUpdateSerializer(update).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def update_detail(request, pk):
    """Retrieve, update or delete a project update"""
    update = get_object_or_404(ProjectUpdate.objects.select_related('project', 'author', 'room'), pk=pk)

    if request.method == 'GET':
        return Response(ProjectUpdateDetailSerializer(update, context={'request': request}).data)
    elif request.method == 'PATCH':
        old_status = update.status
        serializer = ProjectUpdateSerializer(update, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        update = serializer.save()
        if update.status != old_status:
            update.completed_at = timezone.now() if update.status == 'COMPLETED' else None
            update.save(update_fields=['completed_at', 'updated_at'])
        return Response(ProjectUpdateDetailSerializer(update, context={'request': request}).data)
    else:  # DELETE
        for photo in update.photos.all():
            photo.image.delete(save=False)
        create_audit_log(
            request=request,
            action='delete',
            model_name='ProjectUpdate',
            object_id=update.id,
            object_name=str(update),
            object_reference=update.project.name
        )
        update.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Photo views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser, JSONParser])
def update_photo_list_upload(request, update_id):
    """List the photos of an update or upload one (multipart/form-data)"""
    update = get_object_or_404(ProjectUpdate, pk=update_id)

    if request.method == 'GET':
        photos = update.photos.select_related('uploaded_by', 'room')
        return Response(UpdatePhotoSerializer(photos, many=True, context={'request': request}).data)

    upload = request.FILES.get('image')
    if not upload:
        return Response({'error': 'No image provided'}, status=status.HTTP_400_BAD_REQUEST)
    if upload.size > MAX_UPLOAD_SIZE:
        return Response({'error': 'File is too large (max 25 MB)'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = UpdatePhotoSerializer(data=request.data, context={'request': request})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    photo = services.add_update_photo(update, serializer.validated_data, actor=request.user)
    logger.info(f"Uploaded photo {photo.image.name} ({photo.size} bytes) to update {update.id}")
    return Response(UpdatePhotoSerializer(photo, context={'request': request}).data, status=status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def update_photo_detail(request, pk):
    """Edit photo details or delete a photo and its stored file"""
    photo = get_object_or_404(UpdatePhoto, pk=pk)

    if request.method == 'PATCH':
        data = request.data.copy()
        data.pop('image', None)
        serializer = UpdatePhotoSerializer(photo, data=data, partial=True, context={'request': request})
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        return Response(serializer.data)

    photo.image.delete(save=False)
    photo.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def site_survey(request, project_id):
    """
    Upload a batch of site survey photos (``images`` field, repeated).

    Every file is validated on its own; valid ones are stored on a new
    PHOTO update and invalid ones are reported back. Nothing is created
    when no file is valid.
    """
    project = get_object_or_404(Project, pk=project_id)
    files = request.FILES.getlist('images')
    if not files:
        return Response({'error': 'No images provided'}, status=status.HTTP_400_BAD_REQUEST)

    form = SiteSurveySerializer(data=request.data)
    if not form.is_valid():
        return Response(form.errors, status=status.HTTP_400_BAD_REQUEST)
    fields = form.validated_data
    room = fields.get('room')
    if room is not None and room.project_id != project.id:
        return Response({'room': 'Room does not belong to this project'}, status=status.HTTP_400_BAD_REQUEST)

    results = []
    valid = []
    for upload in files:
        if upload.size > MAX_UPLOAD_SIZE:
            results.append({'name': upload.name, 'success': False, 'error': 'File is too large (max 25 MB)'})
            continue
        photo_serializer = UpdatePhotoSerializer(data={
            'image': upload,
            'room': room.id if room else None,
            'room_area': fields.get('room_area', ''),
            'trade_category': fields.get('trade_category', ''),
            'is_before_photo': fields.get('is_before_photo', False),
            'is_after_photo': fields.get('is_after_photo', False),
        })
        if photo_serializer.is_valid():
            valid.append((upload.name, photo_serializer.validated_data))
        else:
            errors = photo_serializer.errors
            message = errors.get('image', errors.get('non_field_errors', ['Invalid image']))[0]
            results.append({'name': upload.name, 'success': False, 'error': str(message)})

    if not valid:
        return Response({
            'error': 'No photos could be uploaded',
            'uploaded': 0,
            'failed': len(results),
            'results': results,
        }, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        update = services.create_survey_update(
            project,
            title=fields.get('title', ''),
            description=fields.get('description', ''),
            room=room,
            actor=request.user,
        )
        for name, data in valid:
            photo = services.add_update_photo(update, data, actor=request.user)
            results.append({'name': name, 'success': True, 'photo_id': photo.id})

    uploaded = sum(1 for result in results if result['success'])
    logger.info(f"Site survey on project {project.id}: {uploaded} uploaded, {len(results) - uploaded} failed")
    create_audit_log(
        request=request,
        action='upload',
        model_name='ProjectUpdate',
        object_id=update.id,
        object_name=str(update),
        object_reference=project.name,
        changes={'uploaded': uploaded, 'failed': len(results) - uploaded}
    )
    return Response({
        'update': ProjectUpdateDetailSerializer(update, context={'request': request}).data,
        'uploaded': uploaded,
        'failed': len(results) - uploaded,
        'results': results,
    }, status=status.HTTP_201_CREATED)


# Task views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def task_list_create(request, project_id):
    """
    GET: filtered, paginated tasks plus stats over all of the project's tasks.
    POST: create a task at the end of its board column.
    """
    project = get_object_or_404(Project, pk=project_id)

    if request.method == 'GET':
        queryset = project.tasks.select_related('assignee', 'room', 'created_by').prefetch_related('dependencies')
        task_filter = TaskFilter(request.query_params, queryset=queryset)
        if not task_filter.is_valid():
            return Response(task_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        data = paginate_queryset(request, task_filter.qs, TaskSerializer, default_limit=50)
        data['stats'] = services.task_stats(project.tasks.all())
        return Response(data)

    serializer = TaskSerializer(data=request.data, context={'project': project})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = dict(serializer.validated_data)
    dependency_ids = data.pop('dependency_ids', [])
    try:
        dependencies = services.resolve_dependencies(project, dependency_ids)
    except TaskError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        task = Task(project=project, created_by=request.user, **data)
        task_status = task.status
        task.status = 'TODO'
        services.stamp_task_status(task, task_status)
        task.position = services.next_position(project, task.status)
        task.save()
        task.dependencies.set(dependencies)

    create_audit_log(
        request=request,
        action='create',
        model_name='Task',
        object_id=task.id,
        object_name=task.title,
        object_reference=project.name,
        changes={'status': task.status, 'priority': task.priority}
    )
    return Response(TaskSerializer(task).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def task_detail(request, pk):
    """Retrieve, update or delete a task"""
    task = get_object_or_404(Task.objects.select_related('project', 'assignee', 'room'), pk=pk)

    if request.method == 'GET':
        return Response(TaskSerializer(task).data)
    elif request.method == 'PATCH':
        serializer = TaskSerializer(task, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = dict(serializer.validated_data)
        dependency_ids = data.pop('dependency_ids', None)
        new_status = data.pop('status', None)

        dependencies = None
        if dependency_ids is not None:
            try:
                dependencies = services.resolve_dependencies(task.project, dependency_ids, task=task)
            except TaskError as e:
                return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        with transaction.atomic():
            old_status = task.status
            for field, value in data.items():
                setattr(task, field, value)
            task.save()
            if dependencies is not None:
                task.dependencies.set(dependencies)
            if new_status and new_status != old_status:
                services.move_task(task, new_status)

        if new_status and new_status != old_status:
            create_audit_log(
                request=request,
                action='status_change',
                model_name='Task',
                object_id=task.id,
                object_name=task.title,
                changes={'status': {'old': old_status, 'new': task.status}}
            )
        return Response(TaskSerializer(task).data)
    else:  # DELETE
        task.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def task_move(request, pk):
    """Move a task on the board: ``status`` column and optional ``position`` in it"""
    task = get_object_or_404(Task, pk=pk)
    serializer = TaskMoveSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_status = task.status
    try:
        task = services.move_task(task, serializer.validated_data['status'], serializer.validated_data.get('position'))
    except TaskError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    if task.status != old_status:
        create_audit_log(
            request=request,
            action='status_change',
            model_name='Task',
            object_id=task.id,
            object_name=task.title,
            changes={'status': {'old': old_status, 'new': task.status}}
        )
    return Response(TaskSerializer(task).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def task_board(request, project_id):
    """Kanban board: one column per task status"""
    project = get_object_or_404(Project, pk=project_id)
    columns = services.task_board(project)
    labels = dict(Task.STATUS_CHOICES)
    return Response({
        'columns': [
            {
                'status': column_status,
                'label': labels.get(column_status, column_status),
                'count': len(tasks),
                'tasks': TaskSerializer(tasks, many=True).data,
            }
            for column_status, tasks in columns.items()
        ],
        'stats': services.task_stats(project.tasks.all()),
    })


def _parse_date(value):
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        return None


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def project_calendar(request, project_id):
    """
    Dated events for a project between ``start`` and ``end`` (YYYY-MM-DD).

    Defaults to six weeks from the first day of the current month.
    """
    project = get_object_or_404(Project, pk=project_id)

    start_param = request.query_params.get('start', None)
    end_param = request.query_params.get('end', None)
    start = _parse_date(start_param) if start_param else timezone.localdate().replace(day=1)
    if start is None:
        return Response({'error': 'Invalid start date, expected YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)
    end = _parse_date(end_param) if end_param else start + timedelta(days=41)
    if end is None:
        return Response({'error': 'Invalid end date, expected YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)
    if end < start:
        return Response({'error': 'End date must be on or after start date'}, status=status.HTTP_400_BAD_REQUEST)
    if (end - start).days > MAX_CALENDAR_DAYS:
        return Response({'error': f'Date range cannot exceed {MAX_CALENDAR_DAYS} days'}, status=status.HTTP_400_BAD_REQUEST)

    return Response({
        'start': start.isoformat(),
        'end': end.isoformat(),
        'events': services.calendar_events(project, start, end),
    })
