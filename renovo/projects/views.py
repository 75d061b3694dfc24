import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q, Count
from django.shortcuts import get_object_or_404
from .models import Project, Room, ProjectDocument
from .serializers import ProjectSerializer, ProjectDetailSerializer, RoomSerializer, ProjectDocumentSerializer
from renovo.core.utils import create_audit_log, paginate_queryset

logger = logging.getLogger(__name__)

MAX_UPLOAD_SIZE = 25 * 1024 * 1024


# Project views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def project_list_create(request):
    """List all projects or create a new project"""
    if request.method == 'GET':
        queryset = Project.objects.select_related('client', 'created_by')

        status_filter = request.query_params.get('status', None)
        client = request.query_params.get('client', None)
        search = request.query_params.get('search', None)

        if status_filter:
            queryset = queryset.filter(status__in=status_filter.split(','))
        if client:
            queryset = queryset.filter(client_id=client)
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) |
                Q(address__icontains=search) |
                Q(client__name__icontains=search)
            )

        queryset = queryset.order_by('-created_at')
        return Response(paginate_queryset(request, queryset, ProjectSerializer))
    else:
        serializer = ProjectSerializer(data=request.data)
        if serializer.is_valid():
            project = serializer.save(created_by=request.user)
            create_audit_log(
                request=request,
                action='create',
                model_name='Project',
                object_id=project.id,
                object_name=project.name,
                changes={'status': project.status, 'client': project.client_id}
            )
            return Response(ProjectDetailSerializer(project).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def project_detail(request, pk):
    """Retrieve, update or delete a project"""
    project = get_object_or_404(Project.objects.select_related('client').prefetch_related('rooms'), pk=pk)

    if request.method == 'GET':
        data = ProjectDetailSerializer(project).data
        data['spec_item_count'] = project.spec_items.count()
        data['spec_status_counts'] = {
            row['spec_status']: row['count']
            for row in project.spec_items.values('spec_status').annotate(count=Count('id'))
        }
        return Response(data)
    elif request.method in ('PUT', 'PATCH'):
        old_status = project.status
        serializer = ProjectSerializer(project, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            project = serializer.save()
            if project.status != old_status:
                create_audit_log(
                    request=request,
                    action='status_change',
                    model_name='Project',
                    object_id=project.id,
                    object_name=project.name,
                    changes={'status': {'old': old_status, 'new': project.status}}
                )
            return Response(ProjectDetailSerializer(project).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        create_audit_log(
            request=request,
            action='delete',
            model_name='Project',
            object_id=project.id,
            object_name=project.name
        )
        project.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Room views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def room_list_create(request, project_id):
    """List rooms of a project or add a room"""
    project = get_object_or_404(Project, pk=project_id)

    if request.method == 'GET':
        rooms = project.rooms.all()
        return Response(RoomSerializer(rooms, many=True).data)
    else:
        serializer = RoomSerializer(data=request.data)
        if serializer.is_valid():
            extra = {} if 'order' in request.data else {'order': project.rooms.count()}
            serializer.save(project=project, **extra)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def room_detail(request, pk):
    """Retrieve, update or delete a room"""
    room = get_object_or_404(Room, pk=pk)

    if request.method == 'GET':
        return Response(RoomSerializer(room).data)
    elif request.method == 'PATCH':
        serializer = RoomSerializer(room, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        room.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Document views
@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def document_upload(request):
    """Upload a project document (multipart/form-data)"""
    upload = request.FILES.get('file')
    if not upload:
        return Response({'error': 'No file provided'}, status=status.HTTP_400_BAD_REQUEST)

    project_id = request.data.get('project')
    if not project_id:
        return Response({'error': 'Project is required'}, status=status.HTTP_400_BAD_REQUEST)
    project = get_object_or_404(Project, pk=project_id)

    if upload.size > MAX_UPLOAD_SIZE:
        return Response({'error': 'File is too large (max 25 MB)'}, status=status.HTTP_400_BAD_REQUEST)

    document_type = request.data.get('document_type') or 'OTHER'
    valid_types = [choice[0] for choice in ProjectDocument.DOCUMENT_TYPE_CHOICES]
    if document_type not in valid_types:
        return Response({'error': f'Invalid document type: {document_type}'}, status=status.HTTP_400_BAD_REQUEST)

    document = ProjectDocument.objects.create(
        project=project,
        file=upload,
        name=request.data.get('name') or upload.name,
        document_type=document_type,
        content_type=getattr(upload, 'content_type', '') or '',
        size=upload.size,
        uploaded_by=request.user
    )
    logger.info(f"Uploaded document {document.name} ({document.size} bytes) to project {project.id}")
    create_audit_log(
        request=request,
        action='upload',
        model_name='ProjectDocument',
        object_id=document.id,
        object_name=document.name,
        object_reference=project.name,
        changes={'size': document.size, 'document_type': document.document_type}
    )
    return Response(
        ProjectDocumentSerializer(document, context={'request': request}).data,
        status=status.HTTP_201_CREATED
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def project_document_list(request, project_id):
    """List documents attached to a project"""
    project = get_object_or_404(Project, pk=project_id)
    documents = project.documents.select_related('uploaded_by')

    document_type = request.query_params.get('document_type', None)
    if document_type:
        documents = documents.filter(document_type=document_type)

    return Response(ProjectDocumentSerializer(documents, many=True, context={'request': request}).data)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def document_detail(request, pk):
    """Delete a project document and its stored file"""
    document = get_object_or_404(ProjectDocument, pk=pk)
    document.file.delete(save=False)
    document.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)
