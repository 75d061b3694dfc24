from django.urls import path
from .views import (
    project_list_create, project_detail,
    room_list_create, room_detail,
    document_upload, project_document_list, document_detail,
)

urlpatterns = [
    # Project endpoints
    path('projects/', project_list_create, name='project-list-create'),
    path('projects/<int:pk>/', project_detail, name='project-detail'),

    # Room endpoints
    path('projects/<int:project_id>/rooms/', room_list_create, name='room-list-create'),
    path('rooms/<int:pk>/', room_detail, name='room-detail'),

    # Document endpoints
    path('documents/upload/', document_upload, name='document-upload'),
    path('documents/<int:pk>/', document_detail, name='document-detail'),
    path('projects/<int:project_id>/documents/', project_document_list, name='project-document-list'),
]
