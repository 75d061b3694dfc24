from django.urls import path
from .views import (
    update_list_create, update_detail,
    update_photo_list_upload, update_photo_detail, site_survey,
    task_list_create, task_detail, task_move, task_board,
    project_calendar,
)

urlpatterns = [
    # Update endpoints
    path('projects/<int:project_id>/updates/', update_list_create, name='update-list-create'),
    path('updates/<int:pk>/', update_detail, name='update-detail'),

    # Photo endpoints
    path('updates/<int:update_id>/photos/', update_photo_list_upload, name='update-photo-list-upload'),
    path('photos/<int:pk>/', update_photo_detail, name='update-photo-detail'),
    path('projects/<int:project_id>/site-survey/', site_survey, name='site-survey'),

    # Task endpoints
    path('projects/<int:project_id>/tasks/', task_list_create, name='task-list-create'),
    path('projects/<int:project_id>/task-board/', task_board, name='task-board'),
    path('tasks/<int:pk>/', task_detail, name='task-detail'),
    path('tasks/<int:pk>/move/', task_move, name='task-move'),

    # Calendar
    path('projects/<int:project_id>/calendar/', project_calendar, name='project-calendar'),
]
