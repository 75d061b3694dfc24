from django.urls import path
from . import views

urlpatterns = [
    path('reports/dashboard/', views.dashboard, name='reports-dashboard'),
    path('reports/projects/<int:project_id>/procurement/', views.project_procurement_report, name='project-procurement-report'),
]
