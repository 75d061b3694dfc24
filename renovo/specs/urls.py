from django.urls import path
from .views import (
    spec_item_list_create, spec_item_detail, spec_item_approve, spec_item_sync_status,
    spec_component_create, spec_component_detail, spec_section_summary,
)

urlpatterns = [
    path('projects/<int:project_id>/ffe-specs/', spec_item_list_create, name='spec-item-list-create'),
    path('projects/<int:project_id>/ffe-specs/sections/', spec_section_summary, name='spec-section-summary'),
    path('ffe-specs/sync-status/', spec_item_sync_status, name='spec-item-sync-status'),
    path('ffe-specs/<int:pk>/', spec_item_detail, name='spec-item-detail'),
    path('ffe-specs/<int:pk>/approve/', spec_item_approve, name='spec-item-approve'),
    path('ffe-specs/<int:pk>/components/', spec_component_create, name='spec-component-create'),
    path('ffe-components/<int:pk>/', spec_component_detail, name='spec-component-detail'),
]
