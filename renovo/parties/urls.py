from django.urls import path
from .views import (
    client_list_create, client_detail,
    supplier_list_create, supplier_detail,
)

urlpatterns = [
    # Client endpoints
    path('clients/', client_list_create, name='client-list-create'),
    path('clients/<int:pk>/', client_detail, name='client-detail'),

    # Supplier endpoints
    path('suppliers/', supplier_list_create, name='supplier-list-create'),
    path('suppliers/<int:pk>/', supplier_detail, name='supplier-detail'),
]
