from django.urls import path
from .views import (
    rfq_list_create, rfq_detail, rfq_send, rfq_quick_quote, rfq_supplier_quote,
    supplier_portal,
    supplier_quote_list, supplier_quote_detail, supplier_quote_accept, supplier_quote_reject,
    order_list, order_create_manual, order_create_from_invoice, order_detail, order_send,
)

urlpatterns = [
    # RFQ endpoints
    path('projects/<int:project_id>/rfqs/', rfq_list_create, name='rfq-list-create'),
    path('rfqs/<int:pk>/', rfq_detail, name='rfq-detail'),
    path('rfqs/<int:pk>/send/', rfq_send, name='rfq-send'),
    path('rfq/quick-quote/', rfq_quick_quote, name='rfq-quick-quote'),
    path('rfq/supplier-quote/', rfq_supplier_quote, name='rfq-supplier-quote'),

    # Supplier portal (token access)
    path('supplier-portal/<str:token>/', supplier_portal, name='supplier-portal'),

    # Supplier quote endpoints
    path('projects/<int:project_id>/supplier-quotes/', supplier_quote_list, name='supplier-quote-list'),
    path('supplier-quotes/<int:pk>/', supplier_quote_detail, name='supplier-quote-detail'),
    path('supplier-quotes/<int:pk>/accept/', supplier_quote_accept, name='supplier-quote-accept'),
    path('supplier-quotes/<int:pk>/reject/', supplier_quote_reject, name='supplier-quote-reject'),

    # Order endpoints
    path('projects/<int:project_id>/orders/', order_list, name='order-list'),
    path('projects/<int:project_id>/orders/create-manual/', order_create_manual, name='order-create-manual'),
    path('projects/<int:project_id>/orders/create-from-invoice/', order_create_from_invoice, name='order-create-from-invoice'),
    path('orders/<int:pk>/', order_detail, name='order-detail'),
    path('orders/<int:pk>/send/', order_send, name='order-send'),
]
