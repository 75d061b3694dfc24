from django.urls import path
from .views import (
    client_invoice_list_create, client_invoice_selectable_items,
    client_quote_detail, client_quote_payments, client_quote_print,
    client_portal_invoice,
)

urlpatterns = [
    # Project invoices
    path('projects/<int:project_id>/client-invoices/', client_invoice_list_create, name='client-invoice-list-create'),
    path('projects/<int:project_id>/client-invoices/selectable-items/', client_invoice_selectable_items, name='client-invoice-selectable-items'),

    # Client quote endpoints
    path('client-quotes/<int:pk>/', client_quote_detail, name='client-quote-detail'),
    path('client-quotes/<int:pk>/payments/', client_quote_payments, name='client-quote-payments'),
    path('client-quotes/<int:pk>/print/', client_quote_print, name='client-quote-print'),

    # Public client view
    path('client-portal/invoices/<str:token>/', client_portal_invoice, name='client-portal-invoice'),
]
