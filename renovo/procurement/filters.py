import django_filters
from django.db.models import Q
from .models import Order


class OrderFilter(django_filters.FilterSet):
    """Filter for purchase orders using django-filter"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.CharFilter(method='filter_status', label='Order status (comma separated)')
    supplier = django_filters.NumberFilter(field_name='supplier_id', lookup_expr='exact')
    client_invoice = django_filters.NumberFilter(field_name='client_invoice_id', lookup_expr='exact')
    supplier_paid = django_filters.BooleanFilter(field_name='supplier_paid_at', lookup_expr='isnull', exclude=True)

    class Meta:
        model = Order
        fields = ['search', 'status', 'supplier', 'client_invoice', 'supplier_paid']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(order_number__icontains=value) |
            Q(vendor_name__icontains=value) |
            Q(supplier__name__icontains=value) |
            Q(tracking_number__icontains=value)
        )

    def filter_status(self, queryset, name, value):
        statuses = [s.strip().upper() for s in value.split(',') if s.strip()]
        if not statuses:
            return queryset
        return queryset.filter(status__in=statuses)
