import django_filters
from django.db.models import Q
from .models import SpecItem


class SpecItemFilter(django_filters.FilterSet):
    """Filter for FFE spec items using django-filter"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    room = django_filters.NumberFilter(field_name='room_id', lookup_expr='exact')
    section = django_filters.CharFilter(field_name='section_name', lookup_expr='iexact')
    supplier = django_filters.NumberFilter(field_name='supplier_id', lookup_expr='exact')
    status = django_filters.CharFilter(method='filter_status', label='Spec status (comma separated)')
    payment_status = django_filters.CharFilter(field_name='payment_status', lookup_expr='exact')
    has_price = django_filters.BooleanFilter(method='filter_has_price', label='Has RRP')
    approved = django_filters.BooleanFilter(field_name='client_approved')

    class Meta:
        model = SpecItem
        fields = ['search', 'room', 'section', 'supplier', 'status', 'payment_status', 'has_price', 'approved']

    def filter_search(self, queryset, name, value):
        """Search name, brand, model number, supplier and section"""
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) |
            Q(brand__icontains=value) |
            Q(model_number__icontains=value) |
            Q(supplier_name__icontains=value) |
            Q(section_name__icontains=value) |
            Q(description__icontains=value)
        )

    def filter_status(self, queryset, name, value):
        statuses = [s.strip().upper() for s in value.split(',') if s.strip()]
        if not statuses:
            return queryset
        return queryset.filter(spec_status__in=statuses)

    def filter_has_price(self, queryset, name, value):
        if value is None:
            return queryset
        priced = Q(rrp__isnull=False, rrp__gt=0)
        return queryset.filter(priced) if value else queryset.exclude(priced)

