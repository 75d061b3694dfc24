import django_filters
from django.db.models import Q
from django.utils import timezone
from .models import Task


class TaskFilter(django_filters.FilterSet):
    """Filter for project tasks using django-filter"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.CharFilter(method='filter_status', label='Status (comma separated)')
    priority = django_filters.CharFilter(method='filter_priority', label='Priority (comma separated)')
    assignee = django_filters.NumberFilter(field_name='assignee_id', lookup_expr='exact')
    room = django_filters.NumberFilter(field_name='room_id', lookup_expr='exact')
    update = django_filters.NumberFilter(field_name='update_id', lookup_expr='exact')
    trade_type = django_filters.CharFilter(field_name='trade_type', lookup_expr='iexact')
    overdue = django_filters.BooleanFilter(method='filter_overdue', label='Overdue')
    due_from = django_filters.DateFilter(field_name='due_date', lookup_expr='gte')
    due_to = django_filters.DateFilter(field_name='due_date', lookup_expr='lte')

    class Meta:
        model = Task
        fields = ['search', 'status', 'priority', 'assignee', 'room', 'update', 'trade_type', 'overdue', 'due_from', 'due_to']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(title__icontains=value) |
            Q(description__icontains=value) |
            Q(trade_type__icontains=value)
        )

    def filter_status(self, queryset, name, value):
        statuses = [s.strip().upper() for s in value.split(',') if s.strip()]
        if not statuses:
            return queryset
        return queryset.filter(status__in=statuses)

    def filter_priority(self, queryset, name, value):
        priorities = [p.strip().upper() for p in value.split(',') if p.strip()]
        if not priorities:
            return queryset
        return queryset.filter(priority__in=priorities)

    def filter_overdue(self, queryset, name, value):
        if value is None:
            return queryset
        overdue = Q(due_date__lt=timezone.localdate()) & ~Q(status__in=['DONE', 'CANCELLED'])
        return queryset.filter(overdue) if value else queryset.exclude(overdue)
