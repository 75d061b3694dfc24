import logging
from decimal import Decimal
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import Count
from django.shortcuts import get_object_or_404
from django.utils import timezone
from .models import SpecItem, SpecComponent
from .filters import SpecItemFilter
from .serializers import SpecItemSerializer, SpecComponentSerializer, ItemActivitySerializer
from .status_sync import STATUS_TRIGGERS, log_item_activity, sync_item_status, sync_items_status
from renovo.core.utils import create_audit_log, parse_bool
from renovo.parties.models import Supplier
from renovo.parties.utils import match_supplier
from renovo.pricing.services import markup_for_category
from renovo.projects.models import Project

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def spec_item_list_create(request, project_id):
    """List a project's FFE spec items or add a new item"""
    project = get_object_or_404(Project, pk=project_id)

    if request.method == 'GET':
        queryset = project.spec_items.select_related('room', 'supplier').prefetch_related('components')
        if not parse_bool(request.query_params.get('include_hidden')):
            queryset = queryset.exclude(spec_status='HIDDEN')

        item_filter = SpecItemFilter(request.query_params, queryset=queryset)
        if not item_filter.is_valid():
            return Response(item_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        items = list(item_filter.qs)

        total_rrp = sum((item.get_rrp_total() or Decimal('0') for item in items), Decimal('0'))
        by_status = {}
        for item in items:
            by_status[item.spec_status] = by_status.get(item.spec_status, 0) + 1

        return Response({
            'items': SpecItemSerializer(items, many=True).data,
            'count': len(items),
            'summary': {
                'total_rrp': str(total_rrp),
                'approved': sum(1 for item in items if item.client_approved),
                'by_status': by_status,
            },
        })
    else:
        data = request.data.copy()
        components_data = data.pop('components', [])

        serializer = SpecItemSerializer(
            data=data,
            context={'project': project, 'components_data': components_data, 'request': request}
        )
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        extra = {}
        validated = serializer.validated_data
        if validated.get('markup_percent') is None and validated.get('section_name'):
            default_markup = markup_for_category(validated['section_name'])
            if default_markup:
                extra['markup_percent'] = default_markup
        if not validated.get('supplier') and validated.get('supplier_name'):
            matched = match_supplier(validated['supplier_name'], Supplier.objects.filter(is_active=True))
            if matched:
                extra['supplier'] = matched

        with transaction.atomic():
            item = serializer.save(project=project, created_by=request.user, **extra)
            log_item_activity(item, 'CREATED', 'Item Created', f'{item.name} added to specs', actor=request.user)

        return Response(SpecItemSerializer(item).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def spec_item_detail(request, pk):
    """Retrieve, update or delete a spec item"""
    item = get_object_or_404(SpecItem.objects.select_related('project', 'room', 'supplier'), pk=pk)

    if request.method == 'GET':
        data = SpecItemSerializer(item).data
        data['activities'] = ItemActivitySerializer(item.activities.select_related('actor')[:50], many=True).data
        return Response(data)
    elif request.method == 'PATCH':
        old_values = {
            'spec_status': item.spec_status,
            'trade_price': item.trade_price,
            'rrp': item.rrp,
            'markup_percent': item.markup_percent,
        }
        serializer = SpecItemSerializer(item, data=request.data, partial=True, context={'project': item.project})
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        with transaction.atomic():
            item = serializer.save()
            if item.spec_status != old_values['spec_status']:
                log_item_activity(
                    item,
                    'STATUS_CHANGED',
                    'Status Updated',
                    f"Status changed from {old_values['spec_status']} to {item.spec_status}",
                    actor=request.user,
                    metadata={'from': old_values['spec_status'], 'to': item.spec_status, 'manual': True}
                )

            price_changes = {
                field: {'old': str(old) if old is not None else None, 'new': str(getattr(item, field)) if getattr(item, field) is not None else None}
                for field, old in old_values.items()
                if field != 'spec_status' and getattr(item, field) != old
            }
            if price_changes:
                create_audit_log(
                    request=request,
                    action='price_change',
                    model_name='SpecItem',
                    object_id=item.id,
                    object_name=item.name,
                    object_reference=item.project.name,
                    changes=price_changes
                )
        return Response(SpecItemSerializer(item).data)
    else:  # DELETE
        create_audit_log(
            request=request,
            action='delete',
            model_name='SpecItem',
            object_id=item.id,
            object_name=item.name,
            object_reference=item.project.name
        )
        item.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def spec_item_approve(request, pk):
    """Record (or withdraw) the client's approval of an item"""
    item = get_object_or_404(SpecItem, pk=pk)
    approved = parse_bool(request.data.get('approved', True))

    with transaction.atomic():
        if approved:
            item.client_approved = True
            item.client_approved_at = timezone.now()
            item.client_approved_via = request.data.get('via') or 'manual'
            item.save()
            log_item_activity(
                item,
                'CLIENT_APPROVED',
                'Client Approved',
                f'Approved via {item.client_approved_via}',
                actor=request.user
            )
            sync_item_status(item, 'client_approved', actor=request.user)
        else:
            item.client_approved = False
            item.client_approved_at = None
            item.client_approved_via = ''
            item.save()
            log_item_activity(item, 'UPDATED', 'Client Approval Withdrawn', actor=request.user)

    return Response(SpecItemSerializer(item).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def spec_item_sync_status(request):
    """Apply a procurement trigger to a batch of spec items"""
    trigger = request.data.get('trigger')
    item_ids = request.data.get('item_ids') or []

    if trigger not in STATUS_TRIGGERS:
        return Response(
            {'error': f'Unknown trigger: {trigger}', 'valid_triggers': sorted(STATUS_TRIGGERS)},
            status=status.HTTP_400_BAD_REQUEST
        )
    if not item_ids:
        return Response({'error': 'item_ids is required'}, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        results = sync_items_status(SpecItem.objects.filter(id__in=item_ids), trigger, actor=request.user)

    return Response({
        'results': [result.as_dict() for result in results],
        'updated': sum(1 for result in results if result.updated),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def spec_component_create(request, pk):
    """Add a component to a spec item"""
    item = get_object_or_404(SpecItem, pk=pk)
    serializer = SpecComponentSerializer(data=request.data)
    if serializer.is_valid():
        order = serializer.validated_data.get('order') or item.components.count()
        serializer.save(item=item, order=order)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def spec_component_detail(request, pk):
    """Update or delete a component"""
    component = get_object_or_404(SpecComponent, pk=pk)

    if request.method == 'PATCH':
        serializer = SpecComponentSerializer(component, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        component.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def spec_section_summary(request, project_id):
    """Item counts and approval progress per section"""
    project = get_object_or_404(Project, pk=project_id)
    rows = (
        project.spec_items.exclude(spec_status='HIDDEN')
        .values('section_name')
        .annotate(count=Count('id'))
        .order_by('section_name')
    )
    approved = dict(
        project.spec_items.filter(client_approved=True)
        .values_list('section_name')
        .annotate(count=Count('id'))
    )
    return Response([
        {
            'section_name': row['section_name'] or 'Uncategorized',
            'count': row['count'],
            'approved': approved.get(row['section_name'], 0),
            'markup_percent': str(markup_for_category(row['section_name'])),
        }
        for row in rows
    ])
