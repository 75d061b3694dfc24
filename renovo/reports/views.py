import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Sum, Count, DecimalField
from django.shortcuts import get_object_or_404
from django.utils import timezone
from datetime import datetime
from decimal import Decimal

from renovo.core.cache_utils import (
    cached_query,
    DASHBOARD_CACHE_PREFIX,
    DASHBOARD_CACHE_TTL,
    PROJECT_REPORT_CACHE_PREFIX,
    REPORTS_CACHE_TTL,
)
from renovo.invoicing.models import ClientQuote, ClientPayment
from renovo.invoicing.services import billing_stats
from renovo.pricing.calculations import has_price, line_total
from renovo.procurement.models import RFQ, SupplierQuote, Order
from renovo.projects.models import Project
from renovo.specs.models import SpecItem

logger = logging.getLogger('renovo.reports')

OPEN_RFQ_STATUSES = ['SENT', 'PARTIALLY_QUOTED']
QUOTES_AWAITING_REVIEW_STATUSES = ['SUBMITTED', 'REVIEWING']


def _counts_by(queryset, field):
    return {
        row[field]: row['count']
        for row in queryset.values(field).annotate(count=Count('id')).order_by(field)
    }


def _sum(queryset, field):
    return queryset.aggregate(
        total=Sum(field, output_field=DecimalField())
    )['total'] or Decimal('0.00')


def _parse_date_range(request):
    """``date_from`` / ``date_to`` query params (YYYY-MM-DD); raises ValueError on bad input"""
    date_from = request.query_params.get('date_from', None)
    date_to = request.query_params.get('date_to', None)

    date_from = datetime.strptime(date_from, '%Y-%m-%d').date() if date_from else None
    date_to = datetime.strptime(date_to, '%Y-%m-%d').date() if date_to else None

    if date_from and date_to and date_to < date_from:
        raise ValueError('date_to must be on or after date_from')
    return date_from, date_to


@cached_query(cache_ttl=DASHBOARD_CACHE_TTL, key_prefix=DASHBOARD_CACHE_PREFIX)
def build_dashboard(date_from=None, date_to=None):
    """Company-wide procurement and billing figures"""
    invoices = ClientQuote.objects.exclude(status='DRAFT')
    if date_from:
        invoices = invoices.filter(created_at__date__gte=date_from)
    if date_to:
        invoices = invoices.filter(created_at__date__lte=date_to)

    total_billed = _sum(invoices, 'total_amount')
    total_paid = _sum(
        ClientPayment.objects.filter(client_quote__in=invoices, status__in=ClientPayment.COUNTED_STATUSES),
        'amount'
    )

    active_orders = Order.objects.exclude(status='CANCELLED')
    supplier_unpaid = active_orders.filter(supplier_paid_at__isnull=True)

    return {
        'period': {
            'from': date_from.isoformat() if date_from else None,
            'to': date_to.isoformat() if date_to else None,
        },
        'projects_by_status': _counts_by(Project.objects.all(), 'status'),
        'open_rfqs': RFQ.objects.filter(status__in=OPEN_RFQ_STATUSES).count(),
        'quotes_awaiting_review': SupplierQuote.objects.filter(status__in=QUOTES_AWAITING_REVIEW_STATUSES).count(),
        'orders_by_status': _counts_by(Order.objects.all(), 'status'),
        'billing': {
            'invoices_sent': invoices.count(),
            'total_billed': float(total_billed),
            'total_paid': float(total_paid),
            'outstanding': float(total_billed - total_paid),
        },
        'supplier_spend': {
            'committed': float(_sum(active_orders, 'total_amount')),
            'unpaid': float(_sum(supplier_unpaid, 'total_amount')),
        },
        'generated_at': timezone.now().isoformat(),
    }


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix=PROJECT_REPORT_CACHE_PREFIX)
def build_project_procurement_report(project_id):
    """Spec item pipeline, RFQ / quote / order counts, invoicing and supplier spend for one project"""
    project = Project.objects.get(pk=project_id)
    items = SpecItem.objects.filter(project_id=project_id)

    client_value = Decimal('0.00')
    unpriced_items = 0
    for item in items:
        if has_price(item.selling_price):
            client_value += line_total(item.quantity or 1, item.selling_price)
        else:
            unpriced_items += 1

    orders = Order.objects.filter(project_id=project_id)
    active_orders = orders.exclude(status='CANCELLED')
    supplier_spend = []
    for row in active_orders.values('supplier__name', 'vendor_name').annotate(
        total=Sum('total_amount', output_field=DecimalField()),
        orders=Count('id'),
    ).order_by('-total'):
        supplier_spend.append({
            'supplier': row['supplier__name'] or row['vendor_name'] or 'Unknown',
            'orders': row['orders'],
            'total': float(row['total'] or 0),
        })

    committed = _sum(active_orders, 'total_amount')
    invoices = list(project.client_quotes.prefetch_related('payments'))

    return {
        'project': {'id': project.id, 'name': project.name, 'status': project.status},
        'spec_items': {
            'total': items.count(),
            'by_status': _counts_by(SpecItem.objects.filter(project_id=project_id), 'spec_status'),
            'by_payment_status': _counts_by(SpecItem.objects.filter(project_id=project_id), 'payment_status'),
            'client_approved': items.filter(client_approved=True).count(),
            'unpriced': unpriced_items,
            'client_value': float(client_value),
        },
        'rfqs': _counts_by(RFQ.objects.filter(project_id=project_id), 'status'),
        'supplier_quotes': _counts_by(SupplierQuote.objects.filter(project_id=project_id), 'status'),
        'orders': _counts_by(orders, 'status'),
        'invoices': billing_stats(invoices),
        'supplier_spend': supplier_spend,
        'budget': {
            'budget': float(project.budget) if project.budget is not None else None,
            'committed': float(committed),
            'remaining': float(project.budget - committed) if project.budget is not None else None,
        },
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard(request):
    """Dashboard figures; ``date_from`` / ``date_to`` restrict the billing totals"""
    try:
        date_from, date_to = _parse_date_range(request)
    except ValueError as e:
        return Response({'error': f'Invalid date range: {e}'}, status=status.HTTP_400_BAD_REQUEST)

    data = build_dashboard(date_from, date_to)
    logger.info(f"Dashboard served (user: {request.user.username}, date_from: {date_from}, date_to: {date_to})")
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def project_procurement_report(request, project_id):
    """Procurement report for a single project"""
    get_object_or_404(Project, pk=project_id)
    return Response(build_project_procurement_report(project_id))
