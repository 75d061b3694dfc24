import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAuthenticated
from django.db import transaction
from django.shortcuts import get_object_or_404
from .models import RFQ, SupplierRFQ, SupplierQuote, Order
from .filters import OrderFilter
from .serializers import (
    RFQSerializer, RFQListSerializer, SupplierQuoteSerializer, PortalQuoteSubmitSerializer,
    PortalRFQSerializer, OrderSerializer, OrderListSerializer, ManualOrderSerializer, RFQVendorSerializer,
    SupplierQuoteRequestSerializer,
)
from . import services
from .services import ProcurementError
from renovo.core.utils import create_audit_log, paginate_queryset
from renovo.invoicing.models import ClientQuote
from renovo.pricing.calculations import to_decimal
from renovo.projects.models import Project

logger = logging.getLogger(__name__)


def _error_response(error, status_code=status.HTTP_400_BAD_REQUEST):
    return Response(error.as_response_data(), status=status_code)


def _id_list(values):
    try:
        return [int(value) for value in values or []]
    except (TypeError, ValueError):
        return None


# RFQ views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def rfq_list_create(request, project_id):
    """List a project's RFQs or create a new DRAFT RFQ"""
    project = get_object_or_404(Project, pk=project_id)

    if request.method == 'GET':
        queryset = project.rfqs.all()
        status_filter = request.query_params.get('status', None)
        if status_filter:
            queryset = queryset.filter(status=status_filter.upper())
        return Response(paginate_queryset(request, queryset, RFQListSerializer))
    else:
        data = request.data.copy()
        items_data = data.pop('items', [])
        spec_item_ids = data.pop('spec_item_ids', [])
        items_data = list(items_data) + [{'spec_item': item_id} for item_id in spec_item_ids]

        serializer = RFQSerializer(data=data, context={'items_data': items_data, 'project': project, 'request': request})
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        with transaction.atomic():
            rfq = serializer.save(
                project=project,
                rfq_number=services.generate_rfq_number(),
                created_by=request.user,
            )
        create_audit_log(
            request=request,
            action='create',
            model_name='RFQ',
            object_id=rfq.id,
            object_name=rfq.title,
            object_reference=rfq.rfq_number,
            changes={'line_items': rfq.line_items.count()}
        )
        return Response(RFQSerializer(rfq).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def rfq_detail(request, pk):
    """Retrieve, update or delete an RFQ"""
    rfq = get_object_or_404(RFQ.objects.select_related('project'), pk=pk)

    if request.method == 'GET':
        data = RFQSerializer(rfq).data
        data['quotes'] = SupplierQuoteSerializer(
            SupplierQuote.objects.filter(supplier_rfq__rfq=rfq), many=True
        ).data
        return Response(data)
    elif request.method == 'PATCH':
        data = request.data.copy()
        items_data = data.pop('items', None)
        serializer = RFQSerializer(
            rfq, data=data, partial=True,
            context={'items_data': items_data, 'project': rfq.project, 'request': request}
        )
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        with transaction.atomic():
            rfq = serializer.save()
        return Response(RFQSerializer(rfq).data)
    else:  # DELETE
        create_audit_log(
            request=request,
            action='delete',
            model_name='RFQ',
            object_id=rfq.id,
            object_name=rfq.title,
            object_reference=rfq.rfq_number
        )
        rfq.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def rfq_send(request, pk):
    """
    Send an RFQ to suppliers.

    Body: ``supplier_ids`` (registered suppliers) and/or ``vendors``
    (list of ``{"name", "email"}`` for one-off vendors).
    """
    rfq = get_object_or_404(RFQ.objects.select_related('project'), pk=pk)
    supplier_ids = _id_list(request.data.get('supplier_ids'))
    if supplier_ids is None:
        return Response({'error': 'supplier_ids must be a list of ids'}, status=status.HTTP_400_BAD_REQUEST)
    vendor_serializer = RFQVendorSerializer(data=request.data.get('vendors') or [], many=True)
    if not vendor_serializer.is_valid():
        return Response(
            {'error': 'vendors must be a list of {"name", "email"} objects', 'vendors': vendor_serializer.errors},
            status=status.HTTP_400_BAD_REQUEST
        )

    try:
        results = services.send_rfq(
            rfq,
            supplier_ids=supplier_ids,
            vendors=vendor_serializer.validated_data,
            actor=request.user,
        )
    except ProcurementError as e:
        return _error_response(e)

    create_audit_log(
        request=request,
        action='rfq_send',
        model_name='RFQ',
        object_id=rfq.id,
        object_name=rfq.title,
        object_reference=rfq.rfq_number,
        changes={'recipients': [result['supplier_name'] for result in results]}
    )
    rfq.refresh_from_db()
    return Response({
        'success': True,
        'sent_count': sum(1 for result in results if result['email_sent']),
        'results': results,
        'rfq': RFQSerializer(rfq).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def rfq_quick_quote(request):
    """Create and send an RFQ for a few spec items in one step"""
    project_id = request.data.get('project')
    item_ids = _id_list(request.data.get('item_ids'))
    if not project_id or not item_ids:
        return Response({'error': 'Project ID and at least one item ID required'}, status=status.HTTP_400_BAD_REQUEST)
    supplier_ids = _id_list(request.data.get('supplier_ids'))
    if supplier_ids is None:
        return Response({'error': 'supplier_ids must be a list of ids'}, status=status.HTTP_400_BAD_REQUEST)

    project = get_object_or_404(Project, pk=project_id)
    try:
        result = services.quick_quote(project, item_ids, supplier_ids=supplier_ids, actor=request.user)
    except ProcurementError as e:
        return _error_response(e)

    if result['needs_supplier_selection']:
        return Response(result)
    return Response(result, status=status.HTTP_201_CREATED)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def rfq_supplier_quote(request):
    """
    Request quotes for spec items, one RFQ per supplier.

    GET previews the supplier grouping (``project`` and comma separated
    ``item_ids`` query params). POST sends the RFQs; items already sent to
    their supplier are skipped unless ``override_supplier`` is true.
    """
    if request.method == 'GET':
        project_id = request.query_params.get('project')
        item_ids = _id_list([value for value in request.query_params.get('item_ids', '').split(',') if value])
        if not project_id or not item_ids:
            return Response({'error': 'Project ID and at least one item ID required'}, status=status.HTTP_400_BAD_REQUEST)
        project = get_object_or_404(Project, pk=project_id)
        try:
            return Response(services.preview_supplier_quotes(project, item_ids))
        except ProcurementError as e:
            return _error_response(e)

    serializer = SupplierQuoteRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    project = get_object_or_404(Project, pk=data['project'])

    try:
        result = services.send_supplier_quotes(
            project,
            data['item_ids'],
            override_supplier=data['override_supplier'],
            message=data['message'],
            response_deadline=data['response_deadline'],
            actor=request.user,
        )
    except ProcurementError as e:
        return _error_response(e)

    for sent in result.get('rfqs', []):
        create_audit_log(
            request=request,
            action='rfq_send',
            model_name='RFQ',
            object_id=sent['rfq_id'],
            object_name=sent['supplier_name'],
            object_reference=sent['rfq_number'],
            changes={'items': sent['item_ids']}
        )
    if not result['success']:
        return Response(result)
    return Response(result, status=status.HTTP_201_CREATED)


# Supplier portal (public, authorised by token)
@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def supplier_portal(request, token):
    """Supplier-facing RFQ view and quote submission"""
    supplier_rfq = SupplierRFQ.objects.select_related('rfq__project', 'supplier').filter(access_token=token).first()
    if supplier_rfq is None:
        return Response({'error': 'Invalid or expired link'}, status=status.HTTP_404_NOT_FOUND)
    if supplier_rfq.is_expired:
        return Response({'error': 'This link has expired'}, status=status.HTTP_410_GONE)

    if request.method == 'GET':
        services.mark_portal_viewed(supplier_rfq)
        return Response(PortalRFQSerializer(supplier_rfq).data)

    action = request.data.get('action', 'submit')
    if action == 'decline':
        services.decline_rfq(supplier_rfq, reason=request.data.get('decline_reason', ''))
        return Response({'success': True, 'action': 'declined'})
    if action != 'submit':
        return Response({'error': 'Invalid action'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = PortalQuoteSubmitSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    quote = services.submit_supplier_quote(supplier_rfq, serializer.validated_data)
    create_audit_log(
        request=request,
        action='quote_submit',
        model_name='SupplierQuote',
        object_id=quote.id,
        object_name=quote.supplier_display_name,
        object_reference=quote.quote_number,
        changes={'total_amount': str(quote.total_amount), 'rfq': supplier_rfq.rfq.rfq_number}
    )
    return Response(
        {'success': True, 'quote': SupplierQuoteSerializer(quote).data},
        status=status.HTTP_201_CREATED
    )


# Supplier quote views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def supplier_quote_list(request, project_id):
    """Supplier quotes received for a project"""
    project = get_object_or_404(Project, pk=project_id)
    queryset = project.supplier_quotes.select_related('supplier', 'supplier_rfq__rfq').prefetch_related('line_items__spec_item')

    status_filter = request.query_params.get('status', None)
    if status_filter:
        queryset = queryset.filter(status=status_filter.upper())
    supplier = request.query_params.get('supplier', None)
    if supplier:
        queryset = queryset.filter(supplier_id=supplier)

    return Response({'quotes': SupplierQuoteSerializer(queryset, many=True).data, 'count': queryset.count()})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def supplier_quote_detail(request, pk):
    quote = get_object_or_404(SupplierQuote.objects.select_related('supplier', 'supplier_rfq__rfq'), pk=pk)
    return Response(SupplierQuoteSerializer(quote).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def supplier_quote_accept(request, pk):
    """
    Accept a supplier quote: its lines become the price source for their
    spec items. ``line_ids`` limits acceptance to some lines and
    ``markup_percent`` sets the markup used for the client price.
    """
    quote = get_object_or_404(SupplierQuote, pk=pk)
    if quote.status == 'REJECTED':
        return Response({'error': 'Cannot accept a rejected quote'}, status=status.HTTP_400_BAD_REQUEST)

    line_ids = _id_list(request.data.get('line_ids'))
    if line_ids is None:
        return Response({'error': 'line_ids must be a list of ids'}, status=status.HTTP_400_BAD_REQUEST)
    markup_percent = request.data.get('markup_percent')
    try:
        markup_percent = to_decimal(markup_percent, default=None)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    results = services.accept_supplier_quote(quote, line_ids=line_ids, markup_percent=markup_percent, actor=request.user)
    create_audit_log(
        request=request,
        action='quote_accept',
        model_name='SupplierQuote',
        object_id=quote.id,
        object_name=quote.supplier_display_name,
        object_reference=quote.quote_number,
        changes={'accepted_lines': [result['line_id'] for result in results if result['accepted']]}
    )
    quote.refresh_from_db()
    return Response({'success': True, 'results': results, 'quote': SupplierQuoteSerializer(quote).data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def supplier_quote_reject(request, pk):
    quote = get_object_or_404(SupplierQuote, pk=pk)
    if quote.status == 'ACCEPTED':
        return Response({'error': 'Cannot reject an accepted quote'}, status=status.HTTP_400_BAD_REQUEST)
    services.reject_supplier_quote(quote, reason=request.data.get('reason', ''), actor=request.user)
    create_audit_log(
        request=request,
        action='quote_reject',
        model_name='SupplierQuote',
        object_id=quote.id,
        object_name=quote.supplier_display_name,
        object_reference=quote.quote_number,
        changes={'reason': request.data.get('reason', '')}
    )
    return Response(SupplierQuoteSerializer(quote).data)


# Order views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_list(request, project_id):
    """Purchase orders for a project"""
    project = get_object_or_404(Project, pk=project_id)
    queryset = project.orders.select_related('supplier', 'project').prefetch_related('items')

    order_filter = OrderFilter(request.query_params, queryset=queryset)
    if not order_filter.is_valid():
        return Response(order_filter.errors, status=status.HTTP_400_BAD_REQUEST)
    return Response(paginate_queryset(request, order_filter.qs, OrderListSerializer, default_limit=50))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_create_manual(request, project_id):
    project = get_object_or_404(Project, pk=project_id)
    serializer = ManualOrderSerializer(data=request.data, context={'project': project})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        order = services.create_manual_order(project, serializer.validated_data, actor=request.user)
    except ProcurementError as e:
        return _error_response(e)

    create_audit_log(
        request=request,
        action='order_create',
        model_name='Order',
        object_id=order.id,
        object_name=order.supplier_display_name,
        object_reference=order.order_number,
        changes={'total_amount': str(order.total_amount), 'items': order.items.count()}
    )
    return Response({'order': OrderSerializer(order).data}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def order_create_from_invoice(request, project_id):
    """
    Purchase orders from a paid client invoice, one per supplier.

    GET previews the grouping (``client_quote`` query param); POST creates
    the orders (``client_quote`` and optional ``item_ids`` in the body).
    """
    project = get_object_or_404(Project, pk=project_id)
    source = request.query_params if request.method == 'GET' else request.data
    invoice_id = source.get('client_quote')
    if not invoice_id:
        return Response({'error': 'client_quote is required'}, status=status.HTTP_400_BAD_REQUEST)
    invoice = get_object_or_404(ClientQuote, pk=invoice_id, project=project)

    if request.method == 'GET':
        return Response(services.preview_orders_from_invoice(invoice))

    item_ids = _id_list(request.data.get('item_ids'))
    if item_ids is None:
        return Response({'error': 'item_ids must be a list of ids'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        result = services.create_orders_from_invoice(invoice, item_ids=item_ids, actor=request.user)
    except ProcurementError as e:
        return _error_response(e)

    for created in result['orders']:
        create_audit_log(
            request=request,
            action='order_create',
            model_name='Order',
            object_id=created['id'],
            object_name=created['supplier_name'],
            object_reference=created['order_number'],
            changes={'client_invoice': invoice.quote_number, 'total_amount': created['total_amount']}
        )
    return Response(result, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'POST', 'DELETE'])
@permission_classes([IsAuthenticated])
def order_detail(request, pk):
    """
    Retrieve, update or delete a purchase order.

    POST runs an action: place_order, add_tracking, mark_delivered,
    pay_supplier or cancel (extra fields in the body).
    """
    order = get_object_or_404(Order.objects.select_related('project', 'supplier', 'client_invoice'), pk=pk)

    if request.method == 'GET':
        return Response({'order': OrderSerializer(order).data})
    elif request.method == 'PATCH':
        previous = {
            'status': order.status,
            'tracking_number': order.tracking_number,
            'supplier_payment_amount': order.supplier_payment_amount,
        }
        serializer = OrderSerializer(order, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        with transaction.atomic():
            order = serializer.save(updated_by=request.user)
            services.record_order_update(order, previous, actor=request.user)
        if order.status != previous['status']:
            create_audit_log(
                request=request,
                action='status_change',
                model_name='Order',
                object_id=order.id,
                object_reference=order.order_number,
                changes={'status': {'old': previous['status'], 'new': order.status}}
            )
        order.refresh_from_db()
        return Response({'order': OrderSerializer(order).data})
    elif request.method == 'POST':
        action = request.data.get('action')
        try:
            performed = services.apply_order_action(order, action, request.data, actor=request.user)
        except ProcurementError as e:
            return _error_response(e)
        create_audit_log(
            request=request,
            action='order_cancel' if action == 'cancel' else 'order_action',
            model_name='Order',
            object_id=order.id,
            object_reference=order.order_number,
            changes={'action': action, 'status': order.status}
        )
        order.refresh_from_db()
        return Response({'success': True, 'action': performed, 'order': OrderSerializer(order).data})
    else:  # DELETE
        create_audit_log(
            request=request,
            action='delete',
            model_name='Order',
            object_id=order.id,
            object_name=order.supplier_display_name,
            object_reference=order.order_number
        )
        reset_ids = services.delete_order(order)
        return Response({'success': True, 'reset_items': reset_ids})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_send(request, pk):
    """Email a purchase order to its supplier"""
    order = get_object_or_404(Order.objects.select_related('project', 'supplier'), pk=pk)
    try:
        sent_to = services.send_order_email(order, message=request.data.get('message', ''), actor=request.user)
    except ProcurementError as e:
        return _error_response(e)
    except Exception as e:
        logger.error(f"Failed to send purchase order {order.order_number}: {e}")
        return Response({'error': 'Failed to send purchase order'}, status=status.HTTP_502_BAD_GATEWAY)

    create_audit_log(
        request=request,
        action='order_action',
        model_name='Order',
        object_id=order.id,
        object_reference=order.order_number,
        changes={'action': 'send', 'email': sent_to}
    )
    order.refresh_from_db()
    return Response({'success': True, 'sent_to': sent_to, 'order': OrderSerializer(order).data})
