import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAuthenticated
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.template.loader import render_to_string
from .models import ClientQuote
from .serializers import (
    ClientQuoteSerializer, ClientQuoteListSerializer, ClientInvoiceCreateSerializer,
    ClientQuoteLineItemSerializer, ClientPaymentSerializer, PortalInvoiceSerializer,
)
from . import services
from .services import InvoicingError
from .wizard import InvoiceWizard
from renovo.core.utils import create_audit_log
from renovo.projects.models import Project
from renovo.specs.serializers import SpecItemListSerializer

logger = logging.getLogger(__name__)


def _error_response(error, status_code=status.HTTP_400_BAD_REQUEST):
    return Response(error.as_response_data(), status=status_code)


def _wizard_for_project(project, item_ids=None):
    items = project.spec_items.select_related('room').prefetch_related('components')
    return InvoiceWizard(items, preselected_ids=item_ids)


def _csv_ids(value):
    try:
        return [int(part) for part in (value or '').split(',') if part.strip()]
    except ValueError:
        return None


def _preview_line(line):
    return {
        'spec_item': line['spec_item'].id if line['spec_item'] else None,
        'display_name': line['display_name'],
        'category_name': line['category_name'],
        'room_name': line['room_name'],
        'quantity': line['quantity'],
        'currency': line['currency'],
        'client_unit_price': str(line['client_unit_price']) if line['client_unit_price'] is not None else None,
        'is_component': line['is_component'],
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def client_invoice_list_create(request, project_id):
    """
    GET: invoices with their billing status plus summary stats.
    POST: create a DRAFT invoice from ``line_items`` or ``item_ids``.
    """
    project = get_object_or_404(Project, pk=project_id)

    if request.method == 'GET':
        invoices = list(
            project.client_quotes.select_related('project__client', 'sent_by').prefetch_related('payments', 'line_items')
        )
        stats = services.billing_stats(invoices)
        status_filter = request.query_params.get('status', None)
        if status_filter and status_filter.upper() != 'ALL':
            invoices = [invoice for invoice in invoices if invoice.get_billing_status() == status_filter.upper()]
        return Response({
            'invoices': ClientQuoteListSerializer(invoices, many=True).data,
            'stats': stats,
        })

    serializer = ClientInvoiceCreateSerializer(data=request.data, context={'project': project})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = dict(serializer.validated_data)

    lines = [dict(line) for line in data.pop('line_items', [])]
    item_ids = data.pop('item_ids', [])
    if not lines and item_ids:
        wizard = _wizard_for_project(project, item_ids)
        lines = wizard.build_line_items()

    try:
        client_quote = services.create_client_invoice(project, data, lines, actor=request.user)
    except InvoicingError as e:
        return _error_response(e)

    create_audit_log(
        request=request,
        action='create',
        model_name='ClientQuote',
        object_id=client_quote.id,
        object_name=client_quote.title,
        object_reference=client_quote.quote_number,
        changes={'total_amount': str(client_quote.total_amount), 'line_items': len(lines)}
    )
    return Response(ClientQuoteSerializer(client_quote).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def client_invoice_selectable_items(request, project_id):
    """
    Item selection data for the invoice wizard.

    ``item_ids`` (comma separated) preselects items, which skips the
    selection step.
    """
    project = get_object_or_404(Project, pk=project_id)
    item_ids = _csv_ids(request.query_params.get('item_ids'))
    if item_ids is None:
        return Response({'error': 'item_ids must be a comma separated list of ids'}, status=status.HTTP_400_BAD_REQUEST)

    wizard = _wizard_for_project(project, item_ids)
    selectable = wizard.selectable_items()
    categories = sorted({item.section_name for item in selectable if item.section_name})
    return Response({
        'start_step': int(wizard.step),
        'items': SpecItemListSerializer(selectable, many=True).data,
        'categories': categories,
        'ineligible_items': wizard.ineligible_items(),
        'already_invoiced': [
            {'id': item.id, 'name': item.name, 'status': item.spec_status}
            for item in selectable if item.is_already_invoiced
        ],
        'selected_ids': wizard.selected_ids,
        'line_items': [_preview_line(line) for line in wizard.line_items],
        'totals': wizard.totals().as_dict(),
    })


@api_view(['GET', 'PATCH', 'POST', 'DELETE'])
@permission_classes([IsAuthenticated])
def client_quote_detail(request, pk):
    """
    Retrieve, update or delete a client invoice.

    POST runs an action: send, record_response or test_email.
    """
    client_quote = get_object_or_404(ClientQuote.objects.select_related('project__client'), pk=pk)

    if request.method == 'GET':
        return Response(ClientQuoteSerializer(client_quote).data)
    elif request.method == 'PATCH':
        data = request.data.copy()
        lines_data = data.pop('line_items', None)
        serializer = ClientQuoteSerializer(client_quote, data=data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        lines = None
        if lines_data is not None:
            line_serializer = ClientQuoteLineItemSerializer(data=lines_data, many=True)
            if not line_serializer.is_valid():
                return Response({'line_items': line_serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
            lines = [dict(line) for line in line_serializer.validated_data]

        previous_total = client_quote.total_amount
        try:
            client_quote = services.update_client_invoice(
                client_quote, serializer.validated_data, lines=lines, actor=request.user
            )
        except InvoicingError as e:
            return _error_response(e)

        create_audit_log(
            request=request,
            action='update',
            model_name='ClientQuote',
            object_id=client_quote.id,
            object_name=client_quote.title,
            object_reference=client_quote.quote_number,
            changes={'total_amount': {'old': str(previous_total), 'new': str(client_quote.total_amount)}}
        )
        client_quote.refresh_from_db()
        return Response(ClientQuoteSerializer(client_quote).data)
    elif request.method == 'POST':
        return _client_quote_action(request, client_quote)
    else:  # DELETE
        try:
            services.delete_client_invoice(client_quote)
        except InvoicingError as e:
            return _error_response(e)
        create_audit_log(
            request=request,
            action='delete',
            model_name='ClientQuote',
            object_id=pk,
            object_name=client_quote.title,
            object_reference=client_quote.quote_number
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


def _client_quote_action(request, client_quote):
    action = request.data.get('action')
    if action == 'record_response':
        try:
            result = services.record_client_response(
                client_quote,
                request.data.get('decision'),
                message=request.data.get('message', ''),
                actor=request.user,
            )
        except InvoicingError as e:
            return _error_response(e)
    elif action in ('send', 'test_email'):
        try:
            if action == 'send':
                result = services.send_client_invoice(
                    client_quote,
                    email=request.data.get('email'),
                    message=request.data.get('message', ''),
                    actor=request.user,
                )
            else:
                result = services.send_test_email(client_quote, request.data.get('email'), actor=request.user)
        except InvoicingError as e:
            return _error_response(e)
        except Exception as e:
            logger.error(f"Failed to email {client_quote.quote_number}: {e}")
            return Response({'error': 'Failed to send email'}, status=status.HTTP_502_BAD_GATEWAY)
    else:
        return Response({'error': 'Invalid action'}, status=status.HTTP_400_BAD_REQUEST)

    if action != 'test_email':
        create_audit_log(
            request=request,
            action='invoice_send' if action == 'send' else 'invoice_response',
            model_name='ClientQuote',
            object_id=client_quote.id,
            object_name=client_quote.title,
            object_reference=client_quote.quote_number,
            changes={'action': action, 'status': client_quote.status}
        )
    return Response(result)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def client_quote_payments(request, pk):
    """Payments recorded against a client invoice"""
    client_quote = get_object_or_404(ClientQuote, pk=pk)

    if request.method == 'GET':
        payments = client_quote.payments.select_related('recorded_by')
        return Response({
            'payments': ClientPaymentSerializer(payments, many=True).data,
            'total_paid': str(client_quote.get_total_paid()),
            'balance': str(client_quote.get_balance()),
        })

    serializer = ClientPaymentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        payment = services.record_payment(client_quote, serializer.validated_data, actor=request.user)
    except InvoicingError as e:
        return _error_response(e)

    create_audit_log(
        request=request,
        action='payment_add',
        model_name='ClientPayment',
        object_id=payment.id,
        object_name=client_quote.title,
        object_reference=client_quote.quote_number,
        changes={'amount': str(payment.amount), 'method': payment.method}
    )
    return Response({
        'payment': ClientPaymentSerializer(payment).data,
        'total_paid': str(client_quote.get_total_paid()),
        'balance': str(client_quote.get_balance()),
        'billing_status': client_quote.get_billing_status(),
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def client_quote_print(request, pk):
    """Printable HTML invoice"""
    client_quote = get_object_or_404(ClientQuote.objects.select_related('project__client'), pk=pk)
    html = render_to_string('invoicing/client_invoice_print.html', {
        'invoice': client_quote,
        'project': client_quote.project,
        'line_items': client_quote.line_items.all(),
        'total_paid': client_quote.get_total_paid(),
        'balance': client_quote.get_balance(),
    })
    return HttpResponse(html, content_type='text/html')


@api_view(['GET'])
@permission_classes([AllowAny])
def client_portal_invoice(request, token):
    """Client-facing invoice view, authorised by the emailed token"""
    client_quote = ClientQuote.objects.select_related('project__client').filter(access_token=token).first()
    if client_quote is None:
        return Response({'error': 'Invalid or expired link'}, status=status.HTTP_404_NOT_FOUND)
    if client_quote.is_token_expired:
        return Response({'error': 'This link has expired'}, status=status.HTTP_410_GONE)

    services.mark_portal_opened(client_quote)
    return Response(PortalInvoiceSerializer(client_quote).data)
