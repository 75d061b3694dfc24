"""
Procurement workflow: RFQs to suppliers, supplier quotes and purchase orders.

Views validate input with serializers and call into this module; business
rule violations raise ProcurementError (or a subclass), which the views turn
into 400 responses.
"""
import logging
from datetime import datetime, time, timedelta
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from renovo.core.emails import build_app_url, send_templated_email
from renovo.core.utils import next_document_number
from renovo.invoicing.models import ClientQuoteActivity
from renovo.parties.models import Supplier
from renovo.parties.utils import match_supplier, normalize_name
from renovo.pricing.calculations import deposit_amount, has_price, line_total, quantize_money, to_decimal
from renovo.specs.models import SpecItem
from renovo.specs.status_sync import (
    MANUAL_STATUSES, accept_quote_for_item, log_item_activity, sync_item_status, sync_items_status,
)

from .models import RFQ, RFQLineItem, SupplierRFQ, SupplierQuote, SupplierQuoteLineItem, Order, OrderItem, OrderActivity, generate_access_token

logger = logging.getLogger(__name__)

# Order status -> spec item status trigger
ORDER_STATUS_TRIGGERS = {
    'ORDERED': 'order_created',
    'CONFIRMED': 'order_created',
    'SHIPPED': 'order_shipped',
    'DELIVERED': 'order_delivered',
    'INSTALLED': 'installed',
    'COMPLETED': 'completed',
}
NON_CANCELLABLE_ORDER_STATUSES = ('DELIVERED', 'INSTALLED', 'COMPLETED')


class ProcurementError(Exception):
    def __init__(self, message, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def as_response_data(self):
        return {'error': self.message, **self.extra}


class OrderActionError(ProcurementError):
    pass


class InvoiceNotPaidError(ProcurementError):
    pass


def generate_rfq_number():
    return next_document_number(RFQ, 'rfq_number', 'RFQ')


def generate_order_number():
    return next_document_number(Order, 'order_number', 'PO')


# RFQs

def create_rfq(project, title, actor=None, spec_items=None, lines=None, **fields):
    """Create a DRAFT RFQ from spec items and/or free-form line dicts"""
    with transaction.atomic():
        rfq = RFQ.objects.create(
            rfq_number=generate_rfq_number(),
            project=project,
            title=title,
            created_by=actor,
            **fields
        )
        position = 0
        for item in spec_items or []:
            RFQLineItem.objects.create(
                rfq=rfq,
                spec_item=item,
                item_name=item.name,
                description=item.description,
                quantity=item.quantity,
                unit_type=item.unit_type,
                order=position,
            )
            position += 1
        for line in lines or []:
            RFQLineItem.objects.create(rfq=rfq, order=position, **line)
            position += 1
    logger.info(f"Created {rfq.rfq_number} for project {project.id} with {position} line items")
    return rfq


def portal_token_expiry(rfq):
    """Supplier links stay valid until the response deadline, else for SUPPLIER_PORTAL_TOKEN_DAYS"""
    if rfq.response_deadline:
        return timezone.make_aware(datetime.combine(rfq.response_deadline, time(23, 59, 59)))
    return timezone.now() + timedelta(days=getattr(settings, 'SUPPLIER_PORTAL_TOKEN_DAYS', 30))


def send_rfq_email(supplier_rfq):
    rfq = supplier_rfq.rfq
    context = {
        'rfq': rfq,
        'project': rfq.project,
        'supplier_name': supplier_rfq.display_name,
        'line_items': list(rfq.line_items.all()),
        'portal_url': build_app_url(f'supplier-portal/{supplier_rfq.access_token}'),
        'expires_at': supplier_rfq.token_expires_at,
    }
    return send_templated_email(
        subject=f"Request for Quote {rfq.rfq_number} - {rfq.project.name}",
        to=supplier_rfq.email,
        template_name='procurement/emails/rfq_request',
        context=context,
    )


def send_rfq(rfq, supplier_ids=None, vendors=None, actor=None):
    """
    Send ``rfq`` to registered suppliers and/or ad-hoc vendors.

    Each recipient gets its own SupplierRFQ with a fresh portal token. Email
    failures are reported per recipient and do not undo the send.
    """
    if not rfq.line_items.exists():
        raise ProcurementError('RFQ must have at least one line item')

    suppliers = list(Supplier.objects.filter(id__in=supplier_ids or []))
    vendors = [vendor for vendor in (vendors or []) if vendor.get('email')]
    if not suppliers and not vendors:
        raise ProcurementError('At least one supplier or vendor email is required')

    now = timezone.now()
    expires_at = portal_token_expiry(rfq)
    supplier_rfqs = []

    with transaction.atomic():
        for supplier in suppliers:
            supplier_rfq, _ = SupplierRFQ.objects.get_or_create(rfq=rfq, supplier=supplier)
            supplier_rfqs.append(supplier_rfq)
        for vendor in vendors:
            supplier_rfq, _ = SupplierRFQ.objects.get_or_create(
                rfq=rfq,
                supplier=None,
                vendor_email=vendor['email'],
                defaults={'vendor_name': vendor.get('name') or vendor['email']}
            )
            supplier_rfqs.append(supplier_rfq)

        for supplier_rfq in supplier_rfqs:
            supplier_rfq.access_token = generate_access_token()
            supplier_rfq.token_expires_at = expires_at
            supplier_rfq.sent_at = now
            if supplier_rfq.status not in SupplierRFQ.RESPONDED_STATUSES:
                supplier_rfq.status = 'SENT'
            supplier_rfq.save()

        rfq.status = 'SENT'
        rfq.sent_at = now
        rfq.save(update_fields=['status', 'sent_at', 'updated_at'])

        spec_items = [line.spec_item for line in rfq.line_items.select_related('spec_item') if line.spec_item]
        names = ', '.join(supplier_rfq.display_name for supplier_rfq in supplier_rfqs)
        for item in spec_items:
            log_item_activity(item, 'RFQ_SENT', 'RFQ Sent', f'{rfq.rfq_number} sent to {names}', actor=actor,
                              metadata={'rfq_id': rfq.id})
        sync_items_status(spec_items, 'rfq_sent', actor=actor)

    results = []
    for supplier_rfq in supplier_rfqs:
        result = {
            'supplier_rfq_id': supplier_rfq.id,
            'supplier_name': supplier_rfq.display_name,
            'email': supplier_rfq.email,
            'email_sent': False,
            'portal_url': build_app_url(f'supplier-portal/{supplier_rfq.access_token}'),
        }
        if not supplier_rfq.email:
            result['error'] = 'No email address'
        else:
            try:
                result['email_sent'] = send_rfq_email(supplier_rfq)
            except Exception as e:
                logger.warning(f"RFQ email to {supplier_rfq.email} failed for {rfq.rfq_number}: {e}")
                result['error'] = str(e)
        results.append(result)
    return results


def quick_quote(project, item_ids, supplier_ids=None, actor=None):
    """
    One-click RFQ for a handful of spec items.

    Without ``supplier_ids`` the items' supplier names are matched against
    active suppliers; when nothing matches the caller gets the items back
    so the user can pick suppliers.
    """
    items = list(SpecItem.objects.filter(project=project, id__in=item_ids))
    if not items:
        raise ProcurementError('No valid items found')

    active_suppliers = list(Supplier.objects.filter(is_active=True).order_by('name'))
    if supplier_ids:
        wanted = {int(supplier_id) for supplier_id in supplier_ids}
        suppliers = [supplier for supplier in active_suppliers if supplier.id in wanted]
    else:
        suppliers = []
        for item in items:
            supplier = item.supplier or match_supplier(item.supplier_name, active_suppliers)
            if supplier and supplier not in suppliers:
                suppliers.append(supplier)

    if not suppliers:
        return {
            'needs_supplier_selection': True,
            'items': [
                {'id': item.id, 'name': item.name, 'supplier_name': item.supplier_name, 'brand': item.brand}
                for item in items
            ],
            'available_suppliers': [
                {'id': supplier.id, 'name': supplier.name, 'email': supplier.email}
                for supplier in active_suppliers
            ],
            'message': 'No matching suppliers found for item supplier names. Please select suppliers.',
        }

    title = items[0].name if len(items) == 1 else f'Quote request for {len(items)} items'
    rfq = create_rfq(project, title, actor=actor, spec_items=items)
    results = send_rfq(rfq, supplier_ids=[supplier.id for supplier in suppliers], actor=actor)
    return {
        'needs_supplier_selection': False,
        'rfq_id': rfq.id,
        'rfq_number': rfq.rfq_number,
        'results': results,
    }


def items_already_sent(items, supplier):
    """Ids of ``items`` already on a sent, non-cancelled RFQ to ``supplier``"""
    return set(
        RFQLineItem.objects.filter(
            spec_item__in=items,
            rfq__supplier_rfqs__supplier=supplier,
            rfq__supplier_rfqs__sent_at__isnull=False,
        )
        .exclude(rfq__status='CANCELLED')
        .values_list('spec_item_id', flat=True)
    )


def group_items_by_supplier(project, item_ids):
    """
    Group a project's spec items by the supplier they would be quoted by.

    An item's own supplier wins, otherwise its supplier name is matched
    against active suppliers. Returns (groups, unmatched_items); each group
    carries the items ready to send and those already sent to that supplier.
    """
    items = list(SpecItem.objects.filter(project=project, id__in=item_ids).select_related('supplier'))
    if not items:
        raise ProcurementError('No valid items found')

    active_suppliers = list(Supplier.objects.filter(is_active=True).order_by('name'))
    groups = {}
    unmatched = []
    for item in items:
        supplier = item.supplier or match_supplier(item.supplier_name, active_suppliers)
        if supplier is None:
            unmatched.append({'id': item.id, 'name': item.name, 'supplier_name': item.supplier_name})
            continue
        groups.setdefault(supplier.id, {'supplier': supplier, 'items': []})['items'].append(item)

    for group in groups.values():
        sent_ids = items_already_sent(group['items'], group['supplier'])
        group['already_sent'] = [item for item in group['items'] if item.id in sent_ids]
        group['items'] = [item for item in group['items'] if item.id not in sent_ids]
    return list(groups.values()), unmatched


def preview_supplier_quotes(project, item_ids):
    groups, unmatched = group_items_by_supplier(project, item_ids)
    return {
        'supplier_groups': [
            {
                'supplier_id': group['supplier'].id,
                'supplier_name': group['supplier'].name,
                'supplier_email': group['supplier'].email,
                'items': [{'id': item.id, 'name': item.name, 'already_sent': False} for item in group['items']]
                + [{'id': item.id, 'name': item.name, 'already_sent': True} for item in group['already_sent']],
            }
            for group in groups
        ],
        'unmatched_items': unmatched,
        'summary': {
            'total_items': sum(len(group['items']) + len(group['already_sent']) for group in groups) + len(unmatched),
            'ready_to_send': sum(len(group['items']) for group in groups),
            'already_sent': sum(len(group['already_sent']) for group in groups),
            'no_supplier': len(unmatched),
        },
    }


def send_supplier_quotes(project, item_ids, override_supplier=False, message='', response_deadline=None, actor=None):
    """
    Send one RFQ per supplier for the selected spec items.

    Items already sent to their supplier are skipped and reported unless
    ``override_supplier`` is set.
    """
    groups, unmatched = group_items_by_supplier(project, item_ids)
    if override_supplier:
        for group in groups:
            group['items'] = group['items'] + group['already_sent']
            group['already_sent'] = []

    skipped_ids = [item.id for group in groups for item in group['already_sent']]
    to_send = [group for group in groups if group['items']]
    if not to_send:
        if skipped_ids:
            return {
                'success': False,
                'needs_confirmation': True,
                'message': 'All selected items have already been sent for quotes to these suppliers',
                'already_sent_item_ids': skipped_ids,
                'unmatched_items': unmatched,
            }
        raise ProcurementError(
            'No matching suppliers found for the selected items',
            unmatched_items=unmatched,
        )

    rfqs = []
    for group in to_send:
        supplier = group['supplier']
        rfq = create_rfq(
            project,
            f'Quote Request - {project.name}',
            actor=actor,
            spec_items=group['items'],
            message=message or '',
            response_deadline=response_deadline,
        )
        results = send_rfq(rfq, supplier_ids=[supplier.id], actor=actor)
        rfqs.append({
            'rfq_id': rfq.id,
            'rfq_number': rfq.rfq_number,
            'supplier_id': supplier.id,
            'supplier_name': supplier.name,
            'item_ids': [item.id for item in group['items']],
            'email_sent': any(result['email_sent'] for result in results),
        })

    logger.info(f"Sent {len(rfqs)} supplier RFQ(s) for project {project.id}, skipped {len(skipped_ids)} item(s)")
    return {
        'success': True,
        'rfqs': rfqs,
        'sent': sum(1 for rfq in rfqs if rfq['email_sent']),
        'failed': sum(1 for rfq in rfqs if not rfq['email_sent']),
        'skipped_already_sent': len(skipped_ids),
        'skipped_item_ids': skipped_ids,
        'unmatched_items': unmatched,
    }


# Supplier portal

def mark_portal_viewed(supplier_rfq):
    if supplier_rfq.viewed_at:
        return
    supplier_rfq.viewed_at = timezone.now()
    if supplier_rfq.status in ('PENDING', 'SENT'):
        supplier_rfq.status = 'VIEWED'
    supplier_rfq.save(update_fields=['viewed_at', 'status'])


def update_rfq_response_status(rfq):
    supplier_rfqs = list(rfq.supplier_rfqs.all())
    if not supplier_rfqs:
        return rfq.status
    if all(supplier_rfq.status in SupplierRFQ.RESPONDED_STATUSES for supplier_rfq in supplier_rfqs):
        rfq.status = 'FULLY_QUOTED'
    else:
        rfq.status = 'PARTIALLY_QUOTED'
    rfq.save(update_fields=['status', 'updated_at'])
    return rfq.status


def decline_rfq(supplier_rfq, reason=''):
    with transaction.atomic():
        supplier_rfq.status = 'DECLINED'
        supplier_rfq.responded_at = timezone.now()
        supplier_rfq.decline_reason = reason or ''
        supplier_rfq.save(update_fields=['status', 'responded_at', 'decline_reason'])
        update_rfq_response_status(supplier_rfq.rfq)
    logger.info(f"{supplier_rfq.display_name} declined {supplier_rfq.rfq.rfq_number}")


def submit_supplier_quote(supplier_rfq, data):
    """
    Record a quote submitted through the supplier portal.

    ``data`` is the validated portal payload. Linked spec items take the
    quoted unit price as their trade price.
    """
    rfq = supplier_rfq.rfq
    rfq_lines = {line.id: line for line in rfq.line_items.select_related('spec_item')}

    processed = []
    subtotal = Decimal('0')
    for line_data in data['line_items']:
        rfq_line = rfq_lines.get(line_data.get('rfq_line_item'))
        quantity = line_data.get('quantity') or (rfq_line.quantity if rfq_line else 1)
        total_price = line_total(quantity, line_data['unit_price'])
        subtotal += total_price
        processed.append({
            'rfq_line_item': rfq_line,
            'spec_item': rfq_line.spec_item if rfq_line else None,
            'item_name': line_data.get('item_name') or (rfq_line.item_name if rfq_line else 'Item'),
            'unit_price': line_data['unit_price'],
            'quantity': quantity,
            'total_price': total_price,
            'lead_time': line_data.get('lead_time') or data.get('lead_time', ''),
            'notes': line_data.get('notes', ''),
        })

    provided_total = data.get('total_amount')
    with transaction.atomic():
        quote = SupplierQuote.objects.create(
            quote_number=data.get('quote_number') or f"SQ-{int(timezone.now().timestamp() * 1000)}",
            project=rfq.project,
            supplier_rfq=supplier_rfq,
            supplier=supplier_rfq.supplier,
            vendor_name=supplier_rfq.vendor_name,
            status='SUBMITTED',
            subtotal=None if provided_total else quantize_money(subtotal),
            shipping_cost=data.get('shipping_cost') or Decimal('0'),
            total_amount=provided_total or quantize_money(subtotal),
            valid_until=data.get('valid_until'),
            estimated_lead_time=data.get('estimated_lead_time', ''),
            deposit_percent=data.get('deposit_percent'),
            deposit_required=data.get('deposit_required'),
            payment_terms=data.get('payment_terms', ''),
            shipping_terms=data.get('shipping_terms', ''),
            notes=data.get('notes', ''),
        )
        for line in processed:
            quote_line = SupplierQuoteLineItem.objects.create(supplier_quote=quote, **line)
            item = quote_line.spec_item
            if item is None:
                continue
            item.trade_price = quote_line.unit_price
            update_fields = ['trade_price', 'updated_at']
            if quote_line.lead_time:
                item.lead_time = quote_line.lead_time
                update_fields.append('lead_time')
            item.save(update_fields=update_fields)
            log_item_activity(
                item,
                'QUOTE_RECEIVED',
                'Quote Received',
                f'{quote.supplier_display_name} quoted {quote_line.unit_price} per unit',
                metadata={'quote_id': quote.id, 'supplier_rfq_id': supplier_rfq.id},
            )
            sync_item_status(item, 'quote_received')

        supplier_rfq.status = 'QUOTED'
        supplier_rfq.responded_at = timezone.now()
        supplier_rfq.save(update_fields=['status', 'responded_at'])
        update_rfq_response_status(rfq)

    logger.info(f"Quote {quote.quote_number} received from {quote.supplier_display_name} for {rfq.rfq_number}")
    return quote


# Supplier quotes

def accept_supplier_quote(quote, line_ids=None, markup_percent=None, actor=None):
    lines = quote.line_items.select_related('spec_item')
    if line_ids:
        lines = lines.filter(id__in=line_ids)

    results = []
    with transaction.atomic():
        for line in lines:
            if line.spec_item is None:
                results.append({'line_id': line.id, 'accepted': False, 'reason': 'Line is not linked to a spec item'})
                continue
            sync_result = accept_quote_for_item(line.spec_item, line, actor=actor, markup_percent=markup_percent)
            results.append({'line_id': line.id, 'accepted': True, 'status_sync': sync_result.as_dict()})

        quote.status = 'ACCEPTED'
        quote.reviewed_by = actor
        quote.reviewed_at = timezone.now()
        quote.save(update_fields=['status', 'reviewed_by', 'reviewed_at', 'updated_at'])
    return results


def reject_supplier_quote(quote, reason='', actor=None):
    quote.status = 'REJECTED'
    quote.reviewed_by = actor
    quote.reviewed_at = timezone.now()
    if reason:
        quote.notes = f"{quote.notes}\n\nRejected: {reason}".strip()
    quote.save(update_fields=['status', 'reviewed_by', 'reviewed_at', 'notes', 'updated_at'])
    return quote


# Orders

def log_order_activity(order, activity_type, message, actor=None, metadata=None):
    return OrderActivity.objects.create(
        order=order,
        activity_type=activity_type,
        message=message,
        user=actor if actor is not None and actor.is_authenticated else None,
        metadata=metadata or {},
    )


def order_spec_items(order):
    return list(SpecItem.objects.filter(order_items__order=order).distinct())


def sync_order_items(order, trigger, actor=None):
    return sync_items_status(order_spec_items(order), trigger, actor=actor)


def existing_orders_for_items(item_ids):
    return list(
        OrderItem.objects.filter(spec_item_id__in=item_ids)
        .exclude(order__status='CANCELLED')
        .select_related('order')
    )


def _order_amounts(subtotal, shipping_cost=None, tax_amount=None, extra_charges=None,
                   deposit_percent=None, deposit_required=None):
    extras = sum((to_decimal(charge.get('amount')) for charge in extra_charges or []), Decimal('0'))
    total = quantize_money(subtotal + to_decimal(shipping_cost) + to_decimal(tax_amount) + extras)
    if not has_price(deposit_required) and deposit_percent:
        deposit_required = deposit_amount(total, deposit_percent)
    deposit_required = quantize_money(deposit_required) if has_price(deposit_required) else None
    balance_due = total - deposit_required if deposit_required is not None else None
    return total, deposit_required, balance_due


def create_manual_order(project, data, actor=None):
    """Purchase order entered by hand for a supplier or ad-hoc vendor"""
    items_data = data['items']
    spec_item_ids = [line['spec_item'].id for line in items_data if line.get('spec_item')]
    existing = existing_orders_for_items(spec_item_ids)
    if existing:
        raise ProcurementError(
            'Some items already have orders',
            existing_orders=[
                {'item_id': order_item.spec_item_id, 'order_number': order_item.order.order_number}
                for order_item in existing
            ]
        )

    subtotal = sum((line_total(line['quantity'], line['unit_price']) for line in items_data), Decimal('0'))
    total, deposit_required, balance_due = _order_amounts(
        subtotal,
        data.get('shipping_cost'),
        data.get('tax_amount'),
        data.get('extra_charges'),
        data.get('deposit_percent'),
        data.get('deposit_required'),
    )
    already_ordered = data.get('already_ordered', False)
    supplier = data.get('supplier')

    with transaction.atomic():
        order = Order.objects.create(
            order_number=generate_order_number(),
            project=project,
            supplier=supplier,
            vendor_name=data.get('vendor_name') or (supplier.name if supplier else ''),
            vendor_email=data.get('vendor_email') or (supplier.email if supplier else ''),
            status='ORDERED' if already_ordered else 'PAYMENT_RECEIVED',
            ordered_at=timezone.now() if already_ordered else None,
            subtotal=quantize_money(subtotal),
            shipping_cost=data.get('shipping_cost') or Decimal('0'),
            tax_amount=data.get('tax_amount') or Decimal('0'),
            extra_charges=[
                {'description': charge.get('description', ''), 'amount': str(quantize_money(charge.get('amount')))}
                for charge in data.get('extra_charges') or []
            ],
            total_amount=total,
            currency=data.get('currency') or 'CAD',
            deposit_percent=data.get('deposit_percent'),
            deposit_required=deposit_required,
            balance_due=balance_due,
            expected_delivery=data.get('expected_delivery'),
            shipping_address=data.get('shipping_address', ''),
            notes=data.get('notes', ''),
            created_by=actor,
            updated_by=actor,
        )
        for line in items_data:
            spec_item = line.get('spec_item')
            OrderItem.objects.create(
                order=order,
                spec_item=spec_item,
                name=line.get('name') or (spec_item.name if spec_item else 'Item'),
                description=line.get('description', ''),
                quantity=line['quantity'],
                unit_price=line['unit_price'],
                total_price=line_total(line['quantity'], line['unit_price']),
                status='ORDERED' if already_ordered else 'PENDING',
            )
        log_order_activity(order, 'CREATED', f'Manual order created ({len(items_data)} items)', actor=actor)

        spec_items = order_spec_items(order)
        sync_items_status(spec_items, 'order_created' if already_ordered else 'payment_received', actor=actor)
        for item in spec_items:
            log_item_activity(item, 'ORDERED', 'Purchase Order Created', f'Added to {order.order_number}',
                              actor=actor, metadata={'order_id': order.id})

    logger.info(f"Created manual order {order.order_number} for project {project.id}")
    return order


def _quote_line_for_item(item):
    """Accepted quote line for the item, else its most recent non-rejected one"""
    lines = item.quote_lines.select_related('supplier_quote__supplier', 'supplier_quote__supplier_rfq__supplier')
    accepted = lines.filter(is_accepted=True).first()
    if accepted:
        return accepted
    return lines.exclude(supplier_quote__status='REJECTED').order_by('-id').first()


def group_invoice_items(invoice, item_ids=None):
    """
    Group an invoice's spec items by the supplier they will be ordered from.

    ``item_ids`` limits the grouping to those spec item ids.

    Returns (groups, items_without_supplier, already_ordered).
    """
    groups = {}
    items_without_supplier = []
    already_ordered = []
    seen = set()

    lines = invoice.line_items.select_related('spec_item__supplier').prefetch_related('spec_item__components')
    for line in lines:
        item = line.spec_item
        if item is None or item.id in seen:
            continue
        if item_ids and item.id not in item_ids:
            continue
        seen.add(item.id)

        existing = existing_orders_for_items([item.id])
        if existing:
            already_ordered.append({
                'item_id': item.id,
                'name': item.name,
                'order_number': existing[0].order.order_number,
                'status': existing[0].order.status,
            })
            continue

        quote_line = _quote_line_for_item(item)
        quote = quote_line.supplier_quote if quote_line else None
        if quote:
            supplier = quote.supplier or (quote.supplier_rfq.supplier if quote.supplier_rfq else None)
            supplier_name = quote.supplier_display_name or 'Unknown Supplier'
            if supplier and supplier.email:
                supplier_email = supplier.email
            else:
                supplier_email = quote.supplier_rfq.vendor_email if quote.supplier_rfq else ''
            unit_price = quote_line.unit_price
        elif item.supplier and has_price(item.trade_price):
            supplier = item.supplier
            supplier_name = supplier.name
            supplier_email = supplier.email
            unit_price = item.trade_price
        else:
            items_without_supplier.append({'id': item.id, 'name': item.name, 'reason': 'No supplier quote'})
            continue

        key = supplier.id if supplier else normalize_name(supplier_name)
        group = groups.get(key)
        if group is None:
            group = groups[key] = {
                'supplier': supplier,
                'supplier_name': supplier_name,
                'supplier_email': supplier_email or '',
                'supplier_quote': quote,
                'shipping_cost': quote.shipping_cost if quote else Decimal('0'),
                'deposit_percent': quote.deposit_percent if quote else None,
                'deposit_required': quote.deposit_required if quote else None,
                'payment_terms': quote.payment_terms if quote else '',
                'shipping_terms': quote.shipping_terms if quote else '',
                'items': [],
            }

        currency = (item.currency or 'CAD').upper()
        group['items'].append({
            'spec_item': item,
            'supplier_quote_line': quote_line,
            'name': item.name,
            'description': item.description,
            'quantity': line.quantity,
            'unit_price': unit_price,
            'total_price': line_total(line.quantity, unit_price),
            'currency': currency,
            'is_component': False,
        })
        for component in item.components.all():
            if not has_price(component.price):
                continue
            label = f"  └ {component.name}" + (f" ({component.model_number})" if component.model_number else '')
            group['items'].append({
                'spec_item': item,
                'supplier_quote_line': None,
                'name': label,
                'description': f'Component of {item.name}',
                'quantity': component.quantity,
                'unit_price': component.price,
                'total_price': line_total(component.quantity, component.price),
                'currency': currency,
                'is_component': True,
            })

    return list(groups.values()), items_without_supplier, already_ordered


def _group_subtotal(group):
    return sum((entry['total_price'] for entry in group['items']), Decimal('0'))


def preview_orders_from_invoice(invoice):
    total_paid = invoice.get_total_paid()
    total_amount = invoice.total_amount or Decimal('0')
    groups, items_without_supplier, already_ordered = group_invoice_items(invoice)
    payment_percent = int(total_paid / total_amount * 100) if total_amount > 0 else 0

    return {
        'invoice': {
            'id': invoice.id,
            'quote_number': invoice.quote_number,
            'title': invoice.title,
            'total_amount': str(total_amount),
            'total_paid': str(total_paid),
        },
        'is_paid': total_paid > 0,
        'payment_percent': min(payment_percent, 100),
        'supplier_groups': [
            {
                'supplier_id': group['supplier'].id if group['supplier'] else None,
                'supplier_name': group['supplier_name'],
                'supplier_email': group['supplier_email'],
                'item_count': len(group['items']),
                'subtotal': str(quantize_money(_group_subtotal(group))),
                'items': [
                    {
                        'spec_item_id': entry['spec_item'].id,
                        'name': entry['name'],
                        'quantity': entry['quantity'],
                        'unit_price': str(entry['unit_price']),
                        'total_price': str(entry['total_price']),
                        'is_component': entry['is_component'],
                    }
                    for entry in group['items']
                ],
            }
            for group in groups
        ],
        'items_without_supplier': items_without_supplier,
        'already_ordered_items': already_ordered,
        'can_create_orders': total_paid > 0 and bool(groups),
    }


def create_orders_from_invoice(invoice, item_ids=None, actor=None):
    """One purchase order per supplier for the items of a paid client invoice"""
    total_paid = invoice.get_total_paid()
    if total_paid <= 0:
        raise InvoiceNotPaidError('Invoice has not been paid. Please record payment first.')

    groups, items_without_supplier, already_ordered = group_invoice_items(invoice, item_ids=item_ids)
    if not groups:
        if already_ordered:
            numbers = sorted({entry['order_number'] for entry in already_ordered})
            raise ProcurementError(
                f"All items already have orders: {', '.join(numbers)}",
                existing_orders=already_ordered
            )
        raise ProcurementError('No items to order', items_without_supplier=items_without_supplier)

    created = []
    with transaction.atomic():
        for group in groups:
            subtotal = quantize_money(_group_subtotal(group))
            total, deposit_required, balance_due = _order_amounts(
                subtotal,
                shipping_cost=group['shipping_cost'],
                deposit_percent=group['deposit_percent'],
                deposit_required=group['deposit_required'],
            )
            currencies = {entry['currency'] for entry in group['items']}
            internal_notes = ''
            if group['payment_terms'] or group['shipping_terms']:
                internal_notes = (
                    f"Payment Terms: {group['payment_terms'] or 'N/A'}\n"
                    f"Shipping Terms: {group['shipping_terms'] or 'N/A'}"
                )

            order = Order.objects.create(
                order_number=generate_order_number(),
                project=invoice.project,
                supplier=group['supplier'],
                vendor_name=group['supplier_name'],
                vendor_email=group['supplier_email'],
                client_invoice=invoice,
                status='PAYMENT_RECEIVED',
                subtotal=subtotal,
                shipping_cost=group['shipping_cost'] or Decimal('0'),
                total_amount=total,
                currency=currencies.pop() if len(currencies) == 1 else 'CAD',
                deposit_percent=group['deposit_percent'],
                deposit_required=deposit_required,
                balance_due=balance_due,
                internal_notes=internal_notes,
                created_by=actor,
                updated_by=actor,
            )
            for entry in group['items']:
                OrderItem.objects.create(
                    order=order,
                    spec_item=entry['spec_item'],
                    supplier_quote_line=entry['supplier_quote_line'],
                    name=entry['name'],
                    description=entry['description'],
                    quantity=entry['quantity'],
                    unit_price=entry['unit_price'],
                    total_price=entry['total_price'],
                )
            log_order_activity(
                order,
                'CREATED',
                f"Order created from invoice {invoice.quote_number} ({len(group['items'])} items)",
                actor=actor,
                metadata={'client_quote_id': invoice.id, 'total_paid': str(total_paid)},
            )
            for item in order_spec_items(order):
                log_item_activity(item, 'ORDERED', 'Purchase Order Created', f'Added to {order.order_number}',
                                  actor=actor, metadata={'order_id': order.id})
            sync_order_items(order, 'order_created', actor=actor)

            created.append({
                'id': order.id,
                'order_number': order.order_number,
                'supplier_name': group['supplier_name'],
                'supplier_email': group['supplier_email'],
                'item_count': len(group['items']),
                'subtotal': str(subtotal),
                'shipping_cost': str(order.shipping_cost),
                'total_amount': str(total),
                'deposit_required': str(deposit_required) if deposit_required is not None else None,
                'balance_due': str(balance_due) if balance_due is not None else None,
                'status': order.status,
                'currency': order.currency,
            })

        numbers = ', '.join(entry['order_number'] for entry in created)
        ClientQuoteActivity.objects.create(
            client_quote=invoice,
            activity_type='ORDERS_CREATED',
            description=f"{len(created)} purchase order{'s' if len(created) > 1 else ''} created: {numbers}",
            user=actor if actor is not None and actor.is_authenticated else None,
            metadata={'orders': [{'id': entry['id'], 'number': entry['order_number']} for entry in created]},
        )

    logger.info(f"Created {len(created)} orders from invoice {invoice.quote_number}")
    return {
        'success': True,
        'orders': created,
        'items_without_supplier': items_without_supplier,
        'skipped_items': [
            {'item_id': entry['item_id'], 'order_number': entry['order_number'], 'reason': 'Already has an order'}
            for entry in already_ordered
        ],
    }


def stamp_status_timestamps(order, previous_status):
    """Fill the milestone timestamp for a new status when it is still empty"""
    if order.status == previous_status:
        return []
    now = timezone.now()
    milestone = {
        'ORDERED': 'ordered_at',
        'CONFIRMED': 'confirmed_at',
        'SHIPPED': 'actual_ship_date',
        'DELIVERED': 'actual_delivery',
    }.get(order.status)
    if milestone and getattr(order, milestone) is None:
        setattr(order, milestone, now)
        return [milestone]
    return []


def record_order_update(order, previous, actor=None):
    """Side effects of an order PATCH: timestamps, activity log and spec item sync"""
    stamped = stamp_status_timestamps(order, previous['status'])
    if stamped:
        order.save(update_fields=stamped + ['updated_at'])

    if order.status != previous['status']:
        log_order_activity(order, 'STATUS_CHANGED', f"Status changed from {previous['status']} to {order.status}", actor=actor)
        trigger = ORDER_STATUS_TRIGGERS.get(order.status)
        if trigger:
            sync_order_items(order, trigger, actor=actor)

    if order.tracking_number and order.tracking_number != previous['tracking_number']:
        log_order_activity(order, 'TRACKING_UPDATED', f'Tracking number updated: {order.tracking_number}', actor=actor)

    if order.supplier_payment_amount and order.supplier_payment_amount != previous['supplier_payment_amount']:
        reference = f" (Ref: {order.supplier_payment_reference})" if order.supplier_payment_reference else ''
        log_order_activity(
            order,
            'PAYMENT_RECORDED',
            f"Payment to supplier recorded: ${order.supplier_payment_amount} via {order.supplier_payment_method or 'unknown'}{reference}",
            actor=actor,
            metadata={
                'amount': str(order.supplier_payment_amount),
                'method': order.supplier_payment_method,
                'reference': order.supplier_payment_reference,
            },
        )


def _parse_when(value):
    from django.utils.dateparse import parse_date, parse_datetime

    if not value:
        return timezone.now()
    parsed = parse_datetime(str(value))
    if parsed is None:
        day = parse_date(str(value))
        if day is None:
            raise OrderActionError(f'Invalid date: {value}')
        parsed = datetime.combine(day, time(12, 0))
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def apply_order_action(order, action, data, actor=None):
    """Run a named order action; returns the past-tense action name"""
    with transaction.atomic():
        if action == 'place_order':
            if not order.supplier_email:
                raise OrderActionError('Supplier email required')
            order.status = 'ORDERED'
            order.ordered_at = timezone.now()
            order.updated_by = actor
            order.save()
            order.items.exclude(status='CANCELLED').update(status='ORDERED')
            log_order_activity(order, 'ORDER_PLACED', 'Purchase order placed with supplier', actor=actor)
            sync_order_items(order, 'order_created', actor=actor)
            return 'order_placed'

        if action == 'add_tracking':
            tracking_number = data.get('tracking_number', '')
            carrier = data.get('carrier', '')
            order.tracking_number = tracking_number
            order.shipping_carrier = carrier
            order.tracking_url = data.get('tracking_url', '') or ''
            shipped = order.status in ('ORDERED', 'CONFIRMED')
            if shipped:
                order.status = 'SHIPPED'
            order.actual_ship_date = order.actual_ship_date or timezone.now()
            order.updated_by = actor
            order.save()
            log_order_activity(
                order, 'TRACKING_ADDED', f'Tracking: {carrier} {tracking_number}'.strip(), actor=actor,
                metadata={'tracking_number': tracking_number, 'carrier': carrier, 'tracking_url': order.tracking_url}
            )
            if shipped:
                order.items.filter(status__in=['PENDING', 'ORDERED']).update(status='SHIPPED')
                sync_order_items(order, 'order_shipped', actor=actor)
            return 'tracking_added'

        if action == 'mark_delivered':
            delivered_at = _parse_when(data.get('delivery_date'))
            order.status = 'DELIVERED'
            order.actual_delivery = delivered_at
            if data.get('notes'):
                order.notes = data['notes']
            order.updated_by = actor
            order.save()
            order.items.exclude(status='CANCELLED').update(status='DELIVERED', actual_delivery=delivered_at)
            signed_by = data.get('signed_by')
            log_order_activity(
                order, 'DELIVERED', 'Order delivered' + (f' - Signed by: {signed_by}' if signed_by else ''), actor=actor,
                metadata={'delivery_date': delivered_at.isoformat(), 'recipient_name': data.get('recipient_name'), 'signed_by': signed_by}
            )
            sync_order_items(order, 'order_delivered', actor=actor)
            return 'marked_delivered'

        if action == 'pay_supplier':
            payment_method = data.get('payment_method')
            if not payment_method:
                raise OrderActionError('Payment method is required')
            amount = quantize_money(data.get('payment_amount') or order.total_amount)
            order.supplier_paid_at = timezone.now()
            order.supplier_payment_method = payment_method
            order.supplier_payment_amount = amount
            order.supplier_payment_reference = data.get('payment_reference', '') or ''
            order.supplier_payment_notes = data.get('payment_notes', '') or ''
            order.updated_by = actor
            order.save()
            reference = f" (Ref: {order.supplier_payment_reference})" if order.supplier_payment_reference else ''
            log_order_activity(
                order, 'SUPPLIER_PAID', f'Supplier paid ${amount} via {payment_method}{reference}', actor=actor,
                metadata={'payment_method': payment_method, 'payment_reference': order.supplier_payment_reference, 'payment_amount': str(amount)}
            )
            return 'supplier_paid'

        if action == 'cancel':
            if order.status in NON_CANCELLABLE_ORDER_STATUSES:
                raise OrderActionError('Cannot cancel a delivered order')
            reason = data.get('reason')
            order.status = 'CANCELLED'
            order.internal_notes = f"{order.internal_notes}\n\nCancellation reason: {reason or 'No reason provided'}".strip()
            order.updated_by = actor
            order.save()
            log_order_activity(order, 'CANCELLED', 'Order cancelled' + (f': {reason}' if reason else ''), actor=actor)
            return 'cancelled'

    raise OrderActionError('Invalid action')


def delete_order(order):
    """Delete an order and step its spec items back to before ordering"""
    item_ids = [item.id for item in order_spec_items(order)]
    order_number = order.order_number
    with transaction.atomic():
        order.delete()
        items = SpecItem.objects.filter(id__in=item_ids).exclude(spec_status__in=MANUAL_STATUSES)
        now = timezone.now()
        items.filter(payment_status__in=['DEPOSIT_PAID', 'FULLY_PAID']).update(spec_status='CLIENT_PAID', updated_at=now)
        items.filter(payment_status__in=['NOT_INVOICED', 'INVOICED']).update(spec_status='QUOTE_APPROVED', updated_at=now)
    logger.info(f"Deleted order {order_number}, reset {len(item_ids)} spec items")
    return item_ids


def send_order_email(order, message='', actor=None):
    """Email the purchase order to the supplier and mark it ORDERED"""
    email = order.supplier_email
    if not email:
        raise OrderActionError('Supplier email is required. Please provide a supplier email address.')

    context = {
        'order': order,
        'project': order.project,
        'items': list(order.items.all()),
        'message': message,
        'supplier_name': order.supplier_display_name,
    }
    send_templated_email(
        subject=f"Purchase Order {order.order_number} - {order.project.name}",
        to=email,
        template_name='procurement/emails/purchase_order',
        context=context,
    )

    with transaction.atomic():
        if order.status in ('PENDING_PAYMENT', 'PAYMENT_RECEIVED'):
            order.status = 'ORDERED'
        order.ordered_at = order.ordered_at or timezone.now()
        order.updated_by = actor
        order.save()
        order.items.filter(status='PENDING').update(status='ORDERED')
        log_order_activity(order, 'EMAIL_SENT', f'Purchase order emailed to {email}', actor=actor, metadata={'email': email})
        sync_order_items(order, 'order_created', actor=actor)
    return email
