"""
Client invoicing: invoice creation, sending, client responses and payments.

Business rule violations raise InvoicingError, which the views return as
400 responses with the error message and any extra fields.
"""
import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from renovo.core.emails import build_app_url, send_templated_email
from renovo.core.utils import next_document_number
from renovo.pricing.calculations import calculate_totals, deposit_amount, has_price, quantize_money, to_decimal
from renovo.pricing.services import get_tax_rates
from renovo.specs.status_sync import log_item_activity, sync_item_status, update_item_payment_status

from .models import ClientQuote, ClientQuoteLineItem, ClientPayment, ClientQuoteActivity, generate_invoice_token

logger = logging.getLogger(__name__)

DEFAULT_CC_SURCHARGE_PERCENT = Decimal('3.0')


class InvoicingError(Exception):
    def __init__(self, message, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def as_response_data(self):
        return {'error': self.message, **self.extra}


def generate_invoice_number():
    return next_document_number(ClientQuote, 'quote_number', 'INV')


def log_quote_activity(client_quote, activity_type, description, actor=None, metadata=None):
    return ClientQuoteActivity.objects.create(
        client_quote=client_quote,
        activity_type=activity_type,
        description=description,
        user=actor if actor is not None and actor.is_authenticated else None,
        metadata=metadata or {},
    )


def default_cc_surcharge():
    return to_decimal(getattr(settings, 'DEFAULT_CC_SURCHARGE_PERCENT', DEFAULT_CC_SURCHARGE_PERCENT))


def invoice_totals(lines, delivery_fee=None, custom_fees=None):
    """Totals for line dicts carrying quantity, client_unit_price and currency"""
    gst_rate, qst_rate = get_tax_rates()
    return calculate_totals(
        [
            {'quantity': line.get('quantity', 1), 'unit_price': line.get('client_unit_price'), 'currency': line.get('currency')}
            for line in lines
        ],
        delivery_fee=to_decimal(delivery_fee),
        custom_fees=custom_fees,
        gst_rate=gst_rate,
        qst_rate=qst_rate,
    )


def apply_totals(client_quote, totals):
    client_quote.subtotal = totals.subtotal
    client_quote.cad_subtotal = totals.cad_subtotal
    client_quote.usd_subtotal = totals.usd_subtotal
    client_quote.gst_rate = totals.gst_rate
    client_quote.gst_amount = totals.gst_amount
    client_quote.qst_rate = totals.qst_rate
    client_quote.qst_amount = totals.qst_amount
    client_quote.total_amount = totals.total
    if client_quote.deposit_percent:
        client_quote.deposit_amount = deposit_amount(totals.total, client_quote.deposit_percent)
    else:
        client_quote.deposit_amount = None


def _line_dict(line):
    return {
        'quantity': line.quantity,
        'client_unit_price': line.client_unit_price,
        'currency': line.currency,
    }


def recalculate_totals(client_quote):
    """Recompute stored totals from the invoice's current line items and fees"""
    totals = invoice_totals(
        [_line_dict(line) for line in client_quote.line_items.all()],
        delivery_fee=client_quote.delivery_fee,
        custom_fees=client_quote.custom_fees,
    )
    apply_totals(client_quote, totals)
    client_quote.save()
    return totals


def _create_lines(client_quote, lines, line_totals):
    created = []
    for position, (line, total) in enumerate(zip(lines, line_totals)):
        created.append(ClientQuoteLineItem.objects.create(
            client_quote=client_quote,
            spec_item=line.get('spec_item'),
            display_name=line['display_name'],
            display_description=line.get('display_description') or '',
            category_name=line.get('category_name') or '',
            room_name=line.get('room_name') or '',
            quantity=line.get('quantity') or 1,
            unit_type=line.get('unit_type') or 'units',
            currency=(line.get('currency') or 'CAD').upper(),
            client_unit_price=quantize_money(line['client_unit_price']),
            client_total_price=total,
            supplier_unit_price=line.get('supplier_unit_price'),
            markup_percent=line.get('markup_percent'),
            is_component=line.get('is_component', False),
            order=line.get('order', position),
        ))
    return created


def _invoiced_spec_items(lines):
    items = []
    for line in lines:
        item = line.spec_item if isinstance(line, ClientQuoteLineItem) else line.get('spec_item')
        if item is not None and item not in items:
            items.append(item)
    return items


def create_client_invoice(project, data, lines, actor=None):
    """
    Create a DRAFT client invoice.

    ``data`` carries the invoice fields (title, description, fees, deposit,
    client contact...) and ``lines`` the line dicts built by the wizard or
    sent by the client.
    """
    title = (data.get('title') or '').strip()
    if not title:
        raise InvoicingError('Title is required')
    if not lines:
        raise InvoicingError('At least one item is required')

    invalid_items = [line.get('display_name') or 'Item' for line in lines if not has_price(line.get('client_unit_price'))]
    if invalid_items:
        raise InvoicingError('All items must have a valid price (RRP or trade price)', invalid_items=invalid_items)

    custom_fees = [fee for fee in data.get('custom_fees') or [] if fee.get('name') and has_price(fee.get('amount'))]
    totals = invoice_totals(lines, delivery_fee=data.get('delivery_fee'), custom_fees=custom_fees)

    with transaction.atomic():
        client_quote = ClientQuote(
            quote_number=generate_invoice_number(),
            project=project,
            title=title,
            description=data.get('description') or '',
            status='DRAFT',
            delivery_fee=quantize_money(data.get('delivery_fee')),
            custom_fees=[{'name': fee['name'], 'amount': str(quantize_money(fee['amount']))} for fee in custom_fees],
            deposit_percent=data.get('deposit_percent'),
            cc_surcharge_percent=data.get('cc_surcharge_percent') if data.get('cc_surcharge_percent') is not None else default_cc_surcharge(),
            valid_until=data.get('valid_until'),
            payment_terms=data.get('payment_terms') or '',
            client_name=data.get('client_name') or '',
            client_email=data.get('client_email') or '',
            client_phone=data.get('client_phone') or '',
            client_address=data.get('client_address') or '',
            created_by=actor,
        )
        apply_totals(client_quote, totals)
        client_quote.save()
        _create_lines(client_quote, lines, totals.line_totals)

        log_quote_activity(
            client_quote, 'CREATED', f'Invoice {client_quote.quote_number} created with {len(lines)} line items',
            actor=actor, metadata={'total': str(totals.total)}
        )

        for item in _invoiced_spec_items(lines):
            log_item_activity(
                item, 'INVOICED', 'Added to Invoice', f'Added to client invoice {client_quote.quote_number}',
                actor=actor, metadata={'client_quote_id': client_quote.id}
            )
            sync_item_status(item, 'invoice_sent', actor=actor)
            if item.payment_status == 'NOT_INVOICED':
                update_item_payment_status(item, 'INVOICED')

    logger.info(f"Created {client_quote.quote_number} for project {project.id}: total {totals.total}")
    return client_quote


def update_client_invoice(client_quote, validated_data, lines=None, actor=None):
    """Apply a PATCH; approved invoices are frozen"""
    if client_quote.status == 'APPROVED':
        raise InvoicingError('Cannot modify an approved quote')
    if lines is not None:
        if not lines:
            raise InvoicingError('At least one item is required')
        invalid_items = [line.get('display_name') or 'Item' for line in lines if not has_price(line.get('client_unit_price'))]
        if invalid_items:
            raise InvoicingError('All items must have a valid price (RRP or trade price)', invalid_items=invalid_items)

    with transaction.atomic():
        for field, value in validated_data.items():
            setattr(client_quote, field, value)
        client_quote.updated_by = actor
        if lines is not None:
            client_quote.line_items.all().delete()
            totals = invoice_totals(lines, client_quote.delivery_fee, client_quote.custom_fees)
            _create_lines(client_quote, lines, totals.line_totals)
        recalculate_totals(client_quote)
    return client_quote


def delete_client_invoice(client_quote):
    if client_quote.status != 'DRAFT':
        raise InvoicingError('Only draft quotes can be deleted')
    client_quote.delete()


def client_portal_url(client_quote):
    return build_app_url(f'client-portal/invoices/{client_quote.access_token}')


def send_invoice_email(client_quote, email, message='', test=False):
    subject = f"Invoice {client_quote.quote_number} - {client_quote.project.name}"
    if test:
        subject = f"[TEST] {subject}"
    context = {
        'invoice': client_quote,
        'project': client_quote.project,
        'client_name': client_quote.contact_name,
        'line_items': list(client_quote.line_items.all()),
        'message': message,
        'portal_url': client_portal_url(client_quote),
        'test': test,
    }
    return send_templated_email(
        subject=subject,
        to=email,
        template_name='invoicing/emails/client_invoice',
        context=context,
    )


def send_client_invoice(client_quote, email=None, message='', actor=None):
    """
    Email the invoice to the client and mark it SENT_TO_CLIENT.

    The email goes out before anything is saved; a mail failure propagates
    and leaves the invoice untouched.
    """
    email = (email or '').strip() or client_quote.contact_email
    if not email:
        raise InvoicingError('Client email not found')

    if not client_quote.token_expires_at or client_quote.is_token_expired:
        client_quote.access_token = generate_invoice_token()
    client_quote.token_expires_at = timezone.now() + timedelta(days=getattr(settings, 'CLIENT_PORTAL_TOKEN_DAYS', 60))

    send_invoice_email(client_quote, email, message=message)

    with transaction.atomic():
        client_quote.status = 'SENT_TO_CLIENT'
        client_quote.sent_to_client_at = timezone.now()
        client_quote.sent_by = actor if actor is not None and actor.is_authenticated else None
        if not client_quote.client_email:
            client_quote.client_email = email
        client_quote.save()

        log_quote_activity(client_quote, 'SENT_TO_CLIENT', f'Invoice sent to {email}', actor=actor,
                           metadata={'email': email})
        for item in _invoiced_spec_items(client_quote.line_items.select_related('spec_item')):
            sync_item_status(item, 'invoice_sent', actor=actor)

    return {'success': True, 'sent_to': email}


def send_test_email(client_quote, email, actor=None):
    email = (email or '').strip()
    if not email:
        raise InvoicingError('Email address is required')
    send_invoice_email(client_quote, email, test=True)
    log_quote_activity(client_quote, 'TEST_EMAIL_SENT', f'Test email sent to {email}', actor=actor)
    return {'success': True, 'sent_to': email}


def record_client_response(client_quote, decision, message='', actor=None):
    decision = (decision or '').strip().lower()
    if not decision:
        raise InvoicingError('Decision is required')

    with transaction.atomic():
        client_quote.status = ClientQuote.DECISION_STATUSES.get(decision, 'CLIENT_REVIEWING')
        client_quote.client_decision = decision
        client_quote.client_decided_at = timezone.now()
        client_quote.client_message = message or ''
        client_quote.save()
        log_quote_activity(
            client_quote, f'CLIENT_{decision.upper()}', f'Client response recorded: {decision}',
            actor=actor, metadata={'message': message or ''}
        )
    return {'success': True, 'status': client_quote.status}


def mark_portal_opened(client_quote):
    """Client opened the invoice link"""
    update_fields = ['view_count']
    client_quote.view_count += 1
    if not client_quote.email_opened_at:
        client_quote.email_opened_at = timezone.now()
        update_fields.append('email_opened_at')
    if client_quote.status == 'SENT_TO_CLIENT':
        client_quote.status = 'CLIENT_REVIEWING'
        update_fields.append('status')
    client_quote.save(update_fields=update_fields)


# Payments

def update_items_payment_status(client_quote, actor=None):
    """
    Spread the invoice's paid amount over its spec items.

    Items become FULLY_PAID (and move to CLIENT_PAID) once the invoice is
    paid in full, DEPOSIT_PAID while it is partially paid.
    """
    total = client_quote.total_amount or Decimal('0')
    paid = client_quote.get_total_paid()
    if paid <= 0:
        return []
    fully_paid = total > 0 and paid >= total
    ratio = Decimal('1') if fully_paid or total <= 0 else paid / total

    line_totals = {}
    for line in client_quote.line_items.select_related('spec_item'):
        if line.spec_item is None:
            continue
        line_totals.setdefault(line.spec_item, Decimal('0'))
        line_totals[line.spec_item] += line.client_total_price

    updated = []
    for item, amount in line_totals.items():
        update_item_payment_status(
            item,
            'FULLY_PAID' if fully_paid else 'DEPOSIT_PAID',
            paid_amount=quantize_money(amount * ratio),
        )
        if fully_paid:
            sync_item_status(item, 'payment_received', actor=actor)
        updated.append(item.id)
    return updated


def record_payment(client_quote, data, actor=None):
    amount = to_decimal(data.get('amount'))
    if amount <= 0:
        raise InvoicingError('Payment amount must be greater than 0')

    with transaction.atomic():
        payment = ClientPayment.objects.create(
            client_quote=client_quote,
            amount=quantize_money(amount),
            method=data.get('method') or 'E_TRANSFER',
            status=data.get('status') or 'PAID',
            paid_at=data.get('paid_at') or timezone.now(),
            reference=data.get('reference') or '',
            notes=data.get('notes') or '',
            recorded_by=actor if actor is not None and actor.is_authenticated else None,
        )
        log_quote_activity(
            client_quote, 'PAYMENT_RECEIVED', f'Payment of {payment.amount} recorded ({payment.get_method_display()})',
            actor=actor, metadata={'payment_id': payment.id, 'amount': str(payment.amount)}
        )
        for item_id in update_items_payment_status(client_quote, actor=actor):
            logger.debug(f"Payment status updated for spec item {item_id}")

    logger.info(f"Recorded payment {payment.amount} on {client_quote.quote_number}")
    return payment


def billing_stats(invoices, today=None):
    """Counts per derived billing status plus billed / paid / outstanding totals"""
    stats = {
        'total': 0, 'draft': 0, 'sent': 0, 'partial': 0, 'paid': 0, 'overdue': 0,
        'total_billed': Decimal('0'), 'total_paid': Decimal('0'), 'outstanding': Decimal('0'),
    }
    for invoice in invoices:
        stats['total'] += 1
        stats[invoice.get_billing_status(today=today).lower()] += 1
        paid = invoice.get_total_paid()
        stats['total_billed'] += invoice.total_amount or Decimal('0')
        stats['total_paid'] += paid
        stats['outstanding'] += (invoice.total_amount or Decimal('0')) - paid
    for key in ('total_billed', 'total_paid', 'outstanding'):
        stats[key] = str(quantize_money(stats[key]))
    return stats
