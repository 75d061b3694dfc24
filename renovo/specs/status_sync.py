"""
Spec item status synchronisation for the procurement workflow.

Procurement events (RFQ sent, quote received, invoice sent, order shipped...)
move a spec item along its pipeline status. Items only ever move forward,
and statuses set by hand (hidden, ordered by the client, issue...) are
never overwritten.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from django.db import transaction
from django.utils import timezone

from .models import SpecItem, ItemActivity

logger = logging.getLogger(__name__)

PROCUREMENT_STATUS_ORDER = [
    'DRAFT',
    'SELECTED',
    'RFQ_SENT',
    'QUOTE_RECEIVED',
    'QUOTE_APPROVED',
    'BUDGET_SENT',
    'BUDGET_APPROVED',
    'INVOICED_TO_CLIENT',
    'CLIENT_PAID',
    'ORDERED',
    'SHIPPED',
    'RECEIVED',
    'DELIVERED',
    'INSTALLED',
    'CLOSED',
]

MANUAL_STATUSES = [
    'HIDDEN',
    'CLIENT_TO_ORDER',
    'CONTRACTOR_TO_ORDER',
    'NEED_SAMPLE',
    'ISSUE',
    'ARCHIVED',
]

STATUS_TRIGGERS = {
    'rfq_sent': 'RFQ_SENT',
    'quote_received': 'QUOTE_RECEIVED',
    'quote_accepted': 'QUOTE_APPROVED',
    'added_to_client_quote': 'QUOTE_APPROVED',
    'client_quote_sent': 'BUDGET_SENT',
    'client_approved': 'BUDGET_APPROVED',
    'invoice_sent': 'INVOICED_TO_CLIENT',
    'payment_received': 'CLIENT_PAID',
    'order_created': 'ORDERED',
    'order_shipped': 'SHIPPED',
    'order_received': 'RECEIVED',
    'order_delivered': 'DELIVERED',
    'installed': 'INSTALLED',
    'completed': 'CLOSED',
}


@dataclass
class StatusSyncResult:
    item_id: Optional[int]
    previous_status: str
    new_status: str
    updated: bool
    reason: Optional[str] = None

    def as_dict(self):
        return {
            'item_id': self.item_id,
            'previous_status': self.previous_status,
            'new_status': self.new_status,
            'updated': self.updated,
            'reason': self.reason,
        }


def is_status_ahead(status_a, status_b):
    """True when status_a comes later in the procurement pipeline than status_b"""
    if status_a not in PROCUREMENT_STATUS_ORDER or status_b not in PROCUREMENT_STATUS_ORDER:
        return False
    return PROCUREMENT_STATUS_ORDER.index(status_a) > PROCUREMENT_STATUS_ORDER.index(status_b)


def log_item_activity(item, activity_type, title, description='', actor=None, metadata=None):
    return ItemActivity.objects.create(
        item=item,
        activity_type=activity_type,
        title=title,
        description=description,
        actor=actor if actor is not None and actor.is_authenticated else None,
        metadata=metadata or {},
    )


def sync_item_status(item, trigger, actor=None):
    """Move ``item`` to the status mapped to ``trigger`` if that is a step forward"""
    target = STATUS_TRIGGERS.get(trigger)
    if target is None:
        return StatusSyncResult(
            item_id=item.id,
            previous_status=item.spec_status,
            new_status=item.spec_status,
            updated=False,
            reason=f'Unknown trigger: {trigger}',
        )

    current = item.spec_status
    if current in MANUAL_STATUSES:
        return StatusSyncResult(
            item_id=item.id,
            previous_status=current,
            new_status=current,
            updated=False,
            reason=f'Current status {current} is a manual status',
        )

    if not is_status_ahead(target, current):
        return StatusSyncResult(
            item_id=item.id,
            previous_status=current,
            new_status=current,
            updated=False,
            reason=f'New status {target} is not ahead of current status {current}',
        )

    item.spec_status = target
    item.save(update_fields=['spec_status', 'updated_at'])
    log_item_activity(
        item,
        'STATUS_CHANGED',
        'Status Updated',
        f'Status changed from {current} to {target} (trigger: {trigger})',
        actor=actor,
        metadata={'trigger': trigger, 'from': current, 'to': target},
    )
    logger.info(f"Spec item {item.id} status {current} -> {target} ({trigger})")

    return StatusSyncResult(
        item_id=item.id,
        previous_status=current,
        new_status=target,
        updated=True,
    )


def sync_items_status(items, trigger, actor=None):
    """Sync a batch of items (instances or ids)"""
    items = list(items)
    if items and not isinstance(items[0], SpecItem):
        items = list(SpecItem.objects.filter(id__in=items))
    return [sync_item_status(item, trigger, actor=actor) for item in items]


def update_item_payment_status(item, payment_status, paid_amount=None):
    item.payment_status = payment_status
    item.paid_at = timezone.now() if payment_status != 'NOT_INVOICED' else None
    update_fields = ['payment_status', 'paid_at', 'updated_at']
    if paid_amount is not None:
        item.paid_amount = paid_amount
        update_fields.append('paid_amount')
    item.save(update_fields=update_fields)


def accept_quote_for_item(item, quote_line, actor=None, markup_percent=None):
    """
    Accept a supplier quote line as the price source for a spec item.

    Any previously accepted line for the item is un-accepted, the item takes
    the quoted unit price as its trade price together with the quoting
    supplier, and its status moves to QUOTE_APPROVED.
    """
    line_model = type(quote_line)
    quote = quote_line.supplier_quote

    with transaction.atomic():
        line_model.objects.filter(spec_item=item, is_accepted=True).exclude(pk=quote_line.pk).update(
            is_accepted=False, accepted_at=None
        )

        quote_line.spec_item = item
        quote_line.is_accepted = True
        quote_line.accepted_at = timezone.now()
        quote_line.accepted_by = actor if actor is not None and actor.is_authenticated else None
        quote_line.approved_markup_percent = markup_percent
        quote_line.save()

        item.trade_price = quote_line.unit_price
        if quote.supplier_id:
            item.supplier_id = quote.supplier_id
        item.supplier_name = quote.supplier_display_name or item.supplier_name
        if markup_percent is not None:
            item.markup_percent = markup_percent
        item.save()

        log_item_activity(
            item,
            'QUOTE_ACCEPTED',
            'Quote Accepted',
            f'Accepted {quote.supplier_display_name} quote {quote.quote_number} at {quote_line.unit_price}',
            actor=actor,
            metadata={'quote_id': quote.id, 'quote_line_id': quote_line.id},
        )
        result = sync_item_status(item, 'quote_accepted', actor=actor)

    return result
