"""
Django management command to find spec items whose status lags behind
their purchase orders or client payments, and optionally repair them
"""
from django.core.management.base import BaseCommand
from django.db import transaction

from renovo.core.cache_signals import suspend_cache_signals
from renovo.procurement.services import ORDER_STATUS_TRIGGERS
from renovo.specs.models import SpecItem
from renovo.specs.status_sync import (
    MANUAL_STATUSES,
    PROCUREMENT_STATUS_ORDER,
    STATUS_TRIGGERS,
    is_status_ahead,
    sync_item_status,
)


def expected_trigger(item):
    """
    The trigger for the furthest status the item's orders and payments
    justify, or None when nothing is ahead of its current status.
    """
    candidates = []
    for order_status in item.order_items.exclude(order__status='CANCELLED').values_list('order__status', flat=True):
        trigger = ORDER_STATUS_TRIGGERS.get(order_status)
        if trigger:
            candidates.append(trigger)
    if item.payment_status == 'FULLY_PAID':
        candidates.append('payment_received')

    best = None
    for trigger in candidates:
        target = STATUS_TRIGGERS[trigger]
        if best is None or PROCUREMENT_STATUS_ORDER.index(target) > PROCUREMENT_STATUS_ORDER.index(STATUS_TRIGGERS[best]):
            best = trigger
    if best is None or not is_status_ahead(STATUS_TRIGGERS[best], item.spec_status):
        return None
    return best


class Command(BaseCommand):
    help = 'Check spec item statuses against their orders and payments'

    def add_arguments(self, parser):
        parser.add_argument(
            '--project-id',
            type=int,
            help='Check one project only',
        )
        parser.add_argument(
            '--fix',
            action='store_true',
            help='Move lagging items forward to the status their orders / payments imply',
        )

    def handle(self, *args, **options):
        project_id = options.get('project_id')
        fix = options.get('fix', False)

        items = SpecItem.objects.exclude(spec_status__in=MANUAL_STATUSES).select_related('project').order_by('project_id', 'id')
        if project_id:
            items = items.filter(project_id=project_id)

        self.stdout.write("=" * 80)
        self.stdout.write(self.style.SUCCESS("SPEC ITEM vs ORDER / PAYMENT STATUS CHECK"))
        self.stdout.write("=" * 80)
        self.stdout.write(f"Items checked: {items.count()}")
        self.stdout.write("")

        lagging = []
        for item in items:
            trigger = expected_trigger(item)
            if trigger:
                lagging.append((item, trigger))
                self.stdout.write(
                    f"  - {item.project.name} / {item.name} (ID: {item.id}): "
                    f"{item.spec_status} -> {STATUS_TRIGGERS[trigger]} ({trigger})"
                )

        if not lagging:
            self.stdout.write(self.style.SUCCESS("✓ All spec items are in sync"))
            return

        self.stdout.write("")
        self.stdout.write(self.style.WARNING(f"Items out of sync: {len(lagging)}"))

        if not fix:
            self.stdout.write("Run again with --fix to update them.")
            return

        fixed = 0
        with suspend_cache_signals(), transaction.atomic():
            for item, trigger in lagging:
                result = sync_item_status(item, trigger)
                if result.updated:
                    fixed += 1
        self.stdout.write(self.style.SUCCESS(f"✓ Fixed {fixed} item(s)"))
