"""
Cache invalidation signals
Automatically invalidate dashboard caches when procurement data changes
"""
from django.db.models.signals import post_save, post_delete
import logging
import threading
from contextlib import contextmanager

from .cache_utils import invalidate_dashboard_cache

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()

WATCHED_MODELS = [
    'projects.Project',
    'specs.SpecItem',
    'procurement.RFQ',
    'procurement.SupplierQuote',
    'procurement.Order',
    'invoicing.ClientQuote',
    'invoicing.ClientPayment',
]


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk operations to prevent excessive cache clearing.
    The dashboard cache is invalidated once when the block exits.
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False
        invalidate_dashboard_cache_manual()


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


def invalidate_dashboard_cache_manual():
    """Manually invalidate dashboard cache"""
    try:
        invalidate_dashboard_cache()
    except Exception as e:
        logger.warning(f"Error invalidating dashboard cache: {e}")


def _on_procurement_change(sender, **kwargs):
    if is_suspended():
        return
    invalidate_dashboard_cache_manual()


for _model in WATCHED_MODELS:
    post_save.connect(_on_procurement_change, sender=_model, weak=False,
                      dispatch_uid=f'dashboard_cache_save_{_model}')
    post_delete.connect(_on_procurement_change, sender=_model, weak=False,
                        dispatch_uid=f'dashboard_cache_delete_{_model}')
