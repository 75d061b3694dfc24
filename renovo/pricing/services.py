from decimal import Decimal

from django.conf import settings

from .calculations import DEFAULT_GST_RATE, DEFAULT_QST_RATE, to_decimal
from .models import CategoryMarkup


def get_tax_rates():
    """(gst_rate, qst_rate) as configured in settings"""
    return (
        to_decimal(getattr(settings, 'GST_RATE', DEFAULT_GST_RATE)),
        to_decimal(getattr(settings, 'QST_RATE', DEFAULT_QST_RATE)),
    )


def markup_for_category(category_name):
    """Configured markup for a category, 0 when none is set"""
    if not category_name:
        return Decimal('0')
    markup = CategoryMarkup.objects.filter(category_name__iexact=category_name.strip()).first()
    return markup.markup_percent if markup else Decimal('0')
