"""
Client-facing price arithmetic.

Everything here is a pure function over Decimal values so it can be reused
by the invoice wizard, the invoice API and the live pricing preview without
touching the database. Monetary results are rounded half-up to cents.
"""
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal('0.01')
HUNDRED = Decimal('100')
ZERO = Decimal('0')

DEFAULT_GST_RATE = Decimal('5.000')
DEFAULT_QST_RATE = Decimal('9.975')

CURRENCY_CAD = 'CAD'
CURRENCY_USD = 'USD'


def to_decimal(value, default=ZERO):
    """Coerce ints, floats, strings and None to Decimal"""
    if value is None or value == '':
        return default
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValueError(f"Invalid amount: {value!r}")


def quantize_money(value):
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def has_price(value):
    """True when a price is present and positive"""
    if value is None or value == '':
        return False
    return to_decimal(value) > ZERO


def selling_price(rrp, cost_price, markup_percent=None):
    """
    Client selling price for one unit.

    The RRP wins when present; otherwise the trade/cost price is marked up.
    Returns None when neither price is known.
    """
    if has_price(rrp):
        return quantize_money(rrp)
    if not has_price(cost_price):
        return None
    markup = to_decimal(markup_percent)
    return quantize_money(to_decimal(cost_price) * (1 + markup / HUNDRED))


def line_total(quantity, unit_price):
    return quantize_money(to_decimal(quantity) * to_decimal(unit_price))


def component_price_with_markup(price, markup_percent=None):
    if price is None:
        return None
    if not markup_percent:
        return quantize_money(price)
    return quantize_money(to_decimal(price) * (1 + to_decimal(markup_percent) / HUNDRED))


def item_rrp_total(rrp, quantity, components_total=ZERO):
    """RRP for the full quantity, including per-unit component prices"""
    return quantize_money((to_decimal(rrp) + to_decimal(components_total)) * to_decimal(quantity))


@dataclass(frozen=True)
class Margin:
    amount: Decimal
    percent: Decimal


def margin(selling, cost):
    """Gross margin of a selling price over its cost"""
    selling = to_decimal(selling)
    cost = to_decimal(cost)
    amount = quantize_money(selling - cost)
    if selling == ZERO:
        return Margin(amount=amount, percent=ZERO.quantize(CENT))
    percent = (amount / selling * HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)
    return Margin(amount=amount, percent=percent)


def deposit_amount(total, percent):
    if not percent:
        return ZERO.quantize(CENT)
    return quantize_money(to_decimal(total) * to_decimal(percent) / HUNDRED)


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    cad_subtotal: Decimal
    usd_subtotal: Decimal
    delivery_fee: Decimal
    fees_total: Decimal
    taxable_amount: Decimal
    gst_rate: Decimal
    gst_amount: Decimal
    qst_rate: Decimal
    qst_amount: Decimal
    total: Decimal
    line_totals: list = field(default_factory=list)

    def as_dict(self):
        return {
            'subtotal': str(self.subtotal),
            'cad_subtotal': str(self.cad_subtotal),
            'usd_subtotal': str(self.usd_subtotal),
            'delivery_fee': str(self.delivery_fee),
            'fees_total': str(self.fees_total),
            'taxable_amount': str(self.taxable_amount),
            'gst_rate': str(self.gst_rate),
            'gst_amount': str(self.gst_amount),
            'qst_rate': str(self.qst_rate),
            'qst_amount': str(self.qst_amount),
            'total': str(self.total),
            'line_totals': [str(value) for value in self.line_totals],
        }


def calculate_totals(line_items, delivery_fee=ZERO, custom_fees=None,
                     gst_rate=DEFAULT_GST_RATE, qst_rate=DEFAULT_QST_RATE):
    """
    Invoice totals for a list of line items.

    ``line_items`` are mappings with ``quantity``, ``unit_price`` and an
    optional ``currency``. USD lines are reported in ``usd_subtotal`` and are
    not taxed; GST and QST apply to the CAD subtotal plus delivery and custom
    fees. ``total`` is the taxable amount times (1 + gst/100 + qst/100),
    rounded once; ``gst_amount`` and ``qst_amount`` are the rounded parts
    shown on the invoice.
    """
    cad_subtotal = ZERO
    usd_subtotal = ZERO
    line_totals = []

    for item in line_items:
        amount = line_total(item.get('quantity', 1), item.get('unit_price'))
        line_totals.append(amount)
        if (item.get('currency') or CURRENCY_CAD).upper() == CURRENCY_USD:
            usd_subtotal += amount
        else:
            cad_subtotal += amount

    fees_total = sum((to_decimal(fee.get('amount')) for fee in (custom_fees or [])), ZERO)
    delivery = to_decimal(delivery_fee)
    taxable = quantize_money(cad_subtotal + delivery + fees_total)

    gst_rate = to_decimal(gst_rate)
    qst_rate = to_decimal(qst_rate)
    gst_amount = quantize_money(taxable * gst_rate / HUNDRED)
    qst_amount = quantize_money(taxable * qst_rate / HUNDRED)

    return InvoiceTotals(
        subtotal=quantize_money(cad_subtotal + usd_subtotal),
        cad_subtotal=quantize_money(cad_subtotal),
        usd_subtotal=quantize_money(usd_subtotal),
        delivery_fee=quantize_money(delivery),
        fees_total=quantize_money(fees_total),
        taxable_amount=taxable,
        gst_rate=gst_rate,
        gst_amount=gst_amount,
        qst_rate=qst_rate,
        qst_amount=qst_amount,
        total=quantize_money(taxable * (1 + (gst_rate + qst_rate) / HUNDRED)),
        line_totals=line_totals,
    )
