"""Money arithmetic over line items.

Items may be :class:`documents.models.LineItem` instances or plain mappings
with ``quantity``, ``unit_price`` and ``unit_discount`` keys. Nothing here
touches the database.
"""

from collections import namedtuple
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings

from core.exceptions import BillingValidationError
from sequences.models import DocumentType

CENT = Decimal('0.01')

Totals = namedtuple('Totals', ['subtotal', 'discounts', 'total'])


def to_money(value):
    """Coerce ``value`` to a two-decimal :class:`Decimal`."""
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _get(item, name):
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name)


def line_total(item):
    return to_money((to_money(_get(item, 'unit_price')) - to_money(_get(item, 'unit_discount') or 0)) * int(_get(item, 'quantity')))


def subtotal(items):
    return sum((to_money(_get(i, 'unit_price')) * int(_get(i, 'quantity')) for i in items), Decimal('0.00'))


def discounts(items):
    return sum((to_money(_get(i, 'unit_discount') or 0) * int(_get(i, 'quantity')) for i in items), Decimal('0.00'))


def compute_totals(items):
    """Positive magnitudes; ``total`` is always ``subtotal - discounts``."""
    items = list(items)
    sub = to_money(subtotal(items))
    disc = to_money(discounts(items))
    return Totals(sub, disc, sub - disc)


def is_negated(doc_type, has_related):
    """Receipts and credit notes acting on an invoice are stored negative."""
    return has_related and doc_type in (DocumentType.RECEIPT, DocumentType.CREDIT_NOTE)


def stored_totals(doc_type, items, has_related):
    """Totals as persisted on the bookkeeping record."""
    totals = compute_totals(items)
    if not is_negated(doc_type, has_related):
        return totals
    return Totals(-abs(totals.subtotal), -abs(totals.discounts), -abs(totals.total))


def display_totals(items):
    """Totals as printed on the document: recomputed from items, never signed."""
    return compute_totals(items)


def resolve_due_days(days=None):
    if days is None:
        return settings.BILLING_DEFAULT_DUE_DAYS
    try:
        days = int(days)
    except (TypeError, ValueError):
        raise BillingValidationError(f'Due days must be an integer, got {days!r}.', field='due_days')
    if days not in settings.BILLING_ALLOWED_DUE_DAYS:
        allowed = ', '.join(str(d) for d in settings.BILLING_ALLOWED_DUE_DAYS)
        raise BillingValidationError(f'Due days must be one of {allowed}.', field='due_days')
    return days


def due_date(issued_at, days=None):
    """``issued_at + days``; ``days`` defaults to the configured 6."""
    return issued_at + timedelta(days=resolve_due_days(days))
