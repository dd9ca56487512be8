"""Settlement state of invoices and the guards for settling documents.

An invoice's state is derived from the receipts and credit notes that point
at it; it is never stored. Priority order:

1. Cancelled - exactly one credit note references the invoice.
2. Settled   - no valid credit note and exactly one receipt.
3. Pending   - anything else.

More than one credit note on the same invoice is corrupt data; it is
reported as *not* cancelled rather than resolved to a state. The partial
unique constraint on ``Document`` keeps new writes from producing it.
"""

from collections import defaultdict

from django.db.models import Count, Exists, OuterRef, Sum
from django.db import models

from core.exceptions import BillingValidationError, LifecycleViolation
from sequences.models import DocumentType
from .models import Document, SETTLING_TYPES


class InvoiceState(models.TextChoices):
    PENDING = 'Pending', 'Pending'
    SETTLED = 'Settled', 'Settled'
    CANCELLED = 'Cancelled', 'Cancelled'


def state_from_counts(receipts, credit_notes):
    if credit_notes == 1:
        return InvoiceState.CANCELLED
    if receipts == 1:
        return InvoiceState.SETTLED
    return InvoiceState.PENDING


def settlement_counts(invoice_ids):
    """Map invoice id -> ``{'Receipt': n, 'CreditNote': m}`` in one query."""
    counts = defaultdict(lambda: {DocumentType.RECEIPT: 0, DocumentType.CREDIT_NOTE: 0})
    rows = (
        Document.objects.filter(related_document_id__in=list(invoice_ids), doc_type__in=SETTLING_TYPES)
        .values('related_document_id', 'doc_type')
        .annotate(n=Count('id'))
    )
    for row in rows:
        counts[row['related_document_id']][row['doc_type']] = row['n']
    return counts


def _load_document(document_id):
    try:
        return Document.objects.only('pk', 'doc_type').get(pk=int(document_id))
    except (Document.DoesNotExist, TypeError, ValueError):
        raise BillingValidationError(f'Document {document_id!r} does not exist.', field='document')


def derive_state(invoice):
    """Return the :class:`InvoiceState` of ``invoice`` (a Document or its id).

    Returns ``None`` for documents that are not invoices; an unknown id is a
    validation error.
    """
    if not isinstance(invoice, Document):
        invoice = _load_document(invoice)
    if not invoice.is_invoice:
        return None
    invoice_id = invoice.pk
    c = settlement_counts([invoice_id])[invoice_id]
    return state_from_counts(c[DocumentType.RECEIPT], c[DocumentType.CREDIT_NOTE])


def derive_states(documents):
    """Bulk variant for list endpoints: document id -> state (None for non-invoices)."""
    documents = list(documents)
    invoice_ids = [d.pk for d in documents if d.is_invoice]
    counts = settlement_counts(invoice_ids)
    states = {}
    for d in documents:
        if not d.is_invoice:
            states[d.pk] = None
            continue
        c = counts[d.pk]
        states[d.pk] = state_from_counts(c[DocumentType.RECEIPT], c[DocumentType.CREDIT_NOTE])
    return states


def check_can_settle(doc_type, invoice):
    """Raise :class:`LifecycleViolation` unless ``doc_type`` may act on ``invoice``.

    Any existing credit note blocks both receipts and further credit notes;
    any existing receipt blocks credit notes and a second receipt.
    """
    if not invoice.is_invoice:
        raise LifecycleViolation(
            LifecycleViolation.NOT_AN_INVOICE,
            f'{invoice.number} is a {invoice.doc_type}; receipts and credit notes must reference an invoice.',
        )

    c = settlement_counts([invoice.pk])[invoice.pk]
    if c[DocumentType.CREDIT_NOTE]:
        raise LifecycleViolation(
            LifecycleViolation.ALREADY_CANCELLED,
            f'Invoice {invoice.number} is already cancelled by a credit note.',
        )
    if c[DocumentType.RECEIPT]:
        if doc_type == DocumentType.CREDIT_NOTE:
            message = f'Invoice {invoice.number} is already settled and cannot be cancelled.'
        else:
            message = f'Invoice {invoice.number} is already settled by a receipt.'
        raise LifecycleViolation(LifecycleViolation.ALREADY_SETTLED, message)


def pending_invoices(client=None, month=None):
    """Invoices with no receipt and no credit note at all."""
    settled_or_cancelled = Document.objects.filter(
        related_document=OuterRef('pk'),
        doc_type__in=SETTLING_TYPES,
    )
    qs = Document.objects.filter(doc_type=DocumentType.INVOICE).exclude(Exists(settled_or_cancelled))
    if client:
        qs = qs.filter(client_name__icontains=client)
    if month:
        qs = qs.filter(month__startswith=month)
    return qs


def pending_total(queryset):
    return queryset.aggregate(total=Sum('total'))['total'] or 0


def billing_summary():
    """Dashboard figures across the whole store.

    ``billed_total`` is invoices minus credit notes; ``outstanding_total``
    is what the pending invoices add up to; ``collected_total`` is the
    difference, which equals the receipts issued against live invoices.
    """
    by_type = {row['doc_type']: row for row in (
        Document.objects.values('doc_type').annotate(n=Count('id'), amount=Sum('total'))
    )}

    def _count(doc_type):
        return by_type.get(doc_type, {}).get('n', 0)

    def _amount(doc_type):
        return by_type.get(doc_type, {}).get('amount') or 0

    outstanding = pending_total(pending_invoices())
    billed = _amount(DocumentType.INVOICE) - abs(_amount(DocumentType.CREDIT_NOTE))
    return {
        'invoices': _count(DocumentType.INVOICE),
        'receipts': _count(DocumentType.RECEIPT),
        'credit_notes': _count(DocumentType.CREDIT_NOTE),
        'documents': sum(row['n'] for row in by_type.values()),
        'billed_total': billed,
        'outstanding_total': outstanding,
        'collected_total': billed - outstanding,
    }


def billing_by_month():
    """Net total per ``month``, oldest first.

    Receipts and credit notes are stored negative, so summing every document
    nets them against the invoices they act on.
    """
    return list(
        Document.objects.values('month')
        .annotate(total=Sum('total'))
        .order_by('month')
    )


def billing_by_client():
    """Invoices minus credit notes per client name, highest first."""
    return list(
        Document.objects.filter(doc_type__in=(DocumentType.INVOICE, DocumentType.CREDIT_NOTE))
        .values('client_name')
        .annotate(total=Sum('total'))
        .order_by('-total', 'client_name')
    )
