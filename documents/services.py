"""Issuing and deleting documents.

``DocumentService.issue`` validates the request, runs the lifecycle guard,
computes totals, allocates a number (unless one is supplied) and writes the
document with its items in one transaction. The guard runs again inside that
transaction while the target invoice row is locked, so two concurrent
settlements of the same invoice cannot both commit.

A number allocated before a failed insert is not given back; numbers only
need to be unique and increasing.
"""

import logging
import re
from datetime import datetime, time

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from clients.models import Client
from core.exceptions import BillingValidationError, DuplicateNumber, LifecycleViolation, StoreUnavailable
from sequences.models import DocumentType
from sequences.services import allocate, format_number, parse_document_type
from . import calculator
from .lifecycle import check_can_settle
from .models import Document, LineItem, SETTLING_TYPES

logger = logging.getLogger(__name__)

MONTH_RE = re.compile(r'^\d{4}-(0[1-9]|1[0-2])$')
MAX_DESCRIPTION = 200
MAX_NUMBER = 50


class DocumentObserver:
    """Hook for callers that want to react to issued or deleted documents.

    Observers are passed to :class:`DocumentService` by whoever builds it;
    the service keeps no global listener state.
    """

    def document_issued(self, document):
        pass

    def document_deleted(self, document):
        pass


class LoggingObserver(DocumentObserver):
    def document_issued(self, document):
        logger.info(
            "Issued %s %s for %s total=%s",
            document.doc_type, document.number, document.client_name, document.total,
        )

    def document_deleted(self, document):
        logger.warning("Deleted %s %s", document.doc_type, document.number)


def validate_month(value, field='month'):
    value = str(value or '').strip()
    if not MONTH_RE.match(value):
        raise BillingValidationError(f'{field} must use the YYYY-MM format, got {value!r}.', field=field)
    return value


def normalize_items(items):
    """Validate raw item payloads and return clean dicts in input order."""
    if not items:
        raise BillingValidationError('A document needs at least one line item.', field='items')

    clean = []
    for index, raw in enumerate(items):
        field = f'items[{index}]'
        if not isinstance(raw, dict):
            raise BillingValidationError(f'{field} must be an object.', field=field)

        description = str(raw.get('description') or '').strip()
        if not description or len(description) > MAX_DESCRIPTION:
            raise BillingValidationError(f'{field}.description must be 1-{MAX_DESCRIPTION} characters.', field=field)

        month = raw.get('month')
        if month:
            month = validate_month(month, field=f'{field}.month')
        else:
            month = None

        try:
            quantity = int(raw.get('quantity', 1))
            unit_price = calculator.to_money(raw.get('unit_price'))
            unit_discount = calculator.to_money(raw.get('unit_discount') or 0)
        except (TypeError, ValueError, ArithmeticError):
            raise BillingValidationError(f'{field} has a non-numeric quantity or amount.', field=field)

        if quantity < 1:
            raise BillingValidationError(f'{field}.quantity must be at least 1.', field=field)
        if unit_price < 0 or unit_discount < 0:
            raise BillingValidationError(f'{field} amounts cannot be negative.', field=field)

        clean.append({
            'description': description,
            'month': month,
            'quantity': quantity,
            'unit_price': unit_price,
            'unit_discount': unit_discount,
        })
    return clean


def copy_items(invoice):
    """Line items of ``invoice`` verbatim, for the receipt or credit note acting on it."""
    return [
        {
            'description': item.description,
            'month': item.month,
            'quantity': item.quantity,
            'unit_price': item.unit_price,
            'unit_discount': item.unit_discount,
        }
        for item in invoice.items.all()
    ]


def _same_client(invoice, client):
    # Imported invoices may carry only the name snapshot.
    if invoice.client_id is not None:
        return invoice.client_id == client.pk
    return invoice.client_name == client.name


def coerce_datetime(value, field):
    """Accept datetimes, dates or ISO strings; naive values use the current timezone."""
    if value is None or value == '':
        return None
    if isinstance(value, str):
        parsed = parse_datetime(value)
        if parsed is None:
            day = parse_date(value)
            if day is None:
                raise BillingValidationError(f'{field} is not a valid date.', field=field)
            parsed = datetime.combine(day, time.min)
        value = parsed
    elif not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value


class DocumentService:
    """Validates and persists new documents; deletes them on request."""

    def __init__(self, observers=None):
        self.observers = list(observers or [])

    def _notify(self, event, document):
        for observer in self.observers:
            getattr(observer, event)(document)

    def resolve_client(self, client):
        """Return the registered :class:`Client` for an instance, an int id or an exact name.

        Strings are always names, even when they are made of digits.
        """
        if isinstance(client, Client):
            return client
        if client is None or isinstance(client, bool) or str(client).strip() == '':
            raise BillingValidationError('A client is required.', field='client')
        try:
            if isinstance(client, int):
                return Client.objects.get(pk=client)
            return Client.objects.get(name=str(client).strip())
        except Client.DoesNotExist:
            raise BillingValidationError(f'Unknown client {client!r}.', field='client')
        except Client.MultipleObjectsReturned:
            raise BillingValidationError(f'Client name {client!r} is ambiguous; use the client id.', field='client')

    def _related_invoice(self, related_document_id):
        try:
            return Document.objects.prefetch_related('items').get(pk=related_document_id)
        except (Document.DoesNotExist, ValueError, TypeError):
            raise BillingValidationError(
                f'Related document {related_document_id!r} does not exist.', field='related_document_id'
            )

    def issue(self, doc_type, client, items=None, *, related_document_id=None, due_days=None,
              paid_at=None, number=None, issued_at=None, month=None, created_by=None):
        """Issue a document and return it with its final id and number."""
        doc_type = parse_document_type(doc_type)
        client = self.resolve_client(client)
        issued_at = coerce_datetime(issued_at, 'issued_at') or timezone.now()

        if number is not None:
            number = str(number).strip()
            if not number or len(number) > MAX_NUMBER:
                raise BillingValidationError(f'number must be 1-{MAX_NUMBER} characters.', field='number')

        invoice = None
        if doc_type in SETTLING_TYPES:
            if related_document_id in (None, ''):
                raise BillingValidationError(
                    f'A {doc_type.label} must reference the invoice it acts on.', field='related_document_id'
                )
            invoice = self._related_invoice(related_document_id)
            check_can_settle(doc_type, invoice)
            if not _same_client(invoice, client):
                raise BillingValidationError(
                    f'Invoice {invoice.number} belongs to {invoice.client_name}, not {client.name}.', field='client'
                )
            # Items are locked to the invoice's; anything sent by the caller is ignored.
            clean_items = copy_items(invoice)
        else:
            clean_items = normalize_items(items)

        if month:
            month = validate_month(month)
        elif invoice is not None:
            month = invoice.month
        elif clean_items[0]['month']:
            month = clean_items[0]['month']
        else:
            month = timezone.localtime(issued_at).strftime('%Y-%m')

        due_at = calculator.due_date(issued_at, due_days) if doc_type == DocumentType.INVOICE else None
        if doc_type == DocumentType.RECEIPT:
            paid_at = coerce_datetime(paid_at, 'paid_at') or issued_at
        else:
            paid_at = None

        totals = calculator.stored_totals(doc_type, clean_items, has_related=invoice is not None)

        if number is None:
            number = format_number(doc_type, allocate(doc_type))

        document = self._persist(
            doc_type=doc_type,
            number=number,
            client=client,
            issued_at=issued_at,
            due_at=due_at,
            paid_at=paid_at,
            month=month,
            totals=totals,
            items=clean_items,
            invoice=invoice,
            created_by=created_by,
        )
        self._notify('document_issued', document)
        return document

    def _persist(self, *, doc_type, number, client, issued_at, due_at, paid_at, month, totals, items,
                 invoice, created_by):
        try:
            with transaction.atomic():
                if invoice is not None:
                    # Lock the invoice row, then re-check against committed state.
                    locked = Document.objects.select_for_update().filter(pk=invoice.pk).first()
                    if locked is None:
                        raise BillingValidationError(
                            f'Related document {invoice.pk} no longer exists.', field='related_document_id'
                        )
                    check_can_settle(doc_type, locked)

                document = Document.objects.create(
                    number=number,
                    doc_type=doc_type,
                    client=client,
                    client_name=client.name,
                    issued_at=issued_at,
                    due_at=due_at,
                    paid_at=paid_at,
                    month=month,
                    subtotal=totals.subtotal,
                    discounts=totals.discounts,
                    total=totals.total,
                    related_document=invoice,
                    related_number=invoice.number if invoice is not None else None,
                    created_by=created_by,
                )
                LineItem.objects.bulk_create([
                    LineItem(document=document, position=position, **item)
                    for position, item in enumerate(items)
                ])
        except IntegrityError as exc:
            if Document.objects.filter(number=number).exists():
                logger.warning("Number %s already taken", number)
                raise DuplicateNumber(number) from exc
            if invoice is not None:
                raise LifecycleViolation(
                    LifecycleViolation.ALREADY_SETTLED if doc_type == DocumentType.RECEIPT
                    else LifecycleViolation.ALREADY_CANCELLED,
                    f'Invoice {invoice.number} already has a {doc_type.label}.',
                ) from exc
            raise
        except DatabaseError as exc:
            logger.error("Could not persist %s %s: %s", doc_type, number, exc)
            raise StoreUnavailable() from exc

        return Document.objects.prefetch_related('items').get(pk=document.pk)

    def delete(self, document):
        """Delete unconditionally; references from other documents are left dangling."""
        try:
            with transaction.atomic():
                document.delete()
        except DatabaseError as exc:
            logger.error("Could not delete %s %s: %s", document.doc_type, document.number, exc)
            raise StoreUnavailable() from exc
        self._notify('document_deleted', document)
