"""Bulk import of already tabulated documents.

Spreadsheet reading happens outside this service; what arrives here is one
mapping per row with fixed keys. Each row parses to either a
:class:`ParsedRow` or a :class:`ParseError` - nothing ambiguous is guessed
or defaulted. Imported rows always carry their own number, so the sequence
generator is never consulted; the unique constraint on ``Document.number``
is what rejects collisions.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from core.exceptions import BillingError, BillingValidationError
from sequences.models import DocumentType
from .models import Document
from .services import coerce_datetime, normalize_items, validate_month

# Canonical names plus the labels used on the printed documents.
TYPE_LABELS = {
    'Invoice': DocumentType.INVOICE,
    'Factura': DocumentType.INVOICE,
    'Receipt': DocumentType.RECEIPT,
    'Recibo': DocumentType.RECEIPT,
    'CreditNote': DocumentType.CREDIT_NOTE,
    'Nota de Crédito': DocumentType.CREDIT_NOTE,
}

REQUIRED_KEYS = ('number', 'type', 'client_name', 'issued_at')
OPTIONAL_KEYS = ('month', 'items', 'related_number', 'paid_at', 'due_days')


@dataclass
class ParsedRow:
    index: int
    number: str
    doc_type: DocumentType
    client_name: str
    issued_at: Any
    month: Optional[str] = None
    items: List[Dict[str, Any]] = field(default_factory=list)
    related_number: Optional[str] = None
    paid_at: Any = None
    due_days: Optional[int] = None


@dataclass
class ParseError:
    index: int
    field: str
    message: str

    def as_dict(self):
        return {'row': self.index, 'status': 'error', 'kind': 'parse_error', 'field': self.field, 'message': self.message}


def parse_row(row, index=0) -> Union[ParsedRow, ParseError]:
    if not isinstance(row, dict):
        return ParseError(index, '', 'Row must be an object.')

    unexpected = sorted(set(row) - set(REQUIRED_KEYS) - set(OPTIONAL_KEYS))
    if unexpected:
        return ParseError(index, unexpected[0], f'Unexpected column {unexpected[0]!r}.')

    for key in REQUIRED_KEYS:
        if row.get(key) in (None, ''):
            return ParseError(index, key, f'{key} is required.')

    doc_type = TYPE_LABELS.get(str(row['type']).strip())
    if doc_type is None:
        return ParseError(index, 'type', f'Unknown document type {row["type"]!r}.')

    related_number = (str(row.get('related_number') or '').strip()) or None
    if doc_type != DocumentType.INVOICE and related_number is None:
        return ParseError(index, 'related_number', f'A {doc_type.label} row needs related_number.')

    try:
        issued_at = coerce_datetime(row['issued_at'], 'issued_at')
        paid_at = coerce_datetime(row.get('paid_at'), 'paid_at')
        month = validate_month(row['month']) if row.get('month') else None
        # Receipts and credit notes take their items from the invoice.
        items = normalize_items(row.get('items')) if doc_type == DocumentType.INVOICE else []
    except BillingValidationError as exc:
        return ParseError(index, exc.field or '', exc.message)

    due_days = row.get('due_days')
    if due_days not in (None, ''):
        try:
            due_days = int(due_days)
        except (TypeError, ValueError):
            return ParseError(index, 'due_days', f'due_days must be an integer, got {due_days!r}.')
    else:
        due_days = None

    return ParsedRow(
        index=index,
        number=str(row['number']).strip(),
        doc_type=doc_type,
        client_name=str(row['client_name']).strip(),
        issued_at=issued_at,
        month=month,
        items=items,
        related_number=related_number,
        paid_at=paid_at,
        due_days=due_days,
    )


def import_rows(rows, service, created_by=None):
    """Issue each row in order and return one result dict per row.

    Rows are independent: a failing row is reported and the rest continue.
    Invoices must come before the receipts and credit notes that reference
    them.
    """
    results = []
    for index, row in enumerate(rows):
        parsed = parse_row(row, index)
        if isinstance(parsed, ParseError):
            results.append(parsed.as_dict())
            continue

        related_id = None
        if parsed.related_number:
            related_id = Document.objects.filter(number=parsed.related_number).values_list('pk', flat=True).first()
            if related_id is None:
                results.append(ParseError(
                    index, 'related_number', f'No document numbered {parsed.related_number}.'
                ).as_dict())
                continue

        try:
            document = service.issue(
                parsed.doc_type,
                parsed.client_name,
                parsed.items,
                related_document_id=related_id,
                due_days=parsed.due_days,
                paid_at=parsed.paid_at,
                number=parsed.number,
                issued_at=parsed.issued_at,
                month=parsed.month,
                created_by=created_by,
            )
        except BillingError as exc:
            results.append({'row': index, 'status': 'error', **exc.as_dict()})
            continue

        results.append({'row': index, 'status': 'created', 'id': document.pk, 'number': document.number})
    return results
