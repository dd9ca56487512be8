"""Per-type document number allocation.

``allocate`` is a single read-increment-write inside one transaction. The
``UPDATE ... SET last_number = last_number + 1`` takes the row's write lock
before the value is read back, so two concurrent callers for the same type
can never observe the same number. Different types use different rows and
never block each other.
"""

import logging

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import F
from django.utils import timezone

from core.exceptions import BillingValidationError, StoreUnavailable
from .models import DocumentSequence, DocumentType, TYPE_PREFIX

logger = logging.getLogger(__name__)


def parse_document_type(value):
    """Return the :class:`DocumentType` for ``value`` or raise a validation error."""
    try:
        return DocumentType(value)
    except ValueError:
        allowed = ', '.join(DocumentType.values)
        raise BillingValidationError(f'Unknown document type {value!r}; expected one of {allowed}.', field='type')


def format_number(doc_type, number):
    """Render an allocated integer with its display prefix, e.g. ``FC1001``."""
    return f"{TYPE_PREFIX[parse_document_type(doc_type)]}{int(number)}"


def _bump(doc_type):
    return DocumentSequence.objects.filter(doc_type=doc_type).update(
        last_number=F('last_number') + 1,
        updated_at=timezone.now(),
    )


def allocate(doc_type):
    """Allocate the next number for ``doc_type`` and return it as an int.

    Raises :class:`StoreUnavailable` when the transaction cannot start or
    commit; nothing is allocated in that case.
    """
    doc_type = parse_document_type(doc_type)
    try:
        with transaction.atomic():
            if not _bump(doc_type):
                # Row missing (fresh table); create it at the configured start.
                DocumentSequence.objects.get_or_create(
                    doc_type=doc_type,
                    defaults={'last_number': settings.BILLING_SEQUENCE_START},
                )
                _bump(doc_type)
            sequence = DocumentSequence.objects.select_for_update().get(doc_type=doc_type)
            number = sequence.last_number
    except DatabaseError as exc:
        logger.error("Sequence allocation for %s failed: %s", doc_type, exc)
        raise StoreUnavailable() from exc

    logger.debug("Allocated %s for %s", number, doc_type)
    return number


def next_number(doc_type):
    """Allocate and format in one step, e.g. ``'RC1002'``."""
    return format_number(doc_type, allocate(doc_type))
