"""Billing error taxonomy and the DRF exception handler that renders it.

Every error carries a stable machine-readable ``kind`` plus a human message.
The handler renders them as ``{"error": {"kind": ..., "message": ...}}``.
Serializer and filter validation errors get the same envelope with their
field details; other DRF errors keep the default body.
"""

from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler


class BillingError(APIException):
    """Base class for errors raised by the billing core."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = 'billing_error'
    default_detail = 'Billing request failed.'

    def __init__(self, message=None):
        super().__init__(detail=message or self.default_detail, code=self.kind)
        self.message = str(self.detail)

    def as_dict(self):
        return {'kind': self.kind, 'message': self.message}


class BillingValidationError(BillingError):
    """Malformed input; rejected before any transaction begins."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = 'validation_error'
    default_detail = 'Invalid document request.'

    def __init__(self, message=None, field=None):
        super().__init__(message)
        self.field = field

    def as_dict(self):
        data = super().as_dict()
        if self.field:
            data['field'] = self.field
        return data


class LifecycleViolation(BillingError):
    """A settlement/cancellation guard rejected the request."""

    ALREADY_SETTLED = 'already_settled'
    ALREADY_CANCELLED = 'already_cancelled'
    NOT_AN_INVOICE = 'not_an_invoice'

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    kind = 'lifecycle_violation'
    default_detail = 'Document lifecycle rule violated.'

    def __init__(self, reason, message=None):
        super().__init__(message or reason.replace('_', ' '))
        self.reason = reason

    def as_dict(self):
        data = super().as_dict()
        data['reason'] = self.reason
        return data


class DuplicateNumber(BillingError):
    """The document number is already taken in the store."""

    status_code = status.HTTP_409_CONFLICT
    kind = 'duplicate_number'
    default_detail = 'Document number already exists.'

    def __init__(self, number, message=None):
        super().__init__(message or f'Document number {number} already exists.')
        self.number = number


class StoreUnavailable(BillingError):
    """The storage transaction could not start or commit. Safe to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    kind = 'store_unavailable'
    default_detail = 'Document store is unavailable, please retry.'


def billing_exception_handler(exc, context):
    if isinstance(exc, BillingError):
        return Response({'error': exc.as_dict()}, status=exc.status_code)

    response = exception_handler(exc, context)
    if response is not None and isinstance(exc, ValidationError):
        # Serializer and filter errors share the validation kind; field details are kept.
        response.data = {'error': {
            'kind': BillingValidationError.kind,
            'message': 'Invalid request.',
            'details': response.data,
        }}
    return response
