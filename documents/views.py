"""Documents API views.

Issuing, listing (with derived invoice state), number reservation, admin
deletion and import, plus the pending and summary reports.
"""

from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from accounts.permissions import CanIssueDocuments, IsBillingAdmin
from core.pagination import StandardResultsSetPagination
from sequences.services import next_number
from .calculator import to_money
from .filters import DocumentFilter
from .imports import import_rows
from .lifecycle import (
    InvoiceState,
    billing_by_client,
    billing_by_month,
    billing_summary,
    derive_states,
    pending_invoices,
    pending_total,
)
from .models import Document
from .serializers import DocumentImportSerializer, DocumentIssueSerializer, DocumentSerializer
from .services import DocumentService, LoggingObserver


class DocumentViewSet(mixins.ListModelMixin,
                      mixins.RetrieveModelMixin,
                      mixins.DestroyModelMixin,
                      viewsets.GenericViewSet):
    """Document API endpoints.

    - Any authenticated user: list, retrieve, pending and summary reports.
    - Admins and operators: issue documents and reserve numbers.
    - Admins only: delete and import.
    """

    queryset = Document.objects.prefetch_related('items')
    serializer_class = DocumentSerializer
    pagination_class = StandardResultsSetPagination
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = DocumentFilter
    ordering_fields = ['issued_at', 'number', 'total']
    ordering = ['-issued_at', '-id']

    def get_permissions(self):
        if self.action in ('create', 'next_number'):
            return [CanIssueDocuments()]
        if self.action in ('destroy', 'import_documents'):
            return [IsBillingAdmin()]
        return [IsAuthenticated()]

    def get_service(self):
        return DocumentService(observers=[LoggingObserver()])

    def _serialize_with_states(self, documents, states=None):
        context = self.get_serializer_context()
        context['states'] = states if states is not None else derive_states(documents)
        return DocumentSerializer(documents, many=True, context=context).data

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(self._serialize_with_states(page))
        return Response(self._serialize_with_states(list(queryset)))

    def create(self, request, *args, **kwargs):
        serializer = DocumentIssueSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        document = self.get_service().issue(
            data['type'],
            data['client_id'] if data.get('client_id') is not None else data.get('client_name'),
            data.get('items'),
            related_document_id=data.get('related_document_id'),
            due_days=data.get('due_days'),
            paid_at=data.get('payment_date') or None,
            number=data.get('number'),
            month=data.get('month'),
            created_by=request.user,
        )
        output = DocumentSerializer(document, context=self.get_serializer_context())
        return Response({'document': output.data}, status=status.HTTP_201_CREATED)

    def perform_destroy(self, instance):
        self.get_service().delete(instance)

    @action(detail=False, methods=['get'], url_path='next-number')
    def next_number(self, request):
        """Reserve the next number for ``?type=`` and return it with its prefix."""
        return Response({'number': next_number(request.query_params.get('type'))})

    @action(detail=False, methods=['get'], url_path='pending')
    def pending(self, request):
        """Invoices with neither a receipt nor a credit note, and what they add up to."""
        client = (request.query_params.get('client') or '').strip()
        month = (request.query_params.get('month') or '').strip()
        queryset = pending_invoices(client=client or None, month=month or None).prefetch_related('items')
        documents = list(queryset.order_by('issued_at', 'id'))
        states = {d.pk: InvoiceState.PENDING for d in documents}
        return Response({
            'count': len(documents),
            'pending_total': str(to_money(pending_total(queryset))),
            'results': self._serialize_with_states(documents, states),
        })

    @action(detail=False, methods=['get'], url_path='summary')
    def summary(self, request):
        """Counts per type with billed, outstanding and collected totals,
        net billing per month and the client ranking."""
        data = billing_summary()
        for key in ('billed_total', 'outstanding_total', 'collected_total'):
            data[key] = str(to_money(data[key]))
        data['by_month'] = [
            {'month': row['month'], 'total': str(to_money(row['total'] or 0))}
            for row in billing_by_month()
        ]
        data['by_client'] = [
            {'client_name': row['client_name'], 'total': str(to_money(row['total'] or 0))}
            for row in billing_by_client()
        ]
        return Response(data)

    @action(detail=False, methods=['post'], url_path='import')
    def import_documents(self, request):
        """Admin-only: issue pre-numbered rows; one result per row."""
        serializer = DocumentImportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        results = import_rows(serializer.validated_data['rows'], self.get_service(), created_by=request.user)
        created = sum(1 for r in results if r['status'] == 'created')
        return Response({
            'created': created,
            'failed': len(results) - created,
            'results': results,
        })
