"""DRF serializers for documents APIs."""

from decimal import Decimal

from rest_framework import serializers

from sequences.models import DocumentType
from .calculator import display_totals
from .lifecycle import derive_state
from .models import Document, LineItem
from .services import MONTH_RE


class LineItemSerializer(serializers.ModelSerializer):
    """Stored line item with its computed line total."""

    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = LineItem
        fields = ['position', 'description', 'month', 'quantity', 'unit_price', 'unit_discount', 'line_total']


class DocumentSerializer(serializers.ModelSerializer):
    """
    Issued document with items, stored (signed) totals, printed totals and,
    for invoices, the derived settlement state.
    """

    type = serializers.ReadOnlyField(source='doc_type')
    client_id = serializers.ReadOnlyField()
    related_document_id = serializers.ReadOnlyField()
    items = LineItemSerializer(many=True, read_only=True)
    display_totals = serializers.SerializerMethodField()
    state = serializers.SerializerMethodField()

    class Meta:
        model = Document
        fields = [
            'id',
            'number',
            'type',
            'client_id',
            'client_name',
            'issued_at',
            'due_at',
            'paid_at',
            'month',
            'subtotal',
            'discounts',
            'total',
            'display_totals',
            'related_document_id',
            'related_number',
            'state',
            'items',
            'created_at',
        ]
        read_only_fields = fields

    def get_display_totals(self, obj):
        totals = display_totals(obj.items.all())
        return {
            'subtotal': str(totals.subtotal),
            'discounts': str(totals.discounts),
            'total': str(totals.total),
        }

    def get_state(self, obj):
        # List endpoints pass states computed in bulk for the whole page.
        states = self.context.get('states')
        if states is not None and obj.pk in states:
            state = states[obj.pk]
        else:
            state = derive_state(obj)
        return str(state) if state is not None else None


class LineItemInputSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=200)
    month = serializers.RegexField(MONTH_RE, required=False, allow_null=True, allow_blank=True)
    quantity = serializers.IntegerField(min_value=1, default=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))
    unit_discount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'), default=Decimal('0'))


class DocumentIssueSerializer(serializers.Serializer):
    """Shape check for ``POST /api/documents/``; business rules live in the service."""

    type = serializers.ChoiceField(choices=DocumentType.choices)
    client_id = serializers.IntegerField(required=False)
    client_name = serializers.CharField(max_length=200, required=False)
    items = LineItemInputSerializer(many=True, required=False)
    related_document_id = serializers.IntegerField(required=False, allow_null=True)
    due_days = serializers.ChoiceField(choices=[5, 6, 7], required=False)
    payment_date = serializers.CharField(max_length=50, required=False, allow_blank=True)
    month = serializers.RegexField(MONTH_RE, required=False)
    number = serializers.CharField(max_length=50, required=False)

    def validate(self, attrs):
        if not attrs.get('client_id') and not attrs.get('client_name'):
            raise serializers.ValidationError({'client_name': 'Either client_id or client_name is required.'})
        return attrs


class DocumentImportSerializer(serializers.Serializer):
    rows = serializers.ListField(child=serializers.DictField(), allow_empty=False)
