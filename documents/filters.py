"""Query-string filters for the document list."""

import django_filters

from sequences.models import DocumentType
from .models import Document


class DocumentFilter(django_filters.FilterSet):
    """``?client=`` matches part of the client name, ``?month=`` a YYYY or YYYY-MM prefix."""

    client = django_filters.CharFilter(field_name='client_name', lookup_expr='icontains')
    type = django_filters.ChoiceFilter(field_name='doc_type', choices=DocumentType.choices)
    month = django_filters.CharFilter(field_name='month', lookup_expr='startswith')

    class Meta:
        model = Document
        fields = ['client', 'type', 'month']
