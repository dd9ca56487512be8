"""Database models for per-type document numbering."""

from django.db import models


class DocumentType(models.TextChoices):
    """The three accounting documents the service issues."""

    INVOICE = 'Invoice', 'Invoice'
    RECEIPT = 'Receipt', 'Receipt'
    CREDIT_NOTE = 'CreditNote', 'Credit Note'


# Display prefixes; the numeric run is independent per type.
TYPE_PREFIX = {
    DocumentType.INVOICE: 'FC',
    DocumentType.RECEIPT: 'RC',
    DocumentType.CREDIT_NOTE: 'NC',
}


class DocumentSequence(models.Model):
    """Last number handed out for one document type.

    ``last_number`` only ever grows. The next number is always
    ``last_number + 1`` and is written in the same transaction that reads it.
    """

    doc_type = models.CharField(max_length=20, choices=DocumentType.choices, unique=True)
    last_number = models.PositiveIntegerField(default=1000)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Document Sequence"
        verbose_name_plural = "Document Sequences"
        constraints = [
            models.CheckConstraint(condition=models.Q(last_number__gte=1000), name='sequence_last_number_gte_1000'),
        ]

    def __str__(self):
        return f"{self.doc_type}: {self.last_number}"

    @property
    def prefix(self):
        return TYPE_PREFIX[self.doc_type]
