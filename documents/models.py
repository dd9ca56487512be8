"""Database models for issued documents and their line items."""

from django.conf import settings
from django.db import models
from django.utils import timezone

from clients.models import Client
from sequences.models import DocumentType

SETTLING_TYPES = (DocumentType.RECEIPT, DocumentType.CREDIT_NOTE)


class Document(models.Model):
    """An issued Invoice, Receipt or Credit Note.

    Documents are written once, together with their items, and never
    updated afterwards. ``related_document`` points a Receipt or Credit Note
    at the Invoice it settles or cancels. It is a plain column without a
    database constraint: deleting an Invoice leaves the reference dangling.
    """

    number = models.CharField(max_length=50, unique=True)
    doc_type = models.CharField(max_length=20, choices=DocumentType.choices)

    client = models.ForeignKey(Client, on_delete=models.SET_NULL, null=True, blank=True, related_name='documents')
    # Snapshot taken at issuance time.
    client_name = models.CharField(max_length=200)

    issued_at = models.DateTimeField(default=timezone.now)
    due_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    month = models.CharField(max_length=7)

    # Negative for a Receipt / Credit Note that references an Invoice.
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    discounts = models.DecimalField(max_digits=12, decimal_places=2)
    total = models.DecimalField(max_digits=12, decimal_places=2)

    related_document = models.ForeignKey(
        'self',
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        blank=True,
        related_name='settlements',
    )
    related_number = models.CharField(max_length=50, null=True, blank=True)

    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Document"
        verbose_name_plural = "Documents"
        ordering = ['-issued_at', '-id']
        indexes = [
            models.Index(fields=['doc_type', 'month'], name='document_type_month_idx'),
            models.Index(fields=['client_name'], name='document_client_name_idx'),
        ]
        constraints = [
            # At most one Receipt and at most one Credit Note per Invoice.
            models.UniqueConstraint(
                fields=['related_document', 'doc_type'],
                condition=models.Q(doc_type__in=['Receipt', 'CreditNote']),
                name='one_settlement_per_type_per_invoice',
            ),
        ]

    def __str__(self):
        return f"{self.doc_type} {self.number}"

    @property
    def is_invoice(self):
        return self.doc_type == DocumentType.INVOICE


class LineItem(models.Model):
    """One billed line; ``position`` keeps the order the items were entered in."""

    document = models.ForeignKey(Document, on_delete=models.CASCADE, related_name='items')
    position = models.PositiveIntegerField(default=0)
    description = models.CharField(max_length=200)
    month = models.CharField(max_length=7, null=True, blank=True)
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    unit_discount = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    class Meta:
        verbose_name = "Line Item"
        verbose_name_plural = "Line Items"
        ordering = ['position', 'id']
        constraints = [
            models.CheckConstraint(condition=models.Q(quantity__gte=1), name='line_item_quantity_gte_1'),
            models.CheckConstraint(condition=models.Q(unit_price__gte=0), name='line_item_unit_price_gte_0'),
            models.CheckConstraint(condition=models.Q(unit_discount__gte=0), name='line_item_unit_discount_gte_0'),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.description} ({self.document.number})"

    @property
    def line_total(self):
        return (self.unit_price - self.unit_discount) * self.quantity
