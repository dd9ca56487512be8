"""Django admin configuration for documents."""

from django.contrib import admin

from .lifecycle import derive_state
from .models import Document, LineItem


class LineItemInline(admin.TabularInline):
    """Read-only display of document line items."""

    model = LineItem
    extra = 0
    readonly_fields = ('position', 'description', 'month', 'quantity', 'unit_price', 'unit_discount')
    can_delete = False
    max_num = 0


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    """Documents are immutable once issued; the admin only inspects and deletes them."""

    list_display = ('number', 'doc_type', 'client_name', 'month', 'total', 'related_number', 'get_state', 'issued_at')
    list_filter = ('doc_type', 'month')
    search_fields = ('number', 'client_name', 'related_number')
    inlines = [LineItemInline]

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def get_state(self, obj):
        return derive_state(obj) or '-'
    get_state.short_description = 'State'
