"""Django admin configuration for document sequences."""

from django.contrib import admin

from .models import DocumentSequence


@admin.register(DocumentSequence)
class DocumentSequenceAdmin(admin.ModelAdmin):
    """Sequences are advanced by allocation only; admins can inspect them."""

    list_display = ('doc_type', 'prefix', 'last_number', 'updated_at')
    readonly_fields = ('doc_type', 'last_number', 'updated_at')

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
