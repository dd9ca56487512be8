"""Django admin configuration for clients."""

from django.contrib import admin

from .models import Client


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    """Admin configuration for the client registry."""

    list_display = ('code', 'name', 'email', 'phone', 'city')
    search_fields = ('code', 'name', 'email')
