from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import User

if admin.site.is_registered(User):
    admin.site.unregister(User)


class BillingUserAdmin(UserAdmin):
    model = User
    list_display = ['username', 'email', 'role', 'is_staff', 'is_active']
    list_filter = UserAdmin.list_filter + ('role',)

    fieldsets = UserAdmin.fieldsets + (
        ('Billing role', {'fields': ('role',)}),
    )
    add_fieldsets = UserAdmin.add_fieldsets + (
        ('Billing role', {'fields': ('role',)}),
    )


admin.site.register(User, BillingUserAdmin)
