from django.contrib import admin
from .models import Client, Supplier


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ['name', 'company', 'email', 'phone', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name', 'company', 'email', 'phone']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'category', 'contact_name', 'email', 'phone', 'is_active']
    list_filter = ['is_active', 'category']
    search_fields = ['name', 'code', 'contact_name', 'email']
    readonly_fields = ['created_at', 'updated_at']
