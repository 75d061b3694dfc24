from django.contrib import admin
from .models import SpecItem, SpecComponent, ItemActivity


class SpecComponentInline(admin.TabularInline):
    model = SpecComponent
    extra = 0


class ItemActivityInline(admin.TabularInline):
    model = ItemActivity
    extra = 0
    readonly_fields = ['activity_type', 'title', 'description', 'actor', 'created_at']
    can_delete = False


@admin.register(SpecItem)
class SpecItemAdmin(admin.ModelAdmin):
    list_display = ['name', 'project', 'room', 'section_name', 'quantity', 'trade_price', 'rrp', 'client_approved', 'spec_status', 'payment_status']
    list_filter = ['spec_status', 'payment_status', 'client_approved', 'currency']
    search_fields = ['name', 'brand', 'model_number', 'supplier_name', 'project__name']
    inlines = [SpecComponentInline, ItemActivityInline]
    readonly_fields = ['created_by', 'created_at', 'updated_at']
