from django.contrib import admin
from .models import RFQ, RFQLineItem, SupplierRFQ, SupplierQuote, SupplierQuoteLineItem, Order, OrderItem, OrderActivity


class RFQLineItemInline(admin.TabularInline):
    model = RFQLineItem
    extra = 0


class SupplierRFQInline(admin.TabularInline):
    model = SupplierRFQ
    extra = 0
    readonly_fields = ['access_token', 'sent_at', 'viewed_at', 'responded_at']


@admin.register(RFQ)
class RFQAdmin(admin.ModelAdmin):
    list_display = ['rfq_number', 'title', 'project', 'status', 'response_deadline', 'sent_at']
    list_filter = ['status']
    search_fields = ['rfq_number', 'title', 'project__name']
    inlines = [RFQLineItemInline, SupplierRFQInline]
    readonly_fields = ['created_by', 'created_at', 'updated_at']


class SupplierQuoteLineItemInline(admin.TabularInline):
    model = SupplierQuoteLineItem
    extra = 0


@admin.register(SupplierQuote)
class SupplierQuoteAdmin(admin.ModelAdmin):
    list_display = ['quote_number', 'project', 'supplier', 'vendor_name', 'status', 'total_amount', 'submitted_at']
    list_filter = ['status', 'currency']
    search_fields = ['quote_number', 'vendor_name', 'supplier__name', 'project__name']
    inlines = [SupplierQuoteLineItemInline]


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0


class OrderActivityInline(admin.TabularInline):
    model = OrderActivity
    extra = 0
    readonly_fields = ['activity_type', 'message', 'user', 'created_at']
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'project', 'supplier', 'vendor_name', 'status', 'total_amount', 'currency', 'created_at']
    list_filter = ['status', 'currency', 'supplier_payment_method']
    search_fields = ['order_number', 'vendor_name', 'supplier__name', 'tracking_number']
    inlines = [OrderItemInline, OrderActivityInline]
    readonly_fields = ['created_by', 'updated_by', 'created_at', 'updated_at']
