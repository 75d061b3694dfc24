from django.contrib import admin
from .models import ClientQuote, ClientQuoteLineItem, ClientPayment, ClientQuoteActivity


class ClientQuoteLineItemInline(admin.TabularInline):
    model = ClientQuoteLineItem
    extra = 0


class ClientPaymentInline(admin.TabularInline):
    model = ClientPayment
    extra = 0
    readonly_fields = ['recorded_by', 'created_at']


class ClientQuoteActivityInline(admin.TabularInline):
    model = ClientQuoteActivity
    extra = 0
    readonly_fields = ['activity_type', 'description', 'user', 'created_at']
    can_delete = False


@admin.register(ClientQuote)
class ClientQuoteAdmin(admin.ModelAdmin):
    list_display = ['quote_number', 'title', 'project', 'status', 'total_amount', 'sent_to_client_at', 'created_at']
    list_filter = ['status']
    search_fields = ['quote_number', 'title', 'client_name', 'client_email', 'project__name']
    inlines = [ClientQuoteLineItemInline, ClientPaymentInline, ClientQuoteActivityInline]
    readonly_fields = ['access_token', 'email_opened_at', 'view_count', 'created_by', 'created_at', 'updated_at']


@admin.register(ClientPayment)
class ClientPaymentAdmin(admin.ModelAdmin):
    list_display = ['client_quote', 'amount', 'method', 'status', 'paid_at', 'recorded_by']
    list_filter = ['method', 'status']
    search_fields = ['client_quote__quote_number', 'reference']
