from rest_framework import serializers
from .models import ClientQuote, ClientQuoteLineItem, ClientPayment, ClientQuoteActivity
from renovo.specs.models import SpecItem


class ClientQuoteLineItemSerializer(serializers.ModelSerializer):
    spec_item = serializers.PrimaryKeyRelatedField(queryset=SpecItem.objects.all(), required=False, allow_null=True)
    image_url = serializers.SerializerMethodField()

    class Meta:
        model = ClientQuoteLineItem
        fields = [
            'id', 'spec_item', 'display_name', 'display_description', 'category_name', 'room_name',
            'quantity', 'unit_type', 'currency', 'client_unit_price', 'client_total_price',
            'supplier_unit_price', 'markup_percent', 'is_component', 'order', 'image_url'
        ]
        read_only_fields = ['id', 'client_total_price']

    def get_image_url(self, obj):
        if obj.spec_item_id and not obj.is_component:
            return obj.spec_item.image_url
        return None

    def validate_display_name(self, value):
        if not value or not value.strip():
            raise serializers.ValidationError('Item name is required')
        return value.strip()

    def validate_quantity(self, value):
        if value < 1:
            raise serializers.ValidationError('Quantity must be at least 1')
        return value

    def validate_currency(self, value):
        value = (value or 'CAD').upper()
        if value not in ('CAD', 'USD'):
            raise serializers.ValidationError('Currency must be CAD or USD')
        return value


class CustomFeeSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)


class ClientPaymentSerializer(serializers.ModelSerializer):
    recorded_by_username = serializers.CharField(source='recorded_by.username', read_only=True)
    method_display = serializers.CharField(source='get_method_display', read_only=True)

    class Meta:
        model = ClientPayment
        fields = [
            'id', 'client_quote', 'amount', 'method', 'method_display', 'status', 'paid_at',
            'reference', 'notes', 'recorded_by', 'recorded_by_username', 'created_at'
        ]
        read_only_fields = ['id', 'client_quote', 'recorded_by', 'created_at']
        extra_kwargs = {'paid_at': {'required': False}}

    def validate_amount(self, value):
        if value is None or value <= 0:
            raise serializers.ValidationError('Payment amount must be greater than 0')
        return value


class ClientQuoteActivitySerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True)

    class Meta:
        model = ClientQuoteActivity
        fields = ['id', 'activity_type', 'description', 'user', 'username', 'metadata', 'created_at']
        read_only_fields = fields


class ClientQuoteListSerializer(serializers.ModelSerializer):
    """Invoice list row with the derived billing status"""
    invoice_number = serializers.CharField(source='quote_number', read_only=True)
    project_name = serializers.CharField(source='project.name', read_only=True)
    client_name = serializers.CharField(source='contact_name', read_only=True)
    client_email = serializers.CharField(source='contact_email', read_only=True)
    sent_by_username = serializers.CharField(source='sent_by.username', read_only=True)
    quote_status = serializers.CharField(source='status', read_only=True)
    status = serializers.SerializerMethodField()
    items_count = serializers.SerializerMethodField()
    paid_amount = serializers.SerializerMethodField()
    balance = serializers.SerializerMethodField()

    class Meta:
        model = ClientQuote
        fields = [
            'id', 'quote_number', 'invoice_number', 'project', 'project_name', 'title', 'client_name',
            'client_email', 'status', 'quote_status', 'items_count', 'subtotal', 'gst_amount', 'qst_amount',
            'total_amount', 'paid_amount', 'balance', 'valid_until', 'sent_to_client_at', 'sent_by_username',
            'email_opened_at', 'view_count', 'created_at', 'updated_at'
        ]

    def get_status(self, obj):
        return obj.get_billing_status()

    def get_items_count(self, obj):
        return obj.line_items.count()

    def get_paid_amount(self, obj):
        return str(obj.get_total_paid())

    def get_balance(self, obj):
        return str(obj.get_balance())


class ClientQuoteSerializer(serializers.ModelSerializer):
    project_name = serializers.CharField(source='project.name', read_only=True)
    contact_name = serializers.CharField(read_only=True)
    contact_email = serializers.CharField(read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True)
    sent_by_username = serializers.CharField(source='sent_by.username', read_only=True)
    billing_status = serializers.SerializerMethodField()
    total_paid = serializers.SerializerMethodField()
    balance = serializers.SerializerMethodField()
    custom_fees = CustomFeeSerializer(many=True, required=False)
    line_items = ClientQuoteLineItemSerializer(many=True, read_only=True)
    payments = ClientPaymentSerializer(many=True, read_only=True)
    activities = ClientQuoteActivitySerializer(many=True, read_only=True)

    class Meta:
        model = ClientQuote
        fields = [
            'id', 'quote_number', 'project', 'project_name', 'title', 'description', 'status', 'billing_status',
            'subtotal', 'cad_subtotal', 'usd_subtotal', 'delivery_fee', 'custom_fees', 'gst_rate', 'gst_amount',
            'qst_rate', 'qst_amount', 'total_amount', 'deposit_percent', 'deposit_amount', 'cc_surcharge_percent',
            'total_paid', 'balance', 'valid_until', 'payment_terms', 'client_name', 'client_email',
            'client_phone', 'client_address', 'contact_name', 'contact_email', 'access_token',
            'token_expires_at', 'sent_to_client_at', 'sent_by_username', 'email_opened_at', 'view_count',
            'client_decision', 'client_decided_at', 'client_message', 'line_items', 'payments', 'activities',
            'created_by', 'created_by_username', 'created_at', 'updated_at'
        ]
        read_only_fields = [
            'id', 'quote_number', 'project', 'status', 'subtotal', 'cad_subtotal', 'usd_subtotal',
            'gst_rate', 'gst_amount', 'qst_rate', 'qst_amount', 'total_amount', 'deposit_amount',
            'access_token', 'token_expires_at', 'sent_to_client_at', 'email_opened_at', 'view_count',
            'client_decision', 'client_decided_at', 'client_message', 'created_by', 'created_at', 'updated_at'
        ]

    def get_billing_status(self, obj):
        return obj.get_billing_status()

    def get_total_paid(self, obj):
        return str(obj.get_total_paid())

    def get_balance(self, obj):
        return str(obj.get_balance())

    def validate_title(self, value):
        if not value or not value.strip():
            raise serializers.ValidationError('Title is required')
        return value.strip()

    def validate_custom_fees(self, value):
        return [
            {'name': fee['name'], 'amount': str(fee['amount'])}
            for fee in value if fee.get('name') and fee.get('amount')
        ]


class ClientInvoiceCreateSerializer(serializers.Serializer):
    """
    Body of an invoice create request.

    Line items are either sent explicitly (``line_items``) or built from
    spec items (``item_ids``) the same way the invoice wizard builds them.
    """
    title = serializers.CharField(max_length=255, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    item_ids = serializers.ListField(child=serializers.IntegerField(), required=False)
    line_items = ClientQuoteLineItemSerializer(many=True, required=False)
    delivery_fee = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    custom_fees = CustomFeeSerializer(many=True, required=False)
    deposit_percent = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, allow_null=True)
    cc_surcharge_percent = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, allow_null=True)
    valid_until = serializers.DateField(required=False, allow_null=True)
    payment_terms = serializers.CharField(max_length=255, required=False, allow_blank=True)
    client_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    client_email = serializers.EmailField(required=False, allow_blank=True)
    client_phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    client_address = serializers.CharField(required=False, allow_blank=True)

    def validate_line_items(self, value):
        project = self.context.get('project')
        for line in value:
            spec_item = line.get('spec_item')
            if project is not None and spec_item is not None and spec_item.project_id != project.id:
                raise serializers.ValidationError(f'Item {spec_item.id} does not belong to this project')
        return value


class PortalInvoiceSerializer(serializers.ModelSerializer):
    """Client-facing invoice view; no internal prices or margins"""
    project_name = serializers.CharField(source='project.name', read_only=True)
    client_name = serializers.CharField(source='contact_name', read_only=True)
    billing_status = serializers.SerializerMethodField()
    total_paid = serializers.SerializerMethodField()
    balance = serializers.SerializerMethodField()
    line_items = serializers.SerializerMethodField()

    class Meta:
        model = ClientQuote
        fields = [
            'quote_number', 'project_name', 'title', 'description', 'client_name', 'billing_status',
            'subtotal', 'cad_subtotal', 'usd_subtotal', 'delivery_fee', 'custom_fees', 'gst_rate',
            'gst_amount', 'qst_rate', 'qst_amount', 'total_amount', 'deposit_percent', 'deposit_amount',
            'cc_surcharge_percent', 'total_paid', 'balance', 'valid_until', 'payment_terms', 'line_items',
            'sent_to_client_at'
        ]
        read_only_fields = fields

    def get_billing_status(self, obj):
        return obj.get_billing_status()

    def get_total_paid(self, obj):
        return str(obj.get_total_paid())

    def get_balance(self, obj):
        return str(obj.get_balance())

    def get_line_items(self, obj):
        return [
            {
                'display_name': line.display_name,
                'display_description': line.display_description,
                'category_name': line.category_name,
                'room_name': line.room_name,
                'quantity': line.quantity,
                'unit_type': line.unit_type,
                'currency': line.currency,
                'client_unit_price': str(line.client_unit_price),
                'client_total_price': str(line.client_total_price),
                'is_component': line.is_component,
            }
            for line in obj.line_items.all()
        ]
