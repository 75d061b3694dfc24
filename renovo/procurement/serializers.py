from decimal import Decimal
from rest_framework import serializers
from .models import (
    RFQ, RFQLineItem, SupplierRFQ, SupplierQuote, SupplierQuoteLineItem,
    Order, OrderItem, OrderActivity,
)
from renovo.parties.models import Supplier
from renovo.specs.models import SpecItem


class RFQLineItemSerializer(serializers.ModelSerializer):
    item_name = serializers.CharField(max_length=255, required=False, allow_blank=True)

    class Meta:
        model = RFQLineItem
        fields = ['id', 'spec_item', 'item_name', 'description', 'quantity', 'unit_type', 'notes', 'order']

    def validate(self, attrs):
        spec_item = attrs.get('spec_item')
        if not attrs.get('item_name'):
            if not spec_item:
                raise serializers.ValidationError({'item_name': 'Item name is required'})
            attrs['item_name'] = spec_item.name
        if spec_item:
            attrs.setdefault('description', spec_item.description)
            attrs.setdefault('quantity', spec_item.quantity)
            attrs.setdefault('unit_type', spec_item.unit_type)
        return attrs


class SupplierRFQSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source='display_name', read_only=True)
    email = serializers.CharField(read_only=True)
    is_expired = serializers.BooleanField(read_only=True)

    class Meta:
        model = SupplierRFQ
        fields = [
            'id', 'supplier', 'supplier_name', 'vendor_name', 'vendor_email', 'email', 'access_token',
            'token_expires_at', 'is_expired', 'status', 'sent_at', 'viewed_at', 'responded_at',
            'decline_reason'
        ]
        read_only_fields = fields


class RFQListSerializer(serializers.ModelSerializer):
    line_item_count = serializers.SerializerMethodField()
    supplier_count = serializers.SerializerMethodField()
    responded_count = serializers.SerializerMethodField()

    class Meta:
        model = RFQ
        fields = [
            'id', 'rfq_number', 'project', 'title', 'status', 'response_deadline', 'sent_at',
            'line_item_count', 'supplier_count', 'responded_count', 'created_at'
        ]

    def get_line_item_count(self, obj):
        return obj.line_items.count()

    def get_supplier_count(self, obj):
        return obj.supplier_rfqs.count()

    def get_responded_count(self, obj):
        return obj.supplier_rfqs.filter(status__in=SupplierRFQ.RESPONDED_STATUSES).count()


class RFQSerializer(serializers.ModelSerializer):
    project_name = serializers.CharField(source='project.name', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True)
    line_items = RFQLineItemSerializer(many=True, read_only=True)
    supplier_rfqs = SupplierRFQSerializer(many=True, read_only=True)

    class Meta:
        model = RFQ
        fields = [
            'id', 'rfq_number', 'project', 'project_name', 'title', 'description', 'message',
            'status', 'response_deadline', 'sent_at', 'line_items', 'supplier_rfqs',
            'created_by', 'created_by_username', 'created_at', 'updated_at'
        ]
        read_only_fields = ['rfq_number', 'project', 'status', 'sent_at', 'created_by', 'created_at', 'updated_at']

    def validate_title(self, value):
        if not value.strip():
            raise serializers.ValidationError('Title is required')
        return value.strip()

    def create(self, validated_data):
        rfq = RFQ.objects.create(**validated_data)
        _create_rfq_lines(rfq, self.context.get('items_data') or [], self.context.get('project'))
        return rfq

    def update(self, instance, validated_data):
        items_data = self.context.get('items_data')
        instance = super().update(instance, validated_data)
        if items_data is not None:
            instance.line_items.all().delete()
            _create_rfq_lines(instance, items_data, self.context.get('project'))
        return instance


def _create_rfq_lines(rfq, items_data, project=None):
    for index, item_data in enumerate(items_data):
        serializer = RFQLineItemSerializer(data=item_data)
        serializer.is_valid(raise_exception=True)
        spec_item = serializer.validated_data.get('spec_item')
        if spec_item and project and spec_item.project_id != project.id:
            raise serializers.ValidationError({'items': f'Item {spec_item.id} belongs to a different project'})
        serializer.save(rfq=rfq, order=item_data.get('order', index))


class SupplierQuoteLineItemSerializer(serializers.ModelSerializer):
    spec_item_name = serializers.CharField(source='spec_item.name', read_only=True)

    class Meta:
        model = SupplierQuoteLineItem
        fields = [
            'id', 'rfq_line_item', 'spec_item', 'spec_item_name', 'item_name', 'unit_price', 'quantity',
            'total_price', 'lead_time', 'notes', 'is_accepted', 'accepted_at', 'accepted_by',
            'approved_markup_percent'
        ]
        read_only_fields = fields


class SupplierQuoteSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source='supplier_display_name', read_only=True)
    rfq_number = serializers.CharField(source='supplier_rfq.rfq.rfq_number', read_only=True)
    rfq = serializers.IntegerField(source='supplier_rfq.rfq_id', read_only=True)
    line_items = SupplierQuoteLineItemSerializer(many=True, read_only=True)

    class Meta:
        model = SupplierQuote
        fields = [
            'id', 'quote_number', 'project', 'rfq', 'rfq_number', 'supplier_rfq', 'supplier', 'supplier_name',
            'status', 'subtotal', 'shipping_cost', 'tax_amount', 'total_amount', 'currency',
            'valid_until', 'estimated_lead_time', 'deposit_percent', 'deposit_required',
            'payment_terms', 'shipping_terms', 'notes', 'submitted_at', 'reviewed_by', 'reviewed_at',
            'line_items', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class RFQVendorSerializer(serializers.Serializer):
    """One-off vendor an RFQ is emailed to"""
    name = serializers.CharField(required=False, allow_blank=True, max_length=200)
    email = serializers.EmailField()


class SupplierQuoteRequestSerializer(serializers.Serializer):
    """Body of rfq/supplier-quote/: spec items to send, one RFQ per supplier"""
    project = serializers.IntegerField()
    item_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    override_supplier = serializers.BooleanField(required=False, default=False)
    message = serializers.CharField(required=False, allow_blank=True, default='')
    response_deadline = serializers.DateField(required=False, allow_null=True, default=None)


class PortalQuoteLineSerializer(serializers.Serializer):
    rfq_line_item = serializers.IntegerField(required=False, allow_null=True)
    item_name = serializers.CharField(required=False, allow_blank=True, max_length=255)
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'))
    quantity = serializers.IntegerField(required=False, min_value=1)
    lead_time = serializers.CharField(required=False, allow_blank=True, max_length=100)
    notes = serializers.CharField(required=False, allow_blank=True)


class PortalQuoteSubmitSerializer(serializers.Serializer):
    """Quote submitted by a supplier through the portal link"""
    quote_number = serializers.CharField(required=False, allow_blank=True, max_length=100)
    valid_until = serializers.DateField(required=False, allow_null=True)
    estimated_lead_time = serializers.CharField(required=False, allow_blank=True, max_length=100)
    lead_time = serializers.CharField(required=False, allow_blank=True, max_length=100)
    payment_terms = serializers.CharField(required=False, allow_blank=True, max_length=255)
    shipping_terms = serializers.CharField(required=False, allow_blank=True, max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True, min_value=Decimal('0'))
    shipping_cost = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True, min_value=Decimal('0'))
    deposit_percent = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, allow_null=True, min_value=Decimal('0'), max_value=Decimal('100'))
    deposit_required = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True, min_value=Decimal('0'))
    line_items = PortalQuoteLineSerializer(many=True, required=False)

    def validate_line_items(self, value):
        if not value:
            raise serializers.ValidationError('Line items are required')
        return value

    def validate(self, attrs):
        if not attrs.get('line_items'):
            raise serializers.ValidationError({'line_items': ['Line items are required']})
        return attrs


class PortalRFQSerializer(serializers.ModelSerializer):
    """What a supplier sees behind the portal link"""
    supplier_name = serializers.CharField(source='display_name', read_only=True)
    is_expired = serializers.BooleanField(read_only=True)
    rfq = serializers.SerializerMethodField()
    line_items = serializers.SerializerMethodField()
    existing_quote = serializers.SerializerMethodField()

    class Meta:
        model = SupplierRFQ
        fields = ['supplier_name', 'status', 'token_expires_at', 'is_expired', 'rfq', 'line_items', 'existing_quote']

    def get_rfq(self, obj):
        rfq = obj.rfq
        return {
            'rfq_number': rfq.rfq_number,
            'title': rfq.title,
            'description': rfq.description,
            'message': rfq.message,
            'response_deadline': rfq.response_deadline,
            'project_name': rfq.project.name,
        }

    def get_line_items(self, obj):
        return [
            {
                'id': line.id,
                'item_name': line.item_name,
                'description': line.description,
                'quantity': line.quantity,
                'unit_type': line.unit_type,
                'notes': line.notes,
                'image_url': line.spec_item.image_url if line.spec_item else None,
                'brand': line.spec_item.brand if line.spec_item else '',
                'model_number': line.spec_item.model_number if line.spec_item else '',
            }
            for line in obj.rfq.line_items.select_related('spec_item')
        ]

    def get_existing_quote(self, obj):
        quote = obj.quotes.order_by('-submitted_at').first()
        return SupplierQuoteSerializer(quote).data if quote else None


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            'id', 'spec_item', 'supplier_quote_line', 'name', 'description', 'quantity',
            'unit_price', 'total_price', 'status', 'actual_delivery', 'notes'
        ]
        read_only_fields = fields


class OrderActivitySerializer(serializers.ModelSerializer):
    user_username = serializers.CharField(source='user.username', read_only=True)

    class Meta:
        model = OrderActivity
        fields = ['id', 'activity_type', 'message', 'user', 'user_username', 'metadata', 'created_at']


class OrderListSerializer(serializers.ModelSerializer):
    project_name = serializers.CharField(source='project.name', read_only=True)
    supplier_name = serializers.CharField(source='supplier_display_name', read_only=True)
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'project', 'project_name', 'supplier', 'supplier_name', 'status',
            'total_amount', 'currency', 'item_count', 'expected_delivery', 'tracking_number',
            'supplier_paid_at', 'created_at'
        ]

    def get_item_count(self, obj):
        return obj.items.count()


class OrderSerializer(serializers.ModelSerializer):
    project_name = serializers.CharField(source='project.name', read_only=True)
    supplier_name = serializers.CharField(source='supplier_display_name', read_only=True)
    supplier_email = serializers.CharField(read_only=True)
    client_invoice_number = serializers.CharField(source='client_invoice.quote_number', read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    activities = OrderActivitySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'project', 'project_name', 'supplier', 'supplier_name', 'supplier_email',
            'vendor_name', 'vendor_email', 'client_invoice', 'client_invoice_number', 'status',
            'subtotal', 'tax_amount', 'shipping_cost', 'extra_charges', 'total_amount', 'currency',
            'deposit_percent', 'deposit_required', 'balance_due',
            'ordered_at', 'confirmed_at', 'expected_delivery', 'actual_ship_date', 'actual_delivery',
            'tracking_number', 'tracking_url', 'shipping_carrier', 'shipping_address',
            'supplier_paid_at', 'supplier_payment_method', 'supplier_payment_amount',
            'supplier_payment_reference', 'supplier_payment_notes',
            'notes', 'internal_notes', 'items', 'activities',
            'created_by', 'updated_by', 'created_at', 'updated_at'
        ]
        read_only_fields = [
            'order_number', 'project', 'supplier', 'client_invoice', 'subtotal', 'tax_amount',
            'shipping_cost', 'extra_charges', 'total_amount', 'currency', 'deposit_percent',
            'deposit_required', 'balance_due', 'ordered_at', 'confirmed_at',
            'created_by', 'updated_by', 'created_at', 'updated_at'
        ]


class ManualOrderItemSerializer(serializers.Serializer):
    spec_item = serializers.PrimaryKeyRelatedField(queryset=SpecItem.objects.all(), required=False, allow_null=True)
    name = serializers.CharField(required=False, allow_blank=True, max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    quantity = serializers.IntegerField(min_value=1, default=1)
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'))

    def validate(self, attrs):
        if not attrs.get('name') and not attrs.get('spec_item'):
            raise serializers.ValidationError({'name': 'Item name is required'})
        return attrs


class ExtraChargeSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=255)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)


class ManualOrderSerializer(serializers.Serializer):
    """Purchase order entered by hand"""
    supplier = serializers.PrimaryKeyRelatedField(queryset=Supplier.objects.all(), required=False, allow_null=True)
    vendor_name = serializers.CharField(required=False, allow_blank=True, max_length=200)
    vendor_email = serializers.EmailField(required=False, allow_blank=True)
    items = ManualOrderItemSerializer(many=True)
    shipping_cost = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True, min_value=Decimal('0'))
    tax_amount = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True, min_value=Decimal('0'))
    extra_charges = ExtraChargeSerializer(many=True, required=False)
    deposit_percent = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, allow_null=True, min_value=Decimal('0'), max_value=Decimal('100'))
    deposit_required = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True, min_value=Decimal('0'))
    currency = serializers.ChoiceField(choices=['CAD', 'USD'], default='CAD')
    expected_delivery = serializers.DateField(required=False, allow_null=True)
    shipping_address = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    already_ordered = serializers.BooleanField(default=False)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError('At least one item is required')
        return value

    def validate(self, attrs):
        if not attrs.get('supplier') and not (attrs.get('vendor_name') or '').strip():
            raise serializers.ValidationError({'vendor_name': 'Vendor name is required'})
        project = self.context.get('project')
        if project:
            foreign = [
                line['spec_item'].id for line in attrs['items']
                if line.get('spec_item') and line['spec_item'].project_id != project.id
            ]
            if foreign:
                raise serializers.ValidationError({'items': f'Items not in this project: {foreign}'})
        return attrs
