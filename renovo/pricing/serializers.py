from decimal import Decimal
from rest_framework import serializers
from .models import CategoryMarkup


class CategoryMarkupSerializer(serializers.ModelSerializer):
    updated_by_username = serializers.CharField(source='updated_by.username', read_only=True)

    class Meta:
        model = CategoryMarkup
        fields = ['id', 'category_name', 'markup_percent', 'notes', 'updated_by', 'updated_by_username', 'created_at', 'updated_at']
        read_only_fields = ['updated_by', 'created_at', 'updated_at']

    def validate_markup_percent(self, value):
        if value < 0:
            raise serializers.ValidationError('Markup cannot be negative')
        return value


class PreviewLineItemSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, allow_blank=True)
    quantity = serializers.DecimalField(max_digits=10, decimal_places=3, min_value=Decimal('0'))
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    rrp = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    cost_price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    markup_percent = serializers.DecimalField(max_digits=6, decimal_places=2, required=False, allow_null=True)
    currency = serializers.ChoiceField(choices=['CAD', 'USD'], default='CAD')


class CustomFeeSerializer(serializers.Serializer):
    name = serializers.CharField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)


class PricingPreviewSerializer(serializers.Serializer):
    line_items = PreviewLineItemSerializer(many=True)
    delivery_fee = serializers.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    custom_fees = CustomFeeSerializer(many=True, required=False, default=list)
    deposit_percent = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, allow_null=True)
    gst_rate = serializers.DecimalField(max_digits=6, decimal_places=3, required=False)
    qst_rate = serializers.DecimalField(max_digits=6, decimal_places=3, required=False)
