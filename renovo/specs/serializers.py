from rest_framework import serializers
from .models import SpecItem, SpecComponent, ItemActivity


class SpecComponentSerializer(serializers.ModelSerializer):
    client_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = SpecComponent
        fields = ['id', 'name', 'model_number', 'price', 'client_price', 'quantity', 'image_url', 'order']


class ItemActivitySerializer(serializers.ModelSerializer):
    actor_username = serializers.CharField(source='actor.username', read_only=True)

    class Meta:
        model = ItemActivity
        fields = ['id', 'activity_type', 'title', 'description', 'actor', 'actor_username', 'metadata', 'created_at']


class SpecItemListSerializer(serializers.ModelSerializer):
    room_name = serializers.CharField(source='room.name', read_only=True)
    project_name = serializers.CharField(source='project.name', read_only=True)
    selling_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = SpecItem
        fields = [
            'id', 'project', 'project_name', 'room', 'room_name', 'section_name', 'name',
            'brand', 'supplier_name', 'quantity', 'unit_type', 'trade_price', 'rrp', 'currency',
            'selling_price', 'client_approved', 'spec_status', 'payment_status', 'image_url'
        ]


class SpecItemSerializer(serializers.ModelSerializer):
    room_name = serializers.CharField(source='room.name', read_only=True)
    supplier_display = serializers.SerializerMethodField()
    selling_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    rrp_total = serializers.SerializerMethodField()
    components = SpecComponentSerializer(many=True, read_only=True)
    is_invoice_eligible = serializers.SerializerMethodField()
    ineligibility_reason = serializers.SerializerMethodField()

    class Meta:
        model = SpecItem
        fields = [
            'id', 'project', 'room', 'room_name', 'section_name', 'name', 'description', 'brand',
            'model_number', 'supplier', 'supplier_name', 'supplier_display', 'supplier_link',
            'quantity', 'unit_type', 'trade_price', 'rrp', 'currency', 'markup_percent',
            'selling_price', 'rrp_total', 'lead_time', 'images', 'image_url', 'notes',
            'client_approved', 'client_approved_at', 'client_approved_via',
            'spec_status', 'payment_status', 'paid_amount', 'paid_at', 'order',
            'components', 'is_invoice_eligible', 'ineligibility_reason',
            'created_at', 'updated_at'
        ]
        read_only_fields = [
            'project', 'client_approved_at', 'payment_status', 'paid_amount', 'paid_at',
            'created_at', 'updated_at'
        ]

    def get_supplier_display(self, obj):
        return obj.supplier.name if obj.supplier else obj.supplier_name

    def get_rrp_total(self, obj):
        total = obj.get_rrp_total()
        return str(total) if total is not None else None

    def get_is_invoice_eligible(self, obj):
        return obj.is_invoice_eligible()

    def get_ineligibility_reason(self, obj):
        return obj.ineligibility_reason()

    def validate_name(self, value):
        if not value.strip():
            raise serializers.ValidationError('Item name is required')
        return value.strip()

    def validate_images(self, value):
        if not isinstance(value, list) or not all(isinstance(url, str) for url in value):
            raise serializers.ValidationError('Images must be a list of URLs')
        return value

    def validate(self, attrs):
        room = attrs.get('room')
        project = self.context.get('project') or getattr(self.instance, 'project', None)
        if room and project and room.project_id != project.id:
            raise serializers.ValidationError({'room': 'Room belongs to a different project'})
        for field in ('trade_price', 'rrp', 'markup_percent'):
            if attrs.get(field) is not None and attrs[field] < 0:
                raise serializers.ValidationError({field: 'Must not be negative'})
        return attrs

    def create(self, validated_data):
        components_data = self.context.get('components_data') or []
        item = SpecItem.objects.create(**validated_data)
        for index, component in enumerate(components_data):
            serializer = SpecComponentSerializer(data=component)
            serializer.is_valid(raise_exception=True)
            serializer.save(item=item, order=component.get('order', index))
        return item
