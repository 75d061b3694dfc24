from rest_framework import serializers
from .models import Project, Room, ProjectDocument


class RoomSerializer(serializers.ModelSerializer):
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Room
        fields = ['id', 'project', 'name', 'room_type', 'order', 'item_count', 'created_at']
        read_only_fields = ['project', 'created_at']

    def get_item_count(self, obj):
        return obj.spec_items.count()


class ProjectSerializer(serializers.ModelSerializer):
    client_name = serializers.CharField(source='client.name', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True)

    class Meta:
        model = Project
        fields = [
            'id', 'name', 'client', 'client_name', 'project_type', 'status', 'address',
            'description', 'budget', 'start_date', 'due_date',
            'created_by', 'created_by_username', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def validate_name(self, value):
        if not value.strip():
            raise serializers.ValidationError('Project name is required')
        return value.strip()


class ProjectDetailSerializer(ProjectSerializer):
    rooms = RoomSerializer(many=True, read_only=True)

    class Meta(ProjectSerializer.Meta):
        fields = ProjectSerializer.Meta.fields + ['rooms']


class ProjectDocumentSerializer(serializers.ModelSerializer):
    url = serializers.SerializerMethodField()
    uploaded_by_username = serializers.CharField(source='uploaded_by.username', read_only=True)

    class Meta:
        model = ProjectDocument
        fields = [
            'id', 'project', 'file', 'url', 'name', 'document_type', 'content_type', 'size',
            'uploaded_by', 'uploaded_by_username', 'created_at'
        ]
        read_only_fields = ['content_type', 'size', 'uploaded_by', 'created_at']
        extra_kwargs = {'file': {'write_only': True}, 'name': {'required': False}}

    def get_url(self, obj):
        if not obj.file:
            return None
        request = self.context.get('request')
        return request.build_absolute_uri(obj.file.url) if request else obj.file.url
