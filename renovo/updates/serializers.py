from rest_framework import serializers
from .models import ProjectUpdate, UpdatePhoto, Task
from renovo.projects.models import Room


class UpdatePhotoSerializer(serializers.ModelSerializer):
    url = serializers.SerializerMethodField()
    uploaded_by_username = serializers.CharField(source='uploaded_by.username', read_only=True)
    room_name = serializers.CharField(source='room.name', read_only=True)

    class Meta:
        model = UpdatePhoto
        fields = [
            'id', 'update', 'image', 'url', 'width', 'height', 'size', 'caption', 'notes', 'tags',
            'room', 'room_name', 'room_area', 'trade_category', 'is_before_photo', 'is_after_photo',
            'before_after_pair', 'taken_at', 'uploaded_by', 'uploaded_by_username', 'created_at'
        ]
        read_only_fields = ['update', 'width', 'height', 'size', 'uploaded_by', 'created_at']
        extra_kwargs = {'image': {'write_only': True}, 'taken_at': {'required': False}}

    def get_url(self, obj):
        if not obj.image:
            return None
        request = self.context.get('request')
        return request.build_absolute_uri(obj.image.url) if request else obj.image.url

    def validate_tags(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('Tags must be a list')
        return [str(tag).strip() for tag in value if str(tag).strip()]

    def validate(self, attrs):
        if attrs.get('is_before_photo') and attrs.get('is_after_photo'):
            raise serializers.ValidationError('A photo cannot be both a before and an after photo')
        return attrs


class ProjectUpdateSerializer(serializers.ModelSerializer):
    author_username = serializers.CharField(source='author.username', read_only=True)
    room_name = serializers.CharField(source='room.name', read_only=True)
    photo_count = serializers.SerializerMethodField()

    class Meta:
        model = ProjectUpdate
        fields = [
            'id', 'project', 'update_type', 'category', 'status', 'priority', 'title', 'description',
            'room', 'room_name', 'location', 'due_date', 'estimated_cost', 'actual_cost', 'time_estimated',
            'metadata', 'author', 'author_username', 'photo_count', 'completed_at', 'created_at', 'updated_at'
        ]
        read_only_fields = ['project', 'author', 'completed_at', 'created_at', 'updated_at']

    def get_photo_count(self, obj):
        return obj.photos.count()

    def validate(self, attrs):
        room = attrs.get('room')
        project = self.context.get('project') or getattr(self.instance, 'project', None)
        if room is not None and project is not None and room.project_id != project.id:
            raise serializers.ValidationError({'room': 'Room does not belong to this project'})
        return attrs


class ProjectUpdateDetailSerializer(ProjectUpdateSerializer):
    photos = serializers.SerializerMethodField()

    class Meta(ProjectUpdateSerializer.Meta):
        fields = ProjectUpdateSerializer.Meta.fields + ['photos']

    def get_photos(self, obj):
        return UpdatePhotoSerializer(obj.photos.all(), many=True, context=self.context).data


class TaskSerializer(serializers.ModelSerializer):
    assignee_username = serializers.CharField(source='assignee.username', read_only=True)
    room_name = serializers.CharField(source='room.name', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True)
    dependency_ids = serializers.ListField(child=serializers.IntegerField(), required=False, write_only=True)
    dependencies = serializers.PrimaryKeyRelatedField(many=True, read_only=True)
    is_overdue = serializers.SerializerMethodField()

    class Meta:
        model = Task
        fields = [
            'id', 'project', 'update', 'room', 'room_name', 'title', 'description', 'status', 'priority',
            'assignee', 'assignee_username', 'trade_type', 'estimated_hours', 'actual_hours',
            'estimated_cost', 'actual_cost', 'materials', 'dependencies', 'dependency_ids', 'due_date',
            'position', 'is_overdue', 'started_at', 'completed_at', 'created_by', 'created_by_username',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['project', 'position', 'started_at', 'completed_at', 'created_by', 'created_at', 'updated_at']

    def get_is_overdue(self, obj):
        return obj.is_overdue()

    def validate_title(self, value):
        if not value or not value.strip():
            raise serializers.ValidationError('Task title is required')
        return value.strip()

    def validate(self, attrs):
        project = self.context.get('project') or getattr(self.instance, 'project', None)
        room = attrs.get('room')
        if room is not None and project is not None and room.project_id != project.id:
            raise serializers.ValidationError({'room': 'Room does not belong to this project'})
        update = attrs.get('update')
        if update is not None and project is not None and update.project_id != project.id:
            raise serializers.ValidationError({'update': 'Update does not belong to this project'})
        return attrs


class TaskMoveSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Task.STATUS_CHOICES)
    position = serializers.IntegerField(required=False, allow_null=True, min_value=0)


class SiteSurveySerializer(serializers.Serializer):
    """Form fields sent alongside the survey photos"""
    title = serializers.CharField(max_length=255, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    room = serializers.PrimaryKeyRelatedField(queryset=Room.objects.all(), required=False, allow_null=True)
    room_area = serializers.CharField(max_length=100, required=False, allow_blank=True)
    trade_category = serializers.CharField(max_length=100, required=False, allow_blank=True)
    is_before_photo = serializers.BooleanField(required=False, default=False)
    is_after_photo = serializers.BooleanField(required=False, default=False)
