from django.contrib import admin
from .models import Project, Room, ProjectDocument


class RoomInline(admin.TabularInline):
    model = Room
    extra = 0
    fields = ['name', 'room_type', 'order']


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ['name', 'client', 'project_type', 'status', 'budget', 'due_date', 'created_at']
    list_filter = ['status', 'project_type']
    search_fields = ['name', 'address', 'client__name']
    inlines = [RoomInline]
    readonly_fields = ['created_by', 'created_at', 'updated_at']


@admin.register(ProjectDocument)
class ProjectDocumentAdmin(admin.ModelAdmin):
    list_display = ['name', 'project', 'document_type', 'size', 'uploaded_by', 'created_at']
    list_filter = ['document_type']
    search_fields = ['name', 'project__name']
    readonly_fields = ['content_type', 'size', 'uploaded_by', 'created_at']
