from django.contrib import admin
from .models import ProjectUpdate, UpdatePhoto, Task


class UpdatePhotoInline(admin.TabularInline):
    model = UpdatePhoto
    extra = 0
    fields = ['image', 'caption', 'room', 'is_before_photo', 'is_after_photo', 'taken_at']


@admin.register(ProjectUpdate)
class ProjectUpdateAdmin(admin.ModelAdmin):
    list_display = ['__str__', 'project', 'update_type', 'category', 'status', 'priority', 'author', 'created_at']
    list_filter = ['update_type', 'category', 'status', 'priority']
    search_fields = ['title', 'description', 'project__name']
    inlines = [UpdatePhotoInline]
    readonly_fields = ['author', 'completed_at', 'created_at', 'updated_at']


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ['title', 'project', 'status', 'priority', 'assignee', 'due_date', 'position']
    list_filter = ['status', 'priority']
    search_fields = ['title', 'description', 'project__name', 'trade_type']
    filter_horizontal = ['dependencies']
    readonly_fields = ['started_at', 'completed_at', 'created_by', 'created_at', 'updated_at']
