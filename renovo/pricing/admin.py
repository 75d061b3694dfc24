from django.contrib import admin
from .models import CategoryMarkup


@admin.register(CategoryMarkup)
class CategoryMarkupAdmin(admin.ModelAdmin):
    list_display = ['category_name', 'markup_percent', 'updated_by', 'updated_at']
    search_fields = ['category_name', 'notes']
    ordering = ['category_name']
    readonly_fields = ['updated_by', 'created_at', 'updated_at']
