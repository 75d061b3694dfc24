"""
URL configuration for the renovo project.

Every app's API routes are mounted under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "Renovo Admin Panel"
admin.site.site_title = "Renovo Admin Portal"
admin.site.index_title = "Project procurement administration"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('renovo.core.urls')),
    path('api/v1/', include('renovo.parties.urls')),
    path('api/v1/', include('renovo.projects.urls')),
    path('api/v1/', include('renovo.specs.urls')),
    path('api/v1/', include('renovo.pricing.urls')),
    path('api/v1/', include('renovo.procurement.urls')),
    path('api/v1/', include('renovo.invoicing.urls')),
    path('api/v1/', include('renovo.updates.urls')),
    path('api/v1/', include('renovo.reports.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
