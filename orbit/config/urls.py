"""
URL configuration for the Orbit Institute backend.

All API routes live under /api/v1/; each app contributes its own urls module.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "Orbit Institute Admin Panel"
admin.site.site_title = "Orbit Institute Admin Portal"
admin.site.index_title = "Welcome to Orbit Institute Administration"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('orbit.core.urls')),
    path('api/v1/', include('orbit.academics.urls')),
    path('api/v1/', include('orbit.crm.urls')),
    path('api/v1/', include('orbit.hrm.urls')),
    path('api/v1/', include('orbit.expenses.urls')),
    path('api/v1/', include('orbit.reports.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
]
