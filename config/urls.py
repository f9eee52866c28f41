"""
URL configuration for the Parsonage project.
"""

from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Parsonage Admin"
admin.site.site_title = "Parsonage Tools"
admin.site.index_title = "Tenants, Guest Rooms & Budget"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('parsonage.urls')),
]
