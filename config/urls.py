"""
Root URL configuration.
"""
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/sites/', include('sites.urls')),
    path('api/v1/seo/', include('seo.urls')),
]
