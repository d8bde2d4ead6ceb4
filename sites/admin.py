from django.contrib import admin
from .models import Site


@admin.register(Site)
class SiteAdmin(admin.ModelAdmin):
    list_display = ('site_url', 'display_name', 'user', 'last_synced_at')
    search_fields = ('site_url', 'display_name')
