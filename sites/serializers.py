from rest_framework import serializers

from .models import Site


class SiteSerializer(serializers.ModelSerializer):
    class Meta:
        model = Site
        fields = ['id', 'site_url', 'display_name', 'last_synced_at', 'created_at', 'updated_at']
        read_only_fields = ['id', 'last_synced_at', 'created_at', 'updated_at']
