from rest_framework import serializers

from .models import Annotation, ContentGroup


class ContentGroupSerializer(serializers.ModelSerializer):
    site_url = serializers.CharField(source='site.site_url', read_only=True)

    class Meta:
        model = ContentGroup
        fields = [
            'id', 'name', 'site_url', 'conditions', 'matched_urls',
            'url_count', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class AnnotationSerializer(serializers.ModelSerializer):
    site_url = serializers.CharField(source='site.site_url', read_only=True)
    created_by = serializers.CharField(source='created_by.username', read_only=True, allow_null=True)

    class Meta:
        model = Annotation
        fields = [
            'id', 'site_url', 'date', 'title', 'description', 'scope',
            'urls', 'content_group', 'created_by', 'created_at', 'updated_at',
        ]
        read_only_fields = fields
