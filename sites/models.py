"""
Search Console properties tracked by the dashboard.
"""
from django.conf import settings
from django.db import models


class Site(models.Model):
    """
    A Search Console property owned by a user.

    site_url is the property identifier exactly as Search Console knows it,
    e.g. 'https://example.com/' or 'sc-domain:example.com'.
    """
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='sites'
    )
    site_url = models.CharField(max_length=500, unique=True)
    display_name = models.CharField(max_length=255, blank=True)
    last_synced_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'sites'
        ordering = ['-created_at']

    def __str__(self):
        return self.display_name or self.site_url

    @property
    def name(self):
        return self.display_name or self.site_url
