"""
Search performance models.
Includes cached Search Console rows, query counting aggregates, content groups
and chart annotations.
"""
from django.conf import settings
from django.db import models
from sites.models import Site


class GSCDataPoint(models.Model):
    """
    One cached Search Console row.

    Dimensions that were not requested are stored as '' so a single table
    holds every dimension combination, e.g.:
        ['date', 'page']          → query=''
        ['date', 'query']         → page=''
        ['date', 'query', 'page'] → both set
    """
    site = models.ForeignKey(
        Site,
        on_delete=models.CASCADE,
        related_name='gsc_data'
    )
    date = models.DateField()
    query = models.CharField(max_length=1000, blank=True, default='')
    page = models.CharField(max_length=2000, blank=True, default='')
    country = models.CharField(max_length=10, blank=True, default='')
    device = models.CharField(max_length=20, blank=True, default='')

    clicks = models.IntegerField(default=0)
    impressions = models.IntegerField(default=0)
    ctr = models.FloatField(default=0)
    position = models.FloatField(default=0)

    fetched_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'gsc_data_points'
        ordering = ['date']
        constraints = [
            models.UniqueConstraint(
                fields=['site', 'date', 'query', 'page', 'country', 'device'],
                name='unique_gsc_data_point',
            ),
        ]
        indexes = [
            models.Index(fields=['site', 'date'], name='gsc_data_po_site_id_4b1a0e_idx'),
            models.Index(fields=['site', 'fetched_at'], name='gsc_data_po_site_id_8c2d7f_idx'),
        ]

    def __str__(self):
        return f"{self.site.site_url} {self.date} {self.query or '-'} {self.page or '-'}"


class QueryCountingAggregate(models.Model):
    """
    Pre-aggregated daily position distribution for a site.
    Rebuilt by the query counting sync.
    """
    site = models.ForeignKey(
        Site,
        on_delete=models.CASCADE,
        related_name='query_counting_aggregates'
    )
    date = models.DateField()
    position1to3 = models.IntegerField(default=0)
    position4to10 = models.IntegerField(default=0)
    position11to20 = models.IntegerField(default=0)
    position21plus = models.IntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'query_counting_aggregates'
        ordering = ['date']
        unique_together = [['site', 'date']]

    def __str__(self):
        return f"{self.site.site_url} {self.date}"

    def as_record(self) -> dict:
        return {
            'date': self.date.isoformat(),
            'position1to3': self.position1to3,
            'position4to10': self.position4to10,
            'position11to20': self.position11to20,
            'position21plus': self.position21plus,
        }


class ContentGroup(models.Model):
    """
    A named set of site URLs defined by inclusion/exclusion conditions.
    matched_urls is the snapshot taken when the group was last saved.
    """
    site = models.ForeignKey(
        Site,
        on_delete=models.CASCADE,
        related_name='content_groups'
    )
    name = models.CharField(max_length=255)
    conditions = models.JSONField(
        default=list,
        help_text="List of {type, operator, value} conditions"
    )
    matched_urls = models.JSONField(
        default=list,
        help_text="URLs that matched the conditions at last save"
    )
    url_count = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'content_groups'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} ({self.url_count} URLs)"


class Annotation(models.Model):
    """
    A dated note on the performance chart, e.g. a release or a Google update.

    scope decides which URLs the before/after impact is measured on:
        all            the whole property
        specific       the URLs in `urls`
        content_group  the saved URLs of `content_group`
    """
    SCOPE_CHOICES = [
        ('all', 'All pages'),
        ('specific', 'Specific URLs'),
        ('content_group', 'Content group'),
    ]

    site = models.ForeignKey(
        Site,
        on_delete=models.CASCADE,
        related_name='annotations'
    )
    date = models.DateField()
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    scope = models.CharField(max_length=20, choices=SCOPE_CHOICES, default='all')
    urls = models.JSONField(default=list, blank=True)
    content_group = models.ForeignKey(
        ContentGroup,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='annotations'
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='annotations'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'annotations'
        ordering = ['-date']
        indexes = [
            models.Index(fields=['site', 'date'], name='annotations_site_id_6f2c1d_idx'),
        ]

    def __str__(self):
        return f"{self.date} {self.title}"

    def scoped_urls(self):
        """URLs the impact is limited to, or None for the whole property."""
        if self.scope == 'specific':
            return list(self.urls or [])
        if self.scope == 'content_group':
            return list(self.content_group.matched_urls or []) if self.content_group else []
        return None


from .cannibalization.models import AnalysisRun, CannibalizationIssue  # noqa: E402,F401
