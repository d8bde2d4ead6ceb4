"""
Django models for cannibalization analysis.
Stores analysis runs and the issues each run found.
"""
from django.db import models
from django.utils import timezone
from sites.models import Site


class AnalysisRun(models.Model):
    """
    Tracks a single cannibalization analysis run for a site.
    """
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('running', 'Running'),
        ('completed', 'Completed'),
        ('failed', 'Failed'),
    ]

    site = models.ForeignKey(
        Site,
        on_delete=models.CASCADE,
        related_name='cannibalization_runs'
    )

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default='pending'
    )

    # Run metadata
    started_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    # Analysis window
    date_start = models.DateField(null=True, blank=True)
    date_end = models.DateField(null=True, blank=True)

    # Results summary
    total_queries_analyzed = models.IntegerField(default=0)
    total_issues_found = models.IntegerField(default=0)

    # Impact counts
    high_count = models.IntegerField(default=0)
    medium_count = models.IntegerField(default=0)
    low_count = models.IntegerField(default=0)

    # Error tracking
    error_message = models.TextField(blank=True)

    class Meta:
        app_label = 'seo'
        db_table = 'cannibalization_analysis_runs'
        ordering = ['-started_at']
        indexes = [
            models.Index(fields=['site', '-started_at'], name='cannibaliza_site_id_2e9f41_idx'),
            models.Index(fields=['status'], name='cannibaliza_status_7a3c55_idx'),
        ]

    def __str__(self):
        return f"Analysis Run for {self.site.name} - {self.started_at.strftime('%Y-%m-%d %H:%M')}"

    def mark_completed(self):
        """Mark the run as completed."""
        self.status = 'completed'
        self.completed_at = timezone.now()
        self.save()

    def mark_failed(self, error_msg: str):
        """Mark the run as failed with error message."""
        self.status = 'failed'
        self.error_message = error_msg
        self.completed_at = timezone.now()
        self.save()


class CannibalizationIssue(models.Model):
    """
    A query for which two or more URLs of the site compete.
    """
    IMPACT_CHOICES = [
        ('high', 'High'),
        ('medium', 'Medium'),
        ('low', 'Low'),
    ]

    analysis_run = models.ForeignKey(
        AnalysisRun,
        on_delete=models.CASCADE,
        related_name='issues'
    )

    query = models.CharField(max_length=1000)
    impact = models.CharField(max_length=20, choices=IMPACT_CHOICES)

    url_count = models.IntegerField(default=0)
    total_clicks = models.IntegerField(default=0)
    total_impressions = models.IntegerField(default=0)
    avg_position = models.FloatField(
        default=0,
        help_text="Impression-weighted average position"
    )
    position_volatility = models.FloatField(
        default=0,
        help_text="Population standard deviation of daily positions"
    )
    urls_json = models.JSONField(
        default=list,
        help_text="Competing URLs with clicks, position history and click share"
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        app_label = 'seo'
        db_table = 'cannibalization_issues'
        ordering = ['id']
        indexes = [
            models.Index(fields=['analysis_run', 'impact'], name='cannibaliza_analysi_5d0b8e_idx'),
        ]

    def __str__(self):
        return f"{self.impact}: {self.query[:50]}"

    def as_dict(self) -> dict:
        return {
            'id': self.id,
            'query': self.query,
            'urls': self.urls_json,
            'total_clicks': self.total_clicks,
            'total_impressions': self.total_impressions,
            'avg_position': self.avg_position,
            'impact': self.impact,
            'position_volatility': self.position_volatility,
            'url_count': self.url_count,
        }
