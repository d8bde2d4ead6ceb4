"""
Database cache for Search Console rows.

Rows are stored in GSCDataPoint so dashboards can read them without hitting
the API on every request. A background sync keeps them fresh; reads only
fall back to the API when cached data is missing or stale.
"""
import logging
from datetime import timedelta
from typing import Iterable, List, Optional, Tuple

from dateutil.relativedelta import relativedelta
from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import Max, Min
from django.utils import timezone

from sites.models import Site
from .models import GSCDataPoint
from .rows import PerformanceRow, parse_date

logger = logging.getLogger(__name__)

SAVE_BATCH_SIZE = 100
MAX_REPORTED_ERRORS = 5
RETENTION_MONTHS = 16  # Search Console keeps 16 months of data
AVG_BYTES_PER_ROW = 200


def _dimension_filter(dimensions: List[str]) -> Tuple[dict, dict]:
    """
    Build (filter, exclude) kwargs selecting rows stored for a dimension set.

    A requested dimension must be populated, an unrequested one must be ''.
    A ['page']-only request reads the ['date', 'page'] rows and aggregates them.
    """
    filters = {}
    excludes = {}

    if 'query' in dimensions:
        excludes['query'] = ''
    else:
        filters['query'] = ''

    if 'page' in dimensions:
        excludes['page'] = ''
    else:
        filters['page'] = ''

    if 'country' not in dimensions:
        filters['country'] = ''
    if 'device' not in dimensions:
        filters['device'] = ''

    return filters, excludes


def _aggregate_pages(points) -> List[PerformanceRow]:
    pages = {}
    for point in points:
        if not point.page:
            continue
        entry = pages.setdefault(point.page, {'clicks': 0, 'impressions': 0, 'position': 0.0, 'count': 0})
        entry['clicks'] += point.clicks
        entry['impressions'] += point.impressions
        entry['position'] += point.position
        entry['count'] += 1

    return [
        PerformanceRow(
            page=page,
            clicks=data['clicks'],
            impressions=data['impressions'],
            ctr=data['clicks'] / data['impressions'] if data['impressions'] > 0 else 0,
            position=data['position'] / data['count'] if data['count'] > 0 else 0,
        )
        for page, data in pages.items()
    ]


def get_cached_gsc_data(
    site_url: str,
    start_date,
    end_date,
    dimensions: List[str],
    force_refresh: bool = False,
    max_age_hours: Optional[int] = None,
) -> Optional[List[PerformanceRow]]:
    """
    Return cached rows for a date range and dimension set.

    Returns None when the caller should fetch from the API instead: forced
    refresh, unknown site, nothing cached, or the newest matching row was
    fetched more than max_age_hours ago.
    """
    if force_refresh:
        return None

    if max_age_hours is None:
        max_age_hours = settings.GSC_CACHE_MAX_AGE_HOURS

    site = Site.objects.filter(site_url=site_url).first()
    if not site:
        return None

    filters, excludes = _dimension_filter(dimensions)
    points = GSCDataPoint.objects.filter(
        site=site,
        date__gte=parse_date(start_date),
        date__lte=parse_date(end_date),
        **filters
    )
    for field, value in excludes.items():
        points = points.exclude(**{field: value})

    most_recent = points.aggregate(latest=Max('fetched_at'))['latest']
    if most_recent is None:
        return None

    age_hours = (timezone.now() - most_recent).total_seconds() / 3600
    if age_hours > max_age_hours:
        logger.info(f"GSC cache for {site_url} is stale ({age_hours:.1f} hours old)")
        return None

    points = list(points.order_by('date'))
    logger.info(f"GSC cache hit for {site_url}: {len(points)} rows ({age_hours:.1f} hours old)")

    if dimensions == ['page']:
        return _aggregate_pages(points)

    return [
        PerformanceRow(
            date=p.date,
            query=p.query,
            page=p.page,
            clicks=p.clicks,
            impressions=p.impressions,
            ctr=p.ctr,
            position=p.position,
        )
        for p in points
    ]


def save_gsc_data_to_cache(
    site_url: str,
    rows: Iterable[PerformanceRow],
    user=None,
    country: str = '',
    device: str = '',
) -> Tuple[bool, List[str]]:
    """
    Upsert rows into the cache.

    The site is created for `user` if it does not exist yet. Rows are
    written in batches; a failing row is skipped and reported.

    Returns:
        (success, errors) where success means at least one row was saved
        and errors holds the first few row failures
    """
    rows = [r for r in rows if r.date]
    if not rows:
        return True, []

    site = Site.objects.filter(site_url=site_url).first()
    if site is None:
        if user is None:
            return False, [f"Site not found: {site_url}"]
        site = Site.objects.create(site_url=site_url, user=user, display_name=site_url)

    site.last_synced_at = timezone.now()
    site.save(update_fields=['last_synced_at', 'updated_at'])

    errors: List[str] = []
    saved = 0
    failed = 0

    for start in range(0, len(rows), SAVE_BATCH_SIZE):
        batch = rows[start:start + SAVE_BATCH_SIZE]
        with transaction.atomic():
            for offset, row in enumerate(batch):
                try:
                    with transaction.atomic():
                        GSCDataPoint.objects.update_or_create(
                            site=site,
                            date=row.date,
                            query=row.query or '',
                            page=row.page or '',
                            country=country,
                            device=device,
                            defaults={
                                'clicks': row.clicks,
                                'impressions': row.impressions,
                                'ctr': row.ctr,
                                'position': row.position,
                            },
                        )
                    saved += 1
                except DatabaseError as e:
                    failed += 1
                    if len(errors) < MAX_REPORTED_ERRORS:
                        errors.append(f"Row {start + offset}: {e}")
                    logger.error(f"GSC cache insert error for row {start + offset}: {e}")

    logger.info(f"Saved {saved}/{len(rows)} rows to GSC cache for {site_url} ({failed} errors)")
    return saved > 0, errors


def get_cache_stats(site_url: str) -> Optional[dict]:
    """Summary of what is cached for a site, or None if nothing is."""
    site = Site.objects.filter(site_url=site_url).first()
    if not site:
        return None

    stats = GSCDataPoint.objects.filter(site=site).aggregate(
        first_date=Min('date'),
        last_date=Max('date'),
        last_updated=Max('fetched_at'),
    )
    total = GSCDataPoint.objects.filter(site=site).count()
    if total == 0:
        return None

    total_bytes = total * AVG_BYTES_PER_ROW
    if total_bytes > 1024 * 1024:
        size_estimate = f"{total_bytes / (1024 * 1024):.2f} MB"
    else:
        size_estimate = f"{total_bytes / 1024:.2f} KB"

    return {
        'total_data_points': total,
        'date_range': {
            'start': stats['first_date'].isoformat(),
            'end': stats['last_date'].isoformat(),
        },
        'last_updated': stats['last_updated'].isoformat(),
        'size_estimate': size_estimate,
    }


def clear_gsc_cache(site_url: str, start_date=None, end_date=None) -> int:
    """Delete cached rows for a site, optionally limited to a date range."""
    site = Site.objects.filter(site_url=site_url).first()
    if not site:
        return 0

    points = GSCDataPoint.objects.filter(site=site)
    if start_date:
        points = points.filter(date__gte=parse_date(start_date))
    if end_date:
        points = points.filter(date__lte=parse_date(end_date))

    deleted, _ = points.delete()
    logger.info(f"Cleared {deleted} GSC cache rows for {site_url}")
    return deleted


def cleanup_old_data(today=None) -> int:
    """Delete cached rows older than Search Console's retention window."""
    today = today or timezone.now().date()
    cutoff = today - relativedelta(months=RETENTION_MONTHS)

    deleted, _ = GSCDataPoint.objects.filter(date__lt=cutoff).delete()
    logger.info(f"Cleaned up {deleted} GSC cache rows older than {cutoff}")
    return deleted


def cache_window(days: int, today=None):
    """(start, end) dates for the last `days` days ending today."""
    end = today or timezone.now().date()
    return end - timedelta(days=days), end
