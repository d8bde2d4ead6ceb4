"""
Dashboard data: the date+page time series behind the performance chart.

The sync stores ['date', 'page'] rows in the GSC cache. Reads go through
get_search_analytics, which serves any dimension set from the cache when it
is fresh and falls back to Search Console otherwise. A ['page'] read is
answered by aggregating the cached date+page rows per page.
"""
import logging
from datetime import timedelta
from typing import List, Optional, Tuple

from django.db import transaction
from django.utils import timezone

from integrations.gsc import query_search_analytics, split_date_range
from sites.models import Site
from .content_groups import urls_in_group
from .gsc_cache import cache_window, get_cached_gsc_data, save_gsc_data_to_cache
from .models import GSCDataPoint
from .rows import PerformanceRow

logger = logging.getLogger(__name__)

TIME_SERIES_DIMENSIONS = ['date', 'page']
SYNC_DAYS = 90
CHUNK_SIZE_DAYS = 7
DATA_LAG_DAYS = 2  # Search Console data for the last two days is incomplete


def sync_dashboard_data(
    site_url: str,
    days: int = SYNC_DAYS,
    today=None,
    access_token: Optional[str] = None,
) -> dict:
    """
    Refresh the cached date+page rows for the last `days` days.

    Stored rows inside the window are replaced; rows outside it are kept.

    Raises:
        Site.DoesNotExist: the site is not registered
        ValueError: days is not positive
        GSCError: a chunk could not be fetched
    """
    if days < 1:
        raise ValueError("days must be at least 1")

    site = Site.objects.get(site_url=site_url)

    today = today or timezone.now().date()
    start_date, end_date = cache_window(days, today=today - timedelta(days=DATA_LAG_DAYS))
    chunks = split_date_range(start_date, end_date, CHUNK_SIZE_DAYS)

    rows: List[PerformanceRow] = []
    for chunk_start, chunk_end in chunks:
        rows.extend(query_search_analytics(
            site_url, chunk_start, chunk_end, TIME_SERIES_DIMENSIONS, access_token=access_token
        ))

    logger.info(f"Dashboard sync for {site_url}: {len(rows)} date-page rows in {len(chunks)} chunks")

    with transaction.atomic():
        deleted, _ = GSCDataPoint.objects.filter(
            site=site,
            query='',
            country='',
            device='',
            date__gte=start_date,
            date__lte=end_date,
        ).exclude(page='').delete()

        _, errors = save_gsc_data_to_cache(site_url, rows)

    if errors:
        logger.warning(f"Dashboard sync for {site_url} saved with errors: {errors}")

    return {
        'success': True,
        'site_url': site_url,
        'date_range': {'start': start_date.isoformat(), 'end': end_date.isoformat()},
        'stats': {
            'chunks': len(chunks),
            'time_series_rows': len(rows),
            'replaced_rows': deleted,
        },
        'errors': errors,
    }


def get_search_analytics(
    site_url: str,
    start_date,
    end_date,
    dimensions: List[str],
    force_refresh: bool = False,
    group=None,
    access_token: Optional[str] = None,
) -> Tuple[List[PerformanceRow], bool]:
    """
    Search Analytics rows for any dimension set, cache first.

    Rows fetched from the API are written back to the cache when they carry
    a date. With a content group, only rows whose page currently satisfies
    the group's conditions are returned.

    Returns:
        (rows, from_cache)
    """
    rows = get_cached_gsc_data(site_url, start_date, end_date, dimensions, force_refresh=force_refresh)
    from_cache = rows is not None

    if rows is None:
        rows = query_search_analytics(site_url, start_date, end_date, dimensions, access_token=access_token)
        if 'date' in dimensions:
            save_gsc_data_to_cache(site_url, rows)

    if group is not None:
        allowed = set(urls_in_group({row.page for row in rows if row.page}, group))
        rows = [row for row in rows if row.page in allowed]

    return rows, from_cache
