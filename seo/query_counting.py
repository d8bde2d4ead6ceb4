"""
Query counting: daily distribution of ranking queries over position buckets.

The sync pulls ['date', 'query', 'page'] rows from Search Console in weekly
chunks (each request is capped at 25k rows), stores them in the GSC cache
and rebuilds the site's QueryCountingAggregate rows. Reads only touch the
pre-aggregated table, memoized in-process for a few minutes.
"""
import logging
from datetime import timedelta
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from integrations.gsc import query_search_analytics, split_date_range
from sites.models import Site
from .gsc_cache import save_gsc_data_to_cache
from .models import GSCDataPoint, QueryCountingAggregate
from .positions import aggregate_positions, total_ranked
from .rows import PerformanceRow, parse_date
from .ttl_cache import TTLCache

logger = logging.getLogger(__name__)

SYNC_DIMENSIONS = ['date', 'query', 'page']
CHUNK_SIZE_DAYS = 7
MAX_DAYS = 90

_memory_cache = TTLCache(ttl=settings.QUERY_COUNTING_CACHE_TTL)


class QueryCountingError(Exception):
    pass


def get_memory_cache() -> TTLCache:
    return _memory_cache


def _replace_aggregates(site: Site, records: list) -> None:
    with transaction.atomic():
        QueryCountingAggregate.objects.filter(site=site).delete()
        QueryCountingAggregate.objects.bulk_create([
            QueryCountingAggregate(
                site=site,
                date=record['date'],
                position1to3=record['position1to3'],
                position4to10=record['position4to10'],
                position11to20=record['position11to20'],
                position21plus=record['position21plus'],
            )
            for record in records
        ])

    # Cached reads for this site are now out of date
    _memory_cache.clear()


def _summary(site_url: str, records: list, **extra) -> dict:
    return {
        'success': True,
        'site_url': site_url,
        'aggregated_days': len(records),
        'date_range': {
            'start': records[0]['date'].isoformat(),
            'end': records[-1]['date'].isoformat(),
        } if records else None,
        **extra,
    }


def sync_query_counting(
    site_url: str,
    days: int = MAX_DAYS,
    chunk_days: int = CHUNK_SIZE_DAYS,
    today=None,
    access_token: Optional[str] = None,
) -> dict:
    """
    Fetch the last `days` days from Search Console and rebuild aggregates.

    Raises:
        Site.DoesNotExist: the site is not registered
        GSCError: a chunk could not be fetched
        QueryCountingError: the window holds no days
    """
    site = Site.objects.get(site_url=site_url)

    end_date = today or timezone.now().date()
    start_date = end_date - timedelta(days=days)
    chunks = split_date_range(start_date, end_date, chunk_days)
    if not chunks:
        raise QueryCountingError(f"Nothing to sync: empty date range ({days} days)")

    logger.info(f"Query counting sync for {site_url}: {len(chunks)} chunks from {start_date} to {end_date}")

    all_rows = []
    for i, (chunk_start, chunk_end) in enumerate(chunks, start=1):
        rows = query_search_analytics(
            site_url,
            chunk_start,
            chunk_end,
            SYNC_DIMENSIONS,
            access_token=access_token,
        )
        all_rows.extend(rows)
        logger.info(f"Chunk {i}/{len(chunks)} {chunk_start}..{chunk_end}: {len(rows)} rows (total {len(all_rows)})")

    _, errors = save_gsc_data_to_cache(site_url, all_rows)
    if errors:
        logger.warning(f"Query counting sync for {site_url} saved with errors: {errors}")

    records = aggregate_positions(all_rows, has_page_dimension=True)
    _replace_aggregates(site, records)

    logger.info(f"Query counting sync for {site_url} done: {len(records)} days aggregated")
    return _summary(
        site_url,
        records,
        chunks=len(chunks),
        rows=len(all_rows),
        ranked_queries=sum(total_ranked(record) for record in records),
    )


def reaggregate_query_counting(site_url: str) -> dict:
    """
    Rebuild aggregates from rows already in the GSC cache. No API calls.

    Raises:
        Site.DoesNotExist: the site is not registered
        QueryCountingError: no query+page rows are cached for the site
    """
    site = Site.objects.get(site_url=site_url)

    points = (
        GSCDataPoint.objects
        .filter(site=site, country='', device='')
        .exclude(query='')
        .exclude(page='')
        .order_by('date')
    )
    rows = [
        PerformanceRow(date=p.date, query=p.query, page=p.page, position=p.position)
        for p in points
    ]
    if not rows:
        raise QueryCountingError("No data found. Run a full sync first.")

    records = aggregate_positions(rows, has_page_dimension=True)
    _replace_aggregates(site, records)

    logger.info(f"Re-aggregated {len(records)} days for {site_url}")
    return _summary(site_url, records)


def get_query_counting(site_url: str, start_date, end_date) -> dict:
    """
    Read pre-aggregated position data for a date range.

    Raises:
        Site.DoesNotExist: the site is not registered
    """
    cache_key = f"{site_url}:{start_date}:{end_date}"
    cached = _memory_cache.get(cache_key)
    if cached is not None:
        logger.debug(f"Query counting memory cache hit for {cache_key}")
        return {**cached, 'from_memory_cache': True}

    site = Site.objects.get(site_url=site_url)

    aggregates = list(
        QueryCountingAggregate.objects.filter(
            site=site,
            date__gte=parse_date(start_date),
            date__lte=parse_date(end_date),
        ).order_by('date')
    )

    if not aggregates:
        return {
            'position_data': [],
            'message': 'No data yet. Run a query counting sync first.',
            'cached': False,
        }

    data = {
        'position_data': [agg.as_record() for agg in aggregates],
        'cached': True,
        'last_updated': aggregates[-1].updated_at.isoformat(),
    }
    _memory_cache.purge_expired()
    _memory_cache.set(cache_key, data)
    return data
