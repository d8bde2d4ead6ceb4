"""
Content group services: condition validation, URL fetching and previews.
"""
import logging
from datetime import timedelta
from typing import Iterable, List, Optional

from django.utils import timezone

from integrations.gsc import query_search_analytics
from .conditions import ALL_CONDITIONS, ANY_INCLUSION, filter_urls
from .rows import CONDITION_OPERATORS, CONDITION_TYPES, PerformanceRow, parse_date

logger = logging.getLogger(__name__)

FETCH_DAYS = 180  # window used to collect every URL of the site
PREVIEW_DAYS = 28
PREVIEW_SAMPLE_SIZE = 10


class ValidationError(Exception):
    pass


def validate_conditions(conditions) -> None:
    """Check the shape of incoming conditions. Raises ValidationError."""
    if not isinstance(conditions, list):
        raise ValidationError("conditions must be a list")

    for i, condition in enumerate(conditions):
        if not isinstance(condition, dict):
            raise ValidationError(f"Condition {i} must be an object")

        if condition.get('type') not in CONDITION_TYPES:
            raise ValidationError(f"Condition {i}: type must be one of {', '.join(CONDITION_TYPES)}")

        operator = condition.get('operator')
        if operator not in CONDITION_OPERATORS:
            raise ValidationError(f"Condition {i}: operator must be one of {', '.join(CONDITION_OPERATORS)}")

        value = condition.get('value')
        if operator == 'batch':
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ValidationError(f"Condition {i}: batch value must be a list of strings")
        elif not isinstance(value, str) or not value:
            raise ValidationError(f"Condition {i}: value must be a non-empty string")


def _fetch_page_urls(site_url: str, start_date, end_date, access_token: Optional[str] = None) -> List[str]:
    rows = query_search_analytics(site_url, start_date, end_date, ['page'], access_token=access_token)
    return [row.page for row in rows if row.page]


def fetch_matching_urls(
    site_url: str,
    conditions: list,
    days: int = FETCH_DAYS,
    today=None,
    access_token: Optional[str] = None,
) -> List[str]:
    """
    Collect the site's URLs from Search Console and keep those matching
    every condition (normalized comparison).
    """
    end_date = today or timezone.now().date()
    start_date = end_date - timedelta(days=days)

    all_urls = _fetch_page_urls(site_url, start_date, end_date, access_token)
    matched = filter_urls(all_urls, conditions, strategy=ALL_CONDITIONS, normalized=True)

    logger.info(f"Content group match for {site_url}: {len(matched)}/{len(all_urls)} URLs")
    return matched


def preview_content_group(
    site_url: str,
    conditions: list,
    start_date=None,
    end_date=None,
    access_token: Optional[str] = None,
) -> dict:
    """
    Count how many URLs a condition set would match, without saving.

    The window defaults to the 28 days ending today.
    """
    end = parse_date(end_date) or timezone.now().date()
    start = parse_date(start_date) or end - timedelta(days=PREVIEW_DAYS)

    all_urls = _fetch_page_urls(site_url, start, end, access_token)
    matched = filter_urls(all_urls, conditions, strategy=ANY_INCLUSION)

    return {
        'count': len(matched),
        'sample_urls': matched[:PREVIEW_SAMPLE_SIZE],
        'total_urls': len(all_urls),
    }


def urls_in_group(urls: Iterable[str], group) -> List[str]:
    """Filter URLs against a stored group's conditions."""
    return filter_urls(urls, group.conditions or [], strategy=ANY_INCLUSION)


def filter_rows_by_group(rows: Iterable[PerformanceRow], group) -> List[PerformanceRow]:
    """Keep rows whose page is in the group's saved URL list."""
    matched = set(group.matched_urls or [])
    return [row for row in rows if row.page in matched]
