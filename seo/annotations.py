"""
Annotation validation and before/after impact.

Impact compares Search Console metrics in a window before an annotation's
date with a window after it. Without an explicit range the windows are the
14 days before and the 14 days after the annotation day (the day itself is
in neither). With a range, the annotation splits it in two unless a compare
range is given, in which case compare is "before" and the range is "after".
"""
import logging
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from integrations.gsc import query_search_analytics
from .content_groups import ValidationError
from .rows import PerformanceRow, parse_date

logger = logging.getLogger(__name__)

SCOPES = ('all', 'specific', 'content_group')
DEFAULT_WINDOW_DAYS = 14
METRICS = ('clicks', 'impressions', 'ctr', 'position')

DateRange = Optional[Tuple[date, date]]


def validate_annotation(data: dict, partial: bool = False) -> None:
    """Check an incoming annotation payload. Raises ValidationError."""
    if not partial:
        missing = [f for f in ('date', 'title', 'scope') if not data.get(f)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    if 'date' in data and not parse_date(data.get('date')):
        raise ValidationError("date must be YYYY-MM-DD")

    scope = data.get('scope')
    if scope is None and partial:
        return
    if scope not in SCOPES:
        raise ValidationError(f"scope must be one of {', '.join(SCOPES)}")

    if scope == 'specific':
        urls = data.get('urls')
        if not isinstance(urls, list) or not urls or not all(isinstance(u, str) and u for u in urls):
            raise ValidationError("URLs required when scope is specific")

    if scope == 'content_group' and not data.get('content_group_id'):
        raise ValidationError("Content group ID required when scope is content_group")


def impact_windows(
    annotation_date: date,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    compare_start: Optional[date] = None,
    compare_end: Optional[date] = None,
) -> Dict[str, DateRange]:
    """
    Work out the before, after and chart ranges for an annotation.

    A window that would be empty is returned as None.
    """
    day = timedelta(days=1)

    if not (start_date and end_date):
        before = (annotation_date - DEFAULT_WINDOW_DAYS * day, annotation_date - day)
        after = (annotation_date + day, annotation_date + DEFAULT_WINDOW_DAYS * day)
        return {'before': before, 'after': after, 'chart': (before[0], after[1])}

    chart = (start_date, end_date)

    if compare_start and compare_end:
        return {'before': (compare_start, compare_end), 'after': chart, 'chart': chart}

    before_end = min(annotation_date - day, end_date)
    after_start = max(annotation_date, start_date)

    return {
        'before': (start_date, before_end) if before_end >= start_date else None,
        'after': (after_start, end_date) if after_start <= end_date else None,
        'chart': chart,
    }


def daily_series(rows: Iterable[PerformanceRow], urls: Optional[List[str]] = None) -> List[dict]:
    """
    One point per day, sorted by date.

    Without `urls` the rows are expected to be per date already. With `urls`
    the rows carry a page and are summed over the listed pages; ctr is then
    clicks/impressions and position is impression-weighted.
    """
    if urls is None:
        points = [
            {'date': row.date, 'clicks': row.clicks, 'impressions': row.impressions,
             'ctr': row.ctr, 'position': row.position}
            for row in rows if row.date
        ]
        return sorted(points, key=lambda p: p['date'])

    allowed = set(urls)
    by_date: Dict[date, dict] = {}
    for row in rows:
        if not row.date or row.page not in allowed:
            continue
        entry = by_date.setdefault(row.date, {'clicks': 0, 'impressions': 0, 'weighted_position': 0.0})
        entry['clicks'] += row.clicks
        entry['impressions'] += row.impressions
        entry['weighted_position'] += row.position * row.impressions

    return [
        {
            'date': day,
            'clicks': entry['clicks'],
            'impressions': entry['impressions'],
            'ctr': entry['clicks'] / entry['impressions'] if entry['impressions'] > 0 else 0,
            'position': entry['weighted_position'] / entry['impressions'] if entry['impressions'] > 0 else 0,
        }
        for day, entry in sorted(by_date.items())
    ]


def summarize_period(points: List[dict], window: DateRange) -> dict:
    """Summed clicks and impressions, mean daily ctr and position, over a window."""
    if window:
        points = [p for p in points if window[0] <= p['date'] <= window[1]]
    else:
        points = []

    count = len(points)
    return {
        'clicks': sum(p['clicks'] for p in points),
        'impressions': sum(p['impressions'] for p in points),
        'ctr': sum(p['ctr'] for p in points) / count if count else 0,
        'position': sum(p['position'] for p in points) / count if count else 0,
    }


def calculate_change(after: float, before: float) -> dict:
    """Absolute and percent change. A zero baseline reports 100% for any gain."""
    if before == 0:
        return {'absolute': after, 'percent': 100 if after > 0 else 0}
    absolute = after - before
    return {'absolute': absolute, 'percent': absolute / before * 100}


def annotation_impact(
    site_url: str,
    annotation_date,
    urls: Optional[List[str]] = None,
    start_date=None,
    end_date=None,
    compare_start=None,
    compare_end=None,
    access_token: Optional[str] = None,
) -> dict:
    """
    Before/after metrics around an annotation.

    All windows are covered by a single Search Console request spanning
    their union. `urls` limits the comparison to those pages.

    Raises:
        GSCError: Search Console request failed
    """
    annotation_date = parse_date(annotation_date)
    windows = impact_windows(
        annotation_date,
        parse_date(start_date),
        parse_date(end_date),
        parse_date(compare_start),
        parse_date(compare_end),
    )

    ranges = [w for w in windows.values() if w]
    fetch_start = min(r[0] for r in ranges)
    fetch_end = max(r[1] for r in ranges)

    dimensions = ['date'] if urls is None else ['date', 'page']
    rows = query_search_analytics(site_url, fetch_start, fetch_end, dimensions, access_token=access_token)
    points = daily_series(rows, urls)

    before = summarize_period(points, windows['before'])
    after = summarize_period(points, windows['after'])

    chart_start, chart_end = windows['chart']
    chart_data = [
        {**p, 'date': p['date'].isoformat()}
        for p in points if chart_start <= p['date'] <= chart_end
    ]

    logger.info(f"Annotation impact for {site_url} on {annotation_date}: {len(points)} days of data")

    return {
        'before': before,
        'after': after,
        'changes': {metric: calculate_change(after[metric], before[metric]) for metric in METRICS},
        'chart_data': chart_data,
        'windows': {
            name: {'start': w[0].isoformat(), 'end': w[1].isoformat()} if w else None
            for name, w in windows.items()
        },
    }
