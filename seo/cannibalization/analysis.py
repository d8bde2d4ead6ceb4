"""
Keyword cannibalization analysis.

Works on two Search Console row sets for the same window:
- rows: dimensions ['query', 'page'], aggregated over the window
- daily_rows: dimensions ['date', 'query', 'page'], used only to rebuild
  each URL's position history

A query is reported when two or more distinct URLs rank for it.
"""
import logging
import statistics
from collections import OrderedDict
from typing import Dict, Iterable, List, Tuple

from .constants import (
    HIGH_IMPACT_MIN_CLICKS,
    HIGH_IMPACT_MIN_URLS,
    IMPACT_LEVELS,
    IMPACT_RANK,
    MEDIUM_IMPACT_MAX_CLICKS,
    MEDIUM_IMPACT_MIN_CLICKS,
    MEDIUM_IMPACT_MIN_URLS,
    MIN_COMPETING_URLS,
)

logger = logging.getLogger(__name__)


def group_by_query(rows: Iterable) -> Dict[str, List[dict]]:
    """
    Group query+page rows by query, keeping first-seen query order.

    Returns:
        {query: [{'url', 'clicks', 'impressions', 'ctr', 'position'}, ...]}
    """
    groups: Dict[str, List[dict]] = OrderedDict()

    for row in rows:
        groups.setdefault(row.query, []).append({
            'url': row.page,
            'clicks': row.clicks or 0,
            'impressions': row.impressions or 0,
            'ctr': row.ctr or 0,
            'position': row.position or 0,
        })

    return groups


def build_position_history(daily_rows: Iterable) -> Dict[Tuple[str, str], List[float]]:
    """Daily positions per (query, url), in the order the rows were seen."""
    history: Dict[Tuple[str, str], List[float]] = {}

    for row in daily_rows:
        history.setdefault((row.query, row.page), []).append(row.position or 0)

    return history


def calculate_std_dev(values: List[float]) -> float:
    """Population standard deviation; 0 for an empty list."""
    if not values:
        return 0.0
    return statistics.pstdev(values)


def determine_impact(url_count: int, total_clicks: int) -> str:
    """
    Classify how much a cannibalized query matters.

    Two URLs splitting more than 100 clicks is neither high (needs 3 URLs)
    nor medium (capped at 100 clicks), so it falls through to low.
    """
    if url_count >= HIGH_IMPACT_MIN_URLS and total_clicks > HIGH_IMPACT_MIN_CLICKS:
        return 'high'
    if (
        url_count >= MEDIUM_IMPACT_MIN_URLS
        and MEDIUM_IMPACT_MIN_CLICKS <= total_clicks <= MEDIUM_IMPACT_MAX_CLICKS
    ):
        return 'medium'
    return 'low'


def _build_issue(query: str, urls: List[dict], history: Dict) -> dict:
    url_count = len({u['url'] for u in urls})

    total_clicks = sum(u['clicks'] for u in urls)
    total_impressions = sum(u['impressions'] for u in urls)
    weighted_position = sum(u['position'] * u['impressions'] for u in urls)
    avg_position = weighted_position / total_impressions if total_impressions > 0 else 0

    competing_urls = []
    all_positions = []

    for u in urls:
        position_history = history.get((query, u['url'])) or [u['position']]
        all_positions.extend(position_history)

        competing_urls.append({
            'url': u['url'],
            'clicks': u['clicks'],
            'impressions': u['impressions'],
            'ctr': u['ctr'],
            'position': u['position'],
            'position_history': list(position_history),
            'click_share': (u['clicks'] / total_clicks * 100) if total_clicks > 0 else 0,
        })

    competing_urls.sort(key=lambda u: u['clicks'], reverse=True)

    return {
        'query': query,
        'urls': competing_urls,
        'total_clicks': total_clicks,
        'total_impressions': total_impressions,
        'avg_position': avg_position,
        'impact': determine_impact(url_count, total_clicks),
        'position_volatility': calculate_std_dev(all_positions),
        'url_count': url_count,
    }


def analyze_cannibalization(rows: Iterable, daily_rows: Iterable = ()) -> List[dict]:
    """
    Find queries where several URLs of the site compete.

    Args:
        rows: PerformanceRow list with query and page, aggregated over the window
        daily_rows: PerformanceRow list with date, query and page

    Returns:
        Issues sorted by impact (high first), then by total clicks descending
    """
    groups = group_by_query(rows)
    history = build_position_history(daily_rows)

    issues = []
    for query, urls in groups.items():
        if len({u['url'] for u in urls}) < MIN_COMPETING_URLS:
            continue
        issues.append(_build_issue(query, urls, history))

    issues.sort(key=lambda i: (-IMPACT_RANK[i['impact']], -i['total_clicks']))

    logger.debug(
        "Cannibalization: %d queries grouped, %d issues found",
        len(groups), len(issues),
    )

    return issues


def summarize_issues(issues: List[dict]) -> dict:
    """Issue counts per impact level."""
    summary = {level: 0 for level in IMPACT_LEVELS}
    for issue in issues:
        summary[issue['impact']] += 1
    summary['total'] = len(issues)
    return summary
