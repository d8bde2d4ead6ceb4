"""
Cannibalization Analysis Pipeline

Runs the analysis for one site and window:
1. Fetch query+page rows aggregated over the window
2. Fetch date+query+page rows for position history
3. Group by query, score impact and volatility
4. Save the run and its issues

Main entry point: run_analysis(site_id, start_date, end_date)
"""
import logging
from datetime import timedelta
from typing import Optional

from django.db import transaction
from django.utils import timezone

from integrations.gsc import get_gsc_data
from sites.models import Site
from .analysis import analyze_cannibalization, summarize_issues
from .constants import DEFAULT_ANALYSIS_DAYS
from .models import AnalysisRun, CannibalizationIssue

logger = logging.getLogger(__name__)


def run_analysis(
    site_id: int,
    start_date=None,
    end_date=None,
    access_token: Optional[str] = None,
) -> AnalysisRun:
    """
    Run cannibalization analysis for a site.

    Args:
        site_id: Site ID to analyze
        start_date, end_date: analysis window (default: last 28 days)
        access_token: optional OAuth token for Search Console

    Returns:
        AnalysisRun object with all results
    """
    try:
        site = Site.objects.get(id=site_id)
    except Site.DoesNotExist:
        raise ValueError(f"Site with ID {site_id} not found")

    end_date = end_date or timezone.now().date()
    start_date = start_date or end_date - timedelta(days=DEFAULT_ANALYSIS_DAYS)

    analysis_run = AnalysisRun.objects.create(
        site=site,
        status='running',
        date_start=start_date,
        date_end=end_date,
    )

    try:
        rows = get_gsc_data(site, start_date, end_date, ['query', 'page'], access_token=access_token)
        daily_rows = get_gsc_data(site, start_date, end_date, ['date', 'query', 'page'], access_token=access_token)

        logger.info(
            f"Cannibalization for {site.site_url}: {len(rows)} query-page rows, "
            f"{len(daily_rows)} daily rows"
        )

        issues = analyze_cannibalization(rows, daily_rows)
        summary = summarize_issues(issues)

        with transaction.atomic():
            CannibalizationIssue.objects.bulk_create([
                CannibalizationIssue(
                    analysis_run=analysis_run,
                    query=issue['query'],
                    impact=issue['impact'],
                    url_count=issue['url_count'],
                    total_clicks=issue['total_clicks'],
                    total_impressions=issue['total_impressions'],
                    avg_position=issue['avg_position'],
                    position_volatility=issue['position_volatility'],
                    urls_json=issue['urls'],
                )
                for issue in issues
            ])

            analysis_run.total_queries_analyzed = len({row.query for row in rows})
            analysis_run.total_issues_found = summary['total']
            analysis_run.high_count = summary['high']
            analysis_run.medium_count = summary['medium']
            analysis_run.low_count = summary['low']
            analysis_run.mark_completed()

        logger.info(
            f"Cannibalization for {site.site_url}: {summary['total']} issues "
            f"(high={summary['high']}, medium={summary['medium']}, low={summary['low']})"
        )
        return analysis_run

    except Exception as e:
        logger.exception(f"Cannibalization analysis failed for {site.site_url}")
        analysis_run.mark_failed(str(e))
        raise


def get_latest_analysis(site_id: int):
    """Get the most recent completed analysis for a site."""
    return AnalysisRun.objects.filter(
        site_id=site_id,
        status='completed'
    ).order_by('-completed_at').first()


def get_analysis_results(analysis_run_id: int) -> Optional[dict]:
    """
    Get formatted results for an analysis run.

    Returns:
        {
            'analysis_run': AnalysisRun object,
            'issues': list of issue dicts in saved order,
            'summary': dict with counts,
        }
    """
    try:
        analysis_run = AnalysisRun.objects.get(id=analysis_run_id)
    except AnalysisRun.DoesNotExist:
        return None

    issues = [issue.as_dict() for issue in analysis_run.issues.order_by('id')]

    summary = {
        'total_queries': analysis_run.total_queries_analyzed,
        'total_issues': analysis_run.total_issues_found,
        'impact': {
            'high': analysis_run.high_count,
            'medium': analysis_run.medium_count,
            'low': analysis_run.low_count,
        },
        'date_range': {
            'start': analysis_run.date_start.isoformat() if analysis_run.date_start else None,
            'end': analysis_run.date_end.isoformat() if analysis_run.date_end else None,
        },
    }

    return {
        'analysis_run': analysis_run,
        'issues': issues,
        'summary': summary,
    }
