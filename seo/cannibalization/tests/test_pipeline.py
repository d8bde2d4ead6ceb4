"""
Test Group B: Cannibalization pipeline

Search Console is mocked; runs and issues are checked in the database.
"""
import pytest
from datetime import date
from unittest.mock import patch
from django.contrib.auth import get_user_model
from django.test import TestCase
from integrations.gsc import GSCError
from seo.cannibalization.models import AnalysisRun, CannibalizationIssue
from seo.cannibalization.pipeline import get_analysis_results, get_latest_analysis, run_analysis
from seo.rows import PerformanceRow
from sites.models import Site

QUERY_PAGE_ROWS = [
    PerformanceRow(query='socks', page='/f', clicks=90, impressions=900, position=1.5),
    PerformanceRow(query='socks', page='/g', clicks=20, impressions=100, position=9.0),
    PerformanceRow(query='socks', page='/h', clicks=5, impressions=50, position=30.0),
    PerformanceRow(query='shoes', page='/a', clicks=80, impressions=1000, position=2.0),
    PerformanceRow(query='shoes', page='/b', clicks=30, impressions=500, position=5.0),
    PerformanceRow(query='boots', page='/c', clicks=50, impressions=300, position=3.0),
]

DAILY_ROWS = [
    PerformanceRow(date=date(2024, 5, 1), query='shoes', page='/a', position=2.0),
    PerformanceRow(date=date(2024, 5, 2), query='shoes', page='/a', position=4.0),
]


def fake_gsc_data(site, start_date, end_date, dimensions, access_token=None):
    return DAILY_ROWS if 'date' in dimensions else QUERY_PAGE_ROWS


class PipelineTestCase(TestCase):

    def setUp(self):
        self.user = get_user_model().objects.create_user(username='owner', password='pw')
        self.site = Site.objects.create(user=self.user, site_url='https://example.com/')


class TestRunAnalysis(PipelineTestCase):

    @patch('seo.cannibalization.pipeline.get_gsc_data', side_effect=fake_gsc_data)
    def test_run_saves_issues(self, mock_gsc):
        run = run_analysis(self.site.id, date(2024, 5, 1), date(2024, 5, 28))

        assert run.status == 'completed'
        assert run.completed_at is not None
        assert run.total_queries_analyzed == 3
        assert run.total_issues_found == 2
        assert (run.high_count, run.medium_count, run.low_count) == (1, 0, 1)

        issues = list(CannibalizationIssue.objects.filter(analysis_run=run))
        assert [i.query for i in issues] == ['socks', 'shoes']
        assert issues[1].impact == 'low'
        assert issues[1].urls_json[0]['position_history'] == [2.0, 4.0]

        dimensions = [c.args[3] for c in mock_gsc.call_args_list]
        assert dimensions == [['query', 'page'], ['date', 'query', 'page']]

    @patch('seo.cannibalization.pipeline.get_gsc_data', side_effect=fake_gsc_data)
    def test_default_window_is_28_days(self, mock_gsc):
        run = run_analysis(self.site.id, end_date=date(2024, 5, 29))
        assert run.date_start == date(2024, 5, 1)
        assert run.date_end == date(2024, 5, 29)

    @patch('seo.cannibalization.pipeline.get_gsc_data', side_effect=GSCError('forbidden', status=403))
    def test_failure_marks_run_failed(self, mock_gsc):
        with pytest.raises(GSCError):
            run_analysis(self.site.id, date(2024, 5, 1), date(2024, 5, 28))

        run = AnalysisRun.objects.get(site=self.site)
        assert run.status == 'failed'
        assert run.error_message == 'forbidden'
        assert get_latest_analysis(self.site.id) is None

    def test_unknown_site(self):
        with pytest.raises(ValueError):
            run_analysis(9999)


class TestResults(PipelineTestCase):

    @patch('seo.cannibalization.pipeline.get_gsc_data', side_effect=fake_gsc_data)
    def test_results_format(self, mock_gsc):
        run = run_analysis(self.site.id, date(2024, 5, 1), date(2024, 5, 28))

        assert get_latest_analysis(self.site.id) == run

        results = get_analysis_results(run.id)
        assert results['analysis_run'] == run
        assert [i['query'] for i in results['issues']] == ['socks', 'shoes']
        assert results['summary'] == {
            'total_queries': 3,
            'total_issues': 2,
            'impact': {'high': 1, 'medium': 0, 'low': 1},
            'date_range': {'start': '2024-05-01', 'end': '2024-05-28'},
        }

    def test_missing_run(self):
        assert get_analysis_results(12345) is None
