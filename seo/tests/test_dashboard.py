"""
Test Group J: Dashboard time series

Tests the date+page sync and cache-first Search Analytics reads.
"""
import pytest
from datetime import date
from unittest.mock import Mock, patch
from django.contrib.auth import get_user_model
from django.test import TestCase
from seo.dashboard import get_search_analytics, sync_dashboard_data
from seo.models import GSCDataPoint
from seo.rows import PerformanceRow
from sites.models import Site

SITE_URL = 'https://example.com/'


def fake_time_series(site_url, start_date, end_date, dimensions, **kwargs):
    return [
        PerformanceRow(date=start_date, page='https://example.com/a', clicks=3, impressions=30, position=4.0),
        PerformanceRow(date=start_date, page='https://example.com/b', clicks=1, impressions=10, position=9.0),
    ]


class DashboardTestCase(TestCase):

    def setUp(self):
        self.user = get_user_model().objects.create_user(username='owner', password='pw')
        self.site = Site.objects.create(user=self.user, site_url=SITE_URL)


class TestSyncDashboardData(DashboardTestCase):

    @patch('seo.dashboard.query_search_analytics', side_effect=fake_time_series)
    def test_sync_stores_date_page_rows(self, mock_query):
        result = sync_dashboard_data(SITE_URL, days=13, today=date(2024, 5, 16))

        # Window ends two days before today
        assert result['date_range'] == {'start': '2024-05-01', 'end': '2024-05-14'}
        assert result['stats']['chunks'] == 2
        assert result['stats']['time_series_rows'] == 4
        assert mock_query.call_args_list[0].args[3] == ['date', 'page']

        points = GSCDataPoint.objects.filter(site=self.site)
        assert points.count() == 4
        assert set(points.values_list('query', flat=True)) == {''}

    @patch('seo.dashboard.query_search_analytics', side_effect=fake_time_series)
    def test_sync_replaces_window_only(self, mock_query):
        GSCDataPoint.objects.create(site=self.site, date=date(2024, 5, 3), page='https://example.com/gone', clicks=1)
        GSCDataPoint.objects.create(site=self.site, date=date(2024, 3, 1), page='https://example.com/old', clicks=1)
        GSCDataPoint.objects.create(site=self.site, date=date(2024, 5, 3), query='q', page='https://example.com/a')

        result = sync_dashboard_data(SITE_URL, days=6, today=date(2024, 5, 9))

        assert result['stats']['replaced_rows'] == 1
        pages = set(GSCDataPoint.objects.filter(query='').values_list('page', flat=True))
        assert 'https://example.com/gone' not in pages
        assert 'https://example.com/old' in pages
        assert GSCDataPoint.objects.filter(query='q').exists()

    def test_rejects_non_positive_days(self):
        with pytest.raises(ValueError):
            sync_dashboard_data(SITE_URL, days=0)


class TestGetSearchAnalytics(DashboardTestCase):

    @patch('seo.dashboard.query_search_analytics', side_effect=fake_time_series)
    def test_page_read_served_from_synced_rows(self, mock_query):
        sync_dashboard_data(SITE_URL, days=13, today=date(2024, 5, 16))
        calls = mock_query.call_count

        rows, from_cache = get_search_analytics(SITE_URL, '2024-05-01', '2024-05-14', ['page'])

        assert from_cache is True
        assert mock_query.call_count == calls
        by_page = {r.page: r for r in rows}
        assert by_page['https://example.com/a'].clicks == 6
        assert by_page['https://example.com/a'].impressions == 60
        assert by_page['https://example.com/a'].ctr == 0.1
        assert by_page['https://example.com/b'].position == 9.0

    @patch('seo.dashboard.query_search_analytics', side_effect=fake_time_series)
    def test_miss_fetches_and_caches(self, mock_query):
        rows, from_cache = get_search_analytics(SITE_URL, date(2024, 5, 1), date(2024, 5, 7), ['date', 'page'])

        assert from_cache is False
        assert len(rows) == 2
        assert GSCDataPoint.objects.filter(site=self.site).count() == 2

        rows, from_cache = get_search_analytics(SITE_URL, date(2024, 5, 1), date(2024, 5, 7), ['date', 'page'])
        assert from_cache is True
        assert mock_query.call_count == 1

    @patch('seo.dashboard.query_search_analytics', side_effect=fake_time_series)
    def test_content_group_uses_live_conditions(self, mock_query):
        group = Mock(conditions=[{'type': 'exclusion', 'operator': 'contains', 'value': '/b'}])

        rows, _ = get_search_analytics(SITE_URL, date(2024, 5, 1), date(2024, 5, 7), ['date', 'page'], group=group)

        assert [r.page for r in rows] == ['https://example.com/a']
