"""
Test Group F: Content group services

Tests condition validation, URL fetching against Search Console (mocked)
and filtering of stored groups.
"""
import pytest
from datetime import date
from unittest.mock import Mock, patch
from django.test import SimpleTestCase
from seo.content_groups import (
    ValidationError,
    fetch_matching_urls,
    filter_rows_by_group,
    preview_content_group,
    urls_in_group,
    validate_conditions,
)
from seo.rows import PerformanceRow

SITE_URL = 'https://example.com/'

PAGES = [
    PerformanceRow(page='https://example.com/Blog/first/'),
    PerformanceRow(page='https://example.com/blog/second'),
    PerformanceRow(page='https://example.com/blog/tag/shoes'),
    PerformanceRow(page='https://example.com/shop/'),
    PerformanceRow(page=''),
]


class TestValidateConditions(SimpleTestCase):

    def test_valid(self):
        validate_conditions([])
        validate_conditions([
            {'type': 'inclusion', 'operator': 'contains', 'value': '/blog/'},
            {'type': 'exclusion', 'operator': 'batch', 'value': ['https://example.com/a']},
        ])

    def test_not_a_list(self):
        with pytest.raises(ValidationError):
            validate_conditions({'type': 'inclusion'})

    def test_bad_type(self):
        with pytest.raises(ValidationError):
            validate_conditions([{'type': 'include', 'operator': 'contains', 'value': 'x'}])

    def test_bad_operator(self):
        with pytest.raises(ValidationError):
            validate_conditions([{'type': 'inclusion', 'operator': 'startswith', 'value': 'x'}])

    def test_empty_value(self):
        with pytest.raises(ValidationError):
            validate_conditions([{'type': 'inclusion', 'operator': 'contains', 'value': ''}])

    def test_batch_needs_list(self):
        with pytest.raises(ValidationError):
            validate_conditions([{'type': 'inclusion', 'operator': 'batch', 'value': 'a,b'}])


class TestFetchMatchingUrls(SimpleTestCase):

    @patch('seo.content_groups.query_search_analytics', return_value=PAGES)
    def test_every_condition_must_hold(self, mock_query):
        conditions = [
            {'type': 'inclusion', 'operator': 'contains', 'value': '/blog/'},
            {'type': 'exclusion', 'operator': 'contains', 'value': '/tag/'},
        ]
        matched = fetch_matching_urls(SITE_URL, conditions, today=date(2024, 7, 1))

        assert matched == ['https://example.com/Blog/first/', 'https://example.com/blog/second']

        args = mock_query.call_args.args
        assert args[0] == SITE_URL
        assert args[1] == date(2024, 1, 3)
        assert args[2] == date(2024, 7, 1)
        assert args[3] == ['page']

    @patch('seo.content_groups.query_search_analytics', return_value=PAGES)
    def test_empty_conditions_match_all_pages(self, mock_query):
        assert len(fetch_matching_urls(SITE_URL, [])) == 4


class TestPreview(SimpleTestCase):

    @patch('seo.content_groups.query_search_analytics', return_value=PAGES)
    def test_counts_matches(self, mock_query):
        conditions = [
            {'type': 'inclusion', 'operator': 'contains', 'value': '/blog/'},
            {'type': 'inclusion', 'operator': 'contains', 'value': '/shop/'},
        ]
        preview = preview_content_group(SITE_URL, conditions, '2024-05-01', '2024-05-28')

        assert preview['count'] == 3
        assert preview['total_urls'] == 4
        assert preview['sample_urls'] == [
            'https://example.com/blog/second',
            'https://example.com/blog/tag/shoes',
            'https://example.com/shop/',
        ]
        assert mock_query.call_args.args[1:3] == (date(2024, 5, 1), date(2024, 5, 28))

    @patch('seo.content_groups.query_search_analytics')
    def test_sample_is_capped(self, mock_query):
        mock_query.return_value = [PerformanceRow(page=f'https://example.com/p{i}') for i in range(25)]
        preview = preview_content_group(SITE_URL, [])
        assert preview['count'] == 25
        assert len(preview['sample_urls']) == 10


class TestStoredGroups(SimpleTestCase):

    def test_urls_in_group(self):
        group = Mock(conditions=[{'type': 'exclusion', 'operator': 'regex', 'value': r'\?'}])
        urls = ['https://example.com/a', 'https://example.com/a?page=2']
        assert urls_in_group(urls, group) == ['https://example.com/a']

    def test_filter_rows_by_group(self):
        group = Mock(matched_urls=['https://example.com/a'])
        rows = [
            PerformanceRow(query='q', page='https://example.com/a'),
            PerformanceRow(query='q', page='https://example.com/b'),
        ]
        assert [r.page for r in filter_rows_by_group(rows, group)] == ['https://example.com/a']
