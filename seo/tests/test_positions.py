"""
Test Group B: Position aggregation

Tests bucket classification, best-position deduplication and daily records.
"""
from datetime import date
from django.test import SimpleTestCase
from seo.positions import (
    BUCKETS,
    aggregate_positions,
    classify_position,
    deduplicate_best_position,
    serialize_records,
    total_ranked,
)
from seo.rows import PerformanceRow

D1 = date(2024, 5, 1)
D2 = date(2024, 5, 2)
D3 = date(2024, 5, 3)


def row(day, query, position, page=''):
    return PerformanceRow(date=day, query=query, page=page, position=position)


class TestClassifyPosition(SimpleTestCase):
    """Test bucket boundaries."""

    def test_boundaries(self):
        assert classify_position(1.0) == 'position1to3'
        assert classify_position(3.0) == 'position1to3'
        assert classify_position(3.0000001) == 'position4to10'
        assert classify_position(3.5) == 'position4to10'
        assert classify_position(10.0) == 'position4to10'
        assert classify_position(10.5) == 'position11to20'
        assert classify_position(20.0) == 'position11to20'
        assert classify_position(20.5) == 'position21plus'
        assert classify_position(87.2) == 'position21plus'

    def test_unranked(self):
        assert classify_position(0) is None
        assert classify_position(0.99) is None
        assert classify_position(-4) is None
        assert classify_position(None) is None


class TestDeduplication(SimpleTestCase):
    """Test best-position deduplication per (date, query)."""

    def test_keeps_lowest_position(self):
        rows = [
            row(D1, 'running shoes', 8.0, '/a'),
            row(D1, 'running shoes', 2.5, '/b'),
            row(D1, 'running shoes', 15.0, '/c'),
        ]
        result = deduplicate_best_position(rows)
        assert len(result) == 1
        assert result[0].page == '/b'
        assert result[0].position == 2.5

    def test_first_row_wins_ties(self):
        rows = [row(D1, 'q', 4.0, '/first'), row(D1, 'q', 4.0, '/second')]
        assert deduplicate_best_position(rows)[0].page == '/first'

    def test_same_query_on_different_days_kept(self):
        rows = [row(D1, 'q', 4.0, '/a'), row(D2, 'q', 6.0, '/a')]
        assert len(deduplicate_best_position(rows)) == 2

    def test_drops_rows_without_date_or_query(self):
        rows = [row(None, 'q', 1.0), row(D1, '', 1.0), row(D1, 'q', 1.0)]
        assert len(deduplicate_best_position(rows)) == 1

    def test_idempotent(self):
        rows = [
            row(D1, 'a', 5.0, '/x'),
            row(D1, 'a', 3.0, '/y'),
            row(D2, 'b', 9.0, '/x'),
            row(D2, 'b', 12.0, '/z'),
        ]
        once = deduplicate_best_position(rows)
        twice = deduplicate_best_position(once)
        assert once == twice


class TestAggregatePositions(SimpleTestCase):
    """Test daily bucket records."""

    def test_empty_input(self):
        assert aggregate_positions([]) == []
        assert aggregate_positions(None) == []

    def test_counts_per_bucket(self):
        rows = [
            row(D1, 'a', 1.4),
            row(D1, 'b', 3.0),
            row(D1, 'c', 7.2),
            row(D1, 'd', 14.0),
            row(D1, 'e', 45.0),
        ]
        records = aggregate_positions(rows)
        assert records == [{
            'date': D1,
            'position1to3': 2,
            'position4to10': 1,
            'position11to20': 1,
            'position21plus': 1,
        }]

    def test_sorted_by_date(self):
        rows = [row(D3, 'a', 2.0), row(D1, 'a', 2.0), row(D2, 'a', 2.0)]
        assert [r['date'] for r in aggregate_positions(rows)] == [D1, D2, D3]

    def test_page_dimension_counts_query_once(self):
        rows = [
            row(D1, 'running shoes', 12.0, '/a'),
            row(D1, 'running shoes', 2.0, '/b'),
            row(D1, 'trail shoes', 25.0, '/a'),
        ]
        without_dedup = aggregate_positions(rows)[0]
        with_dedup = aggregate_positions(rows, has_page_dimension=True)[0]

        assert total_ranked(without_dedup) == 3
        assert total_ranked(with_dedup) == 2
        assert with_dedup['position1to3'] == 1
        assert with_dedup['position11to20'] == 0
        assert with_dedup['position21plus'] == 1

    def test_zero_position_dropped_after_winning_dedup(self):
        rows = [row(D1, 'q', 0.0, '/a'), row(D1, 'q', 5.0, '/b')]
        record = aggregate_positions(rows, has_page_dimension=True)[0]
        assert total_ranked(record) == 0

    def test_unranked_day_still_has_record(self):
        records = aggregate_positions([row(D1, 'q', 0.5)])
        assert len(records) == 1
        assert all(records[0][bucket] == 0 for bucket in BUCKETS)

    def test_rows_without_date_skipped(self):
        records = aggregate_positions([row(None, 'q', 2.0), row(D1, 'q', 2.0)])
        assert len(records) == 1

    def test_partition_sum(self):
        positions = [0.0, 0.5, 1.0, 2.9, 3.0, 3.1, 9.9, 10.0, 10.1, 19.0, 20.0, 20.1, 100.0]
        rows = [row(D1, f'q{i}', p) for i, p in enumerate(positions)]
        record = aggregate_positions(rows)[0]
        assert total_ranked(record) == len([p for p in positions if p >= 1])


class TestSerializeRecords(SimpleTestCase):

    def test_iso_dates(self):
        records = aggregate_positions([row(D2, 'q', 4.0)])
        assert serialize_records(records)[0]['date'] == '2024-05-02'
        assert serialize_records(records)[0]['position4to10'] == 1
