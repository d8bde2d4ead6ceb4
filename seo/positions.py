"""
Organic position distribution ("query counting").

Turns per-query Search Console rows into one record per day counting how
many queries ranked in each position range:

    position1to3     1 <= p <= 3
    position4to10    3 < p <= 10
    position11to20   10 < p <= 20
    position21plus   p > 20

Positions below 1 (including the 0 default for a missing position) are not
counted in any bucket.

When rows carry the page dimension, a query ranking through several pages
on the same day is counted once, using its best (lowest) position.
"""
import logging
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional

from .rows import PerformanceRow

logger = logging.getLogger(__name__)

BUCKETS = ('position1to3', 'position4to10', 'position11to20', 'position21plus')


def classify_position(position: Optional[float]) -> Optional[str]:
    """Return the bucket name for a position, or None if it is unranked."""
    if position is None or position < 1:
        return None
    if position <= 3:
        return 'position1to3'
    if position <= 10:
        return 'position4to10'
    if position <= 20:
        return 'position11to20'
    return 'position21plus'


def deduplicate_best_position(rows: Iterable[PerformanceRow]) -> List[PerformanceRow]:
    """
    Keep one row per (date, query): the one with the lowest position.

    Rows without a date or query are dropped. On equal positions the first
    row seen is kept.
    """
    best: Dict[tuple, PerformanceRow] = OrderedDict()

    for row in rows:
        if not row.date or not row.query:
            continue

        key = (row.date, row.query)
        existing = best.get(key)
        if existing is None or row.position < existing.position:
            best[key] = row

    return list(best.values())


def empty_record(day) -> dict:
    record = {'date': day}
    record.update({bucket: 0 for bucket in BUCKETS})
    return record


def aggregate_positions(
    rows: Iterable[PerformanceRow],
    has_page_dimension: bool = False,
) -> List[dict]:
    """
    Count queries per position bucket for each day.

    Args:
        rows: PerformanceRow list with at least date and position
        has_page_dimension: rows were fetched with ['date', 'query', 'page']
            and must be deduplicated per (date, query) first

    Returns:
        [{'date': date, 'position1to3': int, ...}, ...] sorted by date
    """
    rows = list(rows or [])
    if not rows:
        return []

    if has_page_dimension:
        deduplicated = deduplicate_best_position(rows)
        logger.debug(
            "Position deduplication: %d rows -> %d unique queries",
            len(rows), len(deduplicated),
        )
        rows = deduplicated

    by_date: Dict = {}

    for row in rows:
        if not row.date:
            continue

        record = by_date.get(row.date)
        if record is None:
            record = by_date[row.date] = empty_record(row.date)

        bucket = classify_position(row.position)
        if bucket:
            record[bucket] += 1

    return [by_date[day] for day in sorted(by_date)]


def total_ranked(record: dict) -> int:
    """Number of ranked queries in a bucket record."""
    return sum(record.get(bucket, 0) for bucket in BUCKETS)


def serialize_records(records: List[dict]) -> List[dict]:
    """Bucket records with ISO date strings, ready for a JSON response."""
    return [
        {**record, 'date': record['date'].isoformat()}
        for record in records
    ]
