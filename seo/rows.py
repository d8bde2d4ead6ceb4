"""
Row and condition types shared by the aggregation and matching code.

Search Console returns rows as {'keys': [...], 'clicks': ..., ...} where the
order of 'keys' follows the requested dimensions. Rows are converted once
at the integration boundary so downstream code deals with named fields.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Union

CONDITION_TYPES = ('inclusion', 'exclusion')
CONDITION_OPERATORS = ('contains', 'equals', 'regex', 'batch')


def parse_date(value) -> Optional[date]:
    """Parse an ISO date (or datetime string) into a date. Returns None if unusable."""
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


@dataclass
class PerformanceRow:
    """
    One observation of search performance.

    query and page are '' when the row has no such dimension.
    Missing numeric fields default to 0; a position of 0 means "no rank".
    """
    date: Optional[date] = None
    query: str = ''
    page: str = ''
    clicks: int = 0
    impressions: int = 0
    ctr: float = 0.0
    position: float = 0.0

    @property
    def url(self) -> str:
        return self.page

    @classmethod
    def from_api_row(cls, row: dict, dimensions: List[str]) -> 'PerformanceRow':
        """
        Build a row from a Search Console API row.

        Example:
            {'keys': ['2024-05-01', 'shoes'], 'clicks': 3, 'position': 4.2}
            with dimensions ['date', 'query']
            → PerformanceRow(date=2024-05-01, query='shoes', clicks=3, position=4.2)
        """
        keys = row.get('keys') or []
        values = dict(zip(dimensions, keys))

        return cls(
            date=parse_date(values.get('date')),
            query=values.get('query') or '',
            page=values.get('page') or '',
            clicks=int(row.get('clicks') or 0),
            impressions=int(row.get('impressions') or 0),
            ctr=float(row.get('ctr') or 0),
            position=float(row.get('position') or 0),
        )

    def to_dict(self) -> dict:
        return {
            'date': self.date.isoformat() if self.date else None,
            'query': self.query,
            'page': self.page,
            'clicks': self.clicks,
            'impressions': self.impressions,
            'ctr': self.ctr,
            'position': self.position,
        }


@dataclass
class Condition:
    """A single URL-matching rule of a content group."""
    type: str
    operator: str
    value: Union[str, List[str]] = field(default='')

    @classmethod
    def from_dict(cls, data) -> 'Condition':
        if isinstance(data, cls):
            return data
        return cls(
            type=data.get('type', ''),
            operator=data.get('operator', ''),
            value=data.get('value', ''),
        )

    def to_dict(self) -> dict:
        return {'type': self.type, 'operator': self.operator, 'value': self.value}
