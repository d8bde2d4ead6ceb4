"""
Content group URL matching.

A content group is defined by an ordered list of inclusion/exclusion
conditions. Two ways of combining them are in use and both are exposed:

- ANY_INCLUSION: the URL must match at least one inclusion (if there are
  any) and none of the exclusions. Used for previews and for filtering
  URLs against a stored group.
- ALL_CONDITIONS: every condition is applied on its own with its polarity
  (inclusion => must match, exclusion => must not match). Used when a
  group's matched URL list is fetched and saved.

Matching never raises on bad data: an invalid regex or an unknown operator
simply does not match.
"""
import re
from typing import Iterable, List

from .rows import Condition

ANY_INCLUSION = 'any_inclusion'
ALL_CONDITIONS = 'all_conditions'

STRATEGIES = (ANY_INCLUSION, ALL_CONDITIONS)


def normalize_url(url: str) -> str:
    """
    Lower-case a URL and strip one trailing slash.

    Example:
        https://Example.com/Blog/ → https://example.com/blog
    """
    url = (url or '').lower()
    if url.endswith('/'):
        url = url[:-1]
    return url


def _batch_values(value) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [v for v in value if isinstance(v, str)]
    if isinstance(value, str):
        return [value]
    return []


def url_matches_condition(url: str, condition) -> bool:
    """
    Test a URL against one condition, comparing strings as given.

    contains/equals are case-sensitive, regex has no flags, and a batch
    matches when the URL equals or contains any of its values.
    """
    condition = Condition.from_dict(condition)
    operator = condition.operator
    value = condition.value

    if operator == 'contains':
        return isinstance(value, str) and value in url

    if operator == 'equals':
        return url == value

    if operator == 'regex':
        try:
            return re.search(value, url) is not None
        except (re.error, TypeError):
            return False

    if operator == 'batch':
        return any(url == v or v in url for v in _batch_values(value))

    return False


def url_matches_condition_normalized(url: str, condition) -> bool:
    """
    Test a URL against one condition after normalizing both sides.

    Normalization is lower-case plus trailing-slash removal. Regex is
    case-insensitive and runs against the raw URL. A batch matches on
    equality only and needs a list value.
    """
    condition = Condition.from_dict(condition)
    operator = condition.operator
    value = condition.value

    if operator == 'contains':
        return isinstance(value, str) and normalize_url(value) in normalize_url(url)

    if operator == 'equals':
        return isinstance(value, str) and normalize_url(url) == normalize_url(value)

    if operator == 'regex':
        try:
            return re.search(value, url, re.IGNORECASE) is not None
        except (re.error, TypeError):
            return False

    if operator == 'batch':
        if not isinstance(value, (list, tuple)):
            return False
        normalized = normalize_url(url)
        return any(normalize_url(v) == normalized for v in _batch_values(value))

    return False


def matches_set(
    url: str,
    conditions: Iterable,
    strategy: str = ANY_INCLUSION,
    normalized: bool = False,
) -> bool:
    """
    Evaluate a condition set against a URL with the given strategy.

    An empty condition set matches every URL under ANY_INCLUSION and
    (vacuously) under ALL_CONDITIONS.
    """
    matcher = url_matches_condition_normalized if normalized else url_matches_condition
    conditions = [Condition.from_dict(c) for c in conditions]

    if strategy == ANY_INCLUSION:
        inclusions = [c for c in conditions if c.type == 'inclusion']
        exclusions = [c for c in conditions if c.type == 'exclusion']

        if inclusions and not any(matcher(url, c) for c in inclusions):
            return False

        return not any(matcher(url, c) for c in exclusions)

    if strategy == ALL_CONDITIONS:
        for c in conditions:
            matched = matcher(url, c)
            if c.type == 'inclusion' and not matched:
                return False
            if c.type != 'inclusion' and matched:
                return False
        return True

    raise ValueError(f"Unknown match strategy: {strategy}")


def filter_urls(
    urls: Iterable[str],
    conditions: Iterable,
    strategy: str = ANY_INCLUSION,
    normalized: bool = False,
) -> List[str]:
    """Keep the URLs that satisfy the condition set, in input order."""
    conditions = [Condition.from_dict(c) for c in conditions]
    return [url for url in urls if matches_set(url, conditions, strategy, normalized)]
