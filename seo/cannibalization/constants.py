"""
Constants for keyword cannibalization analysis.
"""

# A query is cannibalized when at least this many URLs rank for it
MIN_COMPETING_URLS = 2

# Impact thresholds, evaluated in order (first match wins)
HIGH_IMPACT_MIN_URLS = 3
HIGH_IMPACT_MIN_CLICKS = 100  # exclusive
MEDIUM_IMPACT_MIN_URLS = 2
MEDIUM_IMPACT_MIN_CLICKS = 20  # inclusive
MEDIUM_IMPACT_MAX_CLICKS = 100  # inclusive

IMPACT_LEVELS = ('high', 'medium', 'low')

IMPACT_RANK = {
    'high': 3,
    'medium': 2,
    'low': 1,
}

# Default analysis window when the caller does not pass one
DEFAULT_ANALYSIS_DAYS = 28
