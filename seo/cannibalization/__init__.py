"""
Keyword Cannibalization Analysis

Finds search queries for which several URLs of the same site rank:
- Group Search Console query+page rows by query
- Keep queries with 2+ competing URLs
- Score impact from URL count and clicks
- Measure position volatility from daily positions

The pure analysis lives in analysis.py; pipeline.py fetches data and saves runs.
"""

__version__ = '1.0.0'
