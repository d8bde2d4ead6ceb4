"""
Keyword cannibalization tests

Test Groups:
- A: Analysis (grouping, impact, volatility, ordering)
- B: Pipeline (runs, saved issues, failures)
"""
