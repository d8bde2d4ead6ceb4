"""
Search performance tests

Test Groups:
- Condition matching (content groups)
- Position aggregation (query counting)
- TTL cache
- GSC data cache
- Query counting sync and reads
- Content group services
- Annotations
- Dashboard time series
- API views
"""
