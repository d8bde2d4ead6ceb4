"""
Test Group C: TTL cache
"""
import pytest
from django.test import SimpleTestCase
from seo.ttl_cache import TTLCache


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class TestTTLCache(SimpleTestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.cache = TTLCache(ttl=300, clock=self.clock)

    def test_get_before_expiry(self):
        self.cache.set('site:2024-01-01:2024-01-31', {'position_data': []})
        self.clock.advance(299)
        assert self.cache.get('site:2024-01-01:2024-01-31') == {'position_data': []}

    def test_expires_at_ttl(self):
        self.cache.set('k', 1)
        self.clock.advance(300)
        assert self.cache.get('k') is None
        assert len(self.cache) == 0

    def test_default(self):
        assert self.cache.get('missing', 'fallback') == 'fallback'

    def test_set_refreshes_timestamp(self):
        self.cache.set('k', 1)
        self.clock.advance(200)
        self.cache.set('k', 2)
        self.clock.advance(200)
        assert self.cache.get('k') == 2

    def test_contains(self):
        self.cache.set('k', None)
        assert 'k' in self.cache
        self.clock.advance(301)
        assert 'k' not in self.cache

    def test_delete(self):
        self.cache.set('k', 1)
        assert self.cache.delete('k') is True
        assert self.cache.delete('k') is False

    def test_clear(self):
        self.cache.set('a', 1)
        self.cache.set('b', 2)
        self.cache.clear()
        assert len(self.cache) == 0

    def test_purge_expired(self):
        self.cache.set('old', 1)
        self.clock.advance(250)
        self.cache.set('new', 2)
        self.clock.advance(100)
        assert self.cache.purge_expired() == 1
        assert self.cache.get('new') == 2

    def test_invalid_ttl(self):
        with pytest.raises(ValueError):
            TTLCache(ttl=0)
