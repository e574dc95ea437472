"""Tests for the cache primer."""
from unittest.mock import patch

import pytest

from landing import primer
from landing.events import ALL_EVENTS_CACHE_KEY, get_city_events_cache_key
from landing.primer import prime_query_cache
from processor.models import PrimeResult


def test_primes_global_and_city_caches(populated_network, cache):
    """Test every known landing URI and the global list are cached."""
    result = prime_query_cache(populated_network, cache)

    assert isinstance(result, PrimeResult)
    assert result.global_events == 0
    assert result.uris_primed == 8
    assert result.uris_failed == 0
    assert result.errors == []

    assert cache.get(ALL_EVENTS_CACHE_KEY) == []
    assert len(cache.get(get_city_events_cache_key('/rome/'))) == 3
    assert len(cache.get(get_city_events_cache_key('/rome/training/'))) == 2
    assert len(cache.get(get_city_events_cache_key('/romesville/main/'))) == 1


def test_refreshes_stale_entries(populated_network, cache):
    """Test priming replaces existing cache entries."""
    stale = [{'id': 999, 'type': 'wordcamp'}]
    cache.set(get_city_events_cache_key('/rome/2023/'), stale)

    prime_query_cache(populated_network, cache)

    events = cache.get(get_city_events_cache_key('/rome/2023/'))
    assert [event['id'] for event in events] == [10]


def test_city_failure_does_not_stop_run(populated_network, cache):
    """Test one failing URI is reported and the rest are still primed."""
    real_get_city_events = primer.get_city_landing_page_events

    def flaky(context, cache, request_uri, force_refresh=False):
        if request_uri == '/rome/2023/':
            raise RuntimeError('lost connection')
        return real_get_city_events(context, cache, request_uri, force_refresh)

    with patch('landing.primer.get_city_landing_page_events', side_effect=flaky):
        result = prime_query_cache(populated_network, cache)

    assert result.uris_failed == 1
    assert result.uris_primed == 7
    assert 'Failed to prime /rome/2023/: lost connection' in result.errors
    assert cache.get(get_city_events_cache_key('/rome/2023/')) is None
    assert len(cache.get(get_city_events_cache_key('/rome/2024/'))) == 2


def test_global_failure_propagates(populated_network, cache):
    """Test a failure refreshing the global list aborts the run."""
    with patch('landing.primer.get_all_upcoming_events', side_effect=RuntimeError('db down')):
        with pytest.raises(RuntimeError):
            prime_query_cache(populated_network, cache)
