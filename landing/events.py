"""Cached event lists for the events landing pages."""
import hashlib
import logging
from datetime import datetime, timezone
from typing import List, Optional

from network.context import NetworkContext
from network.event_tables import (
    build_upcoming_events_query,
    get_latin1_results,
    get_scheduled_conferences,
)
from network.site_directory import get_city_landing_sites
from processor.event_processor import EventProcessor
from processor.models import Event
from storage.transient_cache import DAY_IN_SECONDS, TransientCache

logger = logging.getLogger(__name__)

ALL_EVENTS_CACHE_KEY = 'event_landing_all_upcoming_events'
CITY_EVENTS_CACHE_PREFIX = 'event_landing_city_events_'
CITY_EVENTS_LIMIT = 300


def _cached_events(cache: TransientCache, cache_key: str) -> Optional[List[Event]]:
    cached = cache.get(cache_key)

    # Empty lists are treated as misses.
    if not cached:
        return None

    return [Event.from_dict(item) for item in cached]


def _store_events(cache: TransientCache, cache_key: str, events: List[Event]) -> None:
    # Primed hourly; the day-long expiration only matters if priming stops.
    cache.set(cache_key, [event.to_dict() for event in events], DAY_IN_SECONDS)


def get_all_upcoming_events(
    context: NetworkContext,
    cache: TransientCache,
    force_refresh: bool = False,
    now: Optional[datetime] = None
) -> List[Event]:
    """
    Get a list of all upcoming events across all sites.

    Args:
        context: Network context
        cache: Transient cache
        force_refresh: Skip the cache and query the events table
        now: Start of the upcoming window, defaults to the current UTC time

    Returns:
        List of Event objects, soonest first
    """
    if not force_refresh:
        cached_events = _cached_events(cache, ALL_EVENTS_CACHE_KEY)
        if cached_events:
            return cached_events

    if now is None:
        now = datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    now = now.replace(tzinfo=None, microsecond=0)

    rows = get_latin1_results(context, build_upcoming_events_query(context, now))
    events = EventProcessor().process_global_rows(rows)
    # The store orders by local wall time; consumers expect true start order.
    events.sort(key=lambda event: event.timestamp)

    _store_events(cache, ALL_EVENTS_CACHE_KEY, events)
    logger.info(f"Refreshed all upcoming events: {len(events)} events")

    return events


def get_city_events_cache_key(request_uri: str) -> str:
    return CITY_EVENTS_CACHE_PREFIX + hashlib.md5(request_uri.encode('utf-8')).hexdigest()


def get_city_landing_page_events(
    context: NetworkContext,
    cache: TransientCache,
    request_uri: str,
    force_refresh: bool = False
) -> List[Event]:
    """
    Get events based on the given request URI.

    See ``build_city_landing_regex()`` for how request URIs map to sites.
    Only conference events are listed here.

    Args:
        context: Network context
        cache: Transient cache
        request_uri: Normalized request URI, e.g. ``/rome/2023/``
        force_refresh: Skip the cache and query the store

    Returns:
        List of Event objects
    """
    if not request_uri or request_uri == '/':
        return []

    cache_key = get_city_events_cache_key(request_uri)

    if not force_refresh:
        cached_events = _cached_events(cache, cache_key)
        if cached_events:
            return cached_events

    site_ids = get_city_landing_sites(context, request_uri, CITY_EVENTS_LIMIT)
    posts = get_scheduled_conferences(context, site_ids, CITY_EVENTS_LIMIT)
    events = EventProcessor().process_conference_posts(posts)

    _store_events(cache, cache_key, events)
    logger.info(f"Refreshed events for {request_uri}: {len(events)} events")

    return events


def normalize_request_uri(raw_uri: str, query_string: str = '') -> str:
    """
    Standardize request URIs so they can be reliably used as cache keys.

    For example, ``/rome``, ``/rome/`` and ``/rome/?foo=bar`` should all be
    ``/rome/``.
    """
    clean_uri = raw_uri.replace('?' + query_string, '')
    clean_uri = clean_uri.rstrip('/') + '/'

    return '/' + clean_uri.lstrip('/')
