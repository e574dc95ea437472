"""Hourly priming of the landing page caches."""
import logging

from landing.events import get_all_upcoming_events, get_city_landing_page_events
from network.context import NetworkContext
from network.site_directory import get_known_city_landing_request_uris
from processor.models import PrimeResult
from storage.transient_cache import TransientCache

logger = logging.getLogger(__name__)


def prime_query_cache(context: NetworkContext, cache: TransientCache) -> PrimeResult:
    """
    Prime the caches of events.

    Without this, visitors would wait for results to be generated every time
    a cache entry expires. Refreshing before expiry keeps the landing pages
    served from the cache.

    A failure on one city URI is logged and the remaining URIs are still
    primed. Failures of the global list or of the URI lookup propagate.

    Args:
        context: Network context
        cache: Transient cache

    Returns:
        PrimeResult summarizing the run
    """
    all_events = get_all_upcoming_events(context, cache, force_refresh=True)

    city_landing_uris = get_known_city_landing_request_uris(context)
    logger.info(f"Priming {len(city_landing_uris)} city landing caches")

    primed = 0
    errors = []

    for request_uri in city_landing_uris:
        try:
            get_city_landing_page_events(context, cache, request_uri, force_refresh=True)
            primed += 1
        except Exception as e:
            error_msg = f"Failed to prime {request_uri}: {e}"
            logger.warning(error_msg, extra={'error_type': type(e).__name__})
            errors.append(error_msg)
            continue

    logger.info(
        f"Priming complete: {primed} primed, {len(errors)} failed"
    )

    return PrimeResult(
        global_events=len(all_events),
        uris_primed=primed,
        uris_failed=len(errors),
        errors=errors
    )
