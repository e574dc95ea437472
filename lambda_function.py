"""AWS Lambda handlers for the events landing page caches."""
import json
import logging
import os
import time
from typing import Dict, Any

import boto3

from landing.events import (
    get_all_upcoming_events,
    get_city_landing_page_events,
    normalize_request_uri,
)
from landing.primer import prime_query_cache
from landing.schedule import ensure_hourly_schedule
from network.context import NetworkContext
from storage.transient_cache import TransientCache


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def build_components() -> tuple:
    """
    Build the network context and cache from environment variables.

    Returns:
        Tuple of (NetworkContext, TransientCache)
    """
    context = NetworkContext.from_url(
        database_url=os.environ.get('DATABASE_URL', 'sqlite://'),
        network_id=int(os.environ.get('EVENTS_NETWORK_ID', '2')),
        root_blog_id=int(os.environ.get('WORDCAMP_ROOT_BLOG_ID', '5')),
        table_prefix=os.environ.get('TABLE_PREFIX', 'wc_')
    )
    cache = TransientCache(
        table_name=os.environ.get('CACHE_TABLE_NAME', 'events-landing-cache')
    )
    return context, cache


def ensure_schedule_if_enabled(context: Any) -> None:
    """
    Ensure the hourly priming schedule when ``ENSURE_SCHEDULE`` is true.

    Args:
        context: Lambda context object, used for the function ARN
    """
    if os.environ.get('ENSURE_SCHEDULE', 'false').lower() != 'true':
        return

    rule_name = os.environ.get('SCHEDULE_RULE_NAME', 'events-landing-prime-query-cache')
    created = ensure_hourly_schedule(
        boto3.client('events'),
        boto3.client('lambda'),
        rule_name=rule_name,
        function_arn=context.invoked_function_arn
    )
    if created:
        logging.getLogger(__name__).info(f"Created hourly schedule rule {rule_name}")


def _error_response(message: str, error: Exception, start_time: float) -> Dict[str, Any]:
    duration = time.time() - start_time
    return {
        'statusCode': 500,
        'body': json.dumps({
            'message': message,
            'error': str(error),
            'error_type': type(error).__name__,
            'duration_seconds': round(duration, 2)
        })
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Scheduled handler that primes the landing page caches.

    Args:
        event: EventBridge event payload
        context: Lambda context object

    Returns:
        Response dict with statusCode and summary statistics
    """
    log_level = os.environ.get('LOG_LEVEL', 'INFO')
    ensure_schedule = os.environ.get('ENSURE_SCHEDULE', 'false').lower() == 'true'

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    logger.info(
        "Cache priming started",
        extra={'ensure_schedule': ensure_schedule}
    )

    try:
        ensure_schedule_if_enabled(context)

        network_context, cache = build_components()
        result = prime_query_cache(network_context, cache)

        duration = time.time() - start_time

        logger.info(
            "Cache priming completed",
            extra={
                'duration_seconds': round(duration, 2),
                'global_events': result.global_events,
                'uris_primed': result.uris_primed,
                'uris_failed': result.uris_failed
            }
        )

        return {
            'statusCode': 200,
            'body': json.dumps({
                'message': 'Cache priming completed',
                'statistics': {
                    'global_events': result.global_events,
                    'uris_primed': result.uris_primed,
                    'uris_failed': result.uris_failed,
                    'duration_seconds': round(duration, 2)
                },
                'errors': result.errors
            })
        }

    except Exception as e:
        logger.error(
            f"Cache priming failed: {str(e)}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return _error_response('Cache priming failed', e, start_time)


def landing_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    API Gateway handler that serves the cached event list for a landing page.

    ``/`` lists all upcoming events; any other path lists the events of the
    matching city landing page.

    Args:
        event: API Gateway proxy event
        context: Lambda context object

    Returns:
        Response dict with statusCode and the JSON list of events
    """
    setup_logging(os.environ.get('LOG_LEVEL', 'INFO'))
    logger = logging.getLogger(__name__)
    start_time = time.time()

    raw_uri = event.get('rawPath') or event.get('path') or '/'
    query_string = event.get('rawQueryString') or ''
    request_uri = normalize_request_uri(raw_uri, query_string)

    try:
        ensure_schedule_if_enabled(context)

        network_context, cache = build_components()

        if request_uri == '/':
            events = get_all_upcoming_events(network_context, cache)
        else:
            events = get_city_landing_page_events(network_context, cache, request_uri)

    except Exception as e:
        logger.error(
            f"Failed to load events for {request_uri}: {str(e)}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return _error_response('Failed to load events', e, start_time)

    logger.info(f"Served {len(events)} events for {request_uri}")

    return {
        'statusCode': 200,
        'headers': {'Content-Type': 'application/json'},
        'body': json.dumps([item.to_dict() for item in events])
    }
