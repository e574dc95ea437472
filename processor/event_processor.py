"""Event processor for normalizing raw event rows and conference posts."""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from processor.models import ConferenceEvent, ConferencePost, Event, EventType, MeetupEvent

logger = logging.getLogger(__name__)

META_SITE_ID = '_site_id'
META_VENUE_COORDINATES = '_venue_coordinates'
META_HOST_COORDINATES = '_host_coordinates'
META_TIMEZONE = 'Event Timezone'
META_START_DATE = 'Start Date (YYYY-mm-dd)'
META_URL = 'URL'
META_LOCATION = 'Location'


def fix_title(title: str) -> str:
    """Correct the capitalization of the brand name in a title."""
    return title.replace('Wordpress', 'WordPress')


def local_time_to_timestamp(date_value: Union[str, datetime], tz_offset: int) -> int:
    """
    Convert an event's local wall time into a true Unix timestamp.

    The events table calls the column ``date_utc``, but the value is the local
    time of the event. Reading it as UTC and subtracting the stored offset
    gives the real instant.

    Args:
        date_value: Local time as ``YYYY-mm-dd HH:MM:SS`` or a naive datetime
        tz_offset: Seconds east of UTC

    Returns:
        Unix timestamp (UTC)
    """
    if isinstance(date_value, datetime):
        naive = date_value.replace(tzinfo=None)
    else:
        naive = datetime.fromisoformat(str(date_value).strip())

    as_utc = naive.replace(tzinfo=timezone.utc)
    return int(as_utc.timestamp()) - int(tz_offset or 0)


def parse_start_timestamp(value: Optional[Union[int, str]]) -> int:
    """Parse a stored start timestamp, falling back to 0 for bad values."""
    if not value:
        return 0

    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-numeric start timestamp '{value}'")
        return 0


def get_utc_offset(timezone_name: Optional[str], start_timestamp: Optional[Union[int, str]]) -> int:
    """
    Get the UTC offset in seconds of a timezone at a given instant.

    Args:
        timezone_name: IANA timezone name, e.g. ``America/New_York``
        start_timestamp: Unix timestamp of the event start

    Returns:
        Offset in seconds, or 0 if either value is missing or unusable
    """
    if not timezone_name or not start_timestamp:
        return 0

    try:
        zone = ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.warning(f"Unknown event timezone '{timezone_name}': {e}")
        return 0

    timestamp = parse_start_timestamp(start_timestamp)
    if not timestamp:
        return 0

    moment = datetime.fromtimestamp(timestamp, tz=zone)
    return int(moment.utcoffset().total_seconds())


def _parse_coordinates(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    if raw is None:
        return None

    try:
        coordinates = json.loads(raw)
    except (TypeError, ValueError):
        return None

    return coordinates if isinstance(coordinates, dict) else None


class EventProcessor:
    """Processor for turning store rows into normalized event records."""

    def process_global_rows(self, rows: List[Dict[str, Any]]) -> List[Event]:
        """
        Normalize rows from the shared events table.

        Args:
            rows: Row dicts with id, type, title, url, meetup, location,
                latitude, longitude, date_utc and tz_offset

        Returns:
            List of MeetupEvent and ConferenceEvent records, in row order
        """
        events = []

        for row in rows:
            tz_offset = int(row.get('tz_offset') or 0)
            variant = MeetupEvent if row['type'] == EventType.MEETUP.value else ConferenceEvent

            events.append(variant(
                id=int(row['id']),
                title=fix_title(row.get('title') or ''),
                url=row.get('url') or '',
                meetup=row.get('meetup') or '',
                location=row.get('location') or '',
                latitude=float(row.get('latitude') or 0),
                longitude=float(row.get('longitude') or 0),
                timestamp=local_time_to_timestamp(row['date_utc'], tz_offset),
                tz_offset=tz_offset
            ))

        logger.info(f"Normalized {len(events)} events from the events table")
        return events

    def process_conference_posts(self, posts: List[ConferencePost]) -> List[ConferenceEvent]:
        """
        Build conference records from scheduled conference posts.

        Posts without usable coordinates are skipped, since they can't be
        placed on the map.

        Args:
            posts: ConferencePost objects with their metadata loaded

        Returns:
            List of ConferenceEvent records
        """
        events = []

        for post in posts:
            event = self._process_conference_post(post)
            if event:
                events.append(event)

        logger.info(
            f"Built {len(events)} conference events out of {len(posts)} posts"
        )
        return events

    def _process_conference_post(self, post: ConferencePost) -> Optional[ConferenceEvent]:
        meta = post.meta
        coordinates = _parse_coordinates(meta.get(META_VENUE_COORDINATES))
        if coordinates is None:
            coordinates = _parse_coordinates(meta.get(META_HOST_COORDINATES))

        if not coordinates or not coordinates.get('latitude') or not coordinates.get('longitude'):
            logger.debug(f"Skipping conference post {post.post_id} without coordinates")
            return None

        timestamp = parse_start_timestamp(meta.get(META_START_DATE))

        return ConferenceEvent(
            id=int(meta.get(META_SITE_ID) or 0),
            # Conference names come from the root blog post, not the sub-site.
            title=post.title,
            url=meta.get(META_URL) or '',
            location=meta.get(META_LOCATION) or '',
            latitude=float(coordinates['latitude']),
            longitude=float(coordinates['longitude']),
            timestamp=timestamp,
            tz_offset=get_utc_offset(meta.get(META_TIMEZONE), timestamp)
        )
