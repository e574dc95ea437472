"""Queries against the shared events table and the conference posts."""
import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, between, or_, select
from sqlalchemy.engine import Connection
from sqlalchemy.sql.expression import Executable

from network.context import NetworkContext
from processor.models import ConferencePost, EventType

logger = logging.getLogger(__name__)

LEGACY_CHARSET = ('latin1', 'latin1_swedish_ci')
DEFAULT_CHARSET = ('utf8mb4', 'utf8mb4_unicode_ci')

CONFERENCE_WINDOW_DAYS = 180
MEETUP_WINDOW_DAYS = 30
GLOBAL_EVENTS_LIMIT = 400

CONFERENCE_POST_TYPE = 'wordcamp'
CONFERENCE_SCHEDULED_STATUS = 'wcpt-scheduled'


def _set_charset(connection: Connection, charset: str, collation: str) -> None:
    connection.exec_driver_sql(f"SET NAMES {charset} COLLATE {collation}")


def get_latin1_results(
    context: NetworkContext,
    query: Executable,
    params: Optional[Dict[str, Any]] = None
) -> List[Dict[str, Any]]:
    """
    Run a query against a table encoded with the ``latin1`` charset.

    The network's connections default to ``utf8mb4``, but the shared events
    table is ``latin1``. Reading it over a ``utf8mb4`` session produces
    mojibake, so the session charset is switched for the duration of the
    query and restored afterwards.

    The query must already be safe to run; this function does no escaping.
    The connection must not be shared with other charset-sensitive queries
    while the switch is in effect.

    Args:
        context: Network context holding the engine
        query: Pre-built SQLAlchemy statement
        params: Optional bound parameter values

    Returns:
        List of row dicts
    """
    with context.engine.connect() as connection:
        # Only MySQL has session charsets; local SQLite stores text as UTF-8.
        switch_charset = connection.dialect.name == 'mysql'

        if switch_charset:
            _set_charset(connection, *LEGACY_CHARSET)

        try:
            result = connection.execute(query, params or {})
            rows = [dict(row) for row in result.mappings()]
        finally:
            if switch_charset:
                _set_charset(connection, *DEFAULT_CHARSET)

    logger.debug(f"Fetched {len(rows)} rows with latin1 session charset")
    return rows


def build_upcoming_events_query(context: NetworkContext, now: datetime):
    """
    Build the query for scheduled events across all sites.

    Conferences are included up to 180 days ahead, meetups up to 30 days.

    Args:
        context: Network context
        now: Start of the window, as a naive datetime

    Returns:
        SQLAlchemy select statement
    """
    events = context.events

    return (
        select(
            events.c.id,
            events.c.type,
            events.c.title,
            events.c.url,
            events.c.meetup,
            events.c.location,
            events.c.latitude,
            events.c.longitude,
            events.c.date_utc,
            events.c.date_utc_offset.label('tz_offset'),
        )
        .where(
            events.c.status == 'scheduled',
            or_(
                and_(
                    events.c.type == EventType.CONFERENCE.value,
                    between(
                        events.c.date_utc,
                        now,
                        now + timedelta(days=CONFERENCE_WINDOW_DAYS)
                    ),
                ),
                and_(
                    events.c.type == EventType.MEETUP.value,
                    between(
                        events.c.date_utc,
                        now,
                        now + timedelta(days=MEETUP_WINDOW_DAYS)
                    ),
                ),
            ),
        )
        .order_by(events.c.date_utc.asc())
        .limit(GLOBAL_EVENTS_LIMIT)
    )


def get_scheduled_conferences(
    context: NetworkContext,
    site_ids: List[int],
    limit: int
) -> List[ConferencePost]:
    """
    Load scheduled conference posts linked to the given sites.

    Posts live on the network's root blog and point at their sub-site
    through the ``_site_id`` meta field.

    Args:
        context: Network context
        site_ids: Blog IDs of the sub-sites
        limit: Maximum number of posts

    Returns:
        List of ConferencePost objects with all metadata loaded
    """
    if not site_ids:
        return []

    posts = context.posts
    postmeta = context.postmeta

    linked_posts = (
        select(posts.c.ID, posts.c.post_title)
        .join(postmeta, postmeta.c.post_id == posts.c.ID)
        .where(
            posts.c.post_type == CONFERENCE_POST_TYPE,
            posts.c.post_status == CONFERENCE_SCHEDULED_STATUS,
            postmeta.c.meta_key == '_site_id',
            postmeta.c.meta_value.in_([str(site_id) for site_id in site_ids]),
        )
        .order_by(posts.c.ID.desc())
        .limit(limit)
    )

    with context.engine.connect() as connection:
        post_rows = connection.execute(linked_posts).all()
        post_ids = [row.ID for row in post_rows]

        meta_by_post = defaultdict(dict)
        if post_ids:
            meta_rows = connection.execute(
                select(postmeta.c.post_id, postmeta.c.meta_key, postmeta.c.meta_value)
                .where(postmeta.c.post_id.in_(post_ids))
                .order_by(postmeta.c.meta_id)
            )
            for meta_row in meta_rows:
                meta_by_post[meta_row.post_id][meta_row.meta_key] = meta_row.meta_value

    logger.info(
        f"Found {len(post_rows)} scheduled conferences for {len(site_ids)} sites"
    )

    return [
        ConferencePost(
            post_id=row.ID,
            title=row.post_title or '',
            meta=meta_by_post[row.ID]
        )
        for row in post_rows
    ]
