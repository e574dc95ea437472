"""Table definitions for the multisite network's event data."""
from sqlalchemy import Column, DateTime, Float, Integer, MetaData, String, Table, Text

EVENTS_TABLE = 'wporg_events'


def _get_or_define(metadata: MetaData, name: str, *columns: Column) -> Table:
    if name in metadata.tables:
        return metadata.tables[name]
    return Table(name, metadata, *columns)


def events_table(metadata: MetaData) -> Table:
    """Shared cross-network events table. ``date_utc`` holds local time."""
    return _get_or_define(
        metadata,
        EVENTS_TABLE,
        Column('id', Integer, primary_key=True),
        Column('type', String(32), nullable=False),
        Column('source_id', String(32)),
        Column('title', String(255), nullable=False),
        Column('url', String(255)),
        Column('description', Text),
        Column('meetup', String(255)),
        Column('location', String(255)),
        Column('latitude', Float),
        Column('longitude', Float),
        Column('date_utc', DateTime, nullable=False),
        Column('date_utc_offset', Integer, default=0),
        Column('status', String(32), nullable=False),
    )


def blogs_table(metadata: MetaData, prefix: str) -> Table:
    """Site directory of the multisite install."""
    return _get_or_define(
        metadata,
        f'{prefix}blogs',
        Column('blog_id', Integer, primary_key=True),
        Column('site_id', Integer, nullable=False),
        Column('path', String(100), nullable=False),
        Column('public', Integer, default=1),
        Column('archived', Integer, default=0),
        Column('deleted', Integer, default=0),
    )


def posts_table(metadata: MetaData, prefix: str, blog_id: int) -> Table:
    return _get_or_define(
        metadata,
        f'{prefix}{blog_id}_posts',
        Column('ID', Integer, primary_key=True),
        Column('post_title', Text),
        Column('post_type', String(20), nullable=False),
        Column('post_status', String(20), nullable=False),
    )


def postmeta_table(metadata: MetaData, prefix: str, blog_id: int) -> Table:
    return _get_or_define(
        metadata,
        f'{prefix}{blog_id}_postmeta',
        Column('meta_id', Integer, primary_key=True),
        Column('post_id', Integer, nullable=False, index=True),
        Column('meta_key', String(255)),
        Column('meta_value', Text),
    )
