"""Lookups against the network's site directory."""
import logging
import re
from typing import List

from sqlalchemy import select

from network.context import NetworkContext
from processor.models import Site

logger = logging.getLogger(__name__)

SLUG_SUFFIX_PATTERN = re.compile(r'^(.*)(-\d+)$')


def get_city_sites(context: NetworkContext) -> List[Site]:
    """
    Get every public, live sub-site of the events network.

    Args:
        context: Network context

    Returns:
        List of Site objects, excluding the network root
    """
    blogs = context.blogs
    query = (
        select(blogs.c.blog_id, blogs.c.path)
        .where(
            blogs.c.site_id == context.network_id,
            blogs.c.path != '/',
            blogs.c.public == 1,
            blogs.c.archived == 0,
            blogs.c.deleted == 0,
        )
        .order_by(blogs.c.blog_id)
    )

    with context.engine.connect() as connection:
        return [Site(blog_id=row.blog_id, path=row.path) for row in connection.execute(query)]


def strip_slug_suffix(slug: str) -> str:
    """Strip a ``-2``, ``-3``, ``-n`` disambiguation suffix from a site slug."""
    return SLUG_SUFFIX_PATTERN.sub(r'\1', slug)


def get_known_city_landing_request_uris(context: NetworkContext) -> List[str]:
    """
    Get a list of all known city landing page request URIs.

    For example, ``/rome/``, ``/rome/training/``, ``/rome/2023/``. Only sites
    whose path is exactly ``city/year/slug`` contribute.

    Args:
        context: Network context

    Returns:
        Deduplicated list of request URIs
    """
    city_landing_pages = {}

    for site in get_city_sites(context):
        parts = site.path.strip('/').split('/')

        if len(parts) != 3:
            continue

        city, year, slug = parts
        title = strip_slug_suffix(slug)
        year = int(year) if year.isdigit() else 0

        city_landing_pages[f'/{city}/'] = True
        city_landing_pages[f'/{city}/{year}/'] = True
        city_landing_pages[f'/{city}/{title}/'] = True

    logger.info(f"Found {len(city_landing_pages)} city landing request URIs")
    return list(city_landing_pages)


def build_city_landing_regex(request_uri: str) -> str:
    """
    Build the site path pattern for a city landing request URI.

    /rome/          -> All sites in Rome
    /rome/training/ -> All training sites in Rome, including ``training-2`` etc
    /rome/2023/     -> All sites in Rome in 2023

    Args:
        request_uri: Normalized request URI

    Returns:
        Regular expression for the site path, or an empty string when the URI
        doesn't have one or two segments
    """
    request = request_uri.strip('/').split('/')

    if len(request) not in (1, 2) or not request[0]:
        return ''

    city = re.escape(request[0])
    second = request[1] if len(request) == 2 else ''

    if second.isdigit() and len(second) == 4:
        return f'^/{city}/{second}/'
    if second:
        return f'^/{city}/[0-9]{{4}}/{re.escape(second)}(-[0-9]+)?/'
    return f'^/{city}/'


def get_city_landing_sites(context: NetworkContext, request_uri: str, limit: int) -> List[int]:
    """
    Get the IDs of sites that match the given request URI.

    Matches are restricted to the events network and to public, live sites,
    newest first.

    Args:
        context: Network context
        request_uri: Normalized request URI
        limit: Maximum number of sites

    Returns:
        List of blog IDs
    """
    regex = build_city_landing_regex(request_uri)
    if not regex:
        return []

    blogs = context.blogs
    query = (
        select(blogs.c.blog_id)
        .where(
            blogs.c.site_id == context.network_id,
            blogs.c.path.regexp_match(regex),
            blogs.c.public == 1,
            blogs.c.archived == 0,
            blogs.c.deleted == 0,
        )
        .order_by(blogs.c.blog_id.desc())
        .limit(limit)
    )

    with context.engine.connect() as connection:
        site_ids = [row.blog_id for row in connection.execute(query)]

    logger.debug(f"Request URI {request_uri} matched {len(site_ids)} sites")
    return site_ids
