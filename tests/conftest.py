"""Shared fixtures: an in-memory network database and a mock cache table."""
import json
from datetime import datetime

import boto3
import pytest
from moto import mock_aws

from network.context import NetworkContext
from storage.transient_cache import TransientCache

NETWORK_ID = 2
ROOT_BLOG_ID = 5
NOW = datetime(2026, 1, 1, 0, 0, 0)


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mocked AWS credentials for moto."""
    env_vars = {
        'AWS_ACCESS_KEY_ID': 'testing',
        'AWS_SECRET_ACCESS_KEY': 'testing',
        'AWS_SECURITY_TOKEN': 'testing',
        'AWS_SESSION_TOKEN': 'testing',
        'AWS_DEFAULT_REGION': 'us-east-1'
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def cache(aws_credentials):
    """Create a TransientCache backed by a mock DynamoDB table."""
    with mock_aws():
        dynamodb = boto3.resource('dynamodb', region_name='us-east-1')
        dynamodb.create_table(
            TableName='test-events-landing-cache',
            KeySchema=[
                {'AttributeName': 'cache_key', 'KeyType': 'HASH'}
            ],
            AttributeDefinitions=[
                {'AttributeName': 'cache_key', 'AttributeType': 'S'}
            ],
            BillingMode='PAY_PER_REQUEST'
        )

        yield TransientCache('test-events-landing-cache', dynamodb=dynamodb)


def add_site(context, blog_id, path, site_id=NETWORK_ID, public=1, archived=0, deleted=0):
    with context.engine.begin() as connection:
        connection.execute(context.blogs.insert().values(
            blog_id=blog_id,
            site_id=site_id,
            path=path,
            public=public,
            archived=archived,
            deleted=deleted
        ))


def add_conference(context, post_id, title, site_id, status='wcpt-scheduled', **meta):
    with context.engine.begin() as connection:
        connection.execute(context.posts.insert().values(
            ID=post_id,
            post_title=title,
            post_type='wordcamp',
            post_status=status
        ))

        meta['_site_id'] = str(site_id)
        connection.execute(context.postmeta.insert(), [
            {'post_id': post_id, 'meta_key': key, 'meta_value': value}
            for key, value in meta.items()
        ])


def add_event(context, event_id, event_type, title, date_utc, tz_offset=0, status='scheduled'):
    with context.engine.begin() as connection:
        connection.execute(context.events.insert().values(
            id=event_id,
            type=event_type,
            title=title,
            url=f'https://events.example.org/{event_id}/',
            meetup='WordPress Rome' if event_type == 'meetup' else '',
            location='Rome, Italy',
            latitude=41.9,
            longitude=12.5,
            date_utc=date_utc,
            date_utc_offset=tz_offset,
            status=status
        ))


def coordinates(latitude, longitude):
    return json.dumps({'latitude': latitude, 'longitude': longitude})


@pytest.fixture
def network_context():
    """Create an empty in-memory network database."""
    context = NetworkContext.from_url(
        'sqlite://',
        network_id=NETWORK_ID,
        root_blog_id=ROOT_BLOG_ID
    )
    context.create_tables()
    yield context
    context.engine.dispose()


@pytest.fixture
def populated_network(network_context):
    """Network with a handful of city sites and their conference posts."""
    add_site(network_context, 1, '/')
    add_site(network_context, 10, '/rome/2023/training/')
    add_site(network_context, 11, '/rome/2024/training-2/')
    add_site(network_context, 12, '/rome/2024/contributor-day/')
    add_site(network_context, 13, '/paris/2024/')
    add_site(network_context, 14, '/rome/2025/training/', archived=1)
    add_site(network_context, 15, '/romesville/2024/main/')
    add_site(network_context, 16, '/rome/2024/other/', site_id=3)

    add_conference(
        network_context, 100, 'WordCamp Rome Training 2023', 10,
        _venue_coordinates=coordinates(41.89, 12.49),
        **{
            'Event Timezone': 'Europe/Rome',
            'Start Date (YYYY-mm-dd)': '1685577600',
            'URL': 'https://rome.example.org/2023/training/',
            'Location': 'Rome, Italy'
        }
    )
    add_conference(
        network_context, 101, 'WordCamp Rome Training 2024', 11,
        _host_coordinates=coordinates(41.9, 12.5),
        **{
            'Event Timezone': 'Europe/Rome',
            'Start Date (YYYY-mm-dd)': '1706745600',
            'URL': 'https://rome.example.org/2024/training-2/',
            'Location': 'Rome, Italy'
        }
    )
    add_conference(
        network_context, 102, 'Rome Contributor Day', 12,
        _venue_coordinates=coordinates(41.91, 12.51),
        **{
            'Start Date (YYYY-mm-dd)': '1717200000',
            'URL': 'https://rome.example.org/2024/contributor-day/',
            'Location': 'Rome, Italy'
        }
    )
    add_conference(
        network_context, 103, 'WordCamp Paris', 13,
        **{
            'Event Timezone': 'Europe/Paris',
            'Start Date (YYYY-mm-dd)': '1717200000',
            'URL': 'https://paris.example.org/2024/',
            'Location': 'Paris, France'
        }
    )
    add_conference(
        network_context, 104, 'WordCamp Romesville', 15,
        _venue_coordinates=coordinates(10.0, 10.0),
        **{'Start Date (YYYY-mm-dd)': '1717200000'}
    )

    return network_context
