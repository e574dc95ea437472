"""DynamoDB-backed transient cache for landing page event lists."""
import json
import logging
import time
import zlib
from typing import Any, Optional

import boto3
from boto3.dynamodb.types import Binary
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

DAY_IN_SECONDS = 24 * 60 * 60

# DynamoDB rejects items over 400 KB. Larger values are stored zlib-compressed.
ITEM_SIZE_LIMIT = 400 * 1024
COMPRESSION_THRESHOLD = 64 * 1024


class TransientCache:
    """
    Key/value cache with a per-entry expiration.

    Entries carry a ``ttl`` attribute so DynamoDB's TTL sweeper removes them
    eventually. The sweeper can lag, so reads also check the expiration.
    """

    def __init__(self, table_name: str, dynamodb=None):
        """
        Initialize DynamoDB table reference.

        Args:
            table_name: Name of the DynamoDB table
            dynamodb: Optional boto3 DynamoDB resource
        """
        self.table_name = table_name
        self.dynamodb = dynamodb or boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized TransientCache for table: {table_name}")

    def get(self, key: str) -> Optional[Any]:
        """
        Get a cached value.

        Args:
            key: Cache key

        Returns:
            The cached value, or None on a miss or an expired entry
        """
        try:
            response = self.table.get_item(Key={'cache_key': key})
        except ClientError as e:
            logger.error(f"Error reading cache key {key}: {e}")
            raise

        item = response.get('Item')
        if not item:
            logger.debug(f"Cache miss: {key}")
            return None

        if int(item.get('ttl', 0)) <= int(time.time()):
            logger.debug(f"Cache entry expired: {key}")
            return None

        try:
            return json.loads(self._decode(item['value']))
        except (KeyError, ValueError, zlib.error) as e:
            logger.warning(f"Discarding unreadable cache entry {key}: {e}")
            return None

    def set(self, key: str, value: Any, expiration: int = DAY_IN_SECONDS) -> None:
        """
        Store a value, replacing any existing entry.

        Serialized values above 64 KB are compressed so that a long event
        list stays under the DynamoDB item size limit.

        Args:
            key: Cache key
            value: JSON-serializable value
            expiration: Seconds until the entry expires
        """
        serialized = json.dumps(value).encode('utf-8')
        stored = self._encode(serialized)
        stored_size = len(stored.value) if isinstance(stored, Binary) else len(serialized)

        if stored_size > ITEM_SIZE_LIMIT:
            logger.warning(
                f"Cache value for {key} is {stored_size} bytes, over the "
                f"{ITEM_SIZE_LIMIT} byte item limit"
            )

        now = int(time.time())
        item = {
            'cache_key': key,
            'value': stored,
            'last_updated': now,
            'ttl': now + expiration
        }

        try:
            self.table.put_item(Item=item)
        except ClientError as e:
            logger.error(f"Error writing cache key {key}: {e}")
            raise

        logger.debug(
            f"Cached {key} for {expiration} seconds "
            f"({len(serialized)} bytes, {stored_size} stored)"
        )

    @staticmethod
    def _encode(serialized: bytes):
        if len(serialized) <= COMPRESSION_THRESHOLD:
            return serialized.decode('utf-8')
        return Binary(zlib.compress(serialized))

    @staticmethod
    def _decode(stored) -> str:
        if isinstance(stored, str):
            return stored
        raw = stored.value if isinstance(stored, Binary) else bytes(stored)
        return zlib.decompress(raw).decode('utf-8')
