"""Prefix query resolution.

Redis can only list keys with KEYS, which scans the whole keyspace. The one
query the storage layer issues constantly, "every key in namespace X", is
served from the namespace index instead. It is requested by passing the
exclusion pattern ``*:*:*``, which also tells us the caller does not want
deeper keys such as ``pad:foo:revs:0``.
"""

from typing import Optional

from redis.exceptions import RedisError

from nskv.errors import ExclusionUnsupportedError, PatternUnsupportedError, TransientStoreError
from nskv.observability.logging import get_logger
from nskv.storage.connection import ConnectionManager
from nskv.storage.index import IndexMaintainer
from nskv.storage.keys import parse_namespace_pattern

logger = get_logger(__name__)

INDEXED_EXCLUSION_PATTERN = "*:*:*"


class QueryEngine:
    """Resolves find_keys requests by native scan or namespace index.

    Attributes:
        connection: Connection manager owning the client
        index: Index maintainer naming the index sets
    """

    def __init__(self, connection: ConnectionManager, index: IndexMaintainer) -> None:
        self.connection = connection
        self.index = index

    async def find_keys(self, pattern: str, exclusion_pattern: Optional[str] = None) -> list[str]:
        """Find keys matching a pattern.

        Without an exclusion pattern the pattern is handed to KEYS. With the
        exclusion pattern ``*:*:*`` only ``<namespace>:*`` patterns are
        accepted and the namespace index is read. Unsupported shapes fail
        rather than falling back to a scan that could return wrong results.

        Args:
            pattern: Glob-style key pattern
            exclusion_pattern: None or ``*:*:*``

        Returns:
            Matching keys; index results are sorted

        Raises:
            PatternUnsupportedError: If the pattern cannot be served by the index
            ExclusionUnsupportedError: If the exclusion pattern is not ``*:*:*``
            TransientStoreError: If the store call fails
        """
        if exclusion_pattern is None:
            return await self._scan(pattern)

        if exclusion_pattern != INDEXED_EXCLUSION_PATTERN:
            raise ExclusionUnsupportedError(exclusion_pattern)

        namespace = parse_namespace_pattern(pattern)
        if namespace is None:
            raise PatternUnsupportedError(pattern)

        client = self.connection.client
        try:
            members = await self.index.members(client, namespace)
        except RedisError as e:
            logger.warning("redis_index_read_failed", namespace=namespace, error=str(e))
            raise TransientStoreError("SMEMBERS", str(e)) from e
        return sorted(members)

    async def _scan(self, pattern: str) -> list[str]:
        client = self.connection.client
        logger.debug("redis_keyspace_scan", pattern=pattern)
        try:
            return list(await client.keys(pattern))
        except RedisError as e:
            logger.warning("redis_keys_failed", pattern=pattern, error=str(e))
            raise TransientStoreError("KEYS", str(e)) from e
