"""Redis implementation of the key-value storage contract.

RedisDatabase is the entry point used by the storage layer above. It wires
the connection manager, index maintainer, query engine and batch executor
together behind get/set/remove/find_keys/do_bulk.
"""

from collections.abc import Iterable
from typing import Any, Optional

from redis.exceptions import RedisError

from nskv.config import RedisSettings
from nskv.errors import InvalidValueError, ReservedKeyError, TransientStoreError
from nskv.observability.logging import get_logger
from nskv.storage.batch import BatchExecutor, OperationLike
from nskv.storage.connection import ClientFactory, ConnectionManager
from nskv.storage.index import IndexMaintainer
from nskv.storage.keys import is_reserved
from nskv.storage.query import QueryEngine

logger = get_logger(__name__)


class RedisDatabase:
    """Key-value store over Redis with namespace indexes and atomic batches.

    Example:
        >>> async with RedisDatabase(RedisSettings(host="localhost")) as db:
        ...     await db.set("pad:foo", '{"text": "hi"}')
        ...     await db.find_keys("pad:*", "*:*:*")
        ['pad:foo']
    """

    def __init__(
        self,
        settings: Optional[RedisSettings] = None,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        """Initialize the database without connecting.

        Args:
            settings: Connection settings (default: RedisSettings())
            client_factory: Optional factory for the Redis client
        """
        self.settings = settings or RedisSettings()
        self.connection = ConnectionManager(self.settings, client_factory=client_factory)
        self.index = IndexMaintainer(self.settings.index_prefix)
        self.query = QueryEngine(self.connection, self.index)
        self.batch = BatchExecutor(self.connection, self.index)

    async def __aenter__(self) -> "RedisDatabase":
        await self.init()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def init(self) -> None:
        """Connect to Redis; see ConnectionManager.init()."""
        await self.connection.init()

    async def close(self) -> None:
        """Close the connection; see ConnectionManager.close()."""
        await self.connection.close()

    async def get(self, key: str) -> Optional[str]:
        """Get the value stored under a key.

        Args:
            key: Key to read

        Returns:
            The stored value, or None if the key does not exist

        Raises:
            InvalidValueError: If the stored value is not UTF-8 text
            TransientStoreError: If the store call fails
        """
        client = self.connection.client
        try:
            return await client.get(key)
        except UnicodeDecodeError as e:
            logger.warning("redis_get_undecodable", key=key)
            raise InvalidValueError(key, "stored value is not UTF-8 text") from e
        except RedisError as e:
            logger.warning("redis_get_failed", key=key, error=str(e))
            raise TransientStoreError("GET", str(e), key=key) from e

    async def set(self, key: str, value: str) -> None:
        """Store a value and add the key to its namespace index.

        Both writes share one transaction. Keys that are not namespaced are
        stored without indexing.

        Args:
            key: Key to write
            value: Serialized text value

        Raises:
            InvalidValueError: If the value is not a str
            ReservedKeyError: If the key lies in the index keyspace
            TransientStoreError: If the store call fails
        """
        if not isinstance(value, str):
            raise InvalidValueError(key, f"expected str, got {type(value).__name__}")
        self._check_writable(key)
        client = self.connection.client
        try:
            async with client.pipeline(transaction=True) as pipe:
                self.index.on_set(pipe, key)
                pipe.set(key, value)
                await pipe.execute()
        except RedisError as e:
            logger.warning("redis_set_failed", key=key, error=str(e))
            raise TransientStoreError("SET", str(e), key=key) from e

    async def remove(self, key: str) -> None:
        """Delete a key and drop it from its namespace index.

        Removing a missing key is not an error.

        Raises:
            ReservedKeyError: If the key lies in the index keyspace
            TransientStoreError: If the store call fails
        """
        self._check_writable(key)
        client = self.connection.client
        try:
            async with client.pipeline(transaction=True) as pipe:
                self.index.on_remove(pipe, key)
                pipe.delete(key)
                await pipe.execute()
        except RedisError as e:
            logger.warning("redis_remove_failed", key=key, error=str(e))
            raise TransientStoreError("DEL", str(e), key=key) from e

    async def find_keys(self, pattern: str, exclusion_pattern: Optional[str] = None) -> list[str]:
        """Find keys matching a pattern; see QueryEngine.find_keys()."""
        return await self.query.find_keys(pattern, exclusion_pattern)

    async def do_bulk(self, operations: Iterable[OperationLike]) -> None:
        """Apply set/remove operations atomically; see BatchExecutor.commit()."""
        await self.batch.commit(operations)

    def _check_writable(self, key: str) -> None:
        if is_reserved(key, self.settings.index_prefix):
            raise ReservedKeyError(key, self.settings.index_prefix)
