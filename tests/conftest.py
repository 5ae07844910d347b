"""Pytest configuration and shared fixtures for the test suite."""

import asyncio
import fnmatch
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from types import SimpleNamespace
from typing import Any, AsyncGenerator, Optional

import pytest
from redis.exceptions import AuthenticationError, ConnectionError, ExecAbortError, ResponseError

from nskv.config import RedisSettings
from nskv.observability.logging import get_correlation_id
from nskv.storage.database import RedisDatabase

# Configure pytest-asyncio to use auto mode
pytest_plugins = ["pytest_asyncio"]


class MockConnectionPool:
    """Mock blocking pool holding exactly one connection.

    Checkouts queue on a FIFO lock and every command yields to the event
    loop while it holds the connection, so concurrent requests interleave
    the way they would on a real socket. The counters record how the
    connection was used.
    """

    def __init__(self, client: "MockRedisClient") -> None:
        self._client = client
        self.connection_kwargs: dict[str, Any] = {}
        self.max_connections = 1
        self.connections_created = 0
        self.checkouts = 0
        self.in_use = 0
        self.max_in_use = 0
        self._connection: Optional[SimpleNamespace] = None
        self._lock = asyncio.Lock()

    async def get_connection(self, command_name: str, *keys: Any, **options: Any) -> Any:
        await self._lock.acquire()
        if self._connection is None:
            self._client.calls.append("CONNECT")
            if self._client.refuse_connection:
                self._lock.release()
                raise ConnectionError("Error 111 connecting to localhost:6379. Connection refused.")
            self._connection = SimpleNamespace(number=1)
            self.connections_created += 1
            self._client.initialized = True
        self.checkouts += 1
        self.in_use += 1
        self.max_in_use = max(self.max_in_use, self.in_use)
        return self._connection

    async def release(self, connection: Any) -> None:
        assert connection is self._connection
        self.in_use -= 1
        self._lock.release()

    @asynccontextmanager
    async def checkout(self) -> AsyncIterator[Any]:
        """Hold the connection for one command or transaction."""
        connection = await self.get_connection("_")
        try:
            await asyncio.sleep(0)
            yield connection
        finally:
            await self.release(connection)


class MockPipeline:
    """Mock MULTI/EXEC transaction pipeline.

    Commands are buffered and only applied when execute() succeeds, so an
    aborted transaction leaves the mock store untouched.
    """

    def __init__(self, client: "MockRedisClient", transaction: bool) -> None:
        self._client = client
        self.transaction = transaction
        self._queued: list[tuple[str, tuple[Any, ...]]] = []
        self._poisoned = False

    async def __aenter__(self) -> "MockPipeline":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self._queued = []

    def _queue(self, command: str, *args: Any) -> "MockPipeline":
        if self._client.poison_key is not None and self._client.poison_key in args:
            # Redis discards the whole transaction when a queued command errors
            self._poisoned = True
        self._queued.append((command, args))
        return self

    def set(self, key: str, value: Any) -> "MockPipeline":
        return self._queue("SET", key, value)

    def delete(self, *keys: str) -> "MockPipeline":
        return self._queue("DEL", *keys)

    def sadd(self, name: str, *values: str) -> "MockPipeline":
        return self._queue("SADD", name, *values)

    def srem(self, name: str, *values: str) -> "MockPipeline":
        return self._queue("SREM", name, *values)

    async def execute(self) -> list[Any]:
        """Apply all buffered commands, or none of them."""
        async with self._client.connection_pool.checkout():
            self._client.correlation_ids.append(get_correlation_id())
            self._client.check_failure()
            if self._poisoned or self._client.abort_next_exec:
                self._client.abort_next_exec = False
                raise ExecAbortError("EXECABORT Transaction discarded because of previous errors.")

            self._client.transactions.append([command for command, _ in self._queued])
            return [self._client.apply(command, *args) for command, args in self._queued]


class MockRedisClient:
    """Mock redis.asyncio.Redis client for testing.

    Stores strings and sets in dictionaries and raises real redis-py
    exception types when failure modes are enabled.
    """

    def __init__(self) -> None:
        """Initialize mock Redis client."""
        self.kwargs: dict[str, Any] = {}
        self.connection_pool = MockConnectionPool(self)
        self.strings: dict[str, Any] = {}
        self.sets: dict[str, set[str]] = {}
        self.calls: list[str] = []
        self.transactions: list[list[str]] = []
        self.correlation_ids: list[Optional[str]] = []
        self.initialized = False
        self.closed = False
        self.password: Optional[str] = None
        self.db = 0
        self.refuse_connection = False
        self.reject_auth = False
        self.reject_select = False
        self.fail_close = False
        self.abort_next_exec = False
        self.poison_key: Optional[str] = None
        self._should_fail = False

    def set_failure_mode(self, should_fail: bool) -> None:
        """Set whether data commands should fail with a connection error."""
        self._should_fail = should_fail

    def check_failure(self) -> None:
        if self._should_fail:
            raise ConnectionError("Connection reset by peer")

    def apply(self, command: str, *args: Any) -> Any:
        """Apply a single command to the mock store."""
        if command == "SET":
            key, value = args
            self.strings[key] = value
            return True
        if command == "DEL":
            removed = 0
            for key in args:
                if key in self.strings:
                    del self.strings[key]
                    removed += 1
            return removed
        if command == "SADD":
            name, *members = args
            target = self.sets.setdefault(name, set())
            added = len(set(members) - target)
            target.update(members)
            return added
        if command == "SREM":
            name, *members = args
            target = self.sets.get(name, set())
            removed = len(set(members) & target)
            target.difference_update(members)
            if not target:
                # Redis drops empty sets
                self.sets.pop(name, None)
            return removed
        raise ValueError(f"Unsupported mock command: {command}")

    async def auth(self, password: str) -> bool:
        async with self.connection_pool.checkout():
            self.calls.append("AUTH")
            if self.reject_auth:
                raise AuthenticationError("invalid username-password pair or user is disabled.")
            self.password = password
            return True

    async def execute_command(self, *args: Any) -> Any:
        command = str(args[0]).upper()
        async with self.connection_pool.checkout():
            self.calls.append(command)
            if command == "SELECT":
                if self.reject_select:
                    raise ResponseError("DB index is out of range")
                self.db = int(args[1])
                return True
        raise ValueError(f"Unsupported mock command: {command}")

    async def get(self, key: str) -> Optional[str]:
        async with self.connection_pool.checkout():
            self.calls.append("GET")
            self.check_failure()
            value = self.strings.get(key)
        if isinstance(value, bytes):
            # decode_responses=True decodes replies as UTF-8
            return value.decode("utf-8")
        return value

    async def keys(self, pattern: str) -> list[str]:
        async with self.connection_pool.checkout():
            self.calls.append("KEYS")
            self.check_failure()
            every_key = list(self.strings) + list(self.sets)
            return [key for key in every_key if fnmatch.fnmatchcase(key, pattern)]

    async def smembers(self, name: str) -> set[str]:
        async with self.connection_pool.checkout():
            self.calls.append("SMEMBERS")
            self.check_failure()
            return set(self.sets.get(name, set()))

    def pipeline(self, transaction: bool = True) -> MockPipeline:
        return MockPipeline(self, transaction)

    async def aclose(self) -> None:
        self.calls.append("CLOSE")
        if self.fail_close:
            raise ConnectionError("Connection already lost")
        self.closed = True


@pytest.fixture
def mock_redis() -> MockRedisClient:
    """Create a mock Redis client."""
    return MockRedisClient()


@pytest.fixture
def client_factory(mock_redis: MockRedisClient):
    """Create a client factory that records its kwargs and returns the mock."""

    def factory(**kwargs: Any) -> MockRedisClient:
        mock_redis.kwargs = kwargs
        return mock_redis

    return factory


@pytest.fixture
async def db(client_factory) -> AsyncGenerator[RedisDatabase, None]:
    """Create a ready RedisDatabase backed by the mock client.

    Yields:
        Initialized RedisDatabase instance
    """
    database = RedisDatabase(RedisSettings(), client_factory=client_factory)
    await database.init()

    yield database

    await database.close()
