"""Connection lifecycle management for the Redis storage adapter.

The connection manager owns the single Redis connection shared by every
adapter operation. It sequences connect, authenticate and select-database
before the handle becomes ready, and owns shutdown.
"""

from typing import Any, Callable, Optional

from redis.asyncio import BlockingConnectionPool, Redis, UnixDomainSocketConnection
from redis.exceptions import RedisError

from nskv.config import RedisSettings
from nskv.errors import (
    AuthError,
    CloseError,
    ConnectionStateError,
    SelectError,
    StoreConnectionError,
)
from nskv.observability.logging import get_logger
from nskv.storage.models import ConnectionState

logger = get_logger(__name__)

ClientFactory = Callable[..., Any]


def create_client(**connection_kwargs: Any) -> Redis:
    """Build a Redis client backed by exactly one connection.

    Plain commands and transaction pipelines both check the connection out
    of a blocking pool of size one, so they reach the server in the order
    they were submitted. Waiters never time out.

    Args:
        **connection_kwargs: Keyword arguments for the pooled connection

    Returns:
        Redis client owning its pool
    """
    pool = BlockingConnectionPool(max_connections=1, timeout=None, **connection_kwargs)
    return Redis.from_pool(pool)


class ConnectionManager:
    """Owner of the single Redis connection handle.

    Redis processes the commands of one connection in arrival order, and the
    pool hands that connection to one request at a time, first come first
    served. No other locking is done here.

    Attributes:
        settings: Connection settings
        state: Current lifecycle state

    Example:
        >>> manager = ConnectionManager(RedisSettings(password="secret", database=1))
        >>> await manager.init()
        >>> await manager.client.get("pad:foo")
        >>> await manager.close()
    """

    def __init__(
        self,
        settings: RedisSettings,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        """Initialize the connection manager without connecting.

        Args:
            settings: Connection settings
            client_factory: Callable building the client from connection keyword
                arguments (default: create_client)
        """
        self.settings = settings
        self.state = ConnectionState.UNINITIALIZED
        self._client_factory = client_factory or create_client
        self._client: Optional[Any] = None

    @property
    def is_ready(self) -> bool:
        """Whether the handle can serve operations."""
        return self.state == ConnectionState.READY

    @property
    def client(self) -> Any:
        """The ready Redis client.

        Raises:
            ConnectionStateError: If the handle is not ready
        """
        if self.state != ConnectionState.READY or self._client is None:
            raise ConnectionStateError(self.state.value, "use client")
        return self._client

    def client_kwargs(self) -> dict[str, Any]:
        """Build the keyword arguments for the pooled connection.

        The legacy path applies when a socket path or raw client options are
        configured; client options are passed through as-is. Credentials and
        database are never passed here because init() sends AUTH and SELECT
        as explicit steps.

        Returns:
            Keyword arguments for the client factory
        """
        if self.settings.uses_legacy_init:
            kwargs = dict(self.settings.client_options or {})
            if self.settings.socket is not None:
                kwargs["connection_class"] = UnixDomainSocketConnection
                kwargs["path"] = self.settings.socket
            else:
                kwargs["host"] = self.settings.host
                kwargs["port"] = self.settings.port
        else:
            kwargs = {"host": self.settings.host, "port": self.settings.port}

        # Values are text; non-UTF-8 data is rejected rather than passed through
        kwargs["decode_responses"] = True
        return kwargs

    async def init(self) -> None:
        """Connect, authenticate and select the database, strictly in order.

        Authentication is skipped when no password is configured, and database
        selection when no database is configured. A failed step closes the
        client and leaves the handle in the state it failed in, which is
        unusable; nothing is retried.

        Raises:
            ConnectionStateError: If init() was already called
            StoreConnectionError: If the transport cannot be established
            AuthError: If the credential is rejected
            SelectError: If the database index is rejected
        """
        if self.state != ConnectionState.UNINITIALIZED:
            raise ConnectionStateError(self.state.value, "init")

        target = self.settings.target
        self.state = ConnectionState.CONNECTING
        logger.debug(
            "redis_connecting",
            target=target,
            legacy_init=self.settings.uses_legacy_init,
        )
        try:
            self._client = self._client_factory(**self.client_kwargs())
            # PING would be refused before AUTH; opening the connection is enough
            pool = self._client.connection_pool
            connection = await pool.get_connection("_")
            await pool.release(connection)
        except RedisError as e:
            logger.error("redis_connect_failed", target=target, error=str(e))
            await self._discard_client()
            raise StoreConnectionError(target, str(e)) from e

        if self.settings.password is not None:
            self.state = ConnectionState.AUTHENTICATING
            try:
                await self._client.auth(self.settings.password)
            except RedisError as e:
                logger.error("redis_auth_failed", target=target, error=str(e))
                await self._discard_client()
                raise AuthError(str(e)) from e

        if self.settings.database is not None:
            self.state = ConnectionState.SELECTING_DATABASE
            try:
                await self._client.execute_command("SELECT", self.settings.database)
            except RedisError as e:
                logger.error(
                    "redis_select_failed",
                    target=target,
                    database=self.settings.database,
                    error=str(e),
                )
                await self._discard_client()
                raise SelectError(self.settings.database, str(e)) from e

        self.state = ConnectionState.READY
        logger.info("redis_ready", target=target, database=self.settings.database)

    async def _discard_client(self) -> None:
        """Close the client of a handle whose init() failed.

        The init failure is what the caller needs to see, so a close failure
        here is only logged.
        """
        client, self._client = self._client, None
        if client is None:
            return
        try:
            await client.aclose()
        except RedisError as e:
            logger.warning("redis_discard_failed", target=self.settings.target, error=str(e))

    async def close(self) -> None:
        """Close the connection gracefully.

        Closing an already closed handle is a no-op. Callers must drain
        in-flight requests first.

        Raises:
            CloseError: If the client fails to shut down
        """
        if self.state == ConnectionState.CLOSED:
            return

        client = self._client
        self.state = ConnectionState.CLOSED
        self._client = None
        if client is None:
            return

        try:
            await client.aclose()
        except RedisError as e:
            logger.warning("redis_close_failed", target=self.settings.target, error=str(e))
            raise CloseError(str(e)) from e

        logger.info("redis_closed", target=self.settings.target)
