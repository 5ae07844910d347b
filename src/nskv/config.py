"""Connection settings for the Redis storage adapter.

This module provides the settings model consumed by the connection manager,
and a loader that reads the same settings from environment variables.
"""

import os
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_INDEX_PREFIX = "ueberDB"


class RedisSettings(BaseModel):
    """Settings for a single Redis connection.

    Attributes:
        host: Redis server hostname
        port: Redis server port
        password: Credential sent with AUTH (sensitive - not logged)
        database: Logical database index sent with SELECT
        socket: Unix socket path (legacy initialization path)
        client_options: Extra redis-py client keyword arguments (legacy initialization path)
        index_prefix: Prefix of the reserved keyspace holding namespace index sets

    Example:
        >>> settings = RedisSettings(host="cache.internal", database=2)
        >>> settings.uses_legacy_init
        False
    """

    model_config = ConfigDict(frozen=True)

    host: str = Field(default="localhost", min_length=1, description="Redis hostname")
    port: int = Field(default=6379, ge=1, le=65535, description="Redis port")
    password: Optional[str] = Field(default=None, repr=False, description="AUTH credential")
    database: Optional[int] = Field(default=None, ge=0, description="Logical database index")
    socket: Optional[str] = Field(default=None, description="Unix socket path (legacy)")
    client_options: Optional[dict[str, Any]] = Field(
        default=None, description="Extra redis-py client options (legacy)"
    )
    index_prefix: str = Field(
        default=DEFAULT_INDEX_PREFIX,
        min_length=1,
        description="Prefix for namespace index set keys",
    )

    @field_validator("index_prefix")
    @classmethod
    def validate_index_prefix(cls, value: str) -> str:
        """Validate the index prefix is a single key segment.

        Args:
            value: The prefix to validate

        Returns:
            The validated prefix

        Raises:
            ValueError: If the prefix contains a colon
        """
        if ":" in value:
            raise ValueError("index_prefix must not contain ':'")
        return value

    @property
    def uses_legacy_init(self) -> bool:
        """Whether the legacy socket/client_options initialization path applies."""
        return self.socket is not None or self.client_options is not None

    @property
    def target(self) -> str:
        """Human-readable description of the connection target."""
        if self.socket is not None:
            return f"unix://{self.socket}"
        return f"{self.host}:{self.port}"


def load_settings_from_env() -> RedisSettings:
    """Load Redis settings from environment variables.

    Automatically loads variables from a .env file if present.

    Reads:
    - NSKV_REDIS_HOST: Redis hostname
    - NSKV_REDIS_PORT: Redis port
    - NSKV_REDIS_PASSWORD: AUTH credential
    - NSKV_REDIS_DATABASE: Logical database index
    - NSKV_REDIS_SOCKET: Unix socket path
    - NSKV_INDEX_PREFIX: Prefix for namespace index set keys

    Returns:
        RedisSettings loaded from environment; unset variables keep defaults
    """
    load_dotenv()

    values: dict[str, Any] = {}
    env_map = {
        "host": "NSKV_REDIS_HOST",
        "port": "NSKV_REDIS_PORT",
        "password": "NSKV_REDIS_PASSWORD",
        "database": "NSKV_REDIS_DATABASE",
        "socket": "NSKV_REDIS_SOCKET",
        "index_prefix": "NSKV_INDEX_PREFIX",
    }
    for field_name, env_var in env_map.items():
        raw = os.getenv(env_var)
        if raw:
            values[field_name] = raw

    # pydantic coerces port/database from their string form
    return RedisSettings(**values)
