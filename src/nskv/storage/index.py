"""Namespace index maintenance.

Each namespace has a Redis set listing the keys that currently exist under it.
The maintainer only queues SADD/SREM commands onto a transaction pipeline that
the caller also uses for the primary SET/DEL, so the index update and the
record mutation always commit together.
"""

from typing import Any

from nskv.storage.keys import decompose, index_key


class IndexMaintainer:
    """Keeps namespace index sets in step with record existence.

    Attributes:
        prefix: Reserved prefix of the index set keys
    """

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix

    def set_key_for(self, namespace: str) -> str:
        """Return the index set key for a namespace."""
        return index_key(namespace, self.prefix)

    def on_set(self, pipe: Any, key: str) -> bool:
        """Queue adding a key to its namespace index.

        Re-adding an existing member is a no-op on the server, so overwrites
        need no special handling.

        Args:
            pipe: Transaction pipeline carrying the primary SET
            key: Key being set

        Returns:
            True if an index update was queued, False for unindexed keys
        """
        parts = decompose(key)
        if parts is None:
            return False
        pipe.sadd(self.set_key_for(parts.namespace), key)
        return True

    def on_remove(self, pipe: Any, key: str) -> bool:
        """Queue removing a key from its namespace index.

        Args:
            pipe: Transaction pipeline carrying the primary DEL
            key: Key being removed

        Returns:
            True if an index update was queued, False for unindexed keys
        """
        parts = decompose(key)
        if parts is None:
            return False
        pipe.srem(self.set_key_for(parts.namespace), key)
        return True

    async def members(self, client: Any, namespace: str) -> set[str]:
        """Read the live members of a namespace index.

        A missing set reads as empty.
        """
        return await client.smembers(self.set_key_for(namespace))
