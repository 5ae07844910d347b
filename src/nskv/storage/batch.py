"""Atomic batch execution.

A batch of set/remove operations, together with the index updates they
imply, is sent as one MULTI/EXEC transaction. Either every operation takes
effect or, if the server aborts the transaction, none do.
"""

from collections.abc import Iterable, Mapping
from typing import Any, Union

from pydantic import ValidationError
from redis.exceptions import RedisError

from nskv.errors import BatchError, InvalidOperationError
from nskv.observability.logging import correlation_scope, get_logger
from nskv.storage.connection import ConnectionManager
from nskv.storage.index import IndexMaintainer
from nskv.storage.keys import is_reserved
from nskv.storage.models import Operation, OperationKind

logger = get_logger(__name__)

OperationLike = Union[Operation, Mapping[str, Any]]


class BatchExecutor:
    """Applies ordered batches of mutations as a single transaction.

    Attributes:
        connection: Connection manager owning the client
        index: Index maintainer queuing index updates
    """

    def __init__(self, connection: ConnectionManager, index: IndexMaintainer) -> None:
        self.connection = connection
        self.index = index

    def validate(self, operations: Iterable[OperationLike]) -> list[Operation]:
        """Validate batch items before anything is sent.

        Args:
            operations: Operation models or mappings with key, type/kind and value

        Returns:
            Validated operations in input order

        Raises:
            InvalidOperationError: If an item is malformed or targets a reserved key
        """
        validated: list[Operation] = []
        for position, item in enumerate(operations):
            try:
                operation = (
                    item if isinstance(item, Operation) else Operation.model_validate(item)
                )
            except ValidationError as e:
                raise InvalidOperationError(position, str(e)) from e

            if is_reserved(operation.key, self.index.prefix):
                raise InvalidOperationError(
                    position, f"key '{operation.key}' is reserved for namespace indexes"
                )
            validated.append(operation)
        return validated

    async def commit(self, operations: Iterable[OperationLike]) -> None:
        """Apply operations atomically, in input order.

        Repeated sets to the same key resolve last-write-wins because the
        transaction replays commands in order. An empty batch submits nothing.
        Log events of one commit share a correlation ID; the caller's ID is
        kept when one is set.

        Args:
            operations: Operation models or mappings with key, type/kind and value

        Raises:
            InvalidOperationError: If an item is invalid; nothing is applied
            BatchError: If the server aborts the transaction; nothing is applied
        """
        batch = self.validate(operations)
        if not batch:
            return

        client = self.connection.client
        with correlation_scope():
            logger.debug("redis_batch_submitting", size=len(batch))
            try:
                async with client.pipeline(transaction=True) as pipe:
                    for operation in batch:
                        if operation.kind == OperationKind.SET:
                            self.index.on_set(pipe, operation.key)
                            pipe.set(operation.key, operation.value)
                        else:
                            self.index.on_remove(pipe, operation.key)
                            pipe.delete(operation.key)
                    await pipe.execute()
            except RedisError as e:
                logger.error("redis_batch_aborted", size=len(batch), error=str(e))
                raise BatchError(f"Batch of {len(batch)} operations aborted: {e}") from e

            logger.debug("redis_batch_committed", size=len(batch))
