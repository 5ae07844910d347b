"""Callback-style adapter over RedisDatabase.

Some storage layers drive their backends with ``(error, result)`` callbacks
instead of awaiting coroutines. CallbackDatabase schedules each operation as
a task on the running loop and reports its outcome through the callback
exactly once.
"""

import asyncio
from collections.abc import Coroutine, Iterable
from typing import Any, Callable, Optional

from nskv.observability.logging import get_logger
from nskv.storage.batch import OperationLike
from nskv.storage.database import RedisDatabase

logger = get_logger(__name__)

Callback = Callable[[Optional[BaseException], Any], None]


class CallbackDatabase:
    """Exposes RedisDatabase operations with completion callbacks.

    Every method must be called from within a running event loop. Tasks are
    created in call order and share one connection, so requests reach Redis
    in the order they were submitted.

    Example:
        >>> cb_db = CallbackDatabase(RedisDatabase(settings))
        >>> cb_db.init(lambda err, _: print("ready" if err is None else err))
    """

    def __init__(self, database: RedisDatabase) -> None:
        self.database = database

    def init(self, callback: Callback) -> "asyncio.Task[Any]":
        return self._submit(self.database.init(), callback)

    def get(self, key: str, callback: Callback) -> "asyncio.Task[Any]":
        return self._submit(self.database.get(key), callback)

    def set(self, key: str, value: str, callback: Callback) -> "asyncio.Task[Any]":
        return self._submit(self.database.set(key, value), callback)

    def remove(self, key: str, callback: Callback) -> "asyncio.Task[Any]":
        return self._submit(self.database.remove(key), callback)

    def find_keys(
        self, pattern: str, exclusion_pattern: Optional[str], callback: Callback
    ) -> "asyncio.Task[Any]":
        return self._submit(self.database.find_keys(pattern, exclusion_pattern), callback)

    def do_bulk(
        self, operations: Iterable[OperationLike], callback: Callback
    ) -> "asyncio.Task[Any]":
        # Materialize now so a lazy iterable cannot change before the task runs
        return self._submit(self.database.do_bulk(list(operations)), callback)

    def close(self, callback: Callback) -> "asyncio.Task[Any]":
        return self._submit(self.database.close(), callback)

    def _submit(
        self, coro: Coroutine[Any, Any, Any], callback: Callback
    ) -> "asyncio.Task[Any]":
        """Schedule an operation and deliver its outcome to the callback.

        Args:
            coro: Operation coroutine
            callback: Receives (None, result) on success or (error, None) on failure

        Returns:
            The scheduled task
        """
        task = asyncio.get_running_loop().create_task(coro)

        def _deliver(done: "asyncio.Task[Any]") -> None:
            if done.cancelled():
                callback(asyncio.CancelledError(), None)
                return
            error = done.exception()
            if error is not None:
                logger.debug("callback_operation_failed", error=str(error))
                callback(error, None)
            else:
                callback(None, done.result())

        task.add_done_callback(_deliver)
        return task
