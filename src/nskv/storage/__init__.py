"""Redis storage adapter with namespace indexes and atomic batches.

This package provides the components behind RedisDatabase: the key namespace
codec, the connection manager, the index maintainer, the query engine and the
batch executor, plus a callback-style adapter for callback-driven callers.
"""

from nskv.storage.batch import BatchExecutor
from nskv.storage.callbacks import CallbackDatabase
from nskv.storage.connection import ConnectionManager
from nskv.storage.database import RedisDatabase
from nskv.storage.index import IndexMaintainer
from nskv.storage.keys import KeyParts, decompose, index_key, parse_namespace_pattern
from nskv.storage.models import ConnectionState, Operation, OperationKind
from nskv.storage.query import QueryEngine

__all__ = [
    "BatchExecutor",
    "CallbackDatabase",
    "ConnectionManager",
    "ConnectionState",
    "IndexMaintainer",
    "KeyParts",
    "Operation",
    "OperationKind",
    "QueryEngine",
    "RedisDatabase",
    "decompose",
    "index_key",
    "parse_namespace_pattern",
]
