"""nskv: a Redis key-value adapter with namespace indexes and atomic batches."""

from nskv.config import RedisSettings, load_settings_from_env
from nskv.storage.callbacks import CallbackDatabase
from nskv.storage.database import RedisDatabase

__version__ = "0.1.0"

__all__ = [
    "CallbackDatabase",
    "RedisDatabase",
    "RedisSettings",
    "load_settings_from_env",
]
