"""
Result cache and the durable key-value stores behind it.
"""
from .kv_store import KeyValueStore, InMemoryKeyValueStore, JsonFileKeyValueStore
from .result_cache import CacheEntry, ResultCache

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "CacheEntry",
    "ResultCache",
]
