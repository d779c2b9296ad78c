"""Storage module."""

from .storage import StorageAdapter, MemoryStorage, JsonFileStorage

__all__ = ["StorageAdapter", "MemoryStorage", "JsonFileStorage"]
