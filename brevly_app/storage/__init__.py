"""
Object storage module for exported reports.

Strategy Pattern for the upload target of CSV exports.
"""

from .strategies import ObjectStorageStrategy, R2ObjectStorage, InMemoryObjectStorage, StoredObject
from .factory import ObjectStorageFactory, StorageBackend, StorageNotConfiguredError

__all__ = [
    "ObjectStorageStrategy",
    "R2ObjectStorage",
    "InMemoryObjectStorage",
    "StoredObject",
    "ObjectStorageFactory",
    "StorageBackend",
    "StorageNotConfiguredError",
]
