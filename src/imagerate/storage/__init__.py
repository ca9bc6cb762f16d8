"""Object store abstractions."""

from .providers import (
    ObjectStore,
    StoredObject,
    ListPage,
    StorageError,
    ObjectNotFoundError,
    PreconditionFailedError,
    GCSObjectStore,
    InMemoryObjectStore,
    create_object_store,
)

__all__ = [
    "ObjectStore",
    "StoredObject",
    "ListPage",
    "StorageError",
    "ObjectNotFoundError",
    "PreconditionFailedError",
    "GCSObjectStore",
    "InMemoryObjectStore",
    "create_object_store",
]
