"""Test configuration and fixtures."""

from typing import Iterable, List, Optional

import pytest
from fastapi.testclient import TestClient

from imagerate.api import app
from imagerate.dependencies import get_object_store
from imagerate.ratelimit import limiter
from imagerate.ratings import RatingsRepository
from imagerate.storage import InMemoryObjectStore, ListPage, ObjectStore, StorageError, StoredObject


class FlakyObjectStore(InMemoryObjectStore):
    """In-memory store whose operations can be switched to fail."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.fail_get = False
        self.fail_put = False
        self.fail_list = False

    def get_object(self, key):
        if self.fail_get:
            raise StorageError("get unavailable")
        return super().get_object(key)

    def put_object(self, key, data, **kwargs):
        if self.fail_put:
            raise StorageError("put unavailable")
        return super().put_object(key, data, **kwargs)

    def list_page(self, **kwargs):
        if self.fail_list:
            raise StorageError("list unavailable")
        return super().list_page(**kwargs)


class ScriptedListingStore(ObjectStore):
    """Store that serves a fixed chain of listing pages keyed by cursor."""

    backend_name = "scripted"

    def __init__(self, pages: dict):
        super().__init__(bucket_name="scripted")
        self.pages = pages
        self.calls: List[Optional[str]] = []

    def get_object(self, key) -> StoredObject:
        raise NotImplementedError

    def put_object(self, key, data, **kwargs) -> int:
        raise NotImplementedError

    def list_page(self, *, page_size, page_token=None, prefix=None) -> ListPage:
        self.calls.append(page_token)
        return self.pages[page_token]


def put_images(store: ObjectStore, keys: Iterable[str]) -> None:
    for key in keys:
        store.put_object(key, b"\xff\xd8", content_type="image/jpeg")


@pytest.fixture
def store():
    """Empty in-memory bucket."""
    return FlakyObjectStore(bucket_name="test-bucket")


@pytest.fixture
def ratings_repo(store):
    return RatingsRepository(store, key="ratings.json")


@pytest.fixture
def client(store):
    """API client wired to the in-memory bucket."""
    app.dependency_overrides[get_object_store] = lambda: store
    limiter.reset()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
