"""Object store abstraction with Google Cloud Storage and in-memory implementations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import timedelta
import logging
import threading
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

logger = logging.getLogger(__name__)

GCS_PUBLIC_BASE_URL = "https://storage.googleapis.com"


class StorageError(Exception):
    """Raised when the object store cannot complete a request."""


class ObjectNotFoundError(StorageError):
    """Raised when a requested object does not exist."""


class PreconditionFailedError(StorageError):
    """Raised when a conditional write loses against a concurrent writer."""


@dataclass
class StoredObject:
    """Object body plus the version token it was read at."""

    key: str
    data: bytes
    generation: int


@dataclass
class ListPage:
    """One page of a paginated object listing."""

    keys: List[str] = field(default_factory=list)
    next_page_token: Optional[str] = None


class ObjectStore(ABC):
    """Abstract key/value blob store contract."""

    backend_name: str

    def __init__(self, *, bucket_name: str, base_url: Optional[str] = None):
        if not bucket_name:
            raise ValueError(f"{type(self).__name__} requires a storage bucket name")
        self.bucket_name = bucket_name
        self._base_url = (base_url or "").strip()

    @abstractmethod
    def get_object(self, key: str) -> StoredObject:
        """Fetch one object; raise ObjectNotFoundError when it does not exist."""

    @abstractmethod
    def put_object(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str = "application/octet-stream",
        if_generation_match: Optional[int] = None,
    ) -> int:
        """Overwrite one object and return its new generation.

        ``if_generation_match=0`` only succeeds when the object does not exist yet.
        """

    @abstractmethod
    def list_page(
        self,
        *,
        page_size: int,
        page_token: Optional[str] = None,
        prefix: Optional[str] = None,
    ) -> ListPage:
        """Return one page of keys plus the cursor for the next page, if any."""

    def public_url(self, key: str) -> str:
        """Return a browser-usable URL for an object."""
        base = self._base_url or self._default_base_url()
        return f"{base.rstrip('/')}/{quote(key)}"

    def _default_base_url(self) -> str:
        return f"{GCS_PUBLIC_BASE_URL}/{self.bucket_name}"


class GCSObjectStore(ObjectStore):
    """Objects stored directly in a Google Cloud Storage bucket."""

    backend_name = "gcs"

    def __init__(
        self,
        *,
        bucket_name: str,
        project_id: Optional[str] = None,
        client: Optional[Any] = None,
        base_url: Optional[str] = None,
        signed_urls: bool = False,
        signed_url_ttl_seconds: int = 3600,
    ):
        super().__init__(bucket_name=bucket_name, base_url=base_url)
        if client is None:
            from google.cloud import storage

            client = storage.Client(project=project_id) if project_id else storage.Client()

        self._client = client
        self._bucket = client.bucket(bucket_name)
        self._signed_urls = signed_urls
        self._signed_url_ttl_seconds = max(60, int(signed_url_ttl_seconds or 3600))

    def get_object(self, key: str) -> StoredObject:
        from google.api_core.exceptions import NotFound

        blob = self._bucket.blob(key)
        try:
            data = blob.download_as_bytes()
        except NotFound as exc:
            raise ObjectNotFoundError(f"gs://{self.bucket_name}/{key} not found") from exc
        except Exception as exc:
            raise StorageError(f"Failed to read gs://{self.bucket_name}/{key}: {exc}") from exc
        # The generation must come from the same response as the bytes.
        if blob.generation is None:
            raise StorageError(f"No generation returned for gs://{self.bucket_name}/{key}")
        return StoredObject(key=key, data=data, generation=int(blob.generation))

    def put_object(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str = "application/octet-stream",
        if_generation_match: Optional[int] = None,
    ) -> int:
        from google.api_core.exceptions import PreconditionFailed

        blob = self._bucket.blob(key)
        try:
            blob.upload_from_string(
                data,
                content_type=content_type,
                if_generation_match=if_generation_match,
            )
        except PreconditionFailed as exc:
            raise PreconditionFailedError(
                f"gs://{self.bucket_name}/{key} changed since generation {if_generation_match}"
            ) from exc
        except Exception as exc:
            raise StorageError(f"Failed to write gs://{self.bucket_name}/{key}: {exc}") from exc
        return int(blob.generation or 0)

    def list_page(
        self,
        *,
        page_size: int,
        page_token: Optional[str] = None,
        prefix: Optional[str] = None,
    ) -> ListPage:
        try:
            iterator = self._client.list_blobs(
                self._bucket,
                prefix=prefix or None,
                page_size=page_size,
                page_token=page_token,
            )
            page = next(iterator.pages, None)
            keys = [blob.name for blob in page] if page is not None else []
            next_page_token = iterator.next_page_token
        except Exception as exc:
            raise StorageError(f"Failed to list gs://{self.bucket_name}: {exc}") from exc
        return ListPage(keys=keys, next_page_token=next_page_token or None)

    def public_url(self, key: str) -> str:
        if not self._signed_urls:
            return super().public_url(key)
        blob = self._bucket.blob(key)
        try:
            return blob.generate_signed_url(
                version="v4",
                expiration=timedelta(seconds=self._signed_url_ttl_seconds),
                method="GET",
            )
        except Exception:
            logger.exception("Failed to sign URL for gs://%s/%s; using public URL", self.bucket_name, key)
            return super().public_url(key)


class InMemoryObjectStore(ObjectStore):
    """Process-local store with the same contract as GCS, for development and tests."""

    backend_name = "memory"

    def __init__(self, *, bucket_name: str = "memory", base_url: Optional[str] = None):
        super().__init__(bucket_name=bucket_name, base_url=base_url)
        self._objects: Dict[str, Tuple[bytes, int, str]] = {}
        self._next_generation = 1
        self._lock = threading.Lock()

    def get_object(self, key: str) -> StoredObject:
        with self._lock:
            entry = self._objects.get(key)
        if entry is None:
            raise ObjectNotFoundError(f"memory://{self.bucket_name}/{key} not found")
        data, generation, _content_type = entry
        return StoredObject(key=key, data=data, generation=generation)

    def put_object(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str = "application/octet-stream",
        if_generation_match: Optional[int] = None,
    ) -> int:
        with self._lock:
            current = self._objects.get(key)
            current_generation = current[1] if current is not None else 0
            if if_generation_match is not None and if_generation_match != current_generation:
                raise PreconditionFailedError(
                    f"memory://{self.bucket_name}/{key} is at generation {current_generation}, "
                    f"expected {if_generation_match}"
                )
            generation = self._next_generation
            self._next_generation += 1
            self._objects[key] = (bytes(data), generation, content_type)
        return generation

    def list_page(
        self,
        *,
        page_size: int,
        page_token: Optional[str] = None,
        prefix: Optional[str] = None,
    ) -> ListPage:
        if page_size < 1:
            raise ValueError("page_size must be positive")
        with self._lock:
            keys = sorted(self._objects)
        if prefix:
            keys = [key for key in keys if key.startswith(prefix)]
        if page_token:
            keys = [key for key in keys if key > page_token]
        page = keys[:page_size]
        next_page_token = page[-1] if len(keys) > page_size else None
        return ListPage(keys=page, next_page_token=next_page_token)

    def content_type(self, key: str) -> Optional[str]:
        """Return the stored content type for a key, if present."""
        with self._lock:
            entry = self._objects.get(key)
        return entry[2] if entry is not None else None

    def _default_base_url(self) -> str:
        return f"memory://{self.bucket_name}"


def create_object_store(app_settings: Any) -> ObjectStore:
    """Instantiate the configured object store backend."""

    normalized = (app_settings.storage_backend or "gcs").strip().lower()
    if normalized in {"gcs", "google", "google-cloud-storage"}:
        return GCSObjectStore(
            bucket_name=app_settings.storage_bucket_name,
            project_id=app_settings.gcp_project_id,
            base_url=app_settings.image_base_url,
            signed_urls=app_settings.image_signed_urls,
            signed_url_ttl_seconds=app_settings.image_signed_url_ttl_seconds,
        )

    if normalized in {"memory", "in-memory", "inmemory"}:
        return InMemoryObjectStore(
            bucket_name=app_settings.storage_bucket_name,
            base_url=app_settings.image_base_url,
        )

    raise ValueError(f"Unsupported storage backend: {app_settings.storage_backend}")
