"""Ratings document persistence.

All ratings live in one JSON object in the image bucket::

    {"image1.jpg": {"ratings": [4, 2]}, ...}

The object is read and written whole. Writes are guarded by the object's
generation so concurrent submissions cannot silently drop each other's ratings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
from typing import Annotated, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, TypeAdapter, ValidationError

from imagerate.storage import (
    ObjectNotFoundError,
    ObjectStore,
    PreconditionFailedError,
    StorageError,
)

logger = logging.getLogger(__name__)

DEFAULT_RATINGS_KEY = "ratings.json"

# Stored JSON has no NaN or Infinity.
RatingValue = Union[StrictInt, Annotated[StrictFloat, Field(allow_inf_nan=False)]]

_rating_adapter = TypeAdapter(RatingValue)


class RatingRecord(BaseModel):
    """Ratings collected for one image, in submission order.

    Unknown keys written by other tools are kept on rewrite.
    """

    model_config = ConfigDict(extra="allow")

    ratings: List[RatingValue] = Field(default_factory=list)


RatingsDocument = Dict[str, RatingRecord]

_document_adapter = TypeAdapter(RatingsDocument)


class RatingsError(Exception):
    """Base class for ratings persistence failures."""


class RatingsUnavailableError(RatingsError):
    """The ratings document exists but could not be read or decoded."""


class RatingsWriteError(RatingsError):
    """The ratings document could not be written."""


class RatingsConflictError(RatingsWriteError):
    """A conditional write lost against a concurrent writer."""


@dataclass
class RatingsSnapshot:
    """Ratings document as read from storage, with the generation it was read at."""

    document: RatingsDocument = field(default_factory=dict)
    generation: int = 0
    exists: bool = False

    @property
    def rated_keys(self) -> set:
        return set(self.document)


def decode_document(data: bytes) -> RatingsDocument:
    """Parse stored bytes into a ratings document."""
    return _document_adapter.validate_python(json.loads(data.decode("utf-8")))


def encode_document(document: RatingsDocument) -> bytes:
    """Serialize a ratings document as pretty-printed UTF-8 JSON."""
    payload = {image_id: record.model_dump() for image_id, record in document.items()}
    return json.dumps(payload, indent=2, allow_nan=False).encode("utf-8")


class RatingsRepository:
    """Reads and writes the shared ratings document."""

    def __init__(
        self,
        store: ObjectStore,
        *,
        key: str = DEFAULT_RATINGS_KEY,
        max_write_attempts: int = 5,
    ):
        if max_write_attempts < 1:
            raise ValueError("max_write_attempts must be at least 1")
        self.store = store
        self.key = key
        self.max_write_attempts = max_write_attempts

    def load(self) -> RatingsSnapshot:
        """Read the ratings document, distinguishing absence from failure.

        Returns an empty snapshot (``exists=False``) when no document has been
        written yet.

        Raises:
            RatingsUnavailableError: storage failed or the stored JSON is invalid
        """
        try:
            stored = self.store.get_object(self.key)
        except ObjectNotFoundError:
            logger.debug("No ratings document at %s; starting empty", self.key)
            return RatingsSnapshot()
        except StorageError as exc:
            logger.error("Error fetching ratings from %s: %s", self.key, exc)
            raise RatingsUnavailableError(str(exc)) from exc

        try:
            document = decode_document(stored.data)
        except (UnicodeDecodeError, ValueError, ValidationError) as exc:
            logger.error("Ratings document %s is not valid: %s", self.key, exc)
            raise RatingsUnavailableError(f"Ratings document {self.key} is not valid") from exc

        return RatingsSnapshot(document=document, generation=stored.generation, exists=True)

    def get_all(self) -> RatingsDocument:
        """Return every rating record; any read problem yields an empty mapping."""
        try:
            return self.load().document
        except RatingsUnavailableError:
            return {}

    def save(self, document: RatingsDocument, *, if_generation_match: Optional[int] = None) -> int:
        """Overwrite the ratings document and return its new generation.

        Raises:
            RatingsConflictError: ``if_generation_match`` no longer matches storage
            RatingsWriteError: storage rejected the write
        """
        try:
            payload = encode_document(document)
        except ValueError as exc:
            raise RatingsWriteError(f"Ratings document is not valid JSON: {exc}") from exc
        try:
            return self.store.put_object(
                self.key,
                payload,
                content_type="application/json",
                if_generation_match=if_generation_match,
            )
        except PreconditionFailedError as exc:
            raise RatingsConflictError(str(exc)) from exc
        except StorageError as exc:
            logger.error("Error saving ratings to %s: %s", self.key, exc)
            raise RatingsWriteError(str(exc)) from exc

    def record_rating(self, image_id: str, value: Union[int, float]) -> RatingRecord:
        """Append one rating for an image and persist the document.

        Re-reads and retries when another writer updated the document in
        between, up to ``max_write_attempts`` times.

        Raises:
            ValueError: ``value`` is not a finite number
        """
        value = _rating_adapter.validate_python(value)
        for attempt in range(1, self.max_write_attempts + 1):
            snapshot = self.load()
            record = snapshot.document.setdefault(image_id, RatingRecord())
            record.ratings.append(value)
            try:
                self.save(snapshot.document, if_generation_match=snapshot.generation)
            except RatingsConflictError:
                logger.info(
                    "Ratings document changed while rating %s (attempt %s/%s)",
                    image_id,
                    attempt,
                    self.max_write_attempts,
                )
                continue
            return record

        logger.warning("Gave up rating %s after %s conflicting writes", image_id, self.max_write_attempts)
        raise RatingsConflictError(
            f"Ratings document kept changing; rating for {image_id} not saved"
        )
