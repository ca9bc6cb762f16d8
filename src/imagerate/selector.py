"""Uniform random selection of images that have no ratings yet."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import random
from typing import List, Optional

from imagerate.listing import DEFAULT_MAX_PAGES, DEFAULT_PAGE_SIZE, list_all_keys
from imagerate.ratings import RatingsRepository, RatingsUnavailableError
from imagerate.storage import ObjectStore, StorageError

logger = logging.getLogger(__name__)


class ImageRetrievalError(Exception):
    """The listing or the ratings document could not be retrieved."""


@dataclass
class Selection:
    """One chosen image and how many unrated images were candidates."""

    key: str
    remaining: int


class UnratedImageSelector:
    """Picks an unrated image uniformly at random from the bucket listing."""

    def __init__(
        self,
        store: ObjectStore,
        ratings: RatingsRepository,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = DEFAULT_MAX_PAGES,
        prefix: Optional[str] = None,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.ratings = ratings
        self.page_size = page_size
        self.max_pages = max_pages
        self.prefix = prefix or None
        self._rng = rng or random.Random()

    def list_all_keys(self) -> List[str]:
        """Return every image key in the bucket, excluding the ratings document."""
        return list_all_keys(
            self.store,
            page_size=self.page_size,
            max_pages=self.max_pages,
            prefix=self.prefix,
            exclude=(self.ratings.key,),
        )

    def select_unrated(self) -> Optional[Selection]:
        """Pick one unrated image.

        Returns None when every listed image already has a rating. ``remaining``
        counts the unrated candidates including the one returned.

        Raises:
            ImageRetrievalError: listing or ratings retrieval failed
        """
        try:
            listing = self.list_all_keys()
        except StorageError as exc:
            logger.error("Error listing images in %s: %s", self.store.bucket_name, exc)
            raise ImageRetrievalError("Failed to list images") from exc

        try:
            rated = self.ratings.load().rated_keys
        except RatingsUnavailableError as exc:
            raise ImageRetrievalError("Failed to load ratings") from exc

        unrated = [key for key in listing if key not in rated]
        if not unrated:
            logger.info("No unrated images left in %s (%s listed)", self.store.bucket_name, len(listing))
            return None

        chosen = unrated[self._rng.randrange(len(unrated))]
        return Selection(key=chosen, remaining=len(unrated))
