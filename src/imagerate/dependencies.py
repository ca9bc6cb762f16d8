"""Shared dependencies for FastAPI endpoints."""

from functools import lru_cache

from fastapi import Depends

from imagerate.ratings import RatingsRepository
from imagerate.selector import UnratedImageSelector
from imagerate.settings import settings
from imagerate.storage import ObjectStore, create_object_store


@lru_cache(maxsize=1)
def get_object_store() -> ObjectStore:
    """Return the process-wide object store client for the configured bucket."""
    return create_object_store(settings)


def get_ratings_repository(store: ObjectStore = Depends(get_object_store)) -> RatingsRepository:
    return RatingsRepository(
        store,
        key=settings.ratings_object_key,
        max_write_attempts=settings.ratings_write_max_attempts,
    )


def get_image_selector(
    store: ObjectStore = Depends(get_object_store),
    ratings: RatingsRepository = Depends(get_ratings_repository),
) -> UnratedImageSelector:
    return UnratedImageSelector(
        store,
        ratings,
        page_size=settings.list_page_size,
        max_pages=settings.list_max_pages,
        prefix=settings.image_prefix,
    )
