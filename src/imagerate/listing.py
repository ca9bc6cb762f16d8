"""Paginated bucket listing helpers."""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Optional

from imagerate.storage import ObjectStore, StorageError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000
DEFAULT_MAX_PAGES = 10000


def iter_object_keys(
    store: ObjectStore,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
    max_pages: int = DEFAULT_MAX_PAGES,
    prefix: Optional[str] = None,
) -> Iterator[str]:
    """Yield every key in the bucket, one page in memory at a time.

    Follows continuation cursors until the store stops returning one. Raises
    StorageError when the cursor chain exceeds ``max_pages`` or repeats a cursor,
    so a misbehaving store cannot keep the request looping.
    """
    if page_size < 1:
        raise ValueError("page_size must be positive")

    next_page_token: Optional[str] = None
    seen_tokens = set()
    pages = 0

    while True:
        if pages >= max_pages:
            raise StorageError(f"Listing of {store.bucket_name} exceeded {max_pages} pages")
        page = store.list_page(page_size=page_size, page_token=next_page_token, prefix=prefix)
        pages += 1
        yield from page.keys

        next_page_token = page.next_page_token
        if not next_page_token:
            break
        if next_page_token in seen_tokens:
            raise StorageError(f"Listing of {store.bucket_name} repeated continuation cursor")
        seen_tokens.add(next_page_token)

    logger.debug("Listed %s page(s) from %s", pages, store.bucket_name)


def dedupe_keys(keys: Iterable[str], *, exclude: Iterable[str] = ()) -> List[str]:
    """Drop duplicates and excluded keys while preserving first-seen order."""
    skipped = set(exclude)
    result: List[str] = []
    for key in keys:
        if key in skipped or key.endswith("/"):
            continue
        skipped.add(key)
        result.append(key)
    return result


def list_all_keys(
    store: ObjectStore,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
    max_pages: int = DEFAULT_MAX_PAGES,
    prefix: Optional[str] = None,
    exclude: Iterable[str] = (),
) -> List[str]:
    """Return the complete, de-duplicated listing of a bucket.

    Folder placeholder keys (ending in ``/``) and any key in ``exclude`` are left out.
    """
    return dedupe_keys(
        iter_object_keys(store, page_size=page_size, max_pages=max_pages, prefix=prefix),
        exclude=exclude,
    )
