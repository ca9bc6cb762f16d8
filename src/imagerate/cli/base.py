"""Base command class for shared CLI setup."""

import click

from imagerate.ratings import RatingsRepository
from imagerate.selector import UnratedImageSelector
from imagerate.settings import settings
from imagerate.storage import ObjectStore, create_object_store


class CliCommand:
    """Base class for CLI commands that talk to the image bucket."""

    def __init__(self):
        self.store = None
        self.ratings = None

    def setup_storage(self) -> ObjectStore:
        """Connect to the configured bucket and build the ratings repository."""
        try:
            self.store = create_object_store(settings)
        except ValueError as exc:
            raise click.ClickException(str(exc))
        self.ratings = RatingsRepository(
            self.store,
            key=settings.ratings_object_key,
            max_write_attempts=settings.ratings_write_max_attempts,
        )
        return self.store

    def build_selector(self) -> UnratedImageSelector:
        if not self.store:
            raise click.ClickException("Storage not initialized")
        return UnratedImageSelector(
            self.store,
            self.ratings,
            page_size=settings.list_page_size,
            max_pages=settings.list_max_pages,
            prefix=settings.image_prefix,
        )
