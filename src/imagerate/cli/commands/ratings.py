"""Pick unrated images and record ratings from the command line."""

import json
import math

import click

from imagerate.cli.base import CliCommand
from imagerate.ratings import RatingsError
from imagerate.selector import ImageRetrievalError


class RatingParamType(click.ParamType):
    """Finite numeric rating; integers stay integers."""

    name = "rating"

    def convert(self, value, param, ctx):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        text = str(value).strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            self.fail(f"{value!r} is not a number", param, ctx)
        if not math.isfinite(number):
            self.fail(f"{value!r} is not a finite number", param, ctx)
        return number


@click.command(name='pick')
@click.option('--json', 'as_json', is_flag=True, default=False, help='Print the selection as JSON')
def pick_command(as_json: bool):
    """Pick one unrated image at random."""
    cmd = PickCommand()
    cmd.run(as_json=as_json)


class PickCommand(CliCommand):

    def run(self, *, as_json):
        self.setup_storage()
        selector = self.build_selector()
        try:
            selection = selector.select_unrated()
        except ImageRetrievalError as exc:
            raise click.ClickException(f"Failed to retrieve images: {exc}")
        if selection is None:
            raise click.ClickException("No unrated images available")

        url = self.store.public_url(selection.key)
        if as_json:
            click.echo(json.dumps({"id": selection.key, "url": url, "remaining": selection.remaining}))
            return
        click.echo(f"{selection.key}\t{url}")
        click.echo(f"{selection.remaining} unrated image(s) remaining")


@click.command(name='rate')
@click.argument('image_id')
@click.argument('rating', type=RatingParamType())
def rate_command(image_id: str, rating):
    """Append RATING for IMAGE_ID to the ratings document."""
    cmd = RateCommand()
    cmd.run(image_id=image_id, rating=rating)


class RateCommand(CliCommand):

    def run(self, *, image_id, rating):
        if not image_id.strip():
            raise click.BadParameter("IMAGE_ID must not be empty", param_hint="IMAGE_ID")
        self.setup_storage()
        try:
            record = self.ratings.record_rating(image_id, rating)
        except RatingsError as exc:
            raise click.ClickException(f"Failed to save rating: {exc}")
        click.echo(f"Rating saved for {image_id}: {record.ratings}")


@click.command(name='ratings')
@click.option('--json', 'as_json', is_flag=True, default=False, help='Print the raw ratings document')
def list_ratings_command(as_json: bool):
    """Summarize the stored ratings per image."""
    cmd = ListRatingsCommand()
    cmd.run(as_json=as_json)


class ListRatingsCommand(CliCommand):

    def run(self, *, as_json):
        self.setup_storage()
        try:
            snapshot = self.ratings.load()
        except RatingsError as exc:
            raise click.ClickException(f"Failed to load ratings: {exc}")

        document = snapshot.document
        if as_json:
            click.echo(json.dumps({key: record.model_dump() for key, record in document.items()}, indent=2))
            return
        if not snapshot.exists:
            click.echo("No ratings recorded yet")
            return

        click.echo(f"{len(document)} rated image(s)")
        for image_id in sorted(document):
            values = document[image_id].ratings
            mean = sum(values) / len(values) if values else 0.0
            click.echo(f"{image_id}\tcount={len(values)}\tmean={mean:.2f}")
