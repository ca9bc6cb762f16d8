"""Imagerate CLI entry point with lazy command registration."""

from __future__ import annotations

import logging

import click

from imagerate.settings import settings

_COMMANDS_REGISTERED = False


def _register_commands_once() -> None:
    global _COMMANDS_REGISTERED
    if _COMMANDS_REGISTERED:
        return

    from .commands import ratings, serve

    cli.add_command(ratings.pick_command, name="pick")
    cli.add_command(ratings.rate_command, name="rate")
    cli.add_command(ratings.list_ratings_command, name="ratings")
    cli.add_command(serve.serve_command, name="serve")

    _COMMANDS_REGISTERED = True


class _LazyCLIGroup(click.Group):
    def list_commands(self, ctx):
        _register_commands_once()
        return super().list_commands(ctx)

    def get_command(self, ctx, cmd_name):
        _register_commands_once()
        return super().get_command(ctx, cmd_name)


@click.group(cls=_LazyCLIGroup)
@click.option('--log-level', default=None, help='Logging level (defaults to LOG_LEVEL setting)')
def cli(log_level):
    """Imagerate CLI for rating images from the command line."""
    level_name = (log_level or settings.log_level or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


if __name__ == "__main__":
    cli()
