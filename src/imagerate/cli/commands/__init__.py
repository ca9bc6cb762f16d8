"""CLI commands package."""

from . import (
    ratings,
    serve,
)

__all__ = [
    'ratings',
    'serve',
]
