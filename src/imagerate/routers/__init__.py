"""Imagerate API routers package."""

from . import images

__all__ = ["images"]
