"""Imagerate: pick unrated images from a bucket and collect ratings for them."""

__version__ = "0.1.0"
