"""Pydantic response models for API endpoints."""

from pydantic import BaseModel

from imagerate.ratings import RatingRecord


class ImageResponse(BaseModel):
    """An unrated image offered for rating."""
    id: str
    url: str
    remaining: int


class RateResponse(BaseModel):
    message: str
    ratings: RatingRecord


class ErrorResponse(BaseModel):
    error: str
