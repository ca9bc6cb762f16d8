"""Pydantic request/response models for the HTTP API."""

from .requests import RateImageRequest
from .responses import ImageResponse, RateResponse

__all__ = ["RateImageRequest", "ImageResponse", "RateResponse"]
