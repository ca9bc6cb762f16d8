"""Pydantic request models for API endpoints."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from imagerate.ratings import RatingValue


class RateImageRequest(BaseModel):
    """Request model for the rate endpoint.

    Both fields are required; a rating of ``0`` is a real rating.
    """

    model_config = ConfigDict(populate_by_name=True)

    image_id: str = Field(..., alias="imageId")
    rating: RatingValue

    @field_validator("image_id")
    @classmethod
    def _image_id_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("imageId must not be empty")
        return value
