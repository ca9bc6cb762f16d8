"""Image selection and rating endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from imagerate.dependencies import get_image_selector, get_ratings_repository
from imagerate.models.requests import RateImageRequest
from imagerate.models.responses import ErrorResponse, ImageResponse, RateResponse
from imagerate.ratelimit import limiter
from imagerate.ratings import (
    RatingsConflictError,
    RatingsRepository,
    RatingsUnavailableError,
    RatingsWriteError,
)
from imagerate.selector import ImageRetrievalError, UnratedImageSelector
from imagerate.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["images"])


@router.get(
    "/image",
    response_model=ImageResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    operation_id="get_unrated_image",
)
def get_unrated_image(selector: UnratedImageSelector = Depends(get_image_selector)):
    """Return a random image that has not been rated yet."""
    try:
        selection = selector.select_unrated()
    except ImageRetrievalError:
        logger.exception("Failed to select an unrated image")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve images",
        )
    if selection is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No unrated images available")

    return ImageResponse(
        id=selection.key,
        url=selector.store.public_url(selection.key),
        remaining=selection.remaining,
    )


@router.post(
    "/rate",
    response_model=RateResponse,
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    operation_id="rate_image",
)
@limiter.limit(settings.rate_limit)
def rate_image(
    request: Request,
    payload: RateImageRequest,
    ratings: RatingsRepository = Depends(get_ratings_repository),
):
    """Append a rating for an image and return all of its ratings."""
    try:
        record = ratings.record_rating(payload.image_id, payload.rating)
    except RatingsUnavailableError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load ratings",
        )
    except RatingsConflictError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Ratings were updated concurrently; please retry",
        )
    except RatingsWriteError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save rating",
        )

    logger.info("Recorded rating %s for %s", payload.rating, payload.image_id)
    return RateResponse(message="Rating saved", ratings=record)
