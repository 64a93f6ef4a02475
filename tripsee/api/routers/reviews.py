import logging

import requests
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from tripsee.core.dependencies import get_reviews_service
from tripsee.core.reviews_service import (
    GoogleReviewsService,
    ReviewsAPIError,
    ReviewsNotConfiguredError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["reviews"])


@router.get("/google-reviews")
def google_reviews(service: GoogleReviewsService = Depends(get_reviews_service)):
    """
    Proxy Google reviews for the testimonials section.

    Every failure carries `fallback: true` so the site can switch to its
    bundled testimonials.
    """
    try:
        details = service.get_place_details()
    except ReviewsNotConfiguredError as e:
        return JSONResponse(status_code=500, content={"error": str(e), "fallback": True})
    except ReviewsAPIError as e:
        return JSONResponse(status_code=400, content={"error": str(e), "fallback": True})
    except requests.exceptions.RequestException as e:
        logger.error(f"Error fetching Google Reviews: {e}")
        return JSONResponse(
            status_code=500, content={"error": "Internal server error", "fallback": True}
        )
    return {"success": True, "data": details}
