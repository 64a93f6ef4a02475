"""
Google Places reviews used for the testimonials section.
"""

import logging
from typing import Any

import requests

from tripsee.core.settings import Settings

logger = logging.getLogger(__name__)

PLACE_DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"
REVIEW_FIELDS = "reviews,rating,user_ratings_total,name,formatted_address,website"
DEFAULT_AVATAR = "/images/default-avatar.png"


class ReviewsNotConfiguredError(RuntimeError):
    pass


class ReviewsAPIError(RuntimeError):
    pass


class GoogleReviewsService:
    """Fetches place details and reviews from the Google Places API."""

    def __init__(self, api_key: str, place_id: str):
        self.api_key = api_key
        self.place_id = place_id

    @classmethod
    def from_settings(cls, settings: Settings) -> "GoogleReviewsService":
        return cls(settings.google_places_api_key, settings.google_place_id)

    def get_place_details(self) -> dict[str, Any]:
        """
        Fetch the configured place with its reviews.

        Returns:
            The Places API `result` object; reviews without a profile photo
            get the default avatar

        Raises:
            ReviewsNotConfiguredError: API key or place id missing
            ReviewsAPIError: Google answered with a non-OK status
            requests.RequestException: transport failure
        """
        if not self.api_key or not self.place_id:
            raise ReviewsNotConfiguredError("Google Places API not configured")

        params = {"place_id": self.place_id, "fields": REVIEW_FIELDS, "key": self.api_key}
        response = requests.get(PLACE_DETAILS_URL, params=params, timeout=10)
        response.raise_for_status()
        data = response.json()

        if data.get("status") != "OK":
            message = data.get("error_message") or "Failed to fetch reviews"
            logger.warning(f"Places API returned {data.get('status')}: {message}")
            raise ReviewsAPIError(message)

        result = data.get("result", {})
        for review in result.get("reviews", []):
            if not review.get("profile_photo_url"):
                review["profile_photo_url"] = DEFAULT_AVATAR
        return result
