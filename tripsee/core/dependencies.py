from fastapi import Depends, HTTPException, Path, Request, status

from tripsee.core.city_filters import CityFilterRegistry
from tripsee.core.fallbacks import FallbackTable
from tripsee.core.image_ingestor import ImageIngestor
from tripsee.core.repository import MongoDBRepo, get_repo
from tripsee.core.reviews_service import GoogleReviewsService
from tripsee.core.schemas import KNOWN_DESTINATIONS
from tripsee.core.settings import Settings, get_settings


def get_fallbacks(request: Request) -> FallbackTable:
    return request.app.state.fallbacks


def get_city_filters(request: Request) -> CityFilterRegistry:
    return request.app.state.city_filters


def get_ingestor(
    repo: MongoDBRepo = Depends(get_repo),
    fallbacks: FallbackTable = Depends(get_fallbacks),
    settings: Settings = Depends(get_settings),
) -> ImageIngestor:
    return ImageIngestor(repo, fallbacks, max_kb=settings.image_max_kb)


def get_reviews_service(settings: Settings = Depends(get_settings)) -> GoogleReviewsService:
    return GoogleReviewsService.from_settings(settings)


def valid_destination(destination: str = Path(..., description="Destination slug, e.g. 'bali'")) -> str:
    destination = destination.lower()
    if destination not in KNOWN_DESTINATIONS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown destination '{destination}'"
        )
    return destination
