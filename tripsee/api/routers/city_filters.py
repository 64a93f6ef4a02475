import logging
from collections import Counter

from fastapi import APIRouter, Depends, HTTPException, Query, status

from tripsee.core.city_filters import (
    CityFilterRegistry,
    CityNotFoundError,
    UnknownDestinationError,
    count_cities,
)
from tripsee.core.dependencies import get_city_filters
from tripsee.core.repository import MongoDBRepo, get_repo
from tripsee.core.schemas import CityFilter, CityFilterCreate, CityFilterUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/city-filters", tags=["city-filters"])
public_router = APIRouter(prefix="/api/city-filters", tags=["city-filters"])


@router.get("")
def list_city_filters(
    destination: str | None = Query(None),
    registry: CityFilterRegistry = Depends(get_city_filters),
) -> list[CityFilter] | dict[str, list[CityFilter]]:
    """All filters grouped by destination, or one destination's list."""
    if destination:
        return registry.get_cities(destination)
    return registry.get_all()


@router.post("", response_model=CityFilter, status_code=status.HTTP_201_CREATED)
def add_city_filter(
    body: CityFilterCreate, registry: CityFilterRegistry = Depends(get_city_filters)
) -> CityFilter:
    try:
        return registry.add_city(body.destination, body.name, body.order)
    except UnknownDestinationError:
        raise HTTPException(status_code=404, detail="Invalid destination")


@router.put("", response_model=CityFilter)
def update_city_filter(
    body: CityFilterUpdate, registry: CityFilterRegistry = Depends(get_city_filters)
) -> CityFilter:
    try:
        return registry.update_city(
            body.destination, body.id, name=body.name, is_active=body.is_active, order=body.order
        )
    except UnknownDestinationError:
        raise HTTPException(status_code=404, detail="Invalid destination")
    except CityNotFoundError:
        raise HTTPException(status_code=404, detail="City not found")


@router.post("/toggle", response_model=CityFilter)
def toggle_city_filter(
    destination: str = Query(...),
    id: int = Query(...),
    registry: CityFilterRegistry = Depends(get_city_filters),
) -> CityFilter:
    try:
        return registry.toggle_city(destination, id)
    except (UnknownDestinationError, CityNotFoundError):
        raise HTTPException(status_code=404, detail="City not found")


@router.delete("")
def delete_city_filter(
    destination: str = Query(...),
    id: int = Query(...),
    registry: CityFilterRegistry = Depends(get_city_filters),
) -> dict:
    try:
        deleted = registry.delete_city(destination, id)
    except UnknownDestinationError:
        raise HTTPException(status_code=404, detail="Invalid destination")
    except CityNotFoundError:
        raise HTTPException(status_code=404, detail="City not found")
    return {"message": "City filter deleted successfully", "deleted_city": deleted.model_dump()}


@public_router.get("", response_model=list[CityFilter])
def active_city_filters(
    destination: str | None = Query(None),
    registry: CityFilterRegistry = Depends(get_city_filters),
    repo: MongoDBRepo = Depends(get_repo),
) -> list[CityFilter]:
    """Active filters for a destination with live package counts."""
    if not destination:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Destination parameter is required"
        )
    try:
        counts = count_cities(repo.package_locations(destination))
    except Exception as e:
        # Filters still render, just without counts
        logger.error(f"Error counting packages per city for {destination}: {e}")
        counts = Counter()
    return registry.active_with_counts(destination, counts)
