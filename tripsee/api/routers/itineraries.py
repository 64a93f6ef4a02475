import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from tripsee.core.dependencies import get_ingestor, valid_destination
from tripsee.core.image_ingestor import ImageIngestor
from tripsee.core.repository import MongoDBRepo, get_repo
from tripsee.core.schemas import ROMANTIC_TYPES, HotelImage, Itinerary, ItineraryCreate, ItineraryUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/destinations/{destination}/itineraries", tags=["itineraries"])
romantic_router = APIRouter(prefix="/api/romantic-itineraries", tags=["itineraries"])


def _ingest_hotel_images(
    images: list[HotelImage], destination: str, ingestor: ImageIngestor
) -> list[dict]:
    resolved = []
    for image in images:
        src = ingestor.ingest(image.src, destination).reference
        resolved.append(image.model_copy(update={"src": src}).model_dump())
    return resolved


def _get_owned_itinerary(repo: MongoDBRepo, itinerary_id: str, destination: str) -> Itinerary:
    itinerary = repo.get_itinerary(itinerary_id)
    if itinerary is None or itinerary.destination != destination:
        raise HTTPException(status_code=404, detail="Itinerary not found")
    return itinerary


@router.get("", response_model=list[Itinerary])
def list_itineraries(
    destination: str = Depends(valid_destination),
    package_id: str | None = Query(None, description="Only itineraries linked to this package"),
    repo: MongoDBRepo = Depends(get_repo),
) -> list[Itinerary]:
    try:
        itineraries = repo.list_itineraries(destination, package_id=package_id)
    except Exception as e:
        logger.error(f"Error fetching {destination} itineraries: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to fetch {destination} itineraries")
    logger.info(f"{destination} itineraries returned: {len(itineraries)}")
    return itineraries


@router.post("", response_model=Itinerary, status_code=status.HTTP_201_CREATED)
def create_itinerary(
    body: ItineraryCreate,
    destination: str = Depends(valid_destination),
    repo: MongoDBRepo = Depends(get_repo),
    ingestor: ImageIngestor = Depends(get_ingestor),
) -> Itinerary:
    doc = body.model_dump(mode="json")
    doc["destination"] = destination
    doc["hotel_images"] = _ingest_hotel_images(body.hotel_images, destination, ingestor)
    try:
        itinerary = repo.create_itinerary(doc)
    except Exception as e:
        logger.error(f"Error creating {destination} itinerary: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create itinerary")
    logger.info(f"{destination} itinerary created: {itinerary.id}")
    return itinerary


@router.get("/{itinerary_id}", response_model=Itinerary)
def get_itinerary(
    itinerary_id: str,
    destination: str = Depends(valid_destination),
    repo: MongoDBRepo = Depends(get_repo),
) -> Itinerary:
    return _get_owned_itinerary(repo, itinerary_id, destination)


@router.put("/{itinerary_id}", response_model=Itinerary)
def update_itinerary(
    itinerary_id: str,
    body: ItineraryUpdate,
    destination: str = Depends(valid_destination),
    repo: MongoDBRepo = Depends(get_repo),
    ingestor: ImageIngestor = Depends(get_ingestor),
) -> Itinerary:
    _get_owned_itinerary(repo, itinerary_id, destination)
    updates = body.model_dump(exclude_unset=True, exclude_none=True, mode="json")
    if body.hotel_images is not None:
        updates["hotel_images"] = _ingest_hotel_images(body.hotel_images, destination, ingestor)

    try:
        itinerary = repo.update_itinerary(itinerary_id, updates)
    except Exception as e:
        logger.error(f"Error updating itinerary {itinerary_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update itinerary")
    if itinerary is None:
        raise HTTPException(status_code=404, detail="Itinerary not found")
    return itinerary


@router.delete("/{itinerary_id}")
def delete_itinerary(
    itinerary_id: str,
    destination: str = Depends(valid_destination),
    repo: MongoDBRepo = Depends(get_repo),
) -> dict:
    _get_owned_itinerary(repo, itinerary_id, destination)
    if not repo.delete_itinerary(itinerary_id):
        raise HTTPException(status_code=404, detail="Itinerary not found")
    logger.info(f"{destination} itinerary deleted: {itinerary_id}")
    return {"success": True, "message": "Itinerary deleted successfully"}


@romantic_router.get("", response_model=list[Itinerary])
def list_romantic_itineraries(
    package_id: str | None = Query(None, description="Only itineraries linked to this package"),
    repo: MongoDBRepo = Depends(get_repo),
) -> list[Itinerary]:
    """
    Active itineraries for the romantic listings.

    With a package_id, that package's itineraries are returned whatever its
    category. Otherwise only itineraries linked to the packages shown on
    /api/romantic-packages are included.
    """
    try:
        if package_id:
            package_ids = [package_id]
        else:
            packages = repo.list_packages(category="romantic", is_active=True, types=ROMANTIC_TYPES)
            package_ids = [pkg.id for pkg in packages]
        return repo.list_active_itineraries(package_ids)
    except Exception as e:
        logger.error(f"Error reading romantic itineraries: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch romantic itineraries")
