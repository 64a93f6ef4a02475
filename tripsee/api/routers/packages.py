import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status

from tripsee.core.dependencies import get_ingestor, valid_destination
from tripsee.core.image_ingestor import ImageIngestor, optimized_image_url
from tripsee.core.repository import MongoDBRepo, get_repo
from tripsee.core.schemas import ROMANTIC_TYPES, Package, PackageCard, PackageCreate, PackageUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/destinations/{destination}/packages", tags=["packages"])
public_router = APIRouter(prefix="/api/packages", tags=["packages"])
romantic_router = APIRouter(prefix="/api/romantic-packages", tags=["packages"])


def _card(pkg: Package, ingestor: ImageIngestor) -> PackageCard:
    card = PackageCard.from_package(pkg)
    # A stored image deleted out from under the package degrades to the fallback
    if ingestor.validate_image_path(card.image):
        card.image = optimized_image_url(card.image)
    else:
        card.image = ingestor.fallback(pkg.destination)
    return card


def _get_owned_package(repo: MongoDBRepo, package_id: str, destination: str) -> Package:
    pkg = repo.get_package(package_id)
    if pkg is None or pkg.destination != destination:
        raise HTTPException(status_code=404, detail="Package not found")
    return pkg


@router.get("", response_model=list[PackageCard])
def list_destination_packages(
    destination: str = Depends(valid_destination),
    repo: MongoDBRepo = Depends(get_repo),
    ingestor: ImageIngestor = Depends(get_ingestor),
) -> list[PackageCard]:
    try:
        packages = repo.list_packages(destination=destination)
    except Exception as e:
        logger.error(f"Error fetching {destination} packages: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch packages")
    logger.info(f"{destination} packages returned: {len(packages)}")
    return [_card(pkg, ingestor) for pkg in packages]


@router.post("", response_model=Package, status_code=status.HTTP_201_CREATED)
def create_package(
    body: PackageCreate,
    destination: str = Depends(valid_destination),
    repo: MongoDBRepo = Depends(get_repo),
    ingestor: ImageIngestor = Depends(get_ingestor),
) -> Package:
    image = ingestor.ingest(body.image, destination)
    doc = body.model_dump(exclude={"image"}, mode="json")
    doc.update(
        {
            "destination": destination,
            "days": body.days or body.duration,
            "image": image.reference,
            "image_type": image.image_type,
            "image_id": image.image_id,
            "original_image_name": image.original_name,
            "image_size": image.size,
        }
    )
    try:
        pkg = repo.create_package(doc)
    except Exception as e:
        logger.error(f"Error creating {destination} package: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create package")
    logger.info(f"{destination} package created: {pkg.id}")
    return pkg


@router.get("/{package_id}", response_model=Package)
def get_package(
    package_id: str,
    destination: str = Depends(valid_destination),
    repo: MongoDBRepo = Depends(get_repo),
) -> Package:
    return _get_owned_package(repo, package_id, destination)


@router.put("/{package_id}")
def update_package(
    package_id: str,
    body: PackageUpdate,
    destination: str = Depends(valid_destination),
    repo: MongoDBRepo = Depends(get_repo),
    ingestor: ImageIngestor = Depends(get_ingestor),
) -> dict[str, Any]:
    """
    Partially update a package.

    A new image is ingested against this package so its image fields follow
    the stored asset. If that sync did not take effect the update still
    succeeds and the response lists the warning.
    """
    existing = _get_owned_package(repo, package_id, destination)
    updates = body.model_dump(
        exclude_unset=True, exclude_none=True, exclude={"image"}, mode="json"
    )
    warnings: list[str] = []

    if body.image and body.image != existing.image:
        image = ingestor.ingest(body.image, destination, target_record_id=package_id)
        if image.sync_warning:
            warnings.append(image.sync_warning)
        # Fields describing the previous upload must not outlive it
        updates.update(
            {
                "image": image.reference,
                "image_type": image.image_type,
                "image_id": image.image_id,
                "original_image_name": image.original_name,
                "image_size": image.size,
            }
        )

    try:
        pkg = repo.update_package(package_id, updates)
    except Exception as e:
        logger.error(f"Error updating package {package_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update package")
    if pkg is None:
        raise HTTPException(status_code=404, detail="Package not found")

    response: dict[str, Any] = {"success": True, "package": pkg.model_dump(mode="json")}
    if warnings:
        response["warnings"] = warnings
    return response


@router.delete("/{package_id}")
def delete_package(
    package_id: str,
    destination: str = Depends(valid_destination),
    repo: MongoDBRepo = Depends(get_repo),
    ingestor: ImageIngestor = Depends(get_ingestor),
) -> dict[str, Any]:
    _get_owned_package(repo, package_id, destination)
    pkg = repo.delete_package(package_id)
    if pkg is None:
        raise HTTPException(status_code=404, detail="Package not found")

    # Best effort; the package is already gone
    if pkg.image_type == "mongodb" and pkg.image_id:
        if not ingestor.delete_image(pkg.image_id):
            logger.warning(f"Could not delete image {pkg.image_id} of package {package_id}")

    logger.info(f"{destination} package deleted: {package_id}")
    return {"success": True, "message": "Package deleted successfully"}


@public_router.get("", response_model=list[PackageCard])
def list_packages(
    destination: str | None = Query(None),
    category: str | None = Query(None, description="e.g. 'romantic'"),
    is_active: bool | None = Query(None),
    repo: MongoDBRepo = Depends(get_repo),
    ingestor: ImageIngestor = Depends(get_ingestor),
) -> list[PackageCard]:
    try:
        packages = repo.list_packages(destination=destination, category=category, is_active=is_active)
    except Exception as e:
        logger.error(f"Error fetching packages: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch packages")
    return [_card(pkg, ingestor) for pkg in packages]


@romantic_router.get("", response_model=list[PackageCard])
def list_romantic_packages(
    repo: MongoDBRepo = Depends(get_repo),
    ingestor: ImageIngestor = Depends(get_ingestor),
) -> list[PackageCard]:
    """Active romantic packages of any destination, limited to the romantic types."""
    try:
        packages = repo.list_packages(category="romantic", is_active=True, types=ROMANTIC_TYPES)
    except Exception as e:
        logger.error(f"Error reading romantic packages: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch romantic packages")
    return [_card(pkg, ingestor) for pkg in packages]
