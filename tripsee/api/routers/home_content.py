import logging

from fastapi import APIRouter, Depends, HTTPException

from tripsee.core.dependencies import get_ingestor
from tripsee.core.image_ingestor import ImageIngestor
from tripsee.core.repository import MongoDBRepo, get_repo
from tripsee.core.schemas import HomeContent, HomeContentUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["home-content"])


@router.get("/home-content", response_model=HomeContent)
def get_home_content(repo: MongoDBRepo = Depends(get_repo)) -> HomeContent:
    try:
        content = repo.get_home_content()
    except Exception as e:
        logger.error(f"Error reading home content: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to read home content")
    if content is None:
        raise HTTPException(status_code=404, detail="No home content found")
    return content


@router.put("/admin/home-content", response_model=HomeContent)
def save_home_content(
    body: HomeContentUpdate,
    repo: MongoDBRepo = Depends(get_repo),
    ingestor: ImageIngestor = Depends(get_ingestor),
) -> HomeContent:
    """Store a new version of the home page; the latest version is served."""
    for top in body.top_destinations:
        # Top destination names double as destination tags ("Bali" -> "bali")
        top.image = ingestor.ingest(top.image, top.name.lower()).reference
    for popular in body.popular_packages.destinations:
        popular.image = ingestor.ingest(popular.image, popular.name.lower()).reference

    try:
        return repo.save_home_content(body.model_dump(mode="json"))
    except Exception as e:
        logger.error(f"Error saving home content: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save home content")
