import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from tripsee.core.dependencies import get_ingestor
from tripsee.core.image_ingestor import ImageIngestor, InvalidImageError
from tripsee.core.schemas import UploadImageRequest, UploadImageResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["images"])


@router.get("/images/{image_id}")
def get_image(image_id: str, ingestor: ImageIngestor = Depends(get_ingestor)) -> Response:
    """Serve a stored image with long-lived caching."""
    image = ingestor.get_image(image_id)
    if image is None:
        raise HTTPException(status_code=404, detail="Image not found")

    return Response(
        content=image.data,
        media_type=image.content_type,
        headers={
            "Content-Length": str(image.size),
            "Cache-Control": "public, max-age=31536000, immutable",
            "ETag": f'"{image.id}"',
        },
    )


@router.delete("/images/{image_id}")
def delete_image(image_id: str, ingestor: ImageIngestor = Depends(get_ingestor)) -> dict:
    if not ingestor.delete_image(image_id):
        raise HTTPException(status_code=404, detail="Image not found")
    return {"success": True, "message": "Image deleted successfully"}


@router.post("/admin/upload-image", response_model=UploadImageResponse)
def upload_image(
    body: UploadImageRequest, ingestor: ImageIngestor = Depends(get_ingestor)
) -> UploadImageResponse:
    """Store an admin upload and return its public path."""
    if not body.image_data or not body.file_name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Image data and filename are required",
        )
    try:
        asset = ingestor.store_upload(body.image_data, body.file_name, body.destination)
    except InvalidImageError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error uploading image: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to upload image")

    return UploadImageResponse(
        image_path=f"/api/images/{asset.id}",
        file_name=asset.filename,
        image_id=asset.id,
    )
