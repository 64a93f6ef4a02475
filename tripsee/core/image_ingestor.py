"""
Image ingestion for package, itinerary and home-page records.

Turns whatever the admin UI submits as an image (inline data URI, static path,
external URL or nothing at all) into a reference that always resolves:
either a stored binary served from /api/images/{id}, the normalized path, or
a destination fallback.
"""

import base64
import binascii
import logging
import math
import re
import time
import uuid
from datetime import datetime
from typing import Any

from tripsee.core.fallbacks import FallbackTable
from tripsee.core.schemas import ImageAsset, IngestResult

logger = logging.getLogger(__name__)

DATA_URI_PREFIX = "data:image/"
DATA_URI_PATTERN = re.compile(r"data:image/([a-zA-Z]+);base64,(.+)")
IMAGE_ROUTE_PREFIX = "/api/images/"
MAX_IMAGE_KB = 5000
INVALID_PATHS = {"/", "/null", "/undefined"}


class InvalidImageError(ValueError):
    """Raised by strict uploads when the payload is not an inline image."""


def _parse_data_uri(image: str) -> tuple[str, bytes] | None:
    matches = DATA_URI_PATTERN.match(image)
    if not matches:
        return None
    extension, payload = matches.groups()
    try:
        return extension, base64.b64decode(payload + "=" * (-len(payload) % 4))
    except (binascii.Error, ValueError):
        return None


def _size_kb(buffer: bytes) -> int:
    # Halves round up, so 5000.5 KB counts as 5001
    return math.floor(len(buffer) / 1024 + 0.5)


def _generate_filename(prefix: str, extension: str) -> str:
    timestamp = int(time.time() * 1000)
    return f"{prefix}_{timestamp}_{uuid.uuid4().hex[:6]}.{extension}"


def normalize_path(image: str) -> str:
    """Root a path at / and drop its query string."""
    normalized = image if image.startswith("/") else "/" + image
    return normalized.split("?", 1)[0]


class ImageIngestor:
    def __init__(self, repository: Any, fallbacks: FallbackTable | None = None, max_kb: int = MAX_IMAGE_KB):
        self.repository = repository
        self.fallbacks = fallbacks or FallbackTable()
        self.max_kb = max_kb

    def fallback(self, destination: str | None) -> str:
        return self.fallbacks.resolve(destination)

    def ingest(
        self,
        image: str | None,
        destination: str = "default",
        target_record_id: str | None = None,
    ) -> IngestResult:
        """
        Resolve an admin-supplied image to a displayable reference.

        Args:
            image: Inline data URI, static path, URL, or empty
            destination: Destination tag used for the fallback and stored on the asset
            target_record_id: Package whose image fields should follow the new asset

        Returns:
            IngestResult; never raises
        """
        if not image:
            return IngestResult(reference=self.fallback(destination))

        if image.startswith(DATA_URI_PREFIX):
            return self._ingest_data_uri(image, destination, target_record_id)

        normalized = normalize_path(image)
        if normalized in INVALID_PATHS:
            return IngestResult(reference=self.fallback(destination))
        return IngestResult(reference=normalized)

    def _ingest_data_uri(
        self, image: str, destination: str, target_record_id: str | None
    ) -> IngestResult:
        parsed = _parse_data_uri(image)
        if parsed is None:
            logger.warning(f"Unparseable inline image for '{destination}', using fallback")
            return IngestResult(reference=self.fallback(destination))

        extension, buffer = parsed
        size_kb = _size_kb(buffer)
        if size_kb > self.max_kb:
            logger.warning(f"Image too large: {size_kb}KB, using fallback")
            return IngestResult(reference=self.fallback(destination))

        original_name = f"package_image.{extension}"
        try:
            image_id = self._store(
                buffer, extension, destination, _generate_filename("pkg", extension), original_name
            )
        except Exception as e:
            logger.error(f"Error storing image for '{destination}': {e}", exc_info=True)
            return IngestResult(reference=self.fallback(destination))

        result = IngestResult(
            reference=f"{IMAGE_ROUTE_PREFIX}{image_id}",
            image_id=image_id,
            original_name=original_name,
            size=len(buffer),
        )
        if target_record_id:
            result.sync_warning = self._sync_target(target_record_id, result)
        return result

    def _store(
        self, buffer: bytes, extension: str, destination: str, filename: str, original_name: str
    ) -> str:
        now = datetime.utcnow()
        return self.repository.save_image(
            {
                "filename": filename,
                "original_name": original_name,
                "content_type": f"image/{extension}",
                "size": len(buffer),
                "data": buffer,
                "destination": destination,
                "uploaded_by": "admin",
                "created_at": now,
                "updated_at": now,
            }
        )

    def _sync_target(self, target_record_id: str, result: IngestResult) -> str | None:
        # The stored image is kept even when this write fails.
        try:
            matched = self.repository.set_package_image(
                target_record_id,
                {
                    "image": result.reference,
                    "image_type": "mongodb",
                    "image_id": result.image_id,
                    "original_image_name": result.original_name,
                    "image_size": result.size,
                },
            )
        except Exception as e:
            logger.error(f"Failed to sync image onto package {target_record_id}: {e}")
            return f"failed to update target record {target_record_id}: {e}"
        if not matched:
            logger.warning(f"Image {result.image_id} stored but package {target_record_id} not found")
            return f"target record {target_record_id} not found"
        return None

    def store_upload(self, image_data: str, file_name: str, destination: str | None = None) -> ImageAsset:
        """Store an explicit admin upload. Unlike ingest(), bad input raises."""
        if not image_data.startswith(DATA_URI_PREFIX):
            raise InvalidImageError("Invalid image data format")
        parsed = _parse_data_uri(image_data)
        if parsed is None:
            raise InvalidImageError("Invalid data URL format")
        extension, buffer = parsed
        if _size_kb(buffer) > self.max_kb:
            raise InvalidImageError(f"Image exceeds {self.max_kb}KB limit")

        stem = re.sub(r"\.[^/.]+$", "", file_name)
        sanitized = re.sub(r"[^a-zA-Z0-9.-]", "_", stem)
        destination = destination or "packages"
        image_id = self._store(
            buffer,
            extension,
            destination,
            _generate_filename("package", extension),
            f"{sanitized}.{extension}",
        )
        asset = self.repository.get_image(image_id)
        logger.info(f"Uploaded image {image_id} for '{destination}'")
        return asset

    def get_image(self, image_id: str) -> ImageAsset | None:
        try:
            return self.repository.get_image(image_id)
        except Exception as e:
            logger.error(f"Error fetching image {image_id}: {e}")
            return None

    def delete_image(self, image_id: str) -> bool:
        try:
            deleted = self.repository.delete_image(image_id)
        except Exception as e:
            logger.error(f"Error deleting image {image_id}: {e}")
            return False
        if deleted:
            logger.info(f"Image deleted: {image_id}")
        return deleted

    def validate_image_path(self, image_path: str) -> bool:
        """Stored references must exist; any other path is trusted."""
        if not image_path.startswith(IMAGE_ROUTE_PREFIX):
            return True
        try:
            return self.repository.image_exists(image_path[len(IMAGE_ROUTE_PREFIX):])
        except Exception as e:
            logger.error(f"Image validation failed for {image_path}: {e}")
            return False


def optimized_image_url(image_path: str) -> str:
    if image_path.startswith(IMAGE_ROUTE_PREFIX) or image_path.startswith(DATA_URI_PREFIX):
        return image_path
    if not image_path.startswith("/"):
        return "/" + image_path
    return image_path
