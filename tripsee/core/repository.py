from __future__ import annotations

import logging
from datetime import datetime
from functools import lru_cache
from typing import Any, Sequence

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING, MongoClient, ReturnDocument
from pymongo.database import Database

from tripsee.core.schemas import HomeContent, ImageAsset, Itinerary, Package
from tripsee.core.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def _object_id(value: str | None) -> ObjectId | None:
    """Parse a path id; malformed ids behave like unknown ones."""
    if not value:
        return None
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def _with_id(doc: dict[str, Any]) -> dict[str, Any]:
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return doc


class MongoDBRepo:
    def __init__(self, db: Database | None = None, settings: Settings | None = None):
        if db is None:
            db = self._connect(settings or get_settings())
        self.db = db

        # Collections
        self.images_collection = self.db.images
        self.packages_collection = self.db.packages
        self.itineraries_collection = self.db.itineraries
        self.home_content_collection = self.db.homecontent

    def _connect(self, settings: Settings) -> Database:
        if settings.environment == "development":
            # In development, prefer MONGODB_URI_TEST, fallback to MONGODB_URI
            mongodb_uri = settings.mongodb_uri_test or settings.mongodb_uri
            database_name = settings.database_name_test
        else:
            mongodb_uri = settings.mongodb_uri
            database_name = settings.database_name
        if not mongodb_uri:
            raise ValueError("MONGODB_URI environment variable is required")
        logger.info(f"Using database {database_name} (ENVIRONMENT={settings.environment})")

        self.client = MongoClient(
            mongodb_uri,
            serverSelectionTimeoutMS=5000,  # 5 second timeout
            connectTimeoutMS=10000,  # 10 second connection timeout
            socketTimeoutMS=20000,  # 20 second socket timeout
            retryWrites=True,
            retryReads=True,
        )
        db = self.client[database_name]

        # Test connection and create indexes only if connection works
        try:
            self.client.admin.command("ping")
            logger.info("MongoDB connection successful")
            try:
                db.images.create_index("destination")
                db.images.create_index([("created_at", DESCENDING)])
                db.images.create_index("filename")
                db.packages.create_index("destination")
                db.packages.create_index("category")
                db.packages.create_index("hotel_rating")
                db.packages.create_index("is_active")
                db.packages.create_index([("created_at", DESCENDING)])
                db.itineraries.create_index("destination")
                db.itineraries.create_index("package_id")
                db.homecontent.create_index([("created_at", DESCENDING)])
            except Exception as index_error:
                logger.warning(f"Index creation failed (might already exist): {index_error}")
        except Exception as e:
            logger.error(f"MongoDB connection failed: {str(e)[:200]}")
            logger.warning("Will continue without database connection")
        return db

    # Images
    def save_image(self, doc: dict[str, Any]) -> str:
        result = self.images_collection.insert_one(dict(doc))
        return str(result.inserted_id)

    def get_image(self, image_id: str) -> ImageAsset | None:
        oid = _object_id(image_id)
        if oid is None:
            return None
        doc = self.images_collection.find_one({"_id": oid})
        if not doc:
            return None
        doc = _with_id(doc)
        doc["data"] = bytes(doc["data"])
        return ImageAsset(**doc)

    def image_exists(self, image_id: str) -> bool:
        oid = _object_id(image_id)
        if oid is None:
            return False
        return self.images_collection.find_one({"_id": oid}, {"_id": 1}) is not None

    def delete_image(self, image_id: str) -> bool:
        oid = _object_id(image_id)
        if oid is None:
            return False
        result = self.images_collection.delete_one({"_id": oid})
        return result.deleted_count > 0

    # Packages
    def create_package(self, doc: dict[str, Any]) -> Package:
        now = datetime.utcnow()
        doc = {**doc, "created_at": now, "updated_at": now}
        result = self.packages_collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return Package(**_with_id(doc))

    def get_package(self, package_id: str) -> Package | None:
        oid = _object_id(package_id)
        if oid is None:
            return None
        doc = self.packages_collection.find_one({"_id": oid})
        return Package(**_with_id(doc)) if doc else None

    def list_packages(
        self,
        destination: str | None = None,
        category: str | None = None,
        is_active: bool | None = None,
        types: Sequence[str] | None = None,
    ) -> list[Package]:
        query: dict[str, Any] = {}
        if destination:
            query["destination"] = destination
        if category:
            query["category"] = category
        if is_active is not None:
            query["is_active"] = is_active
        if types is not None:
            query["type"] = {"$in": list(types)}
        cursor = self.packages_collection.find(query).sort("created_at", DESCENDING)
        return [Package(**_with_id(doc)) for doc in cursor]

    def package_locations(self, destination: str) -> list[str]:
        cursor = self.packages_collection.find({"destination": destination}, {"location": 1})
        return [doc["location"] for doc in cursor if doc.get("location")]

    def update_package(self, package_id: str, updates: dict[str, Any]) -> Package | None:
        oid = _object_id(package_id)
        if oid is None:
            return None
        updates = {**updates, "updated_at": datetime.utcnow()}
        doc = self.packages_collection.find_one_and_update(
            {"_id": oid}, {"$set": updates}, return_document=ReturnDocument.AFTER
        )
        return Package(**_with_id(doc)) if doc else None

    def set_package_image(self, package_id: str, fields: dict[str, Any]) -> bool:
        """Point a package at a stored image. Returns False when no package matched."""
        oid = _object_id(package_id)
        if oid is None:
            return False
        result = self.packages_collection.update_one(
            {"_id": oid}, {"$set": {**fields, "updated_at": datetime.utcnow()}}
        )
        return result.matched_count > 0

    def delete_package(self, package_id: str) -> Package | None:
        oid = _object_id(package_id)
        if oid is None:
            return None
        doc = self.packages_collection.find_one_and_delete({"_id": oid})
        return Package(**_with_id(doc)) if doc else None

    # Itineraries
    def create_itinerary(self, doc: dict[str, Any]) -> Itinerary:
        now = datetime.utcnow()
        doc = {**doc, "created_at": now, "updated_at": now}
        result = self.itineraries_collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return Itinerary(**_with_id(doc))

    def get_itinerary(self, itinerary_id: str) -> Itinerary | None:
        oid = _object_id(itinerary_id)
        if oid is None:
            return None
        doc = self.itineraries_collection.find_one({"_id": oid})
        return Itinerary(**_with_id(doc)) if doc else None

    def list_itineraries(self, destination: str, package_id: str | None = None) -> list[Itinerary]:
        query: dict[str, Any] = {"destination": destination}
        if package_id:
            query["package_id"] = package_id
        cursor = self.itineraries_collection.find(query).sort("created_at", DESCENDING)
        return [Itinerary(**_with_id(doc)) for doc in cursor]

    def list_active_itineraries(self, package_ids: Sequence[str]) -> list[Itinerary]:
        """Active itineraries of any destination linked to one of the given packages."""
        query = {"is_active": True, "package_id": {"$in": list(package_ids)}}
        cursor = self.itineraries_collection.find(query).sort("created_at", DESCENDING)
        return [Itinerary(**_with_id(doc)) for doc in cursor]

    def update_itinerary(self, itinerary_id: str, updates: dict[str, Any]) -> Itinerary | None:
        oid = _object_id(itinerary_id)
        if oid is None:
            return None
        updates = {**updates, "updated_at": datetime.utcnow()}
        doc = self.itineraries_collection.find_one_and_update(
            {"_id": oid}, {"$set": updates}, return_document=ReturnDocument.AFTER
        )
        return Itinerary(**_with_id(doc)) if doc else None

    def delete_itinerary(self, itinerary_id: str) -> bool:
        oid = _object_id(itinerary_id)
        if oid is None:
            return False
        result = self.itineraries_collection.delete_one({"_id": oid})
        return result.deleted_count > 0

    # Home content
    def get_home_content(self) -> HomeContent | None:
        doc = self.home_content_collection.find_one({}, sort=[("created_at", DESCENDING)])
        return HomeContent(**_with_id(doc)) if doc else None

    def save_home_content(self, doc: dict[str, Any]) -> HomeContent:
        now = datetime.utcnow()
        doc = {**doc, "created_at": now, "updated_at": now}
        result = self.home_content_collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return HomeContent(**_with_id(doc))


@lru_cache
def get_repo() -> MongoDBRepo:
    """Process-wide repository; the MongoClient is opened once and reused."""
    return MongoDBRepo()
