from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from tripsee.core.durations import format_duration

KNOWN_DESTINATIONS = (
    "bali",
    "thailand",
    "vietnam",
    "singapore",
    "malaysia",
    "dubai",
    "andaman",
    "maldives",
)

PackageCategory = Literal["romantic", "adventure", "family", "luxury", "budget"]
ImageType = Literal["base64", "url", "mongodb"]

# Package types shown on the public romantic listings
ROMANTIC_TYPES = ("Honeymoon", "Proposal", "Candle Night", "Beach Romance", "Anniversary", "Romantic")


# =============================================================================
# Image Schemas
# =============================================================================


class ImageAsset(BaseModel):
    """Binary image document stored in the images collection."""

    id: str
    filename: str
    original_name: str
    content_type: str
    size: int
    data: bytes
    destination: str
    uploaded_by: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class IngestResult(BaseModel):
    """
    Outcome of an image ingestion.

    `reference` is always usable by a record. `image_id` is only set when new
    binary content was stored. `sync_warning` is set when the optional
    target-record update did not take effect; the stored image is kept either way.
    """

    reference: str
    image_id: str | None = None
    original_name: str | None = None
    size: int | None = None
    sync_warning: str | None = None

    @property
    def stored(self) -> bool:
        return self.image_id is not None

    @property
    def image_type(self) -> ImageType:
        return "mongodb" if self.reference.startswith("/api/images/") else "url"


class UploadImageRequest(BaseModel):
    image_data: str
    file_name: str
    destination: str | None = None


class UploadImageResponse(BaseModel):
    success: bool = True
    image_path: str
    file_name: str
    image_id: str
    image_type: ImageType = "mongodb"


# =============================================================================
# Package Schemas
# =============================================================================


class PackageDay(BaseModel):
    day: int
    title: str
    description: str | None = None
    activities: list[str] = Field(default_factory=list)


class PackageBase(BaseModel):
    name: str
    description: str = ""
    price: float = Field(..., ge=0)
    duration: str = ""
    days: str | None = Field(None, description="Display duration, e.g. '4 Nights 5 Days'")
    location: str | None = None
    features: list[str] = Field(default_factory=list)
    itinerary: list[PackageDay] = Field(default_factory=list)
    inclusions: list[str] = Field(default_factory=list)
    exclusions: list[str] = Field(default_factory=list)
    highlights: list[str] = Field(default_factory=list)
    best_time_to_visit: str = ""
    category: PackageCategory = "romantic"
    type: str = "Standard"
    hotel_rating: int = Field(4, ge=3, le=5)
    is_active: bool = True


class PackageCreate(PackageBase):
    image: str | None = Field(None, description="Inline data URI, static path or URL")


class PackageUpdate(BaseModel):
    """Partial update; only fields that are set are written."""

    name: str | None = None
    description: str | None = None
    price: float | None = Field(None, ge=0)
    duration: str | None = None
    days: str | None = None
    location: str | None = None
    image: str | None = None
    features: list[str] | None = None
    itinerary: list[PackageDay] | None = None
    inclusions: list[str] | None = None
    exclusions: list[str] | None = None
    highlights: list[str] | None = None
    best_time_to_visit: str | None = None
    category: PackageCategory | None = None
    type: str | None = None
    hotel_rating: int | None = Field(None, ge=3, le=5)
    is_active: bool | None = None


class Package(PackageBase):
    id: str
    destination: str
    image: str
    image_type: ImageType = "url"
    image_id: str | None = None
    original_image_name: str | None = None
    image_size: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PackageCard(BaseModel):
    """Package reshaped for the public listing components."""

    id: str
    title: str
    image: str
    days: str
    location: str
    price: str
    type: str
    hotel_rating: int
    features: list[str] = Field(default_factory=list)
    highlights: str = ""
    destination: str
    category: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_package(cls, pkg: Package) -> "PackageCard":
        highlights = " • ".join(pkg.highlights) if pkg.highlights else pkg.description
        return cls(
            id=pkg.id,
            title=pkg.name,
            image=pkg.image,
            days=format_duration(pkg.days or pkg.duration),
            location=pkg.location or pkg.destination.title(),
            price=f"₹{pkg.price:,.0f}/-",
            type=pkg.type or pkg.category,
            hotel_rating=pkg.hotel_rating,
            features=pkg.features,
            highlights=highlights,
            destination=pkg.destination,
            category=pkg.category,
            created_at=pkg.created_at,
            updated_at=pkg.updated_at,
        )


# =============================================================================
# Itinerary Schemas
# =============================================================================


class HotelImage(BaseModel):
    src: str
    alt: str = ""
    name: str = ""
    description: str = ""


class ItineraryDay(BaseModel):
    day: int = Field(..., ge=1)
    title: str
    activities: list[str] = Field(default_factory=list)
    meals: list[str] = Field(default_factory=list)
    accommodation: str


class ItineraryBase(BaseModel):
    title: str
    duration: str
    overview: str
    package_id: str | None = None
    hotel_name: str | None = None
    hotel_rating: str | None = None
    hotel_description: str | None = None
    hotel_images: list[HotelImage] = Field(default_factory=list)
    days: list[ItineraryDay] = Field(default_factory=list)
    inclusions: list[str] = Field(default_factory=list)
    exclusions: list[str] = Field(default_factory=list)
    category: str | None = None
    is_active: bool = True


class ItineraryCreate(ItineraryBase):
    pass


class ItineraryUpdate(BaseModel):
    title: str | None = None
    duration: str | None = None
    overview: str | None = None
    package_id: str | None = None
    hotel_name: str | None = None
    hotel_rating: str | None = None
    hotel_description: str | None = None
    hotel_images: list[HotelImage] | None = None
    days: list[ItineraryDay] | None = None
    inclusions: list[str] | None = None
    exclusions: list[str] | None = None
    category: str | None = None
    is_active: bool | None = None


class Itinerary(ItineraryBase):
    id: str
    destination: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


# =============================================================================
# City Filter Schemas
# =============================================================================


class CityFilter(BaseModel):
    id: int
    name: str
    count: int = 0
    is_active: bool = True
    order: int


class CityFilterCreate(BaseModel):
    destination: str
    name: str = Field(..., min_length=1)
    order: int | None = None


class CityFilterUpdate(BaseModel):
    destination: str
    id: int
    name: str | None = None
    is_active: bool | None = None
    order: int | None = None


# =============================================================================
# Home Content Schemas
# =============================================================================


class TopDestination(BaseModel):
    name: str
    description: str
    image: str
    path: str


class TopDestinationAttraction(BaseModel):
    name: str
    description: str
    image: str


class PopularDestination(BaseModel):
    name: str
    image: str
    packages: list[PackageCard] = Field(default_factory=list)
    top_destinations: list[TopDestinationAttraction] = Field(default_factory=list)


class PopularPackages(BaseModel):
    destinations: list[PopularDestination] = Field(default_factory=list)


class HomeContentUpdate(BaseModel):
    top_destinations: list[TopDestination] = Field(default_factory=list)
    popular_packages: PopularPackages = Field(default_factory=PopularPackages)


class HomeContent(HomeContentUpdate):
    id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
