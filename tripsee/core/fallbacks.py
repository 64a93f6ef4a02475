"""
Fallback images bundled with the public site, keyed by destination tag.
"""

from pydantic import BaseModel, Field

DEFAULT_FALLBACK_PATHS = {
    "bali": "/Destination/Bali.jpeg",
    "thailand": "/Destination/Thailand.jpeg",
    "vietnam": "/Destination/Vietnam.jpeg",
    "singapore": "/Destination/Singapore.jpeg",
    "malaysia": "/Destination/Malasia.jpeg",
    "dubai": "/Destination/Dubai.jpeg",
    "andaman": "/Destination/andaman.jpeg",
    "maldives": "/Destination/Maldives.jpeg",
}
DEFAULT_FALLBACK = "/assets/flaticon.png"


class FallbackTable(BaseModel):
    """Static destination -> asset path mapping with one default entry."""

    paths: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_FALLBACK_PATHS))
    default: str = DEFAULT_FALLBACK

    def resolve(self, destination: str | None) -> str:
        if not destination:
            return self.default
        return self.paths.get(destination, self.default)
