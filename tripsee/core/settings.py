import os

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "production").lower()
    mongodb_uri: str = os.getenv("MONGODB_URI", "")
    mongodb_uri_test: str = os.getenv("MONGODB_URI_TEST", "")
    database_name: str = os.getenv("DATABASE_NAME", "tripsee")
    database_name_test: str = os.getenv("DATABASE_NAME_TEST", "tripsee_test")
    allowed_origins: str = os.getenv("ALLOWED_ORIGINS", "")
    image_max_kb: int = int(os.getenv("IMAGE_MAX_KB", "5000"))
    google_places_api_key: str = os.getenv("GOOGLE_PLACES_API_KEY", "")
    google_place_id: str = os.getenv("GOOGLE_PLACE_ID", "")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    def extra_origins(self) -> list[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


def get_settings() -> Settings:
    return Settings()
