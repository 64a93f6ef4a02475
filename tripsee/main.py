import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tripsee.api.routers.city_filters import public_router as public_city_filters_router
from tripsee.api.routers.city_filters import router as city_filters_router
from tripsee.api.routers.home_content import router as home_content_router
from tripsee.api.routers.images import router as images_router
from tripsee.api.routers.itineraries import romantic_router as romantic_itineraries_router
from tripsee.api.routers.itineraries import router as itineraries_router
from tripsee.api.routers.packages import public_router as public_packages_router
from tripsee.api.routers.packages import romantic_router as romantic_packages_router
from tripsee.api.routers.packages import router as packages_router
from tripsee.api.routers.reviews import router as reviews_router
from tripsee.core.city_filters import CityFilterRegistry
from tripsee.core.csrf_middleware import DEFAULT_ALLOWED_ORIGINS, CSRFProtectionMiddleware
from tripsee.core.fallbacks import FallbackTable
from tripsee.core.settings import get_settings

load_dotenv()


def create_app(
    fallbacks: FallbackTable | None = None,
    city_filters: CityFilterRegistry | None = None,
) -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    application = FastAPI(title="Tripsee Backend")

    # Production origins come from ALLOWED_ORIGINS (comma separated)
    allowed_origins = DEFAULT_ALLOWED_ORIGINS + settings.extra_origins()

    application.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # CSRF Protection: Validate Origin header for state-changing requests
    application.add_middleware(CSRFProtectionMiddleware, allowed_origins=allowed_origins)

    # Per-app state; the database connection is shared through get_repo()
    application.state.fallbacks = fallbacks or FallbackTable()
    application.state.city_filters = city_filters or CityFilterRegistry()

    @application.get("/healthz", tags=["health"])
    def healthz() -> dict:
        return {"status": "ok"}

    application.include_router(images_router)
    application.include_router(packages_router)
    application.include_router(public_packages_router)
    application.include_router(romantic_packages_router)
    application.include_router(itineraries_router)
    application.include_router(romantic_itineraries_router)
    application.include_router(city_filters_router)
    application.include_router(public_city_filters_router)
    application.include_router(home_content_router)
    application.include_router(reviews_router)
    return application


app = create_app()
