import pytest
from bson import ObjectId
from httpx import ASGITransport, AsyncClient

from tripsee.core.dependencies import get_reviews_service
from tripsee.core.reviews_service import GoogleReviewsService, ReviewsAPIError

BASE_URL = "http://test"


def _client(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url=BASE_URL)


def _package_body(**overrides):
    body = {
        "name": "Romantic Dubai",
        "description": "Desert safari and a Burj Khalifa dinner",
        "price": 45000,
        "duration": "5 Days",
        "days": "4 Nights 5 Days",
        "location": "Dubai City & Abu Dhabi",
        "highlights": ["Desert safari", "Dhow cruise"],
        "type": "Honeymoon",
        "hotel_rating": 5,
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_healthz_integration(app):
    async with _client(app) as ac:
        response = await ac.get("/healthz")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_package_image_lifecycle(app, png_bytes, make_data_uri):
    async with _client(app) as ac:
        created = await ac.post(
            "/api/admin/destinations/dubai/packages",
            json=_package_body(image=make_data_uri(png_bytes)),
        )
        assert created.status_code == 201
        pkg = created.json()
        assert pkg["destination"] == "dubai"
        assert pkg["image_type"] == "mongodb"
        assert pkg["image"] == f"/api/images/{pkg['image_id']}"

        image = await ac.get(pkg["image"])
        assert image.status_code == 200
        assert image.content == png_bytes
        assert image.headers["content-type"] == "image/png"
        assert image.headers["content-length"] == str(len(png_bytes))
        assert image.headers["etag"] == f'"{pkg["image_id"]}"'
        assert "immutable" in image.headers["cache-control"]

        deleted = await ac.delete(f"/api/admin/destinations/dubai/packages/{pkg['id']}")
        assert deleted.status_code == 200
        assert (await ac.get(pkg["image"])).status_code == 404
        assert (await ac.get(f"/api/admin/destinations/dubai/packages/{pkg['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_package_without_image_gets_fallback(app):
    async with _client(app) as ac:
        created = await ac.post("/api/admin/destinations/bali/packages", json=_package_body())
        assert created.status_code == 201
        assert created.json()["image"] == "/Destination/Bali.jpeg"
        assert created.json()["image_type"] == "url"


@pytest.mark.asyncio
async def test_destination_listing_returns_cards(app):
    async with _client(app) as ac:
        await ac.post("/api/admin/destinations/dubai/packages", json=_package_body())
        await ac.post("/api/admin/destinations/bali/packages", json=_package_body(name="Ubud"))

        response = await ac.get("/api/admin/destinations/dubai/packages")
    assert response.status_code == 200
    cards = response.json()
    assert len(cards) == 1
    assert cards[0]["title"] == "Romantic Dubai"
    assert cards[0]["price"] == "₹45,000/-"
    assert cards[0]["days"] == "4 Nights 5 Days"
    assert cards[0]["highlights"] == "Desert safari • Dhow cruise"
    assert cards[0]["image"] == "/Destination/Dubai.jpeg"


@pytest.mark.asyncio
async def test_public_listing_filters_by_category(app):
    async with _client(app) as ac:
        await ac.post("/api/admin/destinations/dubai/packages", json=_package_body())
        await ac.post(
            "/api/admin/destinations/bali/packages",
            json=_package_body(name="Family Bali", category="family"),
        )
        response = await ac.get("/api/packages", params={"category": "romantic"})
    assert [card["title"] for card in response.json()] == ["Romantic Dubai"]


@pytest.mark.asyncio
async def test_romantic_packages_use_type_whitelist(app):
    async with _client(app) as ac:
        await ac.post("/api/admin/destinations/dubai/packages", json=_package_body())
        await ac.post(
            "/api/admin/destinations/bali/packages",
            json=_package_body(name="Ubud Anniversary", type="Anniversary", duration="6N 7D", days=None),
        )
        await ac.post("/api/admin/destinations/bali/packages", json=_package_body(name="Bali Standard", type="Standard"))
        await ac.post("/api/admin/destinations/bali/packages", json=_package_body(name="Bali Hidden", is_active=False))
        await ac.post(
            "/api/admin/destinations/bali/packages",
            json=_package_body(name="Bali Family", category="family"),
        )

        response = await ac.get("/api/romantic-packages")
    assert response.status_code == 200
    cards = {card["title"]: card for card in response.json()}
    assert set(cards) == {"Romantic Dubai", "Ubud Anniversary"}
    assert cards["Ubud Anniversary"]["days"] == "6 Nights 7 Days"


@pytest.mark.asyncio
async def test_romantic_itineraries(app):
    def _itinerary(package_id, **overrides):
        body = {
            "title": f"Itinerary for {package_id}",
            "duration": "4 Nights 5 Days",
            "overview": "Sunsets",
            "package_id": package_id,
        }
        body.update(overrides)
        return body

    async with _client(app) as ac:
        romantic = (await ac.post("/api/admin/destinations/bali/packages", json=_package_body())).json()
        standard = (
            await ac.post("/api/admin/destinations/bali/packages", json=_package_body(name="Plain", type="Standard"))
        ).json()

        linked = (await ac.post("/api/admin/destinations/bali/itineraries", json=_itinerary(romantic["id"]))).json()
        await ac.post(
            "/api/admin/destinations/bali/itineraries", json=_itinerary(romantic["id"], title="Old", is_active=False)
        )
        other = (await ac.post("/api/admin/destinations/bali/itineraries", json=_itinerary(standard["id"]))).json()

        listed = await ac.get("/api/romantic-itineraries")
        by_package = await ac.get("/api/romantic-itineraries", params={"package_id": standard["id"]})

    assert listed.status_code == 200
    assert [item["id"] for item in listed.json()] == [linked["id"]]
    assert [item["id"] for item in by_package.json()] == [other["id"]]


@pytest.mark.asyncio
async def test_romantic_itineraries_empty_without_romantic_packages(app):
    async with _client(app) as ac:
        await ac.post(
            "/api/admin/destinations/bali/itineraries",
            json={"title": "Loose", "duration": "2 Days", "overview": "x", "package_id": "pkg-9"},
        )
        response = await ac.get("/api/romantic-itineraries")
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_unknown_destination_is_404(app):
    async with _client(app) as ac:
        response = await ac.get("/api/admin/destinations/atlantis/packages")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_invalid_package_body_is_422(app):
    async with _client(app) as ac:
        response = await ac.post(
            "/api/admin/destinations/bali/packages", json=_package_body(hotel_rating=7)
        )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_package_ingests_new_image(app, repo, png_bytes, make_data_uri):
    async with _client(app) as ac:
        pkg = (await ac.post("/api/admin/destinations/bali/packages", json=_package_body())).json()

        response = await ac.put(
            f"/api/admin/destinations/bali/packages/{pkg['id']}",
            json={"price": 52000, "image": make_data_uri(png_bytes)},
        )
    assert response.status_code == 200
    body = response.json()
    assert "warnings" not in body
    updated = body["package"]
    assert updated["price"] == 52000
    assert updated["name"] == "Romantic Dubai"
    assert updated["image_type"] == "mongodb"
    assert repo.get_image(updated["image_id"]).data == png_bytes


@pytest.mark.asyncio
async def test_update_package_reports_failed_image_sync(app, repo, png_bytes, make_data_uri, monkeypatch):
    def _write_conflict(*args, **kwargs):
        raise RuntimeError("write conflict")

    async with _client(app) as ac:
        pkg = (await ac.post("/api/admin/destinations/bali/packages", json=_package_body())).json()
        monkeypatch.setattr(repo, "set_package_image", _write_conflict)

        response = await ac.put(
            f"/api/admin/destinations/bali/packages/{pkg['id']}",
            json={"image": make_data_uri(png_bytes)},
        )
    assert response.status_code == 200
    body = response.json()
    assert len(body["warnings"]) == 1
    assert "write conflict" in body["warnings"][0]
    assert body["package"]["image"] == f"/api/images/{body['package']['image_id']}"


@pytest.mark.asyncio
async def test_update_package_to_plain_path_clears_stored_image_fields(app, repo, png_bytes, make_data_uri):
    async with _client(app) as ac:
        pkg = (
            await ac.post("/api/admin/destinations/bali/packages", json=_package_body(image=make_data_uri(png_bytes)))
        ).json()
        old_image_id = pkg["image_id"]

        response = await ac.put(
            f"/api/admin/destinations/bali/packages/{pkg['id']}", json={"image": "/img/ubud.jpg"}
        )
        updated = response.json()["package"]
        assert updated["image"] == "/img/ubud.jpg"
        assert updated["image_type"] == "url"
        assert updated["image_id"] is None
        assert updated["original_image_name"] is None
        assert updated["image_size"] is None

        await ac.delete(f"/api/admin/destinations/bali/packages/{pkg['id']}")
    # The package no longer owned the earlier upload, so deleting it leaves that asset alone
    assert repo.get_image(old_image_id) is not None


@pytest.mark.asyncio
async def test_update_package_to_existing_reference_drops_old_image_id(app, repo, png_bytes, make_data_uri):
    async with _client(app) as ac:
        pkg = (
            await ac.post("/api/admin/destinations/bali/packages", json=_package_body(image=make_data_uri(png_bytes)))
        ).json()
        shared = (
            await ac.post(
                "/api/admin/upload-image", json={"image_data": make_data_uri(png_bytes), "file_name": "shared.png"}
            )
        ).json()

        response = await ac.put(
            f"/api/admin/destinations/bali/packages/{pkg['id']}", json={"image": shared["image_path"]}
        )
    updated = response.json()["package"]
    assert updated["image"] == shared["image_path"]
    assert updated["image_type"] == "mongodb"
    assert updated["image_id"] is None


@pytest.mark.asyncio
async def test_package_of_other_destination_is_404(app):
    async with _client(app) as ac:
        pkg = (await ac.post("/api/admin/destinations/bali/packages", json=_package_body())).json()
        response = await ac.get(f"/api/admin/destinations/dubai/packages/{pkg['id']}")
        missing = await ac.put(
            f"/api/admin/destinations/bali/packages/{ObjectId()}", json={"price": 1}
        )
    assert response.status_code == 404
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_image_routes_unknown_id(app):
    async with _client(app) as ac:
        assert (await ac.get("/api/images/not-an-id")).status_code == 404
        assert (await ac.delete(f"/api/images/{ObjectId()}")).status_code == 404


@pytest.mark.asyncio
async def test_upload_image(app, png_bytes, make_data_uri):
    async with _client(app) as ac:
        response = await ac.post(
            "/api/admin/upload-image",
            json={"image_data": make_data_uri(png_bytes), "file_name": "sunset.jpg", "destination": "bali"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["image_path"] == f"/api/images/{body['image_id']}"
        assert body["image_type"] == "mongodb"
        assert (await ac.get(body["image_path"])).content == png_bytes

        deleted = await ac.delete(body["image_path"])
        assert deleted.json()["success"] is True


@pytest.mark.asyncio
async def test_upload_image_rejects_paths(app):
    async with _client(app) as ac:
        response = await ac.post(
            "/api/admin/upload-image", json={"image_data": "/img/a.jpg", "file_name": "a.jpg"}
        )
        empty = await ac.post("/api/admin/upload-image", json={"image_data": "", "file_name": "a.jpg"})
    assert response.status_code == 400
    assert empty.status_code == 400


@pytest.mark.asyncio
async def test_itinerary_crud(app, png_bytes, make_data_uri):
    itinerary = {
        "title": "Dubai Luxury 5D",
        "duration": "4 Nights 5 Days",
        "overview": "City lights and dunes",
        "package_id": "pkg-1",
        "hotel_images": [{"src": make_data_uri(png_bytes), "alt": "Pool"}, {"src": "hotels/lobby.jpg"}],
        "days": [
            {"day": 1, "title": "Arrival", "activities": ["Check-in"], "meals": ["Dinner"], "accommodation": "Atlantis"}
        ],
    }
    async with _client(app) as ac:
        created = await ac.post("/api/admin/destinations/dubai/itineraries", json=itinerary)
        assert created.status_code == 201
        body = created.json()
        assert body["hotel_images"][0]["src"].startswith("/api/images/")
        assert body["hotel_images"][1]["src"] == "/hotels/lobby.jpg"

        await ac.post(
            "/api/admin/destinations/dubai/itineraries", json={**itinerary, "package_id": "pkg-2", "hotel_images": []}
        )
        filtered = await ac.get("/api/admin/destinations/dubai/itineraries", params={"package_id": "pkg-1"})
        assert [item["id"] for item in filtered.json()] == [body["id"]]

        updated = await ac.put(
            f"/api/admin/destinations/dubai/itineraries/{body['id']}", json={"title": "Dubai Premium"}
        )
        assert updated.json()["title"] == "Dubai Premium"
        assert updated.json()["days"][0]["accommodation"] == "Atlantis"

        assert (await ac.delete(f"/api/admin/destinations/dubai/itineraries/{body['id']}")).status_code == 200
        assert (await ac.get(f"/api/admin/destinations/dubai/itineraries/{body['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_public_city_filters_count_packages(app):
    async with _client(app) as ac:
        await ac.post("/api/admin/destinations/dubai/packages", json=_package_body())
        await ac.post(
            "/api/admin/destinations/dubai/packages", json=_package_body(location="Dubai City")
        )
        response = await ac.get("/api/city-filters", params={"destination": "dubai"})
        missing = await ac.get("/api/city-filters")
    counts = {city["name"]: city["count"] for city in response.json()}
    assert counts["Dubai City"] == 2
    assert counts["Abu Dhabi"] == 1
    assert counts["Sharjah"] == 0
    assert missing.status_code == 400


@pytest.mark.asyncio
async def test_admin_city_filters(app):
    async with _client(app) as ac:
        added = await ac.post("/api/admin/city-filters", json={"destination": "bali", "name": "Canggu"})
        assert added.status_code == 201
        city_id = added.json()["id"]

        updated = await ac.put(
            "/api/admin/city-filters", json={"destination": "bali", "id": city_id, "is_active": False}
        )
        assert updated.json()["is_active"] is False

        toggled = await ac.post("/api/admin/city-filters/toggle", params={"destination": "bali", "id": city_id})
        assert toggled.json()["is_active"] is True

        deleted = await ac.delete("/api/admin/city-filters", params={"destination": "bali", "id": city_id})
        assert deleted.json()["deleted_city"]["name"] == "Canggu"

        assert (
            await ac.delete("/api/admin/city-filters", params={"destination": "bali", "id": city_id})
        ).status_code == 404
        assert (
            await ac.post("/api/admin/city-filters", json={"destination": "atlantis", "name": "X"})
        ).status_code == 404

        grouped = await ac.get("/api/admin/city-filters")
        assert set(grouped.json()) >= {"bali", "dubai", "andaman"}


@pytest.mark.asyncio
async def test_home_content_versions(app, png_bytes, make_data_uri):
    content = {
        "top_destinations": [
            {"name": "Bali", "description": "Island of gods", "image": make_data_uri(png_bytes), "path": "/bali"},
            {"name": "Dubai", "description": "City of gold", "image": "", "path": "/dubai"},
        ],
        "popular_packages": {"destinations": []},
    }
    async with _client(app) as ac:
        assert (await ac.get("/api/home-content")).status_code == 404

        saved = await ac.put("/api/admin/home-content", json=content)
        assert saved.status_code == 200

        latest = (await ac.get("/api/home-content")).json()
    assert latest["top_destinations"][0]["image"].startswith("/api/images/")
    assert latest["top_destinations"][1]["image"] == "/Destination/Dubai.jpeg"


@pytest.mark.asyncio
async def test_google_reviews_not_configured(app):
    app.dependency_overrides[get_reviews_service] = lambda: GoogleReviewsService("", "")
    async with _client(app) as ac:
        response = await ac.get("/api/google-reviews")
    assert response.status_code == 500
    assert response.json()["fallback"] is True


@pytest.mark.asyncio
async def test_google_reviews_api_error(app):
    class DeniedService(GoogleReviewsService):
        def get_place_details(self):
            raise ReviewsAPIError("REQUEST_DENIED")

    app.dependency_overrides[get_reviews_service] = lambda: DeniedService("key", "place")
    async with _client(app) as ac:
        response = await ac.get("/api/google-reviews")
    assert response.status_code == 400
    assert response.json() == {"error": "REQUEST_DENIED", "fallback": True}


@pytest.mark.asyncio
async def test_csrf_rejects_foreign_origin(app):
    async with _client(app) as ac:
        rejected = await ac.post(
            "/api/admin/destinations/bali/packages",
            json=_package_body(),
            headers={"Origin": "https://evil.example"},
        )
        allowed = await ac.post(
            "/api/admin/destinations/bali/packages",
            json=_package_body(),
            headers={"Origin": "http://localhost:3000"},
        )
    assert rejected.status_code == 403
    assert allowed.status_code == 201
