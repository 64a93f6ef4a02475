from unittest.mock import Mock

import pytest

from tripsee.core import reviews_service
from tripsee.core.reviews_service import (
    DEFAULT_AVATAR,
    GoogleReviewsService,
    ReviewsAPIError,
    ReviewsNotConfiguredError,
)


def _fake_get(payload):
    response = Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return Mock(return_value=response)


def test_requires_configuration():
    with pytest.raises(ReviewsNotConfiguredError):
        GoogleReviewsService("", "place").get_place_details()


def test_returns_result_with_default_avatars(monkeypatch):
    fake_get = _fake_get(
        {
            "status": "OK",
            "result": {
                "name": "Tripsee",
                "rating": 4.9,
                "reviews": [
                    {"author_name": "Priya", "rating": 5, "text": "Lovely"},
                    {"author_name": "Sam", "rating": 5, "profile_photo_url": "https://x/y.png"},
                ],
            },
        }
    )
    monkeypatch.setattr(reviews_service.requests, "get", fake_get)

    result = GoogleReviewsService("key", "place").get_place_details()

    assert result["name"] == "Tripsee"
    assert result["reviews"][0]["profile_photo_url"] == DEFAULT_AVATAR
    assert result["reviews"][1]["profile_photo_url"] == "https://x/y.png"
    params = fake_get.call_args.kwargs["params"]
    assert params["place_id"] == "place"
    assert "reviews" in params["fields"]


def test_non_ok_status_raises(monkeypatch):
    monkeypatch.setattr(
        reviews_service.requests,
        "get",
        _fake_get({"status": "REQUEST_DENIED", "error_message": "bad key"}),
    )
    with pytest.raises(ReviewsAPIError, match="bad key"):
        GoogleReviewsService("key", "place").get_place_details()
