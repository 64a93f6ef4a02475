import base64
import os

import mongomock
import pytest

from tripsee.core.fallbacks import FallbackTable
from tripsee.core.image_ingestor import ImageIngestor
from tripsee.core.repository import MongoDBRepo, get_repo
from tripsee.main import create_app

PNG_HEADER = b"\x89PNG\r\n\x1a\n"


@pytest.fixture
def mongo_db():
    """In-memory MongoDB database, fresh for every test."""
    return mongomock.MongoClient().tripsee_test


@pytest.fixture
def repo(mongo_db):
    return MongoDBRepo(db=mongo_db)


@pytest.fixture
def ingestor(repo):
    return ImageIngestor(repo, FallbackTable())


@pytest.fixture
def png_bytes():
    return PNG_HEADER + os.urandom(1024)


@pytest.fixture
def make_data_uri():
    def _make(payload: bytes, subtype: str = "png") -> str:
        return f"data:image/{subtype};base64,{base64.b64encode(payload).decode()}"

    return _make


@pytest.fixture
def app(repo):
    application = create_app()
    application.dependency_overrides[get_repo] = lambda: repo
    return application
