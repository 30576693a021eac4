"""
Travel Journal — Shared Test Fixtures

Every test gets its own SQLite database and upload directory, wired in
through FastAPI dependency overrides.
"""

import os
import tempfile

import pytest
from httpx import ASGITransport, AsyncClient

# -----------------------------------------------------------------------------
# Environment Setup (before importing app modules)
# -----------------------------------------------------------------------------

_scratch = tempfile.mkdtemp(prefix="travel-journal-tests-")
os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_scratch}/app.db")
os.environ.setdefault("UPLOAD_DIR", os.path.join(_scratch, "uploads"))
os.environ.setdefault("ASSETS_DIR", os.path.join(_scratch, "assets"))
os.environ.setdefault("PUBLIC_BASE_URL", "http://test")

from sqlalchemy.orm import sessionmaker  # noqa: E402

from travel_journal.core.storage import LocalImageStore, get_image_store  # noqa: E402
from travel_journal.main import app as fastapi_app  # noqa: E402
from travel_journal.models.database import Base, get_db, make_engine  # noqa: E402


# -----------------------------------------------------------------------------
# Store / Storage Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def session_factory(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def image_store(tmp_path):
    return LocalImageStore(tmp_path / "uploads", "http://test")


@pytest.fixture
def app(session_factory, image_store):
    """The FastAPI app bound to this test's database and upload directory."""

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_image_store] = lambda: image_store
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


# -----------------------------------------------------------------------------
# HTTP Client Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
async def client(app):
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def register(client):
    """Factory: create an account and return its bearer headers."""

    async def _register(email="johndoe@example.com", password="password123", full_name="John Doe"):
        response = await client.post(
            "/create-account",
            json={"fullName": full_name, "email": email, "password": password},
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['accessToken']}"}

    return _register


@pytest.fixture
def add_story(client):
    """Factory: add a story for the given headers and return its JSON."""

    async def _add_story(headers, **overrides):
        body = {
            "title": "Lisbon in winter",
            "story": "Trams, tiles and pastel de nata.",
            "visitedLocation": ["Lisbon", "Sintra"],
            "imageUrl": "http://test/uploads/lisbon.jpg",
            "visitedDate": 1736676000000,
        }
        body.update(overrides)
        response = await client.post("/add-travel-story", json=body, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["story"]

    return _add_story
