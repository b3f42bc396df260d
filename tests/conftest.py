"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient

from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.core.security import create_access_token, hash_password
from app.domains.feedback.dashboard import LocalInFlightMarker, dashboard_sessions
from app.domains.feedback.models import FeedbackSubmission
from app.domains.feedback.repository import FeedbackRepositoryInterface
from app.domains.feedback.router import (
    get_blob_store,
    get_feedback_repository,
    get_in_flight_marker,
)
from app.domains.feedback.storage import BlobStoreInterface, StoredBlob
from app.main import create_app

BASE_URL = "https://files.example.com/feedback-images"
REVIEWER_EMAIL = "reviewer@example.com"
REVIEWER_PASSWORD = "correct-horse-battery"
REVIEWER_PASSWORD_HASH = hash_password(REVIEWER_PASSWORD)


class InMemoryFeedbackRepository(FeedbackRepositoryInterface):
    """Feedback store kept in a dict. Set fail_* flags to simulate outages."""

    def __init__(self):
        self.docs: dict[str, FeedbackSubmission] = {}
        self.fail_create = False
        self.fail_delete = False
        self.create_calls = 0
        self.delete_calls = 0
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    async def create(self, submission: FeedbackSubmission) -> FeedbackSubmission:
        self.create_calls += 1
        if self.fail_create:
            raise ConnectionError("store unavailable")
        self._clock += timedelta(seconds=1)
        created = submission.model_copy(
            update={"id": str(ObjectId()), "created_at": self._clock}
        )
        self.docs[created.id] = created
        return created

    async def get_by_id(self, feedback_id: str) -> FeedbackSubmission | None:
        return self.docs.get(feedback_id)

    async def list_all(self) -> list[FeedbackSubmission]:
        return sorted(self.docs.values(), key=lambda s: s.created_at, reverse=True)

    async def delete(self, feedback_id: str) -> bool:
        self.delete_calls += 1
        if self.fail_delete:
            raise ConnectionError("store unavailable")
        return self.docs.pop(feedback_id, None) is not None

    async def get_statistics(self) -> dict:
        records = list(self.docs.values())
        distribution = {i: 0 for i in range(1, 6)}
        for r in records:
            distribution[r.overall_experience] += 1
        avg = sum(r.overall_experience for r in records) / len(records) if records else None
        return {
            "total_submissions": len(records),
            "average_rating": round(avg, 2) if avg else None,
            "rating_distribution": distribution,
            "can_contact_count": sum(r.can_contact_again for r in records),
            "can_publish_count": sum(r.permission_to_publish for r in records),
            "with_images_count": sum(
                bool(r.before_image_url or r.after_image_url) for r in records
            ),
        }


class InMemoryBlobStore(BlobStoreInterface):
    """Blob store kept in a dict. fail_on names a key prefix that fails to upload."""

    def __init__(self):
        self.blobs: dict[str, StoredBlob] = {}
        self.put_keys: list[str] = []
        self.fail_on: str | None = None

    async def put(self, key: str, data: bytes, content_type: str | None = None) -> str:
        self.put_keys.append(key)
        if self.fail_on and key.startswith(self.fail_on):
            raise IOError("bucket unavailable")
        self.blobs[key] = StoredBlob(key=key, data=data, content_type=content_type)
        return key

    async def get(self, key: str) -> StoredBlob:
        if key not in self.blobs:
            raise NotFoundError("Image", key)
        return self.blobs[key]


def make_submission(**overrides) -> FeedbackSubmission:
    """Build a valid stored submission; override any field."""
    fields = {
        "_id": str(ObjectId()),
        "name": "Jane Doe",
        "contact": "jane@gmail.com",
        "date_of_experience": "2024-03-10",
        "date_of_submission": "2024-03-12",
        "overall_experience": 5,
        "quality_of_service": "Excellent",
        "timeliness": "Excellent",
        "professionalism": "Excellent",
        "communication_ease": "Excellent",
        "liked_most": "Quick and friendly",
        "suggestions": "",
        "would_recommend": "Absolutely",
        "permission_to_publish": True,
        "can_contact_again": False,
    }
    fields.update(overrides)
    return FeedbackSubmission(**fields)


@pytest.fixture
def feedback_repo() -> InMemoryFeedbackRepository:
    return InMemoryFeedbackRepository()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def in_flight_marker() -> LocalInFlightMarker:
    return LocalInFlightMarker()


@pytest.fixture
def reviewer_settings(monkeypatch):
    """Configure a known reviewer account and image base URL."""
    monkeypatch.setattr(settings, "reviewer_email", REVIEWER_EMAIL)
    monkeypatch.setattr(settings, "reviewer_password_hash", REVIEWER_PASSWORD_HASH)
    monkeypatch.setattr(settings, "storage_public_base_url", BASE_URL)
    monkeypatch.setattr(settings, "contact_email_domain", "gmail.com")
    monkeypatch.setattr(settings, "redis_enabled", False)
    return settings


@pytest.fixture
def auth_headers(reviewer_settings) -> dict:
    token = create_access_token({"sub": REVIEWER_EMAIL, "role": "reviewer"})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture(scope="function")
async def client(
    reviewer_settings,
    feedback_repo,
    blob_store,
    in_flight_marker,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client backed by in-memory stores."""
    app = create_app()
    app.dependency_overrides[get_feedback_repository] = lambda: feedback_repo
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_in_flight_marker] = lambda: in_flight_marker
    dashboard_sessions.clear()

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    dashboard_sessions.clear()


@pytest.fixture
def sample_form_data() -> dict:
    """Sample multipart form fields of a valid submission."""
    return {
        "name": "Jane Doe",
        "contact": "jane@gmail.com",
        "date_of_experience": "2024-03-10",
        "overall_experience": "5",
        "quality_of_service": "Excellent",
        "timeliness": "Excellent",
        "professionalism": "Excellent",
        "communication_ease": "Excellent",
        "liked_most": "Quick and friendly",
        "suggestions": "",
        "would_recommend": "Absolutely",
        "permission_to_publish": "true",
        "can_contact_again": "false",
    }
