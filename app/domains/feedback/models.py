"""Feedback submission models for MongoDB."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class ServiceRating(str, Enum):
    """Categorical rating used for the four service aspects."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    AVERAGE = "Average"
    POOR = "Poor"


class ContactKind(str, Enum):
    """How the contact field was classified."""

    PHONE = "phone"
    EMAIL = "email"


# Fixed-width YYYY-MM-DD; date bounds are compared as strings.
ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class FeedbackSubmission(BaseModel):
    """Feedback submission document model for MongoDB.

    Collection: feedback_submissions

    Records are never updated after creation; the only mutation is deletion.
    """

    id: str | None = Field(None, alias="_id")

    # Reporter
    name: str = Field(..., min_length=1)
    contact: str = Field(..., min_length=1)

    # Dates
    date_of_experience: str = Field(..., pattern=ISO_DATE_PATTERN)
    date_of_submission: str = Field(..., pattern=ISO_DATE_PATTERN)

    # Media (blob keys, not URLs)
    before_image_url: str | None = None
    after_image_url: str | None = None

    # Ratings
    overall_experience: int = Field(..., ge=1, le=5)
    quality_of_service: ServiceRating
    timeliness: ServiceRating
    professionalism: ServiceRating
    communication_ease: ServiceRating

    # Free text
    liked_most: str = Field(..., min_length=1)
    suggestions: str = ""
    would_recommend: str = Field(..., min_length=1)

    # Permissions
    permission_to_publish: bool = False
    can_contact_again: bool = False

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Config:
        populate_by_name = True
        use_enum_values = True
        frozen = True

    @field_validator("before_image_url", "after_image_url")
    @classmethod
    def non_empty_key(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("image key must be a non-empty string")
        return v
