"""Feedback schemas for API requests/responses."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.domains.feedback.models import ISO_DATE_PATTERN, ContactKind, ServiceRating


class FeedbackCreate(BaseModel):
    """Form fields of a feedback submission (images travel as separate files)."""

    name: str = Field(..., min_length=1, description="Full name")
    contact: str = Field(..., min_length=1, description="10-digit phone or email")
    date_of_experience: str = Field(..., pattern=ISO_DATE_PATTERN)
    date_of_submission: str | None = Field(
        None, pattern=ISO_DATE_PATTERN, description="Defaults to today"
    )

    overall_experience: int = Field(5, ge=1, le=5, description="Rating from 1-5 stars")
    quality_of_service: ServiceRating = ServiceRating.EXCELLENT
    timeliness: ServiceRating = ServiceRating.EXCELLENT
    professionalism: ServiceRating = ServiceRating.EXCELLENT
    communication_ease: ServiceRating = ServiceRating.EXCELLENT

    liked_most: str = Field(..., min_length=1)
    suggestions: str = ""
    would_recommend: str = Field(..., min_length=1)

    permission_to_publish: bool = False
    can_contact_again: bool = False

    @field_validator("name", "liked_most", "would_recommend")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class FeedbackFilter(BaseModel):
    """Predicate configuration for narrowing the feedback collection.

    Empty or unset options are inactive.
    """

    search_term: str | None = None
    overall_rating: int | None = Field(None, ge=1, le=5)
    can_contact: bool | None = None
    date_from: str | None = Field(None, pattern=ISO_DATE_PATTERN)
    date_to: str | None = Field(None, pattern=ISO_DATE_PATTERN)

    @field_validator("*", mode="before")
    @classmethod
    def empty_is_unset(cls, v):
        if isinstance(v, str) and v == "":
            return None
        return v


class FeedbackResponse(BaseModel):
    """Feedback submission as shown to the reviewer."""

    id: str
    name: str
    contact: str
    contact_kind: ContactKind | None = None
    date_of_experience: str
    date_of_submission: str
    before_image_url: str | None = None
    after_image_url: str | None = None
    before_image_public_url: str | None = None
    after_image_public_url: str | None = None
    overall_experience: int
    quality_of_service: ServiceRating
    timeliness: ServiceRating
    professionalism: ServiceRating
    communication_ease: ServiceRating
    liked_most: str
    suggestions: str
    would_recommend: str
    permission_to_publish: bool
    can_contact_again: bool
    created_at: datetime


class FeedbackListResponse(BaseModel):
    """Filtered feedback list ("Showing N of M entries")."""

    items: list[FeedbackResponse]
    total: int
    filtered: int


class FeedbackStatistics(BaseModel):
    """Feedback statistics over the whole collection."""

    total_submissions: int = 0
    average_rating: float | None = None
    rating_distribution: dict[int, int] = Field(
        default_factory=lambda: {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}
    )
    can_contact_count: int = 0
    can_publish_count: int = 0
    with_images_count: int = 0
