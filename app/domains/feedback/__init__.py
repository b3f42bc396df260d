"""Customer feedback domain."""

from app.domains.feedback.models import FeedbackSubmission, ServiceRating
from app.domains.feedback.schemas import (
    FeedbackCreate,
    FeedbackFilter,
    FeedbackResponse,
    FeedbackStatistics,
)
from app.domains.feedback.service import FeedbackService

__all__ = [
    "FeedbackSubmission",
    "ServiceRating",
    "FeedbackCreate",
    "FeedbackFilter",
    "FeedbackResponse",
    "FeedbackStatistics",
    "FeedbackService",
]
