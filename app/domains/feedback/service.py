"""Feedback service - submission intake and reviewer presentation."""

import logging
from datetime import date

from app.core.exceptions import PersistFailedError
from app.domains.feedback.contact import classify_contact, ensure_valid_contact
from app.domains.feedback.models import FeedbackSubmission
from app.domains.feedback.repository import FeedbackRepositoryInterface
from app.domains.feedback.schemas import (
    FeedbackCreate,
    FeedbackResponse,
    FeedbackStatistics,
)
from app.domains.feedback.storage import (
    AssetUploadCoordinator,
    Attachment,
    BlobStoreInterface,
    public_url,
)

logger = logging.getLogger(__name__)


class FeedbackService:
    """Feedback intake and read service."""

    def __init__(
        self,
        repository: FeedbackRepositoryInterface,
        blob_store: BlobStoreInterface,
        public_base_url: str,
        contact_domain: str | None = None,
    ):
        self._repo = repository
        self._uploads = AssetUploadCoordinator(blob_store)
        self._public_base_url = public_base_url
        self._contact_domain = contact_domain

    async def submit(
        self,
        data: FeedbackCreate,
        before_image: Attachment | None = None,
        after_image: Attachment | None = None,
        today: date | None = None,
    ) -> FeedbackSubmission:
        """
        Validate, upload images, then persist one submission.

        Steps run in order and each failure stops the sequence:
        contact validation happens before any I/O, an upload failure stops
        before the store is touched. Images uploaded before a later failure
        stay in blob storage; a retry uploads them again.

        Args:
            data: Form fields
            before_image: Optional "before" image
            after_image: Optional "after" image
            today: Local date used when data.date_of_submission is unset

        Returns:
            Created submission with its store-assigned id

        Raises:
            InvalidContactError: Contact is neither a valid phone nor email
            UploadFailedError: An image upload failed (details.stage)
            PersistFailedError: The store rejected the record
        """
        ensure_valid_contact(data.contact, self._contact_domain)

        before_key, after_key = await self._uploads.upload_all(before_image, after_image)

        submission_date = data.date_of_submission or (today or date.today()).isoformat()
        submission = FeedbackSubmission(
            **data.model_dump(exclude={"date_of_submission"}),
            date_of_submission=submission_date,
            before_image_url=before_key,
            after_image_url=after_key,
        )

        try:
            created = await self._repo.create(submission)
        except Exception as e:
            logger.error(f"Error submitting feedback: {e}")
            raise PersistFailedError() from e

        logger.info(f"Created feedback {created.id}")
        return created

    async def get_statistics(self) -> FeedbackStatistics:
        """Get feedback statistics."""
        stats = await self._repo.get_statistics()
        return FeedbackStatistics(**stats)

    def to_response(self, submission: FeedbackSubmission) -> FeedbackResponse:
        """Reviewer view of a submission, with public image URLs."""
        return FeedbackResponse(
            **submission.model_dump(),
            contact_kind=classify_contact(submission.contact),
            before_image_public_url=public_url(
                self._public_base_url, submission.before_image_url
            ),
            after_image_public_url=public_url(
                self._public_base_url, submission.after_image_url
            ),
        )
