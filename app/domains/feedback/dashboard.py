"""Reviewer dashboard state and the deletion coordinator.

A DashboardSession owns the reviewer's copy of the feedback collection. The
copy is fetched in full on activation and only changes on explicit triggers:
a reload, a local removal after a successful delete, or invalidation after a
new submission was created.
"""

import logging
from abc import ABC, abstractmethod

from app.core.config import settings
from app.core.exceptions import (
    ConfirmationRequiredError,
    DeleteFailedError,
    DeleteInProgressError,
    NotFoundError,
)
from app.db.redis import delete_marker_cache
from app.domains.feedback.filters import filter_submissions
from app.domains.feedback.models import FeedbackSubmission
from app.domains.feedback.repository import FeedbackRepositoryInterface
from app.domains.feedback.schemas import FeedbackFilter

logger = logging.getLogger(__name__)


# ============================================================
# In-flight delete markers
# ============================================================


class InFlightMarker(ABC):
    """Tracks ids whose delete is currently running."""

    @abstractmethod
    async def acquire(self, feedback_id: str) -> bool:
        """Mark id as in flight. Returns False if it already was."""
        pass

    @abstractmethod
    async def release(self, feedback_id: str) -> None:
        """Clear the in-flight mark of id."""
        pass


class LocalInFlightMarker(InFlightMarker):
    """In-process marker set. Deletes of different ids may run concurrently."""

    def __init__(self):
        self._ids: set[str] = set()

    async def acquire(self, feedback_id: str) -> bool:
        if feedback_id in self._ids:
            return False
        self._ids.add(feedback_id)
        return True

    async def release(self, feedback_id: str) -> None:
        self._ids.discard(feedback_id)

    def __contains__(self, feedback_id: str) -> bool:
        return feedback_id in self._ids


class RedisInFlightMarker(InFlightMarker):
    """Marker shared between workers through Redis SET NX keys."""

    def __init__(self, ttl: int | None = None):
        self._ttl = ttl or settings.delete_marker_ttl_seconds

    async def acquire(self, feedback_id: str) -> bool:
        return await delete_marker_cache.set_if_absent(feedback_id, "1", ttl=self._ttl)

    async def release(self, feedback_id: str) -> None:
        await delete_marker_cache.delete(feedback_id)


# ============================================================
# Deletion
# ============================================================


class DeletionCoordinator:
    """Deletes submissions from the store, one in-flight request per id."""

    def __init__(
        self,
        repository: FeedbackRepositoryInterface,
        marker: InFlightMarker | None = None,
    ):
        self._repo = repository
        self._marker = marker or LocalInFlightMarker()

    async def delete(self, feedback_id: str) -> None:
        """
        Delete a submission by id.

        Raises:
            DeleteInProgressError: A delete for this id is already running.
            DeleteFailedError: The store failed or the id does not exist.
        """
        if not await self._marker.acquire(feedback_id):
            logger.info(f"Ignoring duplicate delete for feedback {feedback_id}")
            raise DeleteInProgressError(feedback_id)

        try:
            try:
                deleted = await self._repo.delete(feedback_id)
            except Exception as e:
                logger.error(f"Error deleting feedback {feedback_id}: {e}")
                raise DeleteFailedError(feedback_id) from e

            if not deleted:
                logger.error(f"Error deleting feedback {feedback_id}: not found")
                raise DeleteFailedError(
                    feedback_id,
                    message=f"Feedback with id '{feedback_id}' not found",
                    status_code=404,
                )
        finally:
            await self._marker.release(feedback_id)

        logger.info(f"Deleted feedback {feedback_id}")


# ============================================================
# Dashboard session
# ============================================================


class FeedbackCollectionCache:
    """Client-held copy of the collection, newest first.

    Ids removed after a successful delete stay excluded from later
    replacements, so a fetch that started before the delete cannot bring
    the record back.
    """

    def __init__(self):
        self._records: list[FeedbackSubmission] = []
        self._removed: set[str] = set()
        self._loaded = False

    @property
    def records(self) -> list[FeedbackSubmission]:
        return list(self._records)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def replace(self, records: list[FeedbackSubmission]) -> None:
        self._records = [r for r in records if r.id not in self._removed]
        self._loaded = True

    def invalidate(self) -> None:
        self._loaded = False

    def remove(self, feedback_id: str) -> bool:
        self._removed.add(feedback_id)
        before = len(self._records)
        self._records = [r for r in self._records if r.id != feedback_id]
        return len(self._records) != before

    def find(self, feedback_id: str) -> FeedbackSubmission | None:
        return next((r for r in self._records if r.id == feedback_id), None)

    def __len__(self) -> int:
        return len(self._records)


class DashboardSession:
    """One reviewer's dashboard: cached collection plus the open inspection."""

    def __init__(
        self,
        repository: FeedbackRepositoryInterface,
        deletion: DeletionCoordinator,
    ):
        self._repo = repository
        self._deletion = deletion
        self.cache = FeedbackCollectionCache()
        self.selected_id: str | None = None

    def bind(
        self,
        repository: FeedbackRepositoryInterface,
        deletion: DeletionCoordinator,
    ) -> None:
        """Attach the request-scoped store collaborators; cached state is kept."""
        self._repo = repository
        self._deletion = deletion

    async def activate(self) -> list[FeedbackSubmission]:
        """Fetch the whole collection from the store."""
        records = await self._repo.list_all()
        self.cache.replace(records)
        return self.cache.records

    async def ensure_loaded(self) -> None:
        if not self.cache.is_loaded:
            await self.activate()

    def view(self, config: FeedbackFilter | None = None) -> list[FeedbackSubmission]:
        """Filtered view of the cached collection."""
        return filter_submissions(self.cache.records, config)

    def open(self, feedback_id: str) -> FeedbackSubmission:
        """Open a submission for detailed inspection."""
        submission = self.cache.find(feedback_id)
        if submission is None:
            raise NotFoundError("Feedback", feedback_id)
        self.selected_id = feedback_id
        return submission

    def close(self) -> None:
        self.selected_id = None

    async def delete(self, feedback_id: str, confirmed: bool) -> bool:
        """
        Delete a submission and reconcile the cached collection.

        On failure the cache and the open inspection are left as they were.

        Returns:
            True if the deleted submission was open and got closed
        """
        if not confirmed:
            raise ConfirmationRequiredError(
                "Deleting feedback cannot be undone and must be confirmed"
            )

        await self._deletion.delete(feedback_id)

        self.cache.remove(feedback_id)
        if self.selected_id == feedback_id:
            self.close()
            return True
        return False


class DashboardSessionRegistry:
    """In-process dashboard sessions keyed by reviewer."""

    def __init__(self):
        self._sessions: dict[str, DashboardSession] = {}

    def get(
        self,
        reviewer_id: str,
        repository: FeedbackRepositoryInterface,
        deletion: DeletionCoordinator,
    ) -> DashboardSession:
        session = self._sessions.get(reviewer_id)
        if session is None:
            session = DashboardSession(repository, deletion)
            self._sessions[reviewer_id] = session
        else:
            session.bind(repository, deletion)
        return session

    def drop(self, reviewer_id: str) -> None:
        self._sessions.pop(reviewer_id, None)

    def clear(self) -> None:
        self._sessions.clear()

    def invalidate_all(self) -> None:
        """Force every session to refetch on its next read (e.g. after a create)."""
        for session in self._sessions.values():
            session.cache.invalidate()


dashboard_sessions = DashboardSessionRegistry()
