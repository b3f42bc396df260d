"""Feedback API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.exceptions import FileTooLargeError
from app.db.mongodb import get_gridfs_bucket, get_mongodb
from app.db.redis import is_redis_connected
from app.dependencies.auth import CurrentReviewer
from app.domains.feedback.dashboard import (
    DashboardSession,
    DeletionCoordinator,
    InFlightMarker,
    LocalInFlightMarker,
    RedisInFlightMarker,
    dashboard_sessions,
)
from app.domains.feedback.export import CSV_MEDIA_TYPE, export_filename, render_csv
from app.domains.feedback.models import ServiceRating
from app.domains.feedback.repository import (
    FeedbackRepositoryInterface,
    MongoFeedbackRepository,
)
from app.domains.feedback.schemas import (
    FeedbackCreate,
    FeedbackFilter,
    FeedbackListResponse,
    FeedbackResponse,
    FeedbackStatistics,
)
from app.domains.feedback.service import FeedbackService
from app.domains.feedback.storage import (
    Attachment,
    BlobStoreInterface,
    GridFSBlobStore,
)

router = APIRouter(prefix="/feedback")

_local_marker = LocalInFlightMarker()


def get_feedback_repository() -> FeedbackRepositoryInterface:
    return MongoFeedbackRepository(get_mongodb())


def get_blob_store() -> BlobStoreInterface:
    return GridFSBlobStore(get_gridfs_bucket())


def get_in_flight_marker() -> InFlightMarker:
    """Shared Redis marker when Redis is up, otherwise the process-local one."""
    if settings.redis_enabled and is_redis_connected():
        return RedisInFlightMarker()
    return _local_marker


def get_feedback_service(
    repository: Annotated[FeedbackRepositoryInterface, Depends(get_feedback_repository)],
    blob_store: Annotated[BlobStoreInterface, Depends(get_blob_store)],
) -> FeedbackService:
    return FeedbackService(
        repository=repository,
        blob_store=blob_store,
        public_base_url=settings.storage_public_base_url,
        contact_domain=settings.contact_email_domain,
    )


def get_deletion_coordinator(
    repository: Annotated[FeedbackRepositoryInterface, Depends(get_feedback_repository)],
    marker: Annotated[InFlightMarker, Depends(get_in_flight_marker)],
) -> DeletionCoordinator:
    return DeletionCoordinator(repository, marker)


def get_dashboard_session(
    reviewer: CurrentReviewer,
    repository: Annotated[FeedbackRepositoryInterface, Depends(get_feedback_repository)],
    deletion: Annotated[DeletionCoordinator, Depends(get_deletion_coordinator)],
) -> DashboardSession:
    """Dashboard session of the authenticated reviewer."""
    return dashboard_sessions.get(reviewer["reviewer_id"], repository, deletion)


def feedback_form(
    name: Annotated[str, Form()],
    contact: Annotated[str, Form()],
    date_of_experience: Annotated[str, Form()],
    liked_most: Annotated[str, Form()],
    would_recommend: Annotated[str, Form()],
    suggestions: Annotated[str, Form()] = "",
    overall_experience: Annotated[int, Form()] = 5,
    quality_of_service: Annotated[ServiceRating, Form()] = ServiceRating.EXCELLENT,
    timeliness: Annotated[ServiceRating, Form()] = ServiceRating.EXCELLENT,
    professionalism: Annotated[ServiceRating, Form()] = ServiceRating.EXCELLENT,
    communication_ease: Annotated[ServiceRating, Form()] = ServiceRating.EXCELLENT,
    permission_to_publish: Annotated[bool, Form()] = False,
    can_contact_again: Annotated[bool, Form()] = False,
    date_of_submission: Annotated[str | None, Form()] = None,
) -> FeedbackCreate:
    """Collect the multipart form fields into a FeedbackCreate."""
    try:
        return FeedbackCreate(
            name=name,
            contact=contact,
            date_of_experience=date_of_experience,
            date_of_submission=date_of_submission or None,
            overall_experience=overall_experience,
            quality_of_service=quality_of_service,
            timeliness=timeliness,
            professionalism=professionalism,
            communication_ease=communication_ease,
            liked_most=liked_most,
            suggestions=suggestions,
            would_recommend=would_recommend,
            permission_to_publish=permission_to_publish,
            can_contact_again=can_contact_again,
        )
    except PydanticValidationError as e:
        raise RequestValidationError(
            e.errors(include_url=False, include_context=False)
        )


async def _read_attachment(upload: UploadFile | None) -> Attachment | None:
    if upload is None or not upload.filename:
        return None

    data = await upload.read()
    max_bytes = settings.max_image_size_mb * 1024 * 1024
    if len(data) > max_bytes:
        raise FileTooLargeError(
            max_size_mb=settings.max_image_size_mb,
            actual_size_mb=round(len(data) / (1024 * 1024), 2),
        )
    return Attachment(
        filename=upload.filename,
        data=data,
        content_type=upload.content_type,
    )


# ============================================================
# Public Endpoints (feedback form)
# ============================================================


@router.post(
    "",
    response_model=FeedbackResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit feedback",
    description="Submit the feedback form with optional before/after images.",
)
async def submit_feedback(
    data: Annotated[FeedbackCreate, Depends(feedback_form)],
    service: Annotated[FeedbackService, Depends(get_feedback_service)],
    before_image: Annotated[UploadFile | None, File()] = None,
    after_image: Annotated[UploadFile | None, File()] = None,
):
    """Submit a feedback form."""
    submission = await service.submit(
        data,
        before_image=await _read_attachment(before_image),
        after_image=await _read_attachment(after_image),
    )
    dashboard_sessions.invalidate_all()
    return service.to_response(submission)


@router.get(
    "/images/{key:path}",
    summary="Get feedback image",
    description="Serve a stored before/after image by its key.",
)
async def get_image(
    key: str,
    blob_store: Annotated[BlobStoreInterface, Depends(get_blob_store)],
):
    """Stream a stored image."""
    blob = await blob_store.get(key)
    return Response(
        content=blob.data,
        media_type=blob.content_type or "application/octet-stream",
    )


# ============================================================
# Reviewer Endpoints (dashboard)
# ============================================================


@router.get(
    "",
    response_model=FeedbackListResponse,
    summary="List feedback",
    description="Reload all feedback and return the entries matching the filters.",
)
async def list_feedback(
    filters: Annotated[FeedbackFilter, Query()],
    session: Annotated[DashboardSession, Depends(get_dashboard_session)],
    service: Annotated[FeedbackService, Depends(get_feedback_service)],
):
    """List feedback, newest first."""
    records = await session.activate()
    filtered = session.view(filters)
    return FeedbackListResponse(
        items=[service.to_response(s) for s in filtered],
        total=len(records),
        filtered=len(filtered),
    )


@router.get(
    "/export",
    summary="Export feedback as CSV",
    description="Download the entries matching the filters as a CSV file.",
)
async def export_feedback(
    filters: Annotated[FeedbackFilter, Query()],
    session: Annotated[DashboardSession, Depends(get_dashboard_session)],
):
    """Export filtered feedback to CSV."""
    await session.ensure_loaded()
    content = render_csv(session.view(filters), settings.storage_public_base_url)
    return Response(
        content=content.encode("utf-8"),
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.get(
    "/statistics",
    response_model=FeedbackStatistics,
    summary="Get feedback statistics",
)
async def get_statistics(
    reviewer: CurrentReviewer,
    service: Annotated[FeedbackService, Depends(get_feedback_service)],
):
    """Get feedback statistics."""
    return await service.get_statistics()


@router.get(
    "/{feedback_id}",
    response_model=FeedbackResponse,
    summary="Inspect feedback",
    description="Open one feedback entry for detailed inspection.",
)
async def get_feedback(
    feedback_id: str,
    session: Annotated[DashboardSession, Depends(get_dashboard_session)],
    service: Annotated[FeedbackService, Depends(get_feedback_service)],
):
    """Get one feedback entry."""
    await session.ensure_loaded()
    return service.to_response(session.open(feedback_id))


@router.delete(
    "/{feedback_id}",
    summary="Delete feedback",
    description="Permanently delete a feedback entry. Requires confirm=true.",
)
async def delete_feedback(
    feedback_id: str,
    session: Annotated[DashboardSession, Depends(get_dashboard_session)],
    confirm: Annotated[bool, Query()] = False,
):
    """Delete a feedback entry."""
    inspection_closed = await session.delete(feedback_id, confirmed=confirm)
    return {
        "message": "Feedback deleted",
        "feedback_id": feedback_id,
        "inspection_closed": inspection_closed,
        "remaining": len(session.cache),
    }
