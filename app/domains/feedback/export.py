"""CSV export of feedback submissions.

The layout is consumed by downstream tooling; treat header names and column
order as fixed.

Free-text fields are wrapped in double quotes but embedded quotes and commas
are NOT escaped, matching the export format already in use. A free-text value
containing a quote or a comma will shift the columns of that row.
"""

from collections.abc import Sequence
from datetime import date

from app.domains.feedback.models import FeedbackSubmission
from app.domains.feedback.storage import public_url

CSV_HEADERS = [
    "Name",
    "Contact",
    "Date of Experience",
    "Date of Submission",
    "Overall Experience",
    "Quality of Service",
    "Timeliness",
    "Professionalism",
    "Communication Ease",
    "Liked Most",
    "Suggestions",
    "Would Recommend",
    "Permission to Publish",
    "Can Contact Again",
    "Before Image URL",
    "After Image URL",
]

CSV_MEDIA_TYPE = "text/csv"


def _quoted(value: str) -> str:
    return f'"{value}"'


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def _image_cell(base_path: str, key: str | None) -> str:
    url = public_url(base_path, key)
    return _quoted(url) if url else ""


def render_row(submission: FeedbackSubmission, base_path: str) -> str:
    """Render one submission as a CSV line (no trailing newline)."""
    cells = [
        submission.name,
        submission.contact,
        submission.date_of_experience,
        submission.date_of_submission,
        str(submission.overall_experience),
        submission.quality_of_service,
        submission.timeliness,
        submission.professionalism,
        submission.communication_ease,
        _quoted(submission.liked_most),
        _quoted(submission.suggestions),
        _quoted(submission.would_recommend),
        _yes_no(submission.permission_to_publish),
        _yes_no(submission.can_contact_again),
        _image_cell(base_path, submission.before_image_url),
        _image_cell(base_path, submission.after_image_url),
    ]
    return ",".join(cells)


def render_csv(submissions: Sequence[FeedbackSubmission], base_path: str) -> str:
    """Render submissions as CSV text: header first, one row each, newline separated."""
    lines = [",".join(CSV_HEADERS)]
    lines.extend(render_row(s, base_path) for s in submissions)
    return "\n".join(lines)


def export_filename(today: date | None = None) -> str:
    """Download name of an export, stamped with the current date."""
    today = today or date.today()
    return f"feedback-export-{today.isoformat()}.csv"
