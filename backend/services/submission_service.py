"""
Submission lifecycle helpers: building new records from the student form,
dashboard statistics and listing order.
"""
from datetime import datetime, timezone
from urllib.parse import urlparse

from backend.errors import SubmissionValidationError

STATUS_SUBMITTED = "submitted"
STATUS_GRADED = "graded"
GRADER_FILTERS = (STATUS_SUBMITTED, STATUS_GRADED, "all")


def _is_valid_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def build_submission(student_id, student_email, assignment_title, notebook_link,
                     full_name_for_certificate) -> dict:
    """Validate the new-submission form and return the initial record."""
    assignment_title = (assignment_title or "").strip()
    notebook_link = (notebook_link or "").strip()
    full_name = (full_name_for_certificate or "").strip()

    if not student_id:
        raise SubmissionValidationError("User authentication is required to submit.")
    if not assignment_title:
        raise SubmissionValidationError("Assignment title is required.")
    if not notebook_link:
        raise SubmissionValidationError("Notebook link is required.")
    if not full_name:
        raise SubmissionValidationError(
            "Full name for certificate is required. This name will appear on your certificate if you pass."
        )
    if not _is_valid_url(notebook_link):
        raise SubmissionValidationError(
            "Please enter a valid URL for the notebook link (e.g., https://example.com)."
        )

    return {
        "studentId": student_id,
        "studentEmail": student_email or f"{student_id}@example.com",
        "assignmentTitle": assignment_title,
        "notebookLink": notebook_link,
        "fullNameForCertificate": full_name,
        "status": STATUS_SUBMITTED,
        "submittedAt": datetime.now(timezone.utc).isoformat(),
        "grade": None,
        "feedback": None,
        "certificateEligible": False,
        "gradedAt": None,
        "gradedBy": None,
    }


def _is_graded(record) -> bool:
    if record.get("status") != STATUS_GRADED or record.get("grade") is None:
        return False
    try:
        float(record["grade"])
    except (TypeError, ValueError):
        return False
    return True


def sort_newest_first(records: list) -> list:
    # ISO timestamps sort lexically; missing ones go last
    return sorted(records, key=lambda r: r.get("submittedAt") or "", reverse=True)


def student_stats(records: list) -> dict:
    """Totals and average grade shown on the student dashboard."""
    graded = [float(r["grade"]) for r in records if _is_graded(r)]
    average = round(sum(graded) / len(graded), 1) if graded else 0
    return {"total": len(records), "graded": len(graded), "average": average}


def grader_stats(records: list) -> dict:
    return {
        "total": len(records),
        "submitted": sum(1 for r in records if r.get("status") == STATUS_SUBMITTED),
        "graded": sum(1 for r in records if r.get("status") == STATUS_GRADED),
    }


def can_download_certificate(record: dict, threshold: int) -> bool:
    """Eligible flag set, grade at or above threshold, and a name to print."""
    if not record.get("certificateEligible") or not record.get("fullNameForCertificate"):
        return False
    return _is_graded(record) and float(record["grade"]) >= threshold
