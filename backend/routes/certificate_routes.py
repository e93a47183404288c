"""
Certificate API routes.
Generates completion certificates for eligible submissions and serves them
as PDF downloads.
"""
import logging
from flask import Blueprint

from backend.auth import current_identity
from backend.errors import GraderError, CertificateNotAvailableError, SubmissionNotFoundError
from backend.routes.helpers import get_store, get_engine, get_renderer, error_response, require_role
from backend.services.certificate_generator import (
    certificate_filename, format_completion_date, trigger_download,
)
from backend.services.submission_service import can_download_certificate

logger = logging.getLogger(__name__)

certificate_bp = Blueprint('certificate', __name__)


@certificate_bp.route('/api/submissions/<submission_id>/certificate')
@require_role('student')
def download_certificate(submission_id):
    """Render and download the certificate for one of the caller's submissions."""
    user_id, _ = current_identity()

    try:
        submission = get_store().get(submission_id)
        if submission.get('studentId') != user_id:
            # Other students' submissions are reported as missing
            raise SubmissionNotFoundError(f"Submission not found: {submission_id}")
        if not can_download_certificate(submission, get_engine().threshold):
            logger.warning("Certificate not available for submission %s", submission_id)
            raise CertificateNotAvailableError(
                "Certificate is not available for this submission or your full name is missing."
            )

        full_name = submission['fullNameForCertificate']
        pdf_bytes = get_renderer().render(full_name, format_completion_date(submission.get('gradedAt')))
        return trigger_download(
            pdf_bytes, certificate_filename(full_name, submission.get('assignmentTitle'))
        )
    except GraderError as e:
        return error_response(e)
