"""
Shared helpers for route blueprints: collaborator lookup, role checks and
error-to-response mapping.
"""
import logging
from functools import wraps

from flask import current_app, jsonify

from backend.auth import current_identity
from backend.errors import (
    IncompleteRubricError, SubmissionValidationError, SubmissionNotFoundError,
    CertificateNotAvailableError, CertificateGenerationError, DownloadError, StoreError,
)

logger = logging.getLogger(__name__)

ROLES = ("student", "grader")


def get_store():
    return current_app.config["SUBMISSION_STORE"]


def get_engine():
    return current_app.config["GRADING_ENGINE"]


def get_renderer():
    return current_app.config["CERTIFICATE_RENDERER"]


def get_grader_names():
    return current_app.config["GRADER_NAMES"]


def require_role(role):
    """Reject callers whose stored role is not `role` with a 403."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                user_role = get_store().get_role(current_identity()[0])
            except StoreError as e:
                return error_response(e)
            if user_role != role:
                return jsonify({"error": f"This action requires the {role} role"}), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def error_response(error):
    """JSON error response for an application error.

    Internal failures get a generic message; the cause is only logged.
    """
    if isinstance(error, IncompleteRubricError):
        return jsonify({
            "error": str(error),
            "missing": error.missing,
            "total": error.total,
            "scored": error.scored,
        }), 400
    if isinstance(error, (SubmissionValidationError, CertificateNotAvailableError)):
        return jsonify({"error": str(error)}), 400
    if isinstance(error, SubmissionNotFoundError):
        return jsonify({"error": str(error)}), 404
    if isinstance(error, CertificateGenerationError):
        logger.error("Certificate generation failed: %s", error)
        return jsonify({"error": "Error generating certificate. Please try again."}), 500
    if isinstance(error, DownloadError):
        logger.error("Certificate download failed: %s", error)
        return jsonify({"error": "Could not prepare the certificate download. Please try again."}), 500
    logger.error("Request failed: %s", error)
    return jsonify({"error": "Something went wrong. Please try again."}), 500
