"""
Submission API routes.
Handles role selection, student submissions and the dashboard listings.
"""
import logging
from flask import Blueprint, request, jsonify

from backend.auth import current_identity
from backend.errors import GraderError
from backend.routes.helpers import get_store, error_response, require_role, ROLES
from backend.services.submission_service import (
    build_submission, sort_newest_first, student_stats, grader_stats, GRADER_FILTERS,
    STATUS_SUBMITTED,
)

logger = logging.getLogger(__name__)

submission_bp = Blueprint('submission', __name__)


@submission_bp.route('/api/health')
def health():
    return jsonify({"status": "ok"})


@submission_bp.route('/api/role', methods=['GET'])
def get_role():
    """Return the caller's stored role (null until one is chosen)."""
    user_id, _ = current_identity()
    try:
        role = get_store().get_role(user_id)
    except GraderError as e:
        return error_response(e)
    return jsonify({"role": role})


@submission_bp.route('/api/role', methods=['POST'])
def set_role():
    user_id, _ = current_identity()
    data = request.get_json(silent=True) or {}
    role = data.get('role')
    if role not in ROLES:
        return jsonify({"error": f"Role must be one of: {', '.join(ROLES)}"}), 400

    try:
        get_store().set_role(user_id, role)
    except GraderError as e:
        return error_response(e)
    logger.info("Role set for %s: %s", user_id, role)
    return jsonify({"role": role})


@submission_bp.route('/api/submissions', methods=['POST'])
@require_role('student')
def create_submission():
    """Create a new notebook submission for the calling student."""
    user_id, email = current_identity()
    data = request.get_json(silent=True) or {}

    try:
        record = build_submission(
            user_id, email,
            data.get('assignmentTitle'),
            data.get('notebookLink'),
            data.get('fullNameForCertificate'),
        )
        created = get_store().create(record)
    except GraderError as e:
        return error_response(e)

    logger.info("Submission %s created by %s", created.get('id'), user_id)
    return jsonify({
        "submission": created,
        "message": "Notebook submitted successfully!",
    }), 201


@submission_bp.route('/api/submissions/mine', methods=['GET'])
@require_role('student')
def list_my_submissions():
    user_id, _ = current_identity()
    try:
        submissions = sort_newest_first(get_store().query(studentId=user_id))
    except GraderError as e:
        return error_response(e)
    return jsonify({"submissions": submissions, "stats": student_stats(submissions)})


@submission_bp.route('/api/submissions', methods=['GET'])
@require_role('grader')
def list_submissions():
    """Grader listing filtered by status ('submitted', 'graded' or 'all')."""
    status = request.args.get('status', STATUS_SUBMITTED)
    if status not in GRADER_FILTERS:
        return jsonify({"error": f"Status filter must be one of: {', '.join(GRADER_FILTERS)}"}), 400

    try:
        store = get_store()
        everything = store.query()
        submissions = everything if status == 'all' else store.query(status=status)
    except GraderError as e:
        return error_response(e)

    return jsonify({
        "submissions": sort_newest_first(submissions),
        "stats": grader_stats(everything),
        "filter": status,
    })
