"""
Grading API routes.
Serves the rubric, live grade previews, feedback compilation and grade commits.

The grade is always recomputed on the server from the submitted rubric
scores; a client-sent grade is ignored.
"""
import logging
from flask import Blueprint, request, jsonify

from backend.auth import current_identity
from backend.errors import GraderError, IncompleteRubricError, SubmissionValidationError
from backend.routes.helpers import get_store, get_engine, get_grader_names, error_response, require_role
from backend.rubric_config import get_grader_name
from backend.services.email_service import build_grade_email_preview

logger = logging.getLogger(__name__)

grading_bp = Blueprint('grading', __name__)


def _read_scores(data, rubric):
    """
    Pull rubricScores out of a request body as {category: score}.

    Every key must be a rubric category and every value one of that
    category's criterion scores, given as a JSON integer.
    """
    raw = data.get('rubricScores') or {}
    if not isinstance(raw, dict):
        raise SubmissionValidationError("rubricScores must map category names to scores")
    scores = {}
    for name, score in raw.items():
        category = rubric.get(name)
        if category is None:
            raise SubmissionValidationError(f"Unknown rubric category '{name}'")
        if isinstance(score, bool) or not isinstance(score, int):
            raise SubmissionValidationError(f"Invalid score for '{name}'")
        if category.criterion_for(score) is None:
            raise SubmissionValidationError(
                f"Score {score} is not a rubric level for '{name}'"
            )
        scores[name] = score
    return scores


@grading_bp.route('/api/rubric')
def get_rubric():
    engine = get_engine()
    return jsonify({
        "rubric": engine.rubric.to_list(),
        "maxPerCategory": engine.rubric.max_per_category,
        "threshold": engine.threshold,
    })


@grading_bp.route('/api/graders/<uid>')
def grader_display_name(uid):
    return jsonify({"id": uid, "name": get_grader_name(uid, get_grader_names())})


@grading_bp.route('/api/submissions/<submission_id>/grade-preview', methods=['POST'])
@require_role('grader')
def grade_preview(submission_id):
    """Recompute the grade for an in-progress selection. Nothing is saved."""
    engine = get_engine()
    data = request.get_json(silent=True) or {}
    try:
        get_store().get(submission_id)
        scores = _read_scores(data, engine.rubric)
    except GraderError as e:
        return error_response(e)

    result = engine.compute_grade(scores)
    return jsonify({
        "grade": result.percentage,
        "certificateEligible": result.eligible,
        "complete": engine.is_complete(scores),
        "missing": engine.missing_categories(scores),
    })


@grading_bp.route('/api/submissions/<submission_id>/compile-feedback', methods=['POST'])
@require_role('grader')
def compile_feedback(submission_id):
    """Append rubric descriptors for the selected scores to the feedback text."""
    engine = get_engine()
    data = request.get_json(silent=True) or {}
    try:
        get_store().get(submission_id)
        scores = _read_scores(data, engine.rubric)
    except GraderError as e:
        return error_response(e)

    return jsonify({"feedback": engine.append_feedback(data.get('feedback') or '', scores)})


@grading_bp.route('/api/submissions/<submission_id>/grade', methods=['POST'])
@require_role('grader')
def save_grade(submission_id):
    """Commit a grade. Every rubric category must be scored first."""
    engine = get_engine()
    grader_id, _ = current_identity()
    data = request.get_json(silent=True) or {}

    try:
        store = get_store()
        submission = store.get(submission_id)
        scores = _read_scores(data, engine.rubric)
        update = engine.build_grade_update(scores, data.get('feedback') or '', grader_id)
        saved = store.update(submission_id, update)
    except GraderError as e:
        if isinstance(e, (IncompleteRubricError, SubmissionValidationError)):
            logger.info("Grade for %s rejected: %s", submission_id, e)
        return error_response(e)

    logger.info(
        "Grade saved for %s: %s%% (eligible=%s) by %s",
        submission_id, update["grade"], update["certificateEligible"], grader_id,
    )

    message = "Grade saved successfully!"
    if update["certificateEligible"]:
        message += " The student is now eligible for a certificate."
    else:
        message += f" The student is NOT eligible for a certificate (Grade < {engine.threshold})."

    return jsonify({
        "submission": saved,
        "message": message,
        "emailPreview": build_grade_email_preview(
            submission, update["grade"], update["feedback"], engine.threshold
        ),
    })
