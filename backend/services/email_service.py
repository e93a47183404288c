"""
Grade Notification Preview
==========================
Builds the notification text a student would receive once their
submission is graded. Shown to the grader after a commit; nothing is sent.
"""

FROM_ADDRESS = "Notebook Grading Platform <noreply@example.com>"


def build_grade_email_preview(submission: dict, grade, feedback: str, threshold: int) -> str:
    """Plain-text email body for a graded submission."""
    if not submission:
        return "Submission data not available for preview."

    title = submission.get("assignmentTitle", "")
    lines = [
        f"To: {submission.get('studentEmail') or 'Student'}",
        f"From: {FROM_ADDRESS}",
        f'Subject: Your Grade for "{title}" is Available!',
        "",
        f"Hi {submission.get('fullNameForCertificate') or 'Student'},",
        "",
        f'Your submission for the assignment "{title}" has been graded.',
        "",
        f"Final Grade: {grade}%",
        "",
        "Additional Feedback:",
        (feedback or "").strip() or "No additional feedback was provided.",
    ]

    if grade is not None:
        lines.append("")
        if grade >= threshold:
            lines.append(
                "Congratulations! Based on your grade, your certificate of completion is now available."
            )
        else:
            lines.append(
                "Please review the detailed rubric breakdown and feedback on the platform "
                "to understand areas for improvement."
            )

    lines.extend(["", "Best regards,", "The Grading Team"])
    return "\n".join(lines).strip()
