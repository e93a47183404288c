"""
Notebook Grader Services
========================

Business logic services for the Notebook Grader.

Services:
- grading_service: Rubric grading engine (grade, eligibility, feedback)
- certificate_generator: Completion certificate PDF rendering and download
- submission_store: Supabase / in-memory document store for submissions
- submission_service: Submission validation, listing order and stats
- email_service: Grade notification preview text
"""

# Services are imported directly when needed to avoid circular imports
# Example: from backend.services.grading_service import GradingEngine

__all__ = [
    'grading_service',
    'certificate_generator',
    'submission_store',
    'submission_service',
    'email_service',
]
