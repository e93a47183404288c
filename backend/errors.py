"""
Error types raised by the grading engine, certificate renderer and
submission store. Routes translate these into JSON error responses.
"""


class GraderError(Exception):
    """Base class for all application errors."""


class RubricConfigError(GraderError):
    """The rubric definition is malformed or breaks the equal-shape rule."""


class IncompleteRubricError(GraderError):
    """A grade was committed before every rubric category was scored."""

    def __init__(self, total: int, scored: int, missing=()):
        self.total = total
        self.scored = scored
        self.missing = list(missing)
        message = f"Please select a score for all {total} rubric categories"
        if self.missing:
            message += f" ({self.remaining} remaining: {', '.join(self.missing)})"
        super().__init__(message + ".")

    @property
    def remaining(self) -> int:
        return self.total - self.scored


class SubmissionValidationError(GraderError):
    """Student-entered submission fields failed validation."""


class SubmissionNotFoundError(GraderError):
    """No submission exists with the requested id."""


class StoreError(GraderError):
    """The document store rejected or failed a read/write."""

    def __init__(self, message, cause=None):
        super().__init__(message)
        self.cause = cause


class CertificateNotAvailableError(GraderError):
    """The submission is not eligible, or has no certificate name."""


class CertificateGenerationError(GraderError):
    """Building the certificate document failed; no bytes were produced."""

    def __init__(self, message, cause=None):
        super().__init__(message)
        self.cause = cause


class DownloadError(GraderError):
    """The generated document could not be handed over as a download."""

    def __init__(self, message, cause=None):
        super().__init__(message)
        self.cause = cause
