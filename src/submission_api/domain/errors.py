"""Error taxonomy for submission operations.

Every service operation raises one of these; the HTTP layer maps them to
response envelopes via ``status_code``. Storage-engine and Pydantic exceptions
never cross the service boundary.
"""


class SubmissionError(Exception):
    """Base class for all submission errors."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(SubmissionError):
    """Missing or invalid field, bad enum value, or malformed bulk payload."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", errors: list[str] | None = None):
        self.errors = errors or []
        super().__init__(message)


class NotFoundError(SubmissionError):
    """The identifier does not resolve to an existing submission."""

    status_code = 404

    def __init__(self, submission_id: str):
        self.submission_id = submission_id
        super().__init__("Submission not found")


class InvalidIdentifierError(SubmissionError):
    """The identifier is not in the store's expected format."""

    status_code = 400

    def __init__(self, submission_id: str):
        self.submission_id = submission_id
        super().__init__("Invalid submission ID format")


class PersistenceError(SubmissionError):
    """Storage unavailable, failed, or timed out. Safe for callers to retry."""

    status_code = 500

    def __init__(self, message: str = "Storage operation failed", detail: str | None = None):
        self.detail = detail
        super().__init__(message)
