class JobTrackerError(Exception):
    """Base class for errors raised by the tracker."""


class JobNotFoundError(JobTrackerError):
    def __init__(self, job_id):
        self.job_id = job_id
        super().__init__(f"Job with ID {job_id} not found")


class InvalidJobError(JobTrackerError):
    """Record rejected by the access layer (missing title or company)."""


class JobValidationError(JobTrackerError):
    """Request payload failed validation; details maps field -> problem."""

    def __init__(self, details: dict[str, str], message: str = "Validation failed"):
        self.details = details
        super().__init__(message)


class MigrationError(JobTrackerError):
    """A schema migration step failed; startup must abort."""


class ApiError(JobTrackerError):
    """Error rendered as {error, details} with an explicit HTTP status."""

    def __init__(self, status_code: int, error: str, details: str | dict | None = None):
        self.status_code = status_code
        self.error = error
        self.details = details
        super().__init__(error)
