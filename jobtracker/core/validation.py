from typing import Any

from pydantic import ValidationError

from jobtracker.core.errors import JobValidationError
from jobtracker.schemas.job import JobApplicationWrite, JobStatus, RemoteType

STATUS_VALUES = [s.value for s in JobStatus]
REMOTE_TYPE_VALUES = [r.value for r in RemoteType]


def _present(value: Any) -> bool:
    return value is not None and not (isinstance(value, str) and not value.strip())


def _present_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def parse_int(value: Any) -> int | None:
    """Return value as an int, or None when it does not represent one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def validate_job_input(body: dict[str, Any]) -> dict[str, str]:
    """Return field -> problem for every violation in a create/update body."""
    errors: dict[str, str] = {}

    if not _present_text(body.get("jobTitle")):
        errors["jobTitle"] = "Job title is required"
    if not _present_text(body.get("company")):
        errors["company"] = "Company is required"

    salary_min = salary_max = None
    if _present(body.get("salaryMin")):
        salary_min = parse_int(body["salaryMin"])
        if salary_min is None:
            errors["salaryMin"] = "Salary minimum must be a number"
    if _present(body.get("salaryMax")):
        salary_max = parse_int(body["salaryMax"])
        if salary_max is None:
            errors["salaryMax"] = "Salary maximum must be a number"
    if salary_min is not None and salary_max is not None and salary_min > salary_max:
        errors["salary"] = "Minimum salary cannot be greater than maximum salary"

    if _present(body.get("status")) and body["status"] not in STATUS_VALUES:
        errors["status"] = f"Status must be one of: {', '.join(STATUS_VALUES)}"
    if _present(body.get("remoteType")) and body["remoteType"] not in REMOTE_TYPE_VALUES:
        errors["remoteType"] = f"Remote type must be one of: {', '.join(REMOTE_TYPE_VALUES)}"

    return errors


def to_job_write(body: dict[str, Any]) -> JobApplicationWrite:
    """Validate a request body and convert it to a JobApplicationWrite.

    Raises JobValidationError listing every problem found.
    """
    if not isinstance(body, dict):
        raise JobValidationError({"body": "Request body must be a JSON object"})
    errors = validate_job_input(body)
    if errors:
        raise JobValidationError(errors)

    cleaned = {k: v for k, v in body.items() if k != "id"}
    for key in ("salaryMin", "salaryMax"):
        cleaned[key] = parse_int(cleaned[key]) if _present(cleaned.get(key)) else None
    for key in ("status", "remoteType"):
        if not _present(cleaned.get(key)):
            cleaned.pop(key, None)
    cleaned["jobTitle"] = cleaned["jobTitle"].strip()
    cleaned["company"] = cleaned["company"].strip()
    try:
        return JobApplicationWrite.model_validate(cleaned)
    except ValidationError as e:
        details = {".".join(str(p) for p in err["loc"]) or "body": err["msg"] for err in e.errors()}
        raise JobValidationError(details) from e
