from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RemoteType(str, Enum):
    ON_SITE = "on-site"
    HYBRID = "hybrid"
    REMOTE = "remote"


class JobStatus(str, Enum):
    APPLIED = "applied"
    SCREENING = "screening"
    INTERVIEW = "interview"
    FOLLOWUP = "followup"
    OFFER = "offer"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class JobApplicationWrite(CamelModel):
    """Fields accepted on create/update, after validate_job_input has passed."""

    job_title: str
    company: str
    location: str | None = None
    remote_type: RemoteType = RemoteType.ON_SITE
    salary_min: int | None = None
    salary_max: int | None = None
    status: JobStatus = JobStatus.APPLIED
    job_url: str | None = None
    notes: str | None = None
    last_updated: int | str | None = None


class JobApplicationRead(CamelModel):
    id: int
    job_title: str
    company: str
    location: str | None = None
    remote_type: str | None = None
    salary_min: int | None = None
    salary_max: int | None = None
    status: str | None = None
    job_url: str | None = None
    notes: str | None = None
    last_updated: int | None = None


class Pagination(CamelModel):
    limit: int
    offset: int
    total: int
    current_page_count: int


class SearchFilters(CamelModel):
    search_term: str = ""
    status: str | None = None


class JobListResponse(CamelModel):
    data: list[JobApplicationRead]
    pagination: Pagination


class JobSearchResponse(JobListResponse):
    filters: SearchFilters


class DeleteResult(CamelModel):
    id: int
    deleted: bool = Field(default=True)
