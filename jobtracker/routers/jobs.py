import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from jobtracker.core.errors import ApiError, InvalidJobError
from jobtracker.core.validation import parse_int, to_job_write
from jobtracker.database import get_db
from jobtracker.repos import job_repo
from jobtracker.schemas.job import (
    DeleteResult,
    JobApplicationRead,
    JobListResponse,
    JobSearchResponse,
    Pagination,
    SearchFilters,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/jobs", tags=["jobs"])

DEFAULT_LIMIT = 100
DEFAULT_OFFSET = 0


def _page(limit: str | None, offset: str | None) -> tuple[int, int]:
    """Parse limit/offset query values, falling back to defaults on junk."""
    limit_n = parse_int(limit) if limit is not None else None
    offset_n = parse_int(offset) if offset is not None else None
    if not limit_n or limit_n < 0:
        limit_n = DEFAULT_LIMIT
    if not offset_n or offset_n < 0:
        offset_n = DEFAULT_OFFSET
    return limit_n, offset_n


def _is_status_only(body: dict[str, Any]) -> bool:
    return bool(body.get("status")) and not body.get("jobTitle") and not body.get("company")


def _serialize(jobs) -> list[JobApplicationRead]:
    return [JobApplicationRead.model_validate(j) for j in jobs]


@router.get("", response_model=JobListResponse)
def list_jobs(
    limit: str | None = None,
    offset: str | None = None,
    db: Session = Depends(get_db),
):
    """Return one page of jobs ordered by company, plus pagination totals."""
    limit_n, offset_n = _page(limit, offset)
    try:
        jobs = job_repo.get_all(db, limit=limit_n, offset=offset_n)
        total = job_repo.count_all(db)
    except SQLAlchemyError as e:
        logger.exception("Error fetching jobs: %s", e)
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch jobs", str(e)) from e
    return JobListResponse(
        data=_serialize(jobs),
        pagination=Pagination(limit=limit_n, offset=offset_n, total=total, current_page_count=len(jobs)),
    )


# Declared before /{job_id} so "search" is not read as an id.
@router.get("/search", response_model=JobSearchResponse)
def search_jobs(
    q: str = "",
    status_filter: str | None = Query(default=None, alias="status"),
    limit: str | None = None,
    offset: str | None = None,
    db: Session = Depends(get_db),
):
    limit_n, offset_n = _page(limit, offset)
    status_value = status_filter or None
    try:
        jobs = job_repo.search(db, q, status_value, limit=limit_n, offset=offset_n)
        total = job_repo.count_search(db, q, status_value)
    except SQLAlchemyError as e:
        logger.exception("Error searching jobs: %s", e)
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to search jobs", str(e)) from e
    logger.debug("GET /api/jobs/search q=%r status=%s count=%d", q, status_value, len(jobs))
    return JobSearchResponse(
        data=_serialize(jobs),
        pagination=Pagination(limit=limit_n, offset=offset_n, total=total, current_page_count=len(jobs)),
        filters=SearchFilters(search_term=q, status=status_value),
    )


@router.get("/{job_id}", response_model=JobApplicationRead)
def get_job(job_id: int, db: Session = Depends(get_db)):
    try:
        job = job_repo.get_by_id(db, job_id)
    except SQLAlchemyError as e:
        logger.exception("Error fetching job %s: %s", job_id, e)
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch job", str(e)) from e
    if not job:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Job not found")
    return JobApplicationRead.model_validate(job)


@router.post("", response_model=JobApplicationRead, status_code=status.HTTP_201_CREATED)
def create_job(body: dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    payload = to_job_write(body)
    try:
        job = job_repo.create(db, payload.model_dump(mode="json"))
    except (SQLAlchemyError, InvalidJobError) as e:
        logger.exception("Error creating job: %s", e)
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to create job", str(e)) from e
    return JobApplicationRead.model_validate(job)


@router.put("/{job_id}", response_model=JobApplicationRead)
def update_job(job_id: int, body: dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    """
    Replace a job. A body carrying a status but no title/company is a status
    change: it is merged over the stored record before validation.
    """
    if _is_status_only(body):
        existing = job_repo.get_by_id(db, job_id)
        if not existing:
            raise ApiError(status.HTTP_404_NOT_FOUND, "Job not found")
        current = JobApplicationRead.model_validate(existing).model_dump(by_alias=True)
        payload = to_job_write({**current, **body})
        logger.info("Status-only update for job %s -> %s", job_id, payload.status.value)
    else:
        payload = to_job_write(body)

    try:
        job = job_repo.update(db, job_id, payload.model_dump(mode="json"))
    except (SQLAlchemyError, InvalidJobError) as e:
        logger.exception("Error updating job %s: %s", job_id, e)
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to update job", str(e)) from e
    return JobApplicationRead.model_validate(job)


@router.delete("/{job_id}", response_model=DeleteResult)
def delete_job(job_id: int, db: Session = Depends(get_db)):
    try:
        result = job_repo.delete(db, job_id)
    except SQLAlchemyError as e:
        logger.exception("Error deleting job %s: %s", job_id, e)
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to delete job", str(e)) from e
    return DeleteResult(**result)
