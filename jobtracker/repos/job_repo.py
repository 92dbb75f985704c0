import logging
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from jobtracker.core.errors import InvalidJobError, JobNotFoundError
from jobtracker.core.timestamps import now_millis, to_epoch_millis
from jobtracker.models.job import JobApplication

logger = logging.getLogger(__name__)

DEFAULT_REMOTE_TYPE = "on-site"
DEFAULT_STATUS = "applied"


def _ordered(q: Query) -> Query:
    return q.order_by(func.lower(JobApplication.company).asc(), JobApplication.id.asc())


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _search_query(db: Session, term: str | None, status: str | None) -> Query:
    q = db.query(JobApplication)
    term = (term or "").strip()
    if term:
        pattern = _like_pattern(term)
        q = q.filter(
            or_(
                JobApplication.job_title.ilike(pattern, escape="\\"),
                JobApplication.company.ilike(pattern, escape="\\"),
                JobApplication.notes.ilike(pattern, escape="\\"),
            )
        )
    if status:
        q = q.filter(JobApplication.status == status)
    return q


def _value(fields: dict[str, Any], key: str):
    value = fields.get(key)
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _row_values(fields: dict[str, Any]) -> dict[str, Any]:
    """Full column set for a write. Missing optional fields become NULL or their default."""
    title = (fields.get("job_title") or "").strip()
    company = (fields.get("company") or "").strip()
    if not title or not company:
        raise InvalidJobError("Job title and company are required")
    return {
        "job_title": title,
        "company": company,
        "location": _value(fields, "location"),
        "remote_type": _value(fields, "remote_type") or DEFAULT_REMOTE_TYPE,
        "salary_min": _value(fields, "salary_min"),
        "salary_max": _value(fields, "salary_max"),
        "status": _value(fields, "status") or DEFAULT_STATUS,
        "job_url": _value(fields, "job_url"),
        "notes": _value(fields, "notes"),
    }


def get_all(db: Session, limit: int = 100, offset: int = 0) -> list[JobApplication]:
    """Jobs ordered by company name, case-insensitive."""
    return _ordered(db.query(JobApplication)).offset(offset).limit(limit).all()


def count_all(db: Session) -> int:
    return db.query(JobApplication).count()


def get_by_id(db: Session, job_id: int) -> JobApplication | None:
    return db.query(JobApplication).filter(JobApplication.id == job_id).first()


def create(db: Session, fields: dict[str, Any]) -> JobApplication:
    values = _row_values(fields)
    values["last_updated"] = to_epoch_millis(fields.get("last_updated"))
    job = JobApplication(**values)
    db.add(job)
    db.commit()
    db.refresh(job)
    logger.info("Created job id=%s company=%r", job.id, job.company)
    return job


def update(db: Session, job_id: int, fields: dict[str, Any]) -> JobApplication:
    """Overwrite every column of an existing job and refresh its timestamp."""
    job = get_by_id(db, job_id)
    if not job:
        raise JobNotFoundError(job_id)
    for key, value in _row_values(fields).items():
        setattr(job, key, value)
    job.last_updated = now_millis()
    db.commit()
    db.refresh(job)
    logger.info("Updated job id=%s status=%s", job.id, job.status)
    return job


def delete(db: Session, job_id: int) -> dict:
    job = get_by_id(db, job_id)
    if not job:
        raise JobNotFoundError(job_id)
    db.delete(job)
    db.commit()
    logger.info("Deleted job id=%s", job_id)
    return {"id": job_id, "deleted": True}


def search(
    db: Session,
    term: str | None = None,
    status: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[JobApplication]:
    """Case-insensitive substring match on title, company and notes, optional exact status."""
    return _ordered(_search_query(db, term, status)).offset(offset).limit(limit).all()


def count_search(db: Session, term: str | None = None, status: str | None = None) -> int:
    return _search_query(db, term, status).count()
