import pytest

from jobtracker.core.errors import InvalidJobError, JobNotFoundError
from jobtracker.repos import job_repo


def test_create_fills_defaults_and_timestamp(session):
    job = job_repo.create(session, {"job_title": "  Dev  ", "company": "Acme", "location": " "})
    assert job.id is not None
    assert job.job_title == "Dev"
    assert job.remote_type == "on-site"
    assert job.status == "applied"
    assert job.location is None
    assert isinstance(job.last_updated, int) and job.last_updated > 0


def test_create_normalizes_textual_timestamp(session):
    job = job_repo.create(session, {"job_title": "Dev", "company": "Acme", "last_updated": "1970-01-02"})
    assert job.last_updated == 86_400_000


def test_create_requires_title_and_company(session):
    with pytest.raises(InvalidJobError):
        job_repo.create(session, {"job_title": "Dev", "company": ""})


def test_get_all_orders_case_insensitively_then_by_id(session):
    first = job_repo.create(session, {"job_title": "A", "company": "acme"})
    job_repo.create(session, {"job_title": "B", "company": "Zed"})
    second = job_repo.create(session, {"job_title": "C", "company": "ACME"})

    jobs = job_repo.get_all(session)
    assert [j.id for j in jobs[:2]] == [first.id, second.id]
    assert jobs[2].company == "Zed"
    assert job_repo.count_all(session) == 3
    assert [j.company for j in job_repo.get_all(session, limit=1, offset=2)] == ["Zed"]


def test_update_overwrites_and_refreshes_timestamp(session):
    job = job_repo.create(
        session, {"job_title": "Dev", "company": "Acme", "notes": "n", "status": "offer", "last_updated": 5}
    )
    updated = job_repo.update(session, job.id, {"job_title": "Lead", "company": "Acme"})
    assert updated.job_title == "Lead"
    assert updated.notes is None
    assert updated.status == "applied"
    assert updated.last_updated > 5


def test_update_missing_raises(session):
    with pytest.raises(JobNotFoundError) as exc:
        job_repo.update(session, 404, {"job_title": "Dev", "company": "Acme"})
    assert str(exc.value) == "Job with ID 404 not found"


def test_delete_and_delete_missing(session):
    job = job_repo.create(session, {"job_title": "Dev", "company": "Acme"})
    assert job_repo.delete(session, job.id) == {"id": job.id, "deleted": True}
    assert job_repo.get_by_id(session, job.id) is None
    with pytest.raises(JobNotFoundError):
        job_repo.delete(session, job.id)


def test_search_and_count(session):
    job_repo.create(session, {"job_title": "Python Dev", "company": "Snake", "status": "interview"})
    job_repo.create(session, {"job_title": "Go Dev", "company": "Gopher", "notes": "python on the side"})
    job_repo.create(session, {"job_title": "Chef", "company": "Kitchen"})

    assert {j.company for j in job_repo.search(session, "PYTHON")} == {"Snake", "Gopher"}
    assert job_repo.count_search(session, "python") == 2
    assert [j.company for j in job_repo.search(session, "python", "interview")] == ["Snake"]
    assert job_repo.count_search(session, None, "interview") == 1


def test_empty_search_equals_listing(session):
    for company in ("b", "a", "c"):
        job_repo.create(session, {"job_title": "Dev", "company": company})
    assert [j.id for j in job_repo.search(session, "   ")] == [j.id for j in job_repo.get_all(session)]
    assert job_repo.count_search(session, "") == job_repo.count_all(session)


def test_search_escapes_like_wildcards(session):
    job_repo.create(session, {"job_title": "Dev", "company": "under_score"})
    job_repo.create(session, {"job_title": "Dev", "company": "underXscore"})
    assert [j.company for j in job_repo.search(session, "under_")] == ["under_score"]
