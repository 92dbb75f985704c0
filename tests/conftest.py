import pytest
from fastapi.testclient import TestClient

from jobtracker.config import Settings
from jobtracker.database import Database
from jobtracker.main import create_app
from jobtracker.repos import job_repo


@pytest.fixture
def settings(tmp_path) -> Settings:
    # Rate limiting off unless a test turns it on.
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'jobs.db'}",
        rate_limit_max_requests=0,
    )


@pytest.fixture
def database(settings: Settings):
    db = Database(settings.sqlalchemy_url)
    db.init()
    yield db
    db.dispose()


@pytest.fixture
def session(database: Database):
    db = database.session()
    yield db
    db.close()


@pytest.fixture
def app(settings: Settings, database: Database):
    return create_app(settings, database)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_job(database: Database):
    """Insert a job through its own session; the returned row is detached."""

    def _make(**fields):
        fields.setdefault("job_title", "Backend Engineer")
        fields.setdefault("company", "Acme")
        db = database.session()
        try:
            return job_repo.create(db, fields)
        finally:
            # Ends the read transaction so request handlers can write.
            db.close()

    return _make
