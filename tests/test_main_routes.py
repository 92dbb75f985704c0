import pytest
from fastapi.testclient import TestClient

from jobtracker.main import create_app


class _EngineFail:
    def connect(self):
        raise RuntimeError("db down")

    def dispose(self):
        return None


def _boom():
    raise RuntimeError("kaboom")


@pytest.fixture
def failing_app(settings, database):
    app = create_app(settings, database)
    app.add_api_route("/api/boom", _boom)
    return app


def test_root(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Job Tracker API is running"}


def test_status_reports_runtime(client, settings):
    resp = client.get("/api/status")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "online"
    assert body["uptime"].endswith(" seconds")
    assert body["environment"] == settings.app_env
    assert body["version"] == settings.app_version
    assert set(body["python"]) == {"version", "platform", "arch"}
    assert body["timestamp"]


def test_health_live(client):
    resp = client.get("/health/live")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_health_ready_ok(client):
    resp = client.get("/health/ready")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ready"


def test_health_ready_not_ready(monkeypatch, app, client):
    monkeypatch.setattr(app.state.database, "engine", _EngineFail())
    resp = client.get("/health/ready")
    assert resp.status_code == 503
    assert resp.json()["status"] == "not_ready"


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/nowhere")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not Found", "statusCode": 404}


def test_unhandled_error_includes_stack_outside_production(failing_app):
    with TestClient(failing_app, raise_server_exceptions=False) as c:
        resp = c.get("/api/boom")
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "kaboom"
    assert body["statusCode"] == 500
    assert "timestamp" in body
    assert "RuntimeError" in body["stack"]


def test_unhandled_error_hides_stack_in_production(settings, failing_app):
    settings.app_env = "production"
    with TestClient(failing_app, raise_server_exceptions=False) as c:
        resp = c.get("/api/boom")
    assert resp.status_code == 500
    assert "stack" not in resp.json()


def test_cors_preflight_is_answered(client):
    resp = client.options(
        "/api/jobs",
        headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "POST"},
    )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] in ("*", "http://localhost:3000")


def test_startup_fails_when_migration_fails(settings, monkeypatch):
    from jobtracker import migrations
    from jobtracker.core.errors import MigrationError

    def _fail(engine):
        raise MigrationError("Migration to schema version 2 failed: boom")

    monkeypatch.setattr(migrations, "run_migrations", _fail)
    with pytest.raises(MigrationError):
        with TestClient(create_app(settings)):
            pass
