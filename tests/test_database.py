from types import SimpleNamespace

import pytest
from sqlalchemy import text

import jobtracker.database as dbmod
from jobtracker.database import Database


def test_get_db_closes_session():
    class _Session:
        def __init__(self):
            self.closed = False

        def close(self):
            self.closed = True

    inst = _Session()
    database = SimpleNamespace(session=lambda: inst)
    request = SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(database=database)))

    gen = dbmod.get_db(request)
    got = next(gen)
    assert got is inst
    with pytest.raises(StopIteration):
        next(gen)
    assert inst.closed is True


def test_database_creates_missing_data_dir(tmp_path):
    target = tmp_path / "nested" / "dir" / "jobs.db"
    db = Database(f"sqlite:///{target}")
    try:
        assert target.parent.is_dir()
        assert db.init() == 3
        assert target.exists()
    finally:
        db.dispose()


def test_ddl_rolls_back_with_the_transaction(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'ddl.db'}")
    try:
        with pytest.raises(RuntimeError):
            with db.engine.begin() as conn:
                conn.execute(text("CREATE TABLE scratch (id INTEGER)"))
                raise RuntimeError("abort")
        with db.engine.connect() as conn:
            names = conn.execute(text("SELECT name FROM sqlite_master WHERE type = 'table'")).scalars().all()
        assert "scratch" not in names
    finally:
        db.dispose()


def test_init_reraises_failures(tmp_path, monkeypatch):
    from jobtracker import migrations

    def _fail(engine):
        raise RuntimeError("db fail")

    monkeypatch.setattr(migrations, "run_migrations", _fail)
    db = Database(f"sqlite:///{tmp_path / 'x.db'}")
    try:
        with pytest.raises(RuntimeError, match="db fail"):
            db.init()
    finally:
        db.dispose()
