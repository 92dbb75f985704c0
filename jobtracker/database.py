import logging
from pathlib import Path

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


def _ensure_sqlite_parent_dir(url: str) -> None:
    path = make_url(url).database
    if path and path != ":memory:" and not path.startswith("file:"):
        parent = Path(path).parent
        if not parent.exists():
            parent.mkdir(parents=True, exist_ok=True)
            logger.info("Created data directory at %s", parent.resolve())


def _enable_transactional_ddl(engine: Engine) -> None:
    # pysqlite only opens a transaction before DML, so CREATE/DROP/ALTER would
    # otherwise autocommit. Emit BEGIN ourselves so DDL rolls back too.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


class Database:
    """Store connection: one engine plus its session factory.

    Created explicitly by the app lifespan (or a script) and handed to
    request handlers through ``get_db``.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        connect_args = {}
        if url.startswith("sqlite"):
            _ensure_sqlite_parent_dir(url)
            # FastAPI runs sync endpoints in a threadpool
            connect_args["check_same_thread"] = False
        self.engine = create_engine(url, echo=echo, pool_pre_ping=True, connect_args=connect_args)
        if self.engine.dialect.name == "sqlite":
            _enable_transactional_ddl(self.engine)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def init(self) -> int:
        """Create missing tables and migrate the schema. Returns the schema version."""
        from jobtracker.migrations import run_migrations

        try:
            version = run_migrations(self.engine)
            logger.info("Database initialized at schema version %d", version)
            return version
        except Exception as e:
            logger.exception("Database initialization failed: %s", e)
            raise

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database connection closed")


def get_db(request: Request):
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
