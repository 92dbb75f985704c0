"""
Startup schema migrations for the jobs store.

Version history:
  1  lastUpdated stored as ISO-8601 / ISO-date text, plus createdAt/updatedAt audit columns
  2  lastUpdated stored as epoch milliseconds (audit columns still present)
  3  audit columns dropped

SQLite cannot change a column's type or drop columns in place on older
versions, so each step builds a staging table, copies rows into it, drops
``jobs`` and renames the staging table. Every step runs in one transaction
together with its version bump.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, Table, Text, inspect, insert, select, text, update
from sqlalchemy.engine import Connection, Engine

from jobtracker.core.errors import MigrationError
from jobtracker.core.timestamps import now_millis, to_epoch_millis
from jobtracker.database import Base
from jobtracker.models import JobApplication, SchemaVersion

logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 3
AUDIT_COLUMNS = ("createdAt", "updatedAt")
STAGING_TABLE = "jobs_new"

_TEXT_AFFINITY = ("CHAR", "CLOB", "TEXT")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _is_textual(column_type) -> bool:
    # SQLite type affinity rules: any of these substrings means TEXT affinity.
    name = str(column_type).upper()
    return any(token in name for token in _TEXT_AFFINITY)


def _job_columns(conn: Connection) -> dict[str, dict]:
    return {col["name"]: col for col in inspect(conn).get_columns(JobApplication.__tablename__)}


def _v2_table(metadata: MetaData) -> Table:
    """Shape of ``jobs`` at schema version 2."""
    return Table(
        STAGING_TABLE,
        metadata,
        Column("id", Integer, primary_key=True),
        Column("jobTitle", Text, nullable=False),
        Column("company", Text, nullable=False),
        Column("location", Text),
        Column("remoteType", Text, server_default="on-site"),
        Column("salaryMin", Integer),
        Column("salaryMax", Integer),
        Column("status", Text, server_default="applied"),
        Column("jobUrl", Text),
        Column("notes", Text),
        Column("lastUpdated", Integer),
        Column("createdAt", Text),
        Column("updatedAt", Text),
        sqlite_autoincrement=True,
    )


def _swap_in(conn: Connection, staging: Table) -> None:
    conn.execute(text(f"DROP TABLE {JobApplication.__tablename__}"))
    conn.execute(text(f"ALTER TABLE {staging.name} RENAME TO {JobApplication.__tablename__}"))


def migrate_to_v2(conn: Connection) -> None:
    """Convert textual lastUpdated values to epoch milliseconds."""
    last_updated = _job_columns(conn).get("lastUpdated")
    if last_updated is None or not _is_textual(last_updated["type"]):
        logger.info("jobs.lastUpdated is already numeric; nothing to convert")
        return

    now = now_millis()
    rows = conn.execute(text(f"SELECT * FROM {JobApplication.__tablename__}")).mappings().all()
    staging = _v2_table(MetaData())
    staging.drop(conn, checkfirst=True)
    staging.create(conn)

    converted = []
    for row in rows:
        record = {name: row[name] for name in staging.c.keys() if name in row}
        record["lastUpdated"] = to_epoch_millis(row.get("lastUpdated"), now=now)
        converted.append(record)
    if converted:
        conn.execute(staging.insert(), converted)

    _swap_in(conn, staging)
    logger.info("Converted lastUpdated to epoch milliseconds for %d row(s)", len(converted))


def migrate_to_v3(conn: Connection) -> None:
    """Drop the createdAt/updatedAt audit columns."""
    existing = _job_columns(conn)
    if not any(name in existing for name in AUDIT_COLUMNS):
        logger.info("jobs has no audit columns; nothing to drop")
        return

    staging = JobApplication.__table__.to_metadata(MetaData(), name=STAGING_TABLE)
    staging.drop(conn, checkfirst=True)
    staging.create(conn)

    keep = ", ".join(f'"{col.name}"' for col in staging.columns if col.name in existing)
    result = conn.execute(
        text(f"INSERT INTO {STAGING_TABLE} ({keep}) SELECT {keep} FROM {JobApplication.__tablename__}")
    )
    _swap_in(conn, staging)
    logger.info("Dropped audit columns; copied %d row(s)", result.rowcount)


MIGRATIONS = [
    (2, migrate_to_v2),
    (3, migrate_to_v3),
]


def get_schema_version(conn: Connection) -> int:
    """Read the version marker, inserting version 1 when the row is missing."""
    row = conn.execute(select(SchemaVersion.version).where(SchemaVersion.id == 1)).first()
    if row is not None:
        return row.version
    conn.execute(insert(SchemaVersion.__table__).values(id=1, version=1, updated=_now_iso()))
    return 1


def _record_version(conn: Connection, version: int) -> None:
    conn.execute(
        update(SchemaVersion.__table__)
        .where(SchemaVersion.__table__.c.id == 1)
        .values(version=version, updated=_now_iso())
    )


def run_migrations(engine: Engine) -> int:
    """Bring the store up to CURRENT_SCHEMA_VERSION. Returns the final version."""
    with engine.begin() as conn:
        # Only creates what is missing; existing legacy tables are left alone.
        Base.metadata.create_all(bind=conn)
        version = get_schema_version(conn)

    if version >= CURRENT_SCHEMA_VERSION:
        logger.info("Schema is current (version %d)", version)
        return version

    for target, step in MIGRATIONS:
        if version >= target:
            continue
        logger.info("Migrating schema from version %d to %d", version, target)
        try:
            with engine.begin() as conn:
                step(conn)
                _record_version(conn, target)
        except Exception as e:
            logger.exception("Schema migration to version %d failed", target)
            raise MigrationError(f"Migration to schema version {target} failed: {e}") from e
        version = target

    logger.info("Schema migrated to version %d", version)
    return version
