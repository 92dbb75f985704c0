from sqlalchemy import CheckConstraint, Column, Integer, Text

from jobtracker.database import Base


class SchemaVersion(Base):
    """Singleton row (id = 1) recording which migrations have run."""

    __tablename__ = "db_version"
    __table_args__ = (CheckConstraint("id = 1", name="db_version_singleton"),)

    id = Column(Integer, primary_key=True)
    version = Column(Integer, nullable=False)
    updated = Column(Text, nullable=False)  # ISO-8601 time of the last migration
