from sqlalchemy import Column, Integer, Text

from jobtracker.database import Base


class JobApplication(Base):
    """One tracked job opportunity. Column names match the legacy camelCase store."""

    __tablename__ = "jobs"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    job_title = Column("jobTitle", Text, nullable=False)
    company = Column(Text, nullable=False)
    location = Column(Text)
    remote_type = Column("remoteType", Text, default="on-site", server_default="on-site")
    salary_min = Column("salaryMin", Integer)
    salary_max = Column("salaryMax", Integer)
    status = Column(Text, default="applied", server_default="applied")
    job_url = Column("jobUrl", Text)
    notes = Column(Text)
    last_updated = Column("lastUpdated", Integer)  # epoch milliseconds

    def __repr__(self) -> str:
        return f"<JobApplication id={self.id} company={self.company!r} status={self.status!r}>"
