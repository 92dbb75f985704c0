from jobtracker.models.job import JobApplication
from jobtracker.models.schema_version import SchemaVersion

__all__ = [
    "JobApplication",
    "SchemaVersion",
]
