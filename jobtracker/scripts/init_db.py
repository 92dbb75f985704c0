"""
Drop and recreate the jobs store at the current schema version,
optionally inserting two sample applications.

Usage:
  python -m jobtracker.scripts.init_db [--yes] [--no-sample]
"""
import argparse
import sys

from sqlalchemy import text

from jobtracker.config import settings
from jobtracker.database import Database
from jobtracker.logging_config import setup_logging
from jobtracker.repos import job_repo

TABLES = ["jobs", "db_version"]

SAMPLE_JOBS = [
    {
        "job_title": "Senior Frontend Developer",
        "company": "Tech Innovations",
        "location": "London, UK",
        "remote_type": "hybrid",
        "salary_min": 70,
        "salary_max": 90,
        "status": "applied",
        "job_url": "https://example.com/job1",
        "notes": "Applied through company website. Need to follow up next week.",
    },
    {
        "job_title": "Full Stack Developer",
        "company": "Digital Solutions",
        "location": "Manchester, UK",
        "remote_type": "remote",
        "salary_min": 65,
        "salary_max": 80,
        "status": "interview",
        "job_url": "https://example.com/job2",
        "notes": "First interview scheduled for next Monday at 2pm.",
    },
]


def reset(database: Database, sample: bool = True) -> int:
    """Drop every table, migrate from scratch, seed. Returns rows inserted."""
    with database.engine.begin() as conn:
        for table in TABLES:
            conn.execute(text(f"DROP TABLE IF EXISTS {table}"))
    database.init()
    if not sample:
        return 0
    db = database.session()
    try:
        for fields in SAMPLE_JOBS:
            job_repo.create(db, fields)
    finally:
        db.close()
    return len(SAMPLE_JOBS)


def main():
    parser = argparse.ArgumentParser(description="Reset the job tracker database.")
    parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")
    parser.add_argument("--no-sample", action="store_true", help="Do not insert sample jobs")
    args = parser.parse_args()

    if not args.yes:
        print(f"This will permanently delete all data in {settings.sqlalchemy_url}")
        try:
            reply = input("Type 'yes' to continue: ").strip().lower()
        except EOFError:
            reply = ""
        if reply != "yes":
            print("Aborted.")
            sys.exit(1)

    setup_logging()
    database = Database(settings.sqlalchemy_url)
    try:
        inserted = reset(database, sample=not args.no_sample)
    finally:
        database.dispose()
    print(f"Database initialized. Sample jobs inserted: {inserted}")


if __name__ == "__main__":
    main()
