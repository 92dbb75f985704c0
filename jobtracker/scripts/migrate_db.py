"""
Bring the jobs store up to the current schema version.

Usage:
  python -m jobtracker.scripts.migrate_db
"""
import sys

from jobtracker.config import settings
from jobtracker.core.errors import MigrationError
from jobtracker.database import Database
from jobtracker.logging_config import setup_logging
from jobtracker.migrations import CURRENT_SCHEMA_VERSION


def main() -> int:
    setup_logging()
    database = Database(settings.sqlalchemy_url)
    try:
        version = database.init()
    except MigrationError as e:
        print(f"Migration failed: {e}")
        return 1
    finally:
        database.dispose()
    print(f"Schema at version {version} (current {CURRENT_SCHEMA_VERSION}).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
