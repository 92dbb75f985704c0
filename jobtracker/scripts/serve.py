"""
Run the API with uvicorn.

Usage:
  python -m jobtracker.scripts.serve [--host HOST] [--port PORT] [--reload]
"""
import argparse

import uvicorn

from jobtracker.config import settings


def main():
    parser = argparse.ArgumentParser(description="Run the Job Tracker API.")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    args = parser.parse_args()

    uvicorn.run(
        "jobtracker.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
