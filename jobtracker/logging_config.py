import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Requests are logged by our own middleware; these only repeat or add noise.
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore")


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        try:
            from jobtracker.config import settings
            level = settings.log_level
        except Exception:
            return logging.INFO
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


def setup_logging(level: int | str | None = None) -> int:
    """Send every logger to stdout at the configured level. Returns the level used.

    At DEBUG the SQL emitted by SQLAlchemy is logged as well.
    """
    resolved = _resolve_level(level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.setLevel(resolved)
    root.handlers.clear()
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    sql_level = logging.INFO if resolved <= logging.DEBUG else logging.WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(sql_level)
    return resolved
