from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_env: str = "development"  # development, staging, production
    app_version: str = "1.0.0"

    host: str = "0.0.0.0"
    port: int = 8070

    # Store location. database_url wins when set; otherwise the SQLite file
    # lives at <data_dir>/<database_file>.
    data_dir: str = "data"
    database_file: str = "job_tracker.db"
    database_url: str | None = None

    # CORS origins as comma-separated values, "*" for any
    cors_allow_origins: str = "*"

    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR

    # Applied to every /api path, per client IP
    rate_limit_window_ms: int = 15 * 60 * 1000
    rate_limit_max_requests: int = 100

    # Base URL used by jobtracker.client
    api_url: str = "http://localhost:8070/api"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def is_production(self) -> bool:
        return (self.app_env or "development").lower() in {"production", "prod"}

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"sqlite:///{Path(self.data_dir) / self.database_file}"


settings = Settings()
