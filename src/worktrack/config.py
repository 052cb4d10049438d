"""Configuration management for worktrack."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# worktrack data directory
WORKTRACK_DIR = Path.home() / ".worktrack"
WORKTRACK_ENV_FILE = WORKTRACK_DIR / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="WORKTRACK_",
        # Later files override earlier ones:
        # 1. ~/.worktrack/.env (user config)
        # 2. .env in current directory (project-specific override)
        env_file=(str(WORKTRACK_ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    data_dir: Path = Field(
        default=WORKTRACK_DIR,
        description="Directory holding the records file and lock file",
    )
    records_path: Path | None = Field(
        default=None,
        description="Path of the records file (default: <data_dir>/records.json)",
    )
    lockfile_path: Path | None = Field(
        default=None,
        description="Path of the lock file (default: <data_dir>/track.lock)",
    )
    report_window_hours: int = Field(
        default=24,
        ge=1,
        description="Window used by 'track report' when no timespan is given",
    )

    def get_records_path(self) -> Path:
        """Get the records file path, using default if not set."""
        if self.records_path:
            return self.records_path.expanduser()
        return self.data_dir.expanduser() / "records.json"

    def get_lockfile_path(self) -> Path:
        """Get the lock file path, using default if not set."""
        if self.lockfile_path:
            return self.lockfile_path.expanduser()
        return self.data_dir.expanduser() / "track.lock"


# Global settings instance
settings = Settings()
