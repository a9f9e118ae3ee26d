"""Global configuration — loaded from environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings


class StoreSettings(BaseSettings):
    data_dir: Path = Path.home() / ".local" / "share" / "agentstore"
    db_filename: str = "data.sqlite3"
    busy_timeout: float = 5.0  # seconds to wait on a locked file
    enforce_file_mode: bool = True  # chmod 0600 on open (POSIX only)
    log_level: str = "INFO"

    model_config = {"env_prefix": "AGENTSTORE_"}

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_filename


settings = StoreSettings()
