from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="HARMONY_", env_file=".env", env_file_encoding="utf-8"
    )

    # Project directories
    data_dir: Path = Path("./data")
    import_dir: Path = Path("./import")

    database_name: str = "harmony.db"
    settings_name: str = "settings.json"
    init_sql_path: Path = Path(__file__).parent / "database" / "init.sql"

    # Playback
    restart_threshold_seconds: float = 3.0
    placeholder_artist: str = "Unknown Artist"

    # Feature flags
    enable_file_watcher: bool = False
    enable_metadata_extraction: bool = True

    @property
    def database_path(self) -> Path:
        return self.data_dir / self.database_name

    @property
    def settings_path(self) -> Path:
        return self.data_dir / self.settings_name

    @property
    def handle_dir(self) -> Path:
        return self.data_dir / "handles"


settings = Settings()
