from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ValidationError

from harmony.core.errors import WriteFailed


class PlayerSettings(BaseModel):
    last_index: int = 0


@dataclass(frozen=True)
class SettingsStoreContext:
    settings_path: Path


class SettingsStore:
    """Small JSON document holding the resume index."""

    def __init__(self, ctx: SettingsStoreContext):
        self.ctx = ctx

    def load(self) -> PlayerSettings:
        path = self.ctx.settings_path
        if not path.exists():
            return PlayerSettings()
        try:
            return PlayerSettings.model_validate_json(path.read_text())
        except (OSError, ValidationError) as e:
            print(f"Unable to read settings at {path}, using defaults: {e}")
            return PlayerSettings()

    def save(self, player_settings: PlayerSettings) -> None:
        path = self.ctx.settings_path
        temp_path = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(player_settings.model_dump_json())
            temp_path.replace(path)
        except OSError as e:
            print(f"Unable to write settings to {path}: {e}")
            raise WriteFailed(f"could not save settings to {path}") from e

    def get_last_index(self) -> int:
        return self.load().last_index

    def set_last_index(self, index: int) -> None:
        player_settings = self.load()
        player_settings.last_index = index
        self.save(player_settings)
