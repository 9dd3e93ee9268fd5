from pathlib import Path
from typing import Callable, Iterable, List

from harmony.config import Settings, settings
from harmony.core.errors import NoAudioFilesFound, StorageUnavailable, WriteFailed
from harmony.database.database import Database, DatabaseContext
from harmony.database.settings_store import SettingsStore, SettingsStoreContext
from harmony.models.import_candidate import ImportCandidate
from harmony.models.import_report import ImportReport
from harmony.models.now_playing import NowPlaying
from harmony.models.playback import Notice, RepeatMode
from harmony.services.file_watcher import FileWatcher
from harmony.services.library import Library, LibraryContext
from harmony.services.metadata import get_track_metadata
from harmony.services.navigator import QueueNavigator
from harmony.services.playback import (
    MediaEngine,
    NullMediaEngine,
    PlaybackContext,
    PlaybackController,
)


class HarmonyApp:
    """
    Command surface for a UI adapter. Every command catches the failures its
    I/O can raise and turns them into notices; none of them raise.
    """

    def __init__(
        self,
        app_settings: Settings,
        engine: MediaEngine | None = None,
        on_notice: Callable[[Notice], None] | None = None,
        on_now_playing: Callable[[NowPlaying | None], None] | None = None,
    ):
        self.settings = app_settings
        self.on_notice = on_notice
        self.notices: List[Notice] = []

        self.database = open_database(app_settings, self.notify)
        self.settings_store = SettingsStore(
            SettingsStoreContext(settings_path=app_settings.settings_path)
        )
        self.library = Library(
            LibraryContext(
                settings_store=self.settings_store,
                database=self.database,
                extract_metadata=(
                    get_track_metadata if app_settings.enable_metadata_extraction else None
                ),
                placeholder_artist=app_settings.placeholder_artist,
            )
        )
        self.navigator = QueueNavigator()
        self.controller = PlaybackController(
            PlaybackContext(
                library=self.library,
                navigator=self.navigator,
                engine=engine or NullMediaEngine(),
                handle_dir=app_settings.handle_dir,
                restart_threshold_seconds=app_settings.restart_threshold_seconds,
                notify=self.notify,
                on_now_playing=on_now_playing,
            )
        )
        self.file_watcher: FileWatcher | None = None

    def start(self) -> None:
        self.library.restore()
        self.controller.show_current()
        if self.settings.enable_file_watcher:
            self.file_watcher = FileWatcher(self.settings.import_dir, self._import_watched_file)
            self.file_watcher.start_file_watcher()

    def shutdown(self) -> None:
        if self.file_watcher is not None:
            self.file_watcher.stop_file_watcher()
            self.file_watcher = None
        self.controller.shutdown()

    def notify(self, notice: Notice) -> None:
        self.notices.append(notice)
        if self.on_notice is not None:
            self.on_notice(notice)

    def import_files(self, candidates: Iterable[ImportCandidate]) -> ImportReport | None:
        try:
            report = self.library.import_candidates(candidates)
        except NoAudioFilesFound:
            self.notify(Notice("No audio files found.", "info"))
            return None
        self._report_import(report)
        return report

    def import_paths(self, paths: Iterable[Path]) -> ImportReport | None:
        try:
            report = self.library.import_paths(paths)
        except NoAudioFilesFound:
            self.notify(Notice("No audio files found.", "info"))
            return None
        self._report_import(report)
        return report

    def remove(self, index: int) -> bool:
        try:
            self.library.remove(index)
        except IndexError:
            return False
        except WriteFailed as e:
            self.notify(Notice(f"Track removed from the playlist but not from storage: {e}", "error"))
        return True

    def play_track(self, index: int) -> bool:
        return self.controller.play_track(index)

    def toggle(self) -> None:
        self.controller.toggle()

    def next(self) -> int | None:
        return self.controller.next()

    def previous(self) -> int | None:
        return self.controller.previous()

    def seek(self, seconds: float) -> None:
        self.controller.seek(seconds)

    def toggle_shuffle(self) -> bool:
        return self.controller.toggle_shuffle()

    def cycle_repeat(self) -> RepeatMode:
        return self.controller.cycle_repeat()

    def _import_watched_file(self, path: Path) -> None:
        self.import_paths([path])

    def _report_import(self, report: ImportReport) -> None:
        if report.unnamed:
            self.notify(Notice(f"Skipped {len(report.unnamed)} file(s) without a name.", "warn"))
        for name in report.failed_writes:
            self.notify(Notice(f"Could not save {name}; it will be gone after a restart.", "error"))


def open_database(
    app_settings: Settings, notify: Callable[[Notice], None] | None = None
) -> Database | None:
    database = Database(
        DatabaseContext(
            database_path=app_settings.database_path,
            init_sql_path=app_settings.init_sql_path,
        )
    )
    try:
        database.initialize()
    except StorageUnavailable as e:
        print(f"Track storage unavailable, running in memory only: {e}")
        if notify is not None:
            notify(Notice("Storage is unavailable; your library will not be saved.", "warn"))
        return None
    return database


def create_app(
    app_settings: Settings | None = None,
    engine: MediaEngine | None = None,
    on_notice: Callable[[Notice], None] | None = None,
    on_now_playing: Callable[[NowPlaying | None], None] | None = None,
) -> HarmonyApp:
    app = HarmonyApp(
        app_settings or settings,
        engine=engine,
        on_notice=on_notice,
        on_now_playing=on_now_playing,
    )
    app.start()
    return app
