import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List

from harmony.core.errors import NoAudioFilesFound, StorageUnavailable, WriteFailed
from harmony.database.database import Database
from harmony.database.settings_store import SettingsStore
from harmony.models.import_candidate import ImportCandidate
from harmony.models.import_report import ImportReport
from harmony.models.track import DEFAULT_ARTIST, CoverArt, TrackRecord
from harmony.models.track_meta_data import TrackMetaData
from harmony.services.ingestion import (
    candidates_from_paths,
    filter_accepted,
    normalize_name,
)

ExtractMetadata = Callable[[bytes], TrackMetaData | None]
RemovalListener = Callable[[TrackRecord], None]


@dataclass(frozen=True)
class LibraryContext:
    settings_store: SettingsStore
    database: Database | None = None
    extract_metadata: ExtractMetadata | None = None
    placeholder_artist: str = DEFAULT_ARTIST


class Library:
    """
    Ordered in-memory track list with a current-index pointer, kept in step
    with the track store.

    Every mutating operation runs under one re-entrant guard so an import
    arriving from the folder watcher cannot interleave with a removal and
    corrupt the current-index bookkeeping.
    """

    def __init__(self, ctx: LibraryContext):
        self.ctx = ctx
        self.tracks: List[TrackRecord] = []
        self.current_index = 0
        self.guard = threading.RLock()
        self.removal_listeners: List[RemovalListener] = []

    @property
    def database(self) -> Database | None:
        return self.ctx.database

    @property
    def is_persistent(self) -> bool:
        return self.ctx.database is not None

    def __len__(self) -> int:
        return len(self.tracks)

    def get(self, index: int) -> TrackRecord | None:
        if 0 <= index < len(self.tracks):
            return self.tracks[index]
        return None

    def current_track(self) -> TrackRecord | None:
        return self.get(self.current_index)

    def names(self) -> List[str]:
        return [track.name for track in self.tracks]

    def add_removal_listener(self, listener: RemovalListener) -> None:
        self.removal_listeners.append(listener)

    def restore(self) -> None:
        with self.guard:
            records: List[TrackRecord] = []
            if self.database is not None:
                try:
                    records = self.database.get_ordered()
                except StorageUnavailable as e:
                    print(f"Unable to read saved tracks, starting empty: {e}")
                    records = []

            self.tracks = records
            self.current_index = self._clamp(self.ctx.settings_store.get_last_index())
            print(f"Restored {len(self.tracks)} tracks, current index {self.current_index}")

    def import_paths(self, paths: Iterable[Path]) -> ImportReport:
        return self.import_candidates(candidates_from_paths(paths))

    def import_candidates(self, candidates: Iterable[ImportCandidate]) -> ImportReport:
        accepted = filter_accepted(candidates)
        if not accepted:
            raise NoAudioFilesFound("No audio files found.")

        report = ImportReport()
        with self.guard:
            for candidate in accepted:
                self._import_one(candidate, report)
        return report

    def _import_one(self, candidate: ImportCandidate, report: ImportReport) -> None:
        name = normalize_name(candidate.name)
        if not name.strip():
            name = candidate.name
        if not name.strip():
            print(f"Skipping import candidate with a blank name: {candidate.name!r}")
            report.unnamed.append(candidate.name)
            return

        if any(track.name == name for track in self.tracks):
            report.duplicates.append(name)
            return

        record = TrackRecord(
            name=name,
            artist=self.ctx.placeholder_artist,
            payload=candidate.payload,
        )
        self._enrich(record, candidate)

        self.tracks.append(record)
        report.added.append(record.name)

        try:
            self._persist_record(record)
        except WriteFailed as e:
            print(f"Track {record.name} kept in memory only: {e}")
            report.failed_writes.append(record.name)

    def _enrich(self, record: TrackRecord, candidate: ImportCandidate) -> None:
        extract_metadata = self.ctx.extract_metadata
        if extract_metadata is None or not candidate.payload:
            return

        try:
            metadata = extract_metadata(candidate.payload)
        except Exception as e:
            print(f"Metadata extraction failed for {candidate.name}, keeping defaults: {e}")
            return

        if metadata is None:
            return
        if metadata.title:
            record.name = metadata.title
        if metadata.artist:
            record.artist = metadata.artist
        if metadata.duration > 0:
            record.duration = metadata.duration
        if metadata.picture_bytes:
            record.cover = CoverArt(
                data=metadata.picture_bytes,
                mime_type=metadata.picture_format or "image/jpeg",
            )

    def remove(self, index: int) -> TrackRecord:
        with self.guard:
            if not 0 <= index < len(self.tracks):
                raise IndexError(f"no track at index {index}")

            record = self.tracks.pop(index)
            was_current = index == self.current_index

            if was_current:
                for listener in self.removal_listeners:
                    listener(record)
            elif index < self.current_index:
                self.current_index -= 1

            self.current_index = self._clamp(self.current_index)

            failure = None
            if self.database is not None:
                try:
                    self.database.remove(record.id)
                    self.database.save_order([track.id for track in self.tracks])
                except WriteFailed as e:
                    failure = e
            try:
                self.ctx.settings_store.set_last_index(self.current_index)
            except WriteFailed as e:
                failure = failure or e

            if failure is not None:
                raise failure
            return record

    def set_current_index(self, index: int) -> None:
        with self.guard:
            if not 0 <= index < len(self.tracks):
                raise IndexError(f"no track at index {index}")
            self.current_index = index
        self.ctx.settings_store.set_last_index(index)

    def _persist_record(self, record: TrackRecord) -> None:
        if self.database is None:
            return
        self.database.put(record)
        self.database.save_order([track.id for track in self.tracks])

    def _clamp(self, index: int) -> int:
        if not self.tracks:
            return 0
        return min(max(index, 0), len(self.tracks) - 1)
