import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol

from harmony.core.errors import CorruptedMediaError, WriteFailed
from harmony.models.now_playing import NowPlaying, Progress
from harmony.models.playback import Notice, PlaybackState, RepeatMode
from harmony.models.track import TrackRecord
from harmony.services.library import Library
from harmony.services.navigator import QueueNavigator


class PlaybackHandle:
    """
    Transient, playable copy of one track's payload.

    Backed by a private temporary file; release() deletes it. Only the
    playback controller creates or releases handles.
    """

    def __init__(self, track_id: str, path: Path):
        self.track_id = track_id
        self.path = path
        self.released = False

    @classmethod
    def create(cls, record: TrackRecord, handle_dir: Path) -> "PlaybackHandle":
        if not record.has_playable_payload():
            raise CorruptedMediaError(f"{record.name} has no audio data")

        try:
            handle_dir.mkdir(parents=True, exist_ok=True)
            fd, raw_path = tempfile.mkstemp(prefix="handle-", dir=handle_dir)
            with os.fdopen(fd, "wb") as f:
                f.write(record.payload)
        except OSError as e:
            print(f"Unable to materialise {record.name} for playback: {e}")
            raise CorruptedMediaError(f"{record.name} could not be read") from e

        return cls(track_id=record.id, path=Path(raw_path))

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            print(f"Unable to delete playback handle {self.path}: {e}")


class MediaEngine(Protocol):
    def load(self, handle: PlaybackHandle) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def stop(self) -> None: ...

    def seek(self, seconds: float) -> None: ...

    @property
    def current_time(self) -> float: ...

    @property
    def duration(self) -> float: ...


class NullMediaEngine:
    """Engine that produces no sound; keeps the controller usable headless."""

    def __init__(self):
        self.handle: PlaybackHandle | None = None
        self.position = 0.0

    def load(self, handle: PlaybackHandle) -> None:
        self.handle = handle
        self.position = 0.0

    def play(self) -> None:
        pass

    def pause(self) -> None:
        pass

    def stop(self) -> None:
        self.handle = None
        self.position = 0.0

    def seek(self, seconds: float) -> None:
        self.position = max(seconds, 0.0)

    @property
    def current_time(self) -> float:
        return self.position

    @property
    def duration(self) -> float:
        return 0.0


@dataclass(frozen=True)
class PlaybackContext:
    library: Library
    navigator: QueueNavigator
    engine: MediaEngine
    handle_dir: Path
    restart_threshold_seconds: float = 3.0
    notify: Callable[[Notice], None] | None = None
    on_now_playing: Callable[[NowPlaying | None], None] | None = None


class PlaybackController:
    def __init__(self, ctx: PlaybackContext):
        self.ctx = ctx
        self.state = PlaybackState.STOPPED
        self.now_playing: NowPlaying | None = None
        self.progress = Progress()
        self._handle: PlaybackHandle | None = None
        ctx.library.add_removal_listener(self._on_current_track_removed)

    @property
    def library(self) -> Library:
        return self.ctx.library

    @property
    def navigator(self) -> QueueNavigator:
        return self.ctx.navigator

    @property
    def engine(self) -> MediaEngine:
        return self.ctx.engine

    @property
    def has_loaded_track(self) -> bool:
        return self._handle is not None

    @property
    def loaded_track_id(self) -> str | None:
        return self._handle.track_id if self._handle else None

    def load(self, index: int) -> PlaybackHandle:
        with self.library.guard:
            record = self.library.get(index)
            if record is None:
                raise IndexError(f"no track at index {index}")

            self.state = PlaybackState.LOADING
            # At most one handle alive: the old one goes before the new one exists
            self._release_handle()

            try:
                handle = PlaybackHandle.create(record, self.ctx.handle_dir)
            except CorruptedMediaError:
                self.engine.stop()
                self.state = PlaybackState.STOPPED
                self._set_now_playing(None)
                # The pointer still moves so next/previous step over the bad track
                self._move_pointer(index)
                raise

            self._handle = handle
            self._move_pointer(index)

        self._set_now_playing(NowPlaying.from_track(record))
        self.progress = Progress(duration=record.duration)
        self.engine.load(handle)
        self.state = PlaybackState.STOPPED
        return handle

    def play(self) -> None:
        if self._handle is None:
            return
        self.engine.play()
        self.state = PlaybackState.PLAYING

    def pause(self) -> None:
        if self.state != PlaybackState.PLAYING:
            return
        self.engine.pause()
        self.state = PlaybackState.PAUSED

    def stop(self) -> None:
        self.engine.stop()
        self._release_handle()
        self.state = PlaybackState.STOPPED
        self.progress = Progress()

    def seek(self, seconds: float) -> None:
        if self._handle is None:
            return
        self.engine.seek(seconds)
        self.progress = Progress(position=max(seconds, 0.0), duration=self.progress.duration)

    def play_track(self, index: int) -> bool:
        try:
            self.load(index)
        except CorruptedMediaError:
            self._notify("The file is corrupted. Please add it again.", "error")
            return False
        except IndexError:
            return False
        self.play()
        return True

    def toggle(self) -> None:
        if not len(self.library):
            self._notify("The playlist is empty. Add some music first.", "info")
            return
        if self.state == PlaybackState.PLAYING:
            self.pause()
        elif self._handle is not None:
            self.play()
        else:
            self.play_track(self.library.current_index)

    def next(self) -> int | None:
        return self._step(1)

    def previous(self) -> int | None:
        if not len(self.library):
            return None
        if self._handle is not None and self.engine.current_time > self.ctx.restart_threshold_seconds:
            self.seek(0.0)
            return self.library.current_index
        return self._step(-1)

    def _step(self, direction: int) -> int | None:
        index = self.navigator.next_index(
            self.library.current_index, len(self.library), direction
        )
        if index is None:
            return None
        self.play_track(index)
        return index

    def toggle_shuffle(self) -> bool:
        return self.navigator.toggle_shuffle(len(self.library))

    def cycle_repeat(self) -> RepeatMode:
        return self.navigator.cycle_repeat()

    def on_ended(self) -> int | None:
        if not len(self.library):
            return None
        if self.navigator.repeat_mode == RepeatMode.ONE:
            index = self.library.current_index
            self.play_track(index)
            return index
        # RepeatMode.OFF and RepeatMode.ALL both wrap around
        return self._step(1)

    def on_time_update(self, position: float, duration: float) -> None:
        self.progress = Progress(position=position, duration=duration)

    def show_current(self) -> None:
        record = self.library.current_track()
        self._set_now_playing(NowPlaying.from_track(record) if record else None)

    def shutdown(self) -> None:
        self.stop()

    def _on_current_track_removed(self, record: TrackRecord) -> None:
        if self._handle is not None and self._handle.track_id != record.id:
            return
        self.stop()
        self._set_now_playing(None)

    def _release_handle(self) -> None:
        if self._handle is None:
            return
        self._handle.release()
        self._handle = None

    def _move_pointer(self, index: int) -> None:
        try:
            self.library.set_current_index(index)
        except WriteFailed as e:
            self._notify(f"Could not remember the current track: {e}", "warn")

    def _set_now_playing(self, now_playing: NowPlaying | None) -> None:
        self.now_playing = now_playing
        if self.ctx.on_now_playing is not None:
            self.ctx.on_now_playing(now_playing)

    def _notify(self, message: str, level: str) -> None:
        print(f"[{level}] {message}")
        if self.ctx.notify is not None:
            self.ctx.notify(Notice(message=message, level=level))
