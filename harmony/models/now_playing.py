from __future__ import annotations

from pydantic import BaseModel

from .track import CoverArt, TrackRecord


class NowPlaying(BaseModel):
    track_id: str
    title: str
    artist: str
    cover: CoverArt | None = None

    @classmethod
    def from_track(cls, track: TrackRecord) -> NowPlaying:
        return cls(
            track_id=track.id,
            title=track.name,
            artist=track.artist,
            cover=track.cover,
        )


class Progress(BaseModel):
    position: float = 0.0
    duration: float = 0.0

    @property
    def current_time(self) -> str:
        return format_time(self.position)

    @property
    def total_duration(self) -> str:
        return format_time(self.duration)

    @property
    def fraction(self) -> float:
        if self.duration <= 0:
            return 0.0
        return min(max(self.position / self.duration, 0.0), 1.0)


def format_time(seconds: float | None) -> str:
    if seconds is None or seconds != seconds or seconds < 0:
        return "0:00"
    return f"{int(seconds // 60)}:{int(seconds % 60):02d}"
