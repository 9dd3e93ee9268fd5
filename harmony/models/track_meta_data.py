from pydantic import BaseModel


class TrackMetaData(BaseModel):
    title: str | None = None
    artist: str | None = None

    picture_bytes: bytes | None = None
    picture_format: str | None = None

    duration: float = 0.0

    def is_empty(self) -> bool:
        return (
            not self.title
            and not self.artist
            and self.picture_bytes is None
            and self.duration == 0.0
        )
