from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

DEFAULT_ARTIST = "Unknown Artist"


class CoverArt(BaseModel):
    data: bytes
    mime_type: str = "image/jpeg"


class TrackRecord(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str
    artist: str = DEFAULT_ARTIST
    payload: bytes | None = None
    duration: float = 0.0
    cover: CoverArt | None = None

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("track name must not be empty")
        return value

    def has_playable_payload(self) -> bool:
        return bool(self.payload)
