from __future__ import annotations

import mimetypes
from pathlib import Path

from pydantic import BaseModel


class ImportCandidate(BaseModel):
    name: str
    media_type: str = ""
    payload: bytes = b""

    @classmethod
    def from_path(cls, file_path: Path) -> ImportCandidate:
        media_type, _ = mimetypes.guess_type(file_path.name)
        return cls(
            name=file_path.name,
            media_type=media_type or "",
            payload=file_path.read_bytes(),
        )
