import re
from pathlib import Path
from typing import Iterable, List

from harmony.core.media_types import AUDIO_EXTENSIONS, AUDIO_MEDIA_TYPE_PREFIX
from harmony.models.import_candidate import ImportCandidate

_EXTENSION_PATTERN = re.compile(r"\.[^/.]+$")


def is_music_file(file_path: Path) -> bool:
    return file_path.suffix.lower() in AUDIO_EXTENSIONS


def is_accepted(candidate: ImportCandidate) -> bool:
    if candidate.media_type.lower().startswith(AUDIO_MEDIA_TYPE_PREFIX):
        return True
    return is_music_file(Path(candidate.name))


def filter_accepted(candidates: Iterable[ImportCandidate]) -> List[ImportCandidate]:
    return [candidate for candidate in candidates if is_accepted(candidate)]


def normalize_name(file_name: str) -> str:
    # Only the last extension is stripped: "live.at.home.mp3" -> "live.at.home"
    return _EXTENSION_PATTERN.sub("", file_name)


def candidates_from_paths(paths: Iterable[Path]) -> List[ImportCandidate]:
    candidates: List[ImportCandidate] = []
    for path in paths:
        if not path.is_file():
            continue
        try:
            candidates.append(ImportCandidate.from_path(path))
        except OSError as e:
            print(f"Unable to read {path} for import: {e}")
    return candidates
