from typing import FrozenSet

AUDIO_EXTENSIONS: FrozenSet[str] = frozenset({
    ".mp3",
    ".wav",
    ".ogg",
    ".m4a",
    ".flac",
})

AUDIO_MEDIA_TYPE_PREFIX = "audio/"

PICTURE_MIME_TYPES: dict[str, str] = {
    "mjpeg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "webp": "image/webp",
}
