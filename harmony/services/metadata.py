import json
import subprocess

from harmony.core.media_types import PICTURE_MIME_TYPES
from harmony.models.track_meta_data import TrackMetaData

# TODO: Handle non printable characters in tag values (stray \r\n from some taggers)


def get_track_metadata(payload: bytes) -> TrackMetaData | None:
    json_data = ffprobe_for_metadata(payload)
    if json_data is None:
        return None
    metadata = build_track_metadata(json_data)
    if metadata is None:
        return None

    if metadata.picture_format is not None:
        metadata.picture_bytes = ffmpeg_extract_picture(payload)
        if metadata.picture_bytes is None:
            metadata.picture_format = None

    if metadata.is_empty():
        return None
    return metadata


def ffprobe_for_metadata(payload: bytes) -> dict | None:
    try:
        completed_process = subprocess.run(
            [
                "ffprobe",
                "-v", "error",
                "-hide_banner",
                "-show_streams",
                "-show_format",
                "-of", "json",
                "-i", "pipe:0",
            ],
            input=payload,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            check=False,
        )
    except FileNotFoundError:
        print("ffprobe not found")
        return None
    except OSError:
        return None

    if completed_process.returncode != 0:
        return None

    try:
        output = json.loads(completed_process.stdout.decode("utf-8", "replace") or "{}")
    except json.JSONDecodeError:
        return None

    if not isinstance(output, dict):
        return None
    return output


def ffmpeg_extract_picture(payload: bytes) -> bytes | None:
    try:
        completed_process = subprocess.run(
            [
                "ffmpeg",
                "-v", "error",
                "-hide_banner",
                "-i", "pipe:0",
                "-an",
                "-map", "0:v:0",
                "-c:v", "copy",
                "-frames:v", "1",
                "-f", "image2pipe",
                "pipe:1",
            ],
            input=payload,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            check=False,
        )
    except FileNotFoundError:
        print("ffmpeg not found")
        return None
    except OSError:
        return None

    if completed_process.returncode != 0 or not completed_process.stdout:
        return None
    return completed_process.stdout


def build_track_metadata(json_data: dict) -> TrackMetaData | None:
    if json_data is None:
        return None
    format_section = json_data.get("format") or {}
    format_tags = _lower_keys(format_section.get("tags") or {})
    streams = json_data.get("streams") or []
    if not isinstance(streams, list):
        return None

    audio_stream = None
    picture_codec = None

    for stream in streams:
        if not isinstance(stream, dict):
            continue
        if stream.get("codec_type") == "audio" and audio_stream is None:
            audio_stream = stream
            continue

        if (stream.get("disposition") or {}).get("attached_pic") == 1:
            picture_codec = stream.get("codec_name")
            continue

    if audio_stream is None:
        return None

    # Some containers keep tags on the stream rather than the format
    tags = {**_lower_keys(audio_stream.get("tags") or {}), **format_tags}

    metadata = TrackMetaData()
    metadata.title = _clean_tag(tags.get("title"))
    metadata.artist = _clean_tag(tags.get("artist"))
    metadata.duration = _parse_duration(
        audio_stream.get("duration", format_section.get("duration"))
    )

    if picture_codec is not None:
        metadata.picture_format = PICTURE_MIME_TYPES.get(str(picture_codec), "image/jpeg")

    return metadata


def _lower_keys(tags: dict) -> dict:
    return {str(key).lower(): value for key, value in tags.items()}


def _clean_tag(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_duration(value: object) -> float:
    """
    ffprobe reports duration as a string ("181.0") and omits it for some
    piped inputs.
    """
    if value is None:
        return 0.0
    try:
        duration = float(value)
    except (ValueError, TypeError):
        return 0.0
    if duration != duration or duration < 0:
        return 0.0
    return duration
