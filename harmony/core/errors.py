class HarmonyError(Exception):
    """Base class for every failure the library reports."""


class StorageUnavailable(HarmonyError):
    """The track store could not be opened or created."""


class WriteFailed(HarmonyError):
    """A put, remove or order update did not commit."""


class CorruptedMediaError(HarmonyError):
    """A track payload is missing or cannot be materialised for playback."""


class NoAudioFilesFound(HarmonyError):
    """An import batch contained no accepted audio files."""
