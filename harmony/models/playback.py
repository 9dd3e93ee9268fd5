from dataclasses import dataclass
from enum import Enum


class RepeatMode(Enum):
    OFF = "off"
    ALL = "all"
    ONE = "one"

    def cycle(self) -> "RepeatMode":
        order = [RepeatMode.OFF, RepeatMode.ALL, RepeatMode.ONE]
        return order[(order.index(self) + 1) % len(order)]


class PlaybackState(Enum):
    STOPPED = "stopped"
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass(frozen=True)
class Notice:
    message: str
    level: str = "info"  # info/warn/error
