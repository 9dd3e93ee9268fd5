import random
from typing import List

from harmony.models.playback import RepeatMode


class QueueNavigator:
    """
    Picks the next or previous library index.

    Knows nothing about elapsed playback time; the backward restart rule is
    applied by the playback controller before it asks for an index.
    """

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()
        self.shuffle = False
        self.permutation: List[int] = []
        self.repeat_mode = RepeatMode.OFF

    def toggle_shuffle(self, length: int) -> bool:
        self.shuffle = not self.shuffle
        if self.shuffle:
            self.rebuild_permutation(length)
        return self.shuffle

    def rebuild_permutation(self, length: int) -> List[int]:
        permutation = list(range(length))
        # random.shuffle is Fisher-Yates: every ordering is equally likely
        self.rng.shuffle(permutation)
        self.permutation = permutation
        return permutation

    def cycle_repeat(self) -> RepeatMode:
        self.repeat_mode = self.repeat_mode.cycle()
        return self.repeat_mode

    def next_index(self, current: int, length: int, direction: int = 1) -> int | None:
        if direction not in (-1, 1):
            raise ValueError(f"direction must be -1 or 1, got {direction}")
        if length <= 0:
            return None

        sequential = (current + direction) % length
        if not self.shuffle:
            return sequential

        if not self.permutation:
            self.rebuild_permutation(length)

        try:
            position = self.permutation.index(current)
        except ValueError:
            # Stale permutation: tracks added after shuffle was enabled
            position = 0

        target = (position + direction) % length
        if target >= len(self.permutation):
            return sequential

        candidate = self.permutation[target]
        if not 0 <= candidate < length:
            return sequential
        return candidate
