import random
from collections import Counter

import pytest

from harmony.models.playback import RepeatMode
from harmony.services.navigator import QueueNavigator


def shuffled_navigator(length: int, seed: int = 7) -> QueueNavigator:
    navigator = QueueNavigator(rng=random.Random(seed))
    navigator.toggle_shuffle(length)
    return navigator


class TestSequentialNext:
    def test_next_index__forward__moves_by_one(self):
        assert QueueNavigator().next_index(0, 3, 1) == 1

    def test_next_index__last_index_forward__wraps_to_zero(self):
        assert QueueNavigator().next_index(2, 3, 1) == 0

    def test_next_index__first_index_backward__wraps_to_last(self):
        assert QueueNavigator().next_index(0, 3, -1) == 2

    def test_next_index__empty_library__returns_none(self):
        assert QueueNavigator().next_index(0, 0, 1) is None

    def test_next_index__single_track__stays_on_it(self):
        navigator = QueueNavigator()
        assert navigator.next_index(0, 1, 1) == 0
        assert navigator.next_index(0, 1, -1) == 0

    @pytest.mark.parametrize("length", [2, 3, 10])
    def test_next_index__forward_then_backward__identity(self, length: int):
        navigator = QueueNavigator()
        for current in range(length):
            back = navigator.next_index(current, length, -1)
            assert navigator.next_index(back, length, 1) == current

    def test_next_index__bad_direction__raises(self):
        with pytest.raises(ValueError):
            QueueNavigator().next_index(0, 3, 2)

    def test_example__prev_then_two_nexts__walks_b_c_a(self):
        navigator = QueueNavigator()
        current = 2
        current = navigator.next_index(current, 3, -1)
        assert current == 1
        current = navigator.next_index(current, 3, 1)
        assert current == 2
        current = navigator.next_index(current, 3, 1)
        assert current == 0


class TestToggleShuffle:
    def test_toggle_shuffle__enabling__builds_bijection(self):
        navigator = shuffled_navigator(25)

        assert navigator.shuffle is True
        assert sorted(navigator.permutation) == list(range(25))

    def test_toggle_shuffle__disabling__returns_to_sequential(self):
        navigator = shuffled_navigator(5)
        assert navigator.toggle_shuffle(5) is False

        assert navigator.next_index(1, 5, 1) == 2

    def test_toggle_shuffle__re_enabling__regenerates_permutation(self):
        navigator = shuffled_navigator(4)
        navigator.toggle_shuffle(4)
        navigator.toggle_shuffle(6)

        assert sorted(navigator.permutation) == list(range(6))

    def test_rebuild_permutation__many_runs__every_position_reached(self):
        navigator = QueueNavigator(rng=random.Random(1234))
        first_positions = Counter()
        for _ in range(3000):
            first_positions[navigator.rebuild_permutation(3)[0]] += 1

        # Uniform shuffle puts each index first about a third of the time
        for index in range(3):
            assert 850 < first_positions[index] < 1150


class TestShuffledNext:
    def test_next_index__shuffled__follows_permutation(self):
        navigator = shuffled_navigator(5)
        permutation = navigator.permutation

        current = permutation[0]
        visited = [current]
        for _ in range(4):
            current = navigator.next_index(current, 5, 1)
            visited.append(current)

        assert visited == permutation

    def test_next_index__shuffled_last_position__wraps_to_first(self):
        navigator = shuffled_navigator(5)
        permutation = navigator.permutation

        assert navigator.next_index(permutation[-1], 5, 1) == permutation[0]
        assert navigator.next_index(permutation[0], 5, -1) == permutation[-1]

    def test_next_index__current_missing_from_permutation__starts_at_position_zero(self):
        navigator = QueueNavigator()
        navigator.shuffle = True
        navigator.permutation = [2, 0, 1]

        # Track 3 was added after shuffle was enabled
        assert navigator.next_index(3, 4, 1) == 0

    def test_next_index__stale_permutation_points_past_end__falls_back_to_sequential(self):
        navigator = QueueNavigator()
        navigator.shuffle = True
        navigator.permutation = [0, 3, 1, 2]

        # Library shrank to three tracks; position 1 holds the removed index 3
        assert navigator.next_index(0, 3, 1) == 1

    def test_next_index__stale_permutation_too_short__falls_back_to_sequential(self):
        navigator = QueueNavigator()
        navigator.shuffle = True
        navigator.permutation = [1, 0]

        assert navigator.next_index(0, 4, 1) == 1

    def test_next_index__shuffle_on_without_permutation__builds_one(self):
        navigator = QueueNavigator(rng=random.Random(3))
        navigator.shuffle = True

        result = navigator.next_index(0, 4, 1)

        assert sorted(navigator.permutation) == [0, 1, 2, 3]
        assert result in range(4)


class TestCycleRepeat:
    def test_cycle_repeat__cycles_off_all_one_off(self):
        navigator = QueueNavigator()
        assert navigator.repeat_mode == RepeatMode.OFF
        assert navigator.cycle_repeat() == RepeatMode.ALL
        assert navigator.cycle_repeat() == RepeatMode.ONE
        assert navigator.cycle_repeat() == RepeatMode.OFF
