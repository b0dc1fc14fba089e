import itertools
import random

import pytest

from santa.errors import InsufficientParticipants
from santa.services.assignment_generator import (
    cycle_pairs,
    generate_assignments,
    new_rng,
    shuffle_in_place,
)


class _LowestRng:
    """randint всегда отдаёт нижнюю границу: шаги Фишера–Йетса предсказуемы."""

    def randint(self, lo, hi):
        return lo


def _follow_cycle(pairs):
    mapping = dict(pairs)
    start = pairs[0][0]
    seen = [start]
    cur = mapping[start]
    while cur != start:
        seen.append(cur)
        cur = mapping[cur]
    return seen


@pytest.mark.parametrize("n", [2, 3, 4, 5, 7, 10, 31, 100])
def test_every_participant_gives_and_receives_exactly_once(n):
    ids = list(range(100, 100 + n))
    pairs = generate_assignments(ids, rng=random.Random(n))

    givers = [g for g, _ in pairs]
    receivers = [r for _, r in pairs]
    assert len(pairs) == n
    assert sorted(givers) == ids
    assert sorted(receivers) == ids
    assert all(g != r for g, r in pairs)


@pytest.mark.parametrize("seed", range(20))
def test_result_is_a_single_cycle(seed):
    ids = list(range(1, 13))
    pairs = generate_assignments(ids, rng=random.Random(seed))
    assert sorted(_follow_cycle(pairs)) == ids


def test_two_participants_swap():
    pairs = generate_assignments([7, 9])
    assert dict(pairs) == {7: 9, 9: 7}


def test_three_participants_reach_both_derangements():
    seen = set()
    for seed in range(200):
        pairs = generate_assignments([1, 2, 3], rng=random.Random(seed))
        seen.add(tuple(sorted(pairs)))
    assert seen == {
        ((1, 2), (2, 3), (3, 1)),
        ((1, 3), (2, 1), (3, 2)),
    }


def test_input_order_is_not_mutated():
    ids = [5, 4, 3, 2, 1]
    generate_assignments(ids, rng=random.Random(1))
    assert ids == [5, 4, 3, 2, 1]


@pytest.mark.parametrize("ids", [[], [42]])
def test_fewer_than_two_participants_rejected(ids):
    with pytest.raises(InsufficientParticipants):
        generate_assignments(ids)


def test_duplicate_ids_rejected():
    with pytest.raises(ValueError):
        generate_assignments([1, 2, 2])


def test_shuffle_trace_with_fixed_choices():
    items = ["A", "B", "C"]
    shuffle_in_place(items, _LowestRng())
    # i=2 -> swap(2, 0): C B A ; i=1 -> swap(1, 0): B C A
    assert items == ["B", "C", "A"]
    assert cycle_pairs(items) == [("B", "C"), ("C", "A"), ("A", "B")]


def test_cycle_pairs_wraps_last_to_first():
    assert cycle_pairs([1, 2]) == [(1, 2), (2, 1)]
    assert cycle_pairs([3, 1, 2, 4]) == [(3, 1), (1, 2), (2, 4), (4, 3)]


def test_new_rng_is_independent_per_call():
    a, b = new_rng(), new_rng()
    assert a is not b
    assert [a.random() for _ in range(4)] != [b.random() for _ in range(4)]


@pytest.mark.parametrize("order", list(itertools.permutations("ABC")))
def test_every_shuffle_of_three_yields_a_derangement(order):
    pairs = cycle_pairs(order)
    assert all(giver != receiver for giver, receiver in pairs)
    assert sorted(g for g, _ in pairs) == ["A", "B", "C"]
    assert sorted(r for _, r in pairs) == ["A", "B", "C"]
    assert sorted(_follow_cycle(pairs)) == ["A", "B", "C"]
