# santa/services/assignment_generator.py
# -----------------------------------------------------------------------------
# ГЕНЕРАТОР ПАР "дарит → получает"
# -----------------------------------------------------------------------------
# Чистая функция без БД:
#   1) тасуем участников Фишером–Йетсом;
#   2) каждый дарит следующему по кругу: shuffled[i] -> shuffled[(i+1) % N].
# Получается один цикл длины N, поэтому при N >= 2 никто не дарит сам себе,
# и повторные попытки не нужны.

from __future__ import annotations

import os
import random
from typing import List, MutableSequence, Optional, Sequence, Tuple, TypeVar

from santa.errors import InsufficientParticipants

T = TypeVar("T")

MIN_PARTICIPANTS = 2


def new_rng() -> random.Random:
    """Свежий ГПСЧ на каждую жеребьёвку, сид из os.urandom."""
    return random.Random(int.from_bytes(os.urandom(16), "big"))


def shuffle_in_place(items: MutableSequence[T], rng: random.Random) -> None:
    """Фишер–Йетс: i от последнего индекса до 1, j равномерно из [0, i]."""
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]


def cycle_pairs(order: Sequence[T]) -> List[Tuple[T, T]]:
    """
    Пары (giver, receiver) для уже перетасованного порядка:
    каждый дарит следующему, последний - первому.
    """
    n = len(order)
    return [(order[i], order[(i + 1) % n]) for i in range(n)]


def generate_assignments(
    participant_ids: Sequence[int],
    rng: Optional[random.Random] = None,
) -> List[Tuple[int, int]]:
    """
    Возвращает N пар (giver_id, receiver_id): каждый участник ровно один раз
    дарит и ровно один раз получает, giver != receiver.

    Исключения:
      InsufficientParticipants - если участников меньше двух;
      ValueError - если в списке есть дубли.
    """
    ids = list(participant_ids)
    if len(ids) < MIN_PARTICIPANTS:
        raise InsufficientParticipants()
    if len(set(ids)) != len(ids):
        raise ValueError("duplicate_participant_ids")

    shuffle_in_place(ids, rng or new_rng())
    return cycle_pairs(ids)
