# santa/services/gamification.py
# -----------------------------------------------------------------------------
# Очки, достижения, статистика и лидерборд.
# Всё пишется в текущей транзакции вызывающего сервиса, commit не делаем.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import Dict, List

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, aliased

from santa.models.user import User
from santa.models.participant import Participant
from santa.models.assignment import Assignment, GiftStatus
from santa.models.achievement import UserAchievement
from santa.services.activity import log_activity, ACHIEVEMENT_UNLOCKED

log = logging.getLogger(__name__)

POINTS_EVENT_CREATED = 10
POINTS_EVENT_JOINED = 5
POINTS_NAMES_DRAWN = 5
POINTS_GIFT_DELIVERED = 10
POINTS_GIFT_RESERVED = 3

ACTIVE_LEVEL_POINTS = 500

KIND_EVENTS = "events"
KIND_GIFTS = "gifts"

# порог -> код достижения
ACHIEVEMENTS: Dict[str, Dict[int, str]] = {
    KIND_EVENTS: {1: "first_event", 5: "five_events", 10: "ten_events"},
    KIND_GIFTS: {1: "first_gift", 5: "five_gifts", 10: "ten_gifts"},
}

LEADERBOARD_SORTS = ("points", "events", "gifts_given", "gifts_received")


def award_points(db: Session, user_id: int, amount: int) -> None:
    """Атомарный инкремент (без read-modify-write)."""
    db.execute(
        update(User)
        .where(User.id == user_id)
        .values(points=User.points + amount)
        .execution_options(synchronize_session=False)
    )


def level_for(points: int) -> str:
    return "Active" if (points or 0) >= ACTIVE_LEVEL_POINTS else "Novice"


def unlock_achievements(db: Session, user_id: int, kind: str, count: int) -> List[str]:
    """
    Открывает достижения, порог которых равен count. Уже открытые пропускаем.
    Возвращает коды, открытые именно сейчас.
    """
    code = ACHIEVEMENTS.get(kind, {}).get(count)
    if not code:
        return []

    exists = (
        db.query(UserAchievement.id)
        .filter(UserAchievement.user_id == user_id, UserAchievement.achievement_type == code)
        .first()
    )
    if exists:
        return []

    db.add(UserAchievement(user_id=user_id, achievement_type=code))
    db.flush()
    log_activity(
        db,
        type=ACHIEVEMENT_UNLOCKED,
        actor_id=user_id,
        data={"achievement": code},
        idempotency_key=f"achievement:{user_id}:{code}",
    )
    log.info("user %s unlocked achievement %s", user_id, code)
    return [code]


# =========================
# СЧЁТЧИКИ
# =========================

def count_events(db: Session, user_id: int) -> int:
    return db.scalar(
        select(func.count()).select_from(Participant).where(Participant.user_id == user_id)
    ) or 0


def count_gifts_given(db: Session, user_id: int) -> int:
    return db.scalar(
        select(func.count())
        .select_from(Assignment)
        .join(Participant, Participant.id == Assignment.giver_id)
        .where(Participant.user_id == user_id, Assignment.gift_status == GiftStatus.delivered)
    ) or 0


def count_gifts_received(db: Session, user_id: int) -> int:
    return db.scalar(
        select(func.count())
        .select_from(Assignment)
        .join(Participant, Participant.id == Assignment.receiver_id)
        .where(Participant.user_id == user_id, Assignment.gift_status == GiftStatus.delivered)
    ) or 0


def on_event_joined(db: Session, user_id: int, points: int) -> List[str]:
    """Очки + проверка достижений за участие. Вызывать после flush участника."""
    award_points(db, user_id, points)
    return unlock_achievements(db, user_id, KIND_EVENTS, count_events(db, user_id))


def on_gift_delivered(db: Session, user_id: int) -> List[str]:
    award_points(db, user_id, POINTS_GIFT_DELIVERED)
    return unlock_achievements(db, user_id, KIND_GIFTS, count_gifts_given(db, user_id))


# =========================
# ЧТЕНИЕ
# =========================

def get_user_statistics(db: Session, user: User) -> dict:
    points = user.points or 0
    return {
        "user_id": user.id,
        "events_count": count_events(db, user.id),
        "gifts_given": count_gifts_given(db, user.id),
        "gifts_received": count_gifts_received(db, user.id),
        "points": points,
        "level": level_for(points),
    }


def list_achievements(db: Session, user_id: int) -> List[UserAchievement]:
    return (
        db.query(UserAchievement)
        .filter(UserAchievement.user_id == user_id)
        .order_by(UserAchievement.unlocked_at.asc(), UserAchievement.id.asc())
        .all()
    )


def get_leaderboard(db: Session, *, limit: int = 10, sort_by: str = "points") -> List[dict]:
    """
    Топ пользователей. sort_by: points | events | gifts_given | gifts_received.
    Счётчики собираем подзапросами, чтобы один запрос отдавал всё.
    """
    if sort_by not in LEADERBOARD_SORTS:
        raise ValueError("bad_sort")

    giver = aliased(Participant)
    receiver = aliased(Participant)

    events_sq = (
        select(func.count())
        .select_from(Participant)
        .where(Participant.user_id == User.id)
        .scalar_subquery()
    )
    given_sq = (
        select(func.count())
        .select_from(Assignment)
        .join(giver, giver.id == Assignment.giver_id)
        .where(giver.user_id == User.id, Assignment.gift_status == GiftStatus.delivered)
        .scalar_subquery()
    )
    received_sq = (
        select(func.count())
        .select_from(Assignment)
        .join(receiver, receiver.id == Assignment.receiver_id)
        .where(receiver.user_id == User.id, Assignment.gift_status == GiftStatus.delivered)
        .scalar_subquery()
    )

    columns = {
        "points": User.points,
        "events": events_sq,
        "gifts_given": given_sq,
        "gifts_received": received_sq,
    }
    stmt = (
        select(User, events_sq, given_sq, received_sq)
        .order_by(columns[sort_by].desc(), User.id.asc())
        .limit(limit)
    )

    out = []
    for rank, (user, events, given, received) in enumerate(db.execute(stmt).all(), start=1):
        out.append({
            "rank": rank,
            "user_id": user.id,
            "name": user.name,
            "photo_url": user.photo_url,
            "points": user.points or 0,
            "events_count": events or 0,
            "gifts_given": given or 0,
            "gifts_received": received or 0,
            "level": level_for(user.points or 0),
        })
    return out
