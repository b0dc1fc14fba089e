# santa/services/friends.py
from __future__ import annotations
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from santa.models.friend import Friend
from santa.models.user import User
from santa.services.activity import log_activity, FRIENDSHIP_CREATED

def _sorted_pair(a: int, b: int) -> tuple[int, int]:
    return (a, b) if a < b else (b, a)

def ensure_friendship(
    db: Session,
    inviter_id: int,        # чья ссылка
    invitee_id: int,        # кто по ней вступил
    event_id: Optional[int] = None,
) -> Optional[Friend]:
    """
    Гарантирует дружбу между inviter_id и invitee_id.
    Если её не было - создаёт запись и логирует FRIENDSHIP_CREATED (идемпотентно).
    С самим собой дружбы нет - вернём None.
    """
    if inviter_id == invitee_id:
        return None

    a, b = _sorted_pair(inviter_id, invitee_id)

    link = (
        db.query(Friend)
        .filter(Friend.user_min == a, Friend.user_max == b)
        .first()
    )
    if link:
        return link

    link = Friend(user_min=a, user_max=b, source_event_id=event_id)
    db.add(link)
    db.flush()  # остаёмся в общей транзакции

    log_activity(
        db,
        type=FRIENDSHIP_CREATED,
        actor_id=inviter_id,
        target_user_id=invitee_id,
        event_id=event_id,
        idempotency_key=f"friendship_created:{a}:{b}",
    )

    return link


def are_friends(db: Session, a: int, b: int) -> bool:
    lo, hi = _sorted_pair(a, b)
    return (
        db.query(Friend.id)
        .filter(Friend.user_min == lo, Friend.user_max == hi)
        .first()
        is not None
    )


def list_friends(db: Session, user_id: int) -> List[User]:
    links = (
        db.query(Friend)
        .filter(or_(Friend.user_min == user_id, Friend.user_max == user_id))
        .all()
    )
    ids = [link.other(user_id) for link in links]
    if not ids:
        return []
    return db.query(User).filter(User.id.in_(ids)).order_by(User.name.asc(), User.id.asc()).all()
