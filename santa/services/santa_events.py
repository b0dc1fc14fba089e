# santa/services/santa_events.py
# -----------------------------------------------------------------------------
# Жизненный цикл события: создание, правка (только до жеребьёвки), удаление
# каскадом, списки и превью по инвайт-коду.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from santa.errors import InvalidInviteCode
from santa.models.santa_event import SantaEvent
from santa.models.participant import Participant
from santa.models.user import User
from santa.services.activity import log_activity, EVENT_CREATED, EVENT_UPDATED, EVENT_DELETED
from santa.services import gamification
from santa.services.invite_code import generate_invite_code
from santa.services.participants import add_creator_participant, list_participants
from santa.utils.santa_events import (
    get_event_or_404,
    require_creator,
    ensure_editable,
    require_participant,
    validate_budget,
    clean_name,
)

log = logging.getLogger(__name__)

# Поля, которые можно править до жеребьёвки
EDITABLE_FIELDS = ("name", "min_budget", "max_budget", "event_date")

_INVITE_CODE_ATTEMPTS = 5


def _unique_invite_code(db: Session) -> str:
    for _ in range(_INVITE_CODE_ATTEMPTS):
        code = generate_invite_code()
        taken = db.scalar(select(SantaEvent.id).where(SantaEvent.invite_code == code))
        if taken is None:
            return code
    raise RuntimeError("could not allocate a unique invite code")


def create_event(
    db: Session,
    creator: User,
    *,
    name: str,
    min_budget: Optional[int] = None,
    max_budget: Optional[int] = None,
    event_date: Optional[datetime] = None,
) -> SantaEvent:
    """
    Создаёт событие со свежим инвайт-кодом. Организатор сразу становится
    первым участником.
    """
    validate_budget(min_budget, max_budget)
    name = clean_name(name)

    event = SantaEvent(
        name=name,
        creator_id=creator.id,
        min_budget=min_budget,
        max_budget=max_budget,
        event_date=event_date,
        invite_code=_unique_invite_code(db),
    )
    db.add(event)
    db.flush()

    add_creator_participant(db, event, creator)
    log_activity(db, type=EVENT_CREATED, actor_id=creator.id, event_id=event.id, data={"name": event.name})
    gamification.on_event_joined(db, creator.id, gamification.POINTS_EVENT_CREATED)

    db.commit()
    db.refresh(event)
    log.info("event %s created by user %s", event.id, creator.id)
    return event


def update_event(db: Session, event_id: int, actor_id: int, changes: Dict[str, Any]) -> SantaEvent:
    """
    changes - только явно переданные поля (exclude_unset). Бюджет проверяем
    по итоговым значениям, с учётом того, что уже лежит в событии.
    """
    event = get_event_or_404(db, event_id)
    require_creator(event, actor_id)
    ensure_editable(event)

    fields = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}
    new_min = fields.get("min_budget", event.min_budget)
    new_max = fields.get("max_budget", event.max_budget)
    validate_budget(new_min, new_max)
    if "name" in fields:
        fields["name"] = clean_name(fields["name"])

    before = {k: getattr(event, k) for k in fields}
    for k, v in fields.items():
        setattr(event, k, v)

    changed = [k for k in fields if before[k] != getattr(event, k)]
    if changed:
        log_activity(
            db,
            type=EVENT_UPDATED,
            actor_id=actor_id,
            event_id=event.id,
            data={"changed": sorted(changed)},
        )
    db.commit()
    db.refresh(event)
    return event


def delete_event(db: Session, event_id: int, actor_id: int) -> None:
    """Удаление доступно организатору в любом статусе; участники и пары удаляются каскадом."""
    event = get_event_or_404(db, event_id)
    require_creator(event, actor_id)

    log_activity(db, type=EVENT_DELETED, actor_id=actor_id, event_id=event.id, data={"name": event.name})
    db.delete(event)
    db.commit()
    log.info("event %s deleted by user %s", event_id, actor_id)


def regenerate_invite_code(db: Session, event_id: int, actor_id: int) -> SantaEvent:
    event = get_event_or_404(db, event_id)
    require_creator(event, actor_id)
    ensure_editable(event)

    event.invite_code = _unique_invite_code(db)
    db.commit()
    db.refresh(event)
    return event


# =========================
# ЧТЕНИЕ
# =========================

def list_my_events(db: Session, user_id: int) -> List[SantaEvent]:
    """События, где пользователь участник (включая созданные им)."""
    return list(
        db.scalars(
            select(SantaEvent)
            .join(Participant, Participant.event_id == SantaEvent.id)
            .where(Participant.user_id == user_id)
            .order_by(SantaEvent.created_at.desc(), SantaEvent.id.desc())
        ).all()
    )


def get_event_details(db: Session, event_id: int, user_id: int) -> Dict[str, Any]:
    event = get_event_or_404(db, event_id)
    require_participant(db, event_id, user_id)
    return {"event": event, "participants": list_participants(db, event_id)}


def count_participants(db: Session, event_id: int) -> int:
    return db.scalar(
        select(func.count()).select_from(Participant).where(Participant.event_id == event_id)
    ) or 0


def get_event_by_invite_code(db: Session, invite_code: str) -> Dict[str, Any]:
    """Публичное превью по ссылке: без списка участников, только их число."""
    event = db.scalar(select(SantaEvent).where(SantaEvent.invite_code == invite_code))
    if event is None:
        raise InvalidInviteCode()
    return {"event": event, "participant_count": count_participants(db, event.id)}
