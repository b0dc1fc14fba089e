# santa/services/participants.py
# -----------------------------------------------------------------------------
# Реестр участников события.
#   • list_participants - порядок вставки (id ASC), стабилен между вызовами;
#   • добавить заглушку / вступить по ссылке / удалить - только пока status = created.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from santa.errors import AlreadyParticipant, NotAuthorized, ParticipantNotFound, InvalidInviteCode
from santa.models.santa_event import SantaEvent
from santa.models.participant import Participant
from santa.models.user import User
from santa.services.activity import (
    log_activity,
    PARTICIPANT_ADDED,
    PARTICIPANT_JOINED,
    PARTICIPANT_REMOVED,
)
from santa.services import gamification
from santa.services.friends import ensure_friendship
from santa.utils.santa_events import (
    get_event_or_404,
    require_creator,
    ensure_editable,
    find_participant,
    clean_name,
)

log = logging.getLogger(__name__)


def list_participants(db: Session, event_id: int) -> List[Participant]:
    return list(
        db.scalars(
            select(Participant)
            .where(Participant.event_id == event_id)
            .order_by(Participant.id.asc())
        ).all()
    )


def _insert_participant(db: Session, participant: Participant) -> Participant:
    """
    Гонка по UNIQUE (event_id, user_id) - откатываем транзакцию и отдаём AlreadyParticipant.
    Вызывать до любых других изменений в транзакции.
    """
    db.add(participant)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise AlreadyParticipant()
    return participant


def add_creator_participant(db: Session, event: SantaEvent, creator: User) -> Participant:
    return _insert_participant(
        db,
        Participant(event_id=event.id, user_id=creator.id, name=creator.name or "Unknown", is_mock=False),
    )


def add_mock_participant(db: Session, event_id: int, actor_id: int, name: str) -> Participant:
    """Организатор добавляет участника без аккаунта (по имени)."""
    event = get_event_or_404(db, event_id)
    require_creator(event, actor_id)
    ensure_editable(event)
    name = clean_name(name)

    p = _insert_participant(db, Participant(event_id=event.id, user_id=None, name=name, is_mock=True))
    log_activity(
        db,
        type=PARTICIPANT_ADDED,
        actor_id=actor_id,
        event_id=event.id,
        data={"participant_id": p.id, "name": p.name, "mock": True},
    )
    db.commit()
    db.refresh(p)
    return p


def remove_participant(db: Session, event_id: int, participant_id: int, actor_id: int) -> None:
    event = get_event_or_404(db, event_id)
    require_creator(event, actor_id)
    ensure_editable(event)

    p = db.get(Participant, participant_id)
    if p is None or p.event_id != event.id:
        raise ParticipantNotFound()
    if p.user_id is not None and p.user_id == event.creator_id:
        raise NotAuthorized("The event creator cannot be removed")

    log_activity(
        db,
        type=PARTICIPANT_REMOVED,
        actor_id=actor_id,
        event_id=event.id,
        target_user_id=p.user_id,
        data={"participant_id": p.id, "name": p.name},
    )
    db.delete(p)
    db.commit()


def join_by_invite_code(
    db: Session,
    invite_code: str,
    user: User,
    invited_by: Optional[int] = None,
) -> Tuple[SantaEvent, Participant, bool]:
    """
    Вступление по ссылке. Возвращает (event, participant, already_joined).
    Повторный вход тем же пользователем - не ошибка, а already_joined=True
    (даже после жеребьёвки, чтобы ссылка просто открывала событие).
    """
    event = db.scalar(select(SantaEvent).where(SantaEvent.invite_code == invite_code))
    if event is None:
        raise InvalidInviteCode()

    existing = find_participant(db, event.id, user.id)
    if existing is not None:
        return event, existing, True

    ensure_editable(event)

    inviter = invited_by if invited_by and invited_by != user.id else None
    if inviter is not None and db.get(User, inviter) is None:
        inviter = None

    try:
        p = _insert_participant(
            db,
            Participant(
                event_id=event.id,
                user_id=user.id,
                name=user.name or "Anonymous",
                is_mock=False,
                invited_by=inviter,
            ),
        )
    except AlreadyParticipant:
        # параллельный запрос того же пользователя успел раньше
        return event, find_participant(db, event.id, user.id), True

    log_activity(
        db,
        type=PARTICIPANT_JOINED,
        actor_id=user.id,
        event_id=event.id,
        target_user_id=inviter,
        data={"participant_id": p.id},
        idempotency_key=f"joined:{event.id}:{user.id}",
    )
    if inviter is not None:
        ensure_friendship(db, inviter, user.id, event_id=event.id)
    gamification.on_event_joined(db, user.id, gamification.POINTS_EVENT_JOINED)

    db.commit()
    db.refresh(p)
    log.info("user %s joined event %s", user.id, event.id)
    return event, p, False
