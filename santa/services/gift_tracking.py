# santa/services/gift_tracking.py
# -----------------------------------------------------------------------------
# Учёт подарков: статус pending -> purchased -> delivered по конкретной паре.
# Граф (giver_id, receiver_id) здесь не трогаем никогда.
# -----------------------------------------------------------------------------
# Переходы:
#   • вперёд на любое число шагов (pending -> delivered тоже можно);
#   • тот же статус - обновляем только заметку/фото;
#   • назад можно, но метки времени пройденных назад стадий обнуляются.

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from santa.errors import AssignmentNotFound, NotAuthorized, InvalidTransition
from santa.models.assignment import Assignment, GiftStatus, GIFT_STATUS_ORDER
from santa.models.participant import Participant
from santa.models.activity import Activity
from santa.services.activity import log_activity, GIFT_STATUS_CHANGED, GIFT_DELIVERED
from santa.services import gamification
from santa.utils.santa_events import get_event_or_404, require_participant

log = logging.getLogger(__name__)


@dataclass
class MyAssignment:
    receiver: Participant
    assignment: Assignment


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def coerce_status(status: Union[GiftStatus, str]) -> GiftStatus:
    if isinstance(status, GiftStatus):
        return status
    try:
        return GiftStatus(str(status).strip().lower())
    except ValueError:
        raise InvalidTransition(f"Unknown gift status: {status}")


def apply_status(assignment: Assignment, new: GiftStatus, now: datetime) -> None:
    """Меняет статус и приводит purchased_at/delivered_at в соответствие."""
    rank = GIFT_STATUS_ORDER[new]

    if rank >= GIFT_STATUS_ORDER[GiftStatus.purchased]:
        if assignment.purchased_at is None:
            assignment.purchased_at = now
    else:
        assignment.purchased_at = None

    if rank >= GIFT_STATUS_ORDER[GiftStatus.delivered]:
        if assignment.delivered_at is None:
            assignment.delivered_at = now
    else:
        assignment.delivered_at = None

    assignment.gift_status = new


def _reward_delivery(db: Session, assignment: Assignment, giver_user_id: int) -> None:
    # очки за пару начисляются один раз, даже если статус откатывали и ставили снова
    key = f"gift_delivered:{assignment.id}"
    if db.query(Activity.id).filter(Activity.idempotency_key == key).first() is not None:
        return
    log_activity(
        db,
        type=GIFT_DELIVERED,
        actor_id=giver_user_id,
        event_id=assignment.event_id,
        target_user_id=assignment.receiver.user_id,
        data={"assignment_id": assignment.id},
        idempotency_key=key,
    )
    gamification.on_gift_delivered(db, giver_user_id)


def get_my_assignment(db: Session, event_id: int, acting_user_id: int) -> Optional[MyAssignment]:
    """
    Кому дарит текущий пользователь. None - жеребьёвки ещё не было.
    NotAParticipant - пользователь не участник события.
    """
    get_event_or_404(db, event_id)
    me = require_participant(db, event_id, acting_user_id)

    assignment = db.scalar(
        select(Assignment).where(Assignment.event_id == event_id, Assignment.giver_id == me.id)
    )
    if assignment is None:
        return None
    return MyAssignment(receiver=assignment.receiver, assignment=assignment)


def update_gift_status(
    db: Session,
    assignment_id: int,
    acting_user_id: int,
    status: Union[GiftStatus, str],
    note: Optional[str] = None,
    photo_url: Optional[str] = None,
) -> Assignment:
    """
    Обновить статус подарка. Может только даритель (его user_id).
    note/photo_url: None - не трогать, иначе перезаписать.
    """
    assignment = db.get(Assignment, assignment_id)
    if assignment is None:
        raise AssignmentNotFound()

    giver = assignment.giver
    if giver is None or giver.user_id is None or giver.user_id != acting_user_id:
        raise NotAuthorized("Only the giver can update this gift")

    new = coerce_status(status)
    old = assignment.gift_status

    apply_status(assignment, new, _utc_now())
    if note is not None:
        assignment.gift_note = note
    if photo_url is not None:
        assignment.gift_photo_url = photo_url

    if old != new:
        log_activity(
            db,
            type=GIFT_STATUS_CHANGED,
            actor_id=acting_user_id,
            event_id=assignment.event_id,
            data={"assignment_id": assignment.id, "from": old.value, "to": new.value},
        )
    if new == GiftStatus.delivered and old != GiftStatus.delivered:
        db.flush()
        _reward_delivery(db, assignment, acting_user_id)

    db.commit()
    db.refresh(assignment)
    log.info("assignment %s gift status %s -> %s", assignment.id, old.value, new.value)
    return assignment
