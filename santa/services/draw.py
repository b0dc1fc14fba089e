# santa/services/draw.py
# -----------------------------------------------------------------------------
# ЖЕРЕБЬЁВКА: единственный переход created -> assigned
# -----------------------------------------------------------------------------
# Всё в одной транзакции:
#   1) блокируем строку события (FOR UPDATE в Postgres);
#   2) проверяем статус/число участников/отсутствие пар;
#   3) пишем N строк santa_assignments;
#   4) UPDATE ... WHERE status = 'created' - rowcount обязан быть 1.
# Проигравший в гонке получает EventLocked: либо на шаге 4, либо на
# UNIQUE (event_id, giver_id). Уведомления - только после commit, снаружи.

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from santa.errors import SantaError, EventLocked, DrawFailed
from santa.models.santa_event import SantaEvent, EventStatus
from santa.models.participant import Participant
from santa.models.assignment import Assignment
from santa.services.activity import log_activity, NAMES_DRAWN
from santa.services.assignment_generator import generate_assignments
from santa.services import gamification
from santa.services.participants import list_participants
from santa.utils.santa_events import get_event_or_404, require_creator, ensure_editable

log = logging.getLogger(__name__)


@dataclass
class DrawResult:
    event: SantaEvent
    assignments: List[Assignment]
    participants: List[Participant] = field(default_factory=list)

    @property
    def pairs(self) -> List[Tuple[int, int]]:
        return [(a.giver_id, a.receiver_id) for a in self.assignments]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _has_assignments(db: Session, event_id: int) -> bool:
    return db.scalar(select(Assignment.id).where(Assignment.event_id == event_id).limit(1)) is not None


def draw_names(
    db: Session,
    event_id: int,
    actor_id: Optional[int] = None,
    *,
    rng: Optional[random.Random] = None,
) -> DrawResult:
    """
    Проводит жеребьёвку. actor_id, если передан, должен быть организатором.

    Исключения:
      EventNotFound, NotAuthorized - гарды;
      EventLocked - событие уже не в created (в т.ч. проигранная гонка);
      InsufficientParticipants - меньше двух участников, ничего не записано;
      DrawFailed - любая другая ошибка БД, транзакция откатана.
    """
    try:
        event = get_event_or_404(db, event_id, for_update=True)
        if actor_id is not None:
            require_creator(event, actor_id)
        ensure_editable(event)
        if _has_assignments(db, event_id):
            raise EventLocked()

        participants = list_participants(db, event_id)
        pairs = generate_assignments([p.id for p in participants], rng=rng)

        rows = [Assignment(event_id=event_id, giver_id=g, receiver_id=r) for g, r in pairs]
        db.add_all(rows)
        db.flush()

        res = db.execute(
            update(SantaEvent)
            .where(SantaEvent.id == event_id, SantaEvent.status == EventStatus.created)
            .values(status=EventStatus.assigned, assigned_at=_utc_now())
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            raise EventLocked()

        log_activity(
            db,
            type=NAMES_DRAWN,
            actor_id=actor_id if actor_id is not None else event.creator_id,
            event_id=event_id,
            data={"participants": len(participants)},
            idempotency_key=f"names_drawn:{event_id}",
        )
        gamification.award_points(db, event.creator_id, gamification.POINTS_NAMES_DRAWN)

        db.commit()
    except SantaError:
        db.rollback()
        raise
    except IntegrityError:
        # второй батч на то же событие: UNIQUE (event_id, giver_id)
        db.rollback()
        raise EventLocked()
    except SQLAlchemyError:
        db.rollback()
        log.exception("draw failed for event %s", event_id)
        raise DrawFailed()

    db.refresh(event)
    log.info("names drawn for event %s: %d assignments", event_id, len(rows))
    return DrawResult(event=event, assignments=rows, participants=participants)
