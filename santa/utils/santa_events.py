# santa/utils/santa_events.py
# ОБЩИЕ ГАРДЫ ДЛЯ СОБЫТИЙ САНТЫ.
# Бросают типизированные ошибки из santa.errors, HTTP-коды проставляет santa.main.

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from santa.errors import (
    EventNotFound,
    EventLocked,
    NotAuthorized,
    NotAParticipant,
    InvalidBudget,
    InvalidName,
)
from santa.models.santa_event import SantaEvent, EventStatus
from santa.models.participant import Participant

# =========================
# БАЗОВЫЕ ГАРДЫ / ЗАГРУЗКИ
# =========================

def get_event_or_404(db: Session, event_id: int, *, for_update: bool = False) -> SantaEvent:
    stmt = select(SantaEvent).where(SantaEvent.id == event_id)
    if for_update:
        # Postgres: блокировка строки до конца транзакции; SQLite игнорирует
        stmt = stmt.with_for_update()
    event = db.scalar(stmt)
    if not event:
        raise EventNotFound()
    return event


def require_creator(event: SantaEvent, user_id: int) -> SantaEvent:
    if event.creator_id != user_id:
        raise NotAuthorized("Only the event creator can perform this action")
    return event


def ensure_editable(event: SantaEvent) -> None:
    """Любая мутация события допустима только до жеребьёвки."""
    if event.status != EventStatus.created:
        raise EventLocked()


def find_participant(db: Session, event_id: int, user_id: int) -> Optional[Participant]:
    return db.scalar(
        select(Participant).where(
            Participant.event_id == event_id,
            Participant.user_id == user_id,
        )
    )


def require_participant(db: Session, event_id: int, user_id: int) -> Participant:
    participant = find_participant(db, event_id, user_id)
    if participant is None:
        raise NotAParticipant()
    return participant


def validate_budget(min_budget: Optional[int], max_budget: Optional[int]) -> None:
    for v in (min_budget, max_budget):
        if v is not None and v < 0:
            raise InvalidBudget()
    if min_budget is not None and max_budget is not None and min_budget > max_budget:
        raise InvalidBudget()


def clean_name(name: Optional[str]) -> str:
    """Имя события/участника без крайних пробелов; пустое или None -> InvalidName."""
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidName()
    return cleaned
