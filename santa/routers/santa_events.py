# santa/routers/santa_events.py
# -----------------------------------------------------------------------------
# РОУТЕР: События Санты
# -----------------------------------------------------------------------------
# Ошибки домена (EventLocked, InsufficientParticipants, ...) летят из сервисов
# как есть - в JSON их превращает обработчик в santa.main.

from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Response
from starlette import status
from sqlalchemy.orm import Session

from santa.db import get_db
from santa.errors import InvalidInviteCode
from santa.models.user import User
from santa.schemas.santa_event import (
    EventCreate,
    EventUpdate,
    EventOut,
    EventDetailsOut,
    EventPreviewOut,
    InviteLinkOut,
    JoinRequest,
    JoinOut,
)
from santa.schemas.participant import MockParticipantCreate, ParticipantOut
from santa.schemas.assignment import DrawOut, PairOut, MyAssignmentOut
from santa.services import santa_events as events_service
from santa.services import participants as participants_service
from santa.services.draw import draw_names, DrawResult
from santa.services.gift_tracking import get_my_assignment
from santa.services.invite_code import build_invite_link, build_start_param, parse_start_param
from santa.services.notifications import Notifier, DrawDelivery, get_notifier
from santa.utils.santa_events import get_event_or_404, require_participant
from santa.utils.telegram_dep import get_current_telegram_user, get_current_telegram_user_or_create

router = APIRouter()


# ===== Вспомогательные =======================================================

def _draw_deliveries(result: DrawResult) -> List[DrawDelivery]:
    """Кому слать DM после жеребьёвки: только реальные пользователи, разрешившие ЛС."""
    by_id: Dict[int, object] = {p.id: p for p in result.participants}
    out: List[DrawDelivery] = []
    for giver_id, receiver_id in result.pairs:
        giver = by_id.get(giver_id)
        receiver = by_id.get(receiver_id)
        user = getattr(giver, "user", None)
        if user is None or receiver is None or user.allows_write_to_pm is False:
            continue
        out.append((user.telegram_id, receiver.name))
    return out


# ===== События ===============================================================

@router.post("/", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: EventCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    """Создать событие. Организатор сразу становится участником."""
    return events_service.create_event(
        db,
        current_user,
        name=payload.name,
        min_budget=payload.min_budget,
        max_budget=payload.max_budget,
        event_date=payload.event_date,
    )


@router.get("/", response_model=List[EventOut])
def list_my_events(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    return events_service.list_my_events(db, current_user.id)


@router.get("/by-code/{code}", response_model=EventPreviewOut)
def preview_by_invite_code(code: str, db: Session = Depends(get_db)):
    """Публичное превью по ссылке - без авторизации, чтобы показать экран «Вступить»."""
    try:
        invite_code, _ = parse_start_param(code)
    except ValueError:
        raise InvalidInviteCode()
    info = events_service.get_event_by_invite_code(db, invite_code)
    event = info["event"]
    return EventPreviewOut(
        id=event.id,
        name=event.name,
        min_budget=event.min_budget,
        max_budget=event.max_budget,
        event_date=event.event_date,
        status=event.status,
        participant_count=info["participant_count"],
    )


@router.post("/join", response_model=JoinOut)
def join_event(
    payload: JoinRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user_or_create),
):
    """
    Вступить по инвайт-коду или start_param из deep-link'а.
    Повторный вызов тем же пользователем возвращает already_joined=true.
    """
    try:
        invite_code, inviter_id = parse_start_param(payload.code)
    except ValueError:
        raise InvalidInviteCode()

    event, participant, already = participants_service.join_by_invite_code(
        db, invite_code, current_user, invited_by=inviter_id
    )
    return JoinOut(event_id=event.id, participant_id=participant.id, already_joined=already)


@router.get("/{event_id}", response_model=EventDetailsOut)
def get_event(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    details = events_service.get_event_details(db, event_id, current_user.id)
    out = EventDetailsOut.model_validate(details["event"])
    out.participants = [ParticipantOut.model_validate(p) for p in details["participants"]]
    return out


@router.patch("/{event_id}", response_model=EventOut)
def update_event(
    event_id: int,
    payload: EventUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    """Правка названия/бюджета/даты - только организатор и только до жеребьёвки."""
    return events_service.update_event(db, event_id, current_user.id, payload.model_dump(exclude_unset=True))


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    events_service.delete_event(db, event_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ===== Инвайты ===============================================================

@router.get("/{event_id}/invite", response_model=InviteLinkOut)
def get_invite_link(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    """
    Ссылка для шаринга. Делиться может любой участник; в ссылку зашит его id,
    чтобы вступивший попал к нему в друзья.
    """
    event = get_event_or_404(db, event_id)
    require_participant(db, event_id, current_user.id)
    if not event.invite_code:
        raise InvalidInviteCode()
    return InviteLinkOut(
        invite_code=event.invite_code,
        start_param=build_start_param(event.invite_code, current_user.id),
        invite_link=build_invite_link(event.invite_code, current_user.id),
    )


@router.post("/{event_id}/invite/regenerate", response_model=InviteLinkOut)
def regenerate_invite(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    """Новый код (старые ссылки перестают работать). Только организатор, только до жеребьёвки."""
    event = events_service.regenerate_invite_code(db, event_id, current_user.id)
    return InviteLinkOut(
        invite_code=event.invite_code,
        start_param=build_start_param(event.invite_code, current_user.id),
        invite_link=build_invite_link(event.invite_code, current_user.id),
    )


# ===== Участники =============================================================

@router.get("/{event_id}/participants", response_model=List[ParticipantOut])
def list_participants(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    get_event_or_404(db, event_id)
    require_participant(db, event_id, current_user.id)
    return participants_service.list_participants(db, event_id)


@router.post("/{event_id}/participants", response_model=ParticipantOut, status_code=status.HTTP_201_CREATED)
def add_mock_participant(
    event_id: int,
    payload: MockParticipantCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    """Организатор добавляет участника без аккаунта (например, бабушку)."""
    return participants_service.add_mock_participant(db, event_id, current_user.id, payload.name)


@router.delete("/{event_id}/participants/{participant_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_participant(
    event_id: int,
    participant_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    participants_service.remove_participant(db, event_id, participant_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ===== Жеребьёвка ============================================================

@router.post("/{event_id}/draw", response_model=DrawOut)
def draw(
    event_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Жеребьёвка: created -> assigned. Повторный вызов - 409 event_locked,
    меньше двух участников - 422 insufficient_participants.
    DM участникам уходят после ответа и на результат не влияют.
    """
    result = draw_names(db, event_id, current_user.id)

    deliveries = _draw_deliveries(result)
    if deliveries:
        background_tasks.add_task(notifier.draw_completed, result.event.name, deliveries)

    return DrawOut(
        event_id=result.event.id,
        status=result.event.status,
        assignments=[PairOut(giver_id=g, receiver_id=r) for g, r in result.pairs],
    )


@router.get("/{event_id}/my-assignment", response_model=Optional[MyAssignmentOut])
def my_assignment(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    """Кому дарю я. null - жеребьёвки ещё не было; 403 not_a_participant - я не в событии."""
    mine = get_my_assignment(db, event_id, current_user.id)
    if mine is None:
        return None
    return MyAssignmentOut.model_validate(mine, from_attributes=True)
