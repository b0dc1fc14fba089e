# santa/routers/activity.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import and_, exists, or_, select
from sqlalchemy.orm import Session

from santa.db import get_db
from santa.models.activity import Activity
from santa.models.participant import Participant
from santa.models.user import User
from santa.schemas.activity import ActivityOut
from santa.utils.telegram_dep import get_current_telegram_user

router = APIRouter()

# -------- фильтрация по "чипам" (types[]) --------
# Чипы раскрываются в префиксы типов; точные типы тоже поддерживаем.
_CHIPS = {
    "event": ("event_%", "names_drawn"),
    "participant": ("participant_%",),
    "gift": ("gift_%",),
    "social": ("friendship_%", "achievement_%"),
}


def _apply_types_filter(q, types: Optional[List[str]]):
    if not types:
        return q

    tset = {t.lower().strip() for t in types if t and t.strip()}
    if not tset:
        return q

    clauses = []
    for chip, patterns in _CHIPS.items():
        if chip in tset:
            for p in patterns:
                clauses.append(Activity.type.like(p) if "%" in p else Activity.type == p)

    other_exact = [t for t in tset if t not in _CHIPS]
    if other_exact:
        clauses.append(Activity.type.in_(other_exact))

    if clauses:
        q = q.where(or_(*clauses))
    return q


@router.get("/", response_model=List[ActivityOut])
def list_activity(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
    limit: int = Query(20, ge=1, le=200),
    offset: int = Query(0, ge=0),
    types: Optional[List[str]] = Query(None, description="Чипы (event|participant|gift|social) или точные типы"),
    event_id: Optional[int] = Query(None, description="Только по этому событию"),
    since: Optional[datetime] = Query(None, description="created_at >= since"),
    before: Optional[datetime] = Query(None, description="created_at < before"),
):
    """
    Лента, видимая текущему пользователю:
      - actor == me или target == me
      - ИЛИ запись относится к событию, где я участник
    """
    me = current_user

    base = select(Activity).where(
        or_(
            Activity.actor_id == me.id,
            Activity.target_user_id == me.id,
            and_(
                Activity.event_id.isnot(None),
                exists(
                    select(1).where(
                        and_(
                            Participant.event_id == Activity.event_id,
                            Participant.user_id == me.id,
                        )
                    )
                ),
            ),
        )
    )

    if event_id is not None:
        base = base.where(Activity.event_id == event_id)
    if since is not None:
        base = base.where(Activity.created_at >= since)
    if before is not None:
        base = base.where(Activity.created_at < before)

    base = _apply_types_filter(base, types)

    base = base.order_by(Activity.created_at.desc(), Activity.id.desc()).offset(offset).limit(limit)
    return db.execute(base).scalars().all()
