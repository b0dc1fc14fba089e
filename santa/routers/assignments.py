# santa/routers/assignments.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from santa.db import get_db
from santa.models.user import User
from santa.schemas.assignment import AssignmentOut, GiftStatusUpdate
from santa.services.gift_tracking import update_gift_status
from santa.utils.telegram_dep import get_current_telegram_user

router = APIRouter()


@router.patch("/{assignment_id}/gift-status", response_model=AssignmentOut)
def set_gift_status(
    assignment_id: int,
    payload: GiftStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    """
    Статус подарка pending|purchased|delivered (+ заметка и фото).
    Менять может только даритель этой пары - иначе 403 not_authorized.
    """
    return update_gift_status(
        db,
        assignment_id,
        current_user.id,
        payload.status,
        note=payload.note,
        photo_url=payload.photo_url,
    )
