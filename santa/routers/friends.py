# santa/routers/friends.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from santa.db import get_db
from santa.models.user import User
from santa.schemas.user import UserShortOut
from santa.services.friends import list_friends
from santa.utils.telegram_dep import get_current_telegram_user

router = APIRouter()


@router.get("/", response_model=List[UserShortOut])
def get_my_friends(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    """Друзья появляются, когда кто-то вступает в событие по вашей ссылке (или вы - по чужой)."""
    return list_friends(db, current_user.id)
