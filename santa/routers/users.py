# santa/routers/users.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from santa.models.user import User
from santa.schemas.user import UserOut, UserShortOut
from santa.schemas.wishlist import WishlistItemOut
from santa.db import get_db
from santa.services import wishlist as wishlist_service
from santa.utils.telegram_dep import get_current_telegram_user

router = APIRouter()


@router.get("/me", response_model=UserOut)
def get_me(current_user: User = Depends(get_current_telegram_user)):
    """Данные текущего пользователя (initData уже провалидирован зависимостью)."""
    return current_user


@router.get("/{user_id}", response_model=UserShortOut)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/{user_id}/wishlist", response_model=List[WishlistItemOut])
def get_user_wishlist(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    """
    Вишлист другого пользователя: позиции 'all' видны всем,
    'friends' - только его друзьям.
    """
    if not db.get(User, user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return wishlist_service.public_wishlist(db, user_id, viewer_id=current_user.id)
