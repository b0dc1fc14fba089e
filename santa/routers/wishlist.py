# santa/routers/wishlist.py
# -----------------------------------------------------------------------------
# РОУТЕР: Вишлист и резервы
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Response
from starlette import status
from sqlalchemy.orm import Session

from santa.db import get_db
from santa.models.user import User
from santa.models.wishlist import WishlistPrivacy
from santa.schemas.wishlist import (
    WishlistItemCreate,
    WishlistItemOut,
    WishlistPrivacyUpdate,
    ReservationOut,
    MyReservationOut,
)
from santa.services import wishlist as wishlist_service
from santa.services.notifications import Notifier, get_notifier
from santa.utils.telegram_dep import get_current_telegram_user

router = APIRouter()


@router.post("/", response_model=WishlistItemOut, status_code=status.HTTP_201_CREATED)
def create_item(
    payload: WishlistItemCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    return wishlist_service.create_item(
        db,
        current_user.id,
        title=payload.title,
        description=payload.description,
        image_url=payload.image_url,
        privacy=WishlistPrivacy(payload.privacy.value),
    )


@router.get("/", response_model=List[WishlistItemOut])
def my_wishlist(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    return wishlist_service.list_my_items(db, current_user.id)


@router.patch("/{item_id}/privacy", response_model=WishlistItemOut)
def set_privacy(
    item_id: int,
    payload: WishlistPrivacyUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    return wishlist_service.update_privacy(db, item_id, current_user.id, WishlistPrivacy(payload.privacy.value))


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    wishlist_service.delete_item(db, item_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ===== Резервы ===============================================================

@router.get("/reservations/mine", response_model=List[MyReservationOut])
def my_reservations(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    return wishlist_service.list_my_reservations(db, current_user.id)


@router.post("/{item_id}/reserve", response_model=ReservationOut, status_code=status.HTTP_201_CREATED)
def reserve(
    item_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
    notifier: Notifier = Depends(get_notifier),
):
    """Забронировать подарок из чужого вишлиста; владельцу уходит DM."""
    reservation = wishlist_service.reserve_item(db, item_id, current_user)

    owner = reservation.item.owner
    if owner is not None and owner.allows_write_to_pm is not False:
        background_tasks.add_task(
            notifier.gift_reserved,
            owner.telegram_id,
            reservation.item.title,
            current_user.name or "Anonymous",
        )
    return reservation


@router.delete("/{item_id}/reserve", status_code=status.HTTP_204_NO_CONTENT)
def unreserve(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    wishlist_service.unreserve_item(db, item_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{item_id}/reservation", response_model=Optional[ReservationOut])
def get_reservation(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    return wishlist_service.get_reservation(db, item_id)
