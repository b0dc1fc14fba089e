# santa/services/wishlist.py
# -----------------------------------------------------------------------------
# Вишлисты и резервы подарков.
#   • приватность all|friends: friends видят только друзья владельца;
#   • один резерв на позицию (UNIQUE), свой подарок резервировать нельзя;
#   • снять резерв может только тот, кто его поставил.
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from santa.errors import WishlistItemNotFound, AlreadyReserved, NotAuthorized
from santa.models.user import User
from santa.models.wishlist import WishlistItem, WishlistReservation, WishlistPrivacy
from santa.services.activity import log_activity, GIFT_RESERVED, GIFT_UNRESERVED
from santa.services import gamification
from santa.services.friends import are_friends


def _get_item_or_404(db: Session, item_id: int) -> WishlistItem:
    item = db.get(WishlistItem, item_id)
    if item is None:
        raise WishlistItemNotFound()
    return item


def _get_own_item(db: Session, item_id: int, user_id: int) -> WishlistItem:
    item = _get_item_or_404(db, item_id)
    if item.user_id != user_id:
        # чужие позиции для владельца "не существуют"
        raise WishlistItemNotFound()
    return item


def create_item(
    db: Session,
    user_id: int,
    *,
    title: str,
    description: Optional[str] = None,
    image_url: Optional[str] = None,
    privacy: WishlistPrivacy = WishlistPrivacy.all,
) -> WishlistItem:
    item = WishlistItem(
        user_id=user_id,
        title=title.strip(),
        description=description,
        image_url=image_url,
        privacy=privacy,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def list_my_items(db: Session, user_id: int) -> List[WishlistItem]:
    return list(
        db.scalars(
            select(WishlistItem)
            .where(WishlistItem.user_id == user_id)
            .order_by(WishlistItem.created_at.desc(), WishlistItem.id.desc())
        ).all()
    )


def delete_item(db: Session, item_id: int, user_id: int) -> None:
    item = _get_own_item(db, item_id, user_id)
    db.delete(item)
    db.commit()


def update_privacy(db: Session, item_id: int, user_id: int, privacy: WishlistPrivacy) -> WishlistItem:
    item = _get_own_item(db, item_id, user_id)
    item.privacy = privacy
    db.commit()
    db.refresh(item)
    return item


def public_wishlist(db: Session, owner_id: int, viewer_id: Optional[int] = None) -> List[WishlistItem]:
    """
    Вишлист глазами viewer: all - всем; friends - владельцу и его друзьям.
    """
    stmt = select(WishlistItem).where(WishlistItem.user_id == owner_id)
    can_see_friends = viewer_id is not None and (
        viewer_id == owner_id or are_friends(db, owner_id, viewer_id)
    )
    if not can_see_friends:
        stmt = stmt.where(WishlistItem.privacy == WishlistPrivacy.all)
    stmt = stmt.order_by(WishlistItem.created_at.desc(), WishlistItem.id.desc())
    return list(db.scalars(stmt).all())


# =========================
# РЕЗЕРВЫ
# =========================

def reserve_item(db: Session, item_id: int, user: User) -> WishlistReservation:
    item = _get_item_or_404(db, item_id)
    if item.user_id == user.id:
        raise NotAuthorized("You cannot reserve your own wishlist item")
    if item.privacy == WishlistPrivacy.friends and not are_friends(db, item.user_id, user.id):
        raise WishlistItemNotFound()
    if item.reservation is not None:
        raise AlreadyReserved()

    reservation = WishlistReservation(wishlist_item_id=item.id, reserved_by=user.id)
    db.add(reservation)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise AlreadyReserved()

    log_activity(
        db,
        type=GIFT_RESERVED,
        actor_id=user.id,
        target_user_id=item.user_id,
        data={"wishlist_item_id": item.id, "title": item.title},
    )
    gamification.award_points(db, user.id, gamification.POINTS_GIFT_RESERVED)
    db.commit()
    db.refresh(reservation)
    return reservation


def unreserve_item(db: Session, item_id: int, user_id: int) -> None:
    item = _get_item_or_404(db, item_id)
    reservation = item.reservation
    if reservation is None:
        return
    if reservation.reserved_by != user_id:
        raise NotAuthorized("Only the user who reserved this gift can cancel the reservation")

    log_activity(
        db,
        type=GIFT_UNRESERVED,
        actor_id=user_id,
        target_user_id=item.user_id,
        data={"wishlist_item_id": item.id},
    )
    db.delete(reservation)
    db.commit()


def get_reservation(db: Session, item_id: int) -> Optional[WishlistReservation]:
    _get_item_or_404(db, item_id)
    return db.scalar(select(WishlistReservation).where(WishlistReservation.wishlist_item_id == item_id))


def list_my_reservations(db: Session, user_id: int) -> List[WishlistReservation]:
    return list(
        db.scalars(
            select(WishlistReservation)
            .options(joinedload(WishlistReservation.item))
            .where(WishlistReservation.reserved_by == user_id)
            .order_by(WishlistReservation.created_at.desc(), WishlistReservation.id.desc())
        ).all()
    )
