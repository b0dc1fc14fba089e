# santa/models/wishlist.py
# Вишлист пользователя и резервы подарков (один резерв на позицию).

from __future__ import annotations

import enum
from sqlalchemy import Column, Integer, String, Text, ForeignKey, Enum, DateTime, UniqueConstraint, func, text
from sqlalchemy.orm import relationship

from ..db import Base


class WishlistPrivacy(str, enum.Enum):
    all = "all"
    friends = "friends"


class WishlistItem(Base):
    __tablename__ = "wishlist_items"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String(512), nullable=True)
    privacy = Column(
        Enum(WishlistPrivacy, name="wishlist_privacy"),
        nullable=False,
        default=WishlistPrivacy.all,
        server_default=text("'all'"),
        comment="Кому видно: all|friends",
    )
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    owner = relationship("User")
    reservation = relationship(
        "WishlistReservation",
        back_populates="item",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class WishlistReservation(Base):
    __tablename__ = "wishlist_reservations"

    id = Column(Integer, primary_key=True, index=True)
    wishlist_item_id = Column(Integer, ForeignKey("wishlist_items.id", ondelete="CASCADE"), nullable=False)
    reserved_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("wishlist_item_id", name="uq_wishlist_reservations_item"),
    )

    item = relationship("WishlistItem", back_populates="reservation")
