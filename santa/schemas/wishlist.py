# santa/schemas/wishlist.py
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class WishlistPrivacyEnum(str, Enum):
    all = "all"
    friends = "friends"


class WishlistItemCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    image_url: Optional[str] = Field(None, max_length=512)
    privacy: WishlistPrivacyEnum = WishlistPrivacyEnum.all


class WishlistPrivacyUpdate(BaseModel):
    privacy: WishlistPrivacyEnum


class WishlistItemOut(BaseModel):
    id: int
    user_id: int
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    privacy: WishlistPrivacyEnum
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ReservationOut(BaseModel):
    id: int
    wishlist_item_id: int
    reserved_by: int
    created_at: datetime

    class Config:
        from_attributes = True


class MyReservationOut(ReservationOut):
    item: WishlistItemOut
