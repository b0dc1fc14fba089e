# santa/schemas/assignment.py
from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from .participant import ParticipantOut
from .santa_event import EventStatusEnum


class GiftStatusEnum(str, Enum):
    pending = "pending"
    purchased = "purchased"
    delivered = "delivered"


class AssignmentOut(BaseModel):
    id: int
    event_id: int
    giver_id: int
    receiver_id: int
    gift_status: GiftStatusEnum
    gift_photo_url: Optional[str] = None
    gift_note: Optional[str] = None
    purchased_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PairOut(BaseModel):
    giver_id: int
    receiver_id: int


class DrawOut(BaseModel):
    event_id: int
    status: EventStatusEnum
    assignments: List[PairOut]


class MyAssignmentOut(BaseModel):
    receiver: ParticipantOut
    assignment: AssignmentOut


class GiftStatusUpdate(BaseModel):
    # строка, а не enum: неизвестный статус -> invalid_transition, а не 422 валидации
    status: str = Field(..., description="pending|purchased|delivered")
    note: Optional[str] = Field(None, max_length=2000)
    photo_url: Optional[str] = Field(None, max_length=512)
