# santa/schemas/santa_event.py
# -----------------------------------------------------------------------------
# СХЕМЫ Pydantic: события Санты
# -----------------------------------------------------------------------------

from __future__ import annotations

from enum import Enum
from typing import Optional, List
from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from .participant import ParticipantOut


class EventStatusEnum(str, Enum):
    created = "created"
    assigned = "assigned"


def _check_budget(min_budget: Optional[int], max_budget: Optional[int]) -> None:
    if min_budget is not None and max_budget is not None and min_budget > max_budget:
        raise ValueError("min_budget must be <= max_budget")


def _clean_name(v: Optional[str]) -> str:
    cleaned = (v or "").strip()
    if not cleaned:
        raise ValueError("name must not be empty")
    return cleaned


class EventCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Название события")
    min_budget: Optional[int] = Field(None, ge=0, description="Минимальный бюджет подарка")
    max_budget: Optional[int] = Field(None, ge=0, description="Максимальный бюджет подарка")
    event_date: Optional[datetime] = Field(None, description="Дата обмена подарками (ISO)")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _clean_name(v)

    @model_validator(mode="after")
    def budget_range(self):
        _check_budget(self.min_budget, self.max_budget)
        return self


class EventUpdate(BaseModel):
    """Все поля необязательные; сервер применяет только переданные (exclude_unset)."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    min_budget: Optional[int] = Field(None, ge=0)
    max_budget: Optional[int] = Field(None, ge=0)
    event_date: Optional[datetime] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> str:
        # поле можно не передавать, но null или пустая строка - ошибка
        return _clean_name(v)

    @model_validator(mode="after")
    def budget_range(self):
        _check_budget(self.min_budget, self.max_budget)
        return self


class EventOut(BaseModel):
    id: int = Field(..., description="ID события")
    name: str
    min_budget: Optional[int] = None
    max_budget: Optional[int] = None
    event_date: Optional[datetime] = None
    status: EventStatusEnum = Field(EventStatusEnum.created, description="Статус: created|assigned")
    creator_id: int
    invite_code: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    assigned_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EventDetailsOut(EventOut):
    participants: List[ParticipantOut] = Field(default_factory=list, description="Состав по порядку вступления")


class EventPreviewOut(BaseModel):
    """Публичное превью по инвайт-коду (без списка участников и кода)."""
    id: int
    name: str
    min_budget: Optional[int] = None
    max_budget: Optional[int] = None
    event_date: Optional[datetime] = None
    status: EventStatusEnum
    participant_count: int


class InviteLinkOut(BaseModel):
    invite_code: str
    start_param: str
    invite_link: Optional[str] = None


class JoinRequest(BaseModel):
    # invite_<CODE>[_<uid>_<sig>] или голый код
    code: str = Field(..., min_length=1, max_length=128)


class JoinOut(BaseModel):
    event_id: int
    participant_id: int
    already_joined: bool
