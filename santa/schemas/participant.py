# santa/schemas/participant.py
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class MockParticipantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Имя участника без аккаунта")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError("name must not be empty")
        return cleaned


class ParticipantOut(BaseModel):
    id: int
    event_id: int
    user_id: Optional[int] = None
    name: str
    is_mock: bool
    invited_by: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True
