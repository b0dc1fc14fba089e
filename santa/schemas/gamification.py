# santa/schemas/gamification.py
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class StatsOut(BaseModel):
    user_id: int
    events_count: int
    gifts_given: int
    gifts_received: int
    points: int
    level: str


class LeaderboardEntryOut(BaseModel):
    rank: int
    user_id: int
    name: Optional[str] = None
    photo_url: Optional[str] = None
    points: int
    events_count: int
    gifts_given: int
    gifts_received: int
    level: str


class AchievementOut(BaseModel):
    achievement_type: str
    unlocked_at: datetime

    class Config:
        from_attributes = True
