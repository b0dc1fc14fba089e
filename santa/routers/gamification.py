# santa/routers/gamification.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from santa.db import get_db
from santa.models.user import User
from santa.schemas.gamification import StatsOut, LeaderboardEntryOut, AchievementOut
from santa.services import gamification
from santa.utils.telegram_dep import get_current_telegram_user

router = APIRouter()


@router.get("/stats/me", response_model=StatsOut)
def my_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    return gamification.get_user_statistics(db, current_user)


@router.get("/leaderboard", response_model=List[LeaderboardEntryOut])
def leaderboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
    limit: int = Query(10, ge=1, le=100),
    sort_by: str = Query("points", description="points|events|gifts_given|gifts_received"),
):
    if sort_by not in gamification.LEADERBOARD_SORTS:
        raise HTTPException(status_code=422, detail=f"sort_by must be one of {', '.join(gamification.LEADERBOARD_SORTS)}")
    return gamification.get_leaderboard(db, limit=limit, sort_by=sort_by)


@router.get("/achievements/me", response_model=List[AchievementOut])
def my_achievements(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_telegram_user),
):
    return gamification.list_achievements(db, current_user.id)
