# santa/routers/auth.py
"""
Роутер авторизации через Telegram WebApp.
Валидирует initData, создаёт (если нет) или лениво обновляет пользователя и возвращает его.
"""

from fastapi import APIRouter, HTTPException, Request, Depends
from sqlalchemy.orm import Session

from santa.db import get_db
from santa.schemas.user import UserOut
from santa.models.user import User
from santa.utils.telegram_dep import validate_and_sync_user

router = APIRouter()


@router.post("/telegram", response_model=UserOut)
async def auth_via_telegram(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Точка входа для фронта (/api/auth/telegram).
    Принимает JSON: { "initData": "<строка из Telegram.WebApp.initData>" }
    """
    try:
        data = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON")

    init_data = (data or {}).get("initData") if isinstance(data, dict) else None
    if not init_data:
        raise HTTPException(status_code=400, detail="initData is required")

    return validate_and_sync_user(init_data, db, create_if_missing=True)
