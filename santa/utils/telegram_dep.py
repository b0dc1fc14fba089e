# santa/utils/telegram_dep.py
"""
Авторизация через Telegram WebApp initData.
- validate_and_sync_user: валидация initData + ленивое обновление полей пользователя в БД
- get_current_telegram_user: FastAPI-зависимость (не создаёт пользователя)
- get_current_telegram_user_or_create: то же, но создаёт (первый вход по инвайт-ссылке)

Ядро (жеребьёвка, подарки) получает отсюда только уже проверенного User.
"""

import os
from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from santa.db import get_db
from santa.models.user import User
from santa.utils.user import get_display_name
from telegram_webapp_auth.auth import TelegramAuthenticator, generate_secret_key

TELEGRAM_BOT_TOKEN = os.environ.get("TELEGRAM_BOT_TOKEN")
if not TELEGRAM_BOT_TOKEN:
    raise RuntimeError("TELEGRAM_BOT_TOKEN is not set")

_auth_secret = generate_secret_key(TELEGRAM_BOT_TOKEN)
authenticator = TelegramAuthenticator(_auth_secret)

SUPPORTED_LANGS = {"ru", "en"}


def _normalize_lang(code: Optional[str]) -> str:
    """
    Схлопываем код языка до поддерживаемых фронтом.
    Если язык не пришёл - 'en'.
    """
    if not code:
        return "en"
    c = code.lower().split("-")[0]
    return c if c in SUPPORTED_LANGS else "en"


def _init_data_from_request(request: Request, body: Optional[dict]) -> Optional[str]:
    """
    Пытаемся достать initData:
      - из JSON body (ключ 'initData')
      - из заголовка 'x-telegram-initdata'
      - из query (?init_data=...)
    """
    if body and isinstance(body, dict):
        v = body.get("initData")
        if isinstance(v, str) and v.strip():
            return v

    header_v = request.headers.get("x-telegram-initdata")
    if header_v:
        return header_v

    return request.query_params.get("init_data") or None


async def _read_init_data(request: Request) -> str:
    body = None
    if request.method in {"POST", "PUT", "PATCH"}:
        try:
            body = await request.json()
        except ValueError:
            body = None

    init_data = _init_data_from_request(request, body)
    if not init_data:
        raise HTTPException(
            status_code=401,
            detail="initData required (JSON 'initData', header 'x-telegram-initdata' or '?init_data=...')",
        )
    return init_data


def _profile_fields(tg_user) -> dict:
    first_name = getattr(tg_user, "first_name", None)
    last_name = getattr(tg_user, "last_name", None)
    username = getattr(tg_user, "username", None)
    return {
        "first_name": first_name,
        "last_name": last_name,
        "username": username,
        "photo_url": getattr(tg_user, "photo_url", None),
        "language_code": _normalize_lang(getattr(tg_user, "language_code", None)),
        "allows_write_to_pm": getattr(tg_user, "allows_write_to_pm", True),
        "name": get_display_name(
            first_name=first_name,
            last_name=last_name,
            username=username,
            telegram_id=tg_user.id,
        ),
    }


def validate_and_sync_user(init_data: str, db: Session, *, create_if_missing: bool) -> User:
    """
    Валидирует initData, находит/создаёт пользователя и лениво обновляет его поля.
    """
    if not init_data:
        raise HTTPException(status_code=401, detail="initData is required")

    try:
        result = authenticator.validate(init_data)
    except Exception as e:
        raise HTTPException(status_code=401, detail=f"Auth error: {str(e)}")

    tg_user = result.user
    fields = _profile_fields(tg_user)

    user: Optional[User] = db.query(User).filter_by(telegram_id=tg_user.id).first()

    if not user:
        if not create_if_missing:
            raise HTTPException(status_code=401, detail="User is not registered")
        user = User(telegram_id=tg_user.id, **fields)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    changed = False
    for k, v in fields.items():
        if getattr(user, k) != v:
            setattr(user, k, v)
            changed = True
    if changed:
        db.commit()
        db.refresh(user)

    return user


async def get_current_telegram_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Зависимость для защищённых ручек: пользователь должен быть уже зарегистрирован."""
    init_data = await _read_init_data(request)
    return validate_and_sync_user(init_data, db, create_if_missing=False)


async def get_current_telegram_user_or_create(request: Request, db: Session = Depends(get_db)) -> User:
    """
    То же самое, что get_current_telegram_user, но с create_if_missing=True.
    Для вступления по инвайт-ссылке: пользователь может прийти впервые.
    """
    init_data = await _read_init_data(request)
    return validate_and_sync_user(init_data, db, create_if_missing=True)
