# santa/db.py
# Инициализация SQLAlchemy: движок, сессии, Base и явные импорты моделей.

from __future__ import annotations

import os
from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL") or "sqlite:///./santa.db"


def _engine_kwargs(url: str) -> dict:
    # SQLite (локальный запуск/тесты) не принимает настройки пула
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": 20,
        "max_overflow": 20,
        "pool_timeout": 60,
        "pool_recycle": 1800,
        "pool_pre_ping": True,
    }


def make_engine(url: str, **overrides):
    kwargs = _engine_kwargs(url)
    kwargs.update(overrides)
    eng = create_engine(url, **kwargs)
    if url.startswith("sqlite"):
        # без этого SQLite игнорирует ON DELETE CASCADE
        @event.listens_for(eng, "connect")
        def _sqlite_fk_on(dbapi_conn, _record):
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON")
            cur.close()
    return eng


engine = make_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

from santa.models import (  # noqa: E402,F401
    user,
    santa_event,
    participant,
    assignment,
    activity,
    friend,
    wishlist,
    achievement,
)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
