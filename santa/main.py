# santa/main.py
# Главная точка входа FastAPI для Secret Santa Mini App.
#  • роутеры ресурсов под /api/...
#  • единый обработчик доменных ошибок (santa.errors) -> {"detail", "code"}
#  • нотификатор Telegram создаётся на startup и закрывается на shutdown

from __future__ import annotations

import logging
import os
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dotenv import load_dotenv
load_dotenv()

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
)
log = logging.getLogger(__name__)

from santa.db import engine  # noqa: E402,F401  инициализация БД/пула соединений
from santa.errors import SantaError  # noqa: E402
from santa.services.notifications import build_notifier  # noqa: E402

from santa.routers.auth import router as auth_router  # noqa: E402
from santa.routers.users import router as users_router  # noqa: E402
from santa.routers.santa_events import router as santa_events_router  # noqa: E402
from santa.routers.assignments import router as assignments_router  # noqa: E402
from santa.routers.wishlist import router as wishlist_router  # noqa: E402
from santa.routers.gamification import router as gamification_router  # noqa: E402
from santa.routers.friends import router as friends_router  # noqa: E402
from santa.routers.activity import router as activity_router  # noqa: E402

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]


def _cors_origins() -> list:
    raw = os.getenv("CORS_ORIGINS")
    if not raw:
        return DEFAULT_CORS_ORIGINS
    return [o.strip() for o in raw.split(",") if o.strip()]


app = FastAPI(
    title="Secret Santa Backend",
    description="Backend для Secret Santa Mini App: события, жеребьёвка, подарки, вишлисты.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SantaError)
async def santa_error_handler(request: Request, exc: SantaError):
    # ожидаемые пользовательские исходы - отдаём как есть, без stacktrace в логе
    log.debug("%s %s -> %s", request.method, request.url.path, exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# --- Подключение роутеров ---
app.include_router(auth_router,          prefix="/api/auth",          tags=["Авторизация"])
app.include_router(users_router,         prefix="/api/users",         tags=["Пользователи"])
app.include_router(santa_events_router,  prefix="/api/santa-events",  tags=["События"])
app.include_router(assignments_router,   prefix="/api/assignments",   tags=["Подарки"])
app.include_router(wishlist_router,      prefix="/api/wishlist",      tags=["Вишлист"])
app.include_router(gamification_router,  prefix="/api/gamification", tags=["Геймификация"])
app.include_router(friends_router,       prefix="/api/friends",       tags=["Друзья"])
app.include_router(activity_router,      prefix="/api/activity",      tags=["Лента"])


@app.get("/")
def root():
    """Простой healthcheck."""
    return {"message": "Secret Santa backend работает!", "docs": "/docs"}


@app.on_event("startup")
async def _startup_notifier():
    app.state.notifier = build_notifier()
    await app.state.notifier.start()


@app.on_event("shutdown")
async def _shutdown_notifier():
    notifier = getattr(app.state, "notifier", None)
    if notifier is not None:
        await notifier.stop()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("santa.main:app", host="0.0.0.0", port=8000, reload=False)
