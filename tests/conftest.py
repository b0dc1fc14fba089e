"""Общие фикстуры: SQLite в памяти, фабрики пользователей/событий, TestClient."""

import os

os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:TEST-TOKEN")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("NOTIFICATIONS_ENABLED", None)

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from santa.db import Base, get_db, make_engine
from santa.models.user import User
from santa.services import santa_events as events_service
from santa.services import participants as participants_service
from santa.services.notifications import Notifier, get_notifier
from santa.utils.telegram_dep import get_current_telegram_user, get_current_telegram_user_or_create


@pytest.fixture
def db():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(name=None, **fields):
        counter["n"] += 1
        n = counter["n"]
        user = User(telegram_id=1000 + n, name=name or f"User {n}", **fields)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_event(db):
    def _make(creator, name="Office party", mocks=(), **fields):
        event = events_service.create_event(db, creator, name=name, **fields)
        for mock_name in mocks:
            participants_service.add_mock_participant(db, event.id, creator.id, mock_name)
        db.refresh(event)
        return event

    return _make


class RecordingNotifier(Notifier):
    def __init__(self):
        self.draws = []
        self.reservations = []

    async def draw_completed(self, event_name, deliveries):
        self.draws.append((event_name, list(deliveries)))
        return len(deliveries)

    async def gift_reserved(self, telegram_id, item_title, reserved_by):
        self.reservations.append((telegram_id, item_title, reserved_by))
        return True


@pytest.fixture
def notifier():
    return RecordingNotifier()


class ApiClient:
    """TestClient + «текущий пользователь», которого можно переключать."""

    def __init__(self, client: TestClient):
        self.http = client
        self.user = None

    def login(self, user):
        self.user = user
        return self

    def __getattr__(self, item):
        return getattr(self.http, item)


@pytest.fixture
def api(db, notifier):
    from santa.main import app

    def _get_db():
        yield db

    with TestClient(app) as client:
        wrapper = ApiClient(client)

        def _current_user():
            if wrapper.user is None:
                raise HTTPException(status_code=401, detail="initData required")
            return wrapper.user

        app.dependency_overrides[get_db] = _get_db
        app.dependency_overrides[get_current_telegram_user] = _current_user
        app.dependency_overrides[get_current_telegram_user_or_create] = _current_user
        app.dependency_overrides[get_notifier] = lambda: notifier
        try:
            yield wrapper
        finally:
            app.dependency_overrides.clear()
