# santa/services/activity.py
from __future__ import annotations
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from santa.models.activity import Activity

# Константы типов (используй в сервисах)
EVENT_CREATED = "event_created"
EVENT_UPDATED = "event_updated"
EVENT_DELETED = "event_deleted"
NAMES_DRAWN = "names_drawn"

PARTICIPANT_ADDED = "participant_added"
PARTICIPANT_JOINED = "participant_joined"
PARTICIPANT_REMOVED = "participant_removed"

GIFT_STATUS_CHANGED = "gift_status_changed"
GIFT_DELIVERED = "gift_delivered"
GIFT_RESERVED = "gift_reserved"
GIFT_UNRESERVED = "gift_unreserved"

FRIENDSHIP_CREATED = "friendship_created"
ACHIEVEMENT_UNLOCKED = "achievement_unlocked"

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def log_activity(
    db: Session,
    *,
    type: str,
    actor_id: int,
    event_id: Optional[int] = None,
    target_user_id: Optional[int] = None,
    data: Optional[Dict[str, Any]] = None,
    idempotency_key: Optional[str] = None,
) -> Activity:
    """
    Единая точка записи активности. Вызывается в той же транзакции, что и бизнес-операция.
    Не делает commit. Если задан idempotency_key - обеспечиваем идемпотентность без IntegrityError.
    """
    payload = {
        "type": type,
        "actor_id": actor_id,
        "event_id": event_id,
        "target_user_id": target_user_id,
        "data": (data or {}),
        "idempotency_key": idempotency_key,
    }

    insert = _UPSERT_INSERTS.get(db.get_bind().dialect.name)
    if idempotency_key and insert is not None:
        # ON CONFLICT DO NOTHING по уникальному ключу idempotency_key
        stmt = (
            insert(Activity.__table__)
            .values(**payload)
            .on_conflict_do_nothing(index_elements=["idempotency_key"])
            .returning(Activity.id)
        )
        inserted_id = db.execute(stmt).scalar_one_or_none()
        if inserted_id is not None:
            return db.get(Activity, inserted_id)
        # конфликт: запись уже есть - вернём существующую
        return db.query(Activity).filter(Activity.idempotency_key == idempotency_key).one()

    if idempotency_key:
        existing = db.query(Activity).filter(Activity.idempotency_key == idempotency_key).first()
        if existing:
            return existing

    act = Activity(**payload)
    db.add(act)
    return act
