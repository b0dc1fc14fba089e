# santa/models/activity.py
from sqlalchemy import Column, Integer, String, DateTime, JSON, func, UniqueConstraint, Index
from sqlalchemy.dialects.postgresql import JSONB
from santa.db import Base

class Activity(Base):
    __tablename__ = "activity"

    id = Column(Integer, primary_key=True, index=True)

    # кто совершил действие
    actor_id = Column(Integer, nullable=False)

    # к какому событию Санты относится (NULL для персональных действий: вишлист, дружба)
    event_id = Column(Integer, nullable=True)

    # над кем действие (вступивший участник, владелец зарезервированного подарка) - может быть NULL
    target_user_id = Column(Integer, nullable=True)

    # тип действия
    type = Column(String(64), nullable=False)

    # произвольные данные; JSONB в Postgres, JSON в SQLite
    data = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True, default={})

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    # идемпотентный ключ, чтобы не записывать дубль при ретраях
    idempotency_key = Column(String(64), nullable=True)

    __table_args__ = (
        UniqueConstraint("idempotency_key", name="uq_activity_idempotency_key"),
        Index("ix_activity_event_created_at", "event_id", "created_at"),
        Index("ix_activity_target_created_at", "target_user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Activity id={self.id} type={self.type} actor={self.actor_id} event={self.event_id}>"
