# santa/models/participant.py
# Участник события: реальный пользователь (user_id) или заглушка от организатора (user_id = NULL).
# Уникальность (event_id, user_id): один пользователь не может вступить дважды.

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, UniqueConstraint, DateTime, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..db import Base


class Participant(Base):
    __tablename__ = "event_participants"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("santa_events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    is_mock = Column(Boolean, nullable=False, default=False)

    # кто поделился ссылкой (для графа друзей)
    invited_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_participants_event_user"),
        Index("ix_event_participants_event_id_id", "event_id", "id"),
    )

    event = relationship("SantaEvent", back_populates="participants")
    user = relationship("User", foreign_keys=[user_id])

    def __repr__(self):
        return f"<Participant(id={self.id}, event_id={self.event_id}, user_id={self.user_id}, name={self.name!r})>"
