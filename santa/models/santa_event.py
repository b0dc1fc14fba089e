# santa/models/santa_event.py
# -----------------------------------------------------------------------------
# МОДЕЛЬ: SantaEvent - один обмен подарками "Тайный Санта"
# -----------------------------------------------------------------------------

from __future__ import annotations

import enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    Enum,
    DateTime,
    CheckConstraint,
    Index,
    func,
    text,
)
from sqlalchemy.orm import relationship

from ..db import Base


class EventStatus(str, enum.Enum):
    created = "created"
    assigned = "assigned"


class SantaEvent(Base):
    __tablename__ = "santa_events"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)

    creator_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    creator = relationship("User")

    min_budget = Column(Integer, nullable=True, comment="Нижняя граница бюджета (та же валюта, что max)")
    max_budget = Column(Integer, nullable=True, comment="Верхняя граница бюджета")
    event_date = Column(DateTime(timezone=True), nullable=True, comment="Дата обмена подарками")

    status = Column(
        Enum(EventStatus, name="santa_event_status"),
        nullable=False,
        default=EventStatus.created,
        server_default=text("'created'"),
        comment="Статус: created|assigned",
    )

    invite_code = Column(String(32), unique=True, nullable=True, comment="Код для deep-link приглашения")

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())
    assigned_at = Column(DateTime(timezone=True), nullable=True, comment="Когда прошла жеребьёвка (UTC)")

    participants = relationship(
        "Participant",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Participant.id",
    )
    assignments = relationship(
        "Assignment",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Assignment.id",
    )

    __table_args__ = (
        CheckConstraint(
            "min_budget IS NULL OR max_budget IS NULL OR min_budget <= max_budget",
            name="ck_santa_events_budget_range",
        ),
        Index("ix_santa_events_status", "status"),
    )

    @property
    def is_locked(self) -> bool:
        return self.status != EventStatus.created

    def __repr__(self) -> str:
        return f"<SantaEvent id={self.id} name={self.name!r} status={self.status}>"
