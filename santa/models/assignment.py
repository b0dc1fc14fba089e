# santa/models/assignment.py
# -----------------------------------------------------------------------------
# МОДЕЛЬ: Assignment - пара "кто дарит → кому" + статус подарка
# -----------------------------------------------------------------------------
# Граф (giver_id, receiver_id) пишется одним батчем при жеребьёвке и больше
# не меняется. Меняются только поля gift_*/purchased_at/delivered_at.

from __future__ import annotations

import enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    ForeignKey,
    Enum,
    DateTime,
    UniqueConstraint,
    CheckConstraint,
    func,
    text,
)
from sqlalchemy.orm import relationship

from ..db import Base


class GiftStatus(str, enum.Enum):
    pending = "pending"
    purchased = "purchased"
    delivered = "delivered"


# порядок стадий для проверки переходов
GIFT_STATUS_ORDER = {
    GiftStatus.pending: 0,
    GiftStatus.purchased: 1,
    GiftStatus.delivered: 2,
}


class Assignment(Base):
    __tablename__ = "santa_assignments"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("santa_events.id", ondelete="CASCADE"), nullable=False, index=True)
    giver_id = Column(Integer, ForeignKey("event_participants.id", ondelete="CASCADE"), nullable=False)
    receiver_id = Column(Integer, ForeignKey("event_participants.id", ondelete="CASCADE"), nullable=False)

    gift_status = Column(
        Enum(GiftStatus, name="gift_status"),
        nullable=False,
        default=GiftStatus.pending,
        server_default=text("'pending'"),
        comment="Статус подарка: pending|purchased|delivered",
    )
    gift_photo_url = Column(String(512), nullable=True)
    gift_note = Column(Text, nullable=True)
    purchased_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        # второй батч на то же событие упадёт здесь
        UniqueConstraint("event_id", "giver_id", name="uq_santa_assignments_event_giver"),
        UniqueConstraint("event_id", "receiver_id", name="uq_santa_assignments_event_receiver"),
        CheckConstraint("giver_id <> receiver_id", name="ck_santa_assignments_no_self"),
    )

    event = relationship("SantaEvent", back_populates="assignments")
    giver = relationship("Participant", foreign_keys=[giver_id])
    receiver = relationship("Participant", foreign_keys=[receiver_id])

    def __repr__(self) -> str:
        return f"<Assignment id={self.id} event={self.event_id} {self.giver_id}->{self.receiver_id} {self.gift_status}>"
