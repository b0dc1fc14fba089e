# santa/models/friend.py
# Дружба двух пользователей: появляется, когда один вступает в событие по ссылке другого.
# Одна строка на пару, хранится как (user_min, user_max), user_min < user_max.

from sqlalchemy import Column, Integer, ForeignKey, DateTime, UniqueConstraint, CheckConstraint, Index, func
from sqlalchemy.orm import relationship
from santa.db import Base


class Friend(Base):
    __tablename__ = "friends"

    id = Column(Integer, primary_key=True, index=True)
    user_min = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_max = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # событие, через которое познакомились (без FK: событие могут удалить)
    source_event_id = Column(Integer, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_min", "user_max", name="uq_friend_pair"),
        CheckConstraint("user_min < user_max", name="ck_friend_min_lt_max"),
        Index("ix_friends_user_min", "user_min"),
        Index("ix_friends_user_max", "user_max"),
    )

    low_user = relationship("User", foreign_keys=[user_min])
    high_user = relationship("User", foreign_keys=[user_max])

    def other(self, user_id: int) -> int:
        """id второго участника пары."""
        return self.user_max if self.user_min == user_id else self.user_min

    def __repr__(self):
        return f"<Friend({self.user_min}<->{self.user_max}, via event={self.source_event_id})>"
