# santa/models/achievement.py

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint, func
from santa.db import Base


class UserAchievement(Base):
    """
    Открытое достижение пользователя. Тип - строковый код (first_event, five_gifts, ...),
    список кодов живёт в santa.services.gamification.
    """
    __tablename__ = "user_achievements"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    achievement_type = Column(String(32), nullable=False)
    unlocked_at = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "achievement_type", name="uq_user_achievements_user_type"),
    )

    def __repr__(self):
        return f"<UserAchievement(user_id={self.user_id}, type={self.achievement_type})>"
