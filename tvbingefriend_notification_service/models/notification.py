"""SQLAlchemy model for a delivered episode notification."""
from datetime import datetime

from sqlalchemy import BigInteger, Integer, String, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import mapped_column, Mapped

from tvbingefriend_notification_service.models.base import Base


class Notification(Base):
    """SQLAlchemy model for a delivered episode notification.

    The (user_id, episode_id) unique constraint is what keeps a user from being
    notified twice about the same episode, including across concurrent sweeps.
    """
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    episode_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("episodes.id", ondelete="CASCADE"), nullable=False
    )
    notified_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint('user_id', 'episode_id', name='uq_notifications_user_episode'),
    )
