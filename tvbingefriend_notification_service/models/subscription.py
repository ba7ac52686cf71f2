"""SQLAlchemy model for a user following a show."""
from datetime import datetime

from sqlalchemy import BigInteger, String, DateTime, ForeignKey, Index, func
from sqlalchemy.orm import mapped_column, Mapped

from tvbingefriend_notification_service.models.base import Base


class Subscription(Base):
    """SQLAlchemy model for a user following a show."""
    __tablename__ = "user_shows"

    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, autoincrement=False
    )
    show_id: Mapped[str] = mapped_column(String(255), ForeignKey("shows.id", ondelete="CASCADE"), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        Index('idx_user_shows_show_id', 'show_id'),
    )
