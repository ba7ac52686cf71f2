"""SQLAlchemy model for an episode."""
from datetime import datetime
from typing import Any

from sqlalchemy import String, Integer, Text, DateTime, ForeignKey, Index, UniqueConstraint, func
from sqlalchemy.orm import mapped_column, Mapped

from tvbingefriend_notification_service.models.base import Base


class Episode(Base):
    """SQLAlchemy model for an episode."""
    __tablename__ = "episodes"

    # Attributes
    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    show_id: Mapped[str] = mapped_column(String(255), ForeignKey("shows.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    season_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    episode_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    air_date: Mapped[datetime | None] = mapped_column(DateTime)
    overview: Mapped[str | None] = mapped_column(Text)
    provider: Mapped[str] = mapped_column(String(32), nullable=False)
    provider_id: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())

    # Indexes for query optimization
    __table_args__ = (
        UniqueConstraint('provider', 'provider_id', name='uq_episodes_provider_provider_id'),
        Index('idx_episodes_show_season_number', 'show_id', 'season_number', 'episode_number'),
        Index('idx_episodes_show_air_date', 'show_id', 'air_date'),
    )

    @staticmethod
    def canonical_id(provider: str, provider_id: str) -> str:
        """Canonical episode ID derived from provenance."""
        return f"{provider}_{provider_id}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize the episode for API responses."""
        return {
            "id": self.id,
            "show_id": self.show_id,
            "name": self.name,
            "season_number": self.season_number,
            "episode_number": self.episode_number,
            "air_date": self.air_date.isoformat() if self.air_date else None,
            "overview": self.overview,
            "provider": self.provider,
            "provider_id": self.provider_id,
        }
