"""SQLAlchemy model for a canonical show."""
from datetime import date, datetime
from enum import Enum
from typing import Any

from sqlalchemy import String, Text, Date, DateTime, Index, UniqueConstraint, func
from sqlalchemy.orm import mapped_column, Mapped

from tvbingefriend_notification_service.models.base import Base


class ShowStatus(str, Enum):
    """Lifecycle status of a show."""
    RUNNING = "running"
    ENDED = "ended"
    UNKNOWN = "unknown"

    @classmethod
    def from_provider(cls, status: str | None) -> "ShowStatus":
        """Map a provider status string onto the lifecycle status."""
        normalized = (status or "").strip().lower()
        if normalized in ("running", "continuing", "returning series", "in production", "planned", "pilot"):
            return cls.RUNNING
        if normalized in ("ended", "canceled", "cancelled"):
            return cls.ENDED
        return cls.UNKNOWN


class Show(Base):
    """SQLAlchemy model for a canonical show."""
    __tablename__ = "shows"

    # Attributes
    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    overview: Mapped[str | None] = mapped_column(Text)
    poster_url: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=ShowStatus.UNKNOWN.value)
    first_air_date: Mapped[date | None] = mapped_column(Date)
    imdb_id: Mapped[str | None] = mapped_column(String(32))
    provider: Mapped[str] = mapped_column(String(32), nullable=False)
    provider_id: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint('provider', 'provider_id', name='uq_shows_provider_provider_id'),
        Index('uq_shows_imdb_id', 'imdb_id', unique=True),
    )

    @staticmethod
    def canonical_id(provider: str, provider_id: str) -> str:
        """Canonical show ID derived from provenance."""
        return f"{provider}_{provider_id}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize the show for API responses."""
        return {
            "id": self.id,
            "name": self.name,
            "overview": self.overview,
            "poster_url": self.poster_url,
            "status": self.status,
            "first_air_date": self.first_air_date.isoformat() if self.first_air_date else None,
            "imdb_id": self.imdb_id,
            "provider": self.provider,
            "provider_id": self.provider_id,
        }
