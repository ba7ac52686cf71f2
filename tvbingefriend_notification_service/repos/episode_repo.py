"""Repository for episodes"""
import logging
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tvbingefriend_notification_service.models.episode import Episode
from tvbingefriend_notification_service.models.subscription import Subscription
from tvbingefriend_notification_service.providers.base import EpisodeCandidate
from tvbingefriend_notification_service.utils import insert_ignore


# noinspection PyMethodMayBeStatic
class EpisodeRepository:
    """Repository for episodes"""
    def upsert_by_provenance(self, show_id: str, episode: EpisodeCandidate, db: Session) -> bool:
        """Insert an episode unless its canonical ID already exists

        Existing rows are left as they are; re-ingesting an episode never
        overwrites it.

        Args:
            show_id (str): Canonical ID of the owning show
            episode (EpisodeCandidate): Provider episode record
            db (Session): Database session

        Returns:
            bool: True if a new row was inserted
        """
        episode_id = Episode.canonical_id(episode.provider, episode.provider_id)  # build canonical id
        logging.debug(f"EpisodeRepository.upsert_by_provenance: episode_id: {episode_id}")

        insert_values: dict[str, Any] = {
            "id": episode_id,
            "show_id": show_id,
            "name": episode.name,
            "season_number": episode.season_number,
            "episode_number": episode.episode_number,
            "air_date": episode.air_date,
            "overview": episode.overview,
            "provider": episode.provider,
            "provider_id": episode.provider_id,
        }

        try:
            result = db.execute(insert_ignore(db, Episode, insert_values))  # insert, skipping existing rows
            db.flush()  # flush to database
        except SQLAlchemyError as e:  # catch any SQLAlchemy errors and log them
            logging.error(
                f"episode_repository.upsert_by_provenance: Database error during upsert of episode_id {episode_id}: {e}"
            )
            raise
        return bool(result.rowcount)  # 0 rows means it already existed

    def get_by_id(self, episode_id: str, db: Session) -> Episode | None:
        """Get an episode by its canonical ID"""
        return db.get(Episode, episode_id)

    def list_for_show(self, show_id: str, db: Session) -> list[Episode]:
        """List a show's episodes in season and episode order"""
        return list(db.scalars(
            select(Episode)
            .where(Episode.show_id == show_id)
            .order_by(Episode.season_number, Episode.episode_number)
        ))

    def next_upcoming_for_show(self, show_id: str, now: datetime, db: Session) -> Episode | None:
        """Get the next episode of a show airing after now"""
        return db.scalars(
            select(Episode)
            .where(Episode.show_id == show_id, Episode.air_date.is_not(None), Episode.air_date > now)
            .order_by(Episode.air_date)
            .limit(1)
        ).first()

    def list_due_for_show(self, show_id: str, start: datetime, end: datetime, db: Session) -> list[Episode]:
        """List a show's episodes airing strictly between start and end"""
        return list(db.scalars(
            select(Episode)
            .where(
                Episode.show_id == show_id,
                Episode.air_date.is_not(None),
                Episode.air_date > start,
                Episode.air_date < end,
            )
            .order_by(Episode.air_date)
        ))

    def list_upcoming_for_user(self, user_id: int, start: datetime, end: datetime, db: Session) -> list[Episode]:
        """List episodes of the user's followed shows airing strictly between start and end"""
        return list(db.scalars(
            select(Episode)
            .join(Subscription, Subscription.show_id == Episode.show_id)
            .where(
                Subscription.user_id == user_id,
                Episode.air_date.is_not(None),
                Episode.air_date > start,
                Episode.air_date < end,
            )
            .order_by(Episode.air_date)
        ))
