"""Service for episode ingestion and episode queries."""
import logging
from datetime import timedelta
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tvbingefriend_notification_service.config import UPCOMING_WINDOW_DAYS
from tvbingefriend_notification_service.models.show import Show
from tvbingefriend_notification_service.providers import ProviderClient, build_providers
from tvbingefriend_notification_service.providers.base import EpisodeCandidate
from tvbingefriend_notification_service.repos.episode_repo import EpisodeRepository
from tvbingefriend_notification_service.utils import db_session_manager, utcnow


class ProviderUnavailableError(LookupError):
    """The provider a show came from is not configured."""


# noinspection PyMethodMayBeStatic
class EpisodeService:
    """Service for episode ingestion and episode queries."""
    def __init__(self,
                 episode_repository: EpisodeRepository | None = None,
                 providers: dict[str, ProviderClient] | None = None,
                 upcoming_window_days: int = UPCOMING_WINDOW_DAYS) -> None:
        self.episode_repository = episode_repository or EpisodeRepository()
        self.providers = providers if providers is not None else build_providers()
        self.upcoming_window = timedelta(days=upcoming_window_days)

    def provider_for(self, show: Show) -> ProviderClient:
        """Get the client for the provider a show was created from.

        Raises:
            ProviderUnavailableError: If that provider is not configured
        """
        provider = self.providers.get(show.provider)
        if provider is None:
            raise ProviderUnavailableError(f"No provider client configured for '{show.provider}'")
        return provider

    def ingest(self, show_id: str, episodes: list[EpisodeCandidate], db: Session) -> int:
        """Store a batch of provider episodes for a show.

        Episodes already stored are left untouched. A row the database rejects
        is logged and skipped without affecting the rest of the batch.

        Args:
            show_id (str): Canonical ID of the owning show
            episodes (list[EpisodeCandidate]): Provider episodes
            db (Session): Database session

        Returns:
            int: Number of newly stored episodes
        """
        new_count = 0
        for episode in episodes:
            try:
                with db.begin_nested():
                    if self.episode_repository.upsert_by_provenance(show_id, episode, db):
                        new_count += 1
            except SQLAlchemyError as err:
                logging.error(
                    f"Failed to store episode {episode.provider}:{episode.provider_id} for show {show_id}: {err}"
                )

        logging.info(f"EpisodeService.ingest: Stored {new_count} new of {len(episodes)} episodes for show {show_id}")
        return new_count

    def ingest_all_episodes(self, show: Show) -> int:
        """Fetch and store every episode the show's provider knows.

        Raises:
            ProviderUnavailableError: If the show's provider is not configured
            ProviderRequestError: If the provider call fails
        """
        logging.info(f"EpisodeService.ingest_all_episodes: Getting all episodes for show {show.id}")
        episodes = self.provider_for(show).list_episodes(show.provider_id)
        with db_session_manager() as db:
            return self.ingest(show.id, episodes, db)

    def ingest_upcoming_episodes(self, show: Show) -> int:
        """Fetch and store only the show's not-yet-aired episodes.

        Raises:
            ProviderUnavailableError: If the show's provider is not configured
            ProviderRequestError: If the provider call fails
        """
        logging.info(f"EpisodeService.ingest_upcoming_episodes: Getting upcoming episodes for show {show.id}")
        episodes = self.provider_for(show).list_upcoming_episodes(show.provider_id)
        with db_session_manager() as db:
            return self.ingest(show.id, episodes, db)

    def get_show_episodes(self, show_id: str) -> list[dict[str, Any]]:
        """Get all stored episodes of a show."""
        with db_session_manager() as db:
            return [episode.to_dict() for episode in self.episode_repository.list_for_show(show_id, db)]

    def get_next_episode(self, show_id: str) -> dict[str, Any] | None:
        """Get the next stored episode of a show that has not aired yet."""
        with db_session_manager() as db:
            episode = self.episode_repository.next_upcoming_for_show(show_id, utcnow(), db)
            return episode.to_dict() if episode else None

    def get_upcoming_episodes_for_user(self, user_id: int) -> list[dict[str, Any]]:
        """Get episodes of the user's followed shows airing within the upcoming window."""
        now = utcnow()
        with db_session_manager() as db:
            episodes = self.episode_repository.list_upcoming_for_user(user_id, now, now + self.upcoming_window, db)
            return [episode.to_dict() for episode in episodes]
