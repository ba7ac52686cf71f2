"""Service for following and unfollowing shows."""
import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from tvbingefriend_notification_service.config import MAX_FOLLOWED_SHOWS
from tvbingefriend_notification_service.repos.show_repo import ShowRepository
from tvbingefriend_notification_service.repos.subscription_repo import SubscriptionRepository
from tvbingefriend_notification_service.repos.user_repo import UserRepository
from tvbingefriend_notification_service.services.episode_service import EpisodeService, ProviderUnavailableError
from tvbingefriend_notification_service.services.notification_service import NotificationService
from tvbingefriend_notification_service.services.retry_service import ProviderRequestError
from tvbingefriend_notification_service.utils import db_session_manager


class ShowNotFoundError(LookupError):
    """No canonical show exists with the requested ID."""


class FollowLimitReachedError(RuntimeError):
    """The user already follows the maximum number of shows."""


class SubscriptionService:
    """Service for following and unfollowing shows."""
    def __init__(self,
                 show_repository: ShowRepository | None = None,
                 subscription_repository: SubscriptionRepository | None = None,
                 user_repository: UserRepository | None = None,
                 episode_service: EpisodeService | None = None,
                 notification_service: NotificationService | None = None,
                 max_followed_shows: int = MAX_FOLLOWED_SHOWS) -> None:
        self.show_repository = show_repository or ShowRepository()
        self.subscription_repository = subscription_repository or SubscriptionRepository()
        self.user_repository = user_repository or UserRepository()
        self.episode_service = episode_service or EpisodeService()
        self.notification_service = notification_service or NotificationService(episode_service=self.episode_service)
        self.max_followed_shows = max_followed_shows

    def follow_show(self,
                    user_id: int,
                    show_id: str,
                    username: str | None = None,
                    first_name: str | None = None,
                    last_name: str | None = None) -> dict[str, Any]:
        """Subscribe a user to a show.

        A new subscription triggers a full episode ingestion for the show and
        an immediate notification pass, so alerts for episodes already inside
        the notification window are not held back until the next sweep.
        Failures in either step are logged; the subscription stands.

        Args:
            user_id (int): Chat platform user ID
            show_id (str): Canonical show ID
            username (str | None): User display metadata
            first_name (str | None): User display metadata
            last_name (str | None): User display metadata

        Returns:
            dict[str, Any]: The show and whether the subscription is new

        Raises:
            ShowNotFoundError: If the show does not exist
            FollowLimitReachedError: If the user follows too many shows
        """
        with db_session_manager() as db:
            show = self.show_repository.get_by_id(show_id, db)
            if show is None:
                raise ShowNotFoundError(f"Show {show_id} not found")

            self.user_repository.upsert_user(user_id, db, username=username, first_name=first_name, last_name=last_name)
            if self.subscription_repository.is_following(user_id, show_id, db):
                return {"show": show.to_dict(), "followed": False}

            if self.subscription_repository.count_for_user(user_id, db) >= self.max_followed_shows:
                raise FollowLimitReachedError(
                    f"User {user_id} already follows {self.max_followed_shows} shows"
                )
            created = self.subscription_repository.follow(user_id, show_id, db)

        logging.info(f"SubscriptionService.follow_show: User {user_id} now follows {show_id}")
        if created:
            try:
                self.episode_service.ingest_all_episodes(show)
            except (ProviderRequestError, ProviderUnavailableError, SQLAlchemyError) as e:
                logging.error(f"SubscriptionService.follow_show: Error storing episodes for show {show_id}: {e}")
            try:
                self.notification_service.notify_show(show)
            except SQLAlchemyError as e:
                logging.error(f"SubscriptionService.follow_show: Failed to notify show episodes for {show_id}: {e}")

        return {"show": show.to_dict(), "followed": created}

    def unfollow_show(self, user_id: int, show_id: str) -> bool:
        """Remove a user's subscription.

        Returns:
            bool: True if the user was following the show
        """
        with db_session_manager() as db:
            removed = self.subscription_repository.unfollow(user_id, show_id, db)
        if removed:
            logging.info(f"SubscriptionService.unfollow_show: User {user_id} unfollowed {show_id}")
        return removed

    def is_following(self, user_id: int, show_id: str) -> bool:
        with db_session_manager() as db:
            return self.subscription_repository.is_following(user_id, show_id, db)

    def get_user_shows(self, user_id: int) -> list[dict[str, Any]]:
        """Get the shows a user follows."""
        with db_session_manager() as db:
            return [show.to_dict() for show in self.subscription_repository.list_shows_for_user(user_id, db)]
