"""Periodic sweep that notifies followers about episodes that are about to air."""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError

from tvbingefriend_notification_service.config import EPISODE_NOTIFICATION_THRESHOLD_HOURS, SWEEP_MAX_WORKERS
from tvbingefriend_notification_service.models.episode import Episode
from tvbingefriend_notification_service.models.show import Show
from tvbingefriend_notification_service.providers.base import clean_text
from tvbingefriend_notification_service.repos.episode_repo import EpisodeRepository
from tvbingefriend_notification_service.repos.notification_repo import NotificationRepository
from tvbingefriend_notification_service.repos.show_repo import ShowRepository
from tvbingefriend_notification_service.repos.subscription_repo import SubscriptionRepository
from tvbingefriend_notification_service.services.delivery_service import DeliveryChannel, TelegramDeliveryService
from tvbingefriend_notification_service.services.episode_service import EpisodeService, ProviderUnavailableError
from tvbingefriend_notification_service.services.retry_service import ProviderRequestError
from tvbingefriend_notification_service.utils import db_session_manager, utcnow

OVERVIEW_MAX_LENGTH = 150


@dataclass
class SweepResult:
    """Counters for one sweep, or for one show within a sweep."""
    shows_checked: int = 0
    shows_skipped: int = 0
    refresh_failures: int = 0
    episodes_due: int = 0
    notifications_sent: int = 0
    notifications_failed: int = 0
    skipped: bool = False

    def add(self, other: "SweepResult") -> None:
        self.shows_checked += other.shows_checked
        self.shows_skipped += other.shows_skipped
        self.refresh_failures += other.refresh_failures
        self.episodes_due += other.episodes_due
        self.notifications_sent += other.notifications_sent
        self.notifications_failed += other.notifications_failed

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def escape_markdown(text: str) -> str:
    """Escape the characters Telegram's legacy Markdown treats as markup."""
    for char in ("_", "*", "`", "["):
        text = text.replace(char, f"\\{char}")
    return text


def format_episode_message(show_name: str, episode: Episode) -> str:
    """Render the new-episode alert sent to followers."""
    message = (
        f"🔔 *New Episode Alert* 🔔\n\n"
        f"*{escape_markdown(show_name)}*\n"
        f"Season {episode.season_number}, Episode {episode.episode_number}: {escape_markdown(episode.name or '')}"
    )
    if episode.air_date is not None:
        air_date = episode.air_date
        message += f"\n\nAirs on {air_date:%A, %B} {air_date.day}, {air_date.year}"

    overview = clean_text(episode.overview)
    if overview:
        if len(overview) > OVERVIEW_MAX_LENGTH:
            overview = overview[:OVERVIEW_MAX_LENGTH - 3] + "..."
        message += f"\n\n{escape_markdown(overview)}"
    return message


class NotificationService:
    """Runs notification sweeps over every followed show.

    One sweep fetches the followed shows, then for each show refreshes its
    upcoming episodes from the provider, selects the episodes airing within
    the notification window and notifies every follower who has not been
    notified about them yet. Sweeps never overlap: a sweep requested while
    another is running is skipped.
    """
    def __init__(self,
                 episode_service: EpisodeService | None = None,
                 delivery: DeliveryChannel | None = None,
                 show_repository: ShowRepository | None = None,
                 episode_repository: EpisodeRepository | None = None,
                 subscription_repository: SubscriptionRepository | None = None,
                 notification_repository: NotificationRepository | None = None,
                 threshold: timedelta = timedelta(hours=EPISODE_NOTIFICATION_THRESHOLD_HOURS),
                 max_workers: int = SWEEP_MAX_WORKERS,
                 clock: Callable[[], datetime] = utcnow) -> None:
        self.episode_service = episode_service or EpisodeService()
        self.delivery = delivery or TelegramDeliveryService()
        self.show_repository = show_repository or ShowRepository()
        self.episode_repository = episode_repository or EpisodeRepository()
        self.subscription_repository = subscription_repository or SubscriptionRepository()
        self.notification_repository = notification_repository or NotificationRepository()
        self.threshold = threshold
        self.max_workers = max(1, max_workers)
        self._clock = clock

        self._sweep_lock = threading.Lock()
        self._shutdown = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._sweep_lock.locked()

    def request_shutdown(self) -> None:
        """Stop the running sweep after the shows already in progress."""
        logging.info("NotificationService.request_shutdown: Shutdown requested")
        self._shutdown.set()

    def run_sweep(self) -> SweepResult:
        """Run one sweep unless another one is in progress.

        Returns:
            SweepResult: Sweep counters; skipped is True if a sweep was already running
        """
        if not self._sweep_lock.acquire(blocking=False):
            logging.warning("NotificationService.run_sweep: Previous sweep still running, skipping this tick")
            return SweepResult(skipped=True)
        try:
            return self._sweep()
        finally:
            self._sweep_lock.release()

    def _sweep(self) -> SweepResult:
        started = self._clock()
        with db_session_manager() as db:
            show_ids = self.subscription_repository.list_all_followed_show_ids(db)
        logging.info(f"NotificationService.run_sweep: Checking {len(show_ids)} followed shows")

        result = SweepResult()
        if not show_ids:
            return result

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(show_ids))) as executor:
            # one task per show
            futures = {executor.submit(self.process_show, show_id): show_id for show_id in show_ids}
            for future in as_completed(futures):  # tally as they finish
                try:
                    result.add(future.result())
                except Exception as e:  # one bad show never stops the sweep
                    logging.error(
                        f"NotificationService.run_sweep: Unhandled error processing show {futures[future]}: {e}",
                        exc_info=True
                    )

        elapsed = (self._clock() - started).total_seconds()
        logging.info(
            f"NotificationService.run_sweep: Finished in {elapsed:.1f}s: {result.shows_checked} shows checked, "
            f"{result.episodes_due} episodes due, {result.notifications_sent} notifications sent, "
            f"{result.notifications_failed} failed, {result.refresh_failures} refresh failures"
        )
        return result

    def process_show(self, show_id: str) -> SweepResult:
        """Refresh, evaluate and dispatch for one followed show."""
        if self._shutdown.is_set():
            logging.info(f"NotificationService.process_show: Shutting down, skipping show {show_id}")
            return SweepResult(shows_skipped=1)

        with db_session_manager() as db:
            show = self.show_repository.get_by_id(show_id, db)
        if show is None:
            logging.warning(f"NotificationService.process_show: Followed show {show_id} not found")
            return SweepResult()

        result = SweepResult(shows_checked=1)
        if not self.refresh_episodes(show):
            result.refresh_failures = 1
        result.add(self.notify_show(show))
        return result

    def refresh_episodes(self, show: Show) -> bool:
        """Store the show's upcoming episodes; a failure leaves stored data as is.

        Returns:
            bool: True if the refresh succeeded
        """
        try:
            self.episode_service.ingest_upcoming_episodes(show)
            return True
        except (ProviderRequestError, ProviderUnavailableError, SQLAlchemyError) as e:
            logging.warning(f"NotificationService.refresh_episodes: Using stored episodes for show {show.id}: {e}")
            return False

    def find_due_episodes(self, show_id: str, now: datetime | None = None) -> list[Episode]:
        """Stored episodes of a show airing within (now, now + threshold)."""
        now = now or self._clock()
        with db_session_manager() as db:
            return self.episode_repository.list_due_for_show(show_id, now, now + self.threshold, db)

    def notify_show(self, show: Show) -> SweepResult:
        """Notify followers about every due episode of one show."""
        due_episodes = self.find_due_episodes(show.id)
        result = SweepResult(episodes_due=len(due_episodes))
        for episode in due_episodes:
            sent, failed = self.dispatch_episode(show, episode)
            result.notifications_sent += sent
            result.notifications_failed += failed
        return result

    def dispatch_episode(self, show: Show, episode: Episode) -> tuple[int, int]:
        """Notify every follower of the show not yet notified about the episode.

        The message is sent before the notification is recorded. If recording
        fails after a successful send, the user may get the alert again on the
        next sweep; a send failure leaves no record so the alert is retried.

        Returns:
            tuple[int, int]: Messages sent and messages failed
        """
        with db_session_manager() as db:
            user_ids = self.notification_repository.users_to_notify(episode.id, show.id, db)
        if not user_ids:  # everyone already notified
            return 0, 0

        logging.info(f"NotificationService.dispatch_episode: Notifying {len(user_ids)} users about {episode.id}")
        message = format_episode_message(show.name, episode)
        sent = failed = 0
        for user_id in user_ids:
            try:
                self.delivery.send(user_id, message)
            except Exception as e:
                logging.error(f"Error sending notification about {episode.id} to user {user_id}: {e}")
                failed += 1
                continue  # no record, retried next sweep
            sent += 1

            try:
                with db_session_manager() as db:
                    self.notification_repository.record(user_id, episode.id, db)
            except SQLAlchemyError as e:
                logging.error(
                    f"Error recording notification about {episode.id} for user {user_id}, "
                    f"it may be sent again: {e}"
                )
        return sent, failed


@lru_cache(maxsize=1)
def get_notification_service() -> NotificationService:
    """The worker process's notification service.

    Timer and manual sweeps share this instance so its sweep lock serializes them.
    """
    return NotificationService()
