"""Repository for episode notification records"""
import logging
from datetime import datetime

from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tvbingefriend_notification_service.models.notification import Notification
from tvbingefriend_notification_service.models.subscription import Subscription
from tvbingefriend_notification_service.utils import insert_ignore, utcnow


# noinspection PyMethodMayBeStatic
class NotificationRepository:
    """Repository for episode notification records"""
    def users_to_notify(self, episode_id: str, show_id: str, db: Session) -> list[int]:
        """List subscribers of a show who have no notification record for an episode

        Args:
            episode_id (str): Canonical episode ID
            show_id (str): Canonical ID of the episode's show
            db (Session): Database session

        Returns:
            list[int]: User IDs still to be notified
        """
        stmt = (
            select(Subscription.user_id)  # followers of the show
            .outerjoin(  # left join finds followers with no record
                Notification,
                and_(Notification.user_id == Subscription.user_id, Notification.episode_id == episode_id),
            )
            .where(Subscription.show_id == show_id, Notification.id.is_(None))
            .order_by(Subscription.user_id)
        )
        return list(db.scalars(stmt))

    def record(self, user_id: int, episode_id: str, db: Session, notified_at: datetime | None = None) -> bool:
        """Record that a user was notified about an episode

        A record that already exists counts as success.

        Returns:
            bool: True if a new record was written, False if one already existed
        """
        # create insert values
        values = {"user_id": user_id, "episode_id": episode_id, "notified_at": notified_at or utcnow()}
        try:
            result = db.execute(insert_ignore(db, Notification, values))  # unique (user, episode) drops duplicates
            db.flush()
        except SQLAlchemyError as e:
            logging.error(
                f"notification_repository.record: Database error for user {user_id}, episode {episode_id}: {e}"
            )
            raise
        return bool(result.rowcount)
