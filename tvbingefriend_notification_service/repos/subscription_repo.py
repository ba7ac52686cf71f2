"""Repository for show subscriptions"""
import logging

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tvbingefriend_notification_service.models.show import Show
from tvbingefriend_notification_service.models.subscription import Subscription
from tvbingefriend_notification_service.utils import insert_ignore


# noinspection PyMethodMayBeStatic
class SubscriptionRepository:
    """Repository for show subscriptions"""
    def follow(self, user_id: int, show_id: str, db: Session) -> bool:
        """Subscribe a user to a show

        Returns:
            bool: True if the subscription is new
        """
        try:
            # no-op if already following
            result = db.execute(insert_ignore(db, Subscription, {"user_id": user_id, "show_id": show_id}))
            db.flush()
        except SQLAlchemyError as e:  # catch any SQLAlchemy errors and log them
            logging.error(f"subscription_repository.follow: Database error for user {user_id}, show {show_id}: {e}")
            raise
        return bool(result.rowcount)

    def unfollow(self, user_id: int, show_id: str, db: Session) -> bool:
        """Remove a user's subscription to a show

        Returns:
            bool: True if a subscription was removed
        """
        try:
            result = db.execute(
                delete(Subscription).where(Subscription.user_id == user_id, Subscription.show_id == show_id)
            )
            db.flush()  # flush to database
        except SQLAlchemyError as e:
            logging.error(f"subscription_repository.unfollow: Database error for user {user_id}, show {show_id}: {e}")
            raise
        return bool(result.rowcount)

    def is_following(self, user_id: int, show_id: str, db: Session) -> bool:
        return db.get(Subscription, (user_id, show_id)) is not None

    def count_for_user(self, user_id: int, db: Session) -> int:
        return db.scalar(select(func.count()).select_from(Subscription).where(Subscription.user_id == user_id)) or 0

    def list_shows_for_user(self, user_id: int, db: Session) -> list[Show]:
        """List the shows a user follows, by name"""
        return list(db.scalars(
            select(Show)
            .join(Subscription, Subscription.show_id == Show.id)
            .where(Subscription.user_id == user_id)
            .order_by(Show.name)
        ))

    def list_all_followed_show_ids(self, db: Session) -> list[str]:
        """List the distinct IDs of shows with at least one subscriber"""
        return list(db.scalars(select(Subscription.show_id).distinct().order_by(Subscription.show_id)))
