"""Repository for chat users"""
import logging

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tvbingefriend_notification_service.models.user import User
from tvbingefriend_notification_service.utils import insert_ignore


# noinspection PyMethodMayBeStatic
class UserRepository:
    """Repository for chat users"""
    def upsert_user(self,
                    user_id: int,
                    db: Session,
                    username: str | None = None,
                    first_name: str | None = None,
                    last_name: str | None = None) -> None:
        """Insert a user or refresh their display fields

        Args:
            user_id (int): Chat platform user ID
            db (Session): Database session
            username (str | None): Username
            first_name (str | None): First name
            last_name (str | None): Last name
        """
        values = {"username": username, "first_name": first_name, "last_name": last_name}
        try:
            result = db.execute(insert_ignore(db, User, {"id": user_id, **values}))  # insert new user
            if not result.rowcount:  # user exists, refresh display fields
                db.execute(update(User).where(User.id == user_id).values(**values))
            db.flush()
        except SQLAlchemyError as e:
            logging.error(f"user_repository.upsert_user: Database error for user {user_id}: {e}")
            raise

    def get_by_id(self, user_id: int, db: Session) -> User | None:
        return db.get(User, user_id)
