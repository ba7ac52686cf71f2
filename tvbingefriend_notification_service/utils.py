"""Database and time utilities."""
import logging
from contextlib import contextmanager
from datetime import datetime, UTC
from functools import lru_cache
from typing import Any, Generator

from sqlalchemy import create_engine, event, Engine
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql import Executable

from tvbingefriend_notification_service.config import SQLALCHEMY_CONNECTION_STRING
from tvbingefriend_notification_service.models.base import Base


def enable_sqlite_savepoints(engine: Engine) -> Engine:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINTs nest inside the session transaction on SQLite."""
    # noinspection PyUnusedLocal
    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Create the database engine from the configured connection string."""
    if SQLALCHEMY_CONNECTION_STRING.startswith("sqlite"):
        return enable_sqlite_savepoints(create_engine(
            SQLALCHEMY_CONNECTION_STRING,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        ))
    return create_engine(SQLALCHEMY_CONNECTION_STRING, pool_pre_ping=True, pool_recycle=3600)


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker[Session]:
    """Session factory bound to the service engine."""
    return sessionmaker(bind=get_engine(), expire_on_commit=False)


def init_db() -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(get_engine())


@contextmanager
def db_session_manager() -> Generator[Session, None, None]:
    """Provide a transactional session: commit on success, roll back on error."""
    db: Session = get_session_factory()()
    try:
        yield db
        db.commit()
    except Exception as e:
        logging.error(f"db_session_manager: Rolling back session after error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


def insert_ignore(db: Session, model: type[Base], values: dict[str, Any]) -> Executable:
    """Build an INSERT that silently skips rows violating a unique constraint.

    Args:
        db (Session): Session whose bind decides the SQL dialect
        model (type[Base]): Mapped class to insert into
        values (dict[str, Any]): Column values

    Returns:
        Executable: Insert statement for the session's dialect
    """
    dialect = db.get_bind().dialect.name
    if dialect == "mysql":
        return mysql_insert(model).values(values).prefix_with("IGNORE")
    if dialect == "postgresql":
        return postgresql_insert(model).values(values).on_conflict_do_nothing()
    return sqlite_insert(model).values(values).on_conflict_do_nothing()


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.now(UTC).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)
