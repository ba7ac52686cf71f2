"""SQLite databases for repository and service tests."""
import os
import tempfile
import unittest
from unittest.mock import patch

os.environ.setdefault('SQLALCHEMY_CONNECTION_STRING', 'sqlite:///:memory:')

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tvbingefriend_notification_service.models import Base, Show
from tvbingefriend_notification_service.utils import enable_sqlite_savepoints


class DatabaseTestCase(unittest.TestCase):
    """Gives every test a fresh in-memory schema and routes db_session_manager to it."""

    def create_test_engine(self):
        return create_engine(
            'sqlite://',
            connect_args={'check_same_thread': False},
            poolclass=StaticPool,
        )

    def setUp(self):
        self.engine = enable_sqlite_savepoints(self.create_test_engine())
        Base.metadata.create_all(self.engine)
        self.addCleanup(self.engine.dispose)

        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        patcher = patch(
            'tvbingefriend_notification_service.utils.get_session_factory',
            return_value=self.session_factory
        )
        patcher.start()
        self.addCleanup(patcher.stop)

    def session(self):
        return self.session_factory()

    def add_show(self, show_id='tvmaze_1', name='Foo', imdb_id=None, provider='tvmaze', provider_id='1'):
        with self.session() as db:
            db.add(Show(
                id=show_id,
                name=name,
                status='running',
                imdb_id=imdb_id,
                provider=provider,
                provider_id=provider_id,
            ))
            db.commit()


class FileDatabaseTestCase(DatabaseTestCase):
    """Same as DatabaseTestCase but on a temporary file, so each thread gets its own connection."""

    def create_test_engine(self):
        tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(tmp_dir.cleanup)  # runs after the engine is disposed
        return create_engine(
            f"sqlite:///{os.path.join(tmp_dir.name, 'notifications.db')}",
            connect_args={'check_same_thread': False, 'timeout': 30},
        )
