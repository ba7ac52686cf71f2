import unittest
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from tests.db_helpers import DatabaseTestCase
from tvbingefriend_notification_service.models import User
from tvbingefriend_notification_service.services.retry_service import ProviderRequestError
from tvbingefriend_notification_service.services.subscription_service import (
    FollowLimitReachedError,
    ShowNotFoundError,
    SubscriptionService,
)


class TestSubscriptionService(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.add_show(show_id='tvmaze_1', name='Foo', provider_id='1')
        self.add_show(show_id='tvmaze_2', name='Bar', provider_id='2')
        self.episode_service = MagicMock()
        self.notification_service = MagicMock()
        self.service = SubscriptionService(
            episode_service=self.episode_service,
            notification_service=self.notification_service,
            max_followed_shows=2,
        )

    def test_follow_show(self):
        result = self.service.follow_show(5, 'tvmaze_1', username='ann', first_name='Ann')

        self.assertTrue(result['followed'])
        self.assertEqual(result['show']['id'], 'tvmaze_1')
        self.assertTrue(self.service.is_following(5, 'tvmaze_1'))
        self.episode_service.ingest_all_episodes.assert_called_once()
        self.assertEqual(self.episode_service.ingest_all_episodes.call_args.args[0].id, 'tvmaze_1')
        self.notification_service.notify_show.assert_called_once()
        with self.session() as db:
            self.assertEqual(db.get(User, 5).username, 'ann')

    def test_follow_show_twice(self):
        self.service.follow_show(5, 'tvmaze_1')
        self.episode_service.reset_mock()

        result = self.service.follow_show(5, 'tvmaze_1')

        self.assertFalse(result['followed'])
        self.episode_service.ingest_all_episodes.assert_not_called()

    def test_follow_unknown_show(self):
        with self.assertRaises(ShowNotFoundError):
            self.service.follow_show(5, 'tvmaze_404')
        with self.session() as db:
            self.assertIsNone(db.get(User, 5))

    def test_follow_limit(self):
        self.add_show(show_id='tvmaze_3', name='Baz', provider_id='3')
        self.service.follow_show(5, 'tvmaze_1')
        self.service.follow_show(5, 'tvmaze_2')

        with self.assertRaises(FollowLimitReachedError):
            self.service.follow_show(5, 'tvmaze_3')
        self.assertFalse(self.service.is_following(5, 'tvmaze_3'))

    def test_follow_survives_ingestion_failure(self):
        self.episode_service.ingest_all_episodes.side_effect = ProviderRequestError("down")
        self.notification_service.notify_show.side_effect = OperationalError("SELECT", {}, Exception("locked"))

        result = self.service.follow_show(5, 'tvmaze_1')

        self.assertTrue(result['followed'])
        self.assertTrue(self.service.is_following(5, 'tvmaze_1'))

    def test_unfollow_show(self):
        self.service.follow_show(5, 'tvmaze_1')
        self.assertTrue(self.service.unfollow_show(5, 'tvmaze_1'))
        self.assertFalse(self.service.unfollow_show(5, 'tvmaze_1'))
        self.assertFalse(self.service.is_following(5, 'tvmaze_1'))

    def test_get_user_shows(self):
        self.service.follow_show(5, 'tvmaze_1')
        self.service.follow_show(5, 'tvmaze_2')
        self.assertEqual([show['name'] for show in self.service.get_user_shows(5)], ['Bar', 'Foo'])
        self.assertEqual(self.service.get_user_shows(6), [])


if __name__ == '__main__':
    unittest.main()
