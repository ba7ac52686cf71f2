import unittest

from tests.db_helpers import DatabaseTestCase
from tvbingefriend_notification_service.repos.subscription_repo import SubscriptionRepository
from tvbingefriend_notification_service.repos.user_repo import UserRepository


class TestSubscriptionRepository(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.repo = SubscriptionRepository()
        self.add_show(show_id='tvmaze_1', name='Foo', provider_id='1')
        self.add_show(show_id='tvmaze_2', name='Bar', provider_id='2')
        with self.session() as db:
            UserRepository().upsert_user(1, db)
            UserRepository().upsert_user(2, db)
            db.commit()

    def _follow(self, user_id, show_id):
        with self.session() as db:
            created = self.repo.follow(user_id, show_id, db)
            db.commit()
        return created

    def test_follow_is_idempotent(self):
        self.assertTrue(self._follow(1, 'tvmaze_1'))
        self.assertFalse(self._follow(1, 'tvmaze_1'))
        with self.session() as db:
            self.assertEqual(self.repo.count_for_user(1, db), 1)
            self.assertTrue(self.repo.is_following(1, 'tvmaze_1', db))
            self.assertFalse(self.repo.is_following(2, 'tvmaze_1', db))

    def test_unfollow(self):
        self._follow(1, 'tvmaze_1')
        with self.session() as db:
            self.assertTrue(self.repo.unfollow(1, 'tvmaze_1', db))
            self.assertFalse(self.repo.unfollow(1, 'tvmaze_1', db))
            db.commit()
        with self.session() as db:
            self.assertEqual(self.repo.count_for_user(1, db), 0)

    def test_list_shows_for_user_ordered_by_name(self):
        self._follow(1, 'tvmaze_1')
        self._follow(1, 'tvmaze_2')
        with self.session() as db:
            names = [show.name for show in self.repo.list_shows_for_user(1, db)]
        self.assertEqual(names, ['Bar', 'Foo'])

    def test_list_all_followed_show_ids_is_distinct(self):
        self._follow(1, 'tvmaze_1')
        self._follow(2, 'tvmaze_1')
        self._follow(2, 'tvmaze_2')
        with self.session() as db:
            self.assertEqual(self.repo.list_all_followed_show_ids(db), ['tvmaze_1', 'tvmaze_2'])

    def test_no_subscriptions(self):
        with self.session() as db:
            self.assertEqual(self.repo.list_all_followed_show_ids(db), [])
            self.assertEqual(self.repo.count_for_user(1, db), 0)


class TestUserRepository(DatabaseTestCase):

    def test_upsert_user_inserts_then_updates(self):
        repo = UserRepository()
        with self.session() as db:
            repo.upsert_user(7, db, username='first')
            db.commit()
        with self.session() as db:
            repo.upsert_user(7, db, username='second', first_name='Ann')
            db.commit()
        with self.session() as db:
            user = repo.get_by_id(7, db)
            self.assertEqual(user.username, 'second')
            self.assertEqual(user.first_name, 'Ann')


if __name__ == '__main__':
    unittest.main()
