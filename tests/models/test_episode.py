import os
import unittest
from datetime import datetime

os.environ.setdefault('SQLALCHEMY_CONNECTION_STRING', 'sqlite:///:memory:')

from tvbingefriend_notification_service.models.episode import Episode
from tvbingefriend_notification_service.models.notification import Notification
from tvbingefriend_notification_service.models.subscription import Subscription


class TestEpisodeModel(unittest.TestCase):

    def test_canonical_id(self):
        self.assertEqual(Episode.canonical_id('tvmaze', '4952'), 'tvmaze_4952')

    def test_to_dict(self):
        episode = Episode(
            id='tvmaze_4952',
            show_id='tvmaze_82',
            name='Winter Is Coming',
            season_number=1,
            episode_number=1,
            air_date=datetime(2011, 4, 18, 1, 0),
            overview='Lord Stark is troubled.',
            provider='tvmaze',
            provider_id='4952',
        )
        data = episode.to_dict()
        self.assertEqual(data['id'], 'tvmaze_4952')
        self.assertEqual(data['show_id'], 'tvmaze_82')
        self.assertEqual(data['air_date'], '2011-04-18T01:00:00')
        self.assertEqual(data['season_number'], 1)
        self.assertEqual(data['episode_number'], 1)

    def test_to_dict_without_air_date(self):
        episode = Episode(id='tmdb_9', show_id='tmdb_1', name='TBA', season_number=2, episode_number=1,
                          provider='tmdb', provider_id='9')
        self.assertIsNone(episode.to_dict()['air_date'])

    def test_episode_table_constraints(self):
        table = Episode.__table__
        self.assertIn('uq_episodes_provider_provider_id', {c.name for c in table.constraints})
        self.assertEqual(
            {index.name for index in table.indexes},
            {'idx_episodes_show_season_number', 'idx_episodes_show_air_date'}
        )

    def test_notification_is_unique_per_user_and_episode(self):
        constraint = next(c for c in Notification.__table__.constraints if c.name == 'uq_notifications_user_episode')
        self.assertEqual([col.name for col in constraint.columns], ['user_id', 'episode_id'])

    def test_subscription_primary_key(self):
        self.assertEqual([col.name for col in Subscription.__table__.primary_key.columns], ['user_id', 'show_id'])


if __name__ == '__main__':
    unittest.main()
