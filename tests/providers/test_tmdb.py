import os
import unittest
from datetime import date, datetime
from unittest.mock import MagicMock, patch

os.environ.setdefault('SQLALCHEMY_CONNECTION_STRING', 'sqlite:///:memory:')

from tvbingefriend_notification_service.providers.tmdb import TMDBClient
from tvbingefriend_notification_service.services.retry_service import ProviderRequestError, RetryService


def _response(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = ''
    return response


DETAILS = {
    "id": 1399,
    "name": "Game of Thrones",
    "overview": "Seven noble families fight for control of the mythical land of Westeros.",
    "poster_path": "/got.jpg",
    "status": "Ended",
    "first_air_date": "2011-04-17",
    "external_ids": {"imdb_id": "tt0944947"},
    "seasons": [{"season_number": 0}, {"season_number": 2}, {"season_number": 1}],
}


class TestTMDBClient(unittest.TestCase):

    def setUp(self):
        self.session = MagicMock()
        self.responses = {}
        self.session.request.side_effect = self._route
        self.client = TMDBClient(
            api_key='secret',
            base_url='https://api.themoviedb.org/3',
            image_base_url='https://image.tmdb.org/t/p/w500/',
            retry_service=RetryService(max_retries=0, sleep=lambda _: None),
            session=self.session,
        )

    def _route(self, method, url, **kwargs):
        path = url.removeprefix('https://api.themoviedb.org/3')
        if path not in self.responses:
            return _response({"status_message": "not found"}, status_code=404)
        return _response(self.responses[path])

    def _requested_paths(self):
        return [call.args[1].removeprefix('https://api.themoviedb.org/3') for call in self.session.request.call_args_list]

    def test_requires_api_key(self):
        with self.assertRaisesRegex(ValueError, 'TMDB_API_KEY'):
            TMDBClient(api_key='  ')

    def test_search_shows_resolves_details(self):
        self.responses['/search/tv'] = {"results": [
            {"id": 1399, "name": "Game of Thrones", "overview": "", "poster_path": None,
             "first_air_date": "2011-04-17"},
        ]}
        self.responses['/tv/1399'] = DETAILS

        shows = self.client.search_shows('thrones')

        self.assertEqual(len(shows), 1)
        show = shows[0]
        self.assertEqual(show.provider, 'tmdb')
        self.assertEqual(show.provider_id, '1399')
        self.assertEqual(show.imdb_id, 'tt0944947')
        self.assertEqual(show.status, 'Ended')
        self.assertEqual(show.poster_url, 'https://image.tmdb.org/t/p/w500/got.jpg')
        self.assertTrue(show.overview.startswith('Seven noble families'))
        self.assertEqual(show.first_air_date, date(2011, 4, 17))

        search_call = self.session.request.call_args_list[0]
        self.assertEqual(search_call.kwargs['params'], {'api_key': 'secret', 'query': 'thrones'})
        details_call = self.session.request.call_args_list[1]
        self.assertEqual(details_call.kwargs['params']['append_to_response'], 'external_ids')

    def test_search_shows_keeps_result_when_details_fail(self):
        self.responses['/search/tv'] = {"results": [{"id": 7, "name": "Foo", "overview": "About Foo"}]}

        shows = self.client.search_shows('foo')

        self.assertEqual(len(shows), 1)
        self.assertEqual(shows[0].overview, 'About Foo')
        self.assertIsNone(shows[0].imdb_id)

    def test_search_shows_tolerates_wrongly_typed_items(self):
        self.responses['/search/tv'] = {"results": [
            "garbage",
            {"id": 7, "name": "Foo", "external_ids": "tt0000007"},
        ]}
        self.responses['/tv/7'] = {"id": 7, "name": "Foo", "status": "Running", "external_ids": "tt0000007"}

        shows = self.client.search_shows('foo')

        self.assertEqual([show.provider_id for show in shows], ['7'])
        self.assertIsNone(shows[0].imdb_id)
        self.assertEqual(shows[0].status, 'Running')

    def test_search_shows_without_results_list(self):
        self.responses['/search/tv'] = {"page": 1}
        with self.assertRaises(ProviderRequestError):
            self.client.search_shows('foo')

    def test_get_show_details(self):
        self.responses['/tv/1399'] = DETAILS
        show = self.client.get_show_details('1399')
        self.assertEqual(show.imdb_id, 'tt0944947')

    def test_list_episodes_skips_specials_and_failed_seasons(self):
        self.responses['/tv/1399'] = DETAILS
        self.responses['/tv/1399/season/1'] = {"episodes": [
            {"id": 63056, "name": "Winter Is Coming", "season_number": 1, "episode_number": 1,
             "air_date": "2011-04-17", "overview": "Lord Stark is troubled."},
        ]}
        # season 2 is missing and answers 404

        episodes = self.client.list_episodes('1399')

        self.assertEqual([episode.provider_id for episode in episodes], ['63056'])
        self.assertEqual(episodes[0].air_date, datetime(2011, 4, 17))
        self.assertNotIn('/tv/1399/season/0', self._requested_paths())
        self.assertIn('/tv/1399/season/2', self._requested_paths())

    @patch('tvbingefriend_notification_service.providers.tmdb.utcnow')
    def test_list_upcoming_episodes_starts_at_next_episode_season(self, mock_utcnow):
        mock_utcnow.return_value = datetime(2024, 5, 1)
        self.responses['/tv/1399'] = dict(DETAILS, next_episode_to_air={"season_number": 2})
        self.responses['/tv/1399/season/2'] = {"episodes": [
            {"id": 1, "name": "Aired", "episode_number": 1, "air_date": "2024-04-20"},
            {"id": 2, "name": "Soon", "episode_number": 2, "air_date": "2024-05-05"},
            {"id": 3, "name": "TBA", "episode_number": 3, "air_date": None},
        ]}

        episodes = self.client.list_upcoming_episodes('1399')

        self.assertEqual([episode.provider_id for episode in episodes], ['2'])
        self.assertEqual(episodes[0].season_number, 2)
        self.assertNotIn('/tv/1399/season/1', self._requested_paths())

    @patch('tvbingefriend_notification_service.providers.tmdb.utcnow')
    def test_list_upcoming_episodes_without_next_episode_uses_latest_season(self, mock_utcnow):
        mock_utcnow.return_value = datetime(2024, 5, 1)
        self.responses['/tv/1399'] = dict(DETAILS, next_episode_to_air=None)
        self.responses['/tv/1399/season/2'] = {"episodes": []}

        self.assertEqual(self.client.list_upcoming_episodes('1399'), [])
        self.assertEqual(self._requested_paths(), ['/tv/1399', '/tv/1399/season/2'])

    @patch('tvbingefriend_notification_service.providers.tmdb.utcnow')
    def test_list_upcoming_episodes_with_wrongly_typed_fields(self, mock_utcnow):
        mock_utcnow.return_value = datetime(2024, 5, 1)
        self.responses['/tv/9'] = {
            "id": 9, "name": "Odd", "seasons": [{"season_number": 1}, "bad", None, [2]],
            "next_episode_to_air": "soon",
        }
        self.responses['/tv/9/season/1'] = {"episodes": [
            "bad", None, {"id": 11, "name": "Soon", "episode_number": 4, "air_date": "2024-05-08"},
        ]}

        episodes = self.client.list_upcoming_episodes('9')

        self.assertEqual([episode.provider_id for episode in episodes], ['11'])
        self.assertEqual(self._requested_paths(), ['/tv/9', '/tv/9/season/1'])

    def test_list_episodes_with_seasons_not_a_list(self):
        self.responses['/tv/9'] = {"id": 9, "name": "Odd", "seasons": 3}
        self.assertEqual(self.client.list_episodes('9'), [])

    def test_list_upcoming_episodes_without_seasons(self):
        self.responses['/tv/5'] = {"id": 5, "name": "New", "seasons": []}
        self.assertEqual(self.client.list_upcoming_episodes('5'), [])


if __name__ == '__main__':
    unittest.main()
