"""TMDb provider client."""
from __future__ import annotations

import logging
from typing import Any, Mapping

import requests

from tvbingefriend_notification_service.config import (
    TMDB_API_KEY,
    TMDB_BASE_URL,
    TMDB_IMAGE_BASE_URL,
    TMDB_TIMEOUT,
    TMDB_MAX_RETRIES,
)
from tvbingefriend_notification_service.providers.base import (
    MALFORMED_ITEM_ERRORS,
    EpisodeCandidate,
    ShowCandidate,
    as_list,
    as_mapping,
    clean_imdb_id,
    clean_text,
    parse_air_date,
    parse_date,
    require_mapping,
)
from tvbingefriend_notification_service.services.retry_service import ProviderRequestError, RetryService
from tvbingefriend_notification_service.utils import utcnow

PROVIDER_NAME = "tmdb"


class TMDBClient:
    """Normalizes the TMDb v3 API into show and episode candidates.

    TMDb search results carry no IMDb id, so each search hit is followed by a
    details lookup (with ``external_ids`` appended) to recover the
    cross-reference id and lifecycle status. A failed lookup keeps the hit
    without them.
    """
    name = PROVIDER_NAME

    def __init__(self,
                 api_key: str | None = TMDB_API_KEY,
                 base_url: str = TMDB_BASE_URL,
                 image_base_url: str = TMDB_IMAGE_BASE_URL,
                 timeout: float = TMDB_TIMEOUT,
                 retry_service: RetryService | None = None,
                 session: requests.Session | None = None) -> None:
        resolved_key = (api_key or "").strip()
        if not resolved_key:
            raise ValueError("TMDB_API_KEY is not set.")
        self.api_key = resolved_key
        self.base_url = base_url.rstrip("/")
        self.image_base_url = image_base_url.rstrip("/")
        self.timeout = timeout
        self.retry_service = retry_service or RetryService(max_retries=TMDB_MAX_RETRIES)
        self.session = session or requests.Session()

    def _get(self, path: str, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        query: dict[str, Any] = {"api_key": self.api_key}
        if params:
            query.update(params)
        payload = self.retry_service.get_json(
            self.session,
            f"{self.base_url}{path}",
            params=query,
            timeout=self.timeout,
            label=f"tmdb {path}",
        )
        if not isinstance(payload, dict):
            raise ProviderRequestError(f"tmdb {path} returned unexpected JSON shape (not an object)")
        return payload

    def _poster_url(self, poster_path: Any) -> str | None:
        if not isinstance(poster_path, str) or not poster_path:
            return None
        return f"{self.image_base_url}{poster_path}"

    def _parse_show(self, payload: Any) -> ShowCandidate:
        payload = require_mapping(payload)
        external_ids = as_mapping(payload.get("external_ids"))
        return ShowCandidate(
            provider=PROVIDER_NAME,
            provider_id=str(int(payload["id"])),
            name=str(payload["name"]),
            overview=clean_text(payload.get("overview")),
            poster_url=self._poster_url(payload.get("poster_path")),
            status=payload.get("status"),
            first_air_date=parse_date(payload.get("first_air_date")),
            imdb_id=clean_imdb_id(external_ids.get("imdb_id")),
        )

    def _fetch_details(self, provider_id: str) -> dict[str, Any]:
        return self._get(f"/tv/{provider_id}", params={"append_to_response": "external_ids"})

    def search_shows(self, query: str) -> list[ShowCandidate]:
        """Search TMDb TV shows and resolve their IMDb ids."""
        payload = self._get("/search/tv", params={"query": query})
        results = payload.get("results")
        if not isinstance(results, list):
            raise ProviderRequestError("tmdb /search/tv returned no results list")

        shows: list[ShowCandidate] = []
        for item in results:
            try:
                show = self._parse_show(item)
            except MALFORMED_ITEM_ERRORS as e:
                logging.warning(f"TMDBClient.search_shows: Skipping malformed search result: {e}")
                continue

            try:
                details = self._parse_show(self._fetch_details(show.provider_id))
            except (ProviderRequestError, *MALFORMED_ITEM_ERRORS) as e:
                logging.warning(f"TMDBClient.search_shows: Could not resolve details for tmdb {show.provider_id}: {e}")
            else:
                show = ShowCandidate(
                    provider=show.provider,
                    provider_id=show.provider_id,
                    name=show.name,
                    overview=show.overview or details.overview,
                    poster_url=show.poster_url or details.poster_url,
                    status=details.status,
                    first_air_date=show.first_air_date or details.first_air_date,
                    imdb_id=details.imdb_id,
                )
            shows.append(show)
        return shows

    def get_show_details(self, provider_id: str) -> ShowCandidate:
        """Get one TMDb show including its IMDb id."""
        payload = self._fetch_details(provider_id)
        try:
            return self._parse_show(payload)
        except MALFORMED_ITEM_ERRORS as e:
            raise ProviderRequestError(f"tmdb show {provider_id} returned malformed data: {e}") from e

    def _list_season_episodes(self, provider_id: str, season_number: int) -> list[EpisodeCandidate]:
        payload = self._get(f"/tv/{provider_id}/season/{season_number}")
        episodes: list[EpisodeCandidate] = []
        for item in as_list(payload.get("episodes")):
            try:
                item = require_mapping(item)
                episodes.append(EpisodeCandidate(
                    provider=PROVIDER_NAME,
                    provider_id=str(int(item["id"])),
                    name=str(item.get("name") or ""),
                    season_number=int(item.get("season_number") or season_number),
                    episode_number=int(item.get("episode_number") or 0),
                    air_date=parse_air_date(airdate=item.get("air_date")),
                    overview=clean_text(item.get("overview")),
                ))
            except MALFORMED_ITEM_ERRORS as e:
                logging.warning(
                    f"TMDBClient._list_season_episodes: Skipping malformed episode in tmdb {provider_id} "
                    f"season {season_number}: {e}"
                )
        return episodes

    def _list_seasons_episodes(self, provider_id: str, season_numbers: list[int]) -> list[EpisodeCandidate]:
        episodes: list[EpisodeCandidate] = []
        for season_number in season_numbers:
            try:
                episodes.extend(self._list_season_episodes(provider_id, season_number))
            except ProviderRequestError as e:
                logging.warning(
                    f"TMDBClient._list_seasons_episodes: Skipping season {season_number} of tmdb {provider_id}: {e}"
                )
        return episodes

    @staticmethod
    def _season_numbers(details: Mapping[str, Any]) -> list[int]:
        numbers: list[int] = []
        for season in as_list(details.get("seasons")):
            try:
                number = int(as_mapping(season)["season_number"])
            except MALFORMED_ITEM_ERRORS:
                continue
            if number > 0:  # season 0 holds specials
                numbers.append(number)
        return sorted(set(numbers))

    def list_episodes(self, provider_id: str) -> list[EpisodeCandidate]:
        """List every regular-season episode of a show, one request per season."""
        details = self._get(f"/tv/{provider_id}")
        return self._list_seasons_episodes(provider_id, self._season_numbers(details))

    def list_upcoming_episodes(self, provider_id: str) -> list[EpisodeCandidate]:
        """List episodes that have not aired yet.

        Only the season holding the next episode to air (or the latest season
        when TMDb does not announce one) and any later seasons are fetched.
        """
        details = self._get(f"/tv/{provider_id}")
        season_numbers = self._season_numbers(details)
        if not season_numbers:
            return []

        next_episode = as_mapping(details.get("next_episode_to_air"))
        try:
            first_season = int(next_episode["season_number"])
        except (KeyError, TypeError, ValueError):
            first_season = season_numbers[-1]

        now = utcnow()
        episodes = self._list_seasons_episodes(provider_id, [n for n in season_numbers if n >= first_season])
        return [episode for episode in episodes if episode.air_date is not None and episode.air_date > now]
