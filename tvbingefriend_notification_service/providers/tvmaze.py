"""TVMaze provider client."""
from __future__ import annotations

import logging
from typing import Any, Mapping

import requests

from tvbingefriend_notification_service.config import TVMAZE_BASE_URL, TVMAZE_TIMEOUT, TVMAZE_MAX_RETRIES
from tvbingefriend_notification_service.providers.base import (
    MALFORMED_ITEM_ERRORS,
    EpisodeCandidate,
    ShowCandidate,
    as_mapping,
    clean_imdb_id,
    clean_text,
    parse_air_date,
    parse_date,
    require_mapping,
)
from tvbingefriend_notification_service.services.retry_service import ProviderRequestError, RetryService
from tvbingefriend_notification_service.utils import utcnow

PROVIDER_NAME = "tvmaze"


def _parse_show(payload: Any) -> ShowCandidate:
    payload = require_mapping(payload)
    image = as_mapping(payload.get("image"))  # null or a bare url string means no poster
    externals = as_mapping(payload.get("externals"))
    return ShowCandidate(
        provider=PROVIDER_NAME,
        provider_id=str(int(payload["id"])),
        name=str(payload["name"]),
        overview=clean_text(payload.get("summary")),
        poster_url=image.get("medium") or image.get("original") or None,
        status=payload.get("status"),
        first_air_date=parse_date(payload.get("premiered")),
        imdb_id=clean_imdb_id(externals.get("imdb")),
    )


def _parse_episode(payload: Any) -> EpisodeCandidate:
    payload = require_mapping(payload)
    return EpisodeCandidate(
        provider=PROVIDER_NAME,
        provider_id=str(int(payload["id"])),
        name=str(payload.get("name") or ""),
        season_number=int(payload.get("season") or 0),
        episode_number=int(payload.get("number") or 0),
        air_date=parse_air_date(payload.get("airstamp"), payload.get("airdate")),
        overview=clean_text(payload.get("summary")),
    )


class TVMazeClient:
    """Normalizes the TVMaze API into show and episode candidates."""
    name = PROVIDER_NAME

    def __init__(self,
                 base_url: str = TVMAZE_BASE_URL,
                 timeout: float = TVMAZE_TIMEOUT,
                 retry_service: RetryService | None = None,
                 session: requests.Session | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_service = retry_service or RetryService(max_retries=TVMAZE_MAX_RETRIES)
        self.session = session or requests.Session()

    def _get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return self.retry_service.get_json(
            self.session,
            f"{self.base_url}{path}",
            params=params,
            timeout=self.timeout,
            label=f"tvmaze {path}",
        )

    def search_shows(self, query: str) -> list[ShowCandidate]:
        """Search TVMaze shows by name."""
        payload = self._get("/search/shows", params={"q": query})
        if not isinstance(payload, list):
            raise ProviderRequestError("tvmaze /search/shows returned unexpected JSON shape (not a list)")

        shows: list[ShowCandidate] = []
        for item in payload:
            try:
                shows.append(_parse_show(require_mapping(item)["show"]))
            except MALFORMED_ITEM_ERRORS as e:
                logging.warning(f"TVMazeClient.search_shows: Skipping malformed search result: {e}")
        return shows

    def get_show_details(self, provider_id: str) -> ShowCandidate:
        """Get one TVMaze show."""
        payload = self._get(f"/shows/{provider_id}")
        try:
            return _parse_show(payload)
        except MALFORMED_ITEM_ERRORS as e:
            raise ProviderRequestError(f"tvmaze show {provider_id} returned malformed data: {e}") from e

    def list_episodes(self, provider_id: str) -> list[EpisodeCandidate]:
        """List every episode TVMaze knows for a show."""
        payload = self._get(f"/shows/{provider_id}/episodes")
        if not isinstance(payload, list):
            raise ProviderRequestError(
                f"tvmaze /shows/{provider_id}/episodes returned unexpected JSON shape (not a list)"
            )

        episodes: list[EpisodeCandidate] = []
        for item in payload:
            try:
                episodes.append(_parse_episode(item))
            except MALFORMED_ITEM_ERRORS as e:
                logging.warning(f"TVMazeClient.list_episodes: Skipping malformed episode for show {provider_id}: {e}")
        return episodes

    def list_upcoming_episodes(self, provider_id: str) -> list[EpisodeCandidate]:
        """List episodes of a show that have not aired yet."""
        now = utcnow()
        return [
            episode for episode in self.list_episodes(provider_id)
            if episode.air_date is not None and episode.air_date > now
        ]
