"""Common shapes shared by the provider clients."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Protocol, runtime_checkable

from tvbingefriend_notification_service.utils import to_naive_utc

_HTML_TAG_RE = re.compile(r"<[^>]*>")

# errors a malformed JSON item raises while being parsed
MALFORMED_ITEM_ERRORS = (AttributeError, KeyError, TypeError, ValueError)


@dataclass(frozen=True)
class ShowCandidate:
    """A show as returned by one provider, before reconciliation."""

    provider: str
    provider_id: str
    name: str
    overview: str | None = None
    poster_url: str | None = None
    status: str | None = None
    first_air_date: date | None = None
    imdb_id: str | None = None

    @property
    def completeness_score(self) -> int:
        score = 0
        if self.overview and self.overview.strip():
            score += 3
        if self.poster_url:
            score += 2
        if self.first_air_date is not None:
            score += 1
        return score


@dataclass(frozen=True)
class EpisodeCandidate:
    """An episode as returned by one provider."""

    provider: str
    provider_id: str
    name: str
    season_number: int
    episode_number: int
    air_date: datetime | None = None
    overview: str | None = None


@runtime_checkable
class ProviderClient(Protocol):
    """Capability interface every metadata provider client offers."""

    name: str

    def search_shows(self, query: str) -> list[ShowCandidate]: ...

    def get_show_details(self, provider_id: str) -> ShowCandidate: ...

    def list_episodes(self, provider_id: str) -> list[EpisodeCandidate]: ...

    def list_upcoming_episodes(self, provider_id: str) -> list[EpisodeCandidate]: ...


def parse_date(value: Any) -> date | None:
    """Parse a YYYY-MM-DD string; anything unparseable becomes None."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        logging.debug(f"parse_date: Unparseable date {value!r}")
        return None


def parse_air_date(airstamp: Any = None, airdate: Any = None) -> datetime | None:
    """Parse an episode air time.

    Prefers a full ISO timestamp (converted to naive UTC) and falls back to a
    bare date at midnight UTC.
    """
    if isinstance(airstamp, str) and airstamp.strip():
        try:
            return to_naive_utc(datetime.fromisoformat(airstamp.strip().replace("Z", "+00:00")))
        except ValueError:
            logging.debug(f"parse_air_date: Unparseable airstamp {airstamp!r}")
    day = parse_date(airdate)
    if day is None:
        return None
    return datetime(day.year, day.month, day.day)


def clean_text(value: Any) -> str | None:
    """Strip HTML tags and surrounding whitespace; empty text becomes None."""
    if not isinstance(value, str):
        return None
    text = " ".join(_HTML_TAG_RE.sub(" ", value).split())
    return text or None


def clean_imdb_id(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def require_mapping(value: Any) -> Mapping[str, Any]:
    """Return a JSON object unchanged; anything else raises TypeError."""
    if not isinstance(value, Mapping):
        raise TypeError(f"expected a JSON object, got {type(value).__name__}")
    return value


def as_mapping(value: Any) -> Mapping[str, Any]:
    """Return a nested JSON object, or an empty one when the field is absent or of another type."""
    return value if isinstance(value, Mapping) else {}


def as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []
