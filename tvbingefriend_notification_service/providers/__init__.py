"""Provider clients, selected at runtime by provider name."""
import logging
from typing import Callable

from tvbingefriend_notification_service.config import ENABLED_PROVIDERS
from tvbingefriend_notification_service.providers.base import (  # type: ignore
    EpisodeCandidate,
    ProviderClient,
    ShowCandidate,
)
from tvbingefriend_notification_service.providers.tmdb import TMDBClient  # type: ignore
from tvbingefriend_notification_service.providers.tvmaze import TVMazeClient  # type: ignore

PROVIDER_FACTORIES: dict[str, Callable[[], ProviderClient]] = {
    "tvmaze": TVMazeClient,
    "tmdb": TMDBClient,
}


def get_provider(name: str) -> ProviderClient:
    """Build the client registered under a provider name.

    Raises:
        KeyError: If no provider is registered under the name
    """
    factory = PROVIDER_FACTORIES.get(name)
    if factory is None:
        raise KeyError(f"Unknown provider: '{name}'")
    return factory()


def build_providers(names: list[str] | None = None) -> dict[str, ProviderClient]:
    """Build the enabled providers in priority order.

    A provider that cannot be built (unknown name, missing API key) is logged
    and left out.
    """
    providers: dict[str, ProviderClient] = {}
    for name in ENABLED_PROVIDERS if names is None else names:
        try:
            providers[name] = get_provider(name)
        except (KeyError, ValueError) as e:
            logging.warning(f"build_providers: Provider '{name}' disabled: {e}")
    return providers


__all__ = [
    "EpisodeCandidate",
    "ProviderClient",
    "ShowCandidate",
    "TMDBClient",
    "TVMazeClient",
    "PROVIDER_FACTORIES",
    "get_provider",
    "build_providers",
]
