"""Service that reconciles multi-provider show search results into canonical shows."""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from tvbingefriend_notification_service.config import MAX_RESULTS
from tvbingefriend_notification_service.models.show import Show
from tvbingefriend_notification_service.providers import ProviderClient, ShowCandidate, build_providers
from tvbingefriend_notification_service.repos.show_repo import ShowRepository, ShowRepositoryError
from tvbingefriend_notification_service.services.retry_service import ProviderRequestError
from tvbingefriend_notification_service.utils import db_session_manager


def group_candidates(candidates: list[ShowCandidate]) -> list[list[ShowCandidate]]:
    """Group candidates describing the same show.

    Candidates sharing a cross-reference ID form one group; a candidate
    without one is a group on its own. Groups keep first-seen order.
    """
    groups: list[list[ShowCandidate]] = []
    by_cross_ref: dict[str, list[ShowCandidate]] = {}
    for candidate in candidates:
        if not candidate.imdb_id:
            groups.append([candidate])
            continue
        group = by_cross_ref.get(candidate.imdb_id)
        if group is None:
            group = by_cross_ref[candidate.imdb_id] = []
            groups.append(group)
        group.append(candidate)
    return groups


def select_best_candidate(group: list[ShowCandidate]) -> ShowCandidate:
    """Pick the most complete candidate; ties go to the earliest (highest priority) one."""
    return max(group, key=lambda candidate: candidate.completeness_score)


class ReconciliationService:
    """Fans a search out to every provider and stores the deduplicated results."""
    def __init__(self,
                 providers: dict[str, ProviderClient] | None = None,
                 show_repository: ShowRepository | None = None,
                 max_results: int = MAX_RESULTS) -> None:
        self.providers = providers if providers is not None else build_providers()
        self.show_repository = show_repository or ShowRepository()
        self.max_results = max_results

    def collect_candidates(self, query: str) -> list[ShowCandidate]:
        """Search every provider concurrently and concatenate results in provider order.

        A failing provider is logged and contributes nothing.
        """
        if not self.providers:
            return []

        candidates: list[ShowCandidate] = []
        with ThreadPoolExecutor(max_workers=len(self.providers)) as executor:
            futures = {
                name: executor.submit(provider.search_shows, query)
                for name, provider in self.providers.items()
            }
            for name, future in futures.items():
                try:
                    results = future.result()
                except ProviderRequestError as e:
                    logging.error(f"ReconciliationService.collect_candidates: Error searching shows with {name}: {e}")
                    continue
                except Exception as e:
                    logging.error(
                        f"ReconciliationService.collect_candidates: Unexpected error searching shows with {name}: {e}",
                        exc_info=True
                    )
                    continue
                logging.info(f"ReconciliationService.collect_candidates: {name} returned {len(results)} shows")
                candidates.extend(results)
        return candidates

    def store_candidate(self, candidate: ShowCandidate) -> dict[str, Any] | None:
        """Persist one reconciled candidate; a failure drops it and returns None."""
        try:
            with db_session_manager() as db:
                show = self.show_repository.store_show(candidate, db)
                return show.to_dict()
        except (ShowRepositoryError, SQLAlchemyError) as e:
            logging.error(f"ReconciliationService.store_candidate: Dropping {candidate.provider}:{candidate.provider_id}: {e}")
            return None

    def search_shows(self, query: str) -> list[dict[str, Any]]:
        """Search all providers and return canonical shows.

        Every group winner is persisted before the list is truncated to
        max_results, so shows beyond the cut-off are still stored.

        Args:
            query (str): Free-text show name

        Returns:
            list[dict[str, Any]]: Canonical shows, best matches first
        """
        query = (query or "").strip()
        if not query:
            return []

        logging.info(f"ReconciliationService.search_shows: Searching {list(self.providers)} for {query!r}")
        candidates = self.collect_candidates(query)
        if not candidates:
            logging.info(f"ReconciliationService.search_shows: No shows found for {query!r}")
            return []

        merged: list[dict[str, Any]] = []
        seen_ids: set[str] = set()
        for group in group_candidates(candidates):
            stored = self.store_candidate(select_best_candidate(group))
            if stored is None or stored["id"] in seen_ids:
                continue
            seen_ids.add(stored["id"])
            merged.append(stored)

        logging.info(
            f"ReconciliationService.search_shows: {len(candidates)} candidates reconciled into {len(merged)} shows"
        )
        return merged[:self.max_results]

    def get_show(self, show_id: str) -> dict[str, Any] | None:
        """Get a stored show by canonical ID."""
        with db_session_manager() as db:
            show = self.show_repository.get_by_id(show_id, db)
            return show.to_dict() if show else None

    def refresh_show_details(self, show_id: str) -> dict[str, Any] | None:
        """Re-fetch a show from its provider and backfill its cross-reference ID.

        Returns:
            dict[str, Any] | None: The stored show, or None if it does not exist

        Raises:
            ProviderRequestError: If the provider call fails
        """
        with db_session_manager() as db:
            show: Show | None = self.show_repository.get_by_id(show_id, db)
        if show is None:
            return None

        provider = self.providers.get(show.provider)
        if provider is None:
            logging.warning(f"ReconciliationService.refresh_show_details: No provider for {show.provider}")
            return show.to_dict()
        details = provider.get_show_details(show.provider_id)

        with db_session_manager() as db:
            current = self.show_repository.get_by_id(show_id, db)
            if current is None:
                return None
            if self.show_repository.backfill_cross_ref(current, details.imdb_id, db):
                logging.info(f"ReconciliationService.refresh_show_details: Set {show_id} imdb_id to {details.imdb_id}")
            return current.to_dict()
