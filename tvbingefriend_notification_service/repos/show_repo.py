"""Repository for canonical shows"""
import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from tvbingefriend_notification_service.models.show import Show, ShowStatus
from tvbingefriend_notification_service.providers.base import ShowCandidate


class ShowRepositoryError(RuntimeError):
    pass


# noinspection PyMethodMayBeStatic
class ShowRepository:
    """Repository for canonical shows"""
    def get_by_id(self, show_id: str, db: Session) -> Show | None:
        """Get a show by its canonical ID"""
        return db.get(Show, show_id)

    def get_by_cross_ref(self, imdb_id: str, db: Session) -> Show | None:
        """Get the show carrying a cross-reference (IMDb) ID"""
        return db.scalars(select(Show).where(Show.imdb_id == imdb_id).limit(1)).first()

    def get_by_provenance(self, provider: str, provider_id: str, db: Session) -> Show | None:
        """Get a show by the provider record it was created from"""
        return db.scalars(
            select(Show).where(Show.provider == provider, Show.provider_id == provider_id).limit(1)
        ).first()

    def upsert_by_cross_ref(self, candidate: ShowCandidate, db: Session) -> Show | None:
        """Merge a candidate into the show already carrying its cross-reference ID.

        Args:
            candidate (ShowCandidate): Provider record
            db (Session): Database session

        Returns:
            Show | None: The existing show, or None when the candidate has no
                cross-reference ID or no show carries it yet
        """
        if not candidate.imdb_id:
            return None
        existing = self.get_by_cross_ref(candidate.imdb_id, db)
        if existing is not None:
            logging.debug(
                f"ShowRepository.upsert_by_cross_ref: {candidate.provider}:{candidate.provider_id} "
                f"merged into {existing.id} via {candidate.imdb_id}"
            )
        return existing

    def backfill_cross_ref(self, show: Show, imdb_id: str | None, db: Session) -> bool:
        """Set a show's cross-reference ID if it has none yet.

        Returns:
            bool: True if the ID was written
        """
        if not imdb_id or show.imdb_id:
            return False

        owner = self.get_by_cross_ref(imdb_id, db)  # cross-reference ids are unique
        if owner is not None:
            logging.warning(
                f"ShowRepository.backfill_cross_ref: {imdb_id} already belongs to {owner.id}, not setting it on {show.id}"
            )
            return False

        try:
            with db.begin_nested():  # savepoint
                result = db.execute(
                    update(Show)
                    .where(Show.id == show.id, Show.imdb_id.is_(None))
                    .values(imdb_id=imdb_id)
                )
        except IntegrityError:
            logging.warning(f"ShowRepository.backfill_cross_ref: {imdb_id} was claimed concurrently, skipping {show.id}")
            return False

        if result.rowcount:
            show.imdb_id = imdb_id  # keep the loaded instance in step
            return True
        return False

    def upsert_by_provenance(self, candidate: ShowCandidate, db: Session) -> Show:
        """Get the show created from this provider record, inserting it if new.

        An existing show gets the candidate's cross-reference ID backfilled
        (set-once); its other fields are left untouched.

        Args:
            candidate (ShowCandidate): Provider record
            db (Session): Database session

        Returns:
            Show: Existing or newly inserted show
        """
        existing = self.get_by_provenance(candidate.provider, candidate.provider_id, db)
        if existing is not None:
            self.backfill_cross_ref(existing, candidate.imdb_id, db)
            return existing

        show = Show(
            id=Show.canonical_id(candidate.provider, candidate.provider_id),
            name=candidate.name,
            overview=candidate.overview,
            poster_url=candidate.poster_url,
            status=ShowStatus.from_provider(candidate.status).value,
            first_air_date=candidate.first_air_date,
            imdb_id=candidate.imdb_id,
            provider=candidate.provider,
            provider_id=candidate.provider_id,
        )
        try:
            with db.begin_nested():
                db.add(show)
                db.flush()
        except IntegrityError:
            # Another writer inserted the same provenance or cross-reference first
            winner = (
                (self.get_by_cross_ref(candidate.imdb_id, db) if candidate.imdb_id else None)
                or self.get_by_provenance(candidate.provider, candidate.provider_id, db)
            )
            if winner is None:
                raise ShowRepositoryError(
                    f"Could not insert or find show {candidate.provider}:{candidate.provider_id}"
                )
            return winner

        logging.info(f"ShowRepository.upsert_by_provenance: Inserted show {show.id} ({show.name})")
        return show

    def store_show(self, candidate: ShowCandidate, db: Session) -> Show:
        """Persist a reconciled candidate as a canonical show.

        Merge by cross-reference ID first, then by provenance, else insert.

        Raises:
            ShowRepositoryError: If the database rejects the write
        """
        try:
            return self.upsert_by_cross_ref(candidate, db) or self.upsert_by_provenance(candidate, db)
        except SQLAlchemyError as e:
            logging.error(
                f"show_repository.store_show: Database error storing {candidate.provider}:{candidate.provider_id}: {e}"
            )
            raise ShowRepositoryError(
                f"Database error storing show {candidate.provider}:{candidate.provider_id}"
            ) from e
