"""Persistence of per-user progress records."""
import logging
from typing import Dict, Iterable, Optional, Union

from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from wordrecall.errors import NotAuthorized, StoreUnavailable
from wordrecall.models.base import as_utc
from wordrecall.models.models import UserMeaningProgress, UserWordProgress
from wordrecall.models.progress_models import ItemKind, ItemRef, ProgressRecord
from wordrecall.monitoring import store_errors

logger = logging.getLogger(__name__)

ProgressRow = Union[UserWordProgress, UserMeaningProgress]


def record_from_row(row: Optional[ProgressRow]) -> Optional[ProgressRecord]:
    """Turn a stored progress row into a ProgressRecord."""
    if row is None:
        return None
    return ProgressRecord(
        mastery=row.mastery or 0,
        review_count=row.review_count or 0,
        correct_count=row.correct_count or 0,
        last_reviewed=as_utc(row.last_reviewed),
        next_review=as_utc(row.next_review),
    )


class ProgressStore:
    """Reads and writes progress rows keyed by (user, item).

    Writes are only allowed for the acting user's own rows unless the acting
    user is an admin.
    """

    def __init__(self, db: Session, acting_user_id: int, is_admin: bool = False):
        """Initialize the store with a database session and the acting user."""
        self.db = db
        self.acting_user_id = acting_user_id
        self.is_admin = is_admin

    @staticmethod
    def _model_for(kind: ItemKind):
        if kind is ItemKind.MEANING:
            return UserMeaningProgress, UserMeaningProgress.meaning_id
        return UserWordProgress, UserWordProgress.word_id

    def _check_access(self, user_id: int) -> None:
        if user_id != self.acting_user_id and not self.is_admin:
            raise NotAuthorized(self.acting_user_id, user_id)

    def _unavailable(self, error: DBAPIError) -> StoreUnavailable:
        self.db.rollback()
        store_errors.labels(error_type=type(error).__name__).inc()
        logger.error("Progress store unavailable: %s", error)
        return StoreUnavailable(str(error))

    def _get_row(self, user_id: int, ref: ItemRef) -> Optional[ProgressRow]:
        model, item_column = self._model_for(ref.kind)
        return (
            self.db.query(model)
            .filter(model.user_id == user_id, item_column == ref.id)
            .first()
        )

    def get_one(self, user_id: int, ref: ItemRef) -> Optional[ProgressRecord]:
        """Get the progress record of one item, or None if never answered."""
        self._check_access(user_id)
        try:
            return record_from_row(self._get_row(user_id, ref))
        except (OperationalError, InterfaceError) as e:
            raise self._unavailable(e) from e

    def get_many(self, user_id: int, refs: Iterable[ItemRef]) -> Dict[ItemRef, ProgressRecord]:
        """Get progress records of several items; missing ones are left out."""
        self._check_access(user_id)
        ids_by_kind: Dict[ItemKind, list[int]] = {}
        for ref in refs:
            ids_by_kind.setdefault(ref.kind, []).append(ref.id)

        records = {}
        try:
            for kind, ids in ids_by_kind.items():
                model, item_column = self._model_for(kind)
                rows = (
                    self.db.query(model)
                    .filter(model.user_id == user_id, item_column.in_(ids))
                    .all()
                )
                for row in rows:
                    item_id = row.meaning_id if kind is ItemKind.MEANING else row.word_id
                    records[ItemRef(kind, item_id)] = record_from_row(row)
        except (OperationalError, InterfaceError) as e:
            raise self._unavailable(e) from e
        return records

    def upsert(self, user_id: int, ref: ItemRef, record: ProgressRecord) -> None:
        """Insert or update the progress row of one item."""
        self._check_access(user_id)
        model, _ = self._model_for(ref.kind)
        values = {
            "mastery": record.mastery,
            "review_count": record.review_count,
            "correct_count": record.correct_count,
            "last_reviewed": record.last_reviewed,
            "next_review": record.next_review,
        }
        try:
            row = self._get_row(user_id, ref)
            if row is None:
                item_key = "meaning_id" if ref.kind is ItemKind.MEANING else "word_id"
                row = model(user_id=user_id, **{item_key: ref.id}, **values)
                self.db.add(row)
            else:
                for key, value in values.items():
                    setattr(row, key, value)
            self.db.commit()
        except (OperationalError, InterfaceError) as e:
            raise self._unavailable(e) from e
        except IntegrityError:
            self.db.rollback()
            logger.warning("Progress %s for user %d rejected by the database", ref, user_id)
            raise
        logger.debug("Stored progress of %s for user %d: %s", ref, user_id, record)
