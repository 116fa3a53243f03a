"""Shared service base with robust session lifecycle behavior."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from schoolshelf.core.exceptions import ConflictError


class BaseService:
    """Base class for services that operate on a SQLAlchemy session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def commit(self) -> None:
        """Commit current transaction and rollback on failure.

        Integrity violations surface as conflicts; anything else propagates.
        """
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("The change conflicts with existing data.") from exc
        except Exception:
            self.db.rollback()
            raise

    def rollback(self) -> None:
        self.db.rollback()
