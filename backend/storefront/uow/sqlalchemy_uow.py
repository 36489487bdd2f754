"""Units of Work over the Flask-SQLAlchemy scoped session."""

from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.orm import Session, scoped_session

from storefront.core.extensions import db
from storefront.repositories import UserRepository
from storefront.uow.base import UnitOfWork


class _SessionBound(UnitOfWork):
    def __init__(self) -> None:
        self.session: Session = db.session
        self.users = UserRepository(session=self.session)

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyUnitOfWork(_SessionBound):
    """Commit on a clean exit, roll back when the block raises."""

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    def commit(self) -> None:
        self.session.commit()


class SQLAlchemyReadOnlyUnitOfWork(_SessionBound):
    """
    Lookups only.

    A ``before_flush`` listener rejects pending changes while the block is
    open. Loaded rows stay attached afterwards so views can serialize them.
    """

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        # Thread-local Session only; a scoped_session target registers class-wide.
        self._guarded = self.session() if isinstance(self.session, scoped_session) else self.session
        event.listen(self._guarded, "before_flush", self._refuse_writes)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if event.contains(self._guarded, "before_flush", self._refuse_writes):
            event.remove(self._guarded, "before_flush", self._refuse_writes)
        if exc_type is not None:
            self.rollback()

    @staticmethod
    def _refuse_writes(session, flush_context, instances) -> None:
        if session.new or session.dirty or session.deleted:
            raise RuntimeError("Read-only unit of work cannot flush changes.")

    def commit(self) -> None:
        raise RuntimeError("Read-only unit of work cannot commit.")
