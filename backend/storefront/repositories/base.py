"""Shared persistence helpers for the credential repositories.

Repositories only stage and query rows. They never commit: the Unit of Work
that a service opens decides whether a change survives.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from storefront.core.extensions import db

E = TypeVar("E")


class BaseRepository(Generic[E]):
    """Persistence-only access to one mapped class.

    Subclasses set ``model`` and declare two whitelists:

    * ``_filterable_fields``: keyword -> column usable in :meth:`find_one`
      and :meth:`exists`. Unknown keywords are rejected.
    * ``_updatable_fields``: attribute names :meth:`assign_updates` may set.
    """

    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        """Injected session, else the Flask-scoped one."""
        return self._session if self._session is not None else cast(Session, db.session)

    def _filterable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]]:
        return {}

    def _updatable_fields(self) -> set[str]:
        return set()

    def _where(self, stmt: Select[Any], filters: Mapping[str, Any]) -> Select[Any]:
        columns = self._filterable_fields()
        unknown = sorted(set(filters) - set(columns))
        if unknown:
            raise ValueError(f"Cannot filter {self.model.__name__} by: {unknown}")
        for key, value in filters.items():
            stmt = stmt.where(columns[key] == value)
        return stmt

    # --------------------------------- Reads ---------------------------------

    def get(self, entity_id: Any) -> E | None:
        """Primary-key lookup; hits the identity map first."""
        return self.session.get(self.model, entity_id)

    def find_one(self, **filters: Any) -> E | None:
        stmt = self._where(select(self.model), filters)
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def exists(self, **filters: Any) -> bool:
        return self.find_one(**filters) is not None

    # --------------------------------- Writes --------------------------------

    def add(self, instance: E) -> E:
        """Stage ``instance`` and flush so generated ids are available."""
        self.session.add(instance)
        self.flush()
        return instance

    def flush(self) -> None:
        self.session.flush()

    def assign_updates(self, instance: E, fields: Mapping[str, Any], *, flush: bool = True) -> E:
        """Set whitelisted attributes on ``instance``.

        Assignment goes through ``setattr`` so the model's ``@validates``
        hooks run.

        :raises ValueError: If ``fields`` names an attribute outside
            ``_updatable_fields``.
        """
        refused = sorted(set(fields) - self._updatable_fields())
        if refused:
            raise ValueError(f"Fields cannot be updated: {refused}")
        for key, value in fields.items():
            setattr(instance, key, value)
        if flush:
            self.flush()
        return instance
