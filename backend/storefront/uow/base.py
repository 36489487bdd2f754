"""Transaction boundary contract used by the credential services."""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.repositories import UserRepository


class UnitOfWork(ABC):
    """
    One use-case worth of persistence.

    ``users`` is bound to the same session as the boundary itself, so any
    change staged through it is kept or discarded together.
    """

    users: UserRepository

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
