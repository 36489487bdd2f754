from __future__ import annotations

from dataclasses import dataclass

from storefront.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)


@dataclass(slots=True)
class ServiceContext:
    """
    Who is calling, and from where.

    :param actor_id: Subject of the validated access token, if any.
    :param request_id: Correlation id copied into log records.
    :param client_ip: Address the rate limiter keyed this request on.
    """

    actor_id: str | None = None
    request_id: str | None = None
    client_ip: str | None = None


class BaseService:
    """
    Shared plumbing for the credential services.

    Persistence goes through :meth:`rw_uow` or :meth:`ro_uow`; token and
    cache state go through the collaborators each service receives.
    """

    def __init__(self, *, ctx: ServiceContext | None = None) -> None:
        self.ctx = ctx or ServiceContext()

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """Unit of Work that commits when its block exits cleanly."""
        return SQLAlchemyUnitOfWork()

    def ro_uow(self) -> SQLAlchemyReadOnlyUnitOfWork:
        """Unit of Work that refuses to flush or commit."""
        return SQLAlchemyReadOnlyUnitOfWork()
