"""Column mixin shared by persisted records."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column


def new_id() -> str:
    """Opaque 32-hex identifier; doubles as the JWT ``sub`` claim."""
    return uuid4().hex


class RecordMixin:
    """
    Identity and bookkeeping columns for a stored record.

    ``id`` is assigned client-side so it is known before the INSERT is
    flushed. ``created_at`` and ``updated_at`` are filled by the database.
    """

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id}>"
