from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def maintenant_utc() -> datetime:
    return datetime.now(tz=timezone.utc)


class BaseModele(DeclarativeBase):
    """Base declarative SQLAlchemy.

    Types volontairement portables (Uuid, String, Float) : le même schéma
    tourne sur PostgreSQL en prod et sur SQLite en tests.
    """


class ModeleHorodate(BaseModele):
    """Mixin de dates techniques."""

    __abstract__ = True

    cree_le: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=maintenant_utc, nullable=False)
    mis_a_jour_le: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=maintenant_utc,
        onupdate=maintenant_utc,
        nullable=False,
    )
