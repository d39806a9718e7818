from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Enum, Float, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from pelletizadora.domaine.enums.types import PresentationPellet
from pelletizadora.domaine.modeles.base import ModeleHorodate, maintenant_utc


class Production(ModeleHorodate):
    """Lot de production de pellet.

    rendement : fraction dans [0, 1] (pellet produit / intrants consommés).
    """

    __tablename__ = "production"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    date_production: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=maintenant_utc)
    numero_lot: Mapped[str] = mapped_column(String(30), nullable=False, unique=True, index=True)
    type_pellet: Mapped[str] = mapped_column(String(120), nullable=False)

    quantite_totale: Mapped[float] = mapped_column(Float, nullable=False)
    rendement: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    operateur: Mapped[str | None] = mapped_column(String(120), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class ConsommationIntrant(ModeleHorodate):
    __tablename__ = "consommation_intrant"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    production_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("production.id"), nullable=False, index=True)

    nom_intrant: Mapped[str] = mapped_column(String(200), nullable=False)
    quantite: Mapped[float] = mapped_column(Float, nullable=False)
    unite: Mapped[str] = mapped_column(String(30), nullable=False, default="kg")
    date_consommation: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=maintenant_utc
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class GenerationPellet(ModeleHorodate):
    __tablename__ = "generation_pellet"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    production_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("production.id"), nullable=False, index=True)

    presentation: Mapped[PresentationPellet] = mapped_column(
        Enum(PresentationPellet, name="presentation_pellet", native_enum=False, length=30),
        nullable=False,
    )
    quantite: Mapped[float] = mapped_column(Float, nullable=False)
    date_generation: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=maintenant_utc)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
