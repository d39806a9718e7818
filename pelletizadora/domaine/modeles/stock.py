from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Enum, Float, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from pelletizadora.domaine.enums.types import PresentationPellet, TypeMouvement
from pelletizadora.domaine.modeles.base import ModeleHorodate, maintenant_utc


class StockPellet(ModeleHorodate):
    """Stock de pellet fini : une ligne par présentation."""

    __tablename__ = "stock_pellet"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    presentation: Mapped[PresentationPellet] = mapped_column(
        Enum(PresentationPellet, name="presentation_pellet", native_enum=False, length=30),
        nullable=False,
        unique=True,
    )
    quantite: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)


class MouvementStockPellet(ModeleHorodate):
    """Journal append-only des entrées / sorties de pellet."""

    __tablename__ = "mouvement_stock_pellet"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    presentation: Mapped[PresentationPellet] = mapped_column(
        Enum(PresentationPellet, name="presentation_pellet", native_enum=False, length=30),
        nullable=False,
    )
    type_mouvement: Mapped[TypeMouvement] = mapped_column(
        Enum(TypeMouvement, name="type_mouvement", native_enum=False, length=30),
        nullable=False,
    )
    quantite: Mapped[float] = mapped_column(Float, nullable=False)
    date_mouvement: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=maintenant_utc)

    reference: Mapped[str | None] = mapped_column(String(200), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class StockIntrant(ModeleHorodate):
    """Stock d’intrant (rollos compris), identifié par son nom."""

    __tablename__ = "stock_intrant"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    nom: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    quantite: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    unite: Mapped[str] = mapped_column(String(30), nullable=False, default="kg")

    fournisseur_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("fournisseur.id"), nullable=True)
    numero_facture: Mapped[str | None] = mapped_column(String(60), nullable=True)

    stock_minimum: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)


class MouvementIntrant(ModeleHorodate):
    __tablename__ = "mouvement_intrant"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    nom_intrant: Mapped[str] = mapped_column(String(200), nullable=False)
    type_mouvement: Mapped[TypeMouvement] = mapped_column(
        Enum(TypeMouvement, name="type_mouvement", native_enum=False, length=30),
        nullable=False,
    )
    quantite: Mapped[float] = mapped_column(Float, nullable=False)
    unite: Mapped[str] = mapped_column(String(30), nullable=False, default="kg")
    date_mouvement: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=maintenant_utc)

    fournisseur_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("fournisseur.id"), nullable=True)
    numero_facture: Mapped[str | None] = mapped_column(String(60), nullable=True)
    facture_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("facture_fournisseur.id"), nullable=True)

    reference: Mapped[str | None] = mapped_column(String(200), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


Index("ix_mouvement_stock_pellet_presentation_date", MouvementStockPellet.presentation, MouvementStockPellet.date_mouvement)
Index("ix_mouvement_intrant_nom_intrant", MouvementIntrant.nom_intrant)
Index("ix_mouvement_intrant_numero_facture", MouvementIntrant.numero_facture)
