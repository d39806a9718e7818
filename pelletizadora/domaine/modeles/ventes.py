from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Enum, Float, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from pelletizadora.domaine.enums.types import (
    MethodePaiement,
    PresentationPellet,
    StatutReglement,
    TypeMouvementCredit,
)
from pelletizadora.domaine.modeles.base import ModeleHorodate, maintenant_utc


class Vente(ModeleHorodate):
    """Vente de pellet à un client.

    Le statut est dérivé du cumul des PaiementVente (jamais saisi).
    """

    __tablename__ = "vente"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    client_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("client.id"), nullable=False, index=True)
    date_vente: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=maintenant_utc)

    presentation: Mapped[PresentationPellet] = mapped_column(
        Enum(PresentationPellet, name="presentation_pellet", native_enum=False, length=30),
        nullable=False,
    )
    quantite: Mapped[float] = mapped_column(Float, nullable=False)
    prix_unitaire: Mapped[float] = mapped_column(Float, nullable=False)
    montant_total: Mapped[float] = mapped_column(Float, nullable=False)

    lot: Mapped[str | None] = mapped_column(String(30), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    statut: Mapped[StatutReglement] = mapped_column(
        Enum(StatutReglement, name="statut_reglement", native_enum=False, length=30),
        nullable=False,
        default=StatutReglement.EN_ATTENTE,
    )


class PaiementVente(ModeleHorodate):
    __tablename__ = "paiement_vente"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    vente_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("vente.id"), nullable=False, index=True)

    montant: Mapped[float] = mapped_column(Float, nullable=False)
    date_paiement: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=maintenant_utc)
    methode: Mapped[MethodePaiement] = mapped_column(
        Enum(MethodePaiement, name="methode_paiement", native_enum=False, length=30),
        nullable=False,
    )

    reference: Mapped[str | None] = mapped_column(String(120), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    cheque_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("cheque.id"), nullable=True)


class MouvementCredit(ModeleHorodate):
    """Écriture du compte crédit (saldo a favor) d’un client.

    EXCEDENT : montant payé au-delà du restant dû d’une vente (crédite).
    IMPUTATION : crédit consommé sur une vente (débite).
    """

    __tablename__ = "mouvement_credit"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    client_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("client.id"), nullable=False, index=True)
    type_mouvement: Mapped[TypeMouvementCredit] = mapped_column(
        Enum(TypeMouvementCredit, name="type_mouvement_credit", native_enum=False, length=30),
        nullable=False,
    )
    montant: Mapped[float] = mapped_column(Float, nullable=False)

    vente_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("vente.id"), nullable=True)
    paiement_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("paiement_vente.id"), nullable=True)

    description: Mapped[str | None] = mapped_column(String(300), nullable=True)
    date_mouvement: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=maintenant_utc)


Index("ix_vente_statut", Vente.statut)
Index("ix_vente_date_vente", Vente.date_vente)
