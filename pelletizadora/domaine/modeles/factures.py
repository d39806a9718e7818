from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Enum, Float, ForeignKey, Index, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pelletizadora.domaine.enums.types import MethodePaiement, StatutReglement, TypeLigneFacture
from pelletizadora.domaine.modeles.base import ModeleHorodate, maintenant_utc


class FactureFournisseur(ModeleHorodate):
    """Facture d’achat (rollos, intrants, services).

    IMPORTANT :
    - total = sous_total + iva, calculé par le service à la création
    - les lignes ROLLO_* / INTRANT alimentent le stock d’intrants
    """

    __tablename__ = "facture_fournisseur"
    __table_args__ = (
        UniqueConstraint("fournisseur_id", "numero", name="uq_facture_fournisseur_fournisseur_id_numero"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    fournisseur_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("fournisseur.id"), nullable=False, index=True)
    numero: Mapped[str] = mapped_column(String(60), nullable=False)

    date_facture: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=maintenant_utc)
    date_echeance: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    concept: Mapped[str] = mapped_column(String(300), nullable=False, default="Facture fournisseur")

    sous_total: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    iva: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    statut: Mapped[StatutReglement] = mapped_column(
        Enum(StatutReglement, name="statut_reglement", native_enum=False, length=30),
        nullable=False,
        default=StatutReglement.EN_ATTENTE,
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    fournisseur = relationship("Fournisseur")
    lignes: Mapped[list["LigneFactureFournisseur"]] = relationship(
        "LigneFactureFournisseur",
        back_populates="facture",
        cascade="all, delete-orphan",
        order_by="LigneFactureFournisseur.position",
    )


class LigneFactureFournisseur(ModeleHorodate):
    __tablename__ = "ligne_facture_fournisseur"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    facture_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("facture_fournisseur.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(nullable=False, default=0)

    description: Mapped[str] = mapped_column(String(300), nullable=False)
    type_ligne: Mapped[TypeLigneFacture] = mapped_column(
        Enum(TypeLigneFacture, name="type_ligne_facture", native_enum=False, length=30),
        nullable=False,
    )

    quantite: Mapped[float] = mapped_column(Float, nullable=False)
    prix_unitaire: Mapped[float] = mapped_column(Float, nullable=False)
    total: Mapped[float] = mapped_column(Float, nullable=False)

    # kg par unité (rollos) : la quantité entrée en stock est quantite * poids_unitaire
    poids_unitaire: Mapped[float | None] = mapped_column(Float, nullable=True)

    facture: Mapped[FactureFournisseur] = relationship("FactureFournisseur", back_populates="lignes")


class PaiementFacture(ModeleHorodate):
    """Règlement (total ou partiel) d’une facture fournisseur."""

    __tablename__ = "paiement_facture"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    facture_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("facture_fournisseur.id", ondelete="CASCADE"), nullable=False, index=True
    )

    montant: Mapped[float] = mapped_column(Float, nullable=False)
    methode: Mapped[MethodePaiement] = mapped_column(
        Enum(MethodePaiement, name="methode_paiement", native_enum=False, length=30),
        nullable=False,
    )
    date_paiement: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=maintenant_utc)

    reference: Mapped[str | None] = mapped_column(String(120), nullable=True)
    description: Mapped[str | None] = mapped_column(String(300), nullable=True)

    # Chèque de tiers remis au fournisseur
    cheque_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("cheque.id"), nullable=True)


Index("ix_facture_fournisseur_statut", FactureFournisseur.statut)
