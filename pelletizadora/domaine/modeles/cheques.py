from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, Enum, Float, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from pelletizadora.domaine.enums.types import StatutCheque
from pelletizadora.domaine.modeles.base import ModeleHorodate, maintenant_utc


class Cheque(ModeleHorodate):
    """Chèque papier ou echeq reçu d’un client.

    Peut être encaissé, rejeté, ou remis (endossé) à un fournisseur pour régler
    une facture : dans ce cas `remis_a` / `remis_pour` / `facture_id` sont
    renseignés.
    """

    __tablename__ = "cheque"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    numero: Mapped[str] = mapped_column(String(60), nullable=False, unique=True, index=True)
    montant: Mapped[float] = mapped_column(Float, nullable=False)
    est_echeq: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    date_reception: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=maintenant_utc)
    date_echeance: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    recu_de: Mapped[str] = mapped_column(String(200), nullable=False)
    emis_par: Mapped[str] = mapped_column(String(200), nullable=False)
    banque: Mapped[str | None] = mapped_column(String(120), nullable=True)
    numero_compte: Mapped[str | None] = mapped_column(String(60), nullable=True)

    statut: Mapped[StatutCheque] = mapped_column(
        Enum(StatutCheque, name="statut_cheque", native_enum=False, length=30),
        nullable=False,
        default=StatutCheque.EN_ATTENTE,
    )

    client_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("client.id"), nullable=True, index=True)

    remis_a: Mapped[str | None] = mapped_column(String(200), nullable=True)
    date_remise: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    remis_pour: Mapped[str | None] = mapped_column(String(200), nullable=True)
    facture_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("facture_fournisseur.id"), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


Index("ix_cheque_statut_date_echeance", Cheque.statut, Cheque.date_echeance)
