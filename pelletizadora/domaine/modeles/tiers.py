from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import Float, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from pelletizadora.domaine.modeles.base import ModeleHorodate


class Client(ModeleHorodate):
    """Client (acheteur de pellet).

    `solde_credit` : saldo a favor, alimenté par les excédents de paiement et
    consommé par imputation sur des ventes ultérieures.
    """

    __tablename__ = "client"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    nom: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    entreprise: Mapped[str] = mapped_column(String(200), nullable=False)
    cuit: Mapped[str] = mapped_column(String(20), nullable=False, unique=True, index=True)
    contact: Mapped[str] = mapped_column(String(200), nullable=False)

    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    adresse: Mapped[str | None] = mapped_column(String(300), nullable=True)
    telephone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    solde_credit: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)


class Fournisseur(ModeleHorodate):
    __tablename__ = "fournisseur"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    raison_sociale: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    cuit: Mapped[str] = mapped_column(String(20), nullable=False, unique=True, index=True)
    contact: Mapped[str | None] = mapped_column(String(200), nullable=True)

    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    adresse: Mapped[str | None] = mapped_column(String(300), nullable=True)
    telephone: Mapped[str | None] = mapped_column(String(50), nullable=True)
