from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from pelletizadora.api.schemas.commun import SchemaPagination
from pelletizadora.domaine.enums.types import StatutCheque


class RequeteCreerCheque(BaseModel):
    numero: str = Field(min_length=1, max_length=60)
    montant: float = Field(ge=0)
    date_echeance: datetime
    recu_de: str = Field(min_length=1)
    emis_par: str = Field(min_length=1)
    est_echeq: bool = False
    date_reception: datetime | None = None
    banque: str | None = None
    numero_compte: str | None = None
    client_id: UUID | None = None
    notes: str | None = None


class RequeteModifierCheque(BaseModel):
    numero: str | None = Field(default=None, min_length=1, max_length=60)
    montant: float | None = Field(default=None, ge=0)
    est_echeq: bool | None = None
    date_reception: datetime | None = None
    date_echeance: datetime | None = None
    recu_de: str | None = None
    emis_par: str | None = None
    banque: str | None = None
    numero_compte: str | None = None
    notes: str | None = None


class RequeteStatutCheque(BaseModel):
    statut: StatutCheque
    notes: str | None = None


class ChequeLecture(BaseModel):
    id: UUID
    numero: str
    montant: float
    est_echeq: bool
    date_reception: datetime
    date_echeance: datetime
    recu_de: str
    emis_par: str
    banque: str | None = None
    numero_compte: str | None = None
    statut: StatutCheque
    client_id: UUID | None = None
    remis_a: str | None = None
    date_remise: datetime | None = None
    remis_pour: str | None = None
    facture_id: UUID | None = None
    notes: str | None = None
    jours_avant_echeance: int | None = None

    class Config:
        from_attributes = True


class StatistiqueStatutLecture(BaseModel):
    nombre: int
    montant_total: float

    class Config:
        from_attributes = True


class ReponseListeCheques(BaseModel):
    cheques: list[ChequeLecture]
    pagination: SchemaPagination
    statistiques: dict[StatutCheque, StatistiqueStatutLecture]
