from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from pelletizadora.api.schemas.commun import SchemaPagination
from pelletizadora.domaine.enums.types import PresentationPellet


class RequeteConsommation(BaseModel):
    nom_intrant: str = Field(min_length=1)
    quantite: float = Field(gt=0)
    notes: str | None = None


class RequeteGeneration(BaseModel):
    presentation: PresentationPellet
    quantite: float = Field(gt=0)
    notes: str | None = None


class RequeteEnregistrerProduction(BaseModel):
    type_pellet: str = Field(min_length=1)
    quantite_totale: float = Field(ge=0.01)
    numero_lot: str | None = Field(default=None, max_length=30)
    rendement: float | None = Field(default=None, ge=0, le=1)
    operateur: str | None = None
    notes: str | None = None
    date_production: datetime | None = None
    consommations: list[RequeteConsommation] = Field(default_factory=list)
    generations: list[RequeteGeneration] = Field(min_length=1)


class ProductionLecture(BaseModel):
    id: UUID
    date_production: datetime
    numero_lot: str
    type_pellet: str
    quantite_totale: float
    rendement: float
    operateur: str | None = None
    notes: str | None = None

    class Config:
        from_attributes = True


class ConsommationLecture(BaseModel):
    id: UUID
    nom_intrant: str
    quantite: float
    unite: str
    date_consommation: datetime
    notes: str | None = None

    class Config:
        from_attributes = True


class GenerationLecture(BaseModel):
    id: UUID
    presentation: PresentationPellet
    quantite: float
    date_generation: datetime
    notes: str | None = None

    class Config:
        from_attributes = True


class ProductionDetailLecture(BaseModel):
    production: ProductionLecture
    consommations: list[ConsommationLecture]
    generations: list[GenerationLecture]

    class Config:
        from_attributes = True


class ReponseListeProductions(BaseModel):
    productions: list[ProductionLecture]
    pagination: SchemaPagination

    class Config:
        from_attributes = True


class ReponseProchainLot(BaseModel):
    numero_lot: str
