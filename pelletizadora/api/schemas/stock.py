from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from pelletizadora.api.schemas.commun import SchemaPagination
from pelletizadora.domaine.enums.types import PresentationPellet, TendanceStock, TypeMouvement


# ===== Pellet =====


class StockPelletLecture(BaseModel):
    id: UUID
    presentation: PresentationPellet
    quantite: float
    mis_a_jour_le: datetime

    class Config:
        from_attributes = True


class RequeteAjouterStock(BaseModel):
    presentation: PresentationPellet
    quantite: float = Field(gt=0)
    notes: str | None = None


class MouvementStockLecture(BaseModel):
    id: UUID
    presentation: PresentationPellet
    type_mouvement: TypeMouvement
    quantite: float
    date_mouvement: datetime
    reference: str | None = None
    notes: str | None = None

    class Config:
        from_attributes = True


class ReponseMouvementsStock(BaseModel):
    mouvements: list[MouvementStockLecture]
    pagination: SchemaPagination

    class Config:
        from_attributes = True


class IndicateursFluxLecture(BaseModel):
    total: float
    nombre: int
    vitesse: float
    moyenne: float

    class Config:
        from_attributes = True


class ReponseStatistiquesStock(BaseModel):
    presentation: PresentationPellet
    jours: int
    depuis: datetime
    jusqu_a: datetime
    entrees: IndicateursFluxLecture
    sorties: IndicateursFluxLecture
    total_mouvements: int
    vitesse_totale: float
    stock_actuel: float
    rotation: float
    tendance: TendanceStock

    class Config:
        from_attributes = True


# ===== Intrants =====


class IntrantLecture(BaseModel):
    id: UUID
    nom: str
    quantite: float
    unite: str
    stock_minimum: float
    fournisseur_id: UUID | None = None
    numero_facture: str | None = None
    mis_a_jour_le: datetime

    class Config:
        from_attributes = True


class StatistiquesIntrantsLecture(BaseModel):
    total_articles: int
    stock_bas: int

    class Config:
        from_attributes = True


class ReponseListeIntrants(BaseModel):
    intrants: list[IntrantLecture]
    pagination: SchemaPagination
    statistiques: StatistiquesIntrantsLecture

    class Config:
        from_attributes = True


class RequeteAjouterIntrant(BaseModel):
    nom: str = Field(min_length=1, max_length=200)
    quantite: float = Field(ge=0)
    unite: str = "kg"
    stock_minimum: float | None = Field(default=None, ge=0)
    fournisseur_id: UUID | None = None
    numero_facture: str | None = None
    notes: str | None = None


class RequeteSortieIntrant(BaseModel):
    nom_intrant: str = Field(min_length=1)
    quantite: float = Field(ge=0.01)
    type_mouvement: TypeMouvement = TypeMouvement.SORTIE
    reference: str | None = None
    notes: str | None = None


class MouvementIntrantLecture(BaseModel):
    id: UUID
    nom_intrant: str
    type_mouvement: TypeMouvement
    quantite: float
    unite: str
    date_mouvement: datetime
    fournisseur_id: UUID | None = None
    numero_facture: str | None = None
    reference: str | None = None
    notes: str | None = None

    class Config:
        from_attributes = True


class ReponseMouvementsIntrant(BaseModel):
    mouvements: list[MouvementIntrantLecture]
    pagination: SchemaPagination

    class Config:
        from_attributes = True


class ReponseRollos(BaseModel):
    rollos: list[IntrantLecture]
    mouvements: list[MouvementIntrantLecture]

    class Config:
        from_attributes = True
