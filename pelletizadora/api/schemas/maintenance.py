from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class VenteComparee(BaseModel):
    vente_id: UUID
    client_id: UUID
    quantite: float
    prix_unitaire: float
    montant_total: float
    cree_le: datetime

    class Config:
        from_attributes = True


class GroupeDoublonsLecture(BaseModel):
    originale: VenteComparee
    doublons: list[VenteComparee]
    quantite_a_restituer: float
    montant_a_annuler: float

    class Config:
        from_attributes = True


class ReponseVentesDoublons(BaseModel):
    groupes: list[GroupeDoublonsLecture]
    nombre_doublons: int
    quantite_a_restituer: float
    montant_a_annuler: float

    class Config:
        from_attributes = True


class ReponseVerificationProduction(BaseModel):
    lots_dupliques: dict[str, int]
    sans_consommation: list[str]
    sans_generation: list[str]
    rendements_invalides: list[str]
    quantites_invalides: list[str]
    consommations_orphelines: int
    generations_orphelines: int
    nombre_problemes: int

    class Config:
        from_attributes = True


class ReponsePurge(BaseModel):
    lignes_supprimees: dict[str, int]
