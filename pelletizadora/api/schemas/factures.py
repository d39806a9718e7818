from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from pelletizadora.api.schemas.commun import SchemaPagination
from pelletizadora.domaine.enums.types import MethodePaiement, StatutReglement, TypeLigneFacture


class RequeteLigneFacture(BaseModel):
    description: str = Field(min_length=1)
    type_ligne: TypeLigneFacture = TypeLigneFacture.AUTRE
    quantite: float = Field(gt=0)
    prix_unitaire: float = Field(ge=0)
    # kg par unité (rollos)
    poids_unitaire: float | None = Field(default=None, ge=0)


class RequeteCreerFacture(BaseModel):
    fournisseur_id: UUID
    numero: str = Field(min_length=1, max_length=60)
    date_facture: datetime | None = None
    date_echeance: datetime | None = None
    concept: str | None = None
    iva: float | None = Field(default=None, ge=0)
    notes: str | None = None
    lignes: list[RequeteLigneFacture] = Field(min_length=1)


class LigneFactureLecture(BaseModel):
    id: UUID
    position: int
    description: str
    type_ligne: TypeLigneFacture
    quantite: float
    prix_unitaire: float
    total: float
    poids_unitaire: float | None = None

    class Config:
        from_attributes = True


class PaiementFactureLecture(BaseModel):
    id: UUID
    montant: float
    methode: MethodePaiement
    date_paiement: datetime
    reference: str | None = None
    description: str | None = None
    cheque_id: UUID | None = None

    class Config:
        from_attributes = True


class FactureLecture(BaseModel):
    id: UUID
    fournisseur_id: UUID
    numero: str
    date_facture: datetime
    date_echeance: datetime | None = None
    concept: str
    sous_total: float
    iva: float
    total: float
    statut: StatutReglement
    notes: str | None = None
    montant_paye: float
    montant_restant: float
    lignes: list[LigneFactureLecture]


class FactureDetailLecture(FactureLecture):
    paiements: list[PaiementFactureLecture]


class ReponseListeFactures(BaseModel):
    factures: list[FactureLecture]
    pagination: SchemaPagination


class RequetePaiementFacture(BaseModel):
    montant: float = Field(gt=0)
    methode: MethodePaiement
    date_paiement: datetime | None = None
    reference: str | None = None
    description: str | None = None
    cheque_id: UUID | None = None


class ReponsePaiementsFacture(BaseModel):
    facture_id: UUID
    total: float
    total_paye: float
    montant_restant: float
    statut: StatutReglement
    paiements: list[PaiementFactureLecture]


class ReponseDependancesFacture(BaseModel):
    nombre_paiements: int
    nombre_mouvements_intrant: int
    intrants_consommes: list[str]
    critique: bool
    avertissements: list[str]

    class Config:
        from_attributes = True


class ReponseSuppressionFacture(BaseModel):
    supprimee: bool
    dependances: ReponseDependancesFacture

    class Config:
        from_attributes = True
