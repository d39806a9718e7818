from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from pelletizadora.api.schemas.commun import SchemaPagination
from pelletizadora.domaine.enums.types import MethodePaiement, PresentationPellet, StatutReglement


class RequeteCreerVente(BaseModel):
    client_id: UUID
    presentation: PresentationPellet
    quantite: float = Field(ge=0.001)
    prix_unitaire: float = Field(ge=0)
    date_vente: datetime | None = None
    lot: str | None = Field(default=None, max_length=30)
    notes: str | None = None


class VenteLecture(BaseModel):
    id: UUID
    client_id: UUID
    date_vente: datetime
    presentation: PresentationPellet
    quantite: float
    prix_unitaire: float
    montant_total: float
    lot: str | None = None
    notes: str | None = None
    statut: StatutReglement

    class Config:
        from_attributes = True


class VenteDetailLecture(VenteLecture):
    montant_paye: float
    montant_restant: float
    excedent: float


class PaiementVenteLecture(BaseModel):
    id: UUID
    vente_id: UUID
    montant: float
    date_paiement: datetime
    methode: MethodePaiement
    reference: str | None = None
    notes: str | None = None
    cheque_id: UUID | None = None

    class Config:
        from_attributes = True


class VenteAvecPaiementsLecture(VenteDetailLecture):
    paiements: list[PaiementVenteLecture]


class ReponseListeVentes(BaseModel):
    ventes: list[VenteDetailLecture]
    pagination: SchemaPagination


class MeilleurClientLecture(BaseModel):
    client_id: UUID
    nom: str
    entreprise: str
    montant_total: float
    nombre_ventes: int

    class Config:
        from_attributes = True


class ReponseStatistiquesVentes(BaseModel):
    total_ventes: int
    montant_total: float
    montant_paye: float
    montant_en_attente: float
    vente_moyenne: float
    meilleurs_clients: list[MeilleurClientLecture]
    ventes_recentes: list[VenteLecture]

    class Config:
        from_attributes = True


# ===== Paiements =====


class RequeteCheque(BaseModel):
    numero: str = Field(min_length=1, max_length=60)
    emis_par: str = Field(min_length=1)
    date_echeance: datetime
    recu_de: str | None = None
    montant: float | None = Field(default=None, ge=0)
    est_echeq: bool = False
    banque: str | None = None
    numero_compte: str | None = None


class RequetePaiementVente(BaseModel):
    vente_id: UUID
    montant: float = Field(gt=0)
    methode: MethodePaiement
    date_paiement: datetime | None = None
    reference: str | None = None
    notes: str | None = None
    cheque: RequeteCheque | None = None


class ReponsePaiementVente(BaseModel):
    paiement_id: UUID
    vente_id: UUID
    montant: float
    montant_impute: float
    excedent: float
    solde_credit_client: float
    statut_vente: StatutReglement
    cheque_id: UUID | None = None

    class Config:
        from_attributes = True


class ReponsePaiementsVente(BaseModel):
    vente_id: UUID
    montant_total: float
    montant_paye: float
    montant_restant: float
    excedent: float
    paiements: list[PaiementVenteLecture]
