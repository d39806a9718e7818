from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from pelletizadora.api.schemas.commun import SchemaPagination
from pelletizadora.domaine.enums.types import StatutReglement, TypeMouvementCredit


# ===== Clients =====


class RequeteCreerClient(BaseModel):
    nom: str = Field(min_length=1)
    entreprise: str = Field(min_length=1)
    cuit: str = Field(min_length=1, max_length=20)
    contact: str = Field(min_length=1)
    email: EmailStr | None = None
    adresse: str | None = None
    telephone: str | None = None


class RequeteModifierClient(BaseModel):
    nom: str | None = None
    entreprise: str | None = None
    cuit: str | None = Field(default=None, max_length=20)
    contact: str | None = None
    email: EmailStr | None = None
    adresse: str | None = None
    telephone: str | None = None


class ClientLecture(BaseModel):
    id: UUID
    nom: str
    entreprise: str
    cuit: str
    contact: str
    email: str | None = None
    adresse: str | None = None
    telephone: str | None = None
    solde_credit: float
    cree_le: datetime

    class Config:
        from_attributes = True


class ReponseListeClients(BaseModel):
    clients: list[ClientLecture]
    pagination: SchemaPagination

    class Config:
        from_attributes = True


class ClientClasseLecture(BaseModel):
    client_id: UUID
    nom: str
    entreprise: str
    montant_total: float
    nombre_ventes: int

    class Config:
        from_attributes = True


class ReponseStatistiquesClients(BaseModel):
    total_clients: int
    avec_email: int
    avec_telephone: int
    recents_30_jours: int
    pourcentage_email: float
    pourcentage_telephone: float
    meilleurs_clients: list[ClientClasseLecture]

    class Config:
        from_attributes = True


class ReponseSoldeCredit(BaseModel):
    client_id: UUID
    nom: str
    entreprise: str
    solde_credit: float


class MouvementCreditLecture(BaseModel):
    id: UUID
    type_mouvement: TypeMouvementCredit
    montant: float
    vente_id: UUID | None = None
    paiement_id: UUID | None = None
    description: str | None = None
    date_mouvement: datetime

    class Config:
        from_attributes = True


class RequeteAppliquerCredit(BaseModel):
    vente_id: UUID
    montant: float = Field(gt=0)
    notes: str | None = None


class ReponseAppliquerCredit(BaseModel):
    paiement_id: UUID
    vente_id: UUID
    montant_impute: float
    solde_restant: float
    statut_vente: StatutReglement

    class Config:
        from_attributes = True


# ===== Fournisseurs =====


class RequeteCreerFournisseur(BaseModel):
    raison_sociale: str = Field(min_length=1)
    cuit: str = Field(min_length=1, max_length=20)
    contact: str | None = None
    email: EmailStr | None = None
    adresse: str | None = None
    telephone: str | None = None


class RequeteModifierFournisseur(BaseModel):
    raison_sociale: str | None = None
    cuit: str | None = Field(default=None, max_length=20)
    contact: str | None = None
    email: EmailStr | None = None
    adresse: str | None = None
    telephone: str | None = None


class FournisseurLecture(BaseModel):
    id: UUID
    raison_sociale: str
    cuit: str
    contact: str | None = None
    email: str | None = None
    adresse: str | None = None
    telephone: str | None = None
    cree_le: datetime

    class Config:
        from_attributes = True


class ReponseListeFournisseurs(BaseModel):
    fournisseurs: list[FournisseurLecture]
    pagination: SchemaPagination

    class Config:
        from_attributes = True


class SoldeFournisseurLecture(BaseModel):
    fournisseur_id: UUID
    raison_sociale: str
    cuit: str
    total_facture: float
    total_paye: float
    solde: float
    nombre_factures: int
    factures_en_attente: int
    factures_partielles: int
    factures_payees: int
    a_dette: bool

    class Config:
        from_attributes = True


class ReponseStatistiquesFournisseurs(BaseModel):
    total_fournisseurs: int
    fournisseurs_avec_dette: int
    total_facture: float
    total_paye: float
    solde_total: float
    dette_moyenne: float
    fournisseurs: list[SoldeFournisseurLecture]

    class Config:
        from_attributes = True
