from __future__ import annotations

import enum


class PresentationPellet(str, enum.Enum):
    """Conditionnement du pellet vendu / stocké.

    Les valeurs sont les libellés commerciaux utilisés sur les bons.
    """

    BOLSA_25KG = "Bolsa 25kg"
    BIG_BAG = "Big Bag"
    GRANEL = "Granel"


class TypeMouvement(str, enum.Enum):
    """Sens d’un mouvement de stock (pellet ou intrant).

    PRODUCTION n’existe que pour les intrants (consommation par un lot).
    """

    ENTREE = "ENTREE"
    SORTIE = "SORTIE"
    PRODUCTION = "PRODUCTION"


class StatutReglement(str, enum.Enum):
    """Statut de règlement d’une vente ou d’une facture fournisseur.

    Toujours dérivé du cumul payé vs total, jamais saisi.
    """

    EN_ATTENTE = "EN_ATTENTE"
    PARTIEL = "PARTIEL"
    PAYE = "PAYE"


class MethodePaiement(str, enum.Enum):
    ESPECES = "ESPECES"
    VIREMENT = "VIREMENT"
    CHEQUE = "CHEQUE"
    CARTE = "CARTE"
    SOLDE_CREDIT = "SOLDE_CREDIT"
    AUTRE = "AUTRE"


METHODES_PAIEMENT_VENTE = frozenset(
    {
        MethodePaiement.ESPECES,
        MethodePaiement.VIREMENT,
        MethodePaiement.CHEQUE,
        MethodePaiement.CARTE,
        MethodePaiement.SOLDE_CREDIT,
    }
)

METHODES_PAIEMENT_FACTURE = frozenset(
    {
        MethodePaiement.ESPECES,
        MethodePaiement.VIREMENT,
        MethodePaiement.CHEQUE,
        MethodePaiement.AUTRE,
    }
)


class StatutCheque(str, enum.Enum):
    """Cycle de vie d’un chèque (ou echeq).

    REMIS : chèque de tiers endossé à un fournisseur pour régler une facture.
    """

    EN_ATTENTE = "EN_ATTENTE"
    ENCAISSE = "ENCAISSE"
    REJETE = "REJETE"
    ECHU = "ECHU"
    REMIS = "REMIS"


class TypeLigneFacture(str, enum.Enum):
    ROLLO_ALFALFA = "ROLLO_ALFALFA"
    ROLLO_AUTRE = "ROLLO_AUTRE"
    INTRANT = "INTRANT"
    SERVICE = "SERVICE"
    AUTRE = "AUTRE"


class TypeMouvementCredit(str, enum.Enum):
    """Écriture du compte « saldo a favor » d’un client."""

    EXCEDENT = "EXCEDENT"
    IMPUTATION = "IMPUTATION"


class TendanceStock(str, enum.Enum):
    CROISSANTE = "CROISSANTE"
    DECROISSANTE = "DECROISSANTE"
    STABLE = "STABLE"


class RoleUtilisateur(str, enum.Enum):
    ADMIN = "ADMIN"
    UTILISATEUR = "UTILISATEUR"
