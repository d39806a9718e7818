"""Modèles SQLAlchemy.

On ne met aucune logique métier ici : uniquement la structure des tables.
"""

from pelletizadora.domaine.modeles.base import BaseModele, ModeleHorodate
from pelletizadora.domaine.modeles.auth import User
from pelletizadora.domaine.modeles.tiers import Client, Fournisseur
from pelletizadora.domaine.modeles.factures import FactureFournisseur, LigneFactureFournisseur, PaiementFacture
from pelletizadora.domaine.modeles.cheques import Cheque
from pelletizadora.domaine.modeles.stock import MouvementIntrant, MouvementStockPellet, StockIntrant, StockPellet
from pelletizadora.domaine.modeles.production import ConsommationIntrant, GenerationPellet, Production
from pelletizadora.domaine.modeles.ventes import MouvementCredit, PaiementVente, Vente

__all__ = [
    "BaseModele",
    "ModeleHorodate",
    "User",
    "Client",
    "Fournisseur",
    "FactureFournisseur",
    "LigneFactureFournisseur",
    "PaiementFacture",
    "Cheque",
    "StockPellet",
    "MouvementStockPellet",
    "StockIntrant",
    "MouvementIntrant",
    "Production",
    "ConsommationIntrant",
    "GenerationPellet",
    "Vente",
    "PaiementVente",
    "MouvementCredit",
]
