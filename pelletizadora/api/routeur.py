from __future__ import annotations

from fastapi import APIRouter, Depends

from pelletizadora.api.dependances_auth import verifier_acces
from pelletizadora.api.endpoints.auth import routeur_auth
from pelletizadora.api.endpoints.cheques import routeur_cheques
from pelletizadora.api.endpoints.clients import routeur_clients
from pelletizadora.api.endpoints.factures import routeur_factures
from pelletizadora.api.endpoints.fournisseurs import routeur_fournisseurs
from pelletizadora.api.endpoints.intrants import routeur_intrants
from pelletizadora.api.endpoints.maintenance import routeur_maintenance
from pelletizadora.api.endpoints.paiements import routeur_paiements
from pelletizadora.api.endpoints.production import routeur_production
from pelletizadora.api.endpoints.stock import routeur_stock
from pelletizadora.api.endpoints.ventes import routeur_ventes


# ==============================
# ROUTEUR PRINCIPAL
# ==============================
router = APIRouter()

# Auth (hors /api : login, inscription, bootstrap admin)
router.include_router(routeur_auth)


# ==============================
# API MÉTIER (JWT ou X-CLE-INTERNE)
# ==============================
routeur_api = APIRouter(prefix="/api", dependencies=[Depends(verifier_acces)])

# Tiers
routeur_api.include_router(routeur_clients)
routeur_api.include_router(routeur_fournisseurs)

# Achats / trésorerie
routeur_api.include_router(routeur_factures)
routeur_api.include_router(routeur_cheques)

# Stocks et production
routeur_api.include_router(routeur_stock)
routeur_api.include_router(routeur_intrants)
routeur_api.include_router(routeur_production)

# Ventes et encaissements
routeur_api.include_router(routeur_ventes)
routeur_api.include_router(routeur_paiements)

# Contrôles de données
routeur_api.include_router(routeur_maintenance)

router.include_router(routeur_api)
