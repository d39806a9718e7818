from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.api.dependances import fournir_session
from pelletizadora.api.dependances_auth import fournir_utilisateur_courant, verifier_roles_requis
from pelletizadora.api.schemas.maintenance import (
    ReponsePurge,
    ReponseVentesDoublons,
    ReponseVerificationProduction,
)
from pelletizadora.domaine.enums.types import RoleUtilisateur
from pelletizadora.domaine.modeles.auth import User
from pelletizadora.domaine.services.maintenance import ServiceMaintenance


logger = logging.getLogger(__name__)


routeur_maintenance = APIRouter(prefix="/maintenance", tags=["maintenance"])


@routeur_maintenance.get("/ventes-doublons", response_model=ReponseVentesDoublons)
async def ventes_doublons(
    fenetre: int | None = Query(default=None, ge=1, le=100),
    ecart_secondes: int | None = Query(default=None, ge=1, le=3600),
    session: AsyncSession = Depends(fournir_session),
) -> ReponseVentesDoublons:
    """Rapport seul : la correction passe par scripts/verifier_ventes_doublons.py."""

    rapport = await ServiceMaintenance(session).rapport_ventes_doublons(fenetre=fenetre, ecart_secondes=ecart_secondes)
    return ReponseVentesDoublons.model_validate(rapport)


@routeur_maintenance.get("/production", response_model=ReponseVerificationProduction)
async def verification_production(session: AsyncSession = Depends(fournir_session)) -> ReponseVerificationProduction:
    return ReponseVerificationProduction.model_validate(await ServiceMaintenance(session).verifier_production())


@routeur_maintenance.post(
    "/purge",
    response_model=ReponsePurge,
    dependencies=[Depends(verifier_roles_requis(RoleUtilisateur.ADMIN))],
)
async def purger(
    user: User = Depends(fournir_utilisateur_courant),
    session: AsyncSession = Depends(fournir_session),
) -> ReponsePurge:
    comptes = await ServiceMaintenance(session).purger_donnees()
    logger.warning("purge_demandee user_id=%s", user.id)
    return ReponsePurge(lignes_supprimees=comptes)
