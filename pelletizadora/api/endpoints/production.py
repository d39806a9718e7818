from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.api.dependances import fournir_session
from pelletizadora.api.schemas.production import (
    ProductionDetailLecture,
    ReponseListeProductions,
    ReponseProchainLot,
    RequeteEnregistrerProduction,
)
from pelletizadora.domaine.services.intrants import ErreurIntrant
from pelletizadora.domaine.services.production import (
    ConsommationSaisie,
    DonneesInvalidesProduction,
    GenerationSaisie,
    LotDejaExistant,
    ProductionIntrouvable,
    ServiceProduction,
)


routeur_production = APIRouter(prefix="/production", tags=["production"])


@routeur_production.get("", response_model=ReponseListeProductions)
async def lister_productions(
    page: int = Query(1, ge=1),
    limite: int = Query(20, ge=1, le=200),
    session: AsyncSession = Depends(fournir_session),
) -> ReponseListeProductions:
    return ReponseListeProductions.model_validate(await ServiceProduction(session).lister(page=page, limite=limite))


@routeur_production.get("/prochain-lot", response_model=ReponseProchainLot)
async def prochain_lot(session: AsyncSession = Depends(fournir_session)) -> ReponseProchainLot:
    return ReponseProchainLot(numero_lot=await ServiceProduction(session).prochain_numero_lot())


@routeur_production.post("", response_model=ProductionDetailLecture, status_code=status.HTTP_201_CREATED)
async def enregistrer_production(
    requete: RequeteEnregistrerProduction,
    session: AsyncSession = Depends(fournir_session),
) -> ProductionDetailLecture:
    service = ServiceProduction(session)

    try:
        detail = await service.enregistrer(
            type_pellet=requete.type_pellet,
            quantite_totale=requete.quantite_totale,
            numero_lot=requete.numero_lot,
            rendement=requete.rendement,
            operateur=requete.operateur,
            notes=requete.notes,
            date_production=requete.date_production,
            consommations=[
                ConsommationSaisie(nom_intrant=c.nom_intrant, quantite=c.quantite, notes=c.notes)
                for c in requete.consommations
            ],
            generations=[
                GenerationSaisie(presentation=g.presentation, quantite=g.quantite, notes=g.notes)
                for g in requete.generations
            ],
        )
    except LotDejaExistant as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except (DonneesInvalidesProduction, ErreurIntrant) as e:
        # intrant inconnu ou stock insuffisant : la production entière est refusée
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Erreur inattendue : {e}") from e

    return ProductionDetailLecture.model_validate(detail)


@routeur_production.get("/{production_id}", response_model=ProductionDetailLecture)
async def obtenir_production(
    production_id: UUID,
    session: AsyncSession = Depends(fournir_session),
) -> ProductionDetailLecture:
    try:
        detail = await ServiceProduction(session).obtenir(production_id)
    except ProductionIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    return ProductionDetailLecture.model_validate(detail)
