from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.api.dependances import fournir_session
from pelletizadora.api.schemas.commun import SchemaPagination
from pelletizadora.api.schemas.stock import (
    MouvementStockLecture,
    ReponseMouvementsStock,
    ReponseStatistiquesStock,
    RequeteAjouterStock,
    StockPelletLecture,
)
from pelletizadora.domaine.enums.types import PresentationPellet, TypeMouvement
from pelletizadora.domaine.services.stock import DonneesInvalidesStock, ServiceStockPellet


routeur_stock = APIRouter(prefix="/stock", tags=["stock"])


@routeur_stock.get("", response_model=list[StockPelletLecture])
async def lister_stock(session: AsyncSession = Depends(fournir_session)) -> list[StockPelletLecture]:
    stocks = await ServiceStockPellet(session).lister()
    return [StockPelletLecture.model_validate(s) for s in stocks]


@routeur_stock.post("", response_model=StockPelletLecture, status_code=status.HTTP_201_CREATED)
async def ajouter_stock(
    requete: RequeteAjouterStock,
    session: AsyncSession = Depends(fournir_session),
) -> StockPelletLecture:
    """Chargement manuel de pellet (mouvement ENTREE « Chargement manuel »)."""

    try:
        stock = await ServiceStockPellet(session).ajouter_manuel(
            presentation=requete.presentation,
            quantite=requete.quantite,
            notes=requete.notes,
        )
    except DonneesInvalidesStock as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Erreur inattendue : {e}") from e

    return StockPelletLecture.model_validate(stock)


@routeur_stock.get("/mouvements", response_model=ReponseMouvementsStock)
async def mouvements_stock(
    presentation: PresentationPellet | None = Query(default=None),
    type_mouvement: TypeMouvement | None = Query(default=None),
    page: int = Query(1, ge=1),
    limite: int = Query(50, ge=1, le=200),
    session: AsyncSession = Depends(fournir_session),
) -> ReponseMouvementsStock:
    resultat = await ServiceStockPellet(session).mouvements(
        presentation=presentation,
        type_mouvement=type_mouvement,
        page=page,
        limite=limite,
    )
    return ReponseMouvementsStock(
        mouvements=[MouvementStockLecture.model_validate(m) for m in resultat.mouvements],
        pagination=SchemaPagination.model_validate(resultat.pagination),
    )


@routeur_stock.get("/statistiques", response_model=ReponseStatistiquesStock)
async def statistiques_stock(
    presentation: PresentationPellet = Query(default=PresentationPellet.GRANEL),
    jours: int = Query(30, ge=1, le=365),
    session: AsyncSession = Depends(fournir_session),
) -> ReponseStatistiquesStock:
    try:
        stats = await ServiceStockPellet(session).statistiques(presentation=presentation, jours=jours)
    except DonneesInvalidesStock as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    return ReponseStatistiquesStock.model_validate(stats)
