from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.api.dependances import fournir_session
from pelletizadora.api.schemas.commun import SchemaPagination
from pelletizadora.api.schemas.stock import (
    IntrantLecture,
    MouvementIntrantLecture,
    ReponseListeIntrants,
    ReponseMouvementsIntrant,
    ReponseRollos,
    RequeteAjouterIntrant,
    RequeteSortieIntrant,
)
from pelletizadora.domaine.enums.types import TypeMouvement
from pelletizadora.domaine.services.intrants import (
    DonneesInvalidesIntrant,
    IntrantIntrouvable,
    ServiceIntrant,
    StockIntrantInsuffisant,
)


routeur_intrants = APIRouter(prefix="/intrants", tags=["intrants"])


@routeur_intrants.get("", response_model=ReponseListeIntrants)
async def lister_intrants(
    recherche: str | None = Query(default=None),
    page: int = Query(1),
    limite: int = Query(50),
    session: AsyncSession = Depends(fournir_session),
) -> ReponseListeIntrants:
    # bornes page/limite contrôlées par le service (400 explicite)
    try:
        resultat = await ServiceIntrant(session).lister(recherche=recherche, page=page, limite=limite)
    except DonneesInvalidesIntrant as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    return ReponseListeIntrants.model_validate(resultat)


@routeur_intrants.post("", response_model=IntrantLecture, status_code=status.HTTP_201_CREATED)
async def ajouter_intrant(
    requete: RequeteAjouterIntrant,
    session: AsyncSession = Depends(fournir_session),
) -> IntrantLecture:
    try:
        intrant = await ServiceIntrant(session).ajouter(**requete.model_dump())
    except DonneesInvalidesIntrant as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Erreur inattendue : {e}") from e

    return IntrantLecture.model_validate(intrant)


@routeur_intrants.get("/disponibles", response_model=list[IntrantLecture])
async def intrants_disponibles(session: AsyncSession = Depends(fournir_session)) -> list[IntrantLecture]:
    return [IntrantLecture.model_validate(i) for i in await ServiceIntrant(session).disponibles()]


@routeur_intrants.get("/mouvements", response_model=ReponseMouvementsIntrant)
async def mouvements_intrants(
    nom: str | None = Query(default=None),
    type_mouvement: TypeMouvement | None = Query(default=None),
    page: int = Query(1, ge=1),
    limite: int = Query(50, ge=1, le=200),
    session: AsyncSession = Depends(fournir_session),
) -> ReponseMouvementsIntrant:
    resultat = await ServiceIntrant(session).mouvements(
        nom=nom,
        type_mouvement=type_mouvement,
        page=page,
        limite=limite,
    )
    return ReponseMouvementsIntrant(
        mouvements=[MouvementIntrantLecture.model_validate(m) for m in resultat.mouvements],
        pagination=SchemaPagination.model_validate(resultat.pagination),
    )


@routeur_intrants.post("/mouvements", response_model=IntrantLecture, status_code=status.HTTP_201_CREATED)
async def sortie_intrant(
    requete: RequeteSortieIntrant,
    session: AsyncSession = Depends(fournir_session),
) -> IntrantLecture:
    """Sortie manuelle ou consommation hors lot (SORTIE / PRODUCTION)."""

    try:
        intrant = await ServiceIntrant(session).enregistrer_sortie(
            nom=requete.nom_intrant,
            quantite=requete.quantite,
            type_mouvement=requete.type_mouvement,
            reference=requete.reference,
            notes=requete.notes,
        )
    except IntrantIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except (StockIntrantInsuffisant, DonneesInvalidesIntrant) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Erreur inattendue : {e}") from e

    return IntrantLecture.model_validate(intrant)


@routeur_intrants.get("/rollos", response_model=ReponseRollos)
async def rollos(
    limite_mouvements: int = Query(50, ge=1, le=500),
    session: AsyncSession = Depends(fournir_session),
) -> ReponseRollos:
    return ReponseRollos.model_validate(await ServiceIntrant(session).rollos(limite_mouvements=limite_mouvements))
