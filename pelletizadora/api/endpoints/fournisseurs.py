from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.api.dependances import fournir_session
from pelletizadora.api.schemas.tiers import (
    FournisseurLecture,
    ReponseListeFournisseurs,
    ReponseStatistiquesFournisseurs,
    RequeteCreerFournisseur,
    RequeteModifierFournisseur,
)
from pelletizadora.domaine.services.fournisseurs import (
    DonneesInvalidesFournisseur,
    FournisseurDuplique,
    FournisseurIntrouvable,
    FournisseurNonSupprimable,
    ServiceFournisseur,
)


routeur_fournisseurs = APIRouter(prefix="/fournisseurs", tags=["fournisseurs"])


@routeur_fournisseurs.get("", response_model=ReponseListeFournisseurs)
async def lister_fournisseurs(
    recherche: str | None = Query(default=None),
    page: int = Query(1, ge=1),
    limite: int = Query(50, ge=1, le=200),
    session: AsyncSession = Depends(fournir_session),
) -> ReponseListeFournisseurs:
    resultat = await ServiceFournisseur(session).lister(recherche=recherche, page=page, limite=limite)
    return ReponseListeFournisseurs.model_validate(resultat)


@routeur_fournisseurs.post("", response_model=FournisseurLecture, status_code=status.HTTP_201_CREATED)
async def creer_fournisseur(
    requete: RequeteCreerFournisseur,
    session: AsyncSession = Depends(fournir_session),
) -> FournisseurLecture:
    try:
        fournisseur = await ServiceFournisseur(session).creer(**requete.model_dump())
    except FournisseurDuplique as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except DonneesInvalidesFournisseur as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Erreur inattendue : {e}") from e

    return FournisseurLecture.model_validate(fournisseur)


@routeur_fournisseurs.get("/statistiques", response_model=ReponseStatistiquesFournisseurs)
async def statistiques_fournisseurs(
    session: AsyncSession = Depends(fournir_session),
) -> ReponseStatistiquesFournisseurs:
    """Soldes par fournisseur (facturé, payé, dette) et agrégats globaux."""

    return ReponseStatistiquesFournisseurs.model_validate(await ServiceFournisseur(session).statistiques())


@routeur_fournisseurs.get("/{fournisseur_id}", response_model=FournisseurLecture)
async def obtenir_fournisseur(
    fournisseur_id: UUID,
    session: AsyncSession = Depends(fournir_session),
) -> FournisseurLecture:
    try:
        fournisseur = await ServiceFournisseur(session).obtenir(fournisseur_id)
    except FournisseurIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    return FournisseurLecture.model_validate(fournisseur)


@routeur_fournisseurs.put("/{fournisseur_id}", response_model=FournisseurLecture)
async def modifier_fournisseur(
    fournisseur_id: UUID,
    requete: RequeteModifierFournisseur,
    session: AsyncSession = Depends(fournir_session),
) -> FournisseurLecture:
    try:
        fournisseur = await ServiceFournisseur(session).modifier(
            fournisseur_id, **requete.model_dump(exclude_unset=True)
        )
    except FournisseurIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except FournisseurDuplique as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except DonneesInvalidesFournisseur as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Erreur inattendue : {e}") from e

    return FournisseurLecture.model_validate(fournisseur)


@routeur_fournisseurs.delete("/{fournisseur_id}", status_code=status.HTTP_204_NO_CONTENT)
async def supprimer_fournisseur(fournisseur_id: UUID, session: AsyncSession = Depends(fournir_session)) -> Response:
    try:
        await ServiceFournisseur(session).supprimer(fournisseur_id)
    except FournisseurIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except FournisseurNonSupprimable as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Erreur inattendue : {e}") from e

    return Response(status_code=status.HTTP_204_NO_CONTENT)
