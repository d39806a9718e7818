from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.api.dependances import fournir_session
from pelletizadora.api.schemas.commun import SchemaPagination
from pelletizadora.api.schemas.ventes import (
    PaiementVenteLecture,
    ReponseListeVentes,
    ReponseStatistiquesVentes,
    RequeteCreerVente,
    VenteAvecPaiementsLecture,
    VenteDetailLecture,
    VenteLecture,
)
from pelletizadora.domaine.enums.types import StatutReglement
from pelletizadora.domaine.services.reglements import ServiceReglement
from pelletizadora.domaine.services.stock import ErreurStock
from pelletizadora.domaine.services.ventes import (
    ClientVenteIntrouvable,
    DonneesInvalidesVente,
    ServiceVente,
    VenteDetaillee,
    VenteIntrouvable,
    VenteNonAnnulable,
)


routeur_ventes = APIRouter(prefix="/ventes", tags=["ventes"])


def _detail(d: VenteDetaillee) -> dict:
    return {
        **VenteLecture.model_validate(d.vente).model_dump(),
        "montant_paye": d.montant_paye,
        "montant_restant": d.montant_restant,
        "excedent": d.excedent,
    }


@routeur_ventes.get("", response_model=ReponseListeVentes)
async def lister_ventes(
    client_id: UUID | None = Query(default=None),
    statut: StatutReglement | None = Query(default=None),
    page: int = Query(1, ge=1),
    limite: int = Query(50, ge=1, le=200),
    session: AsyncSession = Depends(fournir_session),
) -> ReponseListeVentes:
    resultat = await ServiceVente(session).lister(client_id=client_id, statut=statut, page=page, limite=limite)
    return ReponseListeVentes(
        ventes=[VenteDetailLecture(**_detail(d)) for d in resultat.ventes],
        pagination=SchemaPagination.model_validate(resultat.pagination),
    )


@routeur_ventes.post("", response_model=VenteLecture, status_code=status.HTTP_201_CREATED)
async def creer_vente(
    requete: RequeteCreerVente,
    session: AsyncSession = Depends(fournir_session),
) -> VenteLecture:
    """Vente de pellet : décrément du stock et mouvement SORTIE « Vente {id} »."""

    try:
        vente = await ServiceVente(session).creer(**requete.model_dump())
    except ClientVenteIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except (DonneesInvalidesVente, ErreurStock) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Erreur inattendue : {e}") from e

    return VenteLecture.model_validate(vente)


@routeur_ventes.get("/statistiques", response_model=ReponseStatistiquesVentes)
async def statistiques_ventes(session: AsyncSession = Depends(fournir_session)) -> ReponseStatistiquesVentes:
    return ReponseStatistiquesVentes.model_validate(await ServiceVente(session).statistiques())


@routeur_ventes.get("/{vente_id}", response_model=VenteAvecPaiementsLecture)
async def obtenir_vente(vente_id: UUID, session: AsyncSession = Depends(fournir_session)) -> VenteAvecPaiementsLecture:
    try:
        detail = await ServiceVente(session).obtenir(vente_id)
    except VenteIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    situation = await ServiceReglement(session).lister_paiements_vente(vente_id)
    return VenteAvecPaiementsLecture(
        **_detail(detail),
        paiements=[PaiementVenteLecture.model_validate(p) for p in situation.paiements],
    )


@routeur_ventes.delete("/{vente_id}", status_code=status.HTTP_204_NO_CONTENT)
async def annuler_vente(vente_id: UUID, session: AsyncSession = Depends(fournir_session)) -> Response:
    try:
        await ServiceVente(session).annuler(vente_id)
    except VenteIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except VenteNonAnnulable as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Erreur inattendue : {e}") from e

    return Response(status_code=status.HTTP_204_NO_CONTENT)
