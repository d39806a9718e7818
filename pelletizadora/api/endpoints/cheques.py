from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.api.dependances import fournir_session
from pelletizadora.api.schemas.cheques import (
    ChequeLecture,
    ReponseListeCheques,
    RequeteCreerCheque,
    RequeteModifierCheque,
    RequeteStatutCheque,
)
from pelletizadora.api.schemas.commun import SchemaPagination
from pelletizadora.domaine.enums.types import StatutCheque
from pelletizadora.domaine.modeles.cheques import Cheque
from pelletizadora.domaine.services.cheques import (
    ChequeDuplique,
    ChequeIntrouvable,
    ChequeNonSupprimable,
    DonneesInvalidesCheque,
    ServiceCheque,
    TransitionStatutInterditeCheque,
    jours_avant_echeance,
)


routeur_cheques = APIRouter(prefix="/cheques", tags=["cheques"])


def _lecture(cheque: Cheque, *, maintenant: datetime) -> ChequeLecture:
    lecture = ChequeLecture.model_validate(cheque)
    lecture.jours_avant_echeance = jours_avant_echeance(cheque, maintenant=maintenant)
    return lecture


@routeur_cheques.get("", response_model=ReponseListeCheques)
async def lister_cheques(
    statut: StatutCheque | None = Query(default=None),
    est_echeq: bool | None = Query(default=None),
    echeance_proche: bool = Query(default=False),
    jours: int = Query(7, ge=0, le=365),
    page: int = Query(1, ge=1),
    limite: int = Query(10, ge=1, le=200),
    session: AsyncSession = Depends(fournir_session),
) -> ReponseListeCheques:
    maintenant = datetime.now(timezone.utc)
    resultat = await ServiceCheque(session).lister(
        statut=statut,
        est_echeq=est_echeq,
        echeance_proche=echeance_proche,
        jours=jours,
        page=page,
        limite=limite,
        maintenant=maintenant,
    )
    return ReponseListeCheques(
        cheques=[_lecture(c, maintenant=maintenant) for c in resultat.cheques],
        pagination=SchemaPagination.model_validate(resultat.pagination),
        statistiques={s: {"nombre": st.nombre, "montant_total": st.montant_total} for s, st in resultat.statistiques.items()},
    )


@routeur_cheques.post("", response_model=ChequeLecture, status_code=status.HTTP_201_CREATED)
async def creer_cheque(
    requete: RequeteCreerCheque,
    session: AsyncSession = Depends(fournir_session),
) -> ChequeLecture:
    try:
        cheque = await ServiceCheque(session).creer(**requete.model_dump())
    except ChequeDuplique as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except DonneesInvalidesCheque as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Erreur inattendue : {e}") from e

    return _lecture(cheque, maintenant=datetime.now(timezone.utc))


@routeur_cheques.get("/echeances", response_model=list[ChequeLecture])
async def echeances_cheques(
    jours: int = Query(7, ge=0, le=365),
    session: AsyncSession = Depends(fournir_session),
) -> list[ChequeLecture]:
    maintenant = datetime.now(timezone.utc)
    cheques = await ServiceCheque(session).echeances_proches(jours=jours, maintenant=maintenant)
    return [_lecture(c, maintenant=maintenant) for c in cheques]


@routeur_cheques.get("/{cheque_id}", response_model=ChequeLecture)
async def obtenir_cheque(cheque_id: UUID, session: AsyncSession = Depends(fournir_session)) -> ChequeLecture:
    try:
        cheque = await ServiceCheque(session).obtenir(cheque_id)
    except ChequeIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    return _lecture(cheque, maintenant=datetime.now(timezone.utc))


@routeur_cheques.put("/{cheque_id}", response_model=ChequeLecture)
async def modifier_cheque(
    cheque_id: UUID,
    requete: RequeteModifierCheque,
    session: AsyncSession = Depends(fournir_session),
) -> ChequeLecture:
    try:
        cheque = await ServiceCheque(session).modifier(cheque_id, **requete.model_dump(exclude_unset=True))
    except ChequeIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ChequeDuplique as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except DonneesInvalidesCheque as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Erreur inattendue : {e}") from e

    return _lecture(cheque, maintenant=datetime.now(timezone.utc))


@routeur_cheques.put("/{cheque_id}/statut", response_model=ChequeLecture)
async def changer_statut_cheque(
    cheque_id: UUID,
    requete: RequeteStatutCheque,
    session: AsyncSession = Depends(fournir_session),
) -> ChequeLecture:
    try:
        cheque = await ServiceCheque(session).changer_statut(cheque_id, statut=requete.statut, notes=requete.notes)
    except ChequeIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except TransitionStatutInterditeCheque as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Erreur inattendue : {e}") from e

    return _lecture(cheque, maintenant=datetime.now(timezone.utc))


@routeur_cheques.delete("/{cheque_id}", status_code=status.HTTP_204_NO_CONTENT)
async def supprimer_cheque(cheque_id: UUID, session: AsyncSession = Depends(fournir_session)) -> Response:
    try:
        await ServiceCheque(session).supprimer(cheque_id)
    except ChequeIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ChequeNonSupprimable as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Erreur inattendue : {e}") from e

    return Response(status_code=status.HTTP_204_NO_CONTENT)
