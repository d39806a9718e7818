from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.api.dependances import fournir_session
from pelletizadora.api.schemas.tiers import (
    ClientLecture,
    MouvementCreditLecture,
    ReponseAppliquerCredit,
    ReponseListeClients,
    ReponseSoldeCredit,
    ReponseStatistiquesClients,
    RequeteAppliquerCredit,
    RequeteCreerClient,
    RequeteModifierClient,
)
from pelletizadora.domaine.services.clients import (
    ClientDuplique,
    ClientIntrouvable,
    ClientNonSupprimable,
    DonneesInvalidesClient,
    ServiceClient,
)
from pelletizadora.domaine.services.reglements import (
    ClientReglementIntrouvable,
    DonneesInvalidesReglement,
    ServiceReglement,
    SoldeCreditInsuffisant,
    VenteAutreClient,
    VenteDejaPayee,
    VenteReglementIntrouvable,
)


routeur_clients = APIRouter(prefix="/clients", tags=["clients"])


@routeur_clients.get("", response_model=ReponseListeClients)
async def lister_clients(
    recherche: str | None = Query(default=None),
    page: int = Query(1, ge=1),
    limite: int = Query(50, ge=1, le=200),
    session: AsyncSession = Depends(fournir_session),
) -> ReponseListeClients:
    resultat = await ServiceClient(session).lister(recherche=recherche, page=page, limite=limite)
    return ReponseListeClients.model_validate(resultat)


@routeur_clients.post("", response_model=ClientLecture, status_code=status.HTTP_201_CREATED)
async def creer_client(
    requete: RequeteCreerClient,
    session: AsyncSession = Depends(fournir_session),
) -> ClientLecture:
    service = ServiceClient(session)

    try:
        client = await service.creer(**requete.model_dump())
    except ClientDuplique as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except DonneesInvalidesClient as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Erreur inattendue : {e}") from e

    return ClientLecture.model_validate(client)


@routeur_clients.get("/statistiques", response_model=ReponseStatistiquesClients)
async def statistiques_clients(session: AsyncSession = Depends(fournir_session)) -> ReponseStatistiquesClients:
    return ReponseStatistiquesClients.model_validate(await ServiceClient(session).statistiques())


@routeur_clients.get("/{client_id}", response_model=ClientLecture)
async def obtenir_client(client_id: UUID, session: AsyncSession = Depends(fournir_session)) -> ClientLecture:
    try:
        client = await ServiceClient(session).obtenir(client_id)
    except ClientIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    return ClientLecture.model_validate(client)


@routeur_clients.put("/{client_id}", response_model=ClientLecture)
async def modifier_client(
    client_id: UUID,
    requete: RequeteModifierClient,
    session: AsyncSession = Depends(fournir_session),
) -> ClientLecture:
    service = ServiceClient(session)

    try:
        client = await service.modifier(client_id, **requete.model_dump(exclude_unset=True))
    except ClientIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ClientDuplique as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except DonneesInvalidesClient as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Erreur inattendue : {e}") from e

    return ClientLecture.model_validate(client)


@routeur_clients.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def supprimer_client(client_id: UUID, session: AsyncSession = Depends(fournir_session)) -> Response:
    try:
        await ServiceClient(session).supprimer(client_id)
    except ClientIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ClientNonSupprimable as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Erreur inattendue : {e}") from e

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@routeur_clients.get("/{client_id}/solde-credit", response_model=ReponseSoldeCredit)
async def solde_credit_client(client_id: UUID, session: AsyncSession = Depends(fournir_session)) -> ReponseSoldeCredit:
    try:
        client = await ServiceReglement(session).solde_credit(client_id)
    except ClientReglementIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    return ReponseSoldeCredit(
        client_id=client.id,
        nom=client.nom,
        entreprise=client.entreprise,
        solde_credit=float(client.solde_credit or 0.0),
    )


@routeur_clients.get("/{client_id}/mouvements-credit", response_model=list[MouvementCreditLecture])
async def mouvements_credit_client(
    client_id: UUID,
    session: AsyncSession = Depends(fournir_session),
) -> list[MouvementCreditLecture]:
    try:
        mouvements = await ServiceClient(session).mouvements_credit(client_id)
    except ClientIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    return [MouvementCreditLecture.model_validate(m) for m in mouvements]


@routeur_clients.post("/{client_id}/appliquer-credit", response_model=ReponseAppliquerCredit)
async def appliquer_credit_client(
    client_id: UUID,
    requete: RequeteAppliquerCredit,
    session: AsyncSession = Depends(fournir_session),
) -> ReponseAppliquerCredit:
    service = ServiceReglement(session)

    try:
        resultat = await service.appliquer_credit(
            client_id=client_id,
            vente_id=requete.vente_id,
            montant=requete.montant,
            notes=requete.notes,
        )
    except (ClientReglementIntrouvable, VenteReglementIntrouvable) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except (SoldeCreditInsuffisant, VenteAutreClient, VenteDejaPayee, DonneesInvalidesReglement) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Erreur inattendue : {e}") from e

    return ReponseAppliquerCredit.model_validate(resultat)
