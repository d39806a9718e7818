from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.api.dependances import fournir_session
from pelletizadora.api.schemas.ventes import (
    PaiementVenteLecture,
    ReponsePaiementsVente,
    ReponsePaiementVente,
    RequetePaiementVente,
)
from pelletizadora.domaine.services.cheques import ChequeDuplique, DonneesInvalidesCheque
from pelletizadora.domaine.services.reglements import (
    ClientReglementIntrouvable,
    DonneesChequePaiement,
    DonneesInvalidesReglement,
    ServiceReglement,
    SoldeCreditInsuffisant,
    VenteAutreClient,
    VenteDejaPayee,
    VenteReglementIntrouvable,
)


routeur_paiements = APIRouter(prefix="/paiements", tags=["paiements"])


@routeur_paiements.get("", response_model=ReponsePaiementsVente)
async def lister_paiements(
    vente_id: UUID = Query(...),
    session: AsyncSession = Depends(fournir_session),
) -> ReponsePaiementsVente:
    try:
        situation = await ServiceReglement(session).lister_paiements_vente(vente_id)
    except VenteReglementIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    return ReponsePaiementsVente(
        vente_id=situation.vente.id,
        montant_total=situation.vente.montant_total,
        montant_paye=situation.montant_paye,
        montant_restant=situation.montant_restant,
        excedent=situation.excedent,
        paiements=[PaiementVenteLecture.model_validate(p) for p in situation.paiements],
    )


@routeur_paiements.post("", response_model=ReponsePaiementVente, status_code=status.HTTP_201_CREATED)
async def enregistrer_paiement(
    requete: RequetePaiementVente,
    session: AsyncSession = Depends(fournir_session),
) -> ReponsePaiementVente:
    """Paiement d’une vente.

    L’excédent éventuel est crédité au client (solde_credit). SOLDE_CREDIT
    impute le crédit existant du client.
    """

    cheque = None
    if requete.cheque is not None:
        cheque = DonneesChequePaiement(**requete.cheque.model_dump())

    try:
        resultat = await ServiceReglement(session).enregistrer_paiement_vente(
            vente_id=requete.vente_id,
            montant=requete.montant,
            methode=requete.methode,
            date_paiement=requete.date_paiement,
            reference=requete.reference,
            notes=requete.notes,
            cheque=cheque,
        )
    except (VenteReglementIntrouvable, ClientReglementIntrouvable) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except (VenteDejaPayee, ChequeDuplique) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except (DonneesInvalidesReglement, SoldeCreditInsuffisant, VenteAutreClient, DonneesInvalidesCheque) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Erreur inattendue : {e}") from e

    return ReponsePaiementVente.model_validate(resultat)
