from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.api.dependances import fournir_session
from pelletizadora.api.schemas.commun import SchemaPagination
from pelletizadora.api.schemas.factures import (
    FactureDetailLecture,
    FactureLecture,
    LigneFactureLecture,
    PaiementFactureLecture,
    ReponseDependancesFacture,
    ReponseListeFactures,
    ReponsePaiementsFacture,
    ReponseSuppressionFacture,
    RequeteCreerFacture,
    RequetePaiementFacture,
)
from pelletizadora.domaine.enums.types import StatutReglement
from pelletizadora.domaine.modeles.factures import FactureFournisseur
from pelletizadora.domaine.services.factures import (
    ChequeIndisponible,
    DonneesInvalidesFacture,
    FactureDupliquee,
    FactureIntrouvable,
    FactureNonSupprimable,
    FournisseurFactureIntrouvable,
    LigneFactureSaisie,
    MontantSuperieurAuRestant,
    ServiceFactureFournisseur,
)


routeur_factures = APIRouter(prefix="/factures", tags=["factures"])


def _facture_lecture(facture: FactureFournisseur, *, montant_paye: float, montant_restant: float) -> dict:
    return {
        "id": facture.id,
        "fournisseur_id": facture.fournisseur_id,
        "numero": facture.numero,
        "date_facture": facture.date_facture,
        "date_echeance": facture.date_echeance,
        "concept": facture.concept,
        "sous_total": facture.sous_total,
        "iva": facture.iva,
        "total": facture.total,
        "statut": facture.statut,
        "notes": facture.notes,
        "montant_paye": montant_paye,
        "montant_restant": montant_restant,
        "lignes": [LigneFactureLecture.model_validate(l) for l in facture.lignes],
    }


@routeur_factures.get("", response_model=ReponseListeFactures)
async def lister_factures(
    fournisseur_id: UUID | None = Query(default=None),
    statut: StatutReglement | None = Query(default=None),
    page: int = Query(1, ge=1),
    limite: int = Query(10, ge=1, le=200),
    session: AsyncSession = Depends(fournir_session),
) -> ReponseListeFactures:
    resultat = await ServiceFactureFournisseur(session).lister(
        fournisseur_id=fournisseur_id,
        statut=statut,
        page=page,
        limite=limite,
    )
    return ReponseListeFactures(
        factures=[
            FactureLecture(**_facture_lecture(d.facture, montant_paye=d.montant_paye, montant_restant=d.montant_restant))
            for d in resultat.factures
        ],
        pagination=SchemaPagination.model_validate(resultat.pagination),
    )


@routeur_factures.post("", response_model=FactureLecture, status_code=status.HTTP_201_CREATED)
async def creer_facture(
    requete: RequeteCreerFacture,
    session: AsyncSession = Depends(fournir_session),
) -> FactureLecture:
    """Saisie d’une facture fournisseur.

    Les lignes ROLLO_* et INTRANT alimentent le stock d’intrants dans la même
    transaction.
    """

    service = ServiceFactureFournisseur(session)

    try:
        facture = await service.creer(
            fournisseur_id=requete.fournisseur_id,
            numero=requete.numero,
            lignes=[
                LigneFactureSaisie(
                    description=l.description,
                    type_ligne=l.type_ligne,
                    quantite=l.quantite,
                    prix_unitaire=l.prix_unitaire,
                    poids_unitaire=l.poids_unitaire,
                )
                for l in requete.lignes
            ],
            date_facture=requete.date_facture,
            date_echeance=requete.date_echeance,
            concept=requete.concept,
            iva=requete.iva,
            notes=requete.notes,
        )
    except FournisseurFactureIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except FactureDupliquee as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except DonneesInvalidesFacture as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Erreur inattendue : {e}") from e

    return FactureLecture(**_facture_lecture(facture, montant_paye=0.0, montant_restant=facture.total))


@routeur_factures.get("/{facture_id}", response_model=FactureDetailLecture)
async def obtenir_facture(facture_id: UUID, session: AsyncSession = Depends(fournir_session)) -> FactureDetailLecture:
    try:
        situation = await ServiceFactureFournisseur(session).lister_paiements(facture_id)
    except FactureIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    return FactureDetailLecture(
        **_facture_lecture(
            situation.facture,
            montant_paye=situation.montant_paye,
            montant_restant=situation.montant_restant,
        ),
        paiements=[PaiementFactureLecture.model_validate(p) for p in situation.paiements],
    )


@routeur_factures.get("/{facture_id}/dependances", response_model=ReponseDependancesFacture)
async def dependances_facture(
    facture_id: UUID,
    session: AsyncSession = Depends(fournir_session),
) -> ReponseDependancesFacture:
    try:
        dependances = await ServiceFactureFournisseur(session).analyser_suppression(facture_id)
    except FactureIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    return ReponseDependancesFacture.model_validate(dependances)


@routeur_factures.delete("/{facture_id}", response_model=ReponseSuppressionFacture)
async def supprimer_facture(
    facture_id: UUID,
    forcer: bool = Query(default=False),
    session: AsyncSession = Depends(fournir_session),
) -> ReponseSuppressionFacture:
    try:
        resultat = await ServiceFactureFournisseur(session).supprimer(facture_id, forcer=forcer)
    except FactureIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except FactureNonSupprimable as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Erreur inattendue : {e}") from e

    return ReponseSuppressionFacture.model_validate(resultat)


@routeur_factures.get("/{facture_id}/paiements", response_model=ReponsePaiementsFacture)
async def lister_paiements_facture(
    facture_id: UUID,
    session: AsyncSession = Depends(fournir_session),
) -> ReponsePaiementsFacture:
    try:
        situation = await ServiceFactureFournisseur(session).lister_paiements(facture_id)
    except FactureIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    return ReponsePaiementsFacture(
        facture_id=situation.facture.id,
        total=situation.facture.total,
        total_paye=situation.montant_paye,
        montant_restant=situation.montant_restant,
        statut=situation.facture.statut,
        paiements=[PaiementFactureLecture.model_validate(p) for p in situation.paiements],
    )


@routeur_factures.post(
    "/{facture_id}/paiements",
    response_model=PaiementFactureLecture,
    status_code=status.HTTP_201_CREATED,
)
async def enregistrer_paiement_facture(
    facture_id: UUID,
    requete: RequetePaiementFacture,
    session: AsyncSession = Depends(fournir_session),
) -> PaiementFactureLecture:
    service = ServiceFactureFournisseur(session)

    try:
        paiement = await service.enregistrer_paiement(
            facture_id=facture_id,
            montant=requete.montant,
            methode=requete.methode,
            date_paiement=requete.date_paiement,
            reference=requete.reference,
            description=requete.description,
            cheque_id=requete.cheque_id,
        )
    except FactureIntrouvable as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ChequeIndisponible as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except (MontantSuperieurAuRestant, DonneesInvalidesFacture) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Erreur inattendue : {e}") from e

    return PaiementFactureLecture.model_validate(paiement)
