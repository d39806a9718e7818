from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pelletizadora.core.transactions import ouvrir_transaction
from pelletizadora.domaine.enums.types import (
    METHODES_PAIEMENT_FACTURE,
    MethodePaiement,
    StatutCheque,
    StatutReglement,
    TypeLigneFacture,
    TypeMouvement,
)
from pelletizadora.domaine.modeles.cheques import Cheque
from pelletizadora.domaine.modeles.factures import FactureFournisseur, LigneFactureFournisseur, PaiementFacture
from pelletizadora.domaine.modeles.stock import MouvementIntrant, StockIntrant
from pelletizadora.domaine.modeles.tiers import Fournisseur
from pelletizadora.domaine.services.calculs import (
    Pagination,
    arrondir_2,
    calculer_iva,
    en_utc,
    est_nombre_positif,
    montant_restant,
    paginer,
    statut_reglement,
)
from pelletizadora.domaine.services.intrants import ServiceIntrant


logger = logging.getLogger(__name__)


class ErreurFacture(Exception):
    """Erreur générique facture fournisseur."""


class DonneesInvalidesFacture(ErreurFacture):
    pass


class FactureIntrouvable(ErreurFacture):
    pass


class FournisseurFactureIntrouvable(ErreurFacture):
    pass


class FactureDupliquee(ErreurFacture):
    """Numéro déjà utilisé pour ce fournisseur."""


class MontantSuperieurAuRestant(ErreurFacture):
    pass


class ChequeIndisponible(ErreurFacture):
    """Le chèque à remettre n’existe pas ou n’est plus en portefeuille."""


class FactureNonSupprimable(ErreurFacture):
    """Des intrants de la facture ont déjà été consommés."""


NOMS_INTRANT_ROLLO = {
    TypeLigneFacture.ROLLO_ALFALFA: "ROLLO ALFALFA",
    TypeLigneFacture.ROLLO_AUTRE: "ROLLO OTRO",
}


@dataclass(frozen=True)
class LigneFactureSaisie:
    description: str
    type_ligne: TypeLigneFacture
    quantite: float
    prix_unitaire: float
    poids_unitaire: float | None = None


@dataclass(frozen=True)
class EntreeIntrant:
    nom: str
    quantite: float
    unite: str


@dataclass(frozen=True)
class FactureDetaillee:
    facture: FactureFournisseur
    montant_paye: float
    montant_restant: float


@dataclass(frozen=True)
class PageFactures:
    factures: list[FactureDetaillee]
    pagination: Pagination


@dataclass(frozen=True)
class SituationPaiementsFacture:
    facture: FactureFournisseur
    paiements: list[PaiementFacture]
    montant_paye: float
    montant_restant: float


@dataclass(frozen=True)
class DependancesFacture:
    nombre_paiements: int
    nombre_mouvements_intrant: int
    intrants_consommes: list[str] = field(default_factory=list)

    @property
    def critique(self) -> bool:
        return bool(self.intrants_consommes)

    @property
    def avertissements(self) -> list[str]:
        messages = []
        if self.nombre_paiements:
            messages.append(f"{self.nombre_paiements} paiement(s) seront supprimés.")
        if self.nombre_mouvements_intrant:
            messages.append(f"{self.nombre_mouvements_intrant} entrée(s) de stock d’intrants seront annulées.")
        return messages


@dataclass(frozen=True)
class ResultatSuppressionFacture:
    supprimee: bool
    dependances: DependancesFacture


def entree_intrant_pour_ligne(ligne: LigneFactureSaisie) -> EntreeIntrant | None:
    """Ligne de facture -> entrée en stock d’intrants (None si service / autre).

    Rollos : toujours en kg, comme la consommation en production.
    quantité * poids unitaire si le poids est connu, sinon la quantité saisie.
    """

    if ligne.type_ligne in NOMS_INTRANT_ROLLO:
        quantite = ligne.quantite * ligne.poids_unitaire if ligne.poids_unitaire else ligne.quantite
        return EntreeIntrant(nom=NOMS_INTRANT_ROLLO[ligne.type_ligne], quantite=arrondir_2(quantite), unite="kg")
    if ligne.type_ligne == TypeLigneFacture.INTRANT:
        return EntreeIntrant(nom=ligne.description.strip(), quantite=ligne.quantite, unite="kg")
    return None


class ServiceFactureFournisseur:
    """Factures d’achat, règlements fournisseurs et entrées de stock associées.

    Règles :
    - total = sous_total + iva (iva = 21 % du sous-total si non fournie)
    - création facture + entrées de stock d’intrants dans UNE transaction
    - un paiement ne peut pas dépasser le restant dû
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._intrants = ServiceIntrant(session)

    async def creer(
        self,
        *,
        fournisseur_id: UUID,
        numero: str,
        lignes: list[LigneFactureSaisie],
        date_facture: datetime | None = None,
        date_echeance: datetime | None = None,
        concept: str | None = None,
        iva: float | None = None,
        notes: str | None = None,
    ) -> FactureFournisseur:
        numero = (numero or "").strip()
        if not numero:
            raise DonneesInvalidesFacture("Le numéro de facture est obligatoire.")
        if not lignes:
            raise DonneesInvalidesFacture("La facture doit contenir au moins une ligne.")
        for ligne in lignes:
            if not (ligne.description or "").strip():
                raise DonneesInvalidesFacture("Chaque ligne doit avoir une description.")
            if not est_nombre_positif(ligne.quantite):
                raise DonneesInvalidesFacture("La quantité de chaque ligne doit être > 0.")
            if ligne.prix_unitaire is None or ligne.prix_unitaire < 0:
                raise DonneesInvalidesFacture("Le prix unitaire de chaque ligne doit être >= 0.")
            if ligne.poids_unitaire is not None and ligne.poids_unitaire < 0:
                raise DonneesInvalidesFacture("Le poids unitaire doit être >= 0.")
        if iva is not None and iva < 0:
            raise DonneesInvalidesFacture("L’IVA doit être >= 0.")

        totaux_lignes = [arrondir_2(l.quantite * l.prix_unitaire) for l in lignes]
        sous_total = arrondir_2(sum(totaux_lignes))
        iva = calculer_iva(sous_total) if iva is None else arrondir_2(iva)
        date_facture = en_utc(date_facture) if date_facture is not None else datetime.now(timezone.utc)

        async with ouvrir_transaction(self._session):
            fournisseur = await self._session.get(Fournisseur, fournisseur_id)
            if fournisseur is None:
                raise FournisseurFactureIntrouvable("Fournisseur introuvable.")

            existe = await self._session.execute(
                select(FactureFournisseur.id).where(
                    FactureFournisseur.fournisseur_id == fournisseur.id,
                    FactureFournisseur.numero == numero,
                )
            )
            if existe.first() is not None:
                raise FactureDupliquee(f"La facture {numero} existe déjà pour ce fournisseur.")

            facture = FactureFournisseur(
                fournisseur_id=fournisseur.id,
                numero=numero,
                date_facture=date_facture,
                date_echeance=en_utc(date_echeance) if date_echeance is not None else None,
                concept=(concept or "").strip() or "Facture fournisseur",
                sous_total=sous_total,
                iva=iva,
                total=arrondir_2(sous_total + iva),
                statut=StatutReglement.EN_ATTENTE,
                notes=notes,
            )
            facture.lignes = [
                LigneFactureFournisseur(
                    position=i,
                    description=l.description.strip(),
                    type_ligne=l.type_ligne,
                    quantite=float(l.quantite),
                    prix_unitaire=float(l.prix_unitaire),
                    total=totaux_lignes[i],
                    poids_unitaire=l.poids_unitaire,
                )
                for i, l in enumerate(lignes)
            ]
            self._session.add(facture)
            await self._session.flush()

            for ligne in lignes:
                entree = entree_intrant_pour_ligne(ligne)
                if entree is None:
                    continue
                await self._intrants.entrer_dans_transaction(
                    nom=entree.nom,
                    quantite=entree.quantite,
                    unite=entree.unite,
                    reference=f"Facture {numero}",
                    fournisseur_id=fournisseur.id,
                    numero_facture=numero,
                    facture_id=facture.id,
                    date_mouvement=date_facture,
                )

        logger.info(
            "facture_creee facture_id=%s fournisseur_id=%s numero=%s total=%s",
            facture.id,
            fournisseur_id,
            numero,
            facture.total,
        )
        return facture

    async def lister(
        self,
        *,
        fournisseur_id: UUID | None = None,
        statut: StatutReglement | None = None,
        page: int = 1,
        limite: int = 10,
    ) -> PageFactures:
        filtres = []
        if fournisseur_id is not None:
            filtres.append(FactureFournisseur.fournisseur_id == fournisseur_id)
        if statut is not None:
            filtres.append(FactureFournisseur.statut == statut)

        total = (await self._session.execute(select(func.count(FactureFournisseur.id)).where(*filtres))).scalar_one()
        pagination = paginer(page=page, limite=limite, total=int(total))

        res = await self._session.execute(
            select(FactureFournisseur)
            .options(selectinload(FactureFournisseur.lignes))
            .where(*filtres)
            .order_by(FactureFournisseur.date_facture.desc(), FactureFournisseur.cree_le.desc())
            .offset(pagination.decalage)
            .limit(limite)
        )
        factures = list(res.scalars().all())
        payes = await self._montants_payes([f.id for f in factures])

        return PageFactures(
            factures=[
                FactureDetaillee(
                    facture=f,
                    montant_paye=payes.get(f.id, 0.0),
                    montant_restant=montant_restant(f.total, payes.get(f.id, 0.0)),
                )
                for f in factures
            ],
            pagination=pagination,
        )

    async def obtenir(self, facture_id: UUID) -> FactureDetaillee:
        facture = await self._charger_facture(facture_id)
        paye = (await self._montants_payes([facture.id])).get(facture.id, 0.0)
        return FactureDetaillee(facture=facture, montant_paye=paye, montant_restant=montant_restant(facture.total, paye))

    async def enregistrer_paiement(
        self,
        *,
        facture_id: UUID,
        montant: float,
        methode: MethodePaiement,
        date_paiement: datetime | None = None,
        reference: str | None = None,
        description: str | None = None,
        cheque_id: UUID | None = None,
    ) -> PaiementFacture:
        if not est_nombre_positif(montant):
            raise DonneesInvalidesFacture("Le montant doit être > 0.")
        if methode not in METHODES_PAIEMENT_FACTURE:
            raise DonneesInvalidesFacture(f"Méthode de paiement non autorisée pour une facture : {methode.value}.")
        if cheque_id is not None and methode != MethodePaiement.CHEQUE:
            raise DonneesInvalidesFacture("Un chèque ne peut être remis qu’avec la méthode CHEQUE.")

        montant = arrondir_2(float(montant))
        date_paiement = en_utc(date_paiement) if date_paiement is not None else datetime.now(timezone.utc)

        async with ouvrir_transaction(self._session):
            facture = await self._charger_facture(facture_id)
            paye = (await self._montants_payes([facture.id])).get(facture.id, 0.0)
            restant = montant_restant(facture.total, paye)
            if montant > restant:
                raise MontantSuperieurAuRestant(
                    f"Le montant ({montant}) dépasse le restant dû de la facture ({restant})."
                )

            if cheque_id is not None:
                await self._remettre_cheque(cheque_id, facture=facture, date_remise=date_paiement)

            paiement = PaiementFacture(
                facture_id=facture.id,
                montant=montant,
                methode=methode,
                date_paiement=date_paiement,
                reference=reference,
                description=description,
                cheque_id=cheque_id,
            )
            self._session.add(paiement)
            facture.statut = statut_reglement(facture.total, arrondir_2(paye + montant))
            await self._session.flush()

        logger.info(
            "paiement_facture_enregistre facture_id=%s montant=%s statut=%s",
            facture.id,
            montant,
            facture.statut.value,
        )
        return paiement

    async def lister_paiements(self, facture_id: UUID) -> SituationPaiementsFacture:
        facture = await self._charger_facture(facture_id)
        res = await self._session.execute(
            select(PaiementFacture)
            .where(PaiementFacture.facture_id == facture.id)
            .order_by(PaiementFacture.date_paiement.desc(), PaiementFacture.cree_le.desc())
        )
        paiements = list(res.scalars().all())
        paye = arrondir_2(sum(float(p.montant) for p in paiements))
        return SituationPaiementsFacture(
            facture=facture,
            paiements=paiements,
            montant_paye=paye,
            montant_restant=montant_restant(facture.total, paye),
        )

    async def analyser_suppression(self, facture_id: UUID) -> DependancesFacture:
        facture = await self._charger_facture(facture_id)
        return await self._analyser(facture)

    async def supprimer(self, facture_id: UUID, *, forcer: bool = False) -> ResultatSuppressionFacture:
        """Suppression contrôlée.

        - intrants déjà consommés : refus (le stock deviendrait négatif)
        - paiements / mouvements : renvoyés comme avertissements, suppression
          effective seulement avec forcer=True
        """

        async with ouvrir_transaction(self._session):
            facture = await self._charger_facture(facture_id)
            dependances = await self._analyser(facture)

            if dependances.critique:
                raise FactureNonSupprimable(
                    "Intrants déjà consommés : " + ", ".join(dependances.intrants_consommes) + "."
                )
            if dependances.avertissements and not forcer:
                return ResultatSuppressionFacture(supprimee=False, dependances=dependances)

            # Chèques remis pour cette facture : retour en portefeuille
            res = await self._session.execute(
                select(Cheque).where(Cheque.facture_id == facture.id, Cheque.statut == StatutCheque.REMIS)
            )
            for cheque in res.scalars().all():
                cheque.statut = StatutCheque.EN_ATTENTE
                cheque.remis_a = None
                cheque.date_remise = None
                cheque.remis_pour = None
                cheque.facture_id = None
            await self._session.flush()
            await self._session.execute(delete(PaiementFacture).where(PaiementFacture.facture_id == facture.id))

            for nom, quantite in (await self._entrees_par_intrant(facture.id)).items():
                res = await self._session.execute(select(StockIntrant).where(StockIntrant.nom == nom))
                intrant = res.scalar_one_or_none()
                if intrant is None:
                    continue
                reste = arrondir_2(float(intrant.quantite) - quantite)
                if reste <= 0:
                    await self._session.delete(intrant)
                else:
                    intrant.quantite = reste

            await self._session.execute(delete(MouvementIntrant).where(MouvementIntrant.facture_id == facture.id))
            await self._session.delete(facture)
            await self._session.flush()

        logger.info("facture_supprimee facture_id=%s forcer=%s", facture_id, forcer)
        return ResultatSuppressionFacture(supprimee=True, dependances=dependances)

    async def _analyser(self, facture: FactureFournisseur) -> DependancesFacture:
        nb_paiements = (
            await self._session.execute(
                select(func.count(PaiementFacture.id)).where(PaiementFacture.facture_id == facture.id)
            )
        ).scalar_one()
        nb_mouvements = (
            await self._session.execute(
                select(func.count(MouvementIntrant.id)).where(MouvementIntrant.facture_id == facture.id)
            )
        ).scalar_one()

        consommes: list[str] = []
        for nom, quantite in (await self._entrees_par_intrant(facture.id)).items():
            stock = (
                await self._session.execute(select(StockIntrant.quantite).where(StockIntrant.nom == nom))
            ).scalar_one_or_none()
            if float(stock or 0.0) < quantite:
                consommes.append(nom)

        return DependancesFacture(
            nombre_paiements=int(nb_paiements),
            nombre_mouvements_intrant=int(nb_mouvements),
            intrants_consommes=sorted(consommes),
        )

    async def _entrees_par_intrant(self, facture_id: UUID) -> dict[str, float]:
        res = await self._session.execute(
            select(MouvementIntrant.nom_intrant, func.sum(MouvementIntrant.quantite))
            .where(MouvementIntrant.facture_id == facture_id)
            .where(MouvementIntrant.type_mouvement == TypeMouvement.ENTREE)
            .group_by(MouvementIntrant.nom_intrant)
        )
        return {str(nom): arrondir_2(float(q or 0.0)) for nom, q in res.all()}

    async def _remettre_cheque(self, cheque_id: UUID, *, facture: FactureFournisseur, date_remise: datetime) -> None:
        cheque = await self._session.get(Cheque, cheque_id)
        if cheque is None or cheque.statut != StatutCheque.EN_ATTENTE:
            raise ChequeIndisponible("Chèque introuvable ou non disponible (doit être EN_ATTENTE).")

        fournisseur = await self._session.get(Fournisseur, facture.fournisseur_id)
        cheque.statut = StatutCheque.REMIS
        cheque.remis_a = fournisseur.raison_sociale if fournisseur is not None else None
        cheque.date_remise = date_remise
        cheque.remis_pour = f"Facture {facture.numero}"
        cheque.facture_id = facture.id

    async def _charger_facture(self, facture_id: UUID) -> FactureFournisseur:
        res = await self._session.execute(
            select(FactureFournisseur)
            .options(selectinload(FactureFournisseur.lignes))
            .where(FactureFournisseur.id == facture_id)
        )
        facture = res.scalar_one_or_none()
        if facture is None:
            raise FactureIntrouvable("Facture introuvable.")
        return facture

    async def _montants_payes(self, facture_ids: list[UUID]) -> dict[UUID, float]:
        if not facture_ids:
            return {}
        res = await self._session.execute(
            select(PaiementFacture.facture_id, func.sum(PaiementFacture.montant))
            .where(PaiementFacture.facture_id.in_(facture_ids))
            .group_by(PaiementFacture.facture_id)
        )
        return {fid: arrondir_2(float(total or 0.0)) for fid, total in res.all()}
