"""Contrôles et corrections de données (scripts + API d’administration).

Toutes les corrections sont idempotentes : relancer un script après un
`--apply` ne doit plus rien trouver à corriger.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.core.configuration import parametres_application
from pelletizadora.core.transactions import ouvrir_transaction
from pelletizadora.domaine.modeles.cheques import Cheque
from pelletizadora.domaine.modeles.factures import FactureFournisseur, LigneFactureFournisseur, PaiementFacture
from pelletizadora.domaine.modeles.production import ConsommationIntrant, GenerationPellet, Production
from pelletizadora.domaine.modeles.stock import MouvementIntrant, MouvementStockPellet, StockIntrant, StockPellet
from pelletizadora.domaine.modeles.tiers import Client, Fournisseur
from pelletizadora.domaine.modeles.ventes import MouvementCredit, PaiementVente, Vente
from pelletizadora.domaine.services.calculs import arrondir_2, calculer_iva, en_utc
from pelletizadora.domaine.services.ventes import ServiceVente, VenteNonAnnulable


logger = logging.getLogger(__name__)


REFERENCE_ANNULATION_DOUBLON = "Annulation vente en double"
SEUIL_CORRECTION_IVA = 1.0

# Enfants avant parents (clés étrangères)
MODELES_PURGEABLES = (
    MouvementCredit,
    PaiementVente,
    PaiementFacture,
    Cheque,
    Vente,
    ConsommationIntrant,
    GenerationPellet,
    Production,
    MouvementStockPellet,
    StockPellet,
    MouvementIntrant,
    StockIntrant,
    LigneFactureFournisseur,
    FactureFournisseur,
    Client,
    Fournisseur,
)


# ==============================
# VENTES EN DOUBLE
# ==============================


@dataclass(frozen=True)
class VenteComparee:
    vente_id: UUID
    client_id: UUID
    quantite: float
    prix_unitaire: float
    montant_total: float
    cree_le: datetime


@dataclass(frozen=True)
class GroupeDoublons:
    originale: VenteComparee
    doublons: list[VenteComparee]

    @property
    def quantite_a_restituer(self) -> float:
        return arrondir_2(sum(d.quantite for d in self.doublons))

    @property
    def montant_a_annuler(self) -> float:
        return arrondir_2(sum(d.montant_total for d in self.doublons))


@dataclass(frozen=True)
class RapportDoublons:
    groupes: list[GroupeDoublons]

    @property
    def nombre_doublons(self) -> int:
        return sum(len(g.doublons) for g in self.groupes)

    @property
    def quantite_a_restituer(self) -> float:
        return arrondir_2(sum(g.quantite_a_restituer for g in self.groupes))

    @property
    def montant_a_annuler(self) -> float:
        return arrondir_2(sum(g.montant_a_annuler for g in self.groupes))


@dataclass(frozen=True)
class ResultatCorrectionDoublons:
    annulees: list[UUID] = field(default_factory=list)
    ignorees: list[UUID] = field(default_factory=list)


def detecter_ventes_doublons(
    ventes: list[VenteComparee],
    *,
    fenetre: int = 10,
    ecart_max: timedelta = timedelta(seconds=60),
) -> list[GroupeDoublons]:
    """Regroupe les ventes saisies plusieurs fois.

    Parcours par date de création ; chaque vente non encore classée est
    comparée aux suivantes dans une fenêtre de `fenetre` ventes (elle comprise). Doublon : même client, même quantité,
    même prix unitaire, créées à moins de `ecart_max` d’intervalle.
    """

    triees = sorted(ventes, key=lambda v: en_utc(v.cree_le))
    traitees: set[UUID] = set()
    groupes: list[GroupeDoublons] = []

    for i, vente in enumerate(triees):
        if vente.vente_id in traitees:
            continue

        doublons: list[VenteComparee] = []
        for autre in triees[i + 1 : i + fenetre]:
            if autre.vente_id in traitees:
                continue
            if (
                autre.client_id == vente.client_id
                and autre.quantite == vente.quantite
                and autre.prix_unitaire == vente.prix_unitaire
                and abs(en_utc(autre.cree_le) - en_utc(vente.cree_le)) < ecart_max
            ):
                doublons.append(autre)
                traitees.add(autre.vente_id)

        if doublons:
            traitees.add(vente.vente_id)
            groupes.append(GroupeDoublons(originale=vente, doublons=doublons))

    return groupes


# ==============================
# PRODUCTION
# ==============================


@dataclass(frozen=True)
class RapportProduction:
    lots_dupliques: dict[str, int]
    sans_consommation: list[str]
    sans_generation: list[str]
    rendements_invalides: list[str]
    quantites_invalides: list[str]
    consommations_orphelines: int
    generations_orphelines: int

    @property
    def nombre_problemes(self) -> int:
        return (
            sum(n - 1 for n in self.lots_dupliques.values())
            + len(self.sans_consommation)
            + len(self.sans_generation)
            + len(self.rendements_invalides)
            + len(self.quantites_invalides)
            + self.consommations_orphelines
            + self.generations_orphelines
        )


@dataclass(frozen=True)
class ResultatCorrectionProduction:
    productions_supprimees: int
    rendements_corriges: int
    quantites_corrigees: int
    orphelins_supprimes: int


@dataclass(frozen=True)
class CorrectionIva:
    facture_id: UUID
    numero: str
    sous_total: float
    iva_actuelle: float
    iva_correcte: float
    total_actuel: float
    total_correct: float


class ServiceMaintenance:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ----- ventes en double -----

    async def rapport_ventes_doublons(
        self,
        *,
        fenetre: int | None = None,
        ecart_secondes: int | None = None,
    ) -> RapportDoublons:
        res = await self._session.execute(
            select(
                Vente.id,
                Vente.client_id,
                Vente.quantite,
                Vente.prix_unitaire,
                Vente.montant_total,
                Vente.cree_le,
            ).order_by(Vente.cree_le.asc())
        )
        ventes = [
            VenteComparee(
                vente_id=vid,
                client_id=cid,
                quantite=float(q),
                prix_unitaire=float(p),
                montant_total=float(m),
                cree_le=cree_le,
            )
            for vid, cid, q, p, m, cree_le in res.all()
        ]
        groupes = detecter_ventes_doublons(
            ventes,
            fenetre=parametres_application.fenetre_doublons_ventes if fenetre is None else fenetre,
            ecart_max=timedelta(
                seconds=parametres_application.ecart_doublons_secondes if ecart_secondes is None else ecart_secondes
            ),
        )
        return RapportDoublons(groupes=groupes)

    async def corriger_ventes_doublons(self, rapport: RapportDoublons) -> ResultatCorrectionDoublons:
        """Annule chaque doublon (stock restitué). Les doublons payés sont ignorés."""

        service_vente = ServiceVente(self._session)
        resultat = ResultatCorrectionDoublons()

        async with ouvrir_transaction(self._session):
            for groupe in rapport.groupes:
                for doublon in groupe.doublons:
                    try:
                        await service_vente.annuler_dans_transaction(
                            doublon.vente_id, reference=REFERENCE_ANNULATION_DOUBLON
                        )
                    except VenteNonAnnulable:
                        logger.warning("doublon_ignore_paiements vente_id=%s", doublon.vente_id)
                        resultat.ignorees.append(doublon.vente_id)
                        continue
                    resultat.annulees.append(doublon.vente_id)

        logger.info(
            "doublons_corriges annulees=%s ignorees=%s", len(resultat.annulees), len(resultat.ignorees)
        )
        return resultat

    # ----- IVA des factures -----

    async def factures_iva_incorrecte(self) -> list[CorrectionIva]:
        res = await self._session.execute(
            select(
                FactureFournisseur.id,
                FactureFournisseur.numero,
                FactureFournisseur.sous_total,
                FactureFournisseur.iva,
                FactureFournisseur.total,
            ).order_by(FactureFournisseur.date_facture.asc())
        )
        corrections: list[CorrectionIva] = []
        for fid, numero, sous_total, iva, total in res.all():
            iva_correcte = calculer_iva(float(sous_total))
            total_correct = arrondir_2(float(sous_total) + iva_correcte)
            if (
                abs(float(iva) - iva_correcte) > SEUIL_CORRECTION_IVA
                or abs(float(total) - total_correct) > SEUIL_CORRECTION_IVA
            ):
                corrections.append(
                    CorrectionIva(
                        facture_id=fid,
                        numero=str(numero),
                        sous_total=float(sous_total),
                        iva_actuelle=float(iva),
                        iva_correcte=iva_correcte,
                        total_actuel=float(total),
                        total_correct=total_correct,
                    )
                )
        return corrections

    async def corriger_iva_factures(self, corrections: list[CorrectionIva]) -> int:
        async with ouvrir_transaction(self._session):
            for c in corrections:
                facture = await self._session.get(FactureFournisseur, c.facture_id)
                if facture is None:
                    continue
                facture.iva = c.iva_correcte
                facture.total = c.total_correct
            await self._session.flush()

        logger.info("iva_factures_corrigee nb=%s", len(corrections))
        return len(corrections)

    # ----- production -----

    async def verifier_production(self) -> RapportProduction:
        res = await self._session.execute(
            select(Production.numero_lot, func.count(Production.id))
            .group_by(Production.numero_lot)
            .having(func.count(Production.id) > 1)
        )
        lots_dupliques = {str(lot): int(nb) for lot, nb in res.all()}

        sans_consommation = await self._lots_sans(ConsommationIntrant)
        sans_generation = await self._lots_sans(GenerationPellet)

        res = await self._session.execute(
            select(Production.numero_lot).where((Production.rendement < 0) | (Production.rendement > 1))
        )
        rendements_invalides = [str(lot) for (lot,) in res.all()]

        res = await self._session.execute(select(Production.numero_lot).where(Production.quantite_totale <= 0))
        quantites_invalides = [str(lot) for (lot,) in res.all()]

        return RapportProduction(
            lots_dupliques=lots_dupliques,
            sans_consommation=sans_consommation,
            sans_generation=sans_generation,
            rendements_invalides=rendements_invalides,
            quantites_invalides=quantites_invalides,
            consommations_orphelines=len(await self._orphelins(ConsommationIntrant)),
            generations_orphelines=len(await self._orphelins(GenerationPellet)),
        )

    async def corriger_production(self) -> ResultatCorrectionProduction:
        """Lots dupliqués (on garde le plus ancien), rendements bornés, quantités
        nulles ramenées au minimum, lignes orphelines supprimées."""

        async with ouvrir_transaction(self._session):
            res = await self._session.execute(
                select(Production.id, Production.numero_lot).order_by(
                    Production.numero_lot.asc(), Production.cree_le.asc()
                )
            )
            par_lot: dict[str, list[UUID]] = defaultdict(list)
            for pid, lot in res.all():
                par_lot[str(lot)].append(pid)

            a_supprimer = [pid for ids in par_lot.values() for pid in ids[1:]]
            if a_supprimer:
                await self._session.execute(
                    delete(ConsommationIntrant).where(ConsommationIntrant.production_id.in_(a_supprimer))
                )
                await self._session.execute(
                    delete(GenerationPellet).where(GenerationPellet.production_id.in_(a_supprimer))
                )
                await self._session.execute(delete(Production).where(Production.id.in_(a_supprimer)))

            rendements = 0
            quantites = 0
            res = await self._session.execute(
                select(Production).where(
                    (Production.rendement < 0) | (Production.rendement > 1) | (Production.quantite_totale <= 0)
                )
            )
            for production in res.scalars().all():
                if production.rendement < 0 or production.rendement > 1:
                    production.rendement = min(1.0, max(0.0, float(production.rendement)))
                    rendements += 1
                if production.quantite_totale <= 0:
                    production.quantite_totale = 0.01
                    quantites += 1

            orphelins = 0
            for modele in (ConsommationIntrant, GenerationPellet):
                ids = await self._orphelins(modele)
                if ids:
                    await self._session.execute(delete(modele).where(modele.id.in_(ids)))
                    orphelins += len(ids)

            await self._session.flush()

        resultat = ResultatCorrectionProduction(
            productions_supprimees=len(a_supprimer),
            rendements_corriges=rendements,
            quantites_corrigees=quantites,
            orphelins_supprimes=orphelins,
        )
        logger.info("production_corrigee %s", resultat)
        return resultat

    async def _lots_sans(self, modele) -> list[str]:
        sous_requete = select(modele.production_id).where(modele.production_id == Production.id).exists()
        res = await self._session.execute(
            select(Production.numero_lot).where(~sous_requete).order_by(Production.numero_lot.asc())
        )
        return [str(lot) for (lot,) in res.all()]

    async def _orphelins(self, modele) -> list[UUID]:
        res = await self._session.execute(
            select(modele.id)
            .join(Production, Production.id == modele.production_id, isouter=True)
            .where(Production.id.is_(None))
        )
        return [i for (i,) in res.all()]

    # ----- purge -----

    async def compter_donnees(self) -> dict[str, int]:
        comptes: dict[str, int] = {}
        for modele in MODELES_PURGEABLES:
            nb = (await self._session.execute(select(func.count()).select_from(modele))).scalar_one()
            comptes[modele.__tablename__] = int(nb or 0)
        return comptes

    async def purger_donnees(self) -> dict[str, int]:
        """Supprime toutes les données métier. Les utilisateurs sont conservés."""

        comptes: dict[str, int] = {}
        async with ouvrir_transaction(self._session):
            for modele in MODELES_PURGEABLES:
                res = await self._session.execute(delete(modele))
                comptes[modele.__tablename__] = int(res.rowcount or 0)

        logger.warning("donnees_purgees %s", comptes)
        return comptes
