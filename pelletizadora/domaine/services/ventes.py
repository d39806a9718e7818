from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.core.transactions import ouvrir_transaction
from pelletizadora.domaine.enums.types import PresentationPellet, StatutReglement
from pelletizadora.domaine.modeles.tiers import Client
from pelletizadora.domaine.modeles.ventes import PaiementVente, Vente
from pelletizadora.domaine.services.calculs import (
    Pagination,
    arrondir_2,
    en_utc,
    montant_excedent,
    montant_restant,
    paginer,
)
from pelletizadora.domaine.services.stock import ServiceStockPellet


logger = logging.getLogger(__name__)


class ErreurVente(Exception):
    """Erreur générique vente."""


class DonneesInvalidesVente(ErreurVente):
    pass


class VenteIntrouvable(ErreurVente):
    pass


class ClientVenteIntrouvable(ErreurVente):
    pass


class VenteNonAnnulable(ErreurVente):
    """Des paiements sont enregistrés sur la vente."""


QUANTITE_MINIMALE = 0.001


@dataclass(frozen=True)
class VenteDetaillee:
    vente: Vente
    montant_paye: float
    montant_restant: float
    excedent: float


@dataclass(frozen=True)
class PageVentes:
    ventes: list[VenteDetaillee]
    pagination: Pagination


@dataclass(frozen=True)
class MeilleurClientVentes:
    client_id: UUID
    nom: str
    entreprise: str
    montant_total: float
    nombre_ventes: int


@dataclass(frozen=True)
class StatistiquesVentes:
    total_ventes: int
    montant_total: float
    montant_paye: float
    montant_en_attente: float
    vente_moyenne: float
    meilleurs_clients: list[MeilleurClientVentes]
    ventes_recentes: list[Vente]


class ServiceVente:
    """Ventes de pellet.

    Règles :
    - une vente décrémente le stock de sa présentation (refus si insuffisant)
    - le mouvement de sortie porte la référence « Vente {id} »
    - création, décrément et mouvement dans une seule transaction
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._stock = ServiceStockPellet(session)

    async def creer(
        self,
        *,
        client_id: UUID,
        presentation: PresentationPellet,
        quantite: float,
        prix_unitaire: float,
        date_vente: datetime | None = None,
        lot: str | None = None,
        notes: str | None = None,
    ) -> Vente:
        if quantite is None or float(quantite) < QUANTITE_MINIMALE:
            raise DonneesInvalidesVente(f"La quantité doit être >= {QUANTITE_MINIMALE}.")
        if prix_unitaire is None or float(prix_unitaire) < 0:
            raise DonneesInvalidesVente("Le prix unitaire doit être >= 0.")

        date_vente = en_utc(date_vente) if date_vente is not None else datetime.now(timezone.utc)

        async with ouvrir_transaction(self._session):
            client = await self._session.get(Client, client_id)
            if client is None:
                raise ClientVenteIntrouvable("Client introuvable.")

            vente = Vente(
                client_id=client.id,
                date_vente=date_vente,
                presentation=presentation,
                quantite=float(quantite),
                prix_unitaire=float(prix_unitaire),
                montant_total=arrondir_2(float(quantite) * float(prix_unitaire)),
                lot=lot,
                notes=notes,
                statut=StatutReglement.EN_ATTENTE,
            )
            self._session.add(vente)
            await self._session.flush()

            await self._stock.retirer_dans_transaction(
                presentation=presentation,
                quantite=float(quantite),
                reference=f"Vente {vente.id}",
                date_mouvement=date_vente,
            )

        logger.info(
            "vente_creee vente_id=%s client_id=%s presentation=%s quantite=%s montant=%s",
            vente.id,
            client_id,
            presentation.value,
            quantite,
            vente.montant_total,
        )
        return vente

    async def lister(
        self,
        *,
        client_id: UUID | None = None,
        statut: StatutReglement | None = None,
        page: int = 1,
        limite: int = 50,
    ) -> PageVentes:
        filtres = []
        if client_id is not None:
            filtres.append(Vente.client_id == client_id)
        if statut is not None:
            filtres.append(Vente.statut == statut)

        total = (await self._session.execute(select(func.count(Vente.id)).where(*filtres))).scalar_one()
        pagination = paginer(page=page, limite=limite, total=int(total))

        res = await self._session.execute(
            select(Vente)
            .where(*filtres)
            .order_by(Vente.date_vente.desc(), Vente.cree_le.desc())
            .offset(pagination.decalage)
            .limit(limite)
        )
        ventes = list(res.scalars().all())
        payes = await self._montants_payes([v.id for v in ventes])

        return PageVentes(
            ventes=[self._detailler(v, payes.get(v.id, 0.0)) for v in ventes],
            pagination=pagination,
        )

    async def obtenir(self, vente_id: UUID) -> VenteDetaillee:
        vente = await self._session.get(Vente, vente_id)
        if vente is None:
            raise VenteIntrouvable("Vente introuvable.")
        payes = await self._montants_payes([vente.id])
        return self._detailler(vente, payes.get(vente.id, 0.0))

    async def annuler(self, vente_id: UUID, *, reference: str | None = None) -> None:
        async with ouvrir_transaction(self._session):
            await self.annuler_dans_transaction(vente_id, reference=reference)

    async def annuler_dans_transaction(self, vente_id: UUID, *, reference: str | None = None) -> Vente:
        """Annule une vente : stock restitué (mouvement ENTREE) puis suppression.

        Refusé si des paiements existent (le crédit client serait faussé).
        """

        vente = await self._session.get(Vente, vente_id)
        if vente is None:
            raise VenteIntrouvable("Vente introuvable.")

        nb_paiements = (
            await self._session.execute(select(func.count(PaiementVente.id)).where(PaiementVente.vente_id == vente.id))
        ).scalar_one()
        if nb_paiements:
            raise VenteNonAnnulable(f"La vente a {nb_paiements} paiement(s) : annulation impossible.")

        await self._stock.ajouter_dans_transaction(
            presentation=vente.presentation,
            quantite=float(vente.quantite),
            reference=reference or f"Annulation vente {vente.id}",
        )
        await self._session.execute(delete(Vente).where(Vente.id == vente.id))
        await self._session.flush()

        logger.info("vente_annulee vente_id=%s quantite_restituee=%s", vente.id, vente.quantite)
        return vente

    async def statistiques(self) -> StatistiquesVentes:
        total_ventes, montant_total = (
            await self._session.execute(select(func.count(Vente.id), func.coalesce(func.sum(Vente.montant_total), 0.0)))
        ).one()
        montant_paye = (
            await self._session.execute(select(func.coalesce(func.sum(PaiementVente.montant), 0.0)))
        ).scalar_one()

        montant = func.coalesce(func.sum(Vente.montant_total), 0.0)
        res = await self._session.execute(
            select(Client.id, Client.nom, Client.entreprise, montant, func.count(Vente.id))
            .join(Vente, Vente.client_id == Client.id)
            .group_by(Client.id, Client.nom, Client.entreprise)
            .order_by(montant.desc())
            .limit(5)
        )
        meilleurs = [
            MeilleurClientVentes(
                client_id=cid,
                nom=str(nom),
                entreprise=str(entreprise),
                montant_total=arrondir_2(float(m or 0.0)),
                nombre_ventes=int(nb or 0),
            )
            for cid, nom, entreprise, m, nb in res.all()
        ]

        recentes = await self._session.execute(
            select(Vente).order_by(Vente.date_vente.desc(), Vente.cree_le.desc()).limit(5)
        )

        total_ventes = int(total_ventes or 0)
        montant_total = arrondir_2(float(montant_total or 0.0))
        montant_paye = arrondir_2(float(montant_paye or 0.0))
        return StatistiquesVentes(
            total_ventes=total_ventes,
            montant_total=montant_total,
            montant_paye=montant_paye,
            montant_en_attente=max(0.0, arrondir_2(montant_total - montant_paye)),
            vente_moyenne=arrondir_2(montant_total / total_ventes) if total_ventes else 0.0,
            meilleurs_clients=meilleurs,
            ventes_recentes=list(recentes.scalars().all()),
        )

    async def _montants_payes(self, vente_ids: list[UUID]) -> dict[UUID, float]:
        if not vente_ids:
            return {}
        res = await self._session.execute(
            select(PaiementVente.vente_id, func.sum(PaiementVente.montant))
            .where(PaiementVente.vente_id.in_(vente_ids))
            .group_by(PaiementVente.vente_id)
        )
        return {vid: arrondir_2(float(total or 0.0)) for vid, total in res.all()}

    @staticmethod
    def _detailler(vente: Vente, paye: float) -> VenteDetaillee:
        return VenteDetaillee(
            vente=vente,
            montant_paye=paye,
            montant_restant=montant_restant(vente.montant_total, paye),
            excedent=montant_excedent(vente.montant_total, paye),
        )
