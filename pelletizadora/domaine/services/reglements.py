"""Rapprochement des paiements clients avec les ventes.

Un paiement est toujours enregistré pour son montant intégral. La part qui
dépasse le restant dû de la vente (l’excédent) est créditée sur le
`solde_credit` du client et tracée par un MouvementCredit EXCEDENT. Ce crédit
est ensuite imputable sur d’autres ventes du même client (paiement
SOLDE_CREDIT + MouvementCredit IMPUTATION).

Invariants maintenus dans une même transaction :
- solde_credit du client = somme(EXCEDENT) - somme(IMPUTATION)
- statut de la vente = f(total, somme des paiements)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.core.transactions import ouvrir_transaction
from pelletizadora.domaine.enums.types import (
    METHODES_PAIEMENT_VENTE,
    MethodePaiement,
    StatutReglement,
    TypeMouvementCredit,
)
from pelletizadora.domaine.modeles.tiers import Client
from pelletizadora.domaine.modeles.ventes import MouvementCredit, PaiementVente, Vente
from pelletizadora.domaine.services.calculs import (
    arrondir_2,
    en_utc,
    est_nombre_positif,
    montant_excedent,
    montant_restant,
    statut_reglement,
)
from pelletizadora.domaine.services.cheques import ServiceCheque


logger = logging.getLogger(__name__)


class ErreurReglement(Exception):
    """Erreur générique de règlement client."""


class DonneesInvalidesReglement(ErreurReglement):
    pass


class VenteReglementIntrouvable(ErreurReglement):
    pass


class ClientReglementIntrouvable(ErreurReglement):
    pass


class VenteDejaPayee(ErreurReglement):
    """La vente est déjà entièrement payée."""


class SoldeCreditInsuffisant(ErreurReglement):
    pass


class VenteAutreClient(ErreurReglement):
    """La vente n’appartient pas au client dont on impute le crédit."""


@dataclass(frozen=True)
class DonneesChequePaiement:
    numero: str
    emis_par: str
    date_echeance: datetime
    recu_de: str | None = None
    montant: float | None = None
    est_echeq: bool = False
    banque: str | None = None
    numero_compte: str | None = None


@dataclass(frozen=True)
class ResultatPaiementVente:
    paiement_id: UUID
    vente_id: UUID
    montant: float
    montant_impute: float
    excedent: float
    solde_credit_client: float
    statut_vente: StatutReglement
    cheque_id: UUID | None


@dataclass(frozen=True)
class ResultatImputationCredit:
    paiement_id: UUID
    vente_id: UUID
    montant_impute: float
    solde_restant: float
    statut_vente: StatutReglement


@dataclass(frozen=True)
class SituationPaiementsVente:
    vente: Vente
    paiements: list[PaiementVente]
    montant_paye: float
    montant_restant: float
    excedent: float


class ServiceReglement:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._cheques = ServiceCheque(session)

    async def enregistrer_paiement_vente(
        self,
        *,
        vente_id: UUID,
        montant: float,
        methode: MethodePaiement,
        date_paiement: datetime | None = None,
        reference: str | None = None,
        notes: str | None = None,
        cheque: DonneesChequePaiement | None = None,
    ) -> ResultatPaiementVente:
        if not est_nombre_positif(montant):
            raise DonneesInvalidesReglement("Le montant doit être > 0.")
        if methode not in METHODES_PAIEMENT_VENTE:
            raise DonneesInvalidesReglement(f"Méthode de paiement non autorisée pour une vente : {methode.value}.")

        montant = arrondir_2(float(montant))
        date_paiement = en_utc(date_paiement) if date_paiement is not None else datetime.now(timezone.utc)

        if methode == MethodePaiement.SOLDE_CREDIT:
            async with ouvrir_transaction(self._session):
                vente = await self._charger_vente(vente_id)
                imputation = await self._imputer_credit(
                    client_id=vente.client_id,
                    vente=vente,
                    montant=montant,
                    date_paiement=date_paiement,
                    notes=notes,
                )
                client = await self._session.get(Client, vente.client_id)
            return ResultatPaiementVente(
                paiement_id=imputation.paiement_id,
                vente_id=vente.id,
                montant=imputation.montant_impute,
                montant_impute=imputation.montant_impute,
                excedent=0.0,
                solde_credit_client=float(client.solde_credit),
                statut_vente=imputation.statut_vente,
                cheque_id=None,
            )

        async with ouvrir_transaction(self._session):
            vente = await self._charger_vente(vente_id)
            deja_paye = await self._total_paye(vente.id)
            restant = montant_restant(vente.montant_total, deja_paye)
            if restant <= 0:
                raise VenteDejaPayee("La vente est déjà entièrement payée.")

            client = await self._session.get(Client, vente.client_id)
            if client is None:  # pragma: no cover - FK
                raise ClientReglementIntrouvable("Client introuvable.")

            cheque_id: UUID | None = None
            if methode == MethodePaiement.CHEQUE and cheque is not None:
                cree = await self._cheques.creer_dans_transaction(
                    numero=cheque.numero,
                    montant=cheque.montant if cheque.montant is not None else montant,
                    date_echeance=cheque.date_echeance,
                    recu_de=cheque.recu_de or client.nom,
                    emis_par=cheque.emis_par,
                    est_echeq=cheque.est_echeq,
                    banque=cheque.banque,
                    numero_compte=cheque.numero_compte,
                    date_reception=date_paiement,
                    client_id=client.id,
                    notes=f"Paiement vente {vente.id}",
                )
                cheque_id = cree.id

            paiement = PaiementVente(
                vente_id=vente.id,
                montant=montant,
                date_paiement=date_paiement,
                methode=methode,
                reference=reference,
                notes=notes,
                cheque_id=cheque_id,
            )
            self._session.add(paiement)
            await self._session.flush()

            montant_impute = min(montant, restant)
            excedent = arrondir_2(montant - montant_impute)
            if excedent > 0:
                client.solde_credit = arrondir_2(float(client.solde_credit or 0.0) + excedent)
                self._session.add(
                    MouvementCredit(
                        client_id=client.id,
                        type_mouvement=TypeMouvementCredit.EXCEDENT,
                        montant=excedent,
                        vente_id=vente.id,
                        paiement_id=paiement.id,
                        description=f"Excédent du paiement de la vente {vente.id}",
                        date_mouvement=date_paiement,
                    )
                )

            vente.statut = statut_reglement(vente.montant_total, arrondir_2(deja_paye + montant))
            await self._session.flush()

        logger.info(
            "paiement_vente_enregistre vente_id=%s paiement_id=%s montant=%s excedent=%s statut=%s",
            vente.id,
            paiement.id,
            montant,
            excedent,
            vente.statut.value,
        )
        return ResultatPaiementVente(
            paiement_id=paiement.id,
            vente_id=vente.id,
            montant=montant,
            montant_impute=arrondir_2(montant_impute),
            excedent=excedent,
            solde_credit_client=float(client.solde_credit),
            statut_vente=vente.statut,
            cheque_id=cheque_id,
        )

    async def appliquer_credit(
        self,
        *,
        client_id: UUID,
        vente_id: UUID,
        montant: float,
        notes: str | None = None,
    ) -> ResultatImputationCredit:
        if not est_nombre_positif(montant):
            raise DonneesInvalidesReglement("Le montant doit être > 0.")

        async with ouvrir_transaction(self._session):
            resultat = await self._imputer_credit(
                client_id=client_id,
                vente=None,
                vente_id=vente_id,
                montant=arrondir_2(float(montant)),
                date_paiement=datetime.now(timezone.utc),
                notes=notes,
            )
        return resultat

    async def lister_paiements_vente(self, vente_id: UUID) -> SituationPaiementsVente:
        vente = await self._charger_vente(vente_id)
        res = await self._session.execute(
            select(PaiementVente)
            .where(PaiementVente.vente_id == vente.id)
            .order_by(PaiementVente.date_paiement.desc(), PaiementVente.cree_le.desc())
        )
        paiements = list(res.scalars().all())
        paye = arrondir_2(sum(float(p.montant) for p in paiements))
        return SituationPaiementsVente(
            vente=vente,
            paiements=paiements,
            montant_paye=paye,
            montant_restant=montant_restant(vente.montant_total, paye),
            excedent=montant_excedent(vente.montant_total, paye),
        )

    async def solde_credit(self, client_id: UUID) -> Client:
        client = await self._session.get(Client, client_id)
        if client is None:
            raise ClientReglementIntrouvable("Client introuvable.")
        return client

    async def _imputer_credit(
        self,
        *,
        client_id: UUID,
        montant: float,
        date_paiement: datetime,
        vente: Vente | None = None,
        vente_id: UUID | None = None,
        notes: str | None = None,
    ) -> ResultatImputationCredit:
        """Impute min(montant, restant) du crédit client sur une vente.

        Ordre des contrôles : client, solde, vente, appartenance, restant dû.
        """

        client = await self._session.get(Client, client_id)
        if client is None:
            raise ClientReglementIntrouvable("Client introuvable.")

        solde = float(client.solde_credit or 0.0)
        if solde < montant:
            raise SoldeCreditInsuffisant(f"Solde crédit insuffisant : disponible {solde}, demandé {montant}.")

        if vente is None:
            vente = await self._charger_vente(vente_id)
        if vente.client_id != client.id:
            raise VenteAutreClient("La vente n’appartient pas à ce client.")

        deja_paye = await self._total_paye(vente.id)
        restant = montant_restant(vente.montant_total, deja_paye)
        if restant <= 0:
            raise VenteDejaPayee("La vente est déjà entièrement payée.")

        montant_impute = arrondir_2(min(montant, restant))

        paiement = PaiementVente(
            vente_id=vente.id,
            montant=montant_impute,
            date_paiement=date_paiement,
            methode=MethodePaiement.SOLDE_CREDIT,
            reference="Solde crédit",
            notes=notes,
        )
        self._session.add(paiement)
        await self._session.flush()

        client.solde_credit = arrondir_2(solde - montant_impute)
        self._session.add(
            MouvementCredit(
                client_id=client.id,
                type_mouvement=TypeMouvementCredit.IMPUTATION,
                montant=montant_impute,
                vente_id=vente.id,
                paiement_id=paiement.id,
                description=f"Imputation sur la vente {vente.id}",
                date_mouvement=date_paiement,
            )
        )

        vente.statut = statut_reglement(vente.montant_total, arrondir_2(deja_paye + montant_impute))
        await self._session.flush()

        logger.info(
            "credit_impute client_id=%s vente_id=%s montant=%s solde_restant=%s",
            client.id,
            vente.id,
            montant_impute,
            client.solde_credit,
        )
        return ResultatImputationCredit(
            paiement_id=paiement.id,
            vente_id=vente.id,
            montant_impute=montant_impute,
            solde_restant=float(client.solde_credit),
            statut_vente=vente.statut,
        )

    async def _charger_vente(self, vente_id: UUID | None) -> Vente:
        vente = await self._session.get(Vente, vente_id) if vente_id is not None else None
        if vente is None:
            raise VenteReglementIntrouvable("Vente introuvable.")
        return vente

    async def _total_paye(self, vente_id: UUID) -> float:
        total = (
            await self._session.execute(
                select(func.coalesce(func.sum(PaiementVente.montant), 0.0)).where(PaiementVente.vente_id == vente_id)
            )
        ).scalar_one()
        return arrondir_2(float(total or 0.0))
