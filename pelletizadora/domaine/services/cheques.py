from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.core.transactions import ouvrir_transaction
from pelletizadora.domaine.enums.types import StatutCheque
from pelletizadora.domaine.modeles.cheques import Cheque
from pelletizadora.domaine.modeles.factures import PaiementFacture
from pelletizadora.domaine.modeles.ventes import PaiementVente
from pelletizadora.domaine.services.calculs import Pagination, arrondir_2, en_utc, paginer


logger = logging.getLogger(__name__)


class ErreurCheque(Exception):
    """Erreur générique chèque."""


class DonneesInvalidesCheque(ErreurCheque):
    pass


class ChequeIntrouvable(ErreurCheque):
    pass


class ChequeDuplique(ErreurCheque):
    """Numéro de chèque déjà enregistré."""


class ChequeNonSupprimable(ErreurCheque):
    """Un chèque encaissé ne peut pas être supprimé."""


class TransitionStatutInterditeCheque(ErreurCheque):
    pass


# Statuts qu’on peut poser à la main (REMIS passe uniquement par un paiement fournisseur)
STATUTS_MANUELS = frozenset(
    {StatutCheque.EN_ATTENTE, StatutCheque.ENCAISSE, StatutCheque.REJETE, StatutCheque.ECHU}
)

CHAMPS_MODIFIABLES = (
    "numero",
    "montant",
    "est_echeq",
    "date_reception",
    "date_echeance",
    "recu_de",
    "emis_par",
    "banque",
    "numero_compte",
    "notes",
)


@dataclass(frozen=True)
class StatistiqueStatutCheque:
    nombre: int
    montant_total: float


@dataclass(frozen=True)
class PageCheques:
    cheques: list[Cheque]
    pagination: Pagination
    statistiques: dict[StatutCheque, StatistiqueStatutCheque]


def jours_avant_echeance(cheque: Cheque, *, maintenant: datetime | None = None) -> int:
    maintenant = maintenant or datetime.now(timezone.utc)
    delta = en_utc(cheque.date_echeance) - en_utc(maintenant)
    return math.ceil(delta.total_seconds() / 86400)


def statut_selon_echeance(statut: StatutCheque, date_echeance: datetime, *, maintenant: datetime) -> StatutCheque:
    """Un chèque EN_ATTENTE dont l’échéance est passée devient ECHU."""

    if statut == StatutCheque.EN_ATTENTE and en_utc(date_echeance) < en_utc(maintenant):
        return StatutCheque.ECHU
    return statut


class ServiceCheque:
    """Portefeuille de chèques et echeqs reçus."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def creer(self, **donnees) -> Cheque:
        async with ouvrir_transaction(self._session):
            cheque = await self.creer_dans_transaction(**donnees)

        logger.info("cheque_cree cheque_id=%s numero=%s montant=%s", cheque.id, cheque.numero, cheque.montant)
        return cheque

    async def creer_dans_transaction(
        self,
        *,
        numero: str,
        montant: float,
        date_echeance: datetime,
        recu_de: str,
        emis_par: str,
        est_echeq: bool = False,
        date_reception: datetime | None = None,
        banque: str | None = None,
        numero_compte: str | None = None,
        client_id: UUID | None = None,
        notes: str | None = None,
        maintenant: datetime | None = None,
    ) -> Cheque:
        numero = (numero or "").strip()
        manquants = [
            nom
            for nom, valeur in (
                ("numero", numero),
                ("date_echeance", date_echeance),
                ("recu_de", (recu_de or "").strip()),
                ("emis_par", (emis_par or "").strip()),
            )
            if not valeur
        ]
        if manquants or montant is None:
            raise DonneesInvalidesCheque(f"Champs obligatoires manquants : {', '.join(manquants or ['montant'])}.")
        if float(montant) < 0:
            raise DonneesInvalidesCheque("Le montant doit être >= 0.")

        await self._verifier_numero_libre(numero)

        maintenant = maintenant or datetime.now(timezone.utc)
        cheque = Cheque(
            numero=numero,
            montant=arrondir_2(float(montant)),
            est_echeq=bool(est_echeq),
            date_reception=en_utc(date_reception) if date_reception is not None else maintenant,
            date_echeance=en_utc(date_echeance),
            recu_de=recu_de.strip(),
            emis_par=emis_par.strip(),
            banque=banque,
            numero_compte=numero_compte,
            client_id=client_id,
            notes=notes,
            statut=statut_selon_echeance(StatutCheque.EN_ATTENTE, date_echeance, maintenant=maintenant),
        )
        self._session.add(cheque)
        await self._session.flush()
        return cheque

    async def lister(
        self,
        *,
        statut: StatutCheque | None = None,
        est_echeq: bool | None = None,
        echeance_proche: bool = False,
        jours: int = 7,
        page: int = 1,
        limite: int = 10,
        maintenant: datetime | None = None,
    ) -> PageCheques:
        filtres = []
        if statut is not None:
            filtres.append(Cheque.statut == statut)
        if est_echeq is not None:
            filtres.append(Cheque.est_echeq == est_echeq)
        if echeance_proche:
            debut, fin = _fenetre_echeance(jours, maintenant=maintenant)
            filtres.extend(
                [
                    Cheque.statut == StatutCheque.EN_ATTENTE,
                    Cheque.date_echeance >= debut,
                    Cheque.date_echeance <= fin,
                ]
            )

        total = (await self._session.execute(select(func.count(Cheque.id)).where(*filtres))).scalar_one()
        pagination = paginer(page=page, limite=limite, total=int(total))

        res = await self._session.execute(
            select(Cheque)
            .where(*filtres)
            .order_by(Cheque.date_echeance.asc(), Cheque.numero.asc())
            .offset(pagination.decalage)
            .limit(limite)
        )

        res_stats = await self._session.execute(
            select(Cheque.statut, func.count(Cheque.id), func.coalesce(func.sum(Cheque.montant), 0.0)).group_by(
                Cheque.statut
            )
        )
        statistiques = {s: StatistiqueStatutCheque(nombre=0, montant_total=0.0) for s in StatutCheque}
        for s, nb, montant in res_stats.all():
            statistiques[s] = StatistiqueStatutCheque(nombre=int(nb), montant_total=arrondir_2(float(montant)))

        return PageCheques(cheques=list(res.scalars().all()), pagination=pagination, statistiques=statistiques)

    async def echeances_proches(self, *, jours: int = 7, maintenant: datetime | None = None) -> list[Cheque]:
        """Chèques EN_ATTENTE arrivant à échéance entre aujourd’hui et aujourd’hui + jours."""

        debut, fin = _fenetre_echeance(jours, maintenant=maintenant)
        res = await self._session.execute(
            select(Cheque)
            .where(Cheque.statut == StatutCheque.EN_ATTENTE)
            .where(Cheque.date_echeance >= debut)
            .where(Cheque.date_echeance <= fin)
            .order_by(Cheque.date_echeance.asc())
        )
        return list(res.scalars().all())

    async def obtenir(self, cheque_id: UUID) -> Cheque:
        cheque = await self._session.get(Cheque, cheque_id)
        if cheque is None:
            raise ChequeIntrouvable("Chèque introuvable.")
        return cheque

    async def modifier(self, cheque_id: UUID, *, maintenant: datetime | None = None, **champs) -> Cheque:
        inconnus = set(champs) - set(CHAMPS_MODIFIABLES)
        if inconnus:
            raise DonneesInvalidesCheque(f"Champs non modifiables : {', '.join(sorted(inconnus))}.")

        valeurs = {k: v for k, v in champs.items() if v is not None}
        if "montant" in valeurs:
            if float(valeurs["montant"]) < 0:
                raise DonneesInvalidesCheque("Le montant doit être >= 0.")
            valeurs["montant"] = arrondir_2(float(valeurs["montant"]))
        for champ_date in ("date_reception", "date_echeance"):
            if champ_date in valeurs:
                valeurs[champ_date] = en_utc(valeurs[champ_date])

        async with ouvrir_transaction(self._session):
            cheque = await self.obtenir(cheque_id)
            if "numero" in valeurs:
                valeurs["numero"] = str(valeurs["numero"]).strip()
                if valeurs["numero"] != cheque.numero:
                    await self._verifier_numero_libre(valeurs["numero"], sauf_id=cheque.id)

            for champ, valeur in valeurs.items():
                setattr(cheque, champ, valeur)

            cheque.statut = statut_selon_echeance(
                cheque.statut, cheque.date_echeance, maintenant=maintenant or datetime.now(timezone.utc)
            )
            await self._session.flush()

        return cheque

    async def changer_statut(
        self,
        cheque_id: UUID,
        *,
        statut: StatutCheque,
        notes: str | None = None,
    ) -> Cheque:
        if statut not in STATUTS_MANUELS:
            raise TransitionStatutInterditeCheque(
                f"Statut invalide : {statut.value}. Autorisés : "
                + ", ".join(sorted(s.value for s in STATUTS_MANUELS))
                + "."
            )

        async with ouvrir_transaction(self._session):
            cheque = await self.obtenir(cheque_id)
            if cheque.statut == StatutCheque.REMIS:
                raise TransitionStatutInterditeCheque("Un chèque remis à un fournisseur ne change plus de statut.")

            ancien = cheque.statut
            cheque.statut = statut
            if notes:
                cheque.notes = f"{cheque.notes}\n{notes}" if cheque.notes else notes
            await self._session.flush()

        logger.info("cheque_statut cheque_id=%s %s->%s", cheque.id, ancien.value, statut.value)
        return cheque

    async def marquer_encaisse(self, cheque_id: UUID, *, notes: str | None = None) -> Cheque:
        return await self.changer_statut(cheque_id, statut=StatutCheque.ENCAISSE, notes=notes)

    async def marquer_rejete(self, cheque_id: UUID, *, notes: str | None = None) -> Cheque:
        return await self.changer_statut(cheque_id, statut=StatutCheque.REJETE, notes=notes)

    async def supprimer(self, cheque_id: UUID) -> None:
        async with ouvrir_transaction(self._session):
            cheque = await self.obtenir(cheque_id)
            if cheque.statut == StatutCheque.ENCAISSE:
                raise ChequeNonSupprimable("Impossible de supprimer un chèque encaissé.")

            # Les paiements gardent leur montant : on ne retire que le lien
            await self._session.execute(
                update(PaiementVente).where(PaiementVente.cheque_id == cheque.id).values(cheque_id=None)
            )
            await self._session.execute(
                update(PaiementFacture).where(PaiementFacture.cheque_id == cheque.id).values(cheque_id=None)
            )
            await self._session.delete(cheque)

        logger.info("cheque_supprime cheque_id=%s", cheque_id)

    async def marquer_echus(self, *, maintenant: datetime | None = None) -> int:
        """Passe en ECHU tous les chèques EN_ATTENTE dont l’échéance est dépassée."""

        maintenant = maintenant or datetime.now(timezone.utc)
        async with ouvrir_transaction(self._session):
            res = await self._session.execute(
                select(Cheque)
                .where(Cheque.statut == StatutCheque.EN_ATTENTE)
                .where(Cheque.date_echeance < maintenant)
            )
            echus = list(res.scalars().all())
            for cheque in echus:
                cheque.statut = StatutCheque.ECHU
            await self._session.flush()
        nb = len(echus)
        logger.info("cheques_marques_echus nb=%s", nb)
        return nb

    async def _verifier_numero_libre(self, numero: str, *, sauf_id: UUID | None = None) -> None:
        stmt = select(Cheque.id).where(Cheque.numero == numero)
        if sauf_id is not None:
            stmt = stmt.where(Cheque.id != sauf_id)
        if (await self._session.execute(stmt)).first() is not None:
            raise ChequeDuplique(f"Un chèque avec le numéro {numero} existe déjà.")


def _fenetre_echeance(jours: int, *, maintenant: datetime | None) -> tuple[datetime, datetime]:
    maintenant = en_utc(maintenant) if maintenant is not None else datetime.now(timezone.utc)
    debut = datetime.combine(maintenant.date(), time.min, tzinfo=timezone.utc)
    fin = datetime.combine((maintenant + timedelta(days=jours)).date(), time.max, tzinfo=timezone.utc)
    return debut, fin
