from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.core.transactions import ouvrir_transaction
from pelletizadora.domaine.modeles.tiers import Client
from pelletizadora.domaine.modeles.ventes import MouvementCredit, Vente
from pelletizadora.domaine.services.calculs import Pagination, arrondir_2, paginer


logger = logging.getLogger(__name__)


class ErreurClient(Exception):
    """Erreur générique client."""


class DonneesInvalidesClient(ErreurClient):
    """Champs obligatoires manquants ou invalides."""


class ClientIntrouvable(ErreurClient):
    """Client introuvable."""


class ClientDuplique(ErreurClient):
    """CUIT déjà utilisé par un autre client."""


class ClientNonSupprimable(ErreurClient):
    """Le client a des ventes : suppression refusée."""


CHAMPS_OBLIGATOIRES = ("nom", "entreprise", "cuit", "contact")
CHAMPS_MODIFIABLES = ("nom", "entreprise", "cuit", "contact", "email", "adresse", "telephone")


@dataclass(frozen=True)
class PageClients:
    clients: list[Client]
    pagination: Pagination


@dataclass(frozen=True)
class ClientClasse:
    client_id: UUID
    nom: str
    entreprise: str
    montant_total: float
    nombre_ventes: int


@dataclass(frozen=True)
class StatistiquesClients:
    total_clients: int
    avec_email: int
    avec_telephone: int
    recents_30_jours: int
    pourcentage_email: float
    pourcentage_telephone: float
    meilleurs_clients: list[ClientClasse]


class ServiceClient:
    """CRUD clients + statistiques + lecture du compte crédit."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def creer(
        self,
        *,
        nom: str,
        entreprise: str,
        cuit: str,
        contact: str,
        email: str | None = None,
        adresse: str | None = None,
        telephone: str | None = None,
    ) -> Client:
        valeurs = _nettoyer(
            {
                "nom": nom,
                "entreprise": entreprise,
                "cuit": cuit,
                "contact": contact,
                "email": email,
                "adresse": adresse,
                "telephone": telephone,
            }
        )
        manquants = [c for c in CHAMPS_OBLIGATOIRES if not valeurs.get(c)]
        if manquants:
            raise DonneesInvalidesClient(f"Champs obligatoires manquants : {', '.join(manquants)}.")

        async with ouvrir_transaction(self._session):
            await self._verifier_cuit_libre(valeurs["cuit"])

            client = Client(**valeurs, solde_credit=0.0)
            self._session.add(client)
            await self._session.flush()

        logger.info("client_cree client_id=%s cuit=%s", client.id, client.cuit)
        return client

    async def lister(
        self,
        *,
        recherche: str | None = None,
        page: int = 1,
        limite: int = 50,
    ) -> PageClients:
        filtres = []
        if recherche:
            motif = f"%{recherche.strip()}%"
            filtres.append(or_(Client.nom.ilike(motif), Client.entreprise.ilike(motif), Client.cuit.ilike(motif)))

        total = (await self._session.execute(select(func.count(Client.id)).where(*filtres))).scalar_one()
        pagination = paginer(page=page, limite=limite, total=int(total))

        res = await self._session.execute(
            select(Client)
            .where(*filtres)
            .order_by(Client.nom.asc())
            .offset(pagination.decalage)
            .limit(limite)
        )
        return PageClients(clients=list(res.scalars().all()), pagination=pagination)

    async def obtenir(self, client_id: UUID) -> Client:
        client = await self._session.get(Client, client_id)
        if client is None:
            raise ClientIntrouvable("Client introuvable.")
        return client

    async def modifier(self, client_id: UUID, **champs: str | None) -> Client:
        inconnus = set(champs) - set(CHAMPS_MODIFIABLES)
        if inconnus:
            raise DonneesInvalidesClient(f"Champs non modifiables : {', '.join(sorted(inconnus))}.")

        valeurs = _nettoyer({k: v for k, v in champs.items() if v is not None})
        for c in CHAMPS_OBLIGATOIRES:
            if c in valeurs and not valeurs[c]:
                raise DonneesInvalidesClient(f"Le champ {c} ne peut pas être vide.")

        async with ouvrir_transaction(self._session):
            client = await self.obtenir(client_id)
            if "cuit" in valeurs and valeurs["cuit"] != client.cuit:
                await self._verifier_cuit_libre(valeurs["cuit"], sauf_id=client.id)

            for champ, valeur in valeurs.items():
                setattr(client, champ, valeur)
            await self._session.flush()

        return client

    async def supprimer(self, client_id: UUID) -> None:
        async with ouvrir_transaction(self._session):
            client = await self.obtenir(client_id)

            nb_ventes = (
                await self._session.execute(select(func.count(Vente.id)).where(Vente.client_id == client.id))
            ).scalar_one()
            if nb_ventes:
                raise ClientNonSupprimable(f"Le client a {nb_ventes} vente(s) : suppression impossible.")

            await self._session.delete(client)

        logger.info("client_supprime client_id=%s", client_id)

    async def statistiques(self, *, maintenant: datetime | None = None) -> StatistiquesClients:
        maintenant = maintenant or datetime.now(timezone.utc)
        depuis = maintenant - timedelta(days=30)

        total = int((await self._session.execute(select(func.count(Client.id)))).scalar_one())
        avec_email = int(
            (
                await self._session.execute(
                    select(func.count(Client.id)).where(Client.email.is_not(None), Client.email != "")
                )
            ).scalar_one()
        )
        avec_telephone = int(
            (
                await self._session.execute(
                    select(func.count(Client.id)).where(Client.telephone.is_not(None), Client.telephone != "")
                )
            ).scalar_one()
        )
        recents = int(
            (await self._session.execute(select(func.count(Client.id)).where(Client.cree_le >= depuis))).scalar_one()
        )

        montant = func.coalesce(func.sum(Vente.montant_total), 0.0)
        res = await self._session.execute(
            select(
                Client.id,
                Client.nom,
                Client.entreprise,
                montant.label("montant_total"),
                func.count(Vente.id).label("nombre_ventes"),
            )
            .join(Vente, Vente.client_id == Client.id)
            .group_by(Client.id, Client.nom, Client.entreprise)
            .order_by(montant.desc())
            .limit(5)
        )
        meilleurs = [
            ClientClasse(
                client_id=cid,
                nom=str(nom),
                entreprise=str(entreprise),
                montant_total=arrondir_2(float(m or 0.0)),
                nombre_ventes=int(nb or 0),
            )
            for cid, nom, entreprise, m, nb in res.all()
        ]

        return StatistiquesClients(
            total_clients=total,
            avec_email=avec_email,
            avec_telephone=avec_telephone,
            recents_30_jours=recents,
            pourcentage_email=round(avec_email / total * 100) if total else 0,
            pourcentage_telephone=round(avec_telephone / total * 100) if total else 0,
            meilleurs_clients=meilleurs,
        )

    async def mouvements_credit(self, client_id: UUID) -> list[MouvementCredit]:
        await self.obtenir(client_id)
        res = await self._session.execute(
            select(MouvementCredit)
            .where(MouvementCredit.client_id == client_id)
            .order_by(MouvementCredit.date_mouvement.desc(), MouvementCredit.cree_le.desc())
        )
        return list(res.scalars().all())

    async def _verifier_cuit_libre(self, cuit: str, *, sauf_id: UUID | None = None) -> None:
        stmt = select(Client.id).where(Client.cuit == cuit)
        if sauf_id is not None:
            stmt = stmt.where(Client.id != sauf_id)
        if (await self._session.execute(stmt)).first() is not None:
            raise ClientDuplique("Un client avec ce CUIT existe déjà.")


def _nettoyer(valeurs: dict[str, str | None]) -> dict[str, str | None]:
    propres: dict[str, str | None] = {}
    for champ, valeur in valeurs.items():
        if isinstance(valeur, str):
            valeur = valeur.strip()
            if champ == "email":
                valeur = valeur.lower() or None
        propres[champ] = valeur
    return propres
