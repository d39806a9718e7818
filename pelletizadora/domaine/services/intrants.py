from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.core.transactions import ouvrir_transaction
from pelletizadora.domaine.enums.types import TypeMouvement
from pelletizadora.domaine.modeles.stock import MouvementIntrant, StockIntrant
from pelletizadora.domaine.services.calculs import Pagination, arrondir_2, paginer


logger = logging.getLogger(__name__)


class ErreurIntrant(Exception):
    """Erreur générique stock d’intrants."""


class DonneesInvalidesIntrant(ErreurIntrant):
    pass


class IntrantIntrouvable(ErreurIntrant):
    pass


class StockIntrantInsuffisant(ErreurIntrant):
    pass


REFERENCE_AJUSTEMENT_MANUEL = "Ajustement manuel"
PREFIXE_ROLLO = "ROLLO "
QUANTITE_MINIMALE_MOUVEMENT = 0.01


@dataclass(frozen=True)
class StatistiquesIntrants:
    total_articles: int
    stock_bas: int


@dataclass(frozen=True)
class PageIntrants:
    intrants: list[StockIntrant]
    pagination: Pagination
    statistiques: StatistiquesIntrants


@dataclass(frozen=True)
class PageMouvementsIntrant:
    mouvements: list[MouvementIntrant]
    pagination: Pagination


@dataclass(frozen=True)
class VueRollos:
    rollos: list[StockIntrant]
    mouvements: list[MouvementIntrant]


class ServiceIntrant:
    """Stock d’intrants (matières premières, rollos, additifs).

    Les intrants sont identifiés par leur nom ; les rollos sont des intrants
    nommés « ROLLO ALFALFA » / « ROLLO OTRO » alimentés par les factures.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def lister(self, *, recherche: str | None = None, page: int = 1, limite: int = 50) -> PageIntrants:
        if page < 1 or limite < 1 or limite > 100:
            raise DonneesInvalidesIntrant("Paramètres de pagination invalides (page >= 1, 1 <= limite <= 100).")

        filtres = []
        if recherche:
            filtres.append(StockIntrant.nom.ilike(f"%{recherche.strip()}%"))

        total = (await self._session.execute(select(func.count(StockIntrant.id)).where(*filtres))).scalar_one()
        pagination = paginer(page=page, limite=limite, total=int(total))

        res = await self._session.execute(
            select(StockIntrant)
            .where(*filtres)
            .order_by(StockIntrant.nom.asc())
            .offset(pagination.decalage)
            .limit(limite)
        )

        stock_bas = (
            await self._session.execute(
                select(func.count(StockIntrant.id)).where(
                    StockIntrant.stock_minimum > 0,
                    StockIntrant.quantite <= StockIntrant.stock_minimum,
                )
            )
        ).scalar_one()

        return PageIntrants(
            intrants=list(res.scalars().all()),
            pagination=pagination,
            statistiques=StatistiquesIntrants(total_articles=int(total), stock_bas=int(stock_bas)),
        )

    async def ajouter(
        self,
        *,
        nom: str,
        quantite: float,
        unite: str = "kg",
        stock_minimum: float | None = None,
        fournisseur_id: UUID | None = None,
        numero_facture: str | None = None,
        notes: str | None = None,
    ) -> StockIntrant:
        """Ajustement manuel : ajoute à l’existant ou crée l’intrant."""

        nom = (nom or "").strip()
        if not nom:
            raise DonneesInvalidesIntrant("Le nom de l’intrant est obligatoire.")
        if quantite is None or float(quantite) < 0:
            raise DonneesInvalidesIntrant("La quantité doit être >= 0.")
        if stock_minimum is not None and float(stock_minimum) < 0:
            raise DonneesInvalidesIntrant("Le stock minimum doit être >= 0.")

        async with ouvrir_transaction(self._session):
            intrant = await self.entrer_dans_transaction(
                nom=nom,
                quantite=float(quantite),
                unite=unite,
                reference=REFERENCE_AJUSTEMENT_MANUEL,
                fournisseur_id=fournisseur_id,
                numero_facture=numero_facture,
                notes=notes,
            )
            if stock_minimum is not None:
                intrant.stock_minimum = float(stock_minimum)
            await self._session.flush()

        logger.info("intrant_ajuste nom=%s quantite=%s", nom, quantite)
        return intrant

    async def entrer_dans_transaction(
        self,
        *,
        nom: str,
        quantite: float,
        unite: str,
        reference: str,
        fournisseur_id: UUID | None = None,
        numero_facture: str | None = None,
        facture_id: UUID | None = None,
        notes: str | None = None,
        date_mouvement: datetime | None = None,
    ) -> StockIntrant:
        res = await self._session.execute(select(StockIntrant).where(StockIntrant.nom == nom))
        intrant = res.scalar_one_or_none()
        if intrant is None:
            intrant = StockIntrant(nom=nom, quantite=0.0, unite=unite, stock_minimum=0.0)
            self._session.add(intrant)

        intrant.quantite = arrondir_2(float(intrant.quantite or 0.0) + float(quantite))
        if fournisseur_id is not None:
            intrant.fournisseur_id = fournisseur_id
        if numero_facture is not None:
            intrant.numero_facture = numero_facture

        # Un ajustement à 0 crée l’article sans mouvement
        if float(quantite) > 0:
            self._session.add(
                MouvementIntrant(
                    nom_intrant=nom,
                    type_mouvement=TypeMouvement.ENTREE,
                    quantite=float(quantite),
                    unite=intrant.unite or unite,
                    date_mouvement=date_mouvement or datetime.now(timezone.utc),
                    fournisseur_id=fournisseur_id,
                    numero_facture=numero_facture,
                    facture_id=facture_id,
                    reference=reference,
                    notes=notes,
                )
            )
        await self._session.flush()
        return intrant

    async def enregistrer_sortie(
        self,
        *,
        nom: str,
        quantite: float,
        type_mouvement: TypeMouvement = TypeMouvement.SORTIE,
        reference: str | None = None,
        notes: str | None = None,
    ) -> StockIntrant:
        if type_mouvement not in (TypeMouvement.SORTIE, TypeMouvement.PRODUCTION):
            raise DonneesInvalidesIntrant("Seuls les mouvements SORTIE ou PRODUCTION sont autorisés.")

        async with ouvrir_transaction(self._session):
            intrant = await self.sortir_dans_transaction(
                nom=(nom or "").strip(),
                quantite=quantite,
                type_mouvement=type_mouvement,
                reference=reference,
                notes=notes,
            )

        logger.info("intrant_sortie nom=%s quantite=%s type=%s", nom, quantite, type_mouvement.value)
        return intrant

    async def sortir_dans_transaction(
        self,
        *,
        nom: str,
        quantite: float,
        type_mouvement: TypeMouvement,
        reference: str | None = None,
        notes: str | None = None,
        date_mouvement: datetime | None = None,
    ) -> StockIntrant:
        if quantite is None or float(quantite) < QUANTITE_MINIMALE_MOUVEMENT:
            raise DonneesInvalidesIntrant(f"La quantité doit être >= {QUANTITE_MINIMALE_MOUVEMENT}.")

        res = await self._session.execute(select(StockIntrant).where(StockIntrant.nom == nom))
        intrant = res.scalar_one_or_none()
        if intrant is None:
            raise IntrantIntrouvable(f"Intrant introuvable : {nom}.")
        if float(intrant.quantite) < float(quantite):
            raise StockIntrantInsuffisant(
                f"Stock insuffisant pour {nom} : disponible {intrant.quantite} {intrant.unite}, demandé {quantite}."
            )

        intrant.quantite = arrondir_2(float(intrant.quantite) - float(quantite))
        self._session.add(
            MouvementIntrant(
                nom_intrant=nom,
                type_mouvement=type_mouvement,
                quantite=float(quantite),
                unite=intrant.unite,
                date_mouvement=date_mouvement or datetime.now(timezone.utc),
                reference=reference,
                notes=notes,
            )
        )
        await self._session.flush()
        return intrant

    async def disponibles(self) -> list[StockIntrant]:
        res = await self._session.execute(
            select(StockIntrant).where(StockIntrant.quantite > 0).order_by(StockIntrant.nom.asc())
        )
        return list(res.scalars().all())

    async def mouvements(
        self,
        *,
        nom: str | None = None,
        type_mouvement: TypeMouvement | None = None,
        page: int = 1,
        limite: int = 50,
    ) -> PageMouvementsIntrant:
        filtres = []
        if nom:
            filtres.append(MouvementIntrant.nom_intrant == nom)
        if type_mouvement is not None:
            filtres.append(MouvementIntrant.type_mouvement == type_mouvement)

        total = (await self._session.execute(select(func.count(MouvementIntrant.id)).where(*filtres))).scalar_one()
        pagination = paginer(page=page, limite=limite, total=int(total))

        res = await self._session.execute(
            select(MouvementIntrant)
            .where(*filtres)
            .order_by(MouvementIntrant.date_mouvement.desc(), MouvementIntrant.cree_le.desc())
            .offset(pagination.decalage)
            .limit(limite)
        )
        return PageMouvementsIntrant(mouvements=list(res.scalars().all()), pagination=pagination)

    async def rollos(self, *, limite_mouvements: int = 50) -> VueRollos:
        res = await self._session.execute(
            select(StockIntrant).where(StockIntrant.nom.startswith(PREFIXE_ROLLO)).order_by(StockIntrant.nom.asc())
        )
        rollos = list(res.scalars().all())

        res_mvt = await self._session.execute(
            select(MouvementIntrant)
            .where(MouvementIntrant.nom_intrant.startswith(PREFIXE_ROLLO))
            .order_by(MouvementIntrant.date_mouvement.desc())
            .limit(limite_mouvements)
        )
        return VueRollos(rollos=rollos, mouvements=list(res_mvt.scalars().all()))
