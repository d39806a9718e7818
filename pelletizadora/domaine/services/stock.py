from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.core.transactions import ouvrir_transaction
from pelletizadora.domaine.enums.types import PresentationPellet, TendanceStock, TypeMouvement
from pelletizadora.domaine.modeles.stock import MouvementStockPellet, StockPellet
from pelletizadora.domaine.services.calculs import Pagination, arrondir_1, arrondir_2, paginer


logger = logging.getLogger(__name__)


class ErreurStock(Exception):
    """Erreur générique stock pellet."""


class DonneesInvalidesStock(ErreurStock):
    pass


class StockInsuffisant(ErreurStock):
    """La sortie demandée rendrait le stock négatif."""


REFERENCE_CHARGEMENT_MANUEL = "Chargement manuel"


@dataclass(frozen=True)
class PageMouvementsStock:
    mouvements: list[MouvementStockPellet]
    pagination: Pagination


@dataclass(frozen=True)
class IndicateursFlux:
    total: float
    nombre: int
    vitesse: float
    moyenne: float


@dataclass(frozen=True)
class StatistiquesStock:
    presentation: PresentationPellet
    jours: int
    depuis: datetime
    jusqu_a: datetime
    entrees: IndicateursFlux
    sorties: IndicateursFlux
    total_mouvements: int
    vitesse_totale: float
    stock_actuel: float
    rotation: float
    tendance: TendanceStock


class ServiceStockPellet:
    """Stock de pellet fini par présentation.

    Règle : tout changement de quantité passe par `ajouter_dans_transaction` /
    `retirer_dans_transaction`, qui écrivent aussi le MouvementStockPellet.
    Le stock ne descend jamais sous 0.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def lister(self) -> list[StockPellet]:
        res = await self._session.execute(select(StockPellet))
        stocks = list(res.scalars().all())
        return sorted(stocks, key=lambda s: s.presentation.value)

    async def ajouter_manuel(
        self,
        *,
        presentation: PresentationPellet,
        quantite: float,
        notes: str | None = None,
    ) -> StockPellet:
        if quantite is None or float(quantite) <= 0:
            raise DonneesInvalidesStock("La quantité doit être > 0.")

        async with ouvrir_transaction(self._session):
            stock = await self.ajouter_dans_transaction(
                presentation=presentation,
                quantite=float(quantite),
                reference=REFERENCE_CHARGEMENT_MANUEL,
                notes=notes,
            )

        logger.info("stock_chargement_manuel presentation=%s quantite=%s", presentation.value, quantite)
        return stock

    async def ajouter_dans_transaction(
        self,
        *,
        presentation: PresentationPellet,
        quantite: float,
        reference: str,
        notes: str | None = None,
        date_mouvement: datetime | None = None,
    ) -> StockPellet:
        stock = await self._charger_ou_creer(presentation)
        stock.quantite = arrondir_2(float(stock.quantite) + float(quantite))

        self._session.add(
            MouvementStockPellet(
                presentation=presentation,
                type_mouvement=TypeMouvement.ENTREE,
                quantite=float(quantite),
                date_mouvement=date_mouvement or datetime.now(timezone.utc),
                reference=reference,
                notes=notes,
            )
        )
        await self._session.flush()
        return stock

    async def retirer_dans_transaction(
        self,
        *,
        presentation: PresentationPellet,
        quantite: float,
        reference: str,
        notes: str | None = None,
        date_mouvement: datetime | None = None,
    ) -> StockPellet:
        res = await self._session.execute(select(StockPellet).where(StockPellet.presentation == presentation))
        stock = res.scalar_one_or_none()
        disponible = float(stock.quantite) if stock is not None else 0.0
        if stock is None or disponible < float(quantite):
            raise StockInsuffisant(
                f"Stock insuffisant pour {presentation.value} : disponible {disponible}, demandé {quantite}."
            )

        stock.quantite = arrondir_2(disponible - float(quantite))
        self._session.add(
            MouvementStockPellet(
                presentation=presentation,
                type_mouvement=TypeMouvement.SORTIE,
                quantite=float(quantite),
                date_mouvement=date_mouvement or datetime.now(timezone.utc),
                reference=reference,
                notes=notes,
            )
        )
        await self._session.flush()
        return stock

    async def mouvements(
        self,
        *,
        presentation: PresentationPellet | None = None,
        type_mouvement: TypeMouvement | None = None,
        page: int = 1,
        limite: int = 50,
    ) -> PageMouvementsStock:
        filtres = []
        if presentation is not None:
            filtres.append(MouvementStockPellet.presentation == presentation)
        if type_mouvement is not None:
            filtres.append(MouvementStockPellet.type_mouvement == type_mouvement)

        total = (
            await self._session.execute(select(func.count(MouvementStockPellet.id)).where(*filtres))
        ).scalar_one()
        pagination = paginer(page=page, limite=limite, total=int(total))

        res = await self._session.execute(
            select(MouvementStockPellet)
            .where(*filtres)
            .order_by(MouvementStockPellet.date_mouvement.desc(), MouvementStockPellet.cree_le.desc())
            .offset(pagination.decalage)
            .limit(limite)
        )
        return PageMouvementsStock(mouvements=list(res.scalars().all()), pagination=pagination)

    async def statistiques(
        self,
        *,
        presentation: PresentationPellet = PresentationPellet.GRANEL,
        jours: int = 30,
        maintenant: datetime | None = None,
    ) -> StatistiquesStock:
        """Flux sur la période, rotation et tendance des sorties.

        Tendance : sorties des 7 derniers jours (S7) vs reste de la période (P).
        CROISSANTE si S7 > 1.2 * P, DECROISSANTE si S7 < 0.8 * P.
        """

        if jours < 1:
            raise DonneesInvalidesStock("Le nombre de jours doit être >= 1.")

        jusqu_a = maintenant or datetime.now(timezone.utc)
        depuis = jusqu_a - timedelta(days=jours)
        semaine = jusqu_a - timedelta(days=7)

        res = await self._session.execute(
            select(MouvementStockPellet.type_mouvement, MouvementStockPellet.quantite, MouvementStockPellet.date_mouvement)
            .where(MouvementStockPellet.presentation == presentation)
            .where(MouvementStockPellet.date_mouvement >= depuis)
            .where(MouvementStockPellet.date_mouvement <= jusqu_a)
        )
        lignes = res.all()

        entrees = [float(q) for t, q, _ in lignes if t == TypeMouvement.ENTREE]
        sorties = [float(q) for t, q, _ in lignes if t != TypeMouvement.ENTREE]

        duree = max(1, jours)
        total_entrees = sum(entrees)
        total_sorties = sum(sorties)

        stock = (
            await self._session.execute(select(StockPellet.quantite).where(StockPellet.presentation == presentation))
        ).scalar_one_or_none()
        stock_actuel = float(stock or 0.0)

        # Mouvements des 7 derniers jours (pour la tendance)
        res_semaine = await self._session.execute(
            select(MouvementStockPellet.type_mouvement, MouvementStockPellet.quantite)
            .where(MouvementStockPellet.presentation == presentation)
            .where(MouvementStockPellet.date_mouvement >= semaine)
            .where(MouvementStockPellet.date_mouvement <= jusqu_a)
        )
        lignes_semaine = res_semaine.all()

        tendance = TendanceStock.STABLE
        if lignes_semaine:
            sorties_semaine = sum(float(q) for t, q in lignes_semaine if t != TypeMouvement.ENTREE)
            sorties_precedentes = total_sorties - sorties_semaine
            if sorties_semaine > sorties_precedentes * 1.2:
                tendance = TendanceStock.CROISSANTE
            elif sorties_semaine < sorties_precedentes * 0.8:
                tendance = TendanceStock.DECROISSANTE

        return StatistiquesStock(
            presentation=presentation,
            jours=jours,
            depuis=depuis,
            jusqu_a=jusqu_a,
            entrees=_indicateurs(entrees, duree),
            sorties=_indicateurs(sorties, duree),
            total_mouvements=len(lignes),
            vitesse_totale=arrondir_1((total_entrees + total_sorties) / duree),
            stock_actuel=stock_actuel,
            rotation=total_sorties / stock_actuel if stock_actuel > 0 else 0.0,
            tendance=tendance,
        )

    async def _charger_ou_creer(self, presentation: PresentationPellet) -> StockPellet:
        res = await self._session.execute(select(StockPellet).where(StockPellet.presentation == presentation))
        stock = res.scalar_one_or_none()
        if stock is None:
            stock = StockPellet(presentation=presentation, quantite=0.0)
            self._session.add(stock)
            await self._session.flush()
        return stock


def _indicateurs(quantites: list[float], duree: int) -> IndicateursFlux:
    total = sum(quantites)
    return IndicateursFlux(
        total=total,
        nombre=len(quantites),
        vitesse=arrondir_1(total / duree),
        moyenne=total / len(quantites) if quantites else 0.0,
    )
