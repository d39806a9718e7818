from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.core.transactions import ouvrir_transaction
from pelletizadora.domaine.enums.types import PresentationPellet, TypeMouvement
from pelletizadora.domaine.modeles.production import ConsommationIntrant, GenerationPellet, Production
from pelletizadora.domaine.services.calculs import Pagination, arrondir_2, en_utc, est_nombre_positif, paginer
from pelletizadora.domaine.services.intrants import ServiceIntrant
from pelletizadora.domaine.services.stock import ServiceStockPellet


logger = logging.getLogger(__name__)


class ErreurProduction(Exception):
    """Erreur générique de production."""


class DonneesInvalidesProduction(ErreurProduction):
    pass


class ProductionIntrouvable(ErreurProduction):
    pass


class LotDejaExistant(ErreurProduction):
    pass


PREFIXE_LOT = "LOTE-"
QUANTITE_MINIMALE = 0.01
_MOTIF_LOT = re.compile(r"(\d+)$")


@dataclass(frozen=True)
class ConsommationSaisie:
    nom_intrant: str
    quantite: float
    notes: str | None = None


@dataclass(frozen=True)
class GenerationSaisie:
    presentation: PresentationPellet
    quantite: float
    notes: str | None = None


@dataclass(frozen=True)
class ProductionDetaillee:
    production: Production
    consommations: list[ConsommationIntrant]
    generations: list[GenerationPellet]


@dataclass(frozen=True)
class PageProductions:
    productions: list[Production]
    pagination: Pagination


def numero_lot_suivant(dernier: str | None) -> str:
    """LOTE-00001 si aucun lot, sinon suffixe numérique + 1 sur 5 chiffres."""

    if not dernier:
        return f"{PREFIXE_LOT}{1:05d}"
    m = _MOTIF_LOT.search(dernier)
    numero = int(m.group(1)) + 1 if m else 1
    return f"{PREFIXE_LOT}{numero:05d}"


def rendement_par_defaut(quantite_totale: float, consommations: list[ConsommationSaisie]) -> float:
    consomme = sum(float(c.quantite) for c in consommations)
    if consomme <= 0:
        return 0.0
    return min(1.0, arrondir_2(quantite_totale / consomme))


class ServiceProduction:
    """Enregistrement d’un lot de production.

    Une seule transaction :
    - consommation des intrants (refus si stock insuffisant)
    - génération du pellet par présentation (entrée en stock)
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._intrants = ServiceIntrant(session)
        self._stock = ServiceStockPellet(session)

    async def prochain_numero_lot(self) -> str:
        res = await self._session.execute(
            select(Production.numero_lot).where(Production.numero_lot.startswith(PREFIXE_LOT))
        )
        numeros = []
        for (lot,) in res.all():
            m = _MOTIF_LOT.search(lot)
            if m:
                numeros.append(int(m.group(1)))
        if not numeros:
            return numero_lot_suivant(None)
        return numero_lot_suivant(f"{PREFIXE_LOT}{max(numeros)}")

    async def enregistrer(
        self,
        *,
        type_pellet: str,
        quantite_totale: float,
        generations: list[GenerationSaisie],
        consommations: list[ConsommationSaisie] | None = None,
        numero_lot: str | None = None,
        rendement: float | None = None,
        operateur: str | None = None,
        notes: str | None = None,
        date_production: datetime | None = None,
    ) -> ProductionDetaillee:
        consommations = consommations or []

        if not (type_pellet or "").strip():
            raise DonneesInvalidesProduction("Le type de pellet est obligatoire.")
        if quantite_totale is None or float(quantite_totale) < QUANTITE_MINIMALE:
            raise DonneesInvalidesProduction(f"La quantité totale doit être >= {QUANTITE_MINIMALE}.")
        if rendement is not None and not 0 <= float(rendement) <= 1:
            raise DonneesInvalidesProduction("Le rendement doit être compris entre 0 et 1.")
        if not generations:
            raise DonneesInvalidesProduction("Au moins une présentation produite est obligatoire.")
        for g in generations:
            if not est_nombre_positif(g.quantite):
                raise DonneesInvalidesProduction("Chaque quantité produite doit être > 0.")
        for c in consommations:
            if not (c.nom_intrant or "").strip():
                raise DonneesInvalidesProduction("Chaque consommation doit nommer un intrant.")
            if not est_nombre_positif(c.quantite):
                raise DonneesInvalidesProduction("Chaque quantité consommée doit être > 0.")

        date_production = en_utc(date_production) if date_production is not None else datetime.now(timezone.utc)
        if rendement is None:
            rendement = rendement_par_defaut(float(quantite_totale), consommations)

        async with ouvrir_transaction(self._session):
            lot = (numero_lot or "").strip() or await self.prochain_numero_lot()
            existe = await self._session.execute(select(Production.id).where(Production.numero_lot == lot))
            if existe.first() is not None:
                raise LotDejaExistant(f"Le lot {lot} existe déjà.")

            production = Production(
                date_production=date_production,
                numero_lot=lot,
                type_pellet=type_pellet.strip(),
                quantite_totale=float(quantite_totale),
                rendement=float(rendement),
                operateur=operateur,
                notes=notes,
            )
            self._session.add(production)
            await self._session.flush()

            lignes_consommation: list[ConsommationIntrant] = []
            for c in consommations:
                intrant = await self._intrants.sortir_dans_transaction(
                    nom=c.nom_intrant.strip(),
                    quantite=float(c.quantite),
                    type_mouvement=TypeMouvement.PRODUCTION,
                    reference=f"Production {lot}",
                    date_mouvement=date_production,
                )
                ligne = ConsommationIntrant(
                    production_id=production.id,
                    nom_intrant=intrant.nom,
                    quantite=float(c.quantite),
                    unite=intrant.unite,
                    date_consommation=date_production,
                    notes=c.notes,
                )
                self._session.add(ligne)
                lignes_consommation.append(ligne)

            lignes_generation: list[GenerationPellet] = []
            for g in generations:
                ligne = GenerationPellet(
                    production_id=production.id,
                    presentation=g.presentation,
                    quantite=float(g.quantite),
                    date_generation=date_production,
                    notes=g.notes,
                )
                self._session.add(ligne)
                lignes_generation.append(ligne)

                await self._stock.ajouter_dans_transaction(
                    presentation=g.presentation,
                    quantite=float(g.quantite),
                    reference=f"Production: {lot}",
                    date_mouvement=date_production,
                )

            await self._session.flush()

        logger.info(
            "production_enregistree production_id=%s lot=%s quantite=%s consommations=%s generations=%s",
            production.id,
            lot,
            quantite_totale,
            len(lignes_consommation),
            len(lignes_generation),
        )
        return ProductionDetaillee(
            production=production,
            consommations=lignes_consommation,
            generations=lignes_generation,
        )

    async def lister(self, *, page: int = 1, limite: int = 20) -> PageProductions:
        total = (await self._session.execute(select(func.count(Production.id)))).scalar_one()
        pagination = paginer(page=page, limite=limite, total=int(total))

        res = await self._session.execute(
            select(Production)
            .order_by(Production.date_production.desc(), Production.cree_le.desc())
            .offset(pagination.decalage)
            .limit(limite)
        )
        return PageProductions(productions=list(res.scalars().all()), pagination=pagination)

    async def obtenir(self, production_id: UUID) -> ProductionDetaillee:
        production = await self._session.get(Production, production_id)
        if production is None:
            raise ProductionIntrouvable("Production introuvable.")

        consommations = await self._session.execute(
            select(ConsommationIntrant)
            .where(ConsommationIntrant.production_id == production.id)
            .order_by(ConsommationIntrant.nom_intrant.asc())
        )
        generations = await self._session.execute(
            select(GenerationPellet).where(GenerationPellet.production_id == production.id)
        )
        return ProductionDetaillee(
            production=production,
            consommations=list(consommations.scalars().all()),
            generations=list(generations.scalars().all()),
        )
