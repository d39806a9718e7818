"""Règles de calcul partagées : arrondis monétaires, IVA, statut de règlement.

Fonctions pures, sans accès base : utilisées par tous les services et les
scripts de maintenance.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from pelletizadora.core.configuration import parametres_application
from pelletizadora.domaine.enums.types import StatutReglement


def arrondir_2(valeur: float) -> float:
    """Arrondi commercial (demi vers le haut) à 2 décimales."""

    return float(Decimal(str(valeur)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def arrondir_1(valeur: float) -> float:
    return float(Decimal(str(valeur)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def calculer_iva(sous_total: float, *, taux: float | None = None) -> float:
    t = parametres_application.taux_iva if taux is None else taux
    return arrondir_2(sous_total * t)


def sous_total_depuis_total(total: float, *, taux: float | None = None) -> float:
    t = parametres_application.taux_iva if taux is None else taux
    return arrondir_2(total / (1 + t))


def total_avec_iva(sous_total: float, *, taux: float | None = None) -> float:
    t = parametres_application.taux_iva if taux is None else taux
    return arrondir_2(sous_total * (1 + t))


def est_nombre_positif(valeur: object) -> bool:
    if isinstance(valeur, bool) or not isinstance(valeur, (int, float)):
        return False
    return math.isfinite(valeur) and valeur > 0


def statut_reglement(total: float, paye: float) -> StatutReglement:
    if paye >= total:
        return StatutReglement.PAYE
    if paye > 0:
        return StatutReglement.PARTIEL
    return StatutReglement.EN_ATTENTE


def montant_restant(total: float, paye: float) -> float:
    return max(0.0, arrondir_2(total - paye))


def montant_excedent(total: float, paye: float) -> float:
    return max(0.0, arrondir_2(paye - total))


@dataclass(frozen=True)
class Pagination:
    page: int
    limite: int
    total: int
    pages: int

    @property
    def decalage(self) -> int:
        return (self.page - 1) * self.limite


def paginer(*, page: int, limite: int, total: int) -> Pagination:
    pages = math.ceil(total / limite) if limite > 0 else 0
    return Pagination(page=page, limite=limite, total=total, pages=pages)


def en_utc(d: datetime) -> datetime:
    """Normalise une date en UTC aware.

    SQLite relit les DateTime(timezone=True) sans tzinfo : on les considère UTC.
    """

    if d.tzinfo is None:
        return d.replace(tzinfo=timezone.utc)
    return d.astimezone(timezone.utc)
