from __future__ import annotations

"""Vérification / réparation des lots de production.

Contrôles : lots dupliqués, lots sans consommation ou sans génération,
rendement hors [0, 1], quantité totale <= 0, lignes orphelines.
"""

import argparse
import asyncio

from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.core.base_donnees import ouvrir_session_script
from pelletizadora.core.logging_config import configurer_logging
from pelletizadora.domaine.services.maintenance import RapportProduction, ServiceMaintenance


def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Vérifie et corrige les données de production")
    mode = p.add_mutually_exclusive_group(required=True)
    mode.add_argument("--dry-run", action="store_true", help="Rapport seul")
    mode.add_argument("--apply", action="store_true", help="Corrige (commit)")
    return p


def _imprimer_rapport(rapport: RapportProduction) -> None:
    print(f"Lots dupliqués: {len(rapport.lots_dupliques)}")
    for lot, nb in sorted(rapport.lots_dupliques.items()):
        print(f"  {lot} x{nb}")
    print(f"Sans consommation: {len(rapport.sans_consommation)} {rapport.sans_consommation}")
    print(f"Sans génération: {len(rapport.sans_generation)} {rapport.sans_generation}")
    print(f"Rendement invalide: {len(rapport.rendements_invalides)} {rapport.rendements_invalides}")
    print(f"Quantité invalide: {len(rapport.quantites_invalides)} {rapport.quantites_invalides}")
    print(f"Consommations orphelines: {rapport.consommations_orphelines}")
    print(f"Générations orphelines: {rapport.generations_orphelines}")
    print(f"\nProblèmes détectés: {rapport.nombre_problemes}")


async def _executer(session: AsyncSession, *, appliquer: bool) -> RapportProduction:
    service = ServiceMaintenance(session)
    rapport = await service.verifier_production()
    _imprimer_rapport(rapport)

    if appliquer and rapport.nombre_problemes:
        resultat = await service.corriger_production()
        print(
            f"\nAPPLY: productions supprimées={resultat.productions_supprimees} "
            f"rendements={resultat.rendements_corriges} quantites={resultat.quantites_corrigees} "
            f"orphelins={resultat.orphelins_supprimes}"
        )
        rapport = await service.verifier_production()
    return rapport


async def main() -> int:
    configurer_logging()
    args = _parser().parse_args()

    async with ouvrir_session_script() as session:
        await _executer(session, appliquer=bool(args.apply))

    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
