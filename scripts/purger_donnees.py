from __future__ import annotations

"""Purge de toutes les données métier (les comptes utilisateurs restent).

Irréversible : `--apply` exige aussi `--confirmer`.
"""

import argparse
import asyncio

from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.core.base_donnees import ouvrir_session_script
from pelletizadora.core.logging_config import configurer_logging
from pelletizadora.domaine.services.maintenance import ServiceMaintenance


def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Supprime toutes les données métier (utilisateurs conservés)")
    mode = p.add_mutually_exclusive_group(required=True)
    mode.add_argument("--dry-run", action="store_true", help="Compte les lignes qui seraient supprimées")
    mode.add_argument("--apply", action="store_true", help="Supprime (commit)")
    p.add_argument("--confirmer", action="store_true", help="Confirmation obligatoire avec --apply")
    return p


async def _executer(session: AsyncSession, *, appliquer: bool) -> dict[str, int]:
    service = ServiceMaintenance(session)
    comptes = await service.purger_donnees() if appliquer else await service.compter_donnees()

    for table, nb in comptes.items():
        print(f"{table}: {nb}")
    print(f"\n{'APPLY' if appliquer else 'DRY-RUN'}: {sum(comptes.values())} ligne(s)")
    return comptes


async def main() -> int:
    configurer_logging()
    args = _parser().parse_args()
    if args.apply and not args.confirmer:
        print("Refus: --apply nécessite --confirmer")
        return 2

    async with ouvrir_session_script() as session:
        await _executer(session, appliquer=bool(args.apply))

    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
