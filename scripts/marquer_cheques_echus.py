from __future__ import annotations

"""Passe en ECHU les chèques EN_ATTENTE dont l’échéance est dépassée.

À lancer quotidiennement (cron).
"""

import argparse
import asyncio
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.core.base_donnees import ouvrir_session_script
from pelletizadora.core.logging_config import configurer_logging
from pelletizadora.domaine.enums.types import StatutCheque
from pelletizadora.domaine.modeles.cheques import Cheque
from pelletizadora.domaine.services.cheques import ServiceCheque


def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Marque ECHU les chèques en attente dont l'échéance est passée")
    mode = p.add_mutually_exclusive_group(required=True)
    mode.add_argument("--dry-run", action="store_true", help="Compte seulement")
    mode.add_argument("--apply", action="store_true", help="Met à jour les statuts (commit)")
    return p


async def _compter_candidats(session: AsyncSession, *, maintenant: datetime) -> int:
    nb = (
        await session.execute(
            select(func.count(Cheque.id)).where(
                Cheque.statut == StatutCheque.EN_ATTENTE,
                Cheque.date_echeance < maintenant,
            )
        )
    ).scalar_one()
    return int(nb or 0)


async def _executer(session: AsyncSession, *, appliquer: bool, maintenant: datetime | None = None) -> int:
    maintenant = maintenant or datetime.now(timezone.utc)
    candidats = await _compter_candidats(session, maintenant=maintenant)
    print(f"Chèques échus à marquer: {candidats}")

    if not appliquer:
        return candidats

    nb = await ServiceCheque(session).marquer_echus(maintenant=maintenant)
    print(f"APPLY: {nb} chèque(s) passé(s) en ECHU")
    return nb


async def main() -> int:
    configurer_logging()
    args = _parser().parse_args()

    async with ouvrir_session_script() as session:
        await _executer(session, appliquer=bool(args.apply))

    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
