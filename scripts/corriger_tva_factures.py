from __future__ import annotations

"""Recalcule l’IVA (21 %) et le total des factures fournisseurs.

Une facture est corrigée quand l’IVA ou le total stockés s’écartent de plus
de 1 du calcul sur le sous-total.
"""

import argparse
import asyncio

from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.core.base_donnees import ouvrir_session_script
from pelletizadora.core.logging_config import configurer_logging
from pelletizadora.domaine.services.maintenance import ServiceMaintenance


def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Corrige l'IVA et le total des factures fournisseurs")
    mode = p.add_mutually_exclusive_group(required=True)
    mode.add_argument("--dry-run", action="store_true", help="Liste les factures à corriger")
    mode.add_argument("--apply", action="store_true", help="Applique les corrections (commit)")
    return p


async def _executer(session: AsyncSession, *, appliquer: bool) -> int:
    service = ServiceMaintenance(session)
    corrections = await service.factures_iva_incorrecte()

    for c in corrections:
        print(
            f"{c.numero}: sous_total={c.sous_total} iva {c.iva_actuelle} -> {c.iva_correcte} "
            f"total {c.total_actuel} -> {c.total_correct}"
        )
    print(f"\nFactures à corriger: {len(corrections)}")

    if appliquer and corrections:
        nb = await service.corriger_iva_factures(corrections)
        print(f"APPLY: {nb} facture(s) corrigée(s)")
        return nb
    return 0


async def main() -> int:
    configurer_logging()
    args = _parser().parse_args()

    async with ouvrir_session_script() as session:
        await _executer(session, appliquer=bool(args.apply))

    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
