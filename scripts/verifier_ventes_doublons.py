from __future__ import annotations

"""Détection / annulation des ventes saisies en double.

Doublon : même client, même quantité, même prix unitaire, créées à moins de
`--ecart` secondes d’intervalle (comparaison sur une fenêtre glissante de
`--fenetre` ventes triées par date de création).

- `--dry-run` : rapport seul
- `--apply` : annule chaque doublon (stock restitué, référence
  « Annulation vente en double »). Les doublons déjà payés sont ignorés.
"""

import argparse
import asyncio

from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.core.base_donnees import ouvrir_session_script
from pelletizadora.core.logging_config import configurer_logging
from pelletizadora.domaine.services.maintenance import RapportDoublons, ServiceMaintenance


def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Détecte et annule les ventes en double")
    mode = p.add_mutually_exclusive_group(required=True)
    mode.add_argument("--dry-run", action="store_true", help="Affiche le rapport sans rien modifier")
    mode.add_argument("--apply", action="store_true", help="Annule les doublons (commit)")

    p.add_argument("--fenetre", type=int, default=None, help="Taille de la fenêtre, vente de départ comprise (défaut: config)")
    p.add_argument("--ecart", type=int, default=None, help="Écart maximal en secondes (défaut: config)")
    return p


def _imprimer_rapport(rapport: RapportDoublons) -> None:
    if not rapport.groupes:
        print("Aucune vente en double.")
        return

    for i, groupe in enumerate(rapport.groupes, start=1):
        o = groupe.originale
        print(
            f"[{i}] originale {o.vente_id} client={o.client_id} quantite={o.quantite} "
            f"prix={o.prix_unitaire} cree_le={o.cree_le.isoformat()}"
        )
        for d in groupe.doublons:
            print(f"    doublon {d.vente_id} montant={d.montant_total} cree_le={d.cree_le.isoformat()}")

    print(
        f"\nDoublons: {rapport.nombre_doublons} | quantite a restituer: {rapport.quantite_a_restituer} "
        f"| montant a annuler: {rapport.montant_a_annuler}"
    )


async def _executer(session: AsyncSession, *, appliquer: bool, fenetre: int | None, ecart: int | None) -> int:
    service = ServiceMaintenance(session)
    rapport = await service.rapport_ventes_doublons(fenetre=fenetre, ecart_secondes=ecart)
    _imprimer_rapport(rapport)

    if not appliquer or not rapport.groupes:
        return 0

    resultat = await service.corriger_ventes_doublons(rapport)
    print(f"\nAPPLY: {len(resultat.annulees)} vente(s) annulée(s)")
    for vente_id in resultat.ignorees:
        print(f"  ignorée (paiements existants): {vente_id}")
    return len(resultat.annulees)


async def main() -> int:
    configurer_logging()
    args = _parser().parse_args()

    async with ouvrir_session_script() as session:
        await _executer(session, appliquer=bool(args.apply), fenetre=args.fenetre, ecart=args.ecart)
        if args.dry_run:
            print("\nDRY-RUN: aucune écriture")

    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
