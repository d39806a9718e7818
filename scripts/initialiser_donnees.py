from __future__ import annotations

"""Données de démarrage (idempotent).

- administrateur configuré (ADMIN_NOM_UTILISATEUR / ADMIN_MOT_DE_PASSE_INITIAL)
- stock initial de pellet par présentation (uniquement si absent)
- quelques clients et fournisseurs d’exemple (par CUIT)
"""

import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.core.base_donnees import ouvrir_session_script
from pelletizadora.core.logging_config import configurer_logging
from pelletizadora.domaine.enums.types import PresentationPellet
from pelletizadora.domaine.modeles.stock import StockPellet
from pelletizadora.domaine.modeles.tiers import Client, Fournisseur
from pelletizadora.domaine.services.utilisateurs import ServiceUtilisateur


STOCK_INITIAL = {
    PresentationPellet.BOLSA_25KG: 100.0,
    PresentationPellet.BIG_BAG: 50.0,
    PresentationPellet.GRANEL: 1000.0,
}

CLIENTS_EXEMPLE = [
    {
        "nom": "Juan Pérez",
        "entreprise": "Agropecuaria San Martín",
        "cuit": "20-12345678-9",
        "contact": "Juan Pérez",
        "email": "juan@sanmartin.com.ar",
        "telephone": "+54 11 4444-5555",
    },
    {
        "nom": "María González",
        "entreprise": "Establecimiento La Esperanza",
        "cuit": "27-23456789-0",
        "contact": "María González",
        "email": "maria@laesperanza.com.ar",
        "telephone": "+54 2477 44-1122",
    },
    {
        "nom": "Carlos Rodríguez",
        "entreprise": "Haras El Trébol",
        "cuit": "20-34567890-1",
        "contact": "Carlos Rodríguez",
    },
]

FOURNISSEURS_EXEMPLE = [
    {
        "raison_sociale": "Alfalfa del Oeste S.A.",
        "cuit": "30-71234567-8",
        "contact": "Roberto Díaz",
        "email": "ventas@alfalfaoeste.com.ar",
    },
    {
        "raison_sociale": "Insumos Rurales SRL",
        "cuit": "30-70987654-3",
        "contact": "Laura Méndez",
        "telephone": "+54 2396 42-3344",
    },
]


async def seed(session: AsyncSession) -> dict[str, int]:
    crees = {"admin": 0, "stocks": 0, "clients": 0, "fournisseurs": 0}

    resultat_admin = await ServiceUtilisateur(session).assurer_admin()
    crees["admin"] = int(resultat_admin.cree)

    for presentation, quantite in STOCK_INITIAL.items():
        res = await session.execute(select(StockPellet).where(StockPellet.presentation == presentation))
        if res.scalar_one_or_none() is None:
            session.add(StockPellet(presentation=presentation, quantite=quantite))
            crees["stocks"] += 1

    for donnees in CLIENTS_EXEMPLE:
        res = await session.execute(select(Client.id).where(Client.cuit == donnees["cuit"]))
        if res.first() is None:
            session.add(Client(**donnees, solde_credit=0.0))
            crees["clients"] += 1

    for donnees in FOURNISSEURS_EXEMPLE:
        res = await session.execute(select(Fournisseur.id).where(Fournisseur.cuit == donnees["cuit"]))
        if res.first() is None:
            session.add(Fournisseur(**donnees))
            crees["fournisseurs"] += 1

    await session.commit()
    return crees


async def main() -> int:
    configurer_logging()

    async with ouvrir_session_script() as session:
        crees = await seed(session)

    for cle, nb in crees.items():
        print(f"{cle}: {nb} créé(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
