from __future__ import annotations

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from pelletizadora.core.configuration import parametres_application
from pelletizadora.domaine.modeles import BaseModele  # enregistre toutes les tables

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = BaseModele.metadata


def _options_communes() -> dict:
    # Enums stockés en VARCHAR : la comparaison de types suffit à détecter les écarts
    return {"target_metadata": target_metadata, "compare_type": True, "render_as_batch": True}


def migrer_hors_ligne() -> None:
    """Génère le SQL sans connexion (alembic upgrade --sql)."""

    context.configure(
        url=parametres_application.url_base_donnees,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_options_communes(),
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrer_sur(connexion: Connection) -> None:
    context.configure(connection=connexion, **_options_communes())
    with context.begin_transaction():
        context.run_migrations()


async def migrer_en_ligne() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = parametres_application.url_base_donnees

    moteur = async_engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    try:
        async with moteur.connect() as connexion:
            await connexion.run_sync(_migrer_sur)
    finally:
        await moteur.dispose()


if context.is_offline_mode():
    migrer_hors_ligne()
else:
    asyncio.run(migrer_en_ligne())
