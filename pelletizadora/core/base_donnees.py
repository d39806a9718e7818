from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from pelletizadora.core.configuration import parametres_application


def creer_moteur_async(url: str | None = None) -> AsyncEngine:
    url = url or parametres_application.url_base_donnees
    options: dict[str, object] = {"pool_pre_ping": True}
    if make_url(url).get_backend_name() == "postgresql":
        options["pool_size"] = parametres_application.taille_pool_base_donnees
        options["max_overflow"] = parametres_application.taille_pool_base_donnees
    return create_async_engine(url, **options)


def creer_fabrique_session(moteur: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=moteur, class_=AsyncSession, expire_on_commit=False)


class _RegistreMoteurs:
    """Un moteur par boucle asyncio (uvicorn, tests et scripts ont chacun la leur)."""

    def __init__(self) -> None:
        self._fabriques: dict[int, async_sessionmaker[AsyncSession]] = {}

    @staticmethod
    def _cle() -> int:
        try:
            return id(asyncio.get_running_loop())
        except RuntimeError:
            # Hors boucle (imports)
            return 0

    def fabrique(self) -> async_sessionmaker[AsyncSession]:
        cle = self._cle()
        fabrique = self._fabriques.get(cle)
        if fabrique is None:
            fabrique = creer_fabrique_session(creer_moteur_async())
            self._fabriques[cle] = fabrique
        return fabrique


_registre = _RegistreMoteurs()


async def fournir_session_async() -> AsyncIterator[AsyncSession]:
    async with _registre.fabrique()() as session:
        yield session


@asynccontextmanager
async def ouvrir_session_script(url: str | None = None) -> AsyncIterator[AsyncSession]:
    """Session autonome pour les scripts : le pool est libéré en sortie."""

    moteur = creer_moteur_async(url)
    try:
        async with creer_fabrique_session(moteur)() as session:
            yield session
    finally:
        await moteur.dispose()
