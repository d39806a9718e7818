from __future__ import annotations

import os
from collections.abc import AsyncIterator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from pelletizadora.api.dependances import fournir_session
from pelletizadora.core.base_donnees import creer_fabrique_session, creer_moteur_async
from pelletizadora.domaine.modeles import BaseModele  # importe aussi tous les modèles
from pelletizadora.main import creer_application


@pytest_asyncio.fixture
async def moteur_test(tmp_path) -> AsyncIterator[AsyncEngine]:
    """Moteur de base de données pour les tests.

    TEST_URL_BASE_DONNEES permet de viser un PostgreSQL jetable ; par défaut
    une base SQLite (aiosqlite) neuve dans le répertoire temporaire du test.

    Scope function : un moteur async ne doit jamais être partagé entre
    plusieurs event loops.
    """

    url = os.getenv("TEST_URL_BASE_DONNEES") or f"sqlite+aiosqlite:///{tmp_path / 'pelletizadora.db'}"
    moteur = creer_moteur_async(url)

    async with moteur.begin() as connexion:
        await connexion.run_sync(BaseModele.metadata.drop_all)
        await connexion.run_sync(BaseModele.metadata.create_all)

    try:
        yield moteur
    finally:
        await moteur.dispose()


@pytest_asyncio.fixture
async def session_test(moteur_test: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Session SQLAlchemy async isolée par test."""

    async with creer_fabrique_session(moteur_test)() as session:
        try:
            yield session
        finally:
            await session.rollback()


@pytest_asyncio.fixture
async def client_api(session_test: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Client HTTP sur l’application, branché sur la session de test."""

    app = creer_application()

    async def _session_test() -> AsyncIterator[AsyncSession]:
        yield session_test

    app.dependency_overrides[fournir_session] = _session_test

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
