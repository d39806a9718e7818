from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession


@asynccontextmanager
async def ouvrir_transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Transaction « tout ou rien » autour d’une opération métier.

    Deux cas :
    - session neuve : `session.begin()` classique (commit / rollback auto)
    - session déjà en transaction (autobegin après une lecture, ex: dépendance
      d’auth qui a chargé l’utilisateur) : on commit à la sortie, rollback sur
      exception.

    Utilisation typique dans un service :

        async with ouvrir_transaction(self._session):
            ...
    """

    if not session.in_transaction():
        async with session.begin():
            yield session
        return

    try:
        yield session
    except BaseException:
        await session.rollback()
        raise
    await session.commit()
