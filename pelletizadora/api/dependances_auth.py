from __future__ import annotations

import hmac

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.api.dependances import fournir_session
from pelletizadora.core.configuration import parametres_application
from pelletizadora.core.securite import JetonInvalide, decoder_token_acces
from pelletizadora.domaine.enums.types import RoleUtilisateur
from pelletizadora.domaine.modeles.auth import User


def _extraire_bearer(authorization: str | None) -> str | None:
    if authorization is None:
        return None
    prefix = "bearer "
    if authorization.lower().startswith(prefix):
        return authorization[len(prefix) :].strip() or None
    return None


def _cle_interne_valide(x_cle_interne: str | None) -> bool:
    if x_cle_interne is None or not x_cle_interne.strip():
        return False
    return hmac.compare_digest(x_cle_interne.strip(), parametres_application.cle_api_interne)


async def fournir_utilisateur_courant(
    session: AsyncSession = Depends(fournir_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> User:
    token = _extraire_bearer(authorization)
    if token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token manquant.")

    try:
        jeton = decoder_token_acces(token, secret=parametres_application.jwt_secret)
    except JetonInvalide as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token invalide.") from e

    user = await session.get(User, jeton.utilisateur_id)
    if user is None or not user.actif:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Utilisateur inactif.")

    return user


async def verifier_acces(
    session: AsyncSession = Depends(fournir_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_cle_interne: str | None = Header(default=None, alias="X-CLE-INTERNE"),
) -> None:
    """Accès /api : JWT d’un utilisateur actif, ou clé technique X-CLE-INTERNE."""

    if _cle_interne_valide(x_cle_interne):
        return None

    if x_cle_interne and _extraire_bearer(authorization) is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Clé interne invalide.")

    await fournir_utilisateur_courant(session=session, authorization=authorization)
    return None


def verifier_roles_requis(*roles_requis: RoleUtilisateur):
    async def _dep(user: User = Depends(fournir_utilisateur_courant)) -> None:
        if user.role not in roles_requis:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Accès interdit.")

    return _dep
