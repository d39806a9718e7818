from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt
from passlib.context import CryptContext


_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class JetonInvalide(Exception):
    """Token absent, expiré, mal signé ou incomplet."""


@dataclass(frozen=True)
class JetonAcces:
    utilisateur_id: UUID
    nom_utilisateur: str
    roles: list[str]
    expire_le: datetime


def hasher_mot_de_passe(mot_de_passe: str) -> str:
    return _pwd_context.hash(mot_de_passe)


def verifier_mot_de_passe(mot_de_passe: str, mot_de_passe_hash: str) -> bool:
    return _pwd_context.verify(mot_de_passe, mot_de_passe_hash)


def creer_token_acces(
    *,
    secret: str,
    utilisateur_id: UUID,
    nom_utilisateur: str,
    roles: list[str],
    duree_minutes: int,
) -> str:
    maintenant = datetime.now(tz=timezone.utc)
    expire_le = maintenant + timedelta(minutes=duree_minutes)

    payload = {
        "sub": str(utilisateur_id),
        "nom": nom_utilisateur,
        "roles": roles,
        "iat": int(maintenant.timestamp()),
        "exp": int(expire_le.timestamp()),
    }

    return jwt.encode(payload, secret, algorithm="HS256")


def decoder_token_acces(token: str, *, secret: str) -> JetonAcces:
    try:
        payload = jwt.decode(token, secret, algorithms=["HS256"])
    except jwt.PyJWTError as e:
        raise JetonInvalide(str(e)) from e

    try:
        utilisateur_id = UUID(str(payload.get("sub")))
    except ValueError as e:
        raise JetonInvalide("Token invalide (sub).") from e

    return JetonAcces(
        utilisateur_id=utilisateur_id,
        nom_utilisateur=str(payload.get("nom") or ""),
        roles=list(payload.get("roles") or []),
        expire_le=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
    )
