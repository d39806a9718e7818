"""Helpers HTTP STRICTEMENT côté tests."""

from __future__ import annotations

from uuid import UUID

from pelletizadora.core.configuration import parametres_application
from pelletizadora.core.securite import creer_token_acces


def entetes_internes(extra: dict[str, str] | None = None) -> dict[str, str]:
    """Headers d’accès technique à /api (clé X-CLE-INTERNE).

    `extra` permet d'ajouter d'autres headers (ex: Authorization pour un JWT applicatif).
    """

    h: dict[str, str] = {"X-CLE-INTERNE": parametres_application.cle_api_interne}
    if extra:
        h.update(extra)
    return h


def entetes_jwt(*, utilisateur_id: UUID, nom_utilisateur: str, roles: list[str]) -> dict[str, str]:
    token = creer_token_acces(
        secret=parametres_application.jwt_secret,
        utilisateur_id=utilisateur_id,
        nom_utilisateur=nom_utilisateur,
        roles=roles,
        duree_minutes=5,
    )
    return {"Authorization": f"Bearer {token}"}
