from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.core.configuration import parametres_application
from pelletizadora.core.securite import creer_token_acces, hasher_mot_de_passe, verifier_mot_de_passe
from pelletizadora.core.transactions import ouvrir_transaction
from pelletizadora.domaine.enums.types import RoleUtilisateur
from pelletizadora.domaine.modeles.auth import User


logger = logging.getLogger(__name__)


class ErreurUtilisateur(Exception):
    """Erreur générique du socle utilisateurs."""


class IdentifiantsInvalides(ErreurUtilisateur):
    pass


class UtilisateurDuplique(ErreurUtilisateur):
    pass


@dataclass(frozen=True)
class Connexion:
    utilisateur: User
    token_acces: str


@dataclass(frozen=True)
class ResultatCreationAdmin:
    utilisateur: User
    cree: bool


class ServiceUtilisateur:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def connecter(self, *, nom_utilisateur: str, mot_de_passe: str) -> Connexion:
        res = await self._session.execute(select(User).where(User.nom_utilisateur == nom_utilisateur.strip()))
        user = res.scalar_one_or_none()
        if user is None or not user.actif:
            raise IdentifiantsInvalides("Identifiants invalides.")
        if not verifier_mot_de_passe(mot_de_passe, user.mot_de_passe_hash):
            raise IdentifiantsInvalides("Identifiants invalides.")

        async with ouvrir_transaction(self._session):
            user.dernier_login_le = datetime.now(tz=timezone.utc)

        token = creer_token_acces(
            secret=parametres_application.jwt_secret,
            utilisateur_id=user.id,
            nom_utilisateur=user.nom_utilisateur,
            roles=[user.role.value],
            duree_minutes=parametres_application.jwt_duree_minutes,
        )
        logger.info("connexion_utilisateur user_id=%s", user.id)
        return Connexion(utilisateur=user, token_acces=token)

    async def inscrire(
        self,
        *,
        nom_utilisateur: str,
        email: str,
        mot_de_passe: str,
        role: RoleUtilisateur = RoleUtilisateur.UTILISATEUR,
    ) -> User:
        nom_utilisateur = nom_utilisateur.strip()
        email = email.strip().lower()

        async with ouvrir_transaction(self._session):
            existe = await self._session.execute(
                select(User.id).where(or_(User.nom_utilisateur == nom_utilisateur, User.email == email))
            )
            if existe.first() is not None:
                raise UtilisateurDuplique("Nom d’utilisateur ou email déjà utilisé.")

            user = User(
                nom_utilisateur=nom_utilisateur,
                email=email,
                mot_de_passe_hash=hasher_mot_de_passe(mot_de_passe),
                role=role,
                actif=True,
            )
            self._session.add(user)
            await self._session.flush()

        logger.info("utilisateur_inscrit user_id=%s role=%s", user.id, role.value)
        return user

    async def assurer_admin(self) -> ResultatCreationAdmin:
        """Crée l’administrateur configuré s’il n’existe pas encore (idempotent)."""

        res = await self._session.execute(
            select(User).where(User.nom_utilisateur == parametres_application.admin_nom_utilisateur)
        )
        user = res.scalar_one_or_none()
        if user is not None:
            return ResultatCreationAdmin(utilisateur=user, cree=False)

        user = await self.inscrire(
            nom_utilisateur=parametres_application.admin_nom_utilisateur,
            email=parametres_application.admin_email,
            mot_de_passe=parametres_application.admin_mot_de_passe_initial,
            role=RoleUtilisateur.ADMIN,
        )
        return ResultatCreationAdmin(utilisateur=user, cree=True)
