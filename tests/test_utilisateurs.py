from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.core.configuration import parametres_application
from pelletizadora.core.securite import decoder_token_acces
from pelletizadora.domaine.enums.types import RoleUtilisateur
from pelletizadora.domaine.modeles.auth import User
from pelletizadora.domaine.services.utilisateurs import (
    IdentifiantsInvalides,
    ServiceUtilisateur,
    UtilisateurDuplique,
)
from tests._auth_helpers import creer_utilisateur


@pytest.mark.asyncio
async def test_inscription_puis_connexion(session_test: AsyncSession) -> None:
    service = ServiceUtilisateur(session_test)
    user = await service.inscrire(nom_utilisateur=" maria ", email="Maria@Example.com", mot_de_passe="Secreto123")

    assert user.nom_utilisateur == "maria"
    assert user.email == "maria@example.com"
    assert user.role == RoleUtilisateur.UTILISATEUR
    assert user.mot_de_passe_hash != "Secreto123"

    connexion = await service.connecter(nom_utilisateur="maria", mot_de_passe="Secreto123")

    jeton = decoder_token_acces(connexion.token_acces, secret=parametres_application.jwt_secret)
    assert jeton.utilisateur_id == user.id
    assert jeton.roles == ["UTILISATEUR"]
    assert connexion.utilisateur.dernier_login_le is not None


@pytest.mark.asyncio
async def test_inscription_refusee_si_nom_ou_email_pris(session_test: AsyncSession) -> None:
    service = ServiceUtilisateur(session_test)
    await creer_utilisateur(session_test, nom_utilisateur="juan")

    with pytest.raises(UtilisateurDuplique):
        await service.inscrire(nom_utilisateur="juan", email="autre@example.com", mot_de_passe="x")
    with pytest.raises(UtilisateurDuplique):
        await service.inscrire(nom_utilisateur="autre", email="JUAN@example.com", mot_de_passe="x")


@pytest.mark.asyncio
async def test_connexion_refusee(session_test: AsyncSession) -> None:
    service = ServiceUtilisateur(session_test)
    await service.inscrire(nom_utilisateur="ana", email="ana@example.com", mot_de_passe="bonne")
    await creer_utilisateur(session_test, nom_utilisateur="inactif", actif=False)

    with pytest.raises(IdentifiantsInvalides):
        await service.connecter(nom_utilisateur="ana", mot_de_passe="mauvaise")
    with pytest.raises(IdentifiantsInvalides):
        await service.connecter(nom_utilisateur="inconnu", mot_de_passe="bonne")
    with pytest.raises(IdentifiantsInvalides):
        await service.connecter(nom_utilisateur="inactif", mot_de_passe="bonne")


@pytest.mark.asyncio
async def test_assurer_admin_est_idempotent(session_test: AsyncSession) -> None:
    service = ServiceUtilisateur(session_test)

    premier = await service.assurer_admin()
    second = await service.assurer_admin()

    assert premier.cree is True
    assert second.cree is False
    assert second.utilisateur.id == premier.utilisateur.id
    assert premier.utilisateur.role == RoleUtilisateur.ADMIN
    assert premier.utilisateur.nom_utilisateur == parametres_application.admin_nom_utilisateur
    assert (await session_test.execute(select(func.count(User.id)))).scalar_one() == 1
