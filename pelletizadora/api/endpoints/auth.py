from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.api.dependances import fournir_session
from pelletizadora.api.dependances_auth import fournir_utilisateur_courant
from pelletizadora.api.schemas.auth import (
    ReponseCreationAdmin,
    ReponseLogin,
    RequeteInscription,
    RequeteLogin,
    UserLecture,
)
from pelletizadora.domaine.modeles.auth import User
from pelletizadora.domaine.services.utilisateurs import (
    IdentifiantsInvalides,
    ServiceUtilisateur,
    UtilisateurDuplique,
)


routeur_auth = APIRouter(prefix="/auth", tags=["auth"])


@routeur_auth.get("/me", response_model=UserLecture)
async def me(user: User = Depends(fournir_utilisateur_courant)) -> UserLecture:
    """Utilisateur courant, sans le hash."""

    return UserLecture.model_validate(user)


@routeur_auth.post("/login", response_model=ReponseLogin)
async def login(requete: RequeteLogin, session: AsyncSession = Depends(fournir_session)) -> ReponseLogin:
    service = ServiceUtilisateur(session)

    try:
        connexion = await service.connecter(
            nom_utilisateur=requete.nom_utilisateur,
            mot_de_passe=requete.mot_de_passe,
        )
    except IdentifiantsInvalides as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e)) from e

    return ReponseLogin(
        token_acces=connexion.token_acces,
        utilisateur=UserLecture.model_validate(connexion.utilisateur),
    )


@routeur_auth.post("/inscription", response_model=UserLecture, status_code=status.HTTP_201_CREATED)
async def inscription(
    requete: RequeteInscription,
    session: AsyncSession = Depends(fournir_session),
) -> UserLecture:
    service = ServiceUtilisateur(session)

    try:
        user = await service.inscrire(
            nom_utilisateur=requete.nom_utilisateur,
            email=str(requete.email),
            mot_de_passe=requete.mot_de_passe,
        )
    except UtilisateurDuplique as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    return UserLecture.model_validate(user)


@routeur_auth.post("/creer-admin", response_model=ReponseCreationAdmin)
async def creer_admin(session: AsyncSession = Depends(fournir_session)) -> ReponseCreationAdmin:
    """Crée l’administrateur configuré au premier appel, ne fait rien ensuite."""

    resultat = await ServiceUtilisateur(session).assurer_admin()
    return ReponseCreationAdmin(cree=resultat.cree, utilisateur=UserLecture.model_validate(resultat.utilisateur))
