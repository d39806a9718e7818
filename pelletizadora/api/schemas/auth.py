from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from pelletizadora.domaine.enums.types import RoleUtilisateur


class UserLecture(BaseModel):
    id: UUID
    nom_utilisateur: str
    email: str
    role: RoleUtilisateur
    actif: bool
    dernier_login_le: datetime | None = None

    class Config:
        from_attributes = True


class RequeteLogin(BaseModel):
    nom_utilisateur: str = Field(min_length=1)
    mot_de_passe: str = Field(min_length=1)


class ReponseLogin(BaseModel):
    token_acces: str
    type_token: str = "bearer"
    utilisateur: UserLecture


class RequeteInscription(BaseModel):
    nom_utilisateur: str = Field(min_length=3, max_length=80)
    email: EmailStr
    mot_de_passe: str = Field(min_length=6)


class ReponseCreationAdmin(BaseModel):
    cree: bool
    utilisateur: UserLecture
