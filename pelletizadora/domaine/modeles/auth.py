from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, Enum, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from pelletizadora.domaine.enums.types import RoleUtilisateur
from pelletizadora.domaine.modeles.base import ModeleHorodate


class User(ModeleHorodate):
    __tablename__ = "user"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    nom_utilisateur: Mapped[str] = mapped_column(String(80), nullable=False, unique=True, index=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)

    mot_de_passe_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[RoleUtilisateur] = mapped_column(
        Enum(RoleUtilisateur, name="role_utilisateur", native_enum=False, length=30),
        nullable=False,
        default=RoleUtilisateur.UTILISATEUR,
    )

    actif: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    dernier_login_le: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
