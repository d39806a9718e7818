from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.core.transactions import ouvrir_transaction
from pelletizadora.domaine.enums.types import StatutReglement
from pelletizadora.domaine.modeles.factures import FactureFournisseur, PaiementFacture
from pelletizadora.domaine.modeles.tiers import Fournisseur
from pelletizadora.domaine.services.calculs import Pagination, arrondir_2, paginer


logger = logging.getLogger(__name__)


class ErreurFournisseur(Exception):
    """Erreur générique fournisseur."""


class DonneesInvalidesFournisseur(ErreurFournisseur):
    pass


class FournisseurIntrouvable(ErreurFournisseur):
    pass


class FournisseurDuplique(ErreurFournisseur):
    """CUIT déjà utilisé."""


class FournisseurNonSupprimable(ErreurFournisseur):
    """Le fournisseur a des factures."""


CHAMPS_MODIFIABLES = ("raison_sociale", "contact", "cuit", "email", "adresse", "telephone")


@dataclass(frozen=True)
class PageFournisseurs:
    fournisseurs: list[Fournisseur]
    pagination: Pagination


@dataclass(frozen=True)
class SoldeFournisseur:
    fournisseur_id: UUID
    raison_sociale: str
    cuit: str
    total_facture: float
    total_paye: float
    solde: float
    nombre_factures: int
    factures_en_attente: int
    factures_partielles: int
    factures_payees: int
    a_dette: bool


@dataclass(frozen=True)
class StatistiquesFournisseurs:
    total_fournisseurs: int
    fournisseurs_avec_dette: int
    total_facture: float
    total_paye: float
    solde_total: float
    dette_moyenne: float
    fournisseurs: list[SoldeFournisseur]


class ServiceFournisseur:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def creer(
        self,
        *,
        raison_sociale: str,
        cuit: str,
        contact: str | None = None,
        email: str | None = None,
        adresse: str | None = None,
        telephone: str | None = None,
    ) -> Fournisseur:
        raison_sociale = (raison_sociale or "").strip()
        cuit = (cuit or "").strip()
        if not raison_sociale or not cuit:
            raise DonneesInvalidesFournisseur("La raison sociale et le CUIT sont obligatoires.")

        async with ouvrir_transaction(self._session):
            await self._verifier_cuit_libre(cuit)

            fournisseur = Fournisseur(
                raison_sociale=raison_sociale,
                cuit=cuit,
                contact=contact,
                email=email.strip().lower() if email else None,
                adresse=adresse,
                telephone=telephone,
            )
            self._session.add(fournisseur)
            await self._session.flush()

        logger.info("fournisseur_cree fournisseur_id=%s cuit=%s", fournisseur.id, cuit)
        return fournisseur

    async def lister(self, *, recherche: str | None = None, page: int = 1, limite: int = 50) -> PageFournisseurs:
        filtres = []
        if recherche:
            motif = f"%{recherche.strip()}%"
            filtres.append(
                or_(
                    Fournisseur.raison_sociale.ilike(motif),
                    Fournisseur.cuit.ilike(motif),
                    Fournisseur.contact.ilike(motif),
                )
            )

        total = (await self._session.execute(select(func.count(Fournisseur.id)).where(*filtres))).scalar_one()
        pagination = paginer(page=page, limite=limite, total=int(total))

        res = await self._session.execute(
            select(Fournisseur)
            .where(*filtres)
            .order_by(Fournisseur.raison_sociale.asc())
            .offset(pagination.decalage)
            .limit(limite)
        )
        return PageFournisseurs(fournisseurs=list(res.scalars().all()), pagination=pagination)

    async def obtenir(self, fournisseur_id: UUID) -> Fournisseur:
        fournisseur = await self._session.get(Fournisseur, fournisseur_id)
        if fournisseur is None:
            raise FournisseurIntrouvable("Fournisseur introuvable.")
        return fournisseur

    async def modifier(self, fournisseur_id: UUID, **champs: str | None) -> Fournisseur:
        inconnus = set(champs) - set(CHAMPS_MODIFIABLES)
        if inconnus:
            raise DonneesInvalidesFournisseur(f"Champs non modifiables : {', '.join(sorted(inconnus))}.")

        valeurs = {k: (v.strip() if isinstance(v, str) else v) for k, v in champs.items() if v is not None}
        for c in ("raison_sociale", "cuit"):
            if c in valeurs and not valeurs[c]:
                raise DonneesInvalidesFournisseur(f"Le champ {c} ne peut pas être vide.")

        async with ouvrir_transaction(self._session):
            fournisseur = await self.obtenir(fournisseur_id)
            if "cuit" in valeurs and valeurs["cuit"] != fournisseur.cuit:
                await self._verifier_cuit_libre(valeurs["cuit"], sauf_id=fournisseur.id)

            for champ, valeur in valeurs.items():
                setattr(fournisseur, champ, valeur)
            await self._session.flush()

        return fournisseur

    async def supprimer(self, fournisseur_id: UUID) -> None:
        async with ouvrir_transaction(self._session):
            fournisseur = await self.obtenir(fournisseur_id)

            nb = (
                await self._session.execute(
                    select(func.count(FactureFournisseur.id)).where(FactureFournisseur.fournisseur_id == fournisseur.id)
                )
            ).scalar_one()
            if nb:
                raise FournisseurNonSupprimable(f"Le fournisseur a {nb} facture(s) : suppression impossible.")

            await self._session.delete(fournisseur)

        logger.info("fournisseur_supprime fournisseur_id=%s", fournisseur_id)

    async def statistiques(self) -> StatistiquesFournisseurs:
        """Soldes par fournisseur : facturé vs payé, nombre de factures par statut."""

        paye_par_facture = (
            select(
                PaiementFacture.facture_id.label("facture_id"),
                func.sum(PaiementFacture.montant).label("paye"),
            )
            .group_by(PaiementFacture.facture_id)
            .subquery()
        )

        res = await self._session.execute(
            select(
                Fournisseur.id,
                Fournisseur.raison_sociale,
                Fournisseur.cuit,
                FactureFournisseur.total,
                FactureFournisseur.statut,
                paye_par_facture.c.paye,
            )
            .select_from(Fournisseur)
            .join(FactureFournisseur, FactureFournisseur.fournisseur_id == Fournisseur.id, isouter=True)
            .join(paye_par_facture, paye_par_facture.c.facture_id == FactureFournisseur.id, isouter=True)
            .order_by(Fournisseur.raison_sociale.asc())
        )

        agregats: dict[UUID, dict] = {}
        for fid, raison_sociale, cuit, total, statut, paye in res.all():
            a = agregats.setdefault(
                fid,
                {
                    "raison_sociale": str(raison_sociale),
                    "cuit": str(cuit),
                    "total_facture": 0.0,
                    "total_paye": 0.0,
                    "statuts": {s: 0 for s in StatutReglement},
                    "nombre_factures": 0,
                },
            )
            if total is None:
                # fournisseur sans facture (jointure externe)
                continue
            a["total_facture"] += float(total)
            a["total_paye"] += float(paye or 0.0)
            a["statuts"][statut] += 1
            a["nombre_factures"] += 1

        soldes: list[SoldeFournisseur] = []
        for fid, a in agregats.items():
            solde = arrondir_2(a["total_facture"] - a["total_paye"])
            soldes.append(
                SoldeFournisseur(
                    fournisseur_id=fid,
                    raison_sociale=a["raison_sociale"],
                    cuit=a["cuit"],
                    total_facture=arrondir_2(a["total_facture"]),
                    total_paye=arrondir_2(a["total_paye"]),
                    solde=solde,
                    nombre_factures=a["nombre_factures"],
                    factures_en_attente=a["statuts"][StatutReglement.EN_ATTENTE],
                    factures_partielles=a["statuts"][StatutReglement.PARTIEL],
                    factures_payees=a["statuts"][StatutReglement.PAYE],
                    a_dette=solde > 0,
                )
            )

        avec_dette = [s for s in soldes if s.a_dette]
        solde_total = arrondir_2(sum(s.solde for s in soldes))
        return StatistiquesFournisseurs(
            total_fournisseurs=len(soldes),
            fournisseurs_avec_dette=len(avec_dette),
            total_facture=arrondir_2(sum(s.total_facture for s in soldes)),
            total_paye=arrondir_2(sum(s.total_paye for s in soldes)),
            solde_total=solde_total,
            dette_moyenne=arrondir_2(sum(s.solde for s in avec_dette) / len(avec_dette)) if avec_dette else 0.0,
            fournisseurs=soldes,
        )

    async def _verifier_cuit_libre(self, cuit: str, *, sauf_id: UUID | None = None) -> None:
        stmt = select(Fournisseur.id).where(Fournisseur.cuit == cuit)
        if sauf_id is not None:
            stmt = stmt.where(Fournisseur.id != sauf_id)
        if (await self._session.execute(stmt)).first() is not None:
            raise FournisseurDuplique("Un fournisseur avec ce CUIT existe déjà.")
