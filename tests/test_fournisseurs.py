from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.domaine.enums.types import MethodePaiement, TypeLigneFacture
from pelletizadora.domaine.services.factures import LigneFactureSaisie, ServiceFactureFournisseur
from pelletizadora.domaine.services.fournisseurs import (
    DonneesInvalidesFournisseur,
    FournisseurDuplique,
    FournisseurNonSupprimable,
    ServiceFournisseur,
)


def _ligne_service(prix: float) -> LigneFactureSaisie:
    return LigneFactureSaisie(description="Flete", type_ligne=TypeLigneFacture.SERVICE, quantite=1, prix_unitaire=prix)


@pytest.mark.asyncio
async def test_creer_fournisseur_obligatoires(session_test: AsyncSession) -> None:
    service = ServiceFournisseur(session_test)

    with pytest.raises(DonneesInvalidesFournisseur):
        await service.creer(raison_sociale="  ", cuit="30-1")

    f = await service.creer(raison_sociale="Campo Verde SA", cuit="30-1", email="VENTAS@campo.com")
    assert f.email == "ventas@campo.com"

    with pytest.raises(FournisseurDuplique):
        await service.creer(raison_sociale="Autre", cuit="30-1")


@pytest.mark.asyncio
async def test_supprimer_fournisseur_avec_facture_refuse(session_test: AsyncSession) -> None:
    f = await ServiceFournisseur(session_test).creer(raison_sociale="Campo Verde SA", cuit="30-1")
    f_id = f.id
    await ServiceFactureFournisseur(session_test).creer(fournisseur_id=f_id, numero="A-1", lignes=[_ligne_service(100)])

    with pytest.raises(FournisseurNonSupprimable):
        await ServiceFournisseur(session_test).supprimer(f_id)


@pytest.mark.asyncio
async def test_recherche_par_contact(session_test: AsyncSession) -> None:
    service = ServiceFournisseur(session_test)
    await service.creer(raison_sociale="Campo Verde SA", cuit="30-1", contact="Marta")
    await service.creer(raison_sociale="Transportes Luna", cuit="30-2", contact="Pablo")

    page = await service.lister(recherche="marta")

    assert [f.raison_sociale for f in page.fournisseurs] == ["Campo Verde SA"]


@pytest.mark.asyncio
async def test_statistiques_soldes_par_fournisseur(session_test: AsyncSession) -> None:
    fournisseurs = ServiceFournisseur(session_test)
    factures = ServiceFactureFournisseur(session_test)

    a = await fournisseurs.creer(raison_sociale="Alfa", cuit="30-1")
    b = await fournisseurs.creer(raison_sociale="Beta", cuit="30-2")
    await fournisseurs.creer(raison_sociale="Gamma", cuit="30-3")

    f1 = await factures.creer(fournisseur_id=a.id, numero="1", lignes=[_ligne_service(1000)])
    await factures.creer(fournisseur_id=a.id, numero="2", lignes=[_ligne_service(100)])
    f3 = await factures.creer(fournisseur_id=b.id, numero="1", lignes=[_ligne_service(100)])

    await factures.enregistrer_paiement(facture_id=f1.id, montant=210, methode=MethodePaiement.VIREMENT)
    await factures.enregistrer_paiement(facture_id=f3.id, montant=121, methode=MethodePaiement.ESPECES)

    stats = await fournisseurs.statistiques()

    par_nom = {s.raison_sociale: s for s in stats.fournisseurs}
    assert stats.total_fournisseurs == 3
    assert par_nom["Alfa"].total_facture == 1331.0
    assert par_nom["Alfa"].total_paye == 210.0
    assert par_nom["Alfa"].solde == 1121.0
    assert par_nom["Alfa"].factures_partielles == 1
    assert par_nom["Alfa"].factures_en_attente == 1
    assert par_nom["Beta"].factures_payees == 1
    assert par_nom["Beta"].a_dette is False
    assert par_nom["Gamma"].nombre_factures == 0
    assert stats.fournisseurs_avec_dette == 1
    assert stats.solde_total == 1121.0
    assert stats.dette_moyenne == 1121.0
