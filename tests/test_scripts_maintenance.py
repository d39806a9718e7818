from __future__ import annotations

import asyncio
import sys
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.domaine.enums.types import PresentationPellet, StatutCheque, TypeLigneFacture
from pelletizadora.domaine.modeles.auth import User
from pelletizadora.domaine.modeles.cheques import Cheque
from pelletizadora.domaine.modeles.factures import FactureFournisseur
from pelletizadora.domaine.modeles.tiers import Client
from pelletizadora.domaine.modeles.ventes import Vente
from pelletizadora.domaine.services.cheques import ServiceCheque
from pelletizadora.domaine.services.clients import ServiceClient
from pelletizadora.domaine.services.factures import LigneFactureSaisie, ServiceFactureFournisseur
from pelletizadora.domaine.services.fournisseurs import ServiceFournisseur
from pelletizadora.domaine.services.stock import ServiceStockPellet
from pelletizadora.domaine.services.ventes import ServiceVente
from scripts import corriger_production, corriger_tva_factures, marquer_cheques_echus, purger_donnees
from scripts import verifier_ventes_doublons
from scripts.initialiser_donnees import seed


async def _deux_ventes_identiques(session: AsyncSession) -> None:
    client = await ServiceClient(session).creer(nom="A", entreprise="A", cuit="20-1", contact="a")
    await ServiceStockPellet(session).ajouter_manuel(presentation=PresentationPellet.BOLSA_25KG, quantite=10)
    for _ in range(2):
        await ServiceVente(session).creer(
            client_id=client.id, presentation=PresentationPellet.BOLSA_25KG, quantite=2, prix_unitaire=9
        )


async def _nb(session: AsyncSession, modele) -> int:
    return int((await session.execute(select(func.count(modele.id)))).scalar_one())


@pytest.mark.asyncio
async def test_verifier_ventes_doublons_dry_run_puis_apply(session_test: AsyncSession, capsys) -> None:
    await _deux_ventes_identiques(session_test)

    assert await verifier_ventes_doublons._executer(session_test, appliquer=False, fenetre=None, ecart=None) == 0
    assert await _nb(session_test, Vente) == 2
    assert "Doublons: 1" in capsys.readouterr().out

    assert await verifier_ventes_doublons._executer(session_test, appliquer=True, fenetre=None, ecart=None) == 1
    assert await _nb(session_test, Vente) == 1

    assert await verifier_ventes_doublons._executer(session_test, appliquer=True, fenetre=None, ecart=None) == 0
    assert "Aucune vente en double." in capsys.readouterr().out


@pytest.mark.asyncio
async def test_corriger_tva_factures(session_test: AsyncSession) -> None:
    fournisseur = await ServiceFournisseur(session_test).creer(raison_sociale="F", cuit="30-1")
    facture = await ServiceFactureFournisseur(session_test).creer(
        fournisseur_id=fournisseur.id,
        numero="B-7",
        lignes=[LigneFactureSaisie(description="Flete", type_ligne=TypeLigneFacture.SERVICE, quantite=2, prix_unitaire=50)],
        iva=50,
    )
    facture_id = facture.id

    assert await corriger_tva_factures._executer(session_test, appliquer=False) == 0
    assert (await session_test.get(FactureFournisseur, facture_id)).total == 150.0

    assert await corriger_tva_factures._executer(session_test, appliquer=True) == 1
    facture = await session_test.get(FactureFournisseur, facture_id)
    assert (facture.iva, facture.total) == (21.0, 121.0)


@pytest.mark.asyncio
async def test_corriger_production_sans_probleme(session_test: AsyncSession) -> None:
    rapport = await corriger_production._executer(session_test, appliquer=True)

    assert rapport.nombre_problemes == 0


@pytest.mark.asyncio
async def test_marquer_cheques_echus(session_test: AsyncSession) -> None:
    maintenant = datetime.now(timezone.utc)
    cheque = await ServiceCheque(session_test).creer(
        numero="555",
        montant=100,
        date_echeance=maintenant + timedelta(days=1),
        recu_de="Tambo Sur",
        emis_par="Banco",
    )
    cheque_id = cheque.id
    plus_tard = maintenant + timedelta(days=2)

    assert await marquer_cheques_echus._executer(session_test, appliquer=False, maintenant=plus_tard) == 1
    assert (await session_test.get(Cheque, cheque_id)).statut == StatutCheque.EN_ATTENTE

    assert await marquer_cheques_echus._executer(session_test, appliquer=True, maintenant=plus_tard) == 1
    assert (await session_test.get(Cheque, cheque_id)).statut == StatutCheque.ECHU
    assert await marquer_cheques_echus._executer(session_test, appliquer=True, maintenant=plus_tard) == 0


@pytest.mark.asyncio
async def test_purger_donnees(session_test: AsyncSession) -> None:
    await _deux_ventes_identiques(session_test)

    comptes = await purger_donnees._executer(session_test, appliquer=False)
    assert comptes["vente"] == 2
    assert await _nb(session_test, Vente) == 2

    comptes = await purger_donnees._executer(session_test, appliquer=True)
    assert comptes["vente"] == 2
    assert await _nb(session_test, Vente) == 0
    assert await _nb(session_test, Client) == 0


def test_purger_donnees_exige_une_confirmation(monkeypatch) -> None:
    monkeypatch.setattr(sys, "argv", ["purger_donnees.py", "--apply"])

    assert asyncio.run(purger_donnees.main()) == 2


@pytest.mark.asyncio
async def test_initialiser_donnees_est_idempotent(session_test: AsyncSession) -> None:
    premier = await seed(session_test)
    second = await seed(session_test)

    assert premier == {"admin": 1, "stocks": 3, "clients": 3, "fournisseurs": 2}
    assert second == {"admin": 0, "stocks": 0, "clients": 0, "fournisseurs": 0}
    assert await _nb(session_test, User) == 1
    assert await _nb(session_test, Client) == 3
