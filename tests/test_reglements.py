from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.domaine.enums.types import (
    MethodePaiement,
    PresentationPellet,
    StatutCheque,
    StatutReglement,
    TypeMouvementCredit,
)
from pelletizadora.domaine.modeles.cheques import Cheque
from pelletizadora.domaine.modeles.tiers import Client
from pelletizadora.domaine.modeles.ventes import MouvementCredit, Vente
from pelletizadora.domaine.services.cheques import ChequeDuplique
from pelletizadora.domaine.services.clients import ServiceClient
from pelletizadora.domaine.services.reglements import (
    DonneesChequePaiement,
    DonneesInvalidesReglement,
    ServiceReglement,
    SoldeCreditInsuffisant,
    VenteAutreClient,
    VenteDejaPayee,
    VenteReglementIntrouvable,
)
from pelletizadora.domaine.services.stock import ServiceStockPellet
from pelletizadora.domaine.services.ventes import ServiceVente


async def _client(session: AsyncSession, cuit: str = "20-1") -> Client:
    return await ServiceClient(session).creer(nom=f"Client {cuit}", entreprise="Agro", cuit=cuit, contact="c")


async def _vente(session: AsyncSession, client_id, montant: float) -> Vente:
    await ServiceStockPellet(session).ajouter_manuel(presentation=PresentationPellet.GRANEL, quantite=1)
    return await ServiceVente(session).creer(
        client_id=client_id, presentation=PresentationPellet.GRANEL, quantite=1, prix_unitaire=montant
    )


async def _somme_credit(session: AsyncSession, client_id, type_mouvement: TypeMouvementCredit) -> float:
    res = await session.execute(
        select(func.coalesce(func.sum(MouvementCredit.montant), 0.0)).where(
            MouvementCredit.client_id == client_id, MouvementCredit.type_mouvement == type_mouvement
        )
    )
    return float(res.scalar_one())


@pytest.mark.asyncio
async def test_paiement_partiel_puis_total(session_test: AsyncSession) -> None:
    client = await _client(session_test)
    vente = await _vente(session_test, client.id, 1000)
    service = ServiceReglement(session_test)

    r1 = await service.enregistrer_paiement_vente(vente_id=vente.id, montant=400, methode=MethodePaiement.ESPECES)
    assert r1.statut_vente == StatutReglement.PARTIEL
    assert r1.excedent == 0.0

    r2 = await service.enregistrer_paiement_vente(vente_id=vente.id, montant=600, methode=MethodePaiement.VIREMENT)
    assert r2.statut_vente == StatutReglement.PAYE
    assert r2.solde_credit_client == 0.0

    with pytest.raises(VenteDejaPayee):
        await service.enregistrer_paiement_vente(vente_id=vente.id, montant=1, methode=MethodePaiement.ESPECES)


@pytest.mark.asyncio
async def test_excedent_credite_au_client(session_test: AsyncSession) -> None:
    client = await _client(session_test)
    client_id = client.id
    vente = await _vente(session_test, client_id, 1000)

    resultat = await ServiceReglement(session_test).enregistrer_paiement_vente(
        vente_id=vente.id, montant=1250, methode=MethodePaiement.VIREMENT
    )

    assert resultat.montant == 1250.0
    assert resultat.montant_impute == 1000.0
    assert resultat.excedent == 250.0
    assert resultat.solde_credit_client == 250.0
    assert resultat.statut_vente == StatutReglement.PAYE

    mouvements = await ServiceClient(session_test).mouvements_credit(client_id)
    assert [(m.type_mouvement, m.montant) for m in mouvements] == [(TypeMouvementCredit.EXCEDENT, 250.0)]
    assert mouvements[0].paiement_id == resultat.paiement_id

    situation = await ServiceReglement(session_test).lister_paiements_vente(vente.id)
    assert situation.montant_paye == 1250.0
    assert situation.excedent == 250.0
    assert situation.montant_restant == 0.0


@pytest.mark.asyncio
async def test_imputation_du_credit_sur_une_autre_vente(session_test: AsyncSession) -> None:
    client = await _client(session_test)
    client_id = client.id
    v1 = await _vente(session_test, client_id, 100)
    v2 = await _vente(session_test, client_id, 300)
    service = ServiceReglement(session_test)
    await service.enregistrer_paiement_vente(vente_id=v1.id, montant=500, methode=MethodePaiement.ESPECES)

    imputation = await service.appliquer_credit(client_id=client_id, vente_id=v2.id, montant=350)

    # Seul le restant dû (300) est consommé
    assert imputation.montant_impute == 300.0
    assert imputation.solde_restant == 100.0
    assert imputation.statut_vente == StatutReglement.PAYE

    client = await service.solde_credit(client_id)
    excedents = await _somme_credit(session_test, client_id, TypeMouvementCredit.EXCEDENT)
    imputations = await _somme_credit(session_test, client_id, TypeMouvementCredit.IMPUTATION)
    assert client.solde_credit == pytest.approx(excedents - imputations)

    paiements = (await service.lister_paiements_vente(v2.id)).paiements
    assert [(p.methode, p.reference) for p in paiements] == [(MethodePaiement.SOLDE_CREDIT, "Solde crédit")]


@pytest.mark.asyncio
async def test_paiement_methode_solde_credit(session_test: AsyncSession) -> None:
    client = await _client(session_test)
    client_id = client.id
    v1 = await _vente(session_test, client_id, 100)
    v2 = await _vente(session_test, client_id, 300)
    service = ServiceReglement(session_test)
    await service.enregistrer_paiement_vente(vente_id=v1.id, montant=200, methode=MethodePaiement.ESPECES)

    resultat = await service.enregistrer_paiement_vente(
        vente_id=v2.id, montant=100, methode=MethodePaiement.SOLDE_CREDIT
    )

    assert resultat.montant_impute == 100.0
    assert resultat.excedent == 0.0
    assert resultat.solde_credit_client == 0.0
    assert resultat.statut_vente == StatutReglement.PARTIEL


@pytest.mark.asyncio
async def test_credit_insuffisant_ou_autre_client(session_test: AsyncSession) -> None:
    a = await _client(session_test, "20-1")
    b = await _client(session_test, "20-2")
    a_id, b_id = a.id, b.id
    va = await _vente(session_test, a_id, 100)
    vb = await _vente(session_test, b_id, 100)
    va_id, vb_id = va.id, vb.id
    service = ServiceReglement(session_test)
    await service.enregistrer_paiement_vente(vente_id=va_id, montant=150, methode=MethodePaiement.ESPECES)

    with pytest.raises(SoldeCreditInsuffisant):
        await service.appliquer_credit(client_id=a_id, vente_id=va_id, montant=51)
    with pytest.raises(VenteAutreClient):
        await service.appliquer_credit(client_id=a_id, vente_id=vb_id, montant=10)
    with pytest.raises(VenteDejaPayee):
        await service.appliquer_credit(client_id=a_id, vente_id=va_id, montant=10)
    with pytest.raises(DonneesInvalidesReglement):
        await service.appliquer_credit(client_id=a_id, vente_id=va_id, montant=0)


@pytest.mark.asyncio
async def test_methode_autre_refusee_pour_une_vente(session_test: AsyncSession) -> None:
    client = await _client(session_test)
    vente = await _vente(session_test, client.id, 100)

    with pytest.raises(DonneesInvalidesReglement):
        await ServiceReglement(session_test).enregistrer_paiement_vente(
            vente_id=vente.id, montant=10, methode=MethodePaiement.AUTRE
        )
    with pytest.raises(VenteReglementIntrouvable):
        await ServiceReglement(session_test).lister_paiements_vente(client.id)


@pytest.mark.asyncio
async def test_paiement_par_cheque_cree_le_cheque(session_test: AsyncSession) -> None:
    client = await _client(session_test)
    client_id = client.id
    vente = await _vente(session_test, client_id, 1000)
    vente_id = vente.id
    echeance = datetime.now(timezone.utc) + timedelta(days=30)
    service = ServiceReglement(session_test)

    resultat = await service.enregistrer_paiement_vente(
        vente_id=vente_id,
        montant=1000,
        methode=MethodePaiement.CHEQUE,
        cheque=DonneesChequePaiement(numero="00012345", emis_par="Banco Nación", date_echeance=echeance),
    )

    cheque = await session_test.get(Cheque, resultat.cheque_id)
    assert cheque.statut == StatutCheque.EN_ATTENTE
    assert cheque.montant == 1000.0
    assert cheque.client_id == client_id
    assert cheque.recu_de == "Client 20-1"

    autre = await _vente(session_test, client_id, 10)
    with pytest.raises(ChequeDuplique):
        await service.enregistrer_paiement_vente(
            vente_id=autre.id,
            montant=10,
            methode=MethodePaiement.CHEQUE,
            cheque=DonneesChequePaiement(numero="00012345", emis_par="Banco", date_echeance=echeance),
        )
    assert (await service.lister_paiements_vente(vente_id)).montant_paye == 1000.0
