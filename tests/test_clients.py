from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.domaine.enums.types import PresentationPellet
from pelletizadora.domaine.modeles.tiers import Client
from pelletizadora.domaine.services.clients import (
    ClientDuplique,
    ClientIntrouvable,
    ClientNonSupprimable,
    DonneesInvalidesClient,
    ServiceClient,
)
from pelletizadora.domaine.services.stock import ServiceStockPellet
from pelletizadora.domaine.services.ventes import ServiceVente


async def _creer_client(service: ServiceClient, cuit: str = "20-11111111-1", **extra) -> Client:
    valeurs = {
        "nom": "Juan Pérez",
        "entreprise": "Agro Pérez",
        "cuit": cuit,
        "contact": "Juan",
    }
    valeurs.update(extra)
    return await service.creer(**valeurs)


@pytest.mark.asyncio
async def test_creer_client_normalise_et_solde_a_zero(session_test: AsyncSession) -> None:
    service = ServiceClient(session_test)

    client = await _creer_client(service, email="  Juan@Example.COM ", nom="  Juan Pérez ")

    assert client.nom == "Juan Pérez"
    assert client.email == "juan@example.com"
    assert client.solde_credit == 0.0


@pytest.mark.asyncio
async def test_creer_client_champs_obligatoires(session_test: AsyncSession) -> None:
    service = ServiceClient(session_test)

    with pytest.raises(DonneesInvalidesClient) as exc:
        await service.creer(nom="X", entreprise="", cuit="20-1", contact="   ")

    assert "entreprise" in str(exc.value)
    assert "contact" in str(exc.value)


@pytest.mark.asyncio
async def test_cuit_unique(session_test: AsyncSession) -> None:
    service = ServiceClient(session_test)
    await _creer_client(service)

    with pytest.raises(ClientDuplique):
        await _creer_client(service, nom="Autre")


@pytest.mark.asyncio
async def test_modifier_client_cuit_deja_pris(session_test: AsyncSession) -> None:
    service = ServiceClient(session_test)
    await _creer_client(service, cuit="20-1")
    b = await _creer_client(service, cuit="20-2")
    b_id = b.id

    with pytest.raises(ClientDuplique):
        await service.modifier(b_id, cuit="20-1")

    modifie = await service.modifier(b_id, telephone="351-555")
    assert modifie.telephone == "351-555"
    assert modifie.cuit == "20-2"


@pytest.mark.asyncio
async def test_modifier_client_champ_vide_refuse(session_test: AsyncSession) -> None:
    service = ServiceClient(session_test)
    client = await _creer_client(service)

    with pytest.raises(DonneesInvalidesClient):
        await service.modifier(client.id, nom="  ")


@pytest.mark.asyncio
async def test_lister_clients_recherche_et_pagination(session_test: AsyncSession) -> None:
    service = ServiceClient(session_test)
    await _creer_client(service, cuit="20-1", nom="Ana", entreprise="Forrajes Sur")
    await _creer_client(service, cuit="20-2", nom="Bruno", entreprise="Pellets Norte")
    await _creer_client(service, cuit="20-3", nom="Carla", entreprise="Forrajes Este")

    page = await service.lister(recherche="forrajes", page=1, limite=1)

    assert page.pagination.total == 2
    assert page.pagination.pages == 2
    assert [c.nom for c in page.clients] == ["Ana"]


@pytest.mark.asyncio
async def test_supprimer_client_avec_ventes_refuse(session_test: AsyncSession) -> None:
    service = ServiceClient(session_test)
    client = await _creer_client(service)
    client_id = client.id

    await ServiceStockPellet(session_test).ajouter_manuel(presentation=PresentationPellet.GRANEL, quantite=100)
    await ServiceVente(session_test).creer(
        client_id=client_id,
        presentation=PresentationPellet.GRANEL,
        quantite=10,
        prix_unitaire=5,
    )

    with pytest.raises(ClientNonSupprimable):
        await service.supprimer(client_id)


@pytest.mark.asyncio
async def test_supprimer_client_sans_vente(session_test: AsyncSession) -> None:
    service = ServiceClient(session_test)
    client = await _creer_client(service)
    client_id = client.id

    await service.supprimer(client_id)

    with pytest.raises(ClientIntrouvable):
        await service.obtenir(client_id)


@pytest.mark.asyncio
async def test_statistiques_clients(session_test: AsyncSession) -> None:
    service = ServiceClient(session_test)
    a = await _creer_client(service, cuit="20-1", nom="Ana", email="ana@example.com", telephone="1")
    b = await _creer_client(service, cuit="20-2", nom="Bruno")
    a_id, b_id = a.id, b.id

    await ServiceStockPellet(session_test).ajouter_manuel(presentation=PresentationPellet.BIG_BAG, quantite=50)
    ventes = ServiceVente(session_test)
    await ventes.creer(client_id=a_id, presentation=PresentationPellet.BIG_BAG, quantite=2, prix_unitaire=100)
    await ventes.creer(client_id=b_id, presentation=PresentationPellet.BIG_BAG, quantite=5, prix_unitaire=100)

    stats = await service.statistiques()

    assert stats.total_clients == 2
    assert stats.avec_email == 1
    assert stats.pourcentage_email == 50
    assert stats.recents_30_jours == 2
    assert [m.nom for m in stats.meilleurs_clients] == ["Bruno", "Ana"]
    assert stats.meilleurs_clients[0].montant_total == 500.0
