from __future__ import annotations

import pytest
from httpx import AsyncClient

from tests._http_helpers import entetes_internes


@pytest.mark.asyncio
async def test_production_consomme_les_intrants_et_alimente_le_stock(client_api: AsyncClient) -> None:
    h = entetes_internes()

    r = await client_api.post("/api/intrants", headers=h, json={"nom": "ALFALFA", "quantite": 1000})
    assert r.status_code == 201, r.text
    r = await client_api.post("/api/intrants", headers=h, json={"nom": "MELAZA", "quantite": 50, "stock_minimum": 100})
    assert r.status_code == 201, r.text

    r = await client_api.get("/api/production/prochain-lot", headers=h)
    assert r.json() == {"numero_lot": "LOTE-00001"}

    r = await client_api.post(
        "/api/production",
        headers=h,
        json={
            "type_pellet": "Alfalfa",
            "quantite_totale": 900,
            "operateur": "Raúl",
            "consommations": [{"nom_intrant": "ALFALFA", "quantite": 950}, {"nom_intrant": "MELAZA", "quantite": 50}],
            "generations": [
                {"presentation": "Bolsa 25kg", "quantite": 400},
                {"presentation": "Big Bag", "quantite": 500},
            ],
        },
    )
    assert r.status_code == 201, r.text
    detail = r.json()
    assert detail["production"]["numero_lot"] == "LOTE-00001"
    assert detail["production"]["rendement"] == 0.9
    assert len(detail["consommations"]) == 2
    assert len(detail["generations"]) == 2

    r = await client_api.get("/api/stock", headers=h)
    assert {s["presentation"]: s["quantite"] for s in r.json()} == {"Bolsa 25kg": 400.0, "Big Bag": 500.0}

    r = await client_api.get("/api/stock/mouvements", headers=h, params={"presentation": "Big Bag"})
    assert [m["reference"] for m in r.json()["mouvements"]] == ["Production: LOTE-00001"]

    r = await client_api.get("/api/intrants/disponibles", headers=h)
    assert [(i["nom"], i["quantite"]) for i in r.json()] == [("ALFALFA", 50.0)]

    r = await client_api.get("/api/intrants/mouvements", headers=h, params={"type_mouvement": "PRODUCTION"})
    assert {m["reference"] for m in r.json()["mouvements"]} == {"Production LOTE-00001"}

    r = await client_api.get(f"/api/production/{detail['production']['id']}", headers=h)
    assert r.status_code == 200
    assert r.json()["production"]["operateur"] == "Raúl"

    r = await client_api.get("/api/production", headers=h)
    assert r.json()["pagination"]["total"] == 1

    r = await client_api.get("/api/production/prochain-lot", headers=h)
    assert r.json() == {"numero_lot": "LOTE-00002"}


@pytest.mark.asyncio
async def test_production_refusee_si_intrant_insuffisant(client_api: AsyncClient) -> None:
    h = entetes_internes()
    await client_api.post("/api/intrants", headers=h, json={"nom": "ALFALFA", "quantite": 100})

    r = await client_api.post(
        "/api/production",
        headers=h,
        json={
            "type_pellet": "Alfalfa",
            "quantite_totale": 200,
            "consommations": [{"nom_intrant": "ALFALFA", "quantite": 250}],
            "generations": [{"presentation": "Granel", "quantite": 200}],
        },
    )
    assert r.status_code == 400

    r = await client_api.get("/api/stock", headers=h)
    assert r.json() == []
    r = await client_api.get("/api/production", headers=h)
    assert r.json()["productions"] == []

    r = await client_api.post(
        "/api/production",
        headers=h,
        json={
            "type_pellet": "Alfalfa",
            "quantite_totale": 50,
            "numero_lot": "LOTE-00007",
            "generations": [{"presentation": "Granel", "quantite": 50}],
        },
    )
    assert r.status_code == 201
    r = await client_api.post(
        "/api/production",
        headers=h,
        json={
            "type_pellet": "Alfalfa",
            "quantite_totale": 50,
            "numero_lot": "LOTE-00007",
            "generations": [{"presentation": "Granel", "quantite": 50}],
        },
    )
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_sortie_manuelle_et_statistiques_stock(client_api: AsyncClient) -> None:
    h = entetes_internes()
    await client_api.post("/api/intrants", headers=h, json={"nom": "SAL", "quantite": 10})

    r = await client_api.post("/api/intrants/mouvements", headers=h, json={"nom_intrant": "SAL", "quantite": 4})
    assert r.status_code == 201, r.text
    assert r.json()["quantite"] == 6.0

    r = await client_api.post("/api/intrants/mouvements", headers=h, json={"nom_intrant": "SAL", "quantite": 7})
    assert r.status_code == 400
    r = await client_api.post("/api/intrants/mouvements", headers=h, json={"nom_intrant": "AZUFRE", "quantite": 1})
    assert r.status_code == 404

    r = await client_api.get("/api/intrants", headers=h, params={"limite": 500})
    assert r.status_code == 400

    await client_api.post("/api/stock", headers=h, json={"presentation": "Granel", "quantite": 300})
    r = await client_api.get("/api/stock/statistiques", headers=h, params={"presentation": "Granel", "jours": 7})
    assert r.status_code == 200
    stats = r.json()
    assert stats["entrees"]["total"] == 300.0
    assert stats["sorties"]["total"] == 0.0
    assert stats["stock_actuel"] == 300.0
    assert stats["tendance"] == "STABLE"


@pytest.mark.asyncio
async def test_rapports_de_maintenance(client_api: AsyncClient) -> None:
    h = entetes_internes()

    r = await client_api.get("/api/maintenance/ventes-doublons", headers=h)
    assert r.status_code == 200
    assert r.json() == {"groupes": [], "nombre_doublons": 0, "quantite_a_restituer": 0.0, "montant_a_annuler": 0.0}

    r = await client_api.get("/api/maintenance/production", headers=h)
    assert r.status_code == 200
    assert r.json()["nombre_problemes"] == 0
