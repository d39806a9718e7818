from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from tests._http_helpers import entetes_internes


async def _preparer(client_api: AsyncClient, *, stock: float = 100) -> str:
    h = entetes_internes()
    r = await client_api.post(
        "/api/clients",
        headers=h,
        json={"nom": "Juan", "entreprise": "Tambo Sur", "cuit": "20-1", "contact": "Juan"},
    )
    assert r.status_code == 201, r.text
    client_id = r.json()["id"]

    r = await client_api.post("/api/stock", headers=h, json={"presentation": "Big Bag", "quantite": stock})
    assert r.status_code == 201, r.text
    return client_id


@pytest.mark.asyncio
async def test_vente_paiements_et_credit(client_api: AsyncClient) -> None:
    h = entetes_internes()
    client_id = await _preparer(client_api)

    r = await client_api.post(
        "/api/ventes",
        headers=h,
        json={"client_id": client_id, "presentation": "Big Bag", "quantite": 10, "prix_unitaire": 100},
    )
    assert r.status_code == 201, r.text
    vente = r.json()
    assert vente["montant_total"] == 1000.0
    assert vente["statut"] == "EN_ATTENTE"

    r = await client_api.get("/api/stock", headers=h)
    assert [(s["presentation"], s["quantite"]) for s in r.json()] == [("Big Bag", 90.0)]

    r = await client_api.post(
        "/api/paiements", headers=h, json={"vente_id": vente["id"], "montant": 400, "methode": "ESPECES"}
    )
    assert r.status_code == 201, r.text
    assert r.json()["statut_vente"] == "PARTIEL"

    r = await client_api.post(
        "/api/paiements", headers=h, json={"vente_id": vente["id"], "montant": 700, "methode": "VIREMENT"}
    )
    assert r.status_code == 201, r.text
    assert r.json()["excedent"] == 100.0
    assert r.json()["solde_credit_client"] == 100.0
    assert r.json()["statut_vente"] == "PAYE"

    r = await client_api.post(
        "/api/paiements", headers=h, json={"vente_id": vente["id"], "montant": 1, "methode": "ESPECES"}
    )
    assert r.status_code == 409

    r = await client_api.get("/api/paiements", headers=h, params={"vente_id": vente["id"]})
    assert r.status_code == 200
    assert r.json()["montant_paye"] == 1100.0
    assert r.json()["montant_restant"] == 0.0
    assert len(r.json()["paiements"]) == 2

    r = await client_api.get(f"/api/ventes/{vente['id']}", headers=h)
    assert r.json()["excedent"] == 100.0
    assert len(r.json()["paiements"]) == 2

    r = await client_api.delete(f"/api/ventes/{vente['id']}", headers=h)
    assert r.status_code == 409

    # Le crédit sert à régler une deuxième vente
    r = await client_api.post(
        "/api/ventes",
        headers=h,
        json={"client_id": client_id, "presentation": "Big Bag", "quantite": 1, "prix_unitaire": 80},
    )
    seconde = r.json()

    r = await client_api.post(
        f"/api/clients/{client_id}/appliquer-credit",
        headers=h,
        json={"vente_id": seconde["id"], "montant": 100},
    )
    assert r.status_code == 200, r.text
    assert r.json()["montant_impute"] == 80.0
    assert r.json()["solde_restant"] == 20.0
    assert r.json()["statut_vente"] == "PAYE"

    r = await client_api.get(f"/api/clients/{client_id}/solde-credit", headers=h)
    assert r.json()["solde_credit"] == 20.0

    r = await client_api.get(f"/api/clients/{client_id}/mouvements-credit", headers=h)
    assert sorted(m["type_mouvement"] for m in r.json()) == ["EXCEDENT", "IMPUTATION"]

    r = await client_api.post(
        f"/api/clients/{client_id}/appliquer-credit",
        headers=h,
        json={"vente_id": seconde["id"], "montant": 50},
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_vente_stock_insuffisant_et_annulation(client_api: AsyncClient) -> None:
    h = entetes_internes()
    client_id = await _preparer(client_api, stock=5)

    r = await client_api.post(
        "/api/ventes",
        headers=h,
        json={"client_id": client_id, "presentation": "Big Bag", "quantite": 6, "prix_unitaire": 10},
    )
    assert r.status_code == 400

    r = await client_api.post(
        "/api/ventes",
        headers=h,
        json={"client_id": client_id, "presentation": "Big Bag", "quantite": 5, "prix_unitaire": 10},
    )
    assert r.status_code == 201
    vente_id = r.json()["id"]

    r = await client_api.delete(f"/api/ventes/{vente_id}", headers=h)
    assert r.status_code == 204

    r = await client_api.get("/api/stock", headers=h)
    assert r.json()[0]["quantite"] == 5.0

    r = await client_api.get(f"/api/ventes/{vente_id}", headers=h)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_paiement_par_cheque(client_api: AsyncClient) -> None:
    h = entetes_internes()
    client_id = await _preparer(client_api)
    r = await client_api.post(
        "/api/ventes",
        headers=h,
        json={"client_id": client_id, "presentation": "Big Bag", "quantite": 2, "prix_unitaire": 250},
    )
    vente_id = r.json()["id"]
    echeance = (datetime.now(timezone.utc) + timedelta(days=20)).isoformat()

    r = await client_api.post(
        "/api/paiements",
        headers=h,
        json={
            "vente_id": vente_id,
            "montant": 500,
            "methode": "CHEQUE",
            "cheque": {"numero": "7788", "emis_par": "Banco Galicia", "date_echeance": echeance},
        },
    )
    assert r.status_code == 201, r.text
    cheque_id = r.json()["cheque_id"]

    r = await client_api.get(f"/api/cheques/{cheque_id}", headers=h)
    assert r.status_code == 200
    assert r.json()["statut"] == "EN_ATTENTE"
    assert r.json()["montant"] == 500.0
    assert r.json()["recu_de"] == "Juan"
    assert r.json()["client_id"] == client_id


@pytest.mark.asyncio
async def test_statistiques_et_liste_des_ventes(client_api: AsyncClient) -> None:
    h = entetes_internes()
    client_id = await _preparer(client_api)
    for quantite in (1, 3):
        r = await client_api.post(
            "/api/ventes",
            headers=h,
            json={"client_id": client_id, "presentation": "Big Bag", "quantite": quantite, "prix_unitaire": 100},
        )
        assert r.status_code == 201

    r = await client_api.get("/api/ventes", headers=h, params={"statut": "EN_ATTENTE"})
    assert r.status_code == 200
    assert r.json()["pagination"]["total"] == 2
    assert {v["montant_restant"] for v in r.json()["ventes"]} == {100.0, 300.0}

    r = await client_api.get("/api/ventes/statistiques", headers=h)
    assert r.status_code == 200
    assert r.json()["total_ventes"] == 2
    assert r.json()["montant_total"] == 400.0
    assert r.json()["montant_en_attente"] == 400.0
    assert r.json()["meilleurs_clients"][0]["nombre_ventes"] == 2
