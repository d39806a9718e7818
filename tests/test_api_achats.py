from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from tests._http_helpers import entetes_internes


async def _fournisseur(client_api: AsyncClient) -> str:
    r = await client_api.post(
        "/api/fournisseurs",
        headers=entetes_internes(),
        json={"raison_sociale": "Campo Verde SA", "cuit": "30-70000000-1"},
    )
    assert r.status_code == 201, r.text
    return r.json()["id"]


def _echeance(jours: int) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=jours)).isoformat()


@pytest.mark.asyncio
async def test_facture_rollos_paiement_par_cheque_et_suppression(client_api: AsyncClient) -> None:
    h = entetes_internes()
    fournisseur_id = await _fournisseur(client_api)

    r = await client_api.post(
        "/api/factures",
        headers=h,
        json={
            "fournisseur_id": fournisseur_id,
            "numero": "A-0001",
            "lignes": [
                {
                    "description": "Rollos de alfalfa",
                    "type_ligne": "ROLLO_ALFALFA",
                    "quantite": 10,
                    "prix_unitaire": 50,
                    "poids_unitaire": 400,
                },
                {"description": "Flete", "type_ligne": "SERVICE", "quantite": 1, "prix_unitaire": 300},
            ],
        },
    )
    assert r.status_code == 201, r.text
    facture = r.json()
    assert (facture["sous_total"], facture["iva"], facture["total"]) == (800.0, 168.0, 968.0)
    assert facture["statut"] == "EN_ATTENTE"
    assert len(facture["lignes"]) == 2

    r = await client_api.post(
        "/api/factures",
        headers=h,
        json={
            "fournisseur_id": fournisseur_id,
            "numero": "A-0001",
            "lignes": [{"description": "x", "quantite": 1, "prix_unitaire": 1}],
        },
    )
    assert r.status_code == 409

    r = await client_api.get("/api/intrants/rollos", headers=h)
    assert r.status_code == 200
    assert [(i["nom"], i["quantite"], i["unite"]) for i in r.json()["rollos"]] == [("ROLLO ALFALFA", 4000.0, "kg")]

    # Chèque de tiers en portefeuille, endossé au fournisseur
    r = await client_api.post(
        "/api/cheques",
        headers=h,
        json={
            "numero": "123456",
            "montant": 500,
            "date_echeance": _echeance(30),
            "recu_de": "Tambo Sur",
            "emis_par": "Banco Nación",
        },
    )
    assert r.status_code == 201, r.text
    cheque_id = r.json()["id"]

    r = await client_api.post(
        f"/api/factures/{facture['id']}/paiements",
        headers=h,
        json={"montant": 500, "methode": "CHEQUE", "cheque_id": cheque_id},
    )
    assert r.status_code == 201, r.text

    r = await client_api.get(f"/api/cheques/{cheque_id}", headers=h)
    assert r.json()["statut"] == "REMIS"
    assert r.json()["remis_a"] == "Campo Verde SA"

    r = await client_api.post(
        f"/api/factures/{facture['id']}/paiements",
        headers=h,
        json={"montant": 100, "methode": "CHEQUE", "cheque_id": cheque_id},
    )
    assert r.status_code == 409

    r = await client_api.post(
        f"/api/factures/{facture['id']}/paiements", headers=h, json={"montant": 1000, "methode": "ESPECES"}
    )
    assert r.status_code == 400

    r = await client_api.get(f"/api/factures/{facture['id']}/paiements", headers=h)
    assert r.json()["total_paye"] == 500.0
    assert r.json()["montant_restant"] == 468.0
    assert r.json()["statut"] == "PARTIEL"

    r = await client_api.get(f"/api/factures/{facture['id']}/dependances", headers=h)
    assert r.json()["nombre_paiements"] == 1
    assert r.json()["nombre_mouvements_intrant"] == 1
    assert r.json()["critique"] is False
    assert len(r.json()["avertissements"]) == 2

    r = await client_api.delete(f"/api/factures/{facture['id']}", headers=h)
    assert r.status_code == 200
    assert r.json()["supprimee"] is False

    r = await client_api.delete(f"/api/factures/{facture['id']}", headers=h, params={"forcer": "true"})
    assert r.status_code == 200, r.text
    assert r.json()["supprimee"] is True

    r = await client_api.get(f"/api/factures/{facture['id']}", headers=h)
    assert r.status_code == 404

    r = await client_api.get(f"/api/cheques/{cheque_id}", headers=h)
    assert r.json()["statut"] == "EN_ATTENTE"
    assert r.json()["remis_a"] is None

    r = await client_api.get("/api/intrants/rollos", headers=h)
    assert r.json()["rollos"] == []


@pytest.mark.asyncio
async def test_portefeuille_de_cheques(client_api: AsyncClient) -> None:
    h = entetes_internes()
    for numero, jours, montant in (("1", 3, 100), ("2", 40, 250), ("3", -2, 80)):
        r = await client_api.post(
            "/api/cheques",
            headers=h,
            json={
                "numero": numero,
                "montant": montant,
                "date_echeance": _echeance(jours),
                "recu_de": "Tambo Sur",
                "emis_par": "Banco",
            },
        )
        assert r.status_code == 201, r.text

    r = await client_api.post(
        "/api/cheques",
        headers=h,
        json={"numero": "1", "montant": 1, "date_echeance": _echeance(5), "recu_de": "x", "emis_par": "y"},
    )
    assert r.status_code == 409

    r = await client_api.get("/api/cheques", headers=h)
    assert r.status_code == 200
    corps = r.json()
    assert corps["pagination"]["total"] == 3
    assert corps["statistiques"]["EN_ATTENTE"] == {"nombre": 2, "montant_total": 350.0}
    assert corps["statistiques"]["ECHU"] == {"nombre": 1, "montant_total": 80.0}

    r = await client_api.get("/api/cheques/echeances", headers=h, params={"jours": 7})
    assert [c["numero"] for c in r.json()] == ["1"]
    assert r.json()[0]["jours_avant_echeance"] in (2, 3)

    cheque_id = next(c["id"] for c in corps["cheques"] if c["numero"] == "2")
    r = await client_api.put(f"/api/cheques/{cheque_id}/statut", headers=h, json={"statut": "ENCAISSE"})
    assert r.status_code == 200
    assert r.json()["statut"] == "ENCAISSE"

    r = await client_api.put(f"/api/cheques/{cheque_id}/statut", headers=h, json={"statut": "REMIS"})
    assert r.status_code == 409

    r = await client_api.delete(f"/api/cheques/{cheque_id}", headers=h)
    assert r.status_code == 409
