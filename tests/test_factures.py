from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pelletizadora.domaine.enums.types import MethodePaiement, StatutCheque, StatutReglement, TypeLigneFacture
from pelletizadora.domaine.modeles.cheques import Cheque
from pelletizadora.domaine.modeles.stock import MouvementIntrant, StockIntrant
from pelletizadora.domaine.modeles.tiers import Fournisseur
from pelletizadora.domaine.services.cheques import ServiceCheque
from pelletizadora.domaine.services.factures import (
    ChequeIndisponible,
    DonneesInvalidesFacture,
    FactureDupliquee,
    FactureNonSupprimable,
    LigneFactureSaisie,
    MontantSuperieurAuRestant,
    ServiceFactureFournisseur,
    entree_intrant_pour_ligne,
)
from pelletizadora.domaine.services.fournisseurs import ServiceFournisseur
from pelletizadora.domaine.services.intrants import ServiceIntrant


async def _fournisseur(session: AsyncSession) -> Fournisseur:
    return await ServiceFournisseur(session).creer(raison_sociale="Campo Verde SA", cuit="30-70000000-1")


def _rollos(quantite: float = 10, poids: float | None = 400) -> LigneFactureSaisie:
    return LigneFactureSaisie(
        description="Rollos de alfalfa",
        type_ligne=TypeLigneFacture.ROLLO_ALFALFA,
        quantite=quantite,
        prix_unitaire=50,
        poids_unitaire=poids,
    )


def test_entree_intrant_pour_ligne() -> None:
    assert entree_intrant_pour_ligne(_rollos(10, 400)).quantite == 4000
    assert entree_intrant_pour_ligne(_rollos(10, 400)).nom == "ROLLO ALFALFA"
    sans_poids = entree_intrant_pour_ligne(_rollos(3, None))
    assert (sans_poids.quantite, sans_poids.unite) == (3, "kg")

    additif = LigneFactureSaisie(description=" Melaza ", type_ligne=TypeLigneFacture.INTRANT, quantite=20, prix_unitaire=1)
    assert entree_intrant_pour_ligne(additif).nom == "Melaza"

    service = LigneFactureSaisie(description="Flete", type_ligne=TypeLigneFacture.SERVICE, quantite=1, prix_unitaire=1)
    assert entree_intrant_pour_ligne(service) is None


@pytest.mark.asyncio
async def test_creer_facture_totaux_et_entree_en_stock(session_test: AsyncSession) -> None:
    f = await _fournisseur(session_test)

    facture = await ServiceFactureFournisseur(session_test).creer(
        fournisseur_id=f.id,
        numero="0001-00000123",
        lignes=[
            _rollos(10, 400),
            LigneFactureSaisie(description="Flete", type_ligne=TypeLigneFacture.SERVICE, quantite=1, prix_unitaire=300),
        ],
    )

    assert facture.sous_total == 800.0
    assert facture.iva == 168.0
    assert facture.total == 968.0
    assert facture.statut == StatutReglement.EN_ATTENTE
    assert [l.position for l in facture.lignes] == [0, 1]

    intrant = (
        await session_test.execute(select(StockIntrant).where(StockIntrant.nom == "ROLLO ALFALFA"))
    ).scalar_one()
    assert intrant.quantite == 4000.0
    assert intrant.numero_facture == "0001-00000123"

    mouvement = (await session_test.execute(select(MouvementIntrant))).scalar_one()
    assert mouvement.facture_id == facture.id
    assert mouvement.reference == "Facture 0001-00000123"


@pytest.mark.asyncio
async def test_rollos_avec_et_sans_poids_restent_en_kg(session_test: AsyncSession) -> None:
    f = await _fournisseur(session_test)
    service = ServiceFactureFournisseur(session_test)

    await service.creer(fournisseur_id=f.id, numero="A-1", lignes=[_rollos(10, None)])
    await service.creer(fournisseur_id=f.id, numero="A-2", lignes=[_rollos(2, 400)])

    intrant = (
        await session_test.execute(select(StockIntrant).where(StockIntrant.nom == "ROLLO ALFALFA"))
    ).scalar_one()
    assert (intrant.quantite, intrant.unite) == (810.0, "kg")

    mouvements = (
        await session_test.execute(select(MouvementIntrant).order_by(MouvementIntrant.numero_facture))
    ).scalars().all()
    assert [(m.numero_facture, m.quantite, m.unite) for m in mouvements] == [("A-1", 10.0, "kg"), ("A-2", 800.0, "kg")]


@pytest.mark.asyncio
async def test_creer_facture_iva_explicite(session_test: AsyncSession) -> None:
    f = await _fournisseur(session_test)

    facture = await ServiceFactureFournisseur(session_test).creer(
        fournisseur_id=f.id, numero="X", lignes=[_rollos(1, None)], iva=5.5
    )

    assert facture.iva == 5.5
    assert facture.total == 55.5


@pytest.mark.asyncio
async def test_creer_facture_validations(session_test: AsyncSession) -> None:
    f = await _fournisseur(session_test)
    service = ServiceFactureFournisseur(session_test)

    with pytest.raises(DonneesInvalidesFacture):
        await service.creer(fournisseur_id=f.id, numero="X", lignes=[])
    with pytest.raises(DonneesInvalidesFacture):
        await service.creer(fournisseur_id=f.id, numero="  ", lignes=[_rollos()])
    with pytest.raises(DonneesInvalidesFacture):
        await service.creer(fournisseur_id=f.id, numero="X", lignes=[_rollos(0)])


@pytest.mark.asyncio
async def test_numero_unique_par_fournisseur(session_test: AsyncSession) -> None:
    f = await _fournisseur(session_test)
    autre = await ServiceFournisseur(session_test).creer(raison_sociale="Otro", cuit="30-2")
    f_id, autre_id = f.id, autre.id
    service = ServiceFactureFournisseur(session_test)

    await service.creer(fournisseur_id=f_id, numero="A-1", lignes=[_rollos()])
    await service.creer(fournisseur_id=autre_id, numero="A-1", lignes=[_rollos()])

    with pytest.raises(FactureDupliquee):
        await service.creer(fournisseur_id=f_id, numero="A-1", lignes=[_rollos()])


@pytest.mark.asyncio
async def test_paiements_partiels_puis_solde(session_test: AsyncSession) -> None:
    f = await _fournisseur(session_test)
    service = ServiceFactureFournisseur(session_test)
    facture = await service.creer(fournisseur_id=f.id, numero="A-1", lignes=[_rollos(2, None)])  # 121
    facture_id = facture.id

    await service.enregistrer_paiement(facture_id=facture_id, montant=21, methode=MethodePaiement.ESPECES)
    detail = await service.obtenir(facture_id)
    assert detail.facture.statut == StatutReglement.PARTIEL
    assert detail.montant_restant == 100.0

    with pytest.raises(MontantSuperieurAuRestant):
        await service.enregistrer_paiement(facture_id=facture_id, montant=100.01, methode=MethodePaiement.VIREMENT)

    await service.enregistrer_paiement(facture_id=facture_id, montant=100, methode=MethodePaiement.VIREMENT)
    situation = await service.lister_paiements(facture_id)
    assert situation.facture.statut == StatutReglement.PAYE
    assert situation.montant_paye == 121.0
    assert len(situation.paiements) == 2


@pytest.mark.asyncio
async def test_methode_solde_credit_refusee_pour_facture(session_test: AsyncSession) -> None:
    f = await _fournisseur(session_test)
    service = ServiceFactureFournisseur(session_test)
    facture = await service.creer(fournisseur_id=f.id, numero="A-1", lignes=[_rollos()])

    with pytest.raises(DonneesInvalidesFacture):
        await service.enregistrer_paiement(facture_id=facture.id, montant=10, methode=MethodePaiement.SOLDE_CREDIT)


@pytest.mark.asyncio
async def test_paiement_par_cheque_de_tiers_remis(session_test: AsyncSession) -> None:
    f = await _fournisseur(session_test)
    service = ServiceFactureFournisseur(session_test)
    facture = await service.creer(fournisseur_id=f.id, numero="A-1", lignes=[_rollos(2, None)])
    cheque = await ServiceCheque(session_test).creer(
        numero="CH-1",
        montant=121,
        date_echeance=datetime.now(timezone.utc) + timedelta(days=30),
        recu_de="Cliente",
        emis_par="Banco Nación",
    )
    facture_id, cheque_id = facture.id, cheque.id

    await service.enregistrer_paiement(
        facture_id=facture_id, montant=121, methode=MethodePaiement.CHEQUE, cheque_id=cheque_id
    )

    cheque = await session_test.get(Cheque, cheque_id)
    assert cheque.statut == StatutCheque.REMIS
    assert cheque.remis_a == "Campo Verde SA"
    assert cheque.remis_pour == "Facture A-1"
    assert cheque.facture_id == facture_id

    autre = await service.creer(fournisseur_id=f.id, numero="A-2", lignes=[_rollos(2, None)])
    with pytest.raises(ChequeIndisponible):
        await service.enregistrer_paiement(
            facture_id=autre.id, montant=10, methode=MethodePaiement.CHEQUE, cheque_id=cheque_id
        )


@pytest.mark.asyncio
async def test_suppression_avec_dependances_demande_confirmation(session_test: AsyncSession) -> None:
    f = await _fournisseur(session_test)
    service = ServiceFactureFournisseur(session_test)
    facture = await service.creer(fournisseur_id=f.id, numero="A-1", lignes=[_rollos(10, 400)])
    facture_id = facture.id
    await service.enregistrer_paiement(facture_id=facture_id, montant=50, methode=MethodePaiement.ESPECES)

    resultat = await service.supprimer(facture_id)
    assert resultat.supprimee is False
    assert resultat.dependances.nombre_paiements == 1
    assert resultat.dependances.nombre_mouvements_intrant == 1
    assert len(resultat.dependances.avertissements) == 2

    resultat = await service.supprimer(facture_id, forcer=True)
    assert resultat.supprimee is True

    restant = (await session_test.execute(select(StockIntrant).where(StockIntrant.nom == "ROLLO ALFALFA"))).scalar_one_or_none()
    assert restant is None
    assert (await session_test.execute(select(MouvementIntrant))).first() is None


@pytest.mark.asyncio
async def test_suppression_refusee_si_intrants_consommes(session_test: AsyncSession) -> None:
    f = await _fournisseur(session_test)
    service = ServiceFactureFournisseur(session_test)
    facture = await service.creer(fournisseur_id=f.id, numero="A-1", lignes=[_rollos(10, 400)])
    facture_id = facture.id

    await ServiceIntrant(session_test).enregistrer_sortie(nom="ROLLO ALFALFA", quantite=1000)

    dependances = await service.analyser_suppression(facture_id)
    assert dependances.critique
    assert dependances.intrants_consommes == ["ROLLO ALFALFA"]

    with pytest.raises(FactureNonSupprimable):
        await service.supprimer(facture_id, forcer=True)


@pytest.mark.asyncio
async def test_suppression_remet_le_cheque_en_portefeuille(session_test: AsyncSession) -> None:
    f = await _fournisseur(session_test)
    service = ServiceFactureFournisseur(session_test)
    ligne = LigneFactureSaisie(description="Flete", type_ligne=TypeLigneFacture.SERVICE, quantite=1, prix_unitaire=100)
    facture = await service.creer(fournisseur_id=f.id, numero="A-1", lignes=[ligne])
    cheque = await ServiceCheque(session_test).creer(
        numero="CH-9",
        montant=100,
        date_echeance=datetime.now(timezone.utc) + timedelta(days=10),
        recu_de="Cliente",
        emis_par="Banco",
    )
    facture_id, cheque_id = facture.id, cheque.id
    await service.enregistrer_paiement(
        facture_id=facture_id, montant=100, methode=MethodePaiement.CHEQUE, cheque_id=cheque_id
    )

    resultat = await service.supprimer(facture_id, forcer=True)
    assert resultat.supprimee

    cheque = await session_test.get(Cheque, cheque_id)
    await session_test.refresh(cheque)
    assert cheque.statut == StatutCheque.EN_ATTENTE
    assert cheque.facture_id is None
