"""schema initial pelletizadora

Revision ID: 3a9f1c0d2b7e
Revises:
Create Date: 2026-10-18 09:12:44.318205

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3a9f1c0d2b7e'
down_revision = None
branch_labels = None
depends_on = None


def _horodatage() -> list[sa.Column]:
    return [
        sa.Column("cree_le", sa.DateTime(timezone=True), nullable=False),
        sa.Column("mis_a_jour_le", sa.DateTime(timezone=True), nullable=False),
    ]


def _id() -> sa.Column:
    return sa.Column("id", sa.Uuid(), primary_key=True, nullable=False)


def upgrade() -> None:
    op.create_table(
        "user",
        _id(),
        sa.Column("nom_utilisateur", sa.String(length=80), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("mot_de_passe_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=30), nullable=False),
        sa.Column("actif", sa.Boolean(), nullable=False),
        sa.Column("dernier_login_le", sa.DateTime(timezone=True), nullable=True),
        *_horodatage(),
    )
    op.create_index("ix_user_nom_utilisateur", "user", ["nom_utilisateur"], unique=True)
    op.create_index("ix_user_email", "user", ["email"], unique=True)

    op.create_table(
        "client",
        _id(),
        sa.Column("nom", sa.String(length=200), nullable=False),
        sa.Column("entreprise", sa.String(length=200), nullable=False),
        sa.Column("cuit", sa.String(length=20), nullable=False),
        sa.Column("contact", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("adresse", sa.String(length=300), nullable=True),
        sa.Column("telephone", sa.String(length=50), nullable=True),
        sa.Column("solde_credit", sa.Float(), nullable=False),
        *_horodatage(),
    )
    op.create_index("ix_client_nom", "client", ["nom"])
    op.create_index("ix_client_cuit", "client", ["cuit"], unique=True)

    op.create_table(
        "fournisseur",
        _id(),
        sa.Column("raison_sociale", sa.String(length=200), nullable=False),
        sa.Column("cuit", sa.String(length=20), nullable=False),
        sa.Column("contact", sa.String(length=200), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("adresse", sa.String(length=300), nullable=True),
        sa.Column("telephone", sa.String(length=50), nullable=True),
        *_horodatage(),
    )
    op.create_index("ix_fournisseur_raison_sociale", "fournisseur", ["raison_sociale"])
    op.create_index("ix_fournisseur_cuit", "fournisseur", ["cuit"], unique=True)

    op.create_table(
        "facture_fournisseur",
        _id(),
        sa.Column("fournisseur_id", sa.Uuid(), sa.ForeignKey("fournisseur.id"), nullable=False),
        sa.Column("numero", sa.String(length=60), nullable=False),
        sa.Column("date_facture", sa.DateTime(timezone=True), nullable=False),
        sa.Column("date_echeance", sa.DateTime(timezone=True), nullable=True),
        sa.Column("concept", sa.String(length=300), nullable=False),
        sa.Column("sous_total", sa.Float(), nullable=False),
        sa.Column("iva", sa.Float(), nullable=False),
        sa.Column("total", sa.Float(), nullable=False),
        sa.Column("statut", sa.String(length=30), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_horodatage(),
        sa.UniqueConstraint("fournisseur_id", "numero", name="uq_facture_fournisseur_fournisseur_id_numero"),
    )
    op.create_index("ix_facture_fournisseur_fournisseur_id", "facture_fournisseur", ["fournisseur_id"])
    op.create_index("ix_facture_fournisseur_statut", "facture_fournisseur", ["statut"])

    op.create_table(
        "ligne_facture_fournisseur",
        _id(),
        sa.Column(
            "facture_id",
            sa.Uuid(),
            sa.ForeignKey("facture_fournisseur.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=300), nullable=False),
        sa.Column("type_ligne", sa.String(length=30), nullable=False),
        sa.Column("quantite", sa.Float(), nullable=False),
        sa.Column("prix_unitaire", sa.Float(), nullable=False),
        sa.Column("total", sa.Float(), nullable=False),
        sa.Column("poids_unitaire", sa.Float(), nullable=True),
        *_horodatage(),
    )
    op.create_index("ix_ligne_facture_fournisseur_facture_id", "ligne_facture_fournisseur", ["facture_id"])

    op.create_table(
        "cheque",
        _id(),
        sa.Column("numero", sa.String(length=60), nullable=False),
        sa.Column("montant", sa.Float(), nullable=False),
        sa.Column("est_echeq", sa.Boolean(), nullable=False),
        sa.Column("date_reception", sa.DateTime(timezone=True), nullable=False),
        sa.Column("date_echeance", sa.DateTime(timezone=True), nullable=False),
        sa.Column("recu_de", sa.String(length=200), nullable=False),
        sa.Column("emis_par", sa.String(length=200), nullable=False),
        sa.Column("banque", sa.String(length=120), nullable=True),
        sa.Column("numero_compte", sa.String(length=60), nullable=True),
        sa.Column("statut", sa.String(length=30), nullable=False),
        sa.Column("client_id", sa.Uuid(), sa.ForeignKey("client.id"), nullable=True),
        sa.Column("remis_a", sa.String(length=200), nullable=True),
        sa.Column("date_remise", sa.DateTime(timezone=True), nullable=True),
        sa.Column("remis_pour", sa.String(length=200), nullable=True),
        sa.Column("facture_id", sa.Uuid(), sa.ForeignKey("facture_fournisseur.id"), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_horodatage(),
    )
    op.create_index("ix_cheque_numero", "cheque", ["numero"], unique=True)
    op.create_index("ix_cheque_client_id", "cheque", ["client_id"])
    op.create_index("ix_cheque_statut_date_echeance", "cheque", ["statut", "date_echeance"])

    op.create_table(
        "paiement_facture",
        _id(),
        sa.Column(
            "facture_id",
            sa.Uuid(),
            sa.ForeignKey("facture_fournisseur.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("montant", sa.Float(), nullable=False),
        sa.Column("methode", sa.String(length=30), nullable=False),
        sa.Column("date_paiement", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reference", sa.String(length=120), nullable=True),
        sa.Column("description", sa.String(length=300), nullable=True),
        sa.Column("cheque_id", sa.Uuid(), sa.ForeignKey("cheque.id"), nullable=True),
        *_horodatage(),
    )
    op.create_index("ix_paiement_facture_facture_id", "paiement_facture", ["facture_id"])

    op.create_table(
        "stock_pellet",
        _id(),
        sa.Column("presentation", sa.String(length=30), nullable=False, unique=True),
        sa.Column("quantite", sa.Float(), nullable=False),
        *_horodatage(),
    )

    op.create_table(
        "mouvement_stock_pellet",
        _id(),
        sa.Column("presentation", sa.String(length=30), nullable=False),
        sa.Column("type_mouvement", sa.String(length=30), nullable=False),
        sa.Column("quantite", sa.Float(), nullable=False),
        sa.Column("date_mouvement", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reference", sa.String(length=200), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_horodatage(),
    )
    op.create_index(
        "ix_mouvement_stock_pellet_presentation_date",
        "mouvement_stock_pellet",
        ["presentation", "date_mouvement"],
    )

    op.create_table(
        "stock_intrant",
        _id(),
        sa.Column("nom", sa.String(length=200), nullable=False),
        sa.Column("quantite", sa.Float(), nullable=False),
        sa.Column("unite", sa.String(length=30), nullable=False),
        sa.Column("fournisseur_id", sa.Uuid(), sa.ForeignKey("fournisseur.id"), nullable=True),
        sa.Column("numero_facture", sa.String(length=60), nullable=True),
        sa.Column("stock_minimum", sa.Float(), nullable=False),
        *_horodatage(),
    )
    op.create_index("ix_stock_intrant_nom", "stock_intrant", ["nom"], unique=True)

    op.create_table(
        "mouvement_intrant",
        _id(),
        sa.Column("nom_intrant", sa.String(length=200), nullable=False),
        sa.Column("type_mouvement", sa.String(length=30), nullable=False),
        sa.Column("quantite", sa.Float(), nullable=False),
        sa.Column("unite", sa.String(length=30), nullable=False),
        sa.Column("date_mouvement", sa.DateTime(timezone=True), nullable=False),
        sa.Column("fournisseur_id", sa.Uuid(), sa.ForeignKey("fournisseur.id"), nullable=True),
        sa.Column("numero_facture", sa.String(length=60), nullable=True),
        sa.Column("facture_id", sa.Uuid(), sa.ForeignKey("facture_fournisseur.id"), nullable=True),
        sa.Column("reference", sa.String(length=200), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_horodatage(),
    )
    op.create_index("ix_mouvement_intrant_nom_intrant", "mouvement_intrant", ["nom_intrant"])
    op.create_index("ix_mouvement_intrant_numero_facture", "mouvement_intrant", ["numero_facture"])

    op.create_table(
        "production",
        _id(),
        sa.Column("date_production", sa.DateTime(timezone=True), nullable=False),
        sa.Column("numero_lot", sa.String(length=30), nullable=False),
        sa.Column("type_pellet", sa.String(length=120), nullable=False),
        sa.Column("quantite_totale", sa.Float(), nullable=False),
        sa.Column("rendement", sa.Float(), nullable=False),
        sa.Column("operateur", sa.String(length=120), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_horodatage(),
    )
    op.create_index("ix_production_numero_lot", "production", ["numero_lot"], unique=True)

    op.create_table(
        "consommation_intrant",
        _id(),
        sa.Column("production_id", sa.Uuid(), sa.ForeignKey("production.id"), nullable=False),
        sa.Column("nom_intrant", sa.String(length=200), nullable=False),
        sa.Column("quantite", sa.Float(), nullable=False),
        sa.Column("unite", sa.String(length=30), nullable=False),
        sa.Column("date_consommation", sa.DateTime(timezone=True), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_horodatage(),
    )
    op.create_index("ix_consommation_intrant_production_id", "consommation_intrant", ["production_id"])

    op.create_table(
        "generation_pellet",
        _id(),
        sa.Column("production_id", sa.Uuid(), sa.ForeignKey("production.id"), nullable=False),
        sa.Column("presentation", sa.String(length=30), nullable=False),
        sa.Column("quantite", sa.Float(), nullable=False),
        sa.Column("date_generation", sa.DateTime(timezone=True), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_horodatage(),
    )
    op.create_index("ix_generation_pellet_production_id", "generation_pellet", ["production_id"])

    op.create_table(
        "vente",
        _id(),
        sa.Column("client_id", sa.Uuid(), sa.ForeignKey("client.id"), nullable=False),
        sa.Column("date_vente", sa.DateTime(timezone=True), nullable=False),
        sa.Column("presentation", sa.String(length=30), nullable=False),
        sa.Column("quantite", sa.Float(), nullable=False),
        sa.Column("prix_unitaire", sa.Float(), nullable=False),
        sa.Column("montant_total", sa.Float(), nullable=False),
        sa.Column("lot", sa.String(length=30), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("statut", sa.String(length=30), nullable=False),
        *_horodatage(),
    )
    op.create_index("ix_vente_client_id", "vente", ["client_id"])
    op.create_index("ix_vente_statut", "vente", ["statut"])
    op.create_index("ix_vente_date_vente", "vente", ["date_vente"])

    op.create_table(
        "paiement_vente",
        _id(),
        sa.Column("vente_id", sa.Uuid(), sa.ForeignKey("vente.id"), nullable=False),
        sa.Column("montant", sa.Float(), nullable=False),
        sa.Column("date_paiement", sa.DateTime(timezone=True), nullable=False),
        sa.Column("methode", sa.String(length=30), nullable=False),
        sa.Column("reference", sa.String(length=120), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("cheque_id", sa.Uuid(), sa.ForeignKey("cheque.id"), nullable=True),
        *_horodatage(),
    )
    op.create_index("ix_paiement_vente_vente_id", "paiement_vente", ["vente_id"])

    op.create_table(
        "mouvement_credit",
        _id(),
        sa.Column("client_id", sa.Uuid(), sa.ForeignKey("client.id"), nullable=False),
        sa.Column("type_mouvement", sa.String(length=30), nullable=False),
        sa.Column("montant", sa.Float(), nullable=False),
        sa.Column("vente_id", sa.Uuid(), sa.ForeignKey("vente.id"), nullable=True),
        sa.Column("paiement_id", sa.Uuid(), sa.ForeignKey("paiement_vente.id"), nullable=True),
        sa.Column("description", sa.String(length=300), nullable=True),
        sa.Column("date_mouvement", sa.DateTime(timezone=True), nullable=False),
        *_horodatage(),
    )
    op.create_index("ix_mouvement_credit_client_id", "mouvement_credit", ["client_id"])


def downgrade() -> None:
    for table in (
        "mouvement_credit",
        "paiement_vente",
        "vente",
        "generation_pellet",
        "consommation_intrant",
        "production",
        "mouvement_intrant",
        "stock_intrant",
        "mouvement_stock_pellet",
        "stock_pellet",
        "paiement_facture",
        "cheque",
        "ligne_facture_fournisseur",
        "facture_fournisseur",
        "fournisseur",
        "client",
        "user",
    ):
        op.drop_table(table)
