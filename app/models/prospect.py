"""Modèles Prospect, historique d'appels et configuration téléphonique par pays.

Un prospect est unique par couple (phone_international, segment_id). Les
colonnes historique_rdv et historique_villes sont des listes séparées par
des virgules, alimentées à chaque réinjection.
"""

from datetime import datetime

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base

STATUT_NON_CONTACTE = "non contacté"
STATUT_CONTACTE_AVEC_RDV = "contacté avec rdv"

DECISION_LAISSER = "laisser"
DECISION_SUPPRIMER = "supprimer"
DECISION_A_REVOIR = "a_revoir_manuelle"


class Prospect(Base):
    __tablename__ = "prospects"
    __table_args__ = (
        UniqueConstraint("phone_international", "segment_id", name="uq_prospect_phone_segment"),
    )

    id: Mapped[str] = mapped_column(String(20), primary_key=True, comment="Identifiant 8 chiffres")

    # Téléphone
    phone_raw: Mapped[str] = mapped_column(String(50), nullable=False, comment="Saisie brute")
    phone_international: Mapped[str] = mapped_column(
        String(20), nullable=False, index=True, comment="Format +<indicatif><national>"
    )
    country_code: Mapped[str | None] = mapped_column(String(5), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    statut_validation_numero: Mapped[str] = mapped_column(
        String(20), nullable=False, default="valide"
    )

    # Identité
    nom: Mapped[str | None] = mapped_column(String(255), nullable=True)
    prenom: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cin: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Rattachement
    segment_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("segments.id"), nullable=False, index=True
    )
    ville_id: Mapped[str | None] = mapped_column(
        String(50), ForeignKey("cities.id"), nullable=True, index=True
    )
    assigned_to: Mapped[str | None] = mapped_column(
        String(50), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )

    # Suivi commercial
    statut_contact: Mapped[str] = mapped_column(
        String(50), nullable=False, default=STATUT_NON_CONTACTE, index=True
    )
    date_rdv: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rdv_centre_ville_id: Mapped[str | None] = mapped_column(
        String(50), ForeignKey("cities.id"), nullable=True
    )
    date_injection: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="Dernière (ré)injection"
    )
    decision_nettoyage: Mapped[str | None] = mapped_column(
        String(30), nullable=True, index=True, comment="laisser | supprimer | a_revoir_manuelle"
    )
    commentaire: Mapped[str | None] = mapped_column(Text, nullable=True)
    historique_rdv: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Anciens RDV 'dd/mm/YYYY HH:MM' séparés par des virgules"
    )
    historique_villes: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Anciennes villes séparées par des virgules"
    )

    created_by: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def to_dict(self) -> dict:
        return {column.name: getattr(self, column.name) for column in self.__table__.columns}


class ProspectCallHistory(Base):
    __tablename__ = "prospect_call_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    prospect_id: Mapped[str] = mapped_column(
        String(20), ForeignKey("prospects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    call_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    call_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    duration_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status_before: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status_after: Mapped[str | None] = mapped_column(String(50), nullable=True)
    commentaire: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class CountryPhoneConfig(Base):
    """Indicatif pays et longueur attendue du numéro national."""

    __tablename__ = "country_phone_config"

    country_code: Mapped[str] = mapped_column(String(5), primary_key=True)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    expected_national_length: Mapped[int] = mapped_column(Integer, nullable=False)
    region: Mapped[str | None] = mapped_column(String(50), nullable=True)
