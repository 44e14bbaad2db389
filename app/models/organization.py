"""Modèles Segment et City (référentiel géographique et commercial)."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class Segment(Base):
    """Segment commercial (ligne de produit / unité de vente)."""

    __tablename__ = "segments"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False, comment="Nom du segment")
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class City(Base):
    """Ville rattachée à un segment."""

    __tablename__ = "cities"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False, comment="Nom de la ville")
    code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    segment_id: Mapped[str | None] = mapped_column(
        String(50),
        ForeignKey("segments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
