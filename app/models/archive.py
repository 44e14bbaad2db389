"""Modèles des dossiers d'archives documentaires (sessions et étudiants)."""

from datetime import datetime

from sqlalchemy import DateTime, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class ArchiveFolder(Base):
    """Dossier racine d'une session de formation."""

    __tablename__ = "archive_folders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    session_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    folder_path: Mapped[str] = mapped_column(String(1024), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class StudentArchiveFolder(Base):
    """Sous-dossier d'un étudiant dans le dossier de sa session."""

    __tablename__ = "student_archive_folders"
    __table_args__ = (UniqueConstraint("session_id", "student_id", name="uq_student_archive"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    session_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    student_id: Mapped[str] = mapped_column(String(50), nullable=False)
    folder_path: Mapped[str] = mapped_column(String(1024), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
