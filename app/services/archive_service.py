"""Gestion des dossiers d'archives documentaires sur le disque.

Arborescence:
    UPLOADS_PATH/archive-documents/<Titre_Session>/session-metadata.json
    UPLOADS_PATH/archive-documents/<Titre_Session>/<Prenom_Nom_CIN>/metadata.json

Les noms de dossiers sont nettoyés (folder_sanitizer) et le chemin final est
toujours contrôlé comme étant sous la racine d'archives. Deux sessions (ou
deux étudiants d'une même session) ne partagent jamais un dossier: en cas de
collision le nom est suffixé par l'identifiant (Titre_sess-2, Titre_sess-2_2...).
"""

import json
import logging
import uuid
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from opentelemetry import trace
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.archive import ArchiveFolder, StudentArchiveFolder
from app.schemas.archive import (
    ArchiveFolderResponse,
    ArchiveStats,
    StudentFolderCreate,
    StudentFolderMoveResult,
)
from app.utils.dates import utc_now
from app.utils.folder_sanitizer import (
    MAX_FOLDER_NAME_LENGTH,
    is_valid_folder_name,
    sanitize_folder_name,
    sanitize_student_folder_name,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

ARCHIVE_DIRNAME = "archive-documents"
SESSION_METADATA_FILE = "session-metadata.json"
STUDENT_METADATA_FILE = "metadata.json"
WRITE_TEST_FILE = ".write_test"


def get_archive_root() -> Path:
    return Path(settings.UPLOADS_PATH) / ARCHIVE_DIRNAME


def _resolve_inside(parent: Path, name: str) -> Path:
    """
    Construit parent/name et vérifie que le résultat reste sous la racine d'archives.

    Raises:
        ValidationError: INVALID_FOLDER_NAME si le nom est refusé ou sort de la racine
    """
    if not is_valid_folder_name(name):
        raise ValidationError(error=f"Nom de dossier invalide: {name}", code="INVALID_FOLDER_NAME")

    root = get_archive_root().resolve()
    target = (parent / name).resolve()
    if not target.is_relative_to(root):
        logger.error(f"Chemin hors de la racine d'archives refusé: {target}")
        raise ValidationError(error=f"Nom de dossier invalide: {name}", code="INVALID_FOLDER_NAME")
    return target


def _with_suffix(folder_name: str, suffix: str) -> str:
    """Ajoute ``_suffix`` en tronquant le nom pour rester sous MAX_FOLDER_NAME_LENGTH."""
    suffix = sanitize_folder_name(suffix)
    base = folder_name[: MAX_FOLDER_NAME_LENGTH - len(suffix) - 1]
    return sanitize_folder_name(f"{base}_{suffix}")


def _candidate_names(folder_name: str, discriminator: str) -> Iterator[str]:
    # Nom, Nom_<id>, Nom_<id>_2, Nom_<id>_3...
    yield folder_name
    yield _with_suffix(folder_name, discriminator)
    index = 2
    while True:
        yield _with_suffix(folder_name, f"{discriminator}_{index}")
        index += 1


def _write_metadata(folder: Path, filename: str, metadata: dict[str, Any]) -> None:
    (folder / filename).write_text(
        json.dumps(metadata, indent=2, ensure_ascii=False), encoding="utf-8"
    )


async def _session_folder_for(db: AsyncSession, session_id: str) -> ArchiveFolder | None:
    result = await db.execute(select(ArchiveFolder).where(ArchiveFolder.session_id == session_id))
    return result.scalars().first()


async def _student_record(
    db: AsyncSession, session_id: str, student_id: str
) -> StudentArchiveFolder | None:
    result = await db.execute(
        select(StudentArchiveFolder).where(
            StudentArchiveFolder.session_id == session_id,
            StudentArchiveFolder.student_id == student_id,
        )
    )
    return result.scalars().first()


async def _path_taken(db: AsyncSession, folder_path: str) -> bool:
    existing = await db.scalar(
        select(ArchiveFolder.id).where(ArchiveFolder.folder_path == folder_path)
    )
    return existing is not None


async def _student_path_owner(db: AsyncSession, folder_path: str) -> str | None:
    """student_id déjà enregistré pour ce chemin, None si le chemin est libre."""
    return await db.scalar(
        select(StudentArchiveFolder.student_id).where(
            StudentArchiveFolder.folder_path == folder_path
        )
    )


def verify_archive_structure() -> bool:
    """
    Crée la racine d'archives si besoin et vérifie qu'elle est accessible en écriture.

    Raises:
        OSError: Racine impossible à créer ou en lecture seule
    """
    root = get_archive_root()
    root.mkdir(parents=True, exist_ok=True)

    test_file = root / WRITE_TEST_FILE
    test_file.write_text("test", encoding="utf-8")
    test_file.unlink()

    logger.info(f"Racine d'archives vérifiée: {root}")
    return True


async def create_session_folder(
    db: AsyncSession, session_id: str, title: str
) -> ArchiveFolderResponse:
    """
    Crée (ou retrouve) le dossier d'archive d'une session.

    Le nom est dérivé du titre; s'il est déjà enregistré pour une autre
    session, il est suffixé par l'identifiant de session. Les métadonnées
    ne sont écrites qu'une fois le chemin libre trouvé.
    """
    with tracer.start_as_current_span("create_session_folder") as span:
        span.set_attribute("archive.session_id", session_id)

        record = await _session_folder_for(db, session_id)
        if record is not None:
            folder = Path(record.folder_path)
            folder.mkdir(parents=True, exist_ok=True)
            return ArchiveFolderResponse(
                session_id=session_id, folder_name=folder.name, folder_path=record.folder_path
            )

        root = get_archive_root()
        root.mkdir(parents=True, exist_ok=True)

        for folder_name in _candidate_names(sanitize_folder_name(title), session_id):
            folder = _resolve_inside(root, folder_name)
            if not await _path_taken(db, str(folder)):
                break

        folder.mkdir(parents=True, exist_ok=True)
        _write_metadata(
            folder,
            SESSION_METADATA_FILE,
            {
                "session_id": session_id,
                "original_title": title,
                "sanitized_title": folder_name,
                "created_at": utc_now().isoformat(),
            },
        )

        db.add(ArchiveFolder(id=str(uuid.uuid4()), session_id=session_id, folder_path=str(folder)))
        await db.commit()

        logger.info(f"Dossier de session créé: {folder}")
        return ArchiveFolderResponse(
            session_id=session_id, folder_name=folder_name, folder_path=str(folder)
        )


async def create_student_folder(
    db: AsyncSession, session_id: str, student: StudentFolderCreate
) -> ArchiveFolderResponse:
    """
    Crée le sous-dossier d'un étudiant dans le dossier de sa session.

    Un homonyme déjà enregistré dans la session garde son dossier; le nouvel
    étudiant reçoit un nom suffixé par son student_id.

    Raises:
        NotFoundError: Aucun dossier d'archive enregistré pour la session
    """
    session_folder = await _session_folder_for(db, session_id)
    if session_folder is None:
        raise NotFoundError(error=f"Aucun dossier d'archive pour la session {session_id}")

    parent = Path(session_folder.folder_path)
    base_name = sanitize_student_folder_name(student.model_dump())
    for folder_name in _candidate_names(base_name, student.student_id):
        folder = _resolve_inside(parent, folder_name)
        owner = await _student_path_owner(db, str(folder))
        if owner is None or owner == student.student_id:
            break

    folder.mkdir(parents=True, exist_ok=True)
    _write_metadata(
        folder,
        STUDENT_METADATA_FILE,
        {
            "student_id": student.student_id,
            "prenom": student.prenom,
            "nom": student.nom,
            "cin": student.cin,
            "session_id": session_id,
            "created_at": utc_now().isoformat(),
        },
    )

    logger.info(f"Dossier étudiant créé: {folder}")
    return ArchiveFolderResponse(
        session_id=session_id,
        student_id=student.student_id,
        folder_name=folder_name,
        folder_path=str(folder),
    )


async def get_or_create_student_folder(
    db: AsyncSession, session_id: str, student: StudentFolderCreate
) -> ArchiveFolderResponse:
    """Réutilise le dossier enregistré s'il existe encore sur le disque, sinon le recrée."""
    record = await _student_record(db, session_id, student.student_id)

    if record is not None and Path(record.folder_path).is_dir():
        return ArchiveFolderResponse(
            session_id=session_id,
            student_id=student.student_id,
            folder_name=Path(record.folder_path).name,
            folder_path=record.folder_path,
        )

    created = await create_student_folder(db, session_id, student)

    if record is None:
        db.add(
            StudentArchiveFolder(
                id=str(uuid.uuid4()),
                session_id=session_id,
                student_id=student.student_id,
                folder_path=created.folder_path,
            )
        )
    else:
        record.folder_path = created.folder_path
    await db.commit()

    return created


async def move_student_folder(
    db: AsyncSession, from_session_id: str, student_id: str, to_session_id: str
) -> StudentFolderMoveResult:
    """
    Déplace le dossier d'un étudiant transféré vers une autre session.

    Sans dossier enregistré (ou dossier absent du disque) rien n'est déplacé.

    Raises:
        NotFoundError: La session cible n'a pas de dossier d'archive
        ConflictError: L'étudiant a déjà un dossier dans la session cible,
            ou le dossier cible existe déjà
    """
    with tracer.start_as_current_span("move_student_folder") as span:
        span.set_attribute("archive.student_id", student_id)
        span.set_attribute("archive.to_session_id", to_session_id)

        record = await _student_record(db, from_session_id, student_id)
        if record is None:
            return StudentFolderMoveResult(moved=False, message="Aucun dossier à déplacer")

        old_folder = Path(record.folder_path)
        if not old_folder.is_dir():
            logger.warning(f"Dossier étudiant absent du disque: {old_folder}")
            return StudentFolderMoveResult(
                moved=False,
                message="Le dossier n'existe plus sur le disque",
                old_path=record.folder_path,
            )

        target_session = await _session_folder_for(db, to_session_id)
        if target_session is None:
            raise NotFoundError(error=f"Aucun dossier d'archive pour la session {to_session_id}")

        if await _student_record(db, to_session_id, student_id) is not None:
            raise ConflictError(
                error=(
                    f"L'étudiant {student_id} a déjà un dossier "
                    f"dans la session {to_session_id}"
                )
            )

        target_parent = Path(target_session.folder_path)
        target_parent.mkdir(parents=True, exist_ok=True)
        new_folder = _resolve_inside(target_parent, old_folder.name)
        if new_folder.exists() or await _student_path_owner(db, str(new_folder)) is not None:
            raise ConflictError(error=f"Le dossier cible existe déjà: {new_folder}")

        old_folder.rename(new_folder)
        record.folder_path = str(new_folder)
        record.session_id = to_session_id
        try:
            await db.commit()
        except Exception:
            await db.rollback()
            new_folder.rename(old_folder)
            raise

        files_count = sum(1 for _ in new_folder.iterdir())
        span.set_attribute("archive.files_count", files_count)
        logger.info(f"Dossier étudiant déplacé: {old_folder} -> {new_folder}")

        return StudentFolderMoveResult(
            moved=True,
            message="Dossier déplacé",
            old_path=str(old_folder),
            new_path=str(new_folder),
            files_count=files_count,
        )


async def get_archive_stats(db: AsyncSession) -> ArchiveStats:
    total_sessions = await db.scalar(select(func.count()).select_from(ArchiveFolder))
    total_students = await db.scalar(select(func.count()).select_from(StudentArchiveFolder))
    return ArchiveStats(total_sessions=total_sessions or 0, total_students=total_students or 0)
