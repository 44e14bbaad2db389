"""Endpoints des dossiers d'archives documentaires."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.security import require_permission
from app.schemas.archive import (
    ArchiveFolderResponse,
    ArchiveStats,
    SessionFolderCreate,
    StudentFolderCreate,
    StudentFolderMove,
    StudentFolderMoveResult,
)
from app.schemas.responses import SuccessResponse, build_responses
from app.services import archive_service

router = APIRouter()


@router.get(
    "/stats",
    response_model=SuccessResponse[ArchiveStats],
    summary="Nombre de dossiers de sessions et d'étudiants",
    dependencies=[Depends(require_permission("formation.sessions_formation.voir"))],
)
async def get_archive_stats(db: AsyncSession = Depends(get_session)):
    stats = await archive_service.get_archive_stats(db)
    return SuccessResponse(data=stats)


@router.post(
    "/sessions",
    response_model=SuccessResponse[ArchiveFolderResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Créer le dossier d'archive d'une session",
    dependencies=[Depends(require_permission("formation.sessions_formation.modifier"))],
)
async def create_session_folder(
    payload: SessionFolderCreate,
    db: AsyncSession = Depends(get_session),
):
    folder = await archive_service.create_session_folder(db, payload.session_id, payload.title)
    return SuccessResponse(data=folder)


@router.post(
    "/sessions/{session_id}/students",
    response_model=SuccessResponse[ArchiveFolderResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Créer (ou retrouver) le dossier d'archive d'un étudiant",
    dependencies=[Depends(require_permission("formation.sessions_formation.ajouter_etudiant"))],
    responses=build_responses(404),
)
async def create_student_folder(
    session_id: str,
    payload: StudentFolderCreate,
    db: AsyncSession = Depends(get_session),
):
    folder = await archive_service.get_or_create_student_folder(db, session_id, payload)
    return SuccessResponse(data=folder)


@router.post(
    "/students/{student_id}/move",
    response_model=SuccessResponse[StudentFolderMoveResult],
    summary="Déplacer le dossier d'un étudiant vers une autre session",
    dependencies=[Depends(require_permission("formation.sessions_formation.modifier_etudiant"))],
    responses=build_responses(404, 409),
)
async def move_student_folder(
    student_id: str,
    payload: StudentFolderMove,
    db: AsyncSession = Depends(get_session),
):
    result = await archive_service.move_student_folder(
        db, payload.from_session_id, student_id, payload.to_session_id
    )
    return SuccessResponse(data=result, message=result.message)
