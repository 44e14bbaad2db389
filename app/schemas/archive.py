"""Schémas des dossiers d'archives documentaires."""

from pydantic import BaseModel, Field

from app.schemas.utils import Title


class SessionFolderCreate(BaseModel):
    session_id: str = Field(..., max_length=50)
    title: Title = Field(..., examples=["Formation Secourisme - Mars 2026"])


class StudentFolderCreate(BaseModel):
    student_id: str = Field(..., max_length=50)
    prenom: str = Field(..., min_length=1, max_length=255)
    nom: str = Field(..., min_length=1, max_length=255)
    cin: str | None = Field(default=None, max_length=50)


class StudentFolderMove(BaseModel):
    from_session_id: str = Field(..., max_length=50)
    to_session_id: str = Field(..., max_length=50)


class ArchiveFolderResponse(BaseModel):
    session_id: str
    student_id: str | None = None
    folder_name: str
    folder_path: str


class StudentFolderMoveResult(BaseModel):
    """Résultat d'un transfert de dossier étudiant vers une autre session."""

    moved: bool
    message: str
    old_path: str | None = None
    new_path: str | None = None
    files_count: int = 0


class ArchiveStats(BaseModel):
    total_sessions: int = 0
    total_students: int = 0
