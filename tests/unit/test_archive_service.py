"""Tests de création des dossiers d'archives sur le disque."""

import json
import shutil
from pathlib import Path
from unittest.mock import patch

import pytest
from sqlalchemy import select

from app.core.exceptions import ConflictError, NotFoundError
from app.models.archive import StudentArchiveFolder
from app.schemas.archive import StudentFolderCreate
from app.services import archive_service


@pytest.fixture(autouse=True)
def uploads_path(tmp_path):
    with patch.object(archive_service.settings, "UPLOADS_PATH", str(tmp_path)):
        yield tmp_path


STUDENT = StudentFolderCreate(student_id="stu-1", prenom="Sara", nom="El Amrani", cin="AB123456")


class TestSessionFolder:
    async def test_creates_folder_and_metadata(self, db_session, uploads_path):
        folder = await archive_service.create_session_folder(
            db_session, "sess-1", "Formation Secourisme"
        )

        path = Path(folder.folder_path)
        assert folder.folder_name == "Formation_Secourisme"
        assert path.is_dir()
        assert path.parent == (uploads_path / "archive-documents").resolve()

        metadata = json.loads((path / "session-metadata.json").read_text(encoding="utf-8"))
        assert metadata["session_id"] == "sess-1"
        assert metadata["original_title"] == "Formation Secourisme"
        assert metadata["sanitized_title"] == "Formation_Secourisme"

    async def test_same_session_reuses_folder(self, db_session):
        first = await archive_service.create_session_folder(db_session, "sess-1", "Titre")
        second = await archive_service.create_session_folder(db_session, "sess-1", "Autre titre")

        assert second.folder_path == first.folder_path

    async def test_same_title_other_session_gets_suffix(self, db_session):
        first = await archive_service.create_session_folder(db_session, "sess-1", "Titre")
        second = await archive_service.create_session_folder(db_session, "sess-2", "Titre")

        assert first.folder_name == "Titre"
        assert second.folder_name == "Titre_sess-2"
        assert second.folder_path != first.folder_path

    async def test_long_titles_get_distinct_folders(self, db_session):
        title = "Formation " + "x" * 150

        first = await archive_service.create_session_folder(db_session, "sess-1", title)
        second = await archive_service.create_session_folder(db_session, "sess-2", title)

        assert len(first.folder_name) == 100
        assert len(second.folder_name) == 100
        assert second.folder_name.endswith("_sess-2")
        assert second.folder_path != first.folder_path
        metadata = json.loads(
            (Path(first.folder_path) / "session-metadata.json").read_text(encoding="utf-8")
        )
        assert metadata["session_id"] == "sess-1"

    async def test_third_session_with_same_title(self, db_session):
        await archive_service.create_session_folder(db_session, "sess-1", "Titre")
        await archive_service.create_session_folder(db_session, "sess-2", "Titre_sess-3")

        third = await archive_service.create_session_folder(db_session, "sess-3", "Titre")

        assert third.folder_name == "Titre_sess-3_2"

    async def test_traversal_title_stays_inside_root(self, db_session, uploads_path):
        folder = await archive_service.create_session_folder(
            db_session, "sess-1", "../../etc/passwd"
        )

        root = (uploads_path / "archive-documents").resolve()
        assert Path(folder.folder_path).is_relative_to(root)
        assert folder.folder_name == "etc_passwd"


class TestStudentFolder:
    async def test_requires_session_folder(self, db_session):
        with pytest.raises(NotFoundError):
            await archive_service.create_student_folder(db_session, "sess-404", STUDENT)

    async def test_creates_student_folder(self, db_session):
        session = await archive_service.create_session_folder(db_session, "sess-1", "Titre")

        folder = await archive_service.get_or_create_student_folder(db_session, "sess-1", STUDENT)

        path = Path(folder.folder_path)
        assert folder.folder_name == "Sara_El_Amrani_AB123456"
        assert path.parent == Path(session.folder_path)
        metadata = json.loads((path / "metadata.json").read_text(encoding="utf-8"))
        assert metadata["student_id"] == "stu-1"
        assert metadata["session_id"] == "sess-1"

    async def test_existing_student_folder_is_reused(self, db_session):
        await archive_service.create_session_folder(db_session, "sess-1", "Titre")
        first = await archive_service.get_or_create_student_folder(db_session, "sess-1", STUDENT)

        renamed = STUDENT.model_copy(update={"nom": "Alami"})
        second = await archive_service.get_or_create_student_folder(db_session, "sess-1", renamed)

        assert second.folder_path == first.folder_path

    async def test_deleted_student_folder_is_recreated(self, db_session):
        await archive_service.create_session_folder(db_session, "sess-1", "Titre")
        first = await archive_service.get_or_create_student_folder(db_session, "sess-1", STUDENT)
        shutil.rmtree(first.folder_path)

        second = await archive_service.get_or_create_student_folder(db_session, "sess-1", STUDENT)

        assert second.folder_path == first.folder_path
        assert Path(second.folder_path).is_dir()

    async def test_namesakes_get_distinct_folders(self, db_session):
        await archive_service.create_session_folder(db_session, "sess-1", "Titre")
        first = await archive_service.get_or_create_student_folder(
            db_session,
            "sess-1",
            StudentFolderCreate(student_id="stu-1", prenom="Sara", nom="Amrani"),
        )

        second = await archive_service.get_or_create_student_folder(
            db_session,
            "sess-1",
            StudentFolderCreate(student_id="stu-2", prenom="Sara", nom="Amrani"),
        )

        assert first.folder_name == "Sara_Amrani"
        assert second.folder_name == "Sara_Amrani_stu-2"
        metadata = json.loads((Path(first.folder_path) / "metadata.json").read_text("utf-8"))
        assert metadata["student_id"] == "stu-1"


class TestMoveStudentFolder:
    @pytest.fixture
    async def enrolled(self, db_session):
        await archive_service.create_session_folder(db_session, "sess-1", "Session Mars")
        await archive_service.create_session_folder(db_session, "sess-2", "Session Avril")
        folder = await archive_service.get_or_create_student_folder(db_session, "sess-1", STUDENT)
        (Path(folder.folder_path) / "certificat.pdf").write_bytes(b"%PDF")
        return folder

    async def test_moves_folder_and_record(self, db_session, enrolled):
        result = await archive_service.move_student_folder(db_session, "sess-1", "stu-1", "sess-2")

        assert result.moved is True
        assert result.files_count == 2
        assert not Path(enrolled.folder_path).exists()
        new_path = Path(result.new_path)
        assert new_path.name == "Sara_El_Amrani_AB123456"
        assert (new_path / "certificat.pdf").is_file()

        record = await db_session.scalar(
            select(StudentArchiveFolder).where(StudentArchiveFolder.student_id == "stu-1")
        )
        assert record.session_id == "sess-2"
        assert record.folder_path == result.new_path

    async def test_nothing_to_move(self, db_session):
        result = await archive_service.move_student_folder(db_session, "sess-1", "stu-9", "sess-2")

        assert result.moved is False
        assert result.files_count == 0

    async def test_folder_missing_on_disk(self, db_session, enrolled):
        shutil.rmtree(enrolled.folder_path)

        result = await archive_service.move_student_folder(db_session, "sess-1", "stu-1", "sess-2")

        assert result.moved is False
        assert result.old_path == enrolled.folder_path

    async def test_unknown_target_session(self, db_session, enrolled):
        with pytest.raises(NotFoundError):
            await archive_service.move_student_folder(db_session, "sess-1", "stu-1", "sess-404")

        assert Path(enrolled.folder_path).is_dir()

    async def test_target_folder_already_exists(self, db_session, enrolled):
        target = await archive_service.create_session_folder(db_session, "sess-2", "ignoré")
        (Path(target.folder_path) / "Sara_El_Amrani_AB123456").mkdir()

        with pytest.raises(ConflictError):
            await archive_service.move_student_folder(db_session, "sess-1", "stu-1", "sess-2")

        assert Path(enrolled.folder_path).is_dir()


class TestArchiveStructure:
    def test_verify_creates_writable_root(self, uploads_path):
        assert archive_service.verify_archive_structure() is True

        root = uploads_path / "archive-documents"
        assert root.is_dir()
        assert not (root / ".write_test").exists()

    async def test_stats(self, db_session):
        await archive_service.create_session_folder(db_session, "sess-1", "Titre")
        await archive_service.get_or_create_student_folder(db_session, "sess-1", STUDENT)

        stats = await archive_service.get_archive_stats(db_session)

        assert stats.total_sessions == 1
        assert stats.total_students == 1
