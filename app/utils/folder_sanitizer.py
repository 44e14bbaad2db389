"""Nettoyage des noms de dossiers créés sur le disque.

Les noms proviennent de saisies utilisateur (titres de sessions, noms
d'étudiants); le résultat ne contient jamais ``..``, ``/``, ``\\``, de
caractère NUL ni de point initial.
"""

import re
import unicodedata
from typing import Any

MAX_FOLDER_NAME_LENGTH = 100
DEFAULT_FOLDER_NAME = "sans_nom"

RESERVED_NAMES = frozenset(
    {
        ".",
        "..",
        "CON",
        "PRN",
        "AUX",
        "NUL",
        *(f"COM{i}" for i in range(1, 10)),
        *(f"LPT{i}" for i in range(1, 10)),
    }
)

_FORBIDDEN_CHARS_RE = re.compile(r"[^A-Za-z0-9 _-]")
_SEPARATORS_RE = re.compile(r"[\s_]+")
_DASHES_RE = re.compile(r"-{2,}")
_LEADING_RE = re.compile(r"^[._\-\s]+")
_TRAILING_RE = re.compile(r"[._\-\s]+$")


def _strip_accents(value: str) -> str:
    normalized = unicodedata.normalize("NFKD", value)
    return "".join(char for char in normalized if not unicodedata.combining(char))


def sanitize_folder_name(name: Any) -> str:
    """
    Transforme une chaîne quelconque en nom de dossier sûr.

    - accents supprimés (NFKD)
    - caractères hors [A-Za-z0-9 _-] remplacés par "_"
    - espaces et "_" consécutifs fusionnés en un seul "_"
    - points, tirets et "_" retirés en début et fin de nom
    - longueur limitée à MAX_FOLDER_NAME_LENGTH

    Un résultat vide devient DEFAULT_FOLDER_NAME.
    """
    if name is None:
        return DEFAULT_FOLDER_NAME

    value = _strip_accents(str(name))
    value = _FORBIDDEN_CHARS_RE.sub("_", value)
    value = _SEPARATORS_RE.sub("_", value)
    value = _DASHES_RE.sub("-", value)
    value = _LEADING_RE.sub("", value)
    value = value[:MAX_FOLDER_NAME_LENGTH]
    value = _TRAILING_RE.sub("", value)

    if not value or value.upper() in RESERVED_NAMES:
        return DEFAULT_FOLDER_NAME
    return value


def sanitize_student_folder_name(student: dict[str, Any]) -> str:
    """Nom de dossier étudiant au format Prenom_Nom_CIN."""
    parts = [student.get("prenom"), student.get("nom"), student.get("cin")]
    return sanitize_folder_name("_".join(str(part).strip() for part in parts if part))


def is_valid_folder_name(name: Any) -> bool:
    """Vérifie qu'un nom de dossier peut être utilisé tel quel sur le disque."""
    if not name or not isinstance(name, str):
        return False
    if len(name) > MAX_FOLDER_NAME_LENGTH:
        return False
    if ".." in name or "/" in name or "\\" in name or "\x00" in name:
        return False
    if name.startswith("."):
        return False
    return name.upper() not in RESERVED_NAMES
