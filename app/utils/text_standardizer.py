"""Standardisation des saisies texte (noms, CIN, téléphones, emails...).

Appliquée avant écriture en base pour que les documents générés et les
recherches portent sur des valeurs homogènes.

Usage:
    from app.utils.text_standardizer import standardize_data

    data = standardize_data({"nom": "EL-MEHDI", "cin": "ab 123456"})
    # {"nom": "El-Mehdi", "cin": "AB123456"}
"""

import re
from collections.abc import Callable
from typing import Any

_WHITESPACE_RE = re.compile(r"\s+")


def _collapse(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", value.strip())


def _capitalize_parts(word: str, separator: str) -> str:
    return separator.join(part[:1].upper() + part[1:] for part in word.split(separator))


def to_title_case(value: Any) -> Any:
    """
    Première lettre de chaque mot en majuscule.

    Gère les noms composés ("EL-MEHDI" -> "El-Mehdi") et les apostrophes
    ("d'ALMEIDA" -> "D'Almeida").
    """
    if not value or not isinstance(value, str):
        return value

    words = []
    for word in _collapse(value.lower()).split(" "):
        if "-" in word:
            words.append(_capitalize_parts(word, "-"))
        elif "'" in word:
            words.append(_capitalize_parts(word, "'"))
        else:
            words.append(word[:1].upper() + word[1:])
    return " ".join(words)


def to_upper_case(value: Any) -> Any:
    if not value or not isinstance(value, str):
        return value
    return _collapse(value.upper())


def to_lower_case(value: Any) -> Any:
    if not value or not isinstance(value, str):
        return value
    return _collapse(value.lower())


def to_sentence_case(value: Any) -> Any:
    """"MOHAMMEDIA" -> "Mohammedia"."""
    if not value or not isinstance(value, str):
        return value
    collapsed = _collapse(value.lower())
    return collapsed[:1].upper() + collapsed[1:]


def format_cin(value: Any) -> Any:
    """CIN en majuscules sans espaces: "t 209876" -> "T209876"."""
    if not value or not isinstance(value, str):
        return value
    return _WHITESPACE_RE.sub("", value.upper())


def format_phone(value: Any) -> Any:
    """Ne garde que les chiffres et le signe +."""
    if not value or not isinstance(value, str):
        return value
    return re.sub(r"[^\d+]", "", value)


def format_email(value: Any) -> Any:
    if not value or not isinstance(value, str):
        return value
    return value.strip().lower()


def format_certificate_number(value: Any) -> Any:
    """"cert-2024 001" -> "CERT-2024001"."""
    if not value or not isinstance(value, str):
        return value
    return _WHITESPACE_RE.sub("", value.upper())


# Nom de champ -> fonction de standardisation
STANDARDIZATION_RULES: dict[str, Callable[[Any], Any]] = {
    # Identité
    "first_name": to_title_case,
    "last_name": to_title_case,
    "prenom": to_title_case,
    "nom": to_title_case,
    "full_name": to_title_case,
    "name": to_title_case,
    # Identification
    "cin": format_cin,
    "national_id": format_cin,
    # Contact
    "email": format_email,
    "phone": format_phone,
    "telephone": format_phone,
    "mobile": format_phone,
    # Localisation
    "city": to_title_case,
    "ville": to_title_case,
    "birth_place": to_title_case,
    "lieu_naissance": to_title_case,
    "address": to_title_case,
    "adresse": to_title_case,
    # Formation
    "formation_name": to_title_case,
    "course_name": to_title_case,
    # Certificats
    "certificate_number": format_certificate_number,
}


def standardize_field(field_name: str, value: Any) -> Any:
    """Applique la règle du champ, ou un simple trim pour les champs sans règle."""
    if not value or not isinstance(value, str):
        return value
    rule = STANDARDIZATION_RULES.get(field_name)
    if rule:
        return rule(value)
    return value.strip()


def standardize_data(data: dict[str, Any], fields: list[str] | None = None) -> dict[str, Any]:
    """
    Standardise un dictionnaire selon STANDARDIZATION_RULES.

    Seuls les champs connus (ou ceux listés dans ``fields``) de type str sont
    modifiés; les autres valeurs sont recopiées telles quelles.

    Args:
        data: Données à standardiser (non modifiées en place)
        fields: Sous-ensemble de champs à traiter (défaut: tous les champs à règle)

    Returns:
        Nouveau dictionnaire standardisé
    """
    result = dict(data)
    for field in fields or STANDARDIZATION_RULES.keys():
        if isinstance(result.get(field), str):
            result[field] = standardize_field(field, result[field])
    return result
