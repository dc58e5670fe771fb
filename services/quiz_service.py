"""Quiz service for authoring operations on quiz structures."""

import re
import time
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from services.quiz_models import Section, structure_from_dicts, structure_to_dicts

SECTION_ID_LENGTH = 3
BINARY_CODE_WIDTH = 6

DEFAULT_SETTINGS = {
    "duration": 180,
    "positiveMarks": 4,
    "negativeMarks": -1,
}


def normalize_section_id(value: Any) -> str:
    """
    Normalize a user-typed section id.

    Args:
        value: Raw id as typed

    Returns:
        str: Upper-case alphanumeric id, at most 3 characters
    """
    return re.sub(r"[^A-Z0-9]", "", str(value or "").upper())[:SECTION_ID_LENGTH]


def generate_binary_code(existing_codes: Iterable[str]) -> str:
    """
    Generate the first unused 6-digit binary chapter code.

    Counting starts at "000001".

    Args:
        existing_codes: Codes already used anywhere in the structure

    Returns:
        str: A new, unique binary code
    """
    used = set(existing_codes or [])
    next_number = 1
    while True:
        code = format(next_number, "b").zfill(BINARY_CODE_WIDTH)
        if code not in used:
            return code
        next_number += 1


def all_binary_codes(structure: List[Any]) -> List[str]:
    return [c.binaryCode for s in structure_from_dicts(structure) for c in s.chapters]


def validate_structure(structure: List[Any]) -> tuple[bool, Optional[str]]:
    """
    Validate an authored structure before parsing or saving.

    Args:
        structure: Sections (dataclasses or dicts)

    Returns:
        tuple: (is_valid, error_message)
    """
    seen = set()
    for section in structure_from_dicts(structure):
        if not section.name or not section.id:
            return False, "Please provide a name and ID for all sections."
        if len(section.id) != SECTION_ID_LENGTH:
            return False, f'Section ID "{section.id}" must be {SECTION_ID_LENGTH} characters long.'
        if section.id in seen:
            return False, f'Section ID "{section.id}" must be unique.'
        if any(not ch.name for ch in section.chapters):
            return False, f'Please provide a name for all chapters in section "{section.name}".'
        codes = [ch.binaryCode for ch in section.chapters]
        if len(codes) != len(set(codes)):
            return False, f'Chapter codes in section "{section.name}" must be unique.'
        seen.add(section.id)
    return True, None


def strip_questions(structure: List[Any]) -> List[Dict[str, Any]]:
    """Sections and chapters without their questions, as handed to the extractor."""
    return [
        {
            "id": s.id,
            "name": s.name,
            "chapters": [{"name": c.name, "binaryCode": c.binaryCode} for c in s.chapters],
        }
        for s in structure_from_dicts(structure)
    ]


def flatten_questions(structure: List[Any]) -> List[Dict[str, Any]]:
    """
    Flatten a structure into delivery order.

    Each question carries its sectionId, sectionName and chapterName; the
    list is sorted by questionNumber across the whole quiz.
    """
    flat = []
    for section in structure_from_dicts(structure):
        for chapter in section.chapters:
            for q in chapter.questions:
                item = q.to_dict()
                item.update({
                    "sectionId": section.id,
                    "sectionName": section.name,
                    "chapterName": chapter.name,
                    "chapterBinaryCode": chapter.binaryCode,
                })
                flat.append(item)
    flat.sort(key=lambda q: q["questionNumber"])
    return flat


def count_questions(structure: List[Any]) -> int:
    return sum(len(c.questions) for s in structure_from_dicts(structure) for c in s.chapters)


def validate_quiz_settings(settings: Dict[str, Any]) -> tuple[bool, Optional[str]]:
    """
    Validate quiz settings.

    Args:
        settings: Settings to validate

    Returns:
        tuple: (is_valid, error_message)
    """
    duration = settings.get("duration", DEFAULT_SETTINGS["duration"])
    if isinstance(duration, bool) or not isinstance(duration, int) or not (1 <= duration <= 600):
        return False, "Invalid duration. Must be between 1 and 600 minutes."

    positive = settings.get("positiveMarks", DEFAULT_SETTINGS["positiveMarks"])
    if isinstance(positive, bool) or not isinstance(positive, (int, float)) or positive <= 0:
        return False, "Positive marks must be greater than zero."

    negative = settings.get("negativeMarks", DEFAULT_SETTINGS["negativeMarks"])
    if isinstance(negative, bool) or not isinstance(negative, (int, float)) or negative > 0:
        return False, "Negative marks must be zero or less."

    return True, None


def make_quiz_id(title: str, now_ms: Optional[int] = None) -> str:
    slug = re.sub(r"\s+", "-", (title or "").strip().lower())
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{slug}-{stamp}"


def create_quiz_dict(title: str, structure: List[Any],
                     settings: Optional[Dict[str, Any]] = None,
                     owner_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Create a draft quiz document.

    Args:
        title: Quiz title
        structure: Sections with their questions
        settings: Optional settings, merged over the defaults
        owner_id: Author id

    Returns:
        dict: Quiz dictionary
    """
    sections: List[Section] = structure_from_dicts(structure)
    return {
        "id": make_quiz_id(title),
        "title": title,
        "settings": {**DEFAULT_SETTINGS, **(settings or {})},
        "structure": structure_to_dicts(sections),
        "isPublished": False,
        "createdAt": datetime.utcnow().isoformat() + "Z",
        "ownerId": owner_id,
    }
