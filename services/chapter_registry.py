"""Master chapter registry.

A fixed catalog of subjects and their canonical chapters. It is built once at
import time and only exposes read access; changing the catalog means changing
this file and redeploying.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class MasterChapterEntry:
    subject_id: str
    code: str
    name: str


@dataclass(frozen=True)
class SubjectDescriptor:
    id: str
    name: str
    chapters: Tuple[MasterChapterEntry, ...]

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "chapters": [{"binaryCode": c.code, "name": c.name} for c in self.chapters],
        }


MASTER_CATALOG = (
    {
        "subjectId": "1B0",
        "subjectName": "Biology",
        "chapters": [
            {"code": "1B0-001", "name": "The Living World"},
            {"code": "1B0-002", "name": "Biological Classification"},
            {"code": "1B0-003", "name": "Plant Kingdom"},
            {"code": "1B0-004", "name": "Animal Kingdom"},
        ],
    },
    {
        "subjectId": "2P0",
        "subjectName": "Physics",
        "chapters": [
            {"code": "2P0-001", "name": "Units and Measurements"},
            {"code": "2P0-002", "name": "Motion in a Straight Line"},
            {"code": "2P0-003", "name": "Motion in a Plane"},
            {"code": "2P0-004", "name": "Laws of Motion"},
        ],
    },
    {
        "subjectId": "3C0",
        "subjectName": "Chemistry",
        "chapters": [
            {"code": "3C0-001", "name": "Some Basic Concepts of Chemistry"},
            {"code": "3C0-002", "name": "Structure of Atom"},
            {"code": "3C0-003", "name": "Classification of Elements and Periodicity"},
            {"code": "3C0-004", "name": "Chemical Bonding and Molecular Structure"},
        ],
    },
)


class ChapterRegistry:
    """Read-only lookup table over a subject/chapter catalog."""

    def __init__(self, catalog):
        subjects: Dict[str, SubjectDescriptor] = {}
        chapters: Dict[Tuple[str, str], MasterChapterEntry] = {}

        for item in catalog:
            subject_id = item["subjectId"].strip().upper()
            entries = []
            for ch in item.get("chapters", []):
                entry = MasterChapterEntry(subject_id=subject_id, code=ch["code"].strip(), name=ch["name"])
                entries.append(entry)
                chapters[(subject_id, entry.code)] = entry
            subjects[subject_id] = SubjectDescriptor(
                id=subject_id, name=item["subjectName"], chapters=tuple(entries)
            )

        self._subjects: Mapping[str, SubjectDescriptor] = MappingProxyType(subjects)
        self._chapters: Mapping[Tuple[str, str], MasterChapterEntry] = MappingProxyType(chapters)

    def lookup(self, subject_id: str, chapter_code: str) -> Optional[MasterChapterEntry]:
        """
        Find the canonical chapter for a (subject, chapter code) pair.

        The code may be the catalog's full form ("2P0-002") or the bare
        suffix ("002"). Returns None when nothing matches.
        """
        sid = (subject_id or "").strip().upper()
        code = (chapter_code or "").strip()
        if not sid or not code:
            return None
        entry = self._chapters.get((sid, code))
        if entry is None and not code.upper().startswith(sid + "-"):
            entry = self._chapters.get((sid, f"{sid}-{code}"))
        return entry

    def find_subject_by_id(self, subject_id: str) -> Optional[SubjectDescriptor]:
        return self._subjects.get((subject_id or "").strip().upper())

    def list_subjects(self) -> List[SubjectDescriptor]:
        return list(self._subjects.values())

    def __contains__(self, key) -> bool:
        subject_id, chapter_code = key
        return self.lookup(subject_id, chapter_code) is not None


DEFAULT_REGISTRY = ChapterRegistry(MASTER_CATALOG)


def lookup(subject_id: str, chapter_code: str) -> Optional[MasterChapterEntry]:
    return DEFAULT_REGISTRY.lookup(subject_id, chapter_code)


def find_subject_by_id(subject_id: str) -> Optional[SubjectDescriptor]:
    return DEFAULT_REGISTRY.find_subject_by_id(subject_id)


def list_subjects() -> List[SubjectDescriptor]:
    return DEFAULT_REGISTRY.list_subjects()
