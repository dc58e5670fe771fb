"""Structure reconciler: files extracted questions into the section/chapter tree."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from services.chapter_registry import ChapterRegistry, DEFAULT_REGISTRY
from services.quiz_models import (
    Chapter,
    FlatQuestionRecord,
    MalformedRecord,
    Section,
    clean_chapter_code,
    clean_section_id,
    structure_to_dicts,
)

__all__ = [
    "ReconcileError",
    "ExtractionFailure",
    "MalformedRecord",
    "SkippedRecord",
    "ReconcileResult",
    "reconcile",
    "reconcile_with_report",
    "order_chapter_questions",
]


class ReconcileError(Exception):
    """Base class for reconciliation errors."""


class ExtractionFailure(ReconcileError):
    """The extractor produced no question list at all."""


@dataclass
class SkippedRecord:
    index: int
    reason: str
    record: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"index": self.index, "reason": self.reason}


@dataclass
class ReconcileResult:
    structure: List[Section]
    skipped: List[SkippedRecord] = field(default_factory=list)
    placed: int = 0
    created_sections: List[str] = field(default_factory=list)
    created_chapters: List[Tuple[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parsedStructure": structure_to_dicts(self.structure),
            "skipped": [s.to_dict() for s in self.skipped],
            "placed": self.placed,
            "createdSections": list(self.created_sections),
            "createdChapters": [{"sectionId": s, "binaryCode": c} for s, c in self.created_chapters],
        }


def order_chapter_questions(structure: List[Section]) -> None:
    """Sort each chapter's questions by questionNumber, in place. Ties keep insertion order."""
    for section in structure:
        for chapter in section.chapters:
            chapter.questions.sort(key=lambda q: q.questionNumber)


def _section_name(section_id: str, registry: ChapterRegistry) -> str:
    subject = registry.find_subject_by_id(section_id)
    if subject:
        return subject.name
    return f"Section {section_id}"


def _chapter_name(section_id: str, chapter_code: str, registry: ChapterRegistry) -> str:
    entry = registry.lookup(section_id, chapter_code)
    if entry:
        return entry.name
    return f"Chapter {chapter_code}"


def _working_copy(raw: Any) -> Section:
    """Copy of an authored section with normalized ids and emptied chapters."""
    if isinstance(raw, Section):
        section = raw.clone(with_questions=False)
    else:
        section = Section.from_dict(raw, with_questions=False)
    section.id = clean_section_id(section.id)
    for chapter in section.chapters:
        chapter.binaryCode = clean_chapter_code(chapter.binaryCode)
    return section


def _as_record(raw: Any) -> FlatQuestionRecord:
    # records built in code go through the same checks as extractor output
    if isinstance(raw, FlatQuestionRecord):
        raw = raw.to_dict()
    return FlatQuestionRecord.from_dict(raw)


def reconcile_with_report(
    existing_structure: Optional[List[Any]],
    flat_questions: Optional[List[Any]],
    registry: ChapterRegistry = DEFAULT_REGISTRY,
) -> ReconcileResult:
    """
    Merge extracted question records into a copy of the authored structure.

    Args:
        existing_structure: Authored sections (dataclasses or camelCase dicts), may be empty
        flat_questions: Extractor records (FlatQuestionRecord or dicts)
        registry: Chapter registry used to name invented sections/chapters

    Returns:
        ReconcileResult with the rebuilt structure and any skipped records

    Raises:
        ExtractionFailure: if flat_questions is None
    """
    if flat_questions is None:
        raise ExtractionFailure("Extractor returned no question list.")

    # old questions are dropped unread; every chapter is refilled below
    structure = [_working_copy(s) for s in (existing_structure or [])]

    sections_by_id: Dict[str, Section] = {}
    chapters_by_key: Dict[Tuple[str, str], Chapter] = {}
    for section in structure:
        sections_by_id.setdefault(section.id, section)
        for chapter in section.chapters:
            chapters_by_key.setdefault((section.id, chapter.binaryCode), chapter)

    result = ReconcileResult(structure=structure)

    for index, raw in enumerate(flat_questions):
        try:
            record = _as_record(raw)
        except MalformedRecord as e:
            print(f"⚠️ Skipping malformed record #{index}: {e.reason}")
            result.skipped.append(SkippedRecord(index=index, reason=e.reason, record=raw))
            continue

        key = record.key
        chapter = chapters_by_key.get(key)
        if chapter is None:
            section = sections_by_id.get(record.sectionId)
            if section is None:
                section = Section(
                    id=record.sectionId,
                    name=_section_name(record.sectionId, registry),
                    chapters=[],
                )
                structure.append(section)
                sections_by_id[section.id] = section
                result.created_sections.append(section.id)

            chapter = Chapter(
                name=_chapter_name(record.sectionId, record.chapterBinaryCode, registry),
                binaryCode=record.chapterBinaryCode,
                questions=[],
            )
            section.chapters.append(chapter)
            chapters_by_key[key] = chapter
            result.created_chapters.append(key)

        chapter.questions.append(record.to_question())
        result.placed += 1

    order_chapter_questions(structure)

    print(
        f"📊 Reconciled {result.placed} question(s) into {len(structure)} section(s); "
        f"new sections: {len(result.created_sections)}, new chapters: {len(result.created_chapters)}, "
        f"skipped: {len(result.skipped)}"
    )
    return result


def reconcile(
    existing_structure: Optional[List[Any]],
    flat_questions: Optional[List[Any]],
    registry: ChapterRegistry = DEFAULT_REGISTRY,
) -> List[Section]:
    """Reconcile and return only the rebuilt structure."""
    return reconcile_with_report(existing_structure, flat_questions, registry).structure
