"""Quiz structure data model.

Sections hold chapters, chapters hold questions. The wire format used by the
authoring UI is camelCase JSON (``binaryCode``, ``questionNumber``,
``correctOptionId``); every type converts to and from that shape with
``from_dict`` / ``to_dict``.

``clone()`` is an explicit structural copy. The reconciler relies on it so a
caller's structure is never mutated; ``with_questions=False`` copies the
sections and chapters only.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class MalformedRecord(ValueError):
    """An extracted record is missing a field the structure needs."""

    def __init__(self, reason: str, record: Any = None):
        super().__init__(reason)
        self.reason = reason
        self.record = record


def _coerce_question_number(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        s = value.strip().rstrip(".)")
        digits = s[1:] if s.startswith("-") else s
        # isdigit alone lets through superscripts and other non-ASCII digits
        if digits.isascii() and digits.isdigit():
            return int(s)
    return None


def _clean_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def clean_section_id(value: Any) -> str:
    return _clean_str(value).upper()


def clean_chapter_code(value: Any) -> str:
    return _clean_str(value)


@dataclass
class Option:
    id: str
    text: str

    @classmethod
    def from_dict(cls, data: Any, index: int = 0) -> "Option":
        # bare strings get positional letters: A, B, C, ...
        if isinstance(data, dict):
            oid = _clean_str(data.get("id")) or chr(ord("A") + index)
            return cls(id=oid.upper(), text=_clean_str(data.get("text")))
        return cls(id=chr(ord("A") + index), text=_clean_str(data))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "text": self.text}

    def clone(self) -> "Option":
        return Option(id=self.id, text=self.text)


@dataclass
class Question:
    questionNumber: int
    text: str
    options: List[Option] = field(default_factory=list)
    correctOptionId: str = ""
    explanation: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Question":
        number = _coerce_question_number(data.get("questionNumber"))
        explanation = data.get("explanation")
        return cls(
            questionNumber=number if number is not None else 0,
            text=_clean_str(data.get("text")),
            options=[Option.from_dict(o, i) for i, o in enumerate(data.get("options") or [])],
            correctOptionId=_clean_str(data.get("correctOptionId")).upper(),
            explanation=_clean_str(explanation) or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "questionNumber": self.questionNumber,
            "text": self.text,
            "options": [o.to_dict() for o in self.options],
            "correctOptionId": self.correctOptionId,
        }
        if self.explanation:
            out["explanation"] = self.explanation
        return out

    def clone(self) -> "Question":
        return Question(
            questionNumber=self.questionNumber,
            text=self.text,
            options=[o.clone() for o in self.options],
            correctOptionId=self.correctOptionId,
            explanation=self.explanation,
        )


@dataclass
class Chapter:
    name: str
    binaryCode: str
    questions: List[Question] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], with_questions: bool = True) -> "Chapter":
        questions = data.get("questions") if with_questions else None
        return cls(
            name=_clean_str(data.get("name")),
            binaryCode=clean_chapter_code(data.get("binaryCode")),
            questions=[Question.from_dict(q) for q in (questions or [])],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "binaryCode": self.binaryCode,
            "questions": [q.to_dict() for q in self.questions],
        }

    def clone(self, with_questions: bool = True) -> "Chapter":
        return Chapter(
            name=self.name,
            binaryCode=self.binaryCode,
            questions=[q.clone() for q in self.questions] if with_questions else [],
        )


@dataclass
class Section:
    id: str
    name: str
    chapters: List[Chapter] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], with_questions: bool = True) -> "Section":
        return cls(
            id=clean_section_id(data.get("id")),
            name=_clean_str(data.get("name")),
            chapters=[Chapter.from_dict(c, with_questions) for c in (data.get("chapters") or [])],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "chapters": [c.to_dict() for c in self.chapters],
        }

    def clone(self, with_questions: bool = True) -> "Section":
        return Section(
            id=self.id,
            name=self.name,
            chapters=[c.clone(with_questions) for c in self.chapters],
        )


@dataclass
class FlatQuestionRecord:
    """A question as returned by the extractor, tagged with its believed location."""

    questionNumber: int
    text: str
    options: List[Option]
    correctOptionId: str
    sectionId: str
    chapterBinaryCode: str
    explanation: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "FlatQuestionRecord":
        """
        Build a record from extractor output.

        Raises:
            MalformedRecord: if a required field is missing or unusable
        """
        if not isinstance(data, dict):
            raise MalformedRecord("record is not an object", data)

        number = _coerce_question_number(data.get("questionNumber"))
        if number is None:
            raise MalformedRecord("missing or non-integer questionNumber", data)

        text = _clean_str(data.get("text"))
        if not text:
            raise MalformedRecord("missing question text", data)

        raw_options = data.get("options")
        if not isinstance(raw_options, list) or not raw_options:
            raise MalformedRecord("missing options", data)

        correct = _clean_str(data.get("correctOptionId")).upper()
        if not correct:
            raise MalformedRecord("missing correctOptionId", data)

        section_id = clean_section_id(data.get("sectionId"))
        chapter_code = clean_chapter_code(data.get("chapterBinaryCode"))
        if not section_id or not chapter_code:
            raise MalformedRecord("missing sectionId/chapterBinaryCode", data)

        explanation = _clean_str(data.get("explanation")) or None
        return cls(
            questionNumber=number,
            text=text,
            options=[Option.from_dict(o, i) for i, o in enumerate(raw_options)],
            correctOptionId=correct,
            sectionId=section_id,
            chapterBinaryCode=chapter_code,
            explanation=explanation,
        )

    @property
    def key(self):
        return (self.sectionId, self.chapterBinaryCode)

    def to_question(self) -> Question:
        """The question fields only, classification tags stripped."""
        return Question(
            questionNumber=self.questionNumber,
            text=self.text,
            options=[o.clone() for o in self.options],
            correctOptionId=self.correctOptionId,
            explanation=self.explanation,
        )

    def to_dict(self) -> Dict[str, Any]:
        out = self.to_question().to_dict()
        out["sectionId"] = self.sectionId
        out["chapterBinaryCode"] = self.chapterBinaryCode
        return out


def structure_from_dicts(items: List[Any]) -> List[Section]:
    return [s if isinstance(s, Section) else Section.from_dict(s) for s in (items or [])]


def structure_to_dicts(structure: List[Section]) -> List[Dict[str, Any]]:
    return [s.to_dict() for s in structure]
