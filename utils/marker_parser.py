"""Offline extractor for pasted quiz text.

Turns raw question text plus an answer key into flat question records, each
tagged with a section id and chapter code. Two marker syntaxes are recognized
at the start of a question line:

    #PHY #000001 1. A ball is thrown ...
    #PHY-000001 1. A ball is thrown ...

A marker stays in force for the following unmarked questions until the next
marker. Questions seen before any marker, and markers that match neither the
authored structure nor the master registry, go to the GEN / 000000 bucket.
"""

import re
from typing import Any, Dict, List, Optional, Set, Tuple

from services.chapter_registry import ChapterRegistry, DEFAULT_REGISTRY
from services.quiz_models import structure_from_dicts

FALLBACK_SECTION_ID = "GEN"
FALLBACK_CHAPTER_CODE = "000000"

MARKER_RE = re.compile(
    r"^\s*#(?P<section>[A-Za-z0-9]+)(?:\s+#|-)(?P<code>[A-Za-z0-9][A-Za-z0-9\-]*)\s*(?P<rest>.*)$"
)
QUESTION_RE = re.compile(r"^\s*(?:Q\.?\s*)?(?P<num>\d+)\s*[.)](?!\d)\s*(?P<text>.*)$", re.IGNORECASE)
OPTION_RE = re.compile(r"^\s*\(?(?P<letter>[A-Ha-h])[.)]\s*(?P<text>.+)$")
INLINE_OPTION_RE = re.compile(r"\(([A-Ha-h])\)\s*")
ANSWER_RE = re.compile(
    r"^\s*(?:Q(?:uestion)?\.?\s*)?(?P<num>\d+)\s*[.):\-]?\s*"
    r"(?:ans(?:wer)?\s*[:.\-]?\s*)?"
    r"\(?(?P<letter>[A-H])\)?(?![A-Z0-9])\s*[.,;:\-]?\s*(?P<rest>.*)$",
    re.IGNORECASE,
)
EXPLANATION_PREFIX_RE = re.compile(r"^(?:explanation|exp|reason|solution)\s*[:.\-]\s*", re.IGNORECASE)


def _split_inline_options(text: str) -> List[Tuple[str, str]]:
    """Split "(A) x (B) y (C) z" into [(A, x), (B, y), (C, z)]."""
    parts = INLINE_OPTION_RE.split(text)
    # parts: [before, letter, text, letter, text, ...]
    if len(parts) < 5 or parts[0].strip():
        return []
    return [(parts[i].upper(), parts[i + 1].strip()) for i in range(1, len(parts) - 1, 2)]


def _known_keys(structure: Optional[List[Any]]) -> Set[Tuple[str, str]]:
    keys = set()
    for section in structure_from_dicts(structure or []):
        for chapter in section.chapters:
            keys.add((section.id, chapter.binaryCode))
    return keys


def parse_questions(
    raw_questions: str,
    structure: Optional[List[Any]] = None,
    registry: ChapterRegistry = DEFAULT_REGISTRY,
    redirect_unknown: bool = True,
) -> List[Dict[str, Any]]:
    """
    Parse raw question text into tagged question dicts (no answers yet).

    Args:
        raw_questions: Pasted question text
        structure: Authored sections used to recognize markers
        registry: Master registry, also consulted to recognize markers
        redirect_unknown: Send unrecognized markers to GEN / 000000

    Returns:
        list: Dicts with questionNumber, text, options, sectionId, chapterBinaryCode
    """
    known = _known_keys(structure)
    current = (FALLBACK_SECTION_ID, FALLBACK_CHAPTER_CODE)
    questions: List[Dict[str, Any]] = []
    q: Optional[Dict[str, Any]] = None

    for line in (raw_questions or "").splitlines():
        if not line.strip():
            continue

        marker = MARKER_RE.match(line)
        if marker:
            key = (marker.group("section").upper(), marker.group("code"))
            if redirect_unknown and key not in known and registry.lookup(*key) is None:
                print(f"⚠️ Unrecognized marker #{key[0]} #{key[1]}; using {FALLBACK_SECTION_ID}/{FALLBACK_CHAPTER_CODE}")
                key = (FALLBACK_SECTION_ID, FALLBACK_CHAPTER_CODE)
            current = key
            line = marker.group("rest")
            if not line.strip():
                continue

        start = QUESTION_RE.match(line)
        if start:
            q = {
                "questionNumber": int(start.group("num")),
                "text": start.group("text").strip(),
                "options": [],
                "sectionId": current[0],
                "chapterBinaryCode": current[1],
            }
            questions.append(q)
            continue

        if q is None:
            continue

        inline = _split_inline_options(line)
        if inline:
            q["options"].extend({"id": letter, "text": text} for letter, text in inline)
            continue

        option = OPTION_RE.match(line)
        if option:
            q["options"].append({"id": option.group("letter").upper(), "text": option.group("text").strip()})
            continue

        # continuation of the last option, or of the question text
        if q["options"]:
            q["options"][-1]["text"] = f"{q['options'][-1]['text']} {line.strip()}"
        else:
            q["text"] = f"{q['text']} {line.strip()}".strip()

    return questions


def parse_answer_key(raw_answers: str) -> Dict[int, Dict[str, Optional[str]]]:
    """
    Parse an answer key into {questionNumber: {"correctOptionId", "explanation"}}.

    Lines that do not start a new answer extend the previous explanation.
    """
    answers: Dict[int, Dict[str, Optional[str]]] = {}
    last: Optional[int] = None

    for line in (raw_answers or "").splitlines():
        if not line.strip():
            continue
        m = ANSWER_RE.match(line)
        if m:
            last = int(m.group("num"))
            rest = EXPLANATION_PREFIX_RE.sub("", m.group("rest").strip())
            answers[last] = {
                "correctOptionId": m.group("letter").upper(),
                "explanation": rest or None,
            }
            continue
        if last is not None:
            extra = EXPLANATION_PREFIX_RE.sub("", line.strip())
            prev = answers[last]["explanation"]
            answers[last]["explanation"] = f"{prev} {extra}" if prev else extra

    return answers


def parse_raw_quiz(
    raw_questions: str,
    raw_answers: str,
    structure: Optional[List[Any]] = None,
    registry: ChapterRegistry = DEFAULT_REGISTRY,
    redirect_unknown: bool = True,
) -> List[Dict[str, Any]]:
    """
    Parse pasted questions and answer key into flat question records.

    Questions missing from the answer key keep an empty correctOptionId.
    """
    questions = parse_questions(raw_questions, structure, registry, redirect_unknown)
    key = parse_answer_key(raw_answers)

    missing = 0
    for q in questions:
        answer = key.get(q["questionNumber"])
        if answer is None:
            q["correctOptionId"] = ""
            missing += 1
            continue
        q["correctOptionId"] = answer["correctOptionId"]
        if answer["explanation"]:
            q["explanation"] = answer["explanation"]

    if missing:
        print(f"⚠️ {missing} question(s) have no entry in the answer key")
    print(f"✅ Marker parser extracted {len(questions)} question(s)")
    return questions
