"""
Tests for the structure data model.
Run with: python -m pytest services/test_quiz_models.py -q
"""

import pytest

from services.quiz_models import Chapter, FlatQuestionRecord, MalformedRecord, Section


def _record(number):
    return {
        "questionNumber": number,
        "text": "Q",
        "options": ["x", "y"],
        "correctOptionId": "a",
        "sectionId": " phy ",
        "chapterBinaryCode": " 000001 ",
    }


@pytest.mark.parametrize("number, expected", [(3, 3), (4.0, 4), ("12", 12), (" 7. ", 7), ("-2", -2)])
def test_question_numbers_are_coerced(number, expected):
    assert FlatQuestionRecord.from_dict(_record(number)).questionNumber == expected


@pytest.mark.parametrize("number", ["²", "٣", "1.5", "", "-", True, None, 2.5])
def test_unusable_question_numbers_are_malformed(number):
    with pytest.raises(MalformedRecord) as exc:
        FlatQuestionRecord.from_dict(_record(number))
    assert exc.value.reason == "missing or non-integer questionNumber"


def test_record_ids_and_options_are_normalized():
    rec = FlatQuestionRecord.from_dict(_record(1))
    assert rec.key == ("PHY", "000001")
    assert rec.correctOptionId == "A"
    assert [o.to_dict() for o in rec.options] == [{"id": "A", "text": "x"}, {"id": "B", "text": "y"}]


def test_from_dict_can_skip_questions():
    data = {"id": "phy", "name": "Physics", "chapters": [
        {"name": "Motion", "binaryCode": "000001", "questions": [None]},
    ]}
    section = Section.from_dict(data, with_questions=False)
    assert section.id == "PHY"
    assert section.chapters[0].questions == []


def test_clone_copies_questions_unless_told_not_to():
    section = Section.from_dict({"id": "PHY", "name": "Physics", "chapters": [
        {"name": "Motion", "binaryCode": "000001", "questions": [
            {"questionNumber": 1, "text": "Q1", "options": ["x"], "correctOptionId": "A"},
        ]},
    ]})

    full = section.clone()
    assert full == section
    assert full.chapters[0].questions[0] is not section.chapters[0].questions[0]

    bare = section.clone(with_questions=False)
    assert bare.chapters == [Chapter(name="Motion", binaryCode="000001")]
    assert len(section.chapters[0].questions) == 1
