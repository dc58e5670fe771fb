"""
Tests for the offline marker parser.
Run with: python -m pytest utils/test_marker_parser.py -q
"""

from services.reconciler import reconcile_with_report
from utils.marker_parser import (
    FALLBACK_CHAPTER_CODE,
    FALLBACK_SECTION_ID,
    parse_answer_key,
    parse_questions,
    parse_raw_quiz,
)


STRUCTURE = [
    {
        "id": "PHY",
        "name": "Physics",
        "chapters": [
            {"name": "Motion", "binaryCode": "000001"},
            {"name": "Waves", "binaryCode": "000010"},
        ],
    },
    {"id": "CHE", "name": "Chemistry", "chapters": [{"name": "Atoms", "binaryCode": "000001"}]},
]

RAW_QUESTIONS = """
#PHY #000001 1. A ball is thrown upwards. Its velocity at the top is
A. zero
B. maximum
C. negative
D. infinite
2. Which quantity is a vector?
A) speed
B) displacement
C) distance
D) time
#PHY-000010 3. Sound is a
(A) transverse wave (B) longitudinal wave (C) light wave (D) none
#CHE #000001 4. The charge of an electron is
a. positive
b. negative
c. zero
d. variable,
   depending on the atom
"""

RAW_ANSWERS = """
1. A
2) (B) Displacement has direction.
3 - B Explanation: Air molecules oscillate
along the direction of travel.
4: b
"""


def test_space_and_hyphen_markers_with_carry_forward():
    qs = parse_questions(RAW_QUESTIONS, STRUCTURE)

    assert [q["questionNumber"] for q in qs] == [1, 2, 3, 4]
    assert [(q["sectionId"], q["chapterBinaryCode"]) for q in qs] == [
        ("PHY", "000001"),
        ("PHY", "000001"),
        ("PHY", "000010"),
        ("CHE", "000001"),
    ]


def test_options_in_all_layouts():
    qs = parse_questions(RAW_QUESTIONS, STRUCTURE)

    assert [o["id"] for o in qs[0]["options"]] == ["A", "B", "C", "D"]
    assert qs[1]["options"][1] == {"id": "B", "text": "displacement"}
    assert qs[2]["options"][1] == {"id": "B", "text": "longitudinal wave"}
    assert qs[3]["options"][3]["text"] == "variable, depending on the atom"


def test_question_text_continuation():
    qs = parse_questions("1. What is\nthe unit of force?\nA. N\nB. J", STRUCTURE)
    assert qs[0]["text"] == "What is the unit of force?"


def test_unmarked_questions_before_any_marker_go_to_fallback():
    qs = parse_questions("1. Orphan?\nA. x\nB. y", STRUCTURE)
    assert (qs[0]["sectionId"], qs[0]["chapterBinaryCode"]) == (FALLBACK_SECTION_ID, FALLBACK_CHAPTER_CODE)


def test_unknown_marker_is_redirected():
    qs = parse_questions("#XYZ #999999 1. Unknown?\nA. x\n2. Still unknown?\nA. y", STRUCTURE)
    assert {(q["sectionId"], q["chapterBinaryCode"]) for q in qs} == {("GEN", "000000")}


def test_unknown_marker_kept_when_redirect_disabled():
    qs = parse_questions("#XYZ #999999 1. Unknown?\nA. x", STRUCTURE, redirect_unknown=False)
    assert (qs[0]["sectionId"], qs[0]["chapterBinaryCode"]) == ("XYZ", "999999")


def test_registry_markers_are_recognized():
    qs = parse_questions("#2P0-2P0-003 1. Projectile?\nA. x", [])
    assert (qs[0]["sectionId"], qs[0]["chapterBinaryCode"]) == ("2P0", "2P0-003")

    qs = parse_questions("#1b0 #001 1. Living?\nA. x", [])
    assert (qs[0]["sectionId"], qs[0]["chapterBinaryCode"]) == ("1B0", "001")


def test_marker_on_its_own_line():
    qs = parse_questions("#PHY #000010\n7. Pitch depends on\nA. frequency", STRUCTURE)
    assert (qs[0]["sectionId"], qs[0]["chapterBinaryCode"], qs[0]["questionNumber"]) == ("PHY", "000010", 7)


def test_answer_key_formats():
    key = parse_answer_key(RAW_ANSWERS)

    assert key[1] == {"correctOptionId": "A", "explanation": None}
    assert key[2] == {"correctOptionId": "B", "explanation": "Displacement has direction."}
    assert key[3]["correctOptionId"] == "B"
    assert key[3]["explanation"] == "Air molecules oscillate along the direction of travel."
    assert key[4]["correctOptionId"] == "B"


def test_answer_key_with_answer_prefix():
    key = parse_answer_key("Q1. Answer: C\n2. Ans - d Reason: obvious")
    assert key[1]["correctOptionId"] == "C"
    assert key[2] == {"correctOptionId": "D", "explanation": "obvious"}


def test_parse_raw_quiz_merges_answers():
    flat = parse_raw_quiz(RAW_QUESTIONS, RAW_ANSWERS, STRUCTURE)

    assert [q["correctOptionId"] for q in flat] == ["A", "B", "B", "B"]
    assert flat[1]["explanation"] == "Displacement has direction."
    assert "explanation" not in flat[0]


def test_missing_answer_leaves_blank_correct_option():
    flat = parse_raw_quiz("1. Q?\nA. x\n2. R?\nA. y", "1. A", STRUCTURE)
    assert flat[1]["correctOptionId"] == ""


def test_parsed_output_reconciles_into_structure():
    flat = parse_raw_quiz(RAW_QUESTIONS + "\n#ZZZ #123456 5. Lost?\nA. x\nB. y", RAW_ANSWERS + "\n5. A", STRUCTURE)
    result = reconcile_with_report(STRUCTURE, flat)
    out = {s.id: s for s in result.structure}

    assert result.skipped == []
    assert [q.questionNumber for q in out["PHY"].chapters[0].questions] == [1, 2]
    assert [q.questionNumber for q in out["PHY"].chapters[1].questions] == [3]
    assert [q.questionNumber for q in out["CHE"].chapters[0].questions] == [4]
    assert [q.questionNumber for q in out["GEN"].chapters[0].questions] == [5]
    assert out["GEN"].chapters[0].name == "Chapter 000000"


def test_decimal_at_line_start_continues_question_text():
    raw = "1. A car moves with speed\n2.5 m/s for 10 s. Distance covered is\nA. 25 m\nB. 2.5 m\n2. Next?\nA. x"
    qs = parse_questions(raw, STRUCTURE)

    assert [q["questionNumber"] for q in qs] == [1, 2]
    assert qs[0]["text"] == "A car moves with speed 2.5 m/s for 10 s. Distance covered is"
    assert qs[0]["options"] == [{"id": "A", "text": "25 m"}, {"id": "B", "text": "2.5 m"}]


def test_question_number_without_space_after_delimiter():
    qs = parse_questions("1.Which is a scalar?\nA. speed", STRUCTURE)
    assert (qs[0]["questionNumber"], qs[0]["text"]) == (1, "Which is a scalar?")
