"""API routes for quiz parsing, reconciliation and scoring."""

import json
from typing import Any, Dict, List, Optional
from flask import Blueprint, request, jsonify

from config import Config
from services.chapter_registry import list_subjects
from services.reconciler import ExtractionFailure, reconcile_with_report
from services.quiz_service import (
    DEFAULT_SETTINGS,
    all_binary_codes,
    count_questions,
    create_quiz_dict,
    generate_binary_code,
    strip_questions,
    validate_quiz_settings,
    validate_structure,
)
from services.scoring_service import analyze_attempt, score_attempt
from utils import analyze_performance_llm, extract_flat_questions_llm, parse_raw_quiz

api_bp = Blueprint('api', __name__, url_prefix='/api')


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _read_structure(data: Dict[str, Any]) -> Optional[List[Dict[str, Any]]]:
    """The body's structure, or None when it is not a list of section objects."""
    structure = data.get("structure") or []
    if not isinstance(structure, list):
        return None
    for section in structure:
        if not isinstance(section, dict):
            return None
        chapters = section.get("chapters") or []
        if not isinstance(chapters, list) or not all(isinstance(c, dict) for c in chapters):
            return None
    return structure


STRUCTURE_ERROR = "'structure' must be a list of sections with chapter lists."


@api_bp.route('/health', methods=['GET'])
def health():
    """Health check endpoint."""
    return jsonify({"ok": True, "llm": Config.has_llm()})


@api_bp.route('/subjects', methods=['GET'])
def subjects():
    """Master chapter catalog."""
    return jsonify({"subjects": [s.to_dict() for s in list_subjects()]})


@api_bp.route('/quiz/parse', methods=['POST'])
def parse_quiz():
    """
    Extract questions from pasted text and file them into the structure.

    Body: {"rawQuestions": str, "rawAnswers": str, "structure": [...], "offline": bool}
    """
    data = _json_body()
    raw_questions = (data.get("rawQuestions") or "").strip()
    raw_answers = (data.get("rawAnswers") or "").strip()
    structure = _read_structure(data)

    if not raw_questions or not raw_answers:
        return jsonify({"error": "Please paste both questions and the answer key."}), 400
    if structure is None:
        return jsonify({"error": STRUCTURE_ERROR}), 400

    use_llm = Config.has_llm() and not data.get("offline")
    try:
        if use_llm:
            flat = extract_flat_questions_llm(
                raw_questions=raw_questions,
                raw_answers=raw_answers,
                structure=strip_questions(structure),
                api_key=Config.GROQ_API_KEY,
                model=Config.GROQ_MODEL,
                temperature=Config.EXTRACTION_TEMPERATURE,
                max_tokens=Config.EXTRACTION_MAX_TOKENS,
            )
        else:
            flat = parse_raw_quiz(raw_questions, raw_answers, structure=structure)

        result = reconcile_with_report(structure, flat)
        payload = result.to_dict()
        payload["extractor"] = "llm" if use_llm else "marker_parser"
        return jsonify(payload), 200

    except ExtractionFailure as e:
        print(f"❌ Extraction failed: {e}")
        return jsonify({"error": f"AI parsing failed: {e}"}), 502
    except json.JSONDecodeError as e:
        print(f"❌ JSON Decode Error: {e}")
        return jsonify({"error": "Model returned invalid JSON. Try pasting a smaller batch."}), 502
    except Exception as e:
        print(f"❌ Server Error in parse_quiz: {e}")
        return jsonify({"error": f"Server error: {str(e)}"}), 500


@api_bp.route('/quiz/reconcile', methods=['POST'])
def reconcile_quiz():
    """
    File an already extracted flat question list into the structure.

    Body: {"structure": [...], "questions": [...]}
    """
    data = _json_body()
    structure = _read_structure(data)
    if structure is None:
        return jsonify({"error": STRUCTURE_ERROR}), 400

    try:
        result = reconcile_with_report(structure, data.get("questions"))
        return jsonify(result.to_dict()), 200
    except ExtractionFailure as e:
        return jsonify({"error": str(e)}), 502
    except Exception as e:
        print(f"❌ Server Error in reconcile_quiz: {e}")
        return jsonify({"error": f"Server error: {str(e)}"}), 500


@api_bp.route('/quiz/validate', methods=['POST'])
def validate_quiz_structure():
    """Check an authored structure before parsing or saving."""
    data = _json_body()
    structure = _read_structure(data)
    if structure is None:
        return jsonify({"error": STRUCTURE_ERROR}), 400

    try:
        ok, error = validate_structure(structure)
        return jsonify({"ok": ok, "error": error}), 200
    except Exception as e:
        print(f"❌ Server Error in validate_quiz_structure: {e}")
        return jsonify({"error": f"Server error: {str(e)}"}), 500


@api_bp.route('/quiz/draft', methods=['POST'])
def draft_quiz():
    """Assemble a draft quiz document for the persistence layer."""
    data = _json_body()
    title = (data.get("title") or "").strip()
    if not title:
        return jsonify({"error": "Title is required."}), 400

    structure = _read_structure(data)
    if structure is None:
        return jsonify({"error": STRUCTURE_ERROR}), 400

    settings = data.get("settings") or {}
    if not isinstance(settings, dict):
        return jsonify({"error": "'settings' must be an object."}), 400

    try:
        ok, error = validate_structure(structure)
        if not ok:
            return jsonify({"error": error}), 400

        ok, error = validate_quiz_settings(settings)
        if not ok:
            return jsonify({"error": error}), 400

        quiz = create_quiz_dict(title, structure, settings, owner_id=data.get("ownerId"))
        print(f"✅ Draft assembled: {quiz['id']} ({count_questions(structure)} questions)")
        return jsonify(quiz), 200
    except Exception as e:
        print(f"❌ Server Error in draft_quiz: {e}")
        return jsonify({"error": f"Server error: {str(e)}"}), 500


@api_bp.route('/quiz/score', methods=['POST'])
def score_quiz():
    """
    Score an attempt.

    Body: {"quiz": {...}, "answers": {"1": "A", ...}}
    """
    data = _json_body()
    quiz = data.get("quiz")
    if not isinstance(quiz, dict):
        return jsonify({"error": "Missing quiz"}), 400
    if _read_structure(quiz) is None:
        return jsonify({"error": STRUCTURE_ERROR}), 400
    answers = data.get("answers") or {}
    if not isinstance(answers, dict):
        return jsonify({"error": "'answers' must be an object."}), 400

    try:
        return jsonify(score_attempt(quiz, answers)), 200
    except Exception as e:
        print(f"❌ Server Error in score_quiz: {e}")
        return jsonify({"error": f"Server error: {str(e)}"}), 500


@api_bp.route('/quiz/next-code', methods=['POST'])
def next_chapter_code():
    """Next free binary chapter code for a new chapter."""
    data = _json_body()
    structure = _read_structure(data)
    if structure is None:
        return jsonify({"error": STRUCTURE_ERROR}), 400
    return jsonify({"binaryCode": generate_binary_code(all_binary_codes(structure))}), 200


@api_bp.route('/quiz/analysis', methods=['POST'])
def analyze_quiz_attempt():
    """
    Score an attempt and analyze it (Groq when configured, else rule-based).

    Body: {"quiz": {...}, "answers": {...}, "userName": str, "examName": str,
           "timeTakenMinutes": number, "timeSpent": {"1": 42, ...}, "offline": bool}
    """
    data = _json_body()
    quiz = data.get("quiz")
    if not isinstance(quiz, dict):
        return jsonify({"error": "Missing quiz"}), 400
    if _read_structure(quiz) is None:
        return jsonify({"error": STRUCTURE_ERROR}), 400
    answers = data.get("answers") or {}
    if not isinstance(answers, dict):
        return jsonify({"error": "'answers' must be an object."}), 400

    time_taken = data.get("timeTakenMinutes")
    if time_taken is not None and (isinstance(time_taken, bool) or not isinstance(time_taken, (int, float))):
        return jsonify({"error": "'timeTakenMinutes' must be a number."}), 400
    time_spent = data.get("timeSpent")
    if not isinstance(time_spent, dict):
        time_spent = None

    use_llm = Config.has_llm() and not data.get("offline")
    try:
        attempt = score_attempt(quiz, answers)
        if use_llm:
            analysis = analyze_performance_llm(
                attempt=attempt,
                api_key=Config.GROQ_API_KEY,
                model=Config.GROQ_MODEL,
                user_name=data.get("userName") or "the student",
                exam_name=data.get("examName") or quiz.get("title") or "the exam",
                time_taken_minutes=time_taken,
                time_spent=time_spent,
            )
            if analysis is None:
                return jsonify({"error": "AI analysis failed to produce a result."}), 502
        else:
            duration = (quiz.get("settings") or {}).get("duration", DEFAULT_SETTINGS["duration"])
            analysis = analyze_attempt(attempt, time_taken_minutes=time_taken, duration_minutes=duration)

        return jsonify({
            "attempt": attempt,
            "analysis": analysis,
            "analyzer": "llm" if use_llm else "rules",
        }), 200

    except json.JSONDecodeError as e:
        print(f"❌ JSON Decode Error: {e}")
        return jsonify({"error": "Model returned invalid JSON."}), 502
    except Exception as e:
        print(f"❌ Server Error in analyze_quiz_attempt: {e}")
        return jsonify({"error": f"Server error: {str(e)}"}), 500
