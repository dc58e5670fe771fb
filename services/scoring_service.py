"""Scoring and performance analysis for submitted quiz attempts."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from services.quiz_models import structure_from_dicts
from services.quiz_service import DEFAULT_SETTINGS, flatten_questions

STRONG_ACCURACY = 70.0
WEAK_ACCURACY = 50.0


@dataclass
class QuestionResult:
    question_number: int
    section_id: str
    chosen: Optional[str]
    correct_option_id: str
    topic: str = ""

    @property
    def attempted(self) -> bool:
        return bool(self.chosen)

    @property
    def is_correct(self) -> bool:
        return self.attempted and self.chosen == self.correct_option_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionNumber": self.question_number,
            "sectionId": self.section_id,
            "topic": self.topic,
            "chosen": self.chosen,
            "correctOptionId": self.correct_option_id,
            "attempted": self.attempted,
            "isCorrect": self.is_correct,
        }


def _normalize_answers(answers: Dict[Any, Any]) -> Dict[int, str]:
    # JSON object keys arrive as strings
    out: Dict[int, str] = {}
    for key, value in (answers or {}).items():
        try:
            number = int(key)
        except (TypeError, ValueError):
            continue
        if value is None:
            continue
        choice = str(value).strip().upper()
        if choice:
            out[number] = choice
    return out


def score_attempt(quiz: Dict[str, Any], answers: Dict[Any, Any]) -> Dict[str, Any]:
    """
    Score an attempt with positive/negative marking.

    Args:
        quiz: Quiz dict with "structure" and optional "settings"
        answers: {questionNumber: optionId}; unanswered questions are omitted

    Returns:
        dict: Score, counts, per-section performance and per-question results
    """
    settings = {**DEFAULT_SETTINGS, **(quiz.get("settings") or {})}
    positive = settings["positiveMarks"]
    negative = settings["negativeMarks"]

    sections = structure_from_dicts(quiz.get("structure") or [])
    chosen = _normalize_answers(answers)
    results: List[QuestionResult] = [
        QuestionResult(
            question_number=q["questionNumber"],
            section_id=q["sectionId"],
            chosen=chosen.get(q["questionNumber"]),
            correct_option_id=q["correctOptionId"],
            topic=f"{q['sectionName']}: {q['chapterName']}",
        )
        for q in flatten_questions(sections)
    ]

    correct = sum(1 for r in results if r.is_correct)
    incorrect = sum(1 for r in results if r.attempted and not r.is_correct)

    section_performance = []
    for section in sections:
        in_section = [r for r in results if r.section_id == section.id]
        s_correct = sum(1 for r in in_section if r.is_correct)
        s_incorrect = sum(1 for r in in_section if r.attempted and not r.is_correct)
        attempted = s_correct + s_incorrect
        section_performance.append({
            "sectionId": section.id,
            "sectionName": section.name,
            "totalQuestions": len(in_section),
            "correct": s_correct,
            "incorrect": s_incorrect,
            "accuracy": round(s_correct / attempted * 100, 2) if attempted else 0,
        })

    score = correct * positive + incorrect * negative
    max_score = len(results) * positive
    return {
        "quizId": quiz.get("id"),
        "score": score,
        "maxScore": max_score,
        "scorePercentage": round(score / max_score * 100, 2) if max_score else 0,
        "totalQuestions": len(results),
        "correctAnswers": correct,
        "incorrectAnswers": incorrect,
        "unattempted": len(results) - (correct + incorrect),
        "marksLost": -(incorrect * negative),
        "sectionPerformance": section_performance,
        "questionResults": [r.to_dict() for r in results],
    }


def _topic_accuracy(question_results: List[Dict[str, Any]]) -> Dict[str, float]:
    # unattempted questions count against the topic
    totals: Dict[str, List[int]] = {}
    for r in question_results:
        tally = totals.setdefault(r.get("topic") or "General", [0, 0])
        tally[1] += 1
        if r.get("isCorrect"):
            tally[0] += 1
    return {topic: c / n * 100 for topic, (c, n) in totals.items()}


def analyze_attempt(
    attempt: Dict[str, Any],
    time_taken_minutes: Optional[float] = None,
    duration_minutes: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Rule-based performance analysis, used when no LLM is configured.

    Args:
        attempt: Output of score_attempt
        time_taken_minutes: Time the student used, if recorded
        duration_minutes: Time allowed by the quiz settings

    Returns:
        dict: summary, strongAreas, weakAreas, timeManagementAnalysis,
        difficultyAnalysis, personalizedRecommendations
    """
    accuracy = _topic_accuracy(attempt.get("questionResults") or [])
    strong = [t for t, a in accuracy.items() if a >= STRONG_ACCURACY]
    weak = [t for t, a in accuracy.items() if a < WEAK_ACCURACY]

    total = attempt.get("totalQuestions", 0)
    correct = attempt.get("correctAnswers", 0)
    incorrect = attempt.get("incorrectAnswers", 0)
    unattempted = attempt.get("unattempted", 0)
    summary = (
        f"{correct} of {total} correct, {incorrect} incorrect and {unattempted} unattempted. "
        f"Score {attempt.get('score', 0)} / {attempt.get('maxScore', 0)} "
        f"({attempt.get('scorePercentage', 0)}%)."
    )

    if time_taken_minutes is None:
        time_note = "No timing data was recorded for this attempt."
    elif duration_minutes and time_taken_minutes < duration_minutes * 0.5 and unattempted:
        time_note = (
            f"Finished in {time_taken_minutes:g} of {duration_minutes:g} minutes with "
            f"{unattempted} question(s) left. Use the remaining time on them."
        )
    elif duration_minutes and time_taken_minutes >= duration_minutes:
        time_note = f"Used the full {duration_minutes:g} minutes. Practise under a tighter clock."
    else:
        time_note = f"Took {time_taken_minutes:g} minutes."

    recommendations = [f"Revise {t} and re-attempt its questions." for t in weak]
    if unattempted:
        recommendations.append(f"{unattempted} question(s) were skipped; review them before the next test.")
    if attempt.get("marksLost"):
        recommendations.append(
            f"Negative marking cost {attempt['marksLost']:g} mark(s). Skip questions you cannot narrow to two options."
        )
    if not recommendations:
        recommendations.append("Keep practising full-length tests to hold this level.")

    return {
        "summary": summary,
        "strongAreas": strong,
        "weakAreas": weak,
        "timeManagementAnalysis": time_note,
        "difficultyAnalysis": "Questions carry no difficulty rating, so no per-difficulty breakdown is available.",
        "personalizedRecommendations": recommendations,
    }
