# utils/groq_utils.py
import json
from typing import List, Dict, Any, Optional
from groq import Groq

# Choose a sensible default model here so .env only needs the API key
DEFAULT_GROQ_MODEL = "llama-3.3-70b-versatile"

EXTRACTION_SYSTEM_PROMPT = """You are an expert data parser for a competitive exam preparation app.
Convert raw question text and a raw answer key into a FLAT list of question records
in strict JSON (no prose outside JSON).

Marker rules:
- A question may be prefixed with a section id and a chapter code, in either form:
    #PHY #000001 1. A ball is thrown ...
    #PHY-000001 1. A ball is thrown ...
- A question without a marker belongs to the section/chapter of the last marker seen.
  Markers only appear when the chapter changes.
- If a marker does not correspond to any section or chapter of the provided structure,
  use sectionId "GEN" and chapterBinaryCode "000000".

Answer rules:
- Match each question number against the answer key to find the correct option letter
  and the explanation, if one is given.

ALWAYS return a single JSON object with:
{
 "questions": [
    {
      "questionNumber": 1,
      "text": "full question text",
      "options": [{"id": "A", "text": "..."}, {"id": "B", "text": "..."}],
      "correctOptionId": "A",
      "explanation": "optional explanation from the answer key",
      "sectionId": "PHY",
      "chapterBinaryCode": "000001"
    }
 ]
}"""


def call_groq_json(
    system_prompt: str,
    user_prompt: str,
    api_key: str,
    model: Optional[str] = None,
    temperature: float = 0.1,
    max_tokens: int = 6000,
) -> dict:
    """Call Groq in JSON mode and return parsed dict."""
    client = Groq(api_key=api_key)
    chat = client.chat.completions.create(
        model=model or DEFAULT_GROQ_MODEL,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        temperature=temperature,
        max_tokens=max_tokens,
        response_format={"type": "json_object"},
    )
    content = chat.choices[0].message.content
    return json.loads(content)


def build_extraction_prompt(
    *,
    raw_questions: str,
    raw_answers: str,
    structure: List[Dict[str, Any]],
) -> str:
    """
    Build the 'user' prompt for the text → flat question list extraction.
    - structure: sections and chapters WITHOUT questions
    """
    return f"""
Parse the data below and return STRICT JSON ONLY.

Predefined structure (sections with their chapters):
```json
{json.dumps(structure, indent=2, ensure_ascii=False)}
```

Raw questions:
```
{raw_questions}
```

Raw answer key:
```
{raw_answers}
```
"""


def extract_flat_questions_llm(
    *,
    raw_questions: str,
    raw_answers: str,
    structure: List[Dict[str, Any]],
    api_key: str,
    model: Optional[str] = None,
    temperature: float = 0.1,
    max_tokens: int = 6000,
) -> Optional[List[Dict[str, Any]]]:
    """
    Ask the LLM for the flat question list.

    Returns None when the model's JSON carries no question list; the
    reconciler turns that into an ExtractionFailure.
    """
    out = call_groq_json(
        system_prompt=EXTRACTION_SYSTEM_PROMPT,
        user_prompt=build_extraction_prompt(
            raw_questions=raw_questions,
            raw_answers=raw_answers,
            structure=structure,
        ),
        api_key=api_key,
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
    )

    if isinstance(out, dict):
        # Support either {"questions":[...]} or {"items":[...]}
        for key in ["questions", "items"]:
            if isinstance(out.get(key), list):
                print(f"✅ LLM extracted {len(out[key])} question record(s)")
                return out[key]
    if isinstance(out, list):
        return out

    print(f"❌ LLM output had no question list: {str(out)[:200]}")
    return None


ANALYSIS_SYSTEM_PROMPT = """You are an expert study advisor for competitive exam aspirants.
Analyze a student's quiz attempt and give personalized, actionable suggestions.
Return STRICT JSON only:
{
  "summary": "overall summary of the performance",
  "strongAreas": ["topic", ...],
  "weakAreas": ["topic", ...],
  "timeManagementAnalysis": "feedback on time use",
  "difficultyAnalysis": "performance across difficulty levels, if known",
  "personalizedRecommendations": ["specific advice", ...]
}"""

ANALYSIS_TEXT_KEYS = ("summary", "timeManagementAnalysis", "difficultyAnalysis")
ANALYSIS_LIST_KEYS = ("strongAreas", "weakAreas", "personalizedRecommendations")


def build_analysis_prompt(
    *,
    attempt: Dict[str, Any],
    user_name: str = "the student",
    exam_name: str = "the exam",
    time_taken_minutes: Optional[float] = None,
    time_spent: Optional[Dict[Any, Any]] = None,
) -> str:
    """
    Build the 'user' prompt for attempt analysis.
    - attempt: output of services.scoring_service.score_attempt
    - time_spent: optional {questionNumber: seconds}
    """
    time_spent = {str(k): v for k, v in (time_spent or {}).items()}
    lines = []
    for r in attempt.get("questionResults") or []:
        status = "correct" if r.get("isCorrect") else ("incorrect" if r.get("attempted") else "unattempted")
        line = f"- Question {r.get('questionNumber')}: Topic '{r.get('topic')}', {status}"
        seconds = time_spent.get(str(r.get("questionNumber")))
        if seconds is not None:
            line += f", Time Spent: {seconds} seconds"
        lines.append(line)

    taken = f"{time_taken_minutes} minutes" if time_taken_minutes is not None else "not recorded"
    details = "\n".join(lines) or "- none"
    return f"""
Analyze this quiz attempt by {user_name} for {exam_name} (Quiz ID: {attempt.get('quizId')}).

Overall Performance:
- Total Questions: {attempt.get('totalQuestions')}
- Correct Answers: {attempt.get('correctAnswers')}
- Incorrect Answers: {attempt.get('incorrectAnswers')}
- Unattempted Questions: {attempt.get('unattempted')}
- Score: {attempt.get('score')} / {attempt.get('maxScore')} ({attempt.get('scorePercentage')}%)
- Total Time Taken: {taken}

Question-wise Details:
{details}
"""


def analyze_performance_llm(
    *,
    attempt: Dict[str, Any],
    api_key: str,
    model: Optional[str] = None,
    user_name: str = "the student",
    exam_name: str = "the exam",
    time_taken_minutes: Optional[float] = None,
    time_spent: Optional[Dict[Any, Any]] = None,
    temperature: float = 0.4,
    max_tokens: int = 2000,
) -> Optional[Dict[str, Any]]:
    """
    Ask the LLM for a performance analysis of a scored attempt.

    Returns None when the model's JSON is not an analysis object.
    """
    out = call_groq_json(
        system_prompt=ANALYSIS_SYSTEM_PROMPT,
        user_prompt=build_analysis_prompt(
            attempt=attempt,
            user_name=user_name,
            exam_name=exam_name,
            time_taken_minutes=time_taken_minutes,
            time_spent=time_spent,
        ),
        api_key=api_key,
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
    )

    if not isinstance(out, dict) or not str(out.get("summary") or "").strip():
        print(f"❌ LLM output had no analysis: {str(out)[:200]}")
        return None

    analysis = {k: str(out.get(k) or "").strip() for k in ANALYSIS_TEXT_KEYS}
    for k in ANALYSIS_LIST_KEYS:
        items = out.get(k)
        if not isinstance(items, list):
            items = [items] if items else []
        analysis[k] = [str(i).strip() for i in items if str(i).strip()]
    print(f"✅ LLM analysis ready ({len(analysis['weakAreas'])} weak area(s))")
    return analysis
