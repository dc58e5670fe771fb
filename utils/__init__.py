from utils.groq_utils import (
    DEFAULT_GROQ_MODEL,
    ANALYSIS_SYSTEM_PROMPT,
    EXTRACTION_SYSTEM_PROMPT,
    analyze_performance_llm,
    build_analysis_prompt,
    build_extraction_prompt,
    call_groq_json,
    extract_flat_questions_llm,
)
from utils.marker_parser import (
    FALLBACK_CHAPTER_CODE,
    FALLBACK_SECTION_ID,
    parse_answer_key,
    parse_questions,
    parse_raw_quiz,
)
