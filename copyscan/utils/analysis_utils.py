"""
Content analysis: statistics, key phrases, important words, readability and
entities for a submitted text, bundled into one immutable TextAnalysis.
"""
import logging

from copyscan.errors import AnalysisFailure
from copyscan.logger import preview
from copyscan.schemas.detection_schemas import TextAnalysis
from copyscan.utils.phrase_utils import (
    STOP_WORDS,
    SEARCHABLE_WORDS,
    extract_key_phrases,
    identify_important_words,
)
from copyscan.utils.text_stats import (
    calculate_basic_stats,
    calculate_readability,
    extract_entities,
    extract_paragraphs,
    extract_sentences,
)

logger = logging.getLogger("content_analysis")


def analyze_text(text: str) -> TextAnalysis:
    """
    Analyze a text. Empty or whitespace-only input yields zeroed statistics;
    callers treat ``word_count == 0`` as "nothing to analyze".
    """
    if not isinstance(text, str):
        raise AnalysisFailure(f"Cannot analyze content of type {type(text).__name__}")
    if not text.strip():
        return TextAnalysis()

    try:
        stats = calculate_basic_stats(text)
        sentences = extract_sentences(text)
        return TextAnalysis(
            **stats,
            sentences=sentences,
            paragraphs=extract_paragraphs(text),
            key_phrases=extract_key_phrases(text),
            important_words=identify_important_words(text),
            readability=calculate_readability(text, sentences, stats["word_count"]),
            entities=extract_entities(text),
        )
    except Exception as e:
        logger.error(f"Analysis error: {preview(e)}")
        raise AnalysisFailure(f"Text analysis failed: {e}") from e


def health_check() -> dict:
    try:
        analysis = calculate_basic_stats("This is a test sentence for analysis.")
        return {
            "healthy": analysis["word_count"] == 7,
            "features": [
                "Text statistics",
                "Key phrase extraction",
                "Important word identification",
                "Readability analysis",
                "Named entity extraction",
                "Search query generation",
            ],
            "stop_words_count": len(STOP_WORDS),
            "searchable_words_count": len(SEARCHABLE_WORDS),
        }
    except Exception as e:
        return {"healthy": False, "error": str(e)}
