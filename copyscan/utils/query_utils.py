import logging
import math
import re
from typing import List

from copyscan.config import (
    MAX_SEARCH_QUERIES,
    MIN_PHRASE_LENGTH,
    MAX_PHRASE_LENGTH,
    MAX_IMPORTANT_SENTENCES,
)
from copyscan.logger import preview
from copyscan.utils.phrase_utils import extract_key_phrases, identify_important_words
from copyscan.utils.text_stats import extract_sentences

logger = logging.getLogger("query_utils")

PHRASE_QUERY_SHARE = 0.6
SENTENCE_QUERY_SHARE = 0.4
MAX_FRAGMENT_WORDS = 12
MIN_FRAGMENT_CHARS = 20

_METHOD_TERMS = re.compile(r"\b(?:research|study|analysis|method|approach|system|process)\b", re.IGNORECASE)
_DIGITS = re.compile(r"\d+")


def select_important_sentences(sentences: List[str], full_text: str,
                               limit: int = MAX_IMPORTANT_SENTENCES) -> List[str]:
    """Rank sentences by important-word hits, length band, digits and methodology terms."""
    important = {w.word for w in identify_important_words(full_text)}

    scored = []
    for sentence in sentences:
        words = sentence.lower().split()
        score = float(sum(1 for w in words if w in important))

        if 8 <= len(words) <= 20:
            score += 2
        elif 5 <= len(words) <= 30:
            score += 1

        if _DIGITS.search(sentence):
            score += 0.5
        if _METHOD_TERMS.search(sentence):
            score += 1

        scored.append((score, sentence))

    scored.sort(key=lambda item: item[0], reverse=True)
    return [s for _, s in scored[:limit]]


def extract_searchable_fragment(sentence: str) -> str:
    """Long sentences are trimmed to their middle 60% (20th to 80th percentile token)."""
    words = sentence.split()
    if len(words) <= MAX_FRAGMENT_WORDS:
        return sentence
    start = math.floor(len(words) * 0.2)
    end = math.floor(len(words) * 0.8)
    return " ".join(words[start:end])


def extract_search_queries(text: str, max_queries: int = MAX_SEARCH_QUERIES,
                           min_phrase_length: int = MIN_PHRASE_LENGTH) -> List[str]:
    """
    Build exact-phrase search queries from a document.
    60% of the allowed queries go to key phrases, 40% to fragments of important sentences.
    """
    max_queries = max_queries or MAX_SEARCH_QUERIES
    min_phrase_length = min_phrase_length or MIN_PHRASE_LENGTH
    try:
        key_phrases = extract_key_phrases(text, min_length=min_phrase_length, max_length=MAX_PHRASE_LENGTH)
        important_sentences = select_important_sentences(extract_sentences(text), text)

        queries = {}
        for phrase in key_phrases[:math.ceil(max_queries * PHRASE_QUERY_SHARE)]:
            queries[f'"{phrase.text}"'] = None

        for sentence in important_sentences[:math.ceil(max_queries * SENTENCE_QUERY_SHARE)]:
            fragment = extract_searchable_fragment(sentence)
            if fragment and len(fragment) > MIN_FRAGMENT_CHARS:
                queries[f'"{fragment}"'] = None

        result = list(queries)[:max_queries]
        logger.info(f"   🔍 Generated {len(result)} search queries")
        for i, q in enumerate(result, 1):
            logger.debug(f"      Query {i}: {preview(q, 80)}")
        return result
    except Exception as e:
        logger.error(f"Query extraction error: {preview(e)}")
        return []
