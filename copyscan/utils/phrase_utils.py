import re
from typing import Dict, List, Optional

from nltk import FreqDist
from nltk.util import ngrams

from copyscan.config import (
    MIN_PHRASE_LENGTH,
    MAX_PHRASE_LENGTH,
    MAX_PHRASE_TOKENS,
    MAX_KEY_PHRASES,
    MAX_IMPORTANT_WORDS,
)
from copyscan.schemas.detection_schemas import ImportantWord, KeyPhrase

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "is", "are", "was", "were", "be", "been", "being", "have",
    "has", "had", "do", "does", "did", "will", "would", "could", "should",
    "may", "might", "can", "this", "that", "these", "those", "i", "you", "he",
    "she", "it", "we", "they", "me", "him", "her", "us", "them", "my", "your",
    "his", "its", "our", "their", "mine", "yours", "hers", "ours", "theirs",
    "am", "very", "much", "many", "most", "more", "some", "any", "all", "each",
    "every", "both", "either", "neither", "not", "no", "yes", "well", "also",
    "too", "only", "just", "even", "still", "yet",
})

# Vocabulary that tends to make a phrase worth searching for
SEARCHABLE_WORDS = frozenset({
    "technology", "business", "development", "management", "system",
    "process", "method", "approach", "strategy", "solution", "problem",
    "issue", "challenge", "opportunity", "research", "study", "analysis",
    "report", "data", "information", "knowledge", "learning", "education",
    "training", "skill", "experience", "expertise", "professional",
    "industry", "market", "customer", "client", "service", "product",
    "quality", "performance", "result",
})

LONG_WORD_CHARS = 6

_NON_WORD = re.compile(r"[^\w\s]")


def clean_tokens(text: str) -> List[str]:
    """Lower-case, replace punctuation with spaces, split on whitespace."""
    return _NON_WORD.sub(" ", (text or "").lower()).split()


def _phrase_score(phrase, n: int, min_length: int) -> Optional[float]:
    stop_count = sum(1 for w in phrase if w in STOP_WORDS)
    if stop_count > n // 2:
        return None
    if not any(w in SEARCHABLE_WORDS or len(w) > LONG_WORD_CHARS for w in phrase):
        return None

    score = 1.0
    score += (n - min_length) * 0.5
    score += sum(1 for w in phrase if w in SEARCHABLE_WORDS) * 0.3
    score += sum(1 for w in phrase if len(w) > LONG_WORD_CHARS) * 0.2
    return score


def extract_key_phrases(
    text: str,
    min_length: int = MIN_PHRASE_LENGTH,
    max_length: int = MAX_PHRASE_LENGTH,
    limit: int = MAX_KEY_PHRASES,
) -> List[KeyPhrase]:
    """
    Mine n-gram key phrases (n in [min_length, max_length]).
    Repeated phrase text accumulates score; ties keep first-seen order.
    """
    words = [w for w in clean_tokens(text) if len(w) > 2][:MAX_PHRASE_TOKENS]

    phrases: Dict[str, float] = {}
    for n in range(min_length, max_length + 1):
        for phrase in ngrams(words, n):
            score = _phrase_score(phrase, n, min_length)
            if score is None:
                continue
            key = " ".join(phrase)
            phrases[key] = phrases.get(key, 0.0) + score

    ranked = sorted(phrases.items(), key=lambda kv: kv[1], reverse=True)
    return [KeyPhrase(text=t, score=round(s, 4)) for t, s in ranked[:limit]]


def identify_important_words(text: str, limit: int = MAX_IMPORTANT_WORDS) -> List[ImportantWord]:
    """Term-frequency ranking with boosts for searchable, long and capitalized words."""
    text = text or ""
    words = [w for w in clean_tokens(text) if len(w) > 3 and w not in STOP_WORDS]
    if not words:
        return []

    freq = FreqDist(words)
    total = len(words)
    important = []
    for word, count in freq.items():
        tf = count / total
        importance = tf
        if word in SEARCHABLE_WORDS:
            importance *= 1.5
        if len(word) > LONG_WORD_CHARS:
            importance *= 1.2
        if word[0].upper() + word[1:] in text:
            importance *= 1.3
        important.append(ImportantWord(word=word, frequency=count, importance=importance, tf_score=tf))

    important.sort(key=lambda w: w.importance, reverse=True)
    return important[:limit]
