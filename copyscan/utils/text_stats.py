import re
from typing import List

from copyscan.schemas.detection_schemas import Entities, Readability

MIN_SENTENCE_CHARS = 10
MIN_SENTENCE_WORDS = 3
MIN_PARAGRAPH_CHARS = 20

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")
_VOWEL_GROUPS = re.compile(r"[aeiouy]+")
_ALPHA_WORDS = re.compile(r"\b[a-z]+\b")

_ORG_PATTERN = re.compile(
    r"\b[A-Z][a-z]+ (?:[A-Z][a-z]+ )*"
    r"(?:Inc|Corp|LLC|Ltd|Company|Corporation|Organization|Institute|University|College)\b"
)
_LOCATION_PATTERN = re.compile(
    r"\b[A-Z][a-z]+ (?:City|State|Country|County|Province|Region|Street|Avenue|Road|Boulevard)\b"
)
_DATE_PATTERN = re.compile(
    r"\b(?:\d{1,2}/\d{1,2}/\d{2,4}|\d{1,2}-\d{1,2}-\d{2,4}|"
    r"(?:January|February|March|April|May|June|July|August|September|October|November|December)"
    r" \d{1,2},? \d{4})\b"
)
_NUMBER_PATTERN = re.compile(r"\b\d+(?:\.\d+)?%?")

# (minimum Flesch score, label), checked top-down
READING_LEVELS = (
    (90, "Very Easy"),
    (80, "Easy"),
    (70, "Fairly Easy"),
    (60, "Standard"),
    (50, "Fairly Difficult"),
    (30, "Difficult"),
)


def split_words(text: str) -> List[str]:
    return (text or "").split()


def extract_sentences(text: str) -> List[str]:
    """Sentences longer than 10 chars with at least 3 words."""
    sentences = []
    for s in _SENTENCE_SPLIT.split(text or ""):
        s = s.strip()
        if len(s) > MIN_SENTENCE_CHARS and len(s.split()) >= MIN_SENTENCE_WORDS:
            sentences.append(s)
    return sentences


def extract_paragraphs(text: str) -> List[str]:
    paragraphs = []
    for p in _PARAGRAPH_SPLIT.split(text or ""):
        p = p.strip()
        if len(p) > MIN_PARAGRAPH_CHARS:
            paragraphs.append(p)
    return paragraphs


def calculate_basic_stats(text: str) -> dict:
    clean = (text or "").strip()
    words = clean.split()
    no_spaces = len(re.sub(r"\s", "", clean))

    longest = ""
    for w in words:
        bare = re.sub(r"[^\w]", "", w)
        if len(bare) > len(longest):
            longest = bare

    return {
        "character_count": len(clean),
        "character_count_no_spaces": no_spaces,
        "word_count": len(words),
        "average_word_length": (no_spaces / len(words)) if words else 0.0,
        "longest_word": longest,
    }


def count_syllables(word: str) -> int:
    syllables = len(_VOWEL_GROUPS.findall(word))
    if word.endswith("e"):
        syllables -= 1
    return max(1, syllables)


def estimate_syllables(text: str) -> int:
    return sum(count_syllables(w) for w in _ALPHA_WORDS.findall((text or "").lower()))


def reading_level(flesch_score: float) -> str:
    for floor, label in READING_LEVELS:
        if flesch_score >= floor:
            return label
    return "Very Difficult"


def calculate_readability(text: str, sentences: List[str], word_count: int) -> Readability:
    if not sentences or word_count == 0:
        return Readability()

    words_per_sentence = word_count / len(sentences)
    syllables_per_word = estimate_syllables(text) / word_count
    flesch = 206.835 - 1.015 * words_per_sentence - 84.6 * syllables_per_word

    return Readability(
        avg_words_per_sentence=round(words_per_sentence, 1),
        avg_syllables_per_word=round(syllables_per_word, 1),
        flesch_score=round(flesch, 1),
        level=reading_level(flesch),
    )


def _unique(items: List[str]) -> List[str]:
    return list(dict.fromkeys(items))


def extract_entities(text: str) -> Entities:
    """Regex-only entity heuristics; each list is de-duplicated in first-seen order."""
    text = text or ""
    return Entities(
        organizations=_unique(_ORG_PATTERN.findall(text)),
        locations=_unique(_LOCATION_PATTERN.findall(text)),
        dates=_unique(_DATE_PATTERN.findall(text)),
        numbers=_unique(_NUMBER_PATTERN.findall(text)),
    )
