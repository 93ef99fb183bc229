"""
Pairwise lexical similarity between a checked text (A) and a candidate source (B).

overall_score blends two signals:
  1) shingle score: max(Jaccard, containment of A in B) over token n-grams,
     robust to reordering of whole passages
  2) LCS ratio: longest common token subsequence over A's length,
     sensitive to verbatim copying
"""
import logging
import re
from collections import defaultdict
from typing import Dict, List, Set, Tuple

import numpy as np
from nltk.util import ngrams
from rapidfuzz.distance import LCSseq

from copyscan.config import (
    SHINGLE_SIZE,
    SHINGLE_WEIGHT,
    LCS_WEIGHT,
    MIN_SEGMENT_WORDS,
    CONTEXT_WINDOW_WORDS,
    MAX_COMPARE_TOKENS,
)
from copyscan.schemas.detection_schemas import MatchedSegment, SegmentMatch, SimilarityScore
from copyscan.utils.phrase_utils import STOP_WORDS

_TOKEN = re.compile(r"\w+")

logger = logging.getLogger("similarity")


def normalize_text(text: str) -> str:
    if not text:
        return ""
    text = text.lower()
    text = text.replace("\u00ad", "")
    text = re.sub(r"-\s*\n\s*", "", text)
    text = (text.replace("’", "'").replace("‘", "'")
                .replace("“", '"').replace("”", '"')
                .replace("—", "-").replace("–", "-"))
    text = re.sub(r"[^\w\s]", " ", text)
    return re.sub(r"\s+", " ", text).strip()


def _truncate(tokens: list) -> list:
    if len(tokens) > MAX_COMPARE_TOKENS:
        logger.warning(f"⚠️  Comparing only the first {MAX_COMPARE_TOKENS} of {len(tokens)} tokens")
        return tokens[:MAX_COMPARE_TOKENS]
    return tokens


def _content_tokens(text: str) -> List[str]:
    """Normalized tokens without stop-words (all tokens if nothing else is left)."""
    tokens = _truncate(normalize_text(text).split())
    content = [t for t in tokens if t not in STOP_WORDS]
    return content or tokens


def _word_shingles(tokens: List[str], k: int) -> Set[str]:
    return {" ".join(g) for g in ngrams(tokens, k)}


def _jaccard(a: Set[str], b: Set[str]) -> float:
    if not a and not b:
        return 0.0
    inter = len(a & b)
    union = len(a | b) or 1
    return inter / union


def _containment(a: Set[str], b: Set[str]) -> float:
    if not a:
        return 0.0
    inter = len(a & b)
    return inter / len(a)


def _vocabulary_index(a_tokens: List[str], b_tokens: List[str]) -> Dict[str, int]:
    """Stable integer id per distinct token (position in the sorted vocabulary)."""
    return {w: i for i, w in enumerate(sorted(set(a_tokens) | set(b_tokens)))}


def _cosine(a_tokens: List[str], b_tokens: List[str], index: Dict[str, int]) -> float:
    if not index:
        return 0.0
    va = np.zeros(len(index))
    vb = np.zeros(len(index))
    for t in a_tokens:
        va[index[t]] += 1
    for t in b_tokens:
        vb[index[t]] += 1
    denom = np.linalg.norm(va) * np.linalg.norm(vb)
    if denom == 0:
        return 0.0
    return float(min(1.0, np.dot(va, vb) / denom))


def _lcs_ratio(a_tokens: List[str], b_tokens: List[str], index: Dict[str, int]) -> float:
    if not a_tokens or not b_tokens:
        return 0.0
    # rapidfuzz compares str elements by hash(); integer ids are seed-independent
    a_ids = [index[t] for t in a_tokens]
    b_ids = [index[t] for t in b_tokens]
    return min(1.0, LCSseq.similarity(a_ids, b_ids) / len(a_tokens))


def _blank_score(value: float, a_len: int = 0, b_len: int = 0) -> SimilarityScore:
    return SimilarityScore(
        overall_score=value, shingle_score=value, jaccard=value, containment=value,
        cosine=value, lcs_ratio=value, text_a_tokens=a_len, text_b_tokens=b_len,
    )


def calculate_similarity(
    text_a: str,
    text_b: str,
    shingle_size: int = SHINGLE_SIZE,
    shingle_weight: float = SHINGLE_WEIGHT,
    lcs_weight: float = LCS_WEIGHT,
) -> SimilarityScore:
    """Score how much of ``text_a`` is reproduced in ``text_b`` (0–1)."""
    a_tokens = _content_tokens(text_a)
    b_tokens = _content_tokens(text_b)

    if not a_tokens or not b_tokens:
        # Nothing tokenizable (e.g. pure punctuation): only identical input counts
        a, b = (text_a or "").strip(), (text_b or "").strip()
        return _blank_score(1.0 if a and a == b else 0.0, len(a_tokens), len(b_tokens))

    k = max(1, min(shingle_size, len(a_tokens), len(b_tokens)))
    A, B = _word_shingles(a_tokens, k), _word_shingles(b_tokens, k)
    jac = _jaccard(A, B)
    con = _containment(A, B)
    shingle = max(jac, con)
    index = _vocabulary_index(a_tokens, b_tokens)
    lcs = _lcs_ratio(a_tokens, b_tokens, index)

    total_weight = shingle_weight + lcs_weight
    overall = (shingle * shingle_weight + lcs * lcs_weight) / total_weight if total_weight > 0 else 0.0
    overall = min(1.0, max(0.0, overall))

    return SimilarityScore(
        overall_score=round(overall, 4),
        shingle_score=round(shingle, 4),
        jaccard=round(jac, 4),
        containment=round(con, 4),
        cosine=round(_cosine(a_tokens, b_tokens, index), 4),
        lcs_ratio=round(lcs, 4),
        common_words=len(set(a_tokens) & set(b_tokens)),
        text_a_tokens=len(a_tokens),
        text_b_tokens=len(b_tokens),
    )


def _token_spans(text: str) -> List[Tuple[str, int, int]]:
    return _truncate([(m.group(0).lower(), m.start(), m.end()) for m in _TOKEN.finditer(text or "")])


def _common_runs(a: List[str], b: List[str], min_words: int) -> Tuple[Tuple[int, int, int], List[Tuple[int, int, int]]]:
    """
    Longest common token substring plus every maximal shared run of at least
    ``min_words`` tokens, as (length, start_a, start_b).
    Only pairs of equal tokens are visited, so cost follows the number of
    shared-token pairs rather than len(a) * len(b).
    """
    positions: Dict[str, List[int]] = defaultdict(list)
    for j, tok in enumerate(b):
        positions[tok].append(j)

    best = (0, 0, 0)
    runs: List[Tuple[int, int, int]] = []
    prev: Dict[int, int] = {}
    for i, tok in enumerate(a):
        curr: Dict[int, int] = {}
        for j in positions.get(tok, ()):
            length = prev.get(j - 1, 0) + 1
            curr[j] = length
            if length > best[0]:
                best = (length, i - length + 1, j - length + 1)
        for j, length in prev.items():
            if j + 1 not in curr and length >= min_words:
                runs.append((length, i - length, j - length + 1))
        prev = curr
    for j, length in prev.items():
        if length >= min_words:
            runs.append((length, len(a) - length, j - length + 1))
    return best, runs


def _select_segments(runs: List[Tuple[int, int, int]]) -> List[Tuple[int, int, int]]:
    """Longest first; drop runs overlapping an already chosen span of A."""
    used: Set[int] = set()
    chosen = []
    for length, start_a, start_b in sorted(runs, key=lambda r: (-r[0], r[1], r[2])):
        span = range(start_a, start_a + length)
        if any(p in used for p in span):
            continue
        used.update(span)
        chosen.append((length, start_a, start_b))
    return chosen


def find_matching_segments(text_a: str, text_b: str, min_words: int = MIN_SEGMENT_WORDS,
                           context_words: int = CONTEXT_WINDOW_WORDS) -> SegmentMatch:
    """
    Locate text shared verbatim (case and punctuation insensitive) by both texts.
    The longest shared run is returned as a slice of ``text_a`` together with
    ``context_words`` words of ``text_a`` on each side.
    """
    spans = _token_spans(text_a)
    b_tokens = [t for t, _, _ in _token_spans(text_b)]
    if not spans or not b_tokens:
        return SegmentMatch()

    (length, start, _), runs = _common_runs([t for t, _, _ in spans], b_tokens, min_words)
    if length == 0:
        return SegmentMatch()

    def _slice(first: int, last: int) -> str:
        return text_a[spans[first][1]:spans[last][2]]

    segments = [
        MatchedSegment(
            text=_slice(sa, sa + n - 1),
            word_count=n,
            char_count=len(_slice(sa, sa + n - 1)),
            position_a=sa,
            position_b=sb,
        )
        for n, sa, sb in _select_segments(runs)
    ]

    end = start + length - 1
    longest = _slice(start, end)
    before = text_a[spans[max(0, start - context_words)][1]:spans[start][1]].strip() if start > 0 else ""
    after = ""
    if end < len(spans) - 1:
        after = text_a[spans[end][2]:spans[min(len(spans) - 1, end + context_words)][2]].strip()

    return SegmentMatch(
        segments=segments,
        longest_match=longest,
        context_before=before,
        context_after=after,
        matched_word_count=length,
        matched_char_count=len(longest),
    )


def health_check() -> dict:
    try:
        sample = "Plagiarism detection compares shared passages of text."
        score = calculate_similarity(sample, sample)
        return {
            "healthy": score.overall_score == 1.0,
            "algorithms": ["shingle", "jaccard", "containment", "cosine", "lcs"],
            "shingle_size": SHINGLE_SIZE,
            "weights": {"shingle": SHINGLE_WEIGHT, "lcs": LCS_WEIGHT},
        }
    except Exception as e:
        return {"healthy": False, "error": str(e)}
