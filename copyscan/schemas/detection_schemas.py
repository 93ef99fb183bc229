from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from copyscan.config import MAX_TEXT_LENGTH, MAX_QUERIES_PER_CHECK, MIN_PHRASE_LENGTH_PER_CHECK


class MatchType(str, Enum):
    EXACT = "exact"
    NEAR_EXACT = "near-exact"
    PARTIAL = "partial"
    PARAPHRASE = "paraphrase"


class RiskLevel(str, Enum):
    MINIMAL = "minimal"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---- Content analysis ----

class KeyPhrase(FrozenModel):
    text: str
    score: float


class ImportantWord(FrozenModel):
    word: str
    frequency: int
    importance: float
    tf_score: float


class Readability(FrozenModel):
    avg_words_per_sentence: float = 0.0
    avg_syllables_per_word: float = 0.0
    flesch_score: float = 0.0
    level: str = "Unknown"


class Entities(FrozenModel):
    organizations: List[str] = Field(default_factory=list)
    locations: List[str] = Field(default_factory=list)
    dates: List[str] = Field(default_factory=list)
    numbers: List[str] = Field(default_factory=list)


class TextAnalysis(FrozenModel):
    character_count: int = 0
    character_count_no_spaces: int = 0
    word_count: int = 0
    average_word_length: float = 0.0
    longest_word: str = ""
    sentences: List[str] = Field(default_factory=list)
    paragraphs: List[str] = Field(default_factory=list)
    key_phrases: List[KeyPhrase] = Field(default_factory=list)
    important_words: List[ImportantWord] = Field(default_factory=list)
    readability: Readability = Field(default_factory=Readability)
    entities: Entities = Field(default_factory=Entities)

    @property
    def sentence_count(self) -> int:
        return len(self.sentences)

    @property
    def paragraph_count(self) -> int:
        return len(self.paragraphs)


# ---- Similarity ----

class SimilarityScore(FrozenModel):
    overall_score: float      # 0–1
    shingle_score: float
    jaccard: float
    containment: float
    cosine: float
    lcs_ratio: float
    common_words: int = 0
    text_a_tokens: int = 0
    text_b_tokens: int = 0


class MatchedSegment(FrozenModel):
    text: str                 # verbatim slice of the checked text
    word_count: int
    char_count: int
    position_a: int           # token offset in the checked text
    position_b: int           # token offset in the candidate text


class SegmentMatch(FrozenModel):
    segments: List[MatchedSegment] = Field(default_factory=list)
    longest_match: str = ""
    context_before: str = ""
    context_after: str = ""
    matched_word_count: int = 0
    matched_char_count: int = 0

    @property
    def total_segments(self) -> int:
        return len(self.segments)


# ---- Collaborators ----

class SearchResult(FrozenModel):
    url: str
    title: str = ""
    snippet: str = ""
    source: str = ""


class ExtractedContent(FrozenModel):
    url: str = ""
    text: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


# ---- Detection ----

class DetectionOptions(FrozenModel):
    max_queries: int = Field(default=MAX_QUERIES_PER_CHECK, ge=1, le=20)
    min_phrase_length: int = Field(default=MIN_PHRASE_LENGTH_PER_CHECK, ge=2, le=8)
    exclude_urls: List[str] = Field(default_factory=list)


class CandidateMatch(FrozenModel):
    source_url: str
    title: str = "Untitled"
    similarity_score: int     # 0–100
    match_type: MatchType
    matched_segments: List[MatchedSegment] = Field(default_factory=list)
    matched_text: str = ""
    context_before: str = ""
    context_after: str = ""
    word_count: int = 0
    char_count: int = 0
    raw_similarity: float     # 0–1
    similarity: Optional[SimilarityScore] = None
    weight: float = 0.0
    contribution: float = 0.0


class DetectionStatistics(FrozenModel):
    total_matches: int = 0
    total_matched_words: int = 0
    matched_percentage: int = 0
    high_similarity_count: int = 0
    average_similarity: int = 0


class DetectionSummary(FrozenModel):
    total_words: int = 0
    total_sentences: int = 0
    key_phrases: int = 0
    search_queries: int = 0
    urls_checked: int = 0
    processing_time_ms: int = 0


class DetectionResult(FrozenModel):
    score: int = Field(default=0, ge=0, le=100)
    matches: List[CandidateMatch] = Field(default_factory=list)
    risk_level: RiskLevel = RiskLevel.MINIMAL
    statistics: DetectionStatistics = Field(default_factory=DetectionStatistics)
    summary: DetectionSummary = Field(default_factory=DetectionSummary)
    source_url: Optional[str] = None
    extracted_metadata: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ---- HTTP payloads ----

class CheckTextRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=MAX_TEXT_LENGTH)
    options: DetectionOptions = Field(default_factory=DetectionOptions)


class CheckUrlRequest(BaseModel):
    url: str = Field(..., min_length=1)
    options: DetectionOptions = Field(default_factory=DetectionOptions)
