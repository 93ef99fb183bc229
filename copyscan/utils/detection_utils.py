"""
End-to-end plagiarism detection.

    text -> analysis -> search queries -> candidate URLs (sequential, rate limited)
         -> extract + score candidates (bounded concurrent batches)
         -> weighted aggregation -> DetectionResult
"""
import asyncio
import logging
import math
import time
from datetime import datetime, timezone
from typing import List, Optional

from copyscan.config import (
    MAX_SEARCH_RESULTS,
    MAX_CONCURRENT_CHECKS,
    MIN_SIMILARITY_THRESHOLD,
    MAX_QUERIES_SEARCHED,
    QUERY_DELAY,
    BATCH_DELAY,
    SHINGLE_WEIGHT,
    LCS_WEIGHT,
    HIGH_SIMILARITY_SCORE,
    RISK_HIGH_THRESHOLD,
    RISK_MEDIUM_THRESHOLD,
    RISK_LOW_THRESHOLD,
    EXACT_MATCH_THRESHOLD,
    NEAR_EXACT_MATCH_THRESHOLD,
    PARTIAL_MATCH_THRESHOLD,
    MAX_MULTI_SOURCE_PENALTY,
    MAX_HIGH_SIMILARITY_BONUS,
)
from copyscan.errors import (
    DetectionError,
    ExtractionFailure,
    GenericDetectionFailure,
    RateLimited,
)
from copyscan.logger import preview
from copyscan.schemas.detection_schemas import (
    CandidateMatch,
    DetectionOptions,
    DetectionResult,
    DetectionStatistics,
    DetectionSummary,
    MatchType,
    RiskLevel,
    TextAnalysis,
)
from copyscan.utils import analysis_utils, lexical_utils
from copyscan.utils.analysis_utils import analyze_text
from copyscan.utils.lexical_utils import calculate_similarity, find_matching_segments
from copyscan.utils.query_utils import extract_search_queries
from copyscan.utils.web_utils import ContentExtractor, SearchProvider

logger = logging.getLogger("detector")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(score: int) -> int:
    return max(0, min(100, score))


def determine_match_type(raw_similarity: float) -> MatchType:
    if raw_similarity >= EXACT_MATCH_THRESHOLD:
        return MatchType.EXACT
    if raw_similarity >= NEAR_EXACT_MATCH_THRESHOLD:
        return MatchType.NEAR_EXACT
    if raw_similarity >= PARTIAL_MATCH_THRESHOLD:
        return MatchType.PARTIAL
    return MatchType.PARAPHRASE


def calculate_risk_level(score: int) -> RiskLevel:
    if score >= RISK_HIGH_THRESHOLD:
        return RiskLevel.HIGH
    if score >= RISK_MEDIUM_THRESHOLD:
        return RiskLevel.MEDIUM
    if score >= RISK_LOW_THRESHOLD:
        return RiskLevel.LOW
    return RiskLevel.MINIMAL


def calculate_plagiarism_score(matches: List[CandidateMatch], analysis: TextAnalysis) -> DetectionResult:
    """
    Weighted aggregation of per-candidate scores.

    Each candidate contributes ``similarity_score * matched_words / total_words``.
    More than one matching source adds min(10, 2 * count); every candidate
    scoring >= 80 adds 5, up to 15. The score is clamped to [0, 100] after
    each step.
    """
    if not matches:
        return DetectionResult(score=0, matches=[], risk_level=RiskLevel.MINIMAL)

    total_words = analysis.word_count
    weighted_score = 0.0
    total_matched_words = 0
    processed = []
    for m in matches:
        weight = m.word_count / total_words if total_words else 0.0
        contribution = m.similarity_score * weight
        weighted_score += contribution
        total_matched_words += m.word_count
        processed.append(m.model_copy(update={"weight": weight, "contribution": contribution}))

    final_score = _clamp(round_half_up(weighted_score))

    if len(matches) > 1:
        final_score = _clamp(final_score + min(MAX_MULTI_SOURCE_PENALTY, len(matches) * 2))

    high_count = sum(1 for m in matches if m.similarity_score >= HIGH_SIMILARITY_SCORE)
    if high_count:
        final_score = _clamp(final_score + min(MAX_HIGH_SIMILARITY_BONUS, high_count * 5))

    processed.sort(key=lambda m: m.similarity_score, reverse=True)
    return DetectionResult(
        score=final_score,
        matches=processed,
        risk_level=calculate_risk_level(final_score),
        statistics=DetectionStatistics(
            total_matches=len(matches),
            total_matched_words=total_matched_words,
            matched_percentage=round_half_up(total_matched_words / total_words * 100) if total_words else 0,
            high_similarity_count=high_count,
            average_similarity=round_half_up(sum(m.similarity_score for m in matches) / len(matches)),
        ),
    )


def _cancelled(cancel_event: Optional[asyncio.Event]) -> bool:
    return cancel_event is not None and cancel_event.is_set()


class PlagiarismDetector:
    """
    Drives a plagiarism check against external search and extraction collaborators.

    Queries are issued one at a time with ``query_delay`` seconds between them.
    Candidate URLs are fetched and scored in batches of ``max_concurrent_checks``;
    a batch is joined before the next starts, ``batch_delay`` seconds apart.
    Setting the optional ``cancel_event`` stops new queries and batches while
    letting the running batch finish.
    """

    def __init__(
        self,
        search_provider: SearchProvider,
        content_extractor: ContentExtractor,
        max_search_results: int = MAX_SEARCH_RESULTS,
        max_concurrent_checks: int = MAX_CONCURRENT_CHECKS,
        min_similarity_threshold: float = MIN_SIMILARITY_THRESHOLD,
        query_delay: float = QUERY_DELAY,
        batch_delay: float = BATCH_DELAY,
        shingle_weight: float = SHINGLE_WEIGHT,
        lcs_weight: float = LCS_WEIGHT,
    ):
        self.search_provider = search_provider
        self.content_extractor = content_extractor
        self.max_search_results = max_search_results
        self.max_concurrent_checks = max(1, max_concurrent_checks)
        self.min_similarity_threshold = min_similarity_threshold
        self.query_delay = query_delay
        self.batch_delay = batch_delay
        self.shingle_weight = shingle_weight
        self.lcs_weight = lcs_weight

        self.checks_performed = 0
        self.last_check: Optional[datetime] = None

    async def check_text_content(self, text: str, options: Optional[DetectionOptions] = None,
                                 cancel_event: Optional[asyncio.Event] = None) -> DetectionResult:
        options = options or DetectionOptions()
        t0 = time.monotonic()
        try:
            analysis = analyze_text(text)
            if analysis.word_count == 0:
                logger.warning("⚠️  Nothing to analyze, returning empty result")
                return DetectionResult()

            queries = extract_search_queries(
                text, max_queries=options.max_queries, min_phrase_length=options.min_phrase_length
            )
            logger.info(f"Generated {len(queries)} search queries for plagiarism check")

            urls = await self.search_for_matches(queries, options, cancel_event)
            logger.info(f"Found {len(urls)} URLs to check")

            matches = await self.extract_and_compare_content(text, urls, cancel_event)
            logger.info(f"Content matches found: {len(matches)}")

            result = calculate_plagiarism_score(matches, analysis)
        except DetectionError:
            raise
        except Exception as e:
            logger.error(f"❌ Text check error: {preview(e)}")
            raise GenericDetectionFailure.wrap(e) from e

        self.checks_performed += 1
        self.last_check = datetime.now(timezone.utc)

        elapsed_ms = int((time.monotonic() - t0) * 1000)
        logger.info(f"✅ Check complete: score={result.score} risk={result.risk_level.value} in {elapsed_ms} ms")
        return result.model_copy(update={
            "summary": DetectionSummary(
                total_words=analysis.word_count,
                total_sentences=analysis.sentence_count,
                key_phrases=len(analysis.key_phrases),
                search_queries=len(queries),
                urls_checked=len(urls),
                processing_time_ms=elapsed_ms,
            ),
        })

    async def check_url_content(self, url: str, options: Optional[DetectionOptions] = None,
                                cancel_event: Optional[asyncio.Event] = None) -> DetectionResult:
        options = options or DetectionOptions()
        try:
            content = await self.content_extractor.extract(url)
        except DetectionError:
            raise
        except Exception as e:
            logger.error(f"❌ URL check error for {preview(url)}: {preview(e)}")
            raise ExtractionFailure(f"Content extraction failed: {preview(e)}", {"url": preview(url)}) from e

        # The checked page must not show up as its own source
        options = options.model_copy(update={"exclude_urls": [*options.exclude_urls, url]})
        result = await self.check_text_content(content.text, options, cancel_event)
        return result.model_copy(update={"source_url": url, "extracted_metadata": content.metadata})

    async def search_for_matches(self, queries: List[str], options: DetectionOptions,
                                 cancel_event: Optional[asyncio.Event] = None) -> List[str]:
        """
        Collect candidate URLs from the top queries.

        A failing search stops further queries and the check continues with
        the URLs found so far. ``RateLimited`` propagates only while nothing
        has been found yet.
        """
        if not queries:
            return []

        excluded = set(options.exclude_urls)
        per_query = math.ceil(self.max_search_results / len(queries))
        seen = {}

        for idx, query in enumerate(queries[:MAX_QUERIES_SEARCHED]):
            if _cancelled(cancel_event):
                logger.warning("🛑 Check cancelled, no further queries issued")
                break
            if idx > 0 and self.query_delay > 0:
                await asyncio.sleep(self.query_delay)

            try:
                results = await self.search_provider.search(
                    query, max_results=per_query, exclude_domains=list(options.exclude_urls)
                )
            except Exception as e:
                if isinstance(e, RateLimited) and not seen:
                    logger.error(f"❌ Search rate limited, retry after {e.retry_after}s")
                    raise
                logger.warning(
                    f"Search failed for query '{preview(query)}': {preview(e)}; "
                    f"continuing with {len(seen)} URLs"
                )
                break

            for r in results:
                if r.url and r.url not in excluded and r.url not in seen:
                    seen[r.url] = None

        return list(seen)[:self.max_search_results]

    async def extract_and_compare_content(self, original_text: str, urls: List[str],
                                          cancel_event: Optional[asyncio.Event] = None) -> List[CandidateMatch]:
        matches: List[CandidateMatch] = []
        failures: List[Exception] = []
        attempted = 0
        size = self.max_concurrent_checks

        for start in range(0, len(urls), size):
            if _cancelled(cancel_event):
                logger.warning("🛑 Check cancelled, remaining candidate batches skipped")
                break

            batch = urls[start:start + size]
            attempted += len(batch)
            outcomes = await asyncio.gather(
                *(self._check_candidate(original_text, u) for u in batch),
                return_exceptions=True,
            )
            for url, outcome in zip(batch, outcomes):
                if isinstance(outcome, BaseException):
                    if not isinstance(outcome, Exception):
                        raise outcome
                    failures.append(outcome)
                    logger.warning(f"Failed to process URL {preview(url)}: {preview(outcome)}")
                elif outcome is not None:
                    matches.append(outcome)

            if start + size < len(urls) and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)

        if attempted and len(failures) == attempted:
            limited = next((f for f in failures if isinstance(f, RateLimited)), None)
            if limited is not None:
                raise limited
            logger.warning(f"⚠️  All {attempted} candidate URLs failed, no matches collected")

        matches.sort(key=lambda m: m.similarity_score, reverse=True)
        return matches

    async def _check_candidate(self, original_text: str, url: str) -> Optional[CandidateMatch]:
        content = await self.content_extractor.extract(url)
        similarity = await asyncio.to_thread(
            calculate_similarity, original_text, content.text,
            shingle_weight=self.shingle_weight, lcs_weight=self.lcs_weight,
        )
        logger.debug(
            f"Similarity analysis: url={preview(url)} similarity={similarity.overall_score} "
            f"threshold={self.min_similarity_threshold}"
        )
        if similarity.overall_score < self.min_similarity_threshold:
            return None

        details = await asyncio.to_thread(find_matching_segments, original_text, content.text)
        raw = similarity.overall_score
        return CandidateMatch(
            source_url=url,
            title=content.metadata.get("title") or "Untitled",
            similarity_score=round_half_up(raw * 100),
            match_type=determine_match_type(raw),
            matched_segments=details.segments,
            matched_text=details.longest_match,
            context_before=details.context_before,
            context_after=details.context_after,
            word_count=details.matched_word_count,
            char_count=details.matched_char_count,
            raw_similarity=raw,
            similarity=similarity,
        )

    def get_service_info(self) -> dict:
        return {
            "service": "Custom Plagiarism Detection",
            "checks_performed": self.checks_performed,
            "last_check": self.last_check.isoformat() if self.last_check else None,
            "status": "active",
            "search_provider": type(self.search_provider).__name__,
            "content_extractor": type(self.content_extractor).__name__,
        }

    def health_check(self) -> dict:
        t0 = time.monotonic()
        analysis = analysis_utils.health_check()
        similarity = lexical_utils.health_check()
        search_enabled = getattr(self.search_provider, "enabled", True)
        return {
            "healthy": bool(analysis.get("healthy") and similarity.get("healthy")),
            "response_time_ms": int((time.monotonic() - t0) * 1000),
            "services": {
                "content_analysis": analysis,
                "text_similarity": similarity,
                "web_search": {"provider": type(self.search_provider).__name__, "enabled": search_enabled},
            },
            "checks_performed": self.checks_performed,
            "last_check": self.last_check.isoformat() if self.last_check else None,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
