"""Shared fixtures for the copyscan test suite."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence

import pytest

from copyscan.schemas.detection_schemas import ExtractedContent, SearchResult
from copyscan.utils.detection_utils import PlagiarismDetector
from copyscan.utils.web_utils import ContentExtractor, SearchProvider

FOX = "The quick brown fox jumps over the lazy dog."

SAMPLE_TEXT = (
    "Machine learning research has transformed customer service quality across the industry. "
    "A recent study of 120 companies found that automated analysis reduced response times by 35%.\n\n"
    "The approach combines natural language processing with a feedback system that improves over time. "
    "Researchers at Stanford University described the methodology in detail during 2021. "
    "Management teams report measurable performance gains after adopting these solutions."
)


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


class FakeSearchProvider(SearchProvider):
    """Returns ``pages[i]`` for the i-th call; raises ``errors[i]`` when present."""

    def __init__(self, pages: Optional[List[List[str]]] = None,
                 errors: Optional[Dict[int, Exception]] = None) -> None:
        self.pages = pages or []
        self.errors = errors or {}
        self.calls: List[dict] = []

    async def search(self, query: str, max_results: int = 10,
                     exclude_domains: Sequence[str] = ()) -> List[SearchResult]:
        idx = len(self.calls)
        self.calls.append({"query": query, "max_results": max_results,
                           "exclude_domains": list(exclude_domains)})
        if idx in self.errors:
            raise self.errors[idx]
        urls = self.pages[idx] if idx < len(self.pages) else []
        return [SearchResult(url=u, title=f"Result {u}") for u in urls]


class FakeExtractor(ContentExtractor):
    """Serves canned texts per URL and records start/end events."""

    def __init__(self, texts: Optional[Dict[str, str]] = None,
                 errors: Optional[Dict[str, Exception]] = None,
                 delay: float = 0.01) -> None:
        self.texts = texts or {}
        self.errors = errors or {}
        self.delay = delay
        self.events: List[tuple] = []
        self.active = 0
        self.max_active = 0

    async def extract(self, url: str) -> ExtractedContent:
        self.events.append(("start", url))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            if url in self.errors:
                raise self.errors[url]
            return ExtractedContent(url=url, text=self.texts.get(url, ""),
                                    metadata={"title": f"Page {url}"})
        finally:
            self.active -= 1
            self.events.append(("end", url))


def make_detector(search: SearchProvider, extractor: ContentExtractor, **kwargs) -> PlagiarismDetector:
    params = {"query_delay": 0, "batch_delay": 0}
    params.update(kwargs)
    return PlagiarismDetector(search, extractor, **params)


@pytest.fixture
def fox_detector() -> PlagiarismDetector:
    """Detector whose only candidate is an exact copy of FOX."""
    url = "https://example.com/fox"
    return make_detector(FakeSearchProvider(pages=[[url]]), FakeExtractor(texts={url: FOX}))
