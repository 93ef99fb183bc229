"""
Collaborators the detector talks to: a web search provider returning candidate
URLs and a content extractor turning a URL into plain text.

The abstract classes are what PlagiarismDetector depends on; the Google Custom
Search and requests/BeautifulSoup implementations are the defaults wired into
the HTTP app.
"""
import asyncio
import ipaddress
import logging
import threading
from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional, Sequence
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from copyscan.config import (
    ALLOWED_URL_SCHEMES,
    BLOCKED_HOSTS,
    GOOGLE_SEARCH_API_KEY,
    GOOGLE_SEARCH_ENGINE_ID,
    GOOGLE_SEARCH_DAILY_LIMIT,
    MAX_URL_CONTENT_LENGTH,
    RATE_LIMIT_RETRY_AFTER,
    REQUEST_TIMEOUT,
)
from copyscan.errors import ExtractionFailure, RateLimited, SearchProviderFailure
from copyscan.logger import preview
from copyscan.schemas.detection_schemas import ExtractedContent, SearchResult

logger = logging.getLogger("scraper")

GOOGLE_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"
GOOGLE_MAX_PER_REQUEST = 10
MIN_ELEMENT_TEXT = 30
MAX_REDIRECTS = 5


class SearchProvider(ABC):
    """Issues a query string, returns candidate URLs."""

    @abstractmethod
    async def search(self, query: str, max_results: int = 10,
                     exclude_domains: Sequence[str] = ()) -> List[SearchResult]:
        ...


class ContentExtractor(ABC):
    """Fetches a URL and returns its readable text plus metadata."""

    @abstractmethod
    async def extract(self, url: str) -> ExtractedContent:
        ...


# ---- Session ----
def _make_session() -> requests.Session:
    s = requests.Session()
    retries = Retry(
        total=1,
        backoff_factor=0.1,
        status_forcelist=[500, 502, 503, 504],
        allowed_methods=["GET"],
        raise_on_status=False,
    )
    s.mount("https://", HTTPAdapter(max_retries=retries, pool_connections=20, pool_maxsize=20))
    s.mount("http://", HTTPAdapter(max_retries=retries, pool_connections=20, pool_maxsize=20))
    s.headers.update({
        "User-Agent": "Mozilla/5.0 (compatible; PlagiarismChecker/1.0)",
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
    })
    return s


# ---- Helpers ----
def _normalize_whitespace(s: str) -> str:
    return " ".join(s.split())


def _retry_after(response: requests.Response) -> int:
    value = response.headers.get("Retry-After", "")
    return int(value) if value.isdigit() else RATE_LIMIT_RETRY_AFTER


def _host(value: str) -> str:
    parsed = urlparse(value if "://" in value else f"//{value}")
    return (parsed.hostname or "").lower()


def should_exclude_url(url: str, exclude: Sequence[str]) -> bool:
    """True if ``url`` equals an excluded URL or lives on an excluded domain."""
    domain = _host(url)
    for ex in exclude or ():
        if url == ex:
            return True
        ex_host = _host(ex)
        if ex_host and (domain == ex_host or domain.endswith("." + ex_host)):
            return True
    return False


def validate_url(url: str) -> None:
    parsed = urlparse(url or "")
    if parsed.scheme not in ALLOWED_URL_SCHEMES:
        raise ExtractionFailure(f"Unsupported URL scheme: {preview(parsed.scheme)}", {"url": preview(url)})
    host = (parsed.hostname or "").lower()
    if not host or host in BLOCKED_HOSTS:
        raise ExtractionFailure("URL host is not allowed", {"url": preview(url)})
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        return
    if ip.is_private or ip.is_loopback or ip.is_link_local or ip.is_reserved:
        raise ExtractionFailure("URL points to a private network address", {"url": preview(url)})


def _clean_soup(soup: BeautifulSoup, prefer_main: bool = True, max_chars: Optional[int] = None) -> str:
    for junk in soup(["script", "style", "nav", "footer", "noscript", "header"]):
        junk.decompose()
    parts = []
    if prefer_main:
        main = soup.find(["main", "article", "section"])
        if main:
            elems = main.find_all(["p", "h1", "h2", "h3", "li"])
        else:
            elems = soup.find_all(["p", "h1", "h2", "h3"])
    else:
        elems = soup.find_all(["p", "li"])
    for el in elems:
        t = el.get_text(separator=" ", strip=True)
        if t and len(t) > MIN_ELEMENT_TEXT:
            parts.append(t)
    text = _normalize_whitespace(" ".join(parts))
    if max_chars and len(text) > max_chars:
        return text[:max_chars]
    return text


# ---- Google Search ----
class GoogleSearchProvider(SearchProvider):
    def __init__(self, api_key: str = GOOGLE_SEARCH_API_KEY, engine_id: str = GOOGLE_SEARCH_ENGINE_ID,
                 daily_limit: int = GOOGLE_SEARCH_DAILY_LIMIT, session: Optional[requests.Session] = None,
                 timeout: int = REQUEST_TIMEOUT):
        self.api_key = api_key
        self.engine_id = engine_id
        self.daily_limit = daily_limit
        self.timeout = timeout
        self._session = session or _make_session()
        self._lock = threading.Lock()
        self._usage_day = date.today()
        self._usage = 0

    @property
    def enabled(self) -> bool:
        return bool(self.api_key and self.engine_id)

    def _reserve_quota(self) -> None:
        with self._lock:
            today = date.today()
            if today != self._usage_day:
                self._usage_day, self._usage = today, 0
            if self._usage >= self.daily_limit:
                raise RateLimited("Google Search daily limit exceeded")
            self._usage += 1

    def search_sync(self, query: str, max_results: int = 10,
                    exclude_domains: Sequence[str] = ()) -> List[SearchResult]:
        if not self.enabled:
            raise SearchProviderFailure("Google Search API not configured")
        self._reserve_quota()

        q = query if query.startswith('"') else f'"{query}"'
        params = {
            "key": self.api_key,
            "cx": self.engine_id,
            "q": q,
            "num": max(1, min(max_results, GOOGLE_MAX_PER_REQUEST)),
            "safe": "active",
        }
        try:
            r = self._session.get(GOOGLE_SEARCH_URL, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise SearchProviderFailure(f"Web search service unavailable: {preview(e)}") from e

        if r.status_code == 429:
            raise RateLimited("Google Search rate limit exceeded", retry_after=_retry_after(r))
        try:
            r.raise_for_status()
            items = r.json().get("items", []) or []
        except (requests.HTTPError, ValueError) as e:
            raise SearchProviderFailure(f"Web search failed: {preview(e)}") from e

        out = []
        for i in items:
            link = i.get("link")
            if not link or should_exclude_url(link, exclude_domains):
                continue
            out.append(SearchResult(url=link, title=i.get("title", ""), snippet=i.get("snippet", ""),
                                    source="google"))
        logger.info(f"google_search: got {len(out)} items for '{preview(query, 60)}'")
        return out

    async def search(self, query: str, max_results: int = 10,
                     exclude_domains: Sequence[str] = ()) -> List[SearchResult]:
        return await asyncio.to_thread(self.search_sync, query, max_results, list(exclude_domains))


# ---- Content extraction ----
class HttpContentExtractor(ContentExtractor):
    def __init__(self, session: Optional[requests.Session] = None, timeout: int = REQUEST_TIMEOUT,
                 max_chars: int = MAX_URL_CONTENT_LENGTH):
        self._session = session or _make_session()
        self.timeout = timeout
        self.max_chars = max_chars

    def _fetch(self, url: str) -> requests.Response:
        """GET ``url``, following redirects by hand so every hop passes ``validate_url``."""
        current = url
        for _ in range(MAX_REDIRECTS + 1):
            validate_url(current)
            try:
                r = self._session.get(current, timeout=self.timeout, allow_redirects=False)
            except requests.RequestException as e:
                raise ExtractionFailure(f"Content extraction failed: {preview(e)}", {"url": preview(url)}) from e
            if not r.is_redirect:
                return r
            current = urljoin(current, r.headers["Location"])
            logger.debug(f"   ↪ Redirected to {preview(current, 80)}")
        raise ExtractionFailure(f"Too many redirects (max {MAX_REDIRECTS})", {"url": preview(url)})

    def extract_sync(self, url: str) -> ExtractedContent:
        r = self._fetch(url)

        if r.status_code == 429:
            raise RateLimited("Rate limit exceeded while fetching content", retry_after=_retry_after(r))
        try:
            r.raise_for_status()
        except requests.HTTPError as e:
            raise ExtractionFailure(f"Content extraction failed: HTTP {r.status_code}",
                                    {"url": preview(url)}) from e

        soup = BeautifulSoup(r.text, "html.parser")
        title = soup.title.get_text(strip=True) if soup.title else ""
        description = ""
        meta = soup.find("meta", attrs={"name": "description"})
        if meta and meta.get("content"):
            description = _normalize_whitespace(meta["content"])

        text = _clean_soup(soup, prefer_main=True, max_chars=self.max_chars)
        if not text:
            text = _clean_soup(soup, prefer_main=False, max_chars=self.max_chars)
        if not text:
            raise ExtractionFailure("No readable content found", {"url": preview(url)})

        logger.info(f"   ✅ Scraped {len(text)} chars for {preview(url, 60)}")
        return ExtractedContent(
            url=url,
            text=text,
            metadata={
                "title": title,
                "description": description,
                "final_url": r.url,
                "content_type": r.headers.get("Content-Type", ""),
                "content_length": len(text),
            },
        )

    async def extract(self, url: str) -> ExtractedContent:
        return await asyncio.to_thread(self.extract_sync, url)
