"""Tests for the Google search provider and the HTML content extractor."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
import requests

from copyscan.errors import ExtractionFailure, RateLimited, SearchProviderFailure
from copyscan.utils.web_utils import (
    MAX_REDIRECTS,
    GoogleSearchProvider,
    HttpContentExtractor,
    should_exclude_url,
    validate_url,
)

ARTICLE_HTML = """
<html>
  <head>
    <title>Sample Article</title>
    <meta name="description" content="A   short
      description">
  </head>
  <body>
    <nav><p>Navigation links that are long enough to be kept otherwise</p></nav>
    <article>
      <h1>Headline</h1>
      <p>Copied passages are detected by comparing overlapping word sequences.</p>
      <p>Short.</p>
      <script>var tracking = "this script text must never be extracted";</script>
    </article>
  </body>
</html>
"""


def _response(status: int = 200, body: str = "", headers: dict = None, url: str = "https://example.com/") -> requests.Response:
    r = requests.Response()
    r.status_code = status
    r._content = body.encode("utf-8")
    r.encoding = "utf-8"
    r.url = url
    r.headers.update(headers or {})
    return r


def _session(response=None, error=None) -> MagicMock:
    session = MagicMock(spec=requests.Session)
    if error is not None:
        session.get.side_effect = error
    else:
        session.get.return_value = response
    return session


def _items(*links: str) -> str:
    return json.dumps({"items": [{"link": l, "title": f"T {l}", "snippet": "s"} for l in links]})


class TestExclusion:

    def test_domain_and_subdomain(self) -> None:
        assert should_exclude_url("https://blog.example.com/a", ["example.com"])
        assert should_exclude_url("https://example.com/a", ["https://example.com/post"])
        assert not should_exclude_url("https://notexample.com/a", ["example.com"])
        assert not should_exclude_url("https://other.org/a", [])

    def test_exact_url(self) -> None:
        assert should_exclude_url("https://x.org/p", ["https://x.org/p"])


class TestValidateUrl:

    @pytest.mark.parametrize("url", [
        "ftp://example.com/file",
        "http://localhost/admin",
        "http://127.0.0.1:8000/",
        "http://10.0.0.5/",
        "http://192.168.1.1/router",
        "http://169.254.169.254/latest/meta-data",
        "not a url",
    ])
    def test_rejected(self, url: str) -> None:
        with pytest.raises(ExtractionFailure):
            validate_url(url)

    def test_public_url_allowed(self) -> None:
        validate_url("https://example.com/article")


class TestGoogleSearchProvider:

    def test_not_configured(self) -> None:
        provider = GoogleSearchProvider(api_key="", engine_id="", session=_session())
        assert provider.enabled is False
        with pytest.raises(SearchProviderFailure):
            provider.search_sync("query")

    def test_parses_items_and_filters_excluded(self) -> None:
        session = _session(_response(body=_items("https://a.com/1", "https://b.org/2")))
        provider = GoogleSearchProvider(api_key="k", engine_id="cx", session=session)
        results = provider.search_sync('"exact phrase"', max_results=25, exclude_domains=["b.org"])

        assert [r.url for r in results] == ["https://a.com/1"]
        assert results[0].source == "google"
        params = session.get.call_args.kwargs["params"]
        assert params["q"] == '"exact phrase"'
        assert params["num"] == 10

    def test_unquoted_query_is_quoted(self) -> None:
        session = _session(_response(body=_items()))
        provider = GoogleSearchProvider(api_key="k", engine_id="cx", session=session)
        assert provider.search_sync("loose words") == []
        assert session.get.call_args.kwargs["params"]["q"] == '"loose words"'

    def test_http_429_is_rate_limited(self) -> None:
        session = _session(_response(status=429, headers={"Retry-After": "30"}))
        provider = GoogleSearchProvider(api_key="k", engine_id="cx", session=session)
        with pytest.raises(RateLimited) as exc_info:
            provider.search_sync("q")
        assert exc_info.value.retry_after == 30

    def test_http_error_is_search_failure(self) -> None:
        session = _session(_response(status=500, body="oops"))
        provider = GoogleSearchProvider(api_key="k", engine_id="cx", session=session)
        with pytest.raises(SearchProviderFailure):
            provider.search_sync("q")

    def test_network_error_is_search_failure(self) -> None:
        session = _session(error=requests.ConnectionError("refused"))
        provider = GoogleSearchProvider(api_key="k", engine_id="cx", session=session)
        with pytest.raises(SearchProviderFailure):
            provider.search_sync("q")

    def test_daily_limit(self) -> None:
        session = _session(_response(body=_items("https://a.com/1")))
        provider = GoogleSearchProvider(api_key="k", engine_id="cx", daily_limit=1, session=session)
        provider.search_sync("q")
        with pytest.raises(RateLimited):
            provider.search_sync("q")
        assert session.get.call_count == 1

    @pytest.mark.asyncio
    async def test_async_search(self) -> None:
        session = _session(_response(body=_items("https://a.com/1")))
        provider = GoogleSearchProvider(api_key="k", engine_id="cx", session=session)
        results = await provider.search("q", max_results=3)
        assert results[0].url == "https://a.com/1"
        assert session.get.call_args.kwargs["params"]["num"] == 3


class TestHttpContentExtractor:

    def test_extracts_main_text_and_metadata(self) -> None:
        session = _session(_response(body=ARTICLE_HTML, headers={"Content-Type": "text/html"},
                                     url="https://example.com/final"))
        extractor = HttpContentExtractor(session=session)
        content = extractor.extract_sync("https://example.com/article")

        assert content.text == "Copied passages are detected by comparing overlapping word sequences."
        assert content.metadata["title"] == "Sample Article"
        assert content.metadata["description"] == "A short description"
        assert content.metadata["final_url"] == "https://example.com/final"
        assert content.metadata["content_type"] == "text/html"
        assert content.metadata["content_length"] == len(content.text)

    def test_text_is_truncated(self) -> None:
        session = _session(_response(body=ARTICLE_HTML))
        content = HttpContentExtractor(session=session, max_chars=20).extract_sync("https://example.com/a")
        assert len(content.text) == 20

    def test_empty_page_fails(self) -> None:
        session = _session(_response(body="<html><body><p>tiny</p></body></html>"))
        with pytest.raises(ExtractionFailure):
            HttpContentExtractor(session=session).extract_sync("https://example.com/a")

    def test_http_404_fails(self) -> None:
        session = _session(_response(status=404))
        with pytest.raises(ExtractionFailure) as exc_info:
            HttpContentExtractor(session=session).extract_sync("https://example.com/a")
        assert "404" in exc_info.value.message

    def test_http_429_is_rate_limited(self) -> None:
        session = _session(_response(status=429))
        with pytest.raises(RateLimited) as exc_info:
            HttpContentExtractor(session=session).extract_sync("https://example.com/a")
        assert exc_info.value.retry_after == 60

    def test_blocked_url_never_fetched(self) -> None:
        session = _session(_response(body=ARTICLE_HTML))
        with pytest.raises(ExtractionFailure):
            HttpContentExtractor(session=session).extract_sync("http://localhost/secret")
        session.get.assert_not_called()

    def test_redirect_to_private_host_is_refused(self) -> None:
        session = _session(_response(status=302, headers={"Location": "http://169.254.169.254/latest/meta-data"}))
        with pytest.raises(ExtractionFailure):
            HttpContentExtractor(session=session).extract_sync("https://example.com/a")
        assert session.get.call_count == 1

    def test_relative_redirect_is_followed(self) -> None:
        session = _session()
        session.get.side_effect = [
            _response(status=301, headers={"Location": "/moved"}),
            _response(body=ARTICLE_HTML, url="https://example.com/moved"),
        ]
        content = HttpContentExtractor(session=session).extract_sync("https://example.com/a")

        assert content.metadata["final_url"] == "https://example.com/moved"
        second = session.get.call_args_list[1]
        assert second.args[0] == "https://example.com/moved"
        assert second.kwargs["allow_redirects"] is False

    def test_redirect_loop_fails(self) -> None:
        session = _session(_response(status=302, headers={"Location": "https://example.com/loop"}))
        with pytest.raises(ExtractionFailure) as exc_info:
            HttpContentExtractor(session=session).extract_sync("https://example.com/a")
        assert "Too many redirects" in exc_info.value.message
        assert session.get.call_count == MAX_REDIRECTS + 1

    @pytest.mark.asyncio
    async def test_async_extract(self) -> None:
        session = _session(_response(body=ARTICLE_HTML))
        content = await HttpContentExtractor(session=session).extract("https://example.com/a")
        assert "overlapping word sequences" in content.text
