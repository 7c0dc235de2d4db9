import pytest
import requests
import responses

from transmute.config import (
    CacheConfig,
    Config,
    ContentFetcherConfig,
    FetchValidationConfig,
    RetryConfig,
)
from transmute.core.cache import CacheManager, MemoryCacheStore
from transmute.core.exceptions import FetchError
from transmute.plugins.fetchers.http import HttpContentFetcher, html_to_markdown, looks_like_html

URL = "https://example.com/article"

HTML_PAGE = """<!DOCTYPE html>
<html><head><title>T</title><script>var x = 1;</script></head>
<body><nav>menu</nav><h1>Launch</h1><p>The rocket <b>flew</b>.</p></body></html>"""


@pytest.fixture
def fetcher_config():
    return Config(
        content_fetcher=ContentFetcherConfig(
            timeout=5,
            connect_timeout=2,
            user_agent="TransmuteTest/1.0",
            retry=RetryConfig(max_attempts=3, delay=0),
        ),
        cache=CacheConfig(content_fetch_enabled=False),
    )


@pytest.fixture
def fetcher(fetcher_config):
    return HttpContentFetcher(fetcher_config)


class TestHttpContentFetcher:
    @responses.activate
    def test_fetch_returns_body(self, fetcher):
        responses.get(URL, body="plain body")

        assert fetcher.fetch(URL) == "plain body"
        assert responses.calls[0].request.headers["User-Agent"] == "TransmuteTest/1.0"

    @responses.activate
    def test_extra_headers(self, fetcher):
        responses.get(URL, body="ok")

        fetcher.fetch(URL, {"headers": {"Authorization": "Bearer token"}})

        assert responses.calls[0].request.headers["Authorization"] == "Bearer token"

    @responses.activate
    def test_client_error_is_not_retried(self, fetcher):
        responses.get(URL, status=404)

        with pytest.raises(FetchError, match="status: 404") as exc_info:
            fetcher.fetch(URL)

        assert exc_info.value.context == {"status_code": 404, "url": URL}
        assert len(responses.calls) == 1

    @responses.activate
    def test_server_errors_are_retried(self, fetcher):
        responses.get(URL, status=503)
        responses.get(URL, status=503)
        responses.get(URL, body="recovered")

        assert fetcher.fetch(URL) == "recovered"
        assert len(responses.calls) == 3

    @responses.activate
    def test_gives_up_after_max_attempts(self, fetcher):
        responses.get(URL, status=500)

        with pytest.raises(FetchError, match="status: 500"):
            fetcher.fetch(URL)

        assert len(responses.calls) == 3

    @responses.activate
    def test_connection_error(self, fetcher):
        responses.get(URL, body=requests.exceptions.ConnectionError("refused"))

        with pytest.raises(FetchError, match="Failed to fetch content from URL") as exc_info:
            fetcher.fetch(URL)

        assert "refused" in exc_info.value.context["original_error"]

    @responses.activate
    def test_html_to_markdown_option(self, fetcher):
        responses.get(URL, body=HTML_PAGE, content_type="text/html")

        content = fetcher.fetch(URL, {"html_to_markdown": True})

        assert "Launch" in content
        assert "**flew**" in content
        assert "var x" not in content
        assert "menu" not in content

    @responses.activate
    def test_html_kept_by_default(self, fetcher):
        responses.get(URL, body=HTML_PAGE, content_type="text/html")

        assert fetcher.fetch(URL) == HTML_PAGE

    @responses.activate
    def test_content_length_limit(self, fetcher_config):
        fetcher_config.content_fetcher.validation = FetchValidationConfig(max_content_length=10)
        responses.get(URL, body="x" * 11)

        with pytest.raises(FetchError, match="maximum length"):
            HttpContentFetcher(fetcher_config).fetch(URL)


class TestUrlValidation:
    @pytest.mark.parametrize(
        "url",
        [
            "not a url",
            "ftp://example.com/file",
            "https://",
            "javascript:alert(1)",
            "data:text/html,<b>hi</b>",
            "https://example.com//etc/passwd",
            "http://localhost:8080/admin",
            "http://127.0.0.1/",
        ],
    )
    def test_rejected_urls(self, fetcher, url):
        with pytest.raises(FetchError):
            fetcher.fetch(url)

    def test_blocked_domains(self, fetcher_config):
        fetcher_config.content_fetcher.validation = FetchValidationConfig(
            blocked_domains=["internal.example"]
        )
        fetcher = HttpContentFetcher(fetcher_config)

        with pytest.raises(FetchError, match="blocked"):
            fetcher.fetch("https://api.internal.example/v1")

    @responses.activate
    def test_localhost_when_allowed(self, fetcher_config):
        fetcher_config.content_fetcher.validation = FetchValidationConfig(allow_localhost=True)
        responses.get("http://localhost:8080/page", body="local")

        assert HttpContentFetcher(fetcher_config).fetch("http://localhost:8080/page") == "local"

    @pytest.mark.parametrize(
        "url", ["https://metadata.example.com/page", "https://bigdata.io/javascript-guide"]
    )
    @responses.activate
    def test_hosts_containing_scheme_words_are_allowed(self, fetcher, url):
        responses.get(url, body="ok")

        assert fetcher.fetch(url) == "ok"

    @responses.activate
    def test_surrounding_whitespace_is_trimmed(self, fetcher):
        responses.get(URL, body="ok")

        assert fetcher.fetch(f"  {URL}  ") == "ok"


class TestContentFetchCache:
    @responses.activate
    def test_content_is_cached(self, fetcher_config):
        fetcher_config.cache = CacheConfig(content_fetch_enabled=True, prefix="transmute")
        store = MemoryCacheStore()
        fetcher = HttpContentFetcher(fetcher_config, CacheManager({"default": store}))
        responses.get(URL, body="cached body")

        assert fetcher.fetch(URL) == "cached body"
        assert fetcher.fetch(URL) == "cached body"

        assert len(responses.calls) == 1
        keys = store.keys()
        assert len(keys) == 1
        assert keys[0].startswith("transmute:content_fetch:")

    @responses.activate
    def test_empty_content_is_not_cached(self, fetcher_config):
        fetcher_config.cache = CacheConfig(content_fetch_enabled=True)
        store = MemoryCacheStore()
        fetcher = HttpContentFetcher(fetcher_config, CacheManager({"default": store}))
        responses.get(URL, body="   ")

        fetcher.fetch(URL)
        fetcher.fetch(URL)

        assert len(responses.calls) == 2
        assert store.keys() == []

    @responses.activate
    def test_options_are_part_of_the_key(self, fetcher_config):
        fetcher_config.cache = CacheConfig(content_fetch_enabled=True)
        fetcher = HttpContentFetcher(fetcher_config, CacheManager())
        responses.get(URL, body="body")

        fetcher.fetch(URL)
        fetcher.fetch(URL, {"headers": {"X-Variant": "b"}})

        assert len(responses.calls) == 2


class TestHtmlHelpers:
    def test_looks_like_html(self):
        assert looks_like_html("<!DOCTYPE html><html></html>")
        assert looks_like_html("anything", "text/html; charset=utf-8")
        assert not looks_like_html("just text", "text/plain")

    def test_html_to_markdown(self):
        markdown = html_to_markdown("<h1>Title</h1><p>Body</p>")

        assert "Title" in markdown
        assert "Body" in markdown
