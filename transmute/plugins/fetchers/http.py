import logging
import re
from typing import Dict, Optional
from urllib.parse import urlsplit

import backoff
import requests  # type: ignore
from bs4 import BeautifulSoup
from markdownify import markdownify
from requests import RequestException  # type: ignore

from transmute.config import Config
from transmute.core.cache import CacheManager
from transmute.core.exceptions import FetchError
from transmute.plugins.fetchers.base import BaseContentFetcher, FetchOptions

LOCAL_HOSTS = {"localhost", "127.0.0.1", "::1", "0.0.0.0"}

SELECTORS_TO_REMOVE = [
    "script",
    "style",
    "link",
    "noscript",
    "iframe",
    "svg",
    "img",
    "button",
    "nav",
    "header",
    "footer",
    "aside",
]


def html_to_markdown(page_source: str) -> str:
    soup = BeautifulSoup(page_source, "html.parser")
    for selector in SELECTORS_TO_REMOVE:
        for element in soup.select(selector):
            element.decompose()

    try:
        md = markdownify(str(soup))
    except OSError as e:
        logging.error(f"Failed to convert HTML to markdown, returning raw HTML: {e}")
        return page_source

    return re.sub(r"\n\s*\n", "\n\n", md).strip()


def looks_like_html(content: str, content_type: Optional[str] = None) -> bool:
    if content_type and "html" in content_type:
        return True
    html_patterns = [r"<!DOCTYPE\s+html", r"<html", r"<head", r"<body"]
    return any(re.search(pattern, content, re.IGNORECASE) for pattern in html_patterns)


def _is_retryable(e: Exception) -> bool:
    # client errors will not change on retry
    if isinstance(e, requests.exceptions.HTTPError) and e.response is not None:
        return e.response.status_code >= 500
    return True


class HttpContentFetcher(BaseContentFetcher):
    """
    Fetches a URL over HTTP(S) with requests.

    URLs are validated before any request. Connection errors and 5xx responses
    are retried with the configured attempts and delay; anything still failing
    raises FetchError.

    Options:
        headers: extra request headers
        html_to_markdown: override the configured HTML conversion
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        cache: Optional[CacheManager] = None,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(config, cache)
        self.session = session or requests.Session()

    @property
    def fetcher_config(self):
        return self.config.content_fetcher

    def validate_url(self, url: str) -> str:
        url = url.strip()
        validation = self.fetcher_config.validation

        try:
            parsed = urlsplit(url)
            host = parsed.hostname
        except ValueError:
            host = None
            parsed = None

        if parsed is None or not parsed.scheme or not host or not host.strip():
            raise FetchError("Invalid URL format", context={"url": url})

        if parsed.scheme.lower() not in validation.allowed_schemes:
            raise FetchError(
                f"URL scheme '{parsed.scheme}' is not allowed", context={"url": url}
            )

        host = host.lower()

        if "//" in parsed.path:
            raise FetchError("Invalid URL format", context={"url": url})

        if not validation.allow_localhost and host in LOCAL_HOSTS:
            raise FetchError("Fetching from localhost is not allowed", context={"url": url})

        if any(host == d or host.endswith(f".{d}") for d in validation.blocked_domains):
            raise FetchError(f"Domain '{host}' is blocked", context={"url": url})

        return url

    def build_headers(self, options: FetchOptions) -> Dict[str, str]:
        headers = {"User-Agent": self.fetcher_config.user_agent}
        headers.update(options.get("headers") or {})
        return headers

    def _get(self, url: str, headers: Dict[str, str]) -> requests.Response:
        response = self.session.get(
            url,
            headers=headers,
            timeout=(self.fetcher_config.connect_timeout, self.fetcher_config.timeout),
        )
        response.raise_for_status()
        return response

    def perform_fetch(self, url: str, options: FetchOptions) -> str:
        url = self.validate_url(url)
        retry = self.fetcher_config.retry

        get_with_retry = backoff.on_exception(
            backoff.constant,
            RequestException,
            max_tries=retry.max_attempts,
            interval=retry.delay / 1000,
            jitter=None,
            giveup=lambda e: not _is_retryable(e),
        )(self._get)

        try:
            response = get_with_retry(url, self.build_headers(options))
        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            logging.error(f"HTTP request to {url} failed with status: {status_code}")
            raise FetchError(
                f"HTTP request failed with status: {status_code}",
                context={"status_code": status_code, "url": url},
            ) from e
        except RequestException as e:
            logging.error(f"HTTP fetch of {url} failed: {e}")
            raise FetchError(
                "Failed to fetch content from URL",
                context={"url": url, "original_error": str(e)},
            ) from e

        content = response.text
        max_length = self.fetcher_config.validation.max_content_length
        if len(content) > max_length:
            raise FetchError(
                f"Content exceeds the maximum length of {max_length} characters",
                context={"url": url, "length": len(content)},
            )

        convert = options.get("html_to_markdown", self.fetcher_config.html_to_markdown)
        if convert and looks_like_html(content, response.headers.get("content-type")):
            content = html_to_markdown(content)

        return content
