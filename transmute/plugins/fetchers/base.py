import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from transmute.config import Config
from transmute.core.cache import CacheManager, CacheStore
from transmute.core.fingerprint import build_content_fetch_key

FetchOptions = Dict[str, Any]


class BaseContentFetcher(ABC):
    """
    Fetches remote content, caching non-empty results when content fetch
    caching is enabled. Subclasses implement perform_fetch().
    """

    def __init__(self, config: Optional[Config] = None, cache: Optional[CacheManager] = None):
        self.config = config or Config.load_from_env()
        self.cache = cache or CacheManager()

    def fetch(self, url: str, options: Optional[FetchOptions] = None) -> str:
        options = options or {}

        cached = self.get_cached(url, options)
        if cached:
            logging.debug(f"Using cached content for {url}")
            return cached

        content = self.perform_fetch(url, options)

        if self.is_valid_content(content):
            self.put_cached(url, content, options)

        return content

    @abstractmethod
    def perform_fetch(self, url: str, options: FetchOptions) -> str:
        """Fetch the content; raise FetchError on failure."""
        pass

    def is_valid_content(self, content: str) -> bool:
        return bool(content and content.strip())

    @property
    def cache_enabled(self) -> bool:
        return self.config.cache.content_fetch_enabled

    def cache_key(self, url: str, options: FetchOptions) -> str:
        return build_content_fetch_key(self.config.cache.prefix, url, options)

    def cache_store(self) -> CacheStore:
        return self.cache.store(self.config.cache.store)

    def get_cached(self, url: str, options: FetchOptions) -> Optional[str]:
        if not self.cache_enabled:
            return None
        try:
            return self.cache_store().get(self.cache_key(url, options))
        except Exception as e:
            logging.warning(f"Failed to read cached content for {url}: {e}")
            return None

    def put_cached(self, url: str, content: str, options: FetchOptions) -> bool:
        if not self.cache_enabled:
            return False
        try:
            return self.cache_store().put(
                self.cache_key(url, options),
                content,
                self.config.cache.ttl.content_fetch,
            )
        except Exception as e:
            logging.warning(f"Failed to cache content for {url}: {e}")
            return False
