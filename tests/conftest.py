import pytest

from transmute.config import CacheConfig, CacheTTLConfig, Config, RateLimitConfig
from transmute.core.cache import CacheManager, MemoryCacheStore
from transmute.core.provider import Provider
from transmute.core.transformers.pipeline import TransformationPipeline
from transmute.testing import FakeLLM


@pytest.fixture
def config():
    return Config(
        default_provider=Provider.OPENAI,
        cache=CacheConfig(
            enabled=True,
            store="default",
            prefix="transmute",
            ttl=CacheTTLConfig(content_fetch=1800, transformer_data=3600),
        ),
        rate_limiting=RateLimitConfig(enabled=False),
    )


@pytest.fixture
def cache_store():
    return MemoryCacheStore()


@pytest.fixture
def cache_manager(cache_store):
    return CacheManager({"default": cache_store})


@pytest.fixture
def fake_llm():
    return FakeLLM(responses=["mocked-summary"])


@pytest.fixture
def pipeline(config, cache_manager, fake_llm):
    return TransformationPipeline(config, cache=cache_manager, llm=fake_llm)
