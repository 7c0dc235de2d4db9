import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import Field, SecretStr

from transmute.common import env_vars
from transmute.common.env_vars import load_optional_float
from transmute.core.provider import Provider
from transmute.utils.env import environ_get_safe_int
from transmute.utils.pydantic_utils import TransmuteBaseConfig, load_model_from_file


class ProviderConfig(TransmuteBaseConfig):
    default_model: Optional[str] = None
    max_tokens: Optional[int] = Field(default=None, gt=0)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    base_url: Optional[str] = None
    api_key: Optional[SecretStr] = None
    timeout: Optional[int] = Field(default=None, gt=0)


class RetryConfig(TransmuteBaseConfig):
    max_attempts: int = Field(default=env_vars.RETRY_ATTEMPTS, ge=1)
    delay: int = Field(default=env_vars.RETRY_DELAY_MS, ge=0)  # milliseconds


class FetchValidationConfig(TransmuteBaseConfig):
    blocked_domains: List[str] = []
    allowed_schemes: List[str] = ["http", "https"]
    allow_localhost: bool = bool(env_vars.ALLOW_LOCALHOST)
    max_content_length: int = Field(default=env_vars.MAX_CONTENT_LENGTH, gt=0)


class ContentFetcherConfig(TransmuteBaseConfig):
    timeout: int = Field(default=env_vars.HTTP_TIMEOUT, ge=1)
    connect_timeout: int = Field(default=env_vars.CONNECT_TIMEOUT, ge=1)
    user_agent: str = env_vars.USER_AGENT
    html_to_markdown: bool = bool(env_vars.HTML_TO_MARKDOWN)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    validation: FetchValidationConfig = Field(default_factory=FetchValidationConfig)


class TransformationConfig(TransmuteBaseConfig):
    async_queue: Optional[str] = env_vars.ASYNC_QUEUE
    queue_connection: Optional[str] = env_vars.QUEUE_CONNECTION
    timeout: int = Field(default=env_vars.JOB_TIMEOUT, ge=1)
    tries: int = Field(default=env_vars.JOB_TRIES, ge=1)


class CacheTTLConfig(TransmuteBaseConfig):
    content_fetch: int = Field(default=env_vars.CACHE_TTL_CONTENT, ge=0)
    transformer_data: int = Field(default=env_vars.CACHE_TTL_TRANSFORMATIONS, ge=0)


class CacheConfig(TransmuteBaseConfig):
    enabled: bool = bool(env_vars.CACHE_ENABLED)
    store: str = env_vars.CACHE_STORE
    prefix: str = env_vars.CACHE_PREFIX
    content_fetch_enabled: bool = bool(env_vars.CONTENT_FETCH_CACHE_ENABLED)
    ttl: CacheTTLConfig = Field(default_factory=CacheTTLConfig)


class RateLimitConfig(TransmuteBaseConfig):
    enabled: bool = bool(env_vars.RATE_LIMITING_ENABLED)
    max_attempts: int = Field(default=env_vars.RATE_LIMIT_ATTEMPTS, ge=1)
    decay_minutes: int = Field(default=env_vars.RATE_LIMIT_DECAY_MINUTES, ge=1)
    key_prefix: str = env_vars.RATE_LIMIT_PREFIX

    @property
    def decay_seconds(self) -> int:
        return self.decay_minutes * 60


def default_provider_configs() -> Dict[str, ProviderConfig]:
    """
    Per provider defaults, overridable with TRANSMUTE_<PROVIDER>_MODEL,
    TRANSMUTE_<PROVIDER>_MAX_TOKENS and TRANSMUTE_<PROVIDER>_TEMPERATURE.
    """
    configs: Dict[str, ProviderConfig] = {}
    for provider in Provider:
        env_prefix = f"TRANSMUTE_{provider.name}"
        configs[provider.value] = ProviderConfig(
            default_model=os.environ.get(f"{env_prefix}_MODEL", provider.fallback_model),
            max_tokens=environ_get_safe_int(f"{env_prefix}_MAX_TOKENS"),
            temperature=load_optional_float(f"{env_prefix}_TEMPERATURE"),
            base_url=os.environ.get(f"{env_prefix}_BASE_URL"),
        )
    return configs


class Config(TransmuteBaseConfig):
    default_provider: Provider = Provider(env_vars.DEFAULT_PROVIDER)
    providers: Dict[str, ProviderConfig] = Field(default_factory=default_provider_configs)
    content_fetcher: ContentFetcherConfig = Field(default_factory=ContentFetcherConfig)
    transformation: TransformationConfig = Field(default_factory=TransformationConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    rate_limiting: RateLimitConfig = Field(default_factory=RateLimitConfig)

    def provider_config(self, provider: Provider) -> ProviderConfig:
        return self.providers.get(provider.value) or ProviderConfig()

    def default_model(self, provider: Provider) -> str:
        return self.provider_config(provider).default_model or provider.fallback_model

    @classmethod
    def load_from_env(cls) -> "Config":
        return cls()

    @classmethod
    def load_from_file(cls, config_file: Optional[Path]) -> "Config":
        if config_file is None:
            default_location = Path(env_vars.TRANSMUTE_CONFIG_PATH)
            if not default_location.exists():
                logging.debug("No config file found, using environment defaults")
                return cls.load_from_env()
            config_file = default_location

        logging.debug(f"Loading config from {config_file}")
        config = load_model_from_file(cls, config_file)

        # providers missing from the file keep their environment defaults
        for name, provider_config in default_provider_configs().items():
            config.providers.setdefault(name, provider_config)
        return config
