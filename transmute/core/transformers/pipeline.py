"""
Execution of a transformer: cache lookup, hooks, provider request and result.
"""

import json
import logging
from functools import cache
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from transmute.config import Config
from transmute.core.cache import CacheManager, CacheStore
from transmute.core.exceptions import UnsupportedTypeError
from transmute.core.fingerprint import build_cache_key, build_fingerprint
from transmute.core.llm import (
    LLM,
    LiteLLM,
    ProviderRequest,
    get_message_content,
    parse_llm_json_response,
)
from transmute.core.media import Media
from transmute.core.provider import Provider
from transmute.core.results import TransformerMetadata, TransformerResult
from transmute.core.schema import ModelSchemaService

if TYPE_CHECKING:
    from transmute.core.transformers.base import BaseTransformer, TransformContent

BeforeHook = Callable[["BaseTransformer", "TransformContent"], None]
AfterHook = Callable[["BaseTransformer", TransformerResult], None]


class TransformationPipeline:
    """
    Runs transformers against content.

    Each stage is a method so it can be overridden or tested on its own:

        cache_key -> get_cached -> before_transform -> build_request
        -> call provider -> extract_data -> put_cached -> after_transform

    Only before_transform may raise; every other error of a single attempt is
    returned as a failed TransformerResult.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        cache: Optional[CacheManager] = None,
        llm: Optional[LLM] = None,
        schema_service: Optional[ModelSchemaService] = None,
        before_hooks: Optional[List[BeforeHook]] = None,
        after_hooks: Optional[List[AfterHook]] = None,
    ):
        self.config = config or Config.load_from_env()
        self.cache = cache or CacheManager()
        self.llm = llm or LiteLLM()
        self.schema_service = schema_service or ModelSchemaService()
        self.before_hooks = list(before_hooks or [])
        self.after_hooks = list(after_hooks or [])

    def execute(
        self,
        transformer: "BaseTransformer",
        content: "TransformContent",
        context: Optional[Dict[str, Any]] = None,
    ) -> TransformerResult:
        cache_key = self.cache_key(transformer)

        cached = self.get_cached(cache_key)
        if cached is not None and cached.is_successful():
            logging.debug(f"Cache hit for {transformer.identity} ({cache_key})")
            return cached

        self.before_transform(transformer, content)

        result = self.perform_transformation(transformer, content, context)

        if result.is_successful():
            self.put_cached(cache_key, result)

        self.after_transform(transformer, result)
        return result

    # configuration resolution

    def resolve_provider(self, transformer: "BaseTransformer") -> Provider:
        return transformer.provider or self.config.default_provider

    def resolve_model(self, transformer: "BaseTransformer") -> str:
        if transformer.model:
            return transformer.model
        return self.config.default_model(self.resolve_provider(transformer))

    def resolve_temperature(self, transformer: "BaseTransformer") -> Optional[float]:
        if transformer.temperature is not None:
            return transformer.temperature
        return self.config.provider_config(self.resolve_provider(transformer)).temperature

    def resolve_output_schema(self, transformer: "BaseTransformer") -> Optional[Dict[str, Any]]:
        output_format = transformer.output_format
        if output_format is None:
            return None
        if isinstance(output_format, dict):
            return output_format
        if isinstance(output_format, type) and issubclass(output_format, BaseModel):
            return self.schema_service.convert_model_to_schema(
                output_format, transformer.schema_config or None
            )
        raise UnsupportedTypeError(
            f"Unsupported output format: {output_format!r}",
            context={"transformer": transformer.identity},
        )

    # caching

    def cache_key(self, transformer: "BaseTransformer") -> str:
        fingerprint = build_fingerprint(
            transformer_class=transformer.identity,
            prompt=transformer.prompt,
            system_prompt=transformer.system_prompt,
            provider=self.resolve_provider(transformer).value,
            top_p=transformer.top_p,
            model=self.resolve_model(transformer),
            tools=transformer.tools or None,
            temperature=transformer.temperature,
        )
        return build_cache_key(self.config.cache.prefix, fingerprint)

    def cache_store(self) -> CacheStore:
        return self.cache.store(self.config.cache.store)

    def get_cached(self, cache_key: str) -> Optional[TransformerResult]:
        if not self.config.cache.enabled:
            return None

        try:
            cached = self.cache_store().get(cache_key)
            if cached is None:
                return None
            return TransformerResult.from_dict(cached)
        except Exception as e:
            logging.warning(f"Ignoring unreadable cache entry {cache_key}: {e}")
            return None

    def put_cached(self, cache_key: str, result: TransformerResult) -> None:
        if not self.config.cache.enabled:
            return

        try:
            stored = self.cache_store().put(
                cache_key, result.to_dict(), self.config.cache.ttl.transformer_data
            )
            if not stored:
                logging.debug(f"Result for {cache_key} was not cached")
        except Exception as e:
            logging.warning(f"Failed to cache result under {cache_key}: {e}")

    # hooks

    def before_transform(
        self, transformer: "BaseTransformer", content: "TransformContent"
    ) -> None:
        for hook in self.before_hooks:
            hook(transformer, content)
        transformer.before_transform(content)

    def after_transform(self, transformer: "BaseTransformer", result: TransformerResult) -> None:
        for hook in self.after_hooks:
            hook(transformer, result)
        transformer.after_transform(result)

    # provider request

    def build_messages(
        self, transformer: "BaseTransformer", content: "TransformContent"
    ) -> List[Dict[str, Any]]:
        messages: List[Dict[str, Any]] = []
        if transformer.system_prompt:
            messages.append({"role": "system", "content": transformer.system_prompt})

        messages.append({"role": "user", "content": transformer.prompt})

        if isinstance(content, Media):
            messages.append({"role": "user", "content": [content.to_message_part()]})
        else:
            messages.append({"role": "user", "content": content})
        return messages

    def build_request(
        self, transformer: "BaseTransformer", content: "TransformContent"
    ) -> ProviderRequest:
        provider = self.resolve_provider(transformer)
        provider_config = self.config.provider_config(provider)

        return ProviderRequest(
            provider=provider,
            model=self.resolve_model(transformer),
            messages=self.build_messages(transformer, content),
            temperature=self.resolve_temperature(transformer),
            top_p=transformer.top_p,
            tools=transformer.tools,
            output_schema=self.resolve_output_schema(transformer),
            max_tokens=provider_config.max_tokens,
            api_base=provider_config.base_url,
            api_key=provider_config.api_key,
            timeout=provider_config.timeout,
        )

    def extract_data(self, response: Any, structured: bool) -> str:
        text = get_message_content(response)
        if not structured:
            return text or ""

        payload = parse_llm_json_response(text or "")
        return json.dumps(payload)

    def build_metadata(
        self, transformer: "BaseTransformer", context: Optional[Dict[str, Any]] = None
    ) -> TransformerMetadata:
        return TransformerMetadata.make(
            model=self.resolve_model(transformer),
            provider=self.resolve_provider(transformer),
            transformer_class=transformer.identity,
            context=context,
        )

    def perform_transformation(
        self,
        transformer: "BaseTransformer",
        content: "TransformContent",
        context: Optional[Dict[str, Any]] = None,
    ) -> TransformerResult:
        metadata = self.build_metadata(transformer, context)

        try:
            request = self.build_request(transformer, content)
            response = self.llm.completion(request)
            data = self.extract_data(response, request.structured)
        except Exception as e:
            logging.warning(f"Transformation with {transformer.identity} failed: {e}")
            return TransformerResult.failed([str(e)], metadata)

        return TransformerResult.successful(data, metadata)


@cache
def get_default_pipeline() -> TransformationPipeline:
    return TransformationPipeline(Config.load_from_env())
