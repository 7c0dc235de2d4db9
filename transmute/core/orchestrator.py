"""
Fluent entry point: choose content and a handler, then run it inline or queue it.

    result = (
        Orchestrator(config)
        .with_url("https://example.com/article")
        .with_handler(ArticleSummarizer())
        .run()
    )
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Union

from transmute.config import Config
from transmute.core.exceptions import InvalidConfigurationError
from transmute.core.jobs import PendingDispatch, QueueTransport, ThreadPoolQueue, TransformationJob
from transmute.core.media import Media
from transmute.core.rate_limit import RateLimiter
from transmute.core.results import TransformerResult
from transmute.core.transformers.base import BaseTransformer, TransformContent
from transmute.core.transformers.pipeline import TransformationPipeline
from transmute.core.transformers.registry import TransformerRegistry, registry
from transmute.plugins.fetchers.base import BaseContentFetcher
from transmute.plugins.fetchers.http import HttpContentFetcher
from transmute.plugins.media.handlers import MediaOptions, resolve_media

HandlerFunction = Callable[[Optional[TransformContent]], Any]


@dataclass(frozen=True)
class TransformerHandler:
    transformer: BaseTransformer


@dataclass(frozen=True)
class FunctionHandler:
    function: HandlerFunction


Handler = Union[TransformerHandler, FunctionHandler]
HandlerSpec = Union[BaseTransformer, str, HandlerFunction]


class Orchestrator:
    """
    Builds one transformation request.

    Content sources are resolved as soon as they are set, so fetch and media
    errors raise from with_url / with_media rather than at run time.

    Inline runs use the transformer's own pipeline when it is bound, otherwise
    a copy bound to this orchestrator's pipeline; the caller's instance is left
    unbound. Queued runs rebuild the transformer from its job payload and use
    the queue's pipeline, so a pipeline bound by the caller does not travel.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        rate_limiter: Optional[RateLimiter] = None,
        pipeline: Optional[TransformationPipeline] = None,
        queue: Optional[QueueTransport] = None,
        transformers: Optional[TransformerRegistry] = None,
        fetcher: Optional[BaseContentFetcher] = None,
    ):
        self.config = config or (pipeline.config if pipeline else Config.load_from_env())
        self.rate_limiter = rate_limiter or RateLimiter(self.config.rate_limiting)
        self.pipeline = pipeline or TransformationPipeline(self.config)
        self._queue = queue
        self.transformers = transformers or registry
        self.fetcher = fetcher

        self.content: Optional[TransformContent] = None
        self.context: Dict[str, Any] = {}
        self.is_async = False
        self._handler: Optional[HandlerSpec] = None

    @property
    def queue(self) -> QueueTransport:
        if self._queue is None:
            self._queue = ThreadPoolQueue(pipeline=self.pipeline, transformers=self.transformers)
        return self._queue

    def with_text(self, content: str) -> "Orchestrator":
        self.content = content
        return self

    def with_url(self, url: str, fetcher: Optional[BaseContentFetcher] = None) -> "Orchestrator":
        fetcher = fetcher or self.fetcher or HttpContentFetcher(self.config, self.pipeline.cache)
        self.content = fetcher.fetch(url)
        return self

    def with_media(
        self,
        source: Union[str, bytes, Media],
        options: Union[MediaOptions, Mapping[str, Any], None] = None,
    ) -> "Orchestrator":
        if isinstance(source, Media):
            self.content = source
            return self
        if options is not None and not isinstance(options, MediaOptions):
            options = MediaOptions(**options)
        self.content = resolve_media(source, options)
        return self

    def with_image(self, source: Union[str, bytes], **options) -> "Orchestrator":
        return self.with_media(source, MediaOptions(type="image", **options))

    def with_document(self, source: Union[str, bytes], **options) -> "Orchestrator":
        return self.with_media(source, MediaOptions(type="document", **options))

    def with_async(self) -> "Orchestrator":
        self.is_async = True
        return self

    def with_handler(self, handler: HandlerSpec) -> "Orchestrator":
        self._handler = handler
        return self

    def with_context(self, context: Mapping[str, Any]) -> "Orchestrator":
        self.context = dict(context)
        return self

    def resolve_handler(self) -> Handler:
        handler = self._handler
        if isinstance(handler, BaseTransformer):
            return TransformerHandler(handler)
        if isinstance(handler, str):
            try:
                return TransformerHandler(self.transformers.create_transformer(handler))
            except KeyError as e:
                raise InvalidConfigurationError(
                    f"Invalid transformer handler provided: {handler}"
                ) from e
        if callable(handler):
            return FunctionHandler(handler)
        raise InvalidConfigurationError("Invalid transformer handler provided.")

    def run(self) -> Union[TransformerResult, PendingDispatch, Any]:
        self.rate_limiter.check_global()

        handler = self.resolve_handler()

        if isinstance(handler, FunctionHandler):
            if self.is_async:
                logging.debug("Function handlers cannot be queued, running inline")
            return handler.function(self.content)

        if self.is_async:
            job = TransformationJob.create(
                handler.transformer, self.content, self.context, self.config
            )
            return self.queue.push(job)

        transformer = handler.transformer
        if not transformer.is_bound:
            transformer = transformer.model_copy().bind(self.pipeline)
        return transformer.execute(self.content if self.content is not None else "", self.context)
