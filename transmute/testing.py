"""
Test doubles for code built on transmute.

    llm = FakeLLM(responses=["mocked-summary"])
    pipeline = TransformationPipeline(config, llm=llm)
    result = MyTransformer().bind(pipeline).execute("text")
    assert llm.call_count == 1
"""

import json
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from litellm.types.utils import Choices, Message, ModelResponse

from transmute.core.exceptions import FetchError
from transmute.core.llm import LLM, ProviderRequest
from transmute.core.results import TransformerMetadata, TransformerResult
from transmute.core.transformers.base import TransformContent
from transmute.plugins.fetchers.base import BaseContentFetcher, FetchOptions


def make_model_response(content: Optional[str]) -> ModelResponse:
    return ModelResponse(
        choices=[Choices(index=0, message=Message(role="assistant", content=content))]
    )


class FakeLLM(LLM):
    """
    Returns canned responses in order and records every request.

    A response may be a string, a dict (sent back as JSON) or an exception
    instance, which is raised. The last response repeats once the list runs out.
    """

    def __init__(self, responses: Optional[Sequence[Union[str, Dict[str, Any], Exception]]] = None):
        self.responses = list(responses or ["fake response"])
        self.requests: List[ProviderRequest] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    @property
    def last_request(self) -> Optional[ProviderRequest]:
        return self.requests[-1] if self.requests else None

    def completion(self, request: ProviderRequest) -> ModelResponse:
        self.requests.append(request)
        index = min(len(self.requests), len(self.responses)) - 1
        response = self.responses[index]

        if isinstance(response, Exception):
            raise response
        if isinstance(response, dict):
            response = json.dumps(response)
        return make_model_response(response)


def make_mock_handler(
    data: str = "mocked result", metadata: Optional[TransformerMetadata] = None
) -> Callable[[Optional[TransformContent]], TransformerResult]:
    """Function handler returning a successful result and recording its inputs."""
    calls: List[Optional[TransformContent]] = []

    def handler(content: Optional[TransformContent]) -> TransformerResult:
        calls.append(content)
        return TransformerResult.successful(data, metadata)

    handler.calls = calls  # type: ignore[attr-defined]
    return handler


def make_failing_handler(
    error: str = "Transformation failed",
) -> Callable[[Optional[TransformContent]], TransformerResult]:
    def handler(content: Optional[TransformContent]) -> TransformerResult:
        return TransformerResult.failed([error])

    return handler


class StaticContentFetcher(BaseContentFetcher):
    """Fetcher serving fixed content per URL, or raising a prepared error."""

    def __init__(
        self,
        pages: Optional[Dict[str, Union[str, Exception]]] = None,
        default: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.pages = dict(pages or {})
        self.default = default
        self.fetched: List[str] = []

    def perform_fetch(self, url: str, options: FetchOptions) -> str:
        self.fetched.append(url)
        page = self.pages.get(url, self.default)
        if isinstance(page, Exception):
            raise page
        if page is None:
            raise FetchError(f"No content prepared for {url}", context={"url": url})
        return page
