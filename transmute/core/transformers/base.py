"""
Base transformer class: a declarative LLM transformation configuration.
"""

__all__ = ["BaseTransformer", "ValidatesInput", "TransformContent"]

from typing import (
    TYPE_CHECKING,
    Any,
    ClassVar,
    Dict,
    List,
    Optional,
    Type,
    Union,
)

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    StrictStr,
    field_serializer,
    field_validator,
)

from transmute.core.exceptions import InvalidInputError
from transmute.core.media import Media
from transmute.core.provider import Provider
from transmute.core.results import TransformerResult
from transmute.utils.imports import import_string

if TYPE_CHECKING:
    from transmute.core.transformers.pipeline import TransformationPipeline

TransformContent = Union[str, Media]
OutputFormat = Union[Dict[str, Any], Type[BaseModel]]


class BaseTransformer(BaseModel):
    """
    A configured unit of work mapping content to an LLM backed result.

    Subclasses declare their configuration as field defaults and may
    override before_transform / after_transform:

        class ArticleSummarizer(BaseTransformer):
            prompt: str = "Summarize the following article in 2-3 sentences:"
            temperature: Optional[float] = 0.2

    Execution, caching and error handling live in TransformationPipeline.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    # name used by the registry; defaults to the class name
    transformer_name: ClassVar[Optional[str]] = None

    prompt: StrictStr = Field(min_length=1, description="Instruction sent before the content")
    system_prompt: Optional[StrictStr] = Field(
        default=None, description="Optional system message sent first"
    )
    provider: Optional[Provider] = Field(
        default=None, description="LLM vendor, the configured default when unset"
    )
    model: Optional[StrictStr] = Field(
        default=None, description="Model id, the provider default when unset"
    )
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    tools: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Function definitions: name, description and JSON schema parameters",
    )
    output_format: Optional[OutputFormat] = Field(
        default=None,
        description="None for text, a JSON object schema, or a pydantic model class",
    )
    schema_config: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        description="Per field overrides when output_format is a model: required, type",
    )

    _pipeline: Optional["TransformationPipeline"] = PrivateAttr(default=None)

    @field_validator("output_format", mode="before")
    @classmethod
    def resolve_output_format_path(cls, value: Any) -> Any:
        # queued payloads carry model classes as import paths
        if isinstance(value, str):
            return import_string(value)
        return value

    @field_serializer("output_format")
    def serialize_output_format(self, value: Optional[OutputFormat]) -> Any:
        if isinstance(value, type):
            return f"{value.__module__}.{value.__qualname__}"
        return value

    @classmethod
    def registry_name(cls) -> str:
        return cls.transformer_name or cls.__name__

    @property
    def name(self) -> str:
        return self.registry_name()

    @property
    def identity(self) -> str:
        """Import path of the transformer class, used for caching and metadata."""
        return f"{type(self).__module__}.{type(self).__qualname__}"

    def bind(self, pipeline: "TransformationPipeline") -> "BaseTransformer":
        self._pipeline = pipeline
        return self

    @property
    def is_bound(self) -> bool:
        return self._pipeline is not None

    @property
    def pipeline(self) -> "TransformationPipeline":
        if self._pipeline is not None:
            return self._pipeline
        from transmute.core.transformers.pipeline import get_default_pipeline

        return get_default_pipeline()

    def execute(
        self, content: TransformContent, context: Optional[Dict[str, Any]] = None
    ) -> TransformerResult:
        return self.pipeline.execute(self, content, context=context)

    def before_transform(self, content: TransformContent) -> None:
        """Runs before the provider request; raise to reject the content."""
        pass

    def after_transform(self, result: TransformerResult) -> None:
        """Runs after every transformation, successful or not."""
        pass


class ValidatesInput:
    """
    Mixin rejecting content in before_transform.

        class StrictSummarizer(ValidatesInput, BaseTransformer):
            def is_valid_input(self, content) -> bool:
                return isinstance(content, str) and len(content) > 20
    """

    def before_transform(self, content: TransformContent) -> None:
        if not self.is_valid_input(content):
            raise InvalidInputError(
                "Content validation failed", context={"transformer": type(self).__name__}
            )
        super().before_transform(content)  # type: ignore[misc]

    def is_valid_input(self, content: TransformContent) -> bool:
        raise NotImplementedError
