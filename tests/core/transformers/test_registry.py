"""
Unit tests for transformer base class and registry.
"""

from typing import ClassVar, Optional

import pytest
from pydantic import Field, ValidationError

from transmute.core.exceptions import TransformerError
from transmute.core.provider import Provider
from transmute.core.transformers import SummarizeTransformer, registry
from transmute.core.transformers.base import BaseTransformer
from transmute.core.transformers.registry import TransformerRegistry


class MockTransformer(BaseTransformer):
    """Mock transformer for testing."""

    transformer_name: ClassVar[Optional[str]] = "mock"

    prompt: str = "Mock prompt"


class ThresholdTransformer(BaseTransformer):
    """Transformer with an extra validated field."""

    prompt: str = "Threshold prompt"
    threshold: int = Field(default=5, ge=0)


class TestBaseTransformer:
    """Test cases for BaseTransformer configuration."""

    def test_defaults(self):
        transformer = MockTransformer()

        assert transformer.prompt == "Mock prompt"
        assert transformer.system_prompt is None
        assert transformer.provider is None
        assert transformer.tools == []
        assert transformer.output_format is None

    def test_name_property(self):
        assert MockTransformer().name == "mock"
        assert ThresholdTransformer().name == "ThresholdTransformer"

    def test_identity_is_import_path(self):
        transformer = MockTransformer()
        assert transformer.identity == f"{MockTransformer.__module__}.MockTransformer"

    def test_prompt_is_required(self):
        class NoPrompt(BaseTransformer):
            pass

        with pytest.raises(ValidationError):
            NoPrompt()

    def test_temperature_range_is_validated(self):
        with pytest.raises(ValidationError):
            MockTransformer(temperature=2.5)
        with pytest.raises(ValidationError):
            MockTransformer(top_p=1.5)

    def test_config_validation_failure(self):
        with pytest.raises(ValidationError):
            ThresholdTransformer(threshold=-1)

    def test_provider_accepts_enum_value(self):
        assert MockTransformer(provider="anthropic").provider == Provider.ANTHROPIC

    def test_output_format_model_serializes_as_import_path(self):
        from transmute.core.results import TransformerMetadata

        transformer = MockTransformer(output_format=TransformerMetadata)

        dumped = transformer.model_dump(mode="json")
        assert dumped["output_format"] == "transmute.core.results.TransformerMetadata"

        rebuilt = MockTransformer(**dumped)
        assert rebuilt.output_format is TransformerMetadata

    def test_bind_sets_pipeline(self, pipeline):
        transformer = MockTransformer()
        assert not transformer.is_bound

        assert transformer.bind(pipeline) is transformer
        assert transformer.is_bound
        assert transformer.pipeline is pipeline


class TestTransformerRegistry:
    """Test cases for TransformerRegistry class."""

    def setup_method(self):
        self.registry = TransformerRegistry()

    def test_register_transformer(self):
        self.registry.register(MockTransformer)

        assert self.registry.is_registered("mock")
        assert "mock" in self.registry.list_transformers()

    def test_register_with_explicit_name(self):
        self.registry.register(ThresholdTransformer, name="threshold")

        assert self.registry.is_registered("threshold")
        assert not self.registry.is_registered("ThresholdTransformer")

    def test_register_as_decorator(self):
        @self.registry.register
        class Decorated(BaseTransformer):
            prompt: str = "Decorated"

        assert self.registry.resolve("Decorated") is Decorated

    def test_register_duplicate_name_raises_error(self):
        self.registry.register(MockTransformer)

        with pytest.raises(ValueError, match="already registered"):
            self.registry.register(MockTransformer)

    def test_register_invalid_class_raises_error(self):
        class NotATransformer:
            pass

        with pytest.raises(ValueError, match="must inherit from BaseTransformer"):
            self.registry.register(NotATransformer)  # type: ignore

    def test_unregister_transformer(self):
        self.registry.register(MockTransformer)
        self.registry.unregister("mock")

        assert not self.registry.is_registered("mock")

    def test_unregister_nonexistent_raises_error(self):
        with pytest.raises(KeyError, match="not registered"):
            self.registry.unregister("nonexistent")

    def test_create_transformer_with_config(self):
        self.registry.register(ThresholdTransformer)

        transformer = self.registry.create_transformer("ThresholdTransformer", {"threshold": 9})

        assert isinstance(transformer, ThresholdTransformer)
        assert transformer.threshold == 9

    def test_create_transformer_invalid_config_raises_error(self):
        self.registry.register(ThresholdTransformer)

        with pytest.raises(TransformerError, match="Failed to create transformer"):
            self.registry.create_transformer("ThresholdTransformer", {"threshold": -1})

    def test_create_transformer_from_import_path(self):
        transformer = self.registry.create_transformer(
            "transmute.core.transformers.summarize.SummarizeTransformer"
        )

        assert isinstance(transformer, SummarizeTransformer)

    def test_resolve_unknown_name_raises_key_error(self):
        with pytest.raises(KeyError):
            self.registry.resolve("unknown")

    def test_resolve_missing_module_raises_key_error(self):
        with pytest.raises(KeyError, match="cannot be imported"):
            self.registry.resolve("nowhere.to.be.Found")

    def test_resolve_non_transformer_path_raises_key_error(self):
        with pytest.raises(KeyError, match="not a BaseTransformer subclass"):
            self.registry.resolve("transmute.core.results.TransformerResult")

    def test_clear(self):
        self.registry.register(MockTransformer)
        self.registry.register(ThresholdTransformer)

        self.registry.clear()

        assert self.registry.list_transformers() == []

    def test_builtin_summarize_is_registered_globally(self):
        assert registry.resolve("summarize") is SummarizeTransformer


class TestSummarizeTransformer:
    def test_rejects_short_text(self, pipeline):
        from transmute.core.exceptions import InvalidInputError

        transformer = SummarizeTransformer(min_length=50).bind(pipeline)

        with pytest.raises(InvalidInputError):
            transformer.execute("short")

    def test_summarizes_text(self, pipeline):
        result = SummarizeTransformer().bind(pipeline).execute("Some text to summarize.")

        assert result.data == "mocked-summary"
