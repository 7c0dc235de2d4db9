"""
Built-in summarization transformer.
"""

from typing import ClassVar, Optional

from pydantic import Field, StrictStr

from .base import BaseTransformer, TransformContent, ValidatesInput


class SummarizeTransformer(ValidatesInput, BaseTransformer):
    """
    Summarizes text, documents or fetched pages in a few sentences.

    Content shorter than min_length characters is rejected before any
    provider request is made.
    """

    transformer_name: ClassVar[Optional[str]] = "summarize"

    DEFAULT_PROMPT: ClassVar[str] = """Summarize the following content in 2-3 sentences:
- Keep names, numbers and dates exactly as written
- Do not add information that is not in the content"""

    prompt: StrictStr = Field(default=DEFAULT_PROMPT, min_length=1)
    min_length: int = Field(
        default=1, ge=0, description="Minimum text length accepted for summarization"
    )

    def is_valid_input(self, content: TransformContent) -> bool:
        if isinstance(content, str):
            return len(content.strip()) >= self.min_length
        return True
