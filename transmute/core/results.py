"""
Value objects describing the outcome of a transformation.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from transmute.core.provider import Provider


class TransformerStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    PENDING = "pending"
    IN_PROGRESS = "in_progress"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TransformerMetadata(BaseModel):
    """Describes which model, provider and transformer produced a result."""

    model_config = ConfigDict(frozen=True)

    model: str
    provider: Provider
    transformer_class: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)
    context: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def make(
        cls,
        model: str,
        provider: Provider,
        transformer_class: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> "TransformerMetadata":
        return cls(
            model=model,
            provider=provider,
            transformer_class=transformer_class,
            context=context or {},
        )


class TransformerResult(BaseModel):
    """
    Immutable result of a single transformation.

    Failures of a transformation attempt are represented as data: callers
    branch on is_successful() instead of catching exceptions.
    """

    model_config = ConfigDict(frozen=True)

    status: TransformerStatus
    data: Optional[str] = None
    metadata: Optional[TransformerMetadata] = None
    errors: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_errors(self):
        if self.status == TransformerStatus.FAILED and not self.errors:
            raise ValueError("A failed result must carry at least one error")
        return self

    @classmethod
    def successful(
        cls, data: str, metadata: Optional[TransformerMetadata] = None
    ) -> "TransformerResult":
        return cls(status=TransformerStatus.COMPLETED, data=data, metadata=metadata)

    @classmethod
    def failed(
        cls, errors: List[str], metadata: Optional[TransformerMetadata] = None
    ) -> "TransformerResult":
        # an exception with an empty message still has to be reported
        errors = [error for error in errors if error] or ["Unknown transformation error"]
        return cls(status=TransformerStatus.FAILED, errors=errors, metadata=metadata)

    def is_successful(self) -> bool:
        return self.status == TransformerStatus.COMPLETED and not self.errors

    def is_failed(self) -> bool:
        return self.status == TransformerStatus.FAILED or bool(self.errors)

    def structured(self) -> Any:
        """Decode the data of a structured transformation."""
        if self.data is None:
            return None
        return json.loads(self.data)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransformerResult":
        return cls.model_validate(data)

    @classmethod
    def from_json(cls, raw: str) -> "TransformerResult":
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("JSON must represent an object")
        return cls.from_dict(data)
