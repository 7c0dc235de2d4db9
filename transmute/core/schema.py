"""
Conversion of pydantic record types to JSON object schemas for structured output.
"""

import logging
import types
import typing
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Type, Union

from pydantic import BaseModel

SchemaConfig = Mapping[str, Mapping[str, Any]]

_BOOLEAN_TYPES = {"boolean", "bool"}
_NUMBER_TYPES = {"integer", "int", "float", "double", "real", "number"}
_ARRAY_TYPES = {"array", "json", "list"}
_DATE_TYPES = {"date", "datetime", "timestamp"}


def _describe(field_name: str) -> str:
    description = field_name.replace("_", " ")
    return description[:1].upper() + description[1:]


def schema_for_cast_type(field_name: str, cast_type: str) -> Dict[str, Any]:
    """Map a cast type name such as 'boolean' or 'decimal:2' to a JSON schema."""
    description = _describe(field_name)
    cast_type = cast_type.lower()

    if cast_type in _BOOLEAN_TYPES:
        return {"type": "boolean", "description": description}
    if cast_type in _NUMBER_TYPES or cast_type.startswith("decimal"):
        return {"type": "number", "description": description}
    if cast_type in _ARRAY_TYPES:
        return {
            "type": "array",
            "description": description,
            "items": {"type": "string", "description": "Array item"},
        }
    if cast_type == "collection":
        return {
            "type": "array",
            "description": description,
            "items": {"type": "string", "description": "Collection item"},
        }
    if cast_type in _DATE_TYPES:
        return {"type": "string", "description": f"{description} (ISO 8601 format)"}
    return {"type": "string", "description": description}


def cast_type_for_annotation(annotation: Any) -> str:
    """Best effort cast type for a field annotation; anything unknown is a string."""
    origin = typing.get_origin(annotation)
    if origin is Union or origin is getattr(types, "UnionType", None):
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return cast_type_for_annotation(args[0])
        return "string"
    if origin in (list, tuple, set, frozenset, dict):
        return "array"

    if annotation is bool:
        return "boolean"
    if annotation is int:
        return "integer"
    if annotation in (float, Decimal):
        return "float"
    if annotation in (datetime, date, time):
        return "datetime"
    if annotation in (list, tuple, set, frozenset, dict):
        return "array"
    return "string"


class ModelSchemaService:
    """Builds object schemas from pydantic models and hydrates models from data."""

    def convert_model_to_schema(
        self,
        model: Union[Type[BaseModel], BaseModel],
        config: Optional[SchemaConfig] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Convert a pydantic model (class or instance) to a JSON object schema.

        With an explicit config only the configured fields are included and
        each is optional unless marked required; without it every writable
        field is included and required. Returns None when no field remains.
        """
        model_cls = model if isinstance(model, type) else type(model)
        if not (isinstance(model_cls, type) and issubclass(model_cls, BaseModel)):
            logging.warning(f"Cannot build a schema from {model_cls!r}: not a pydantic model")
            return None

        if config:
            properties, required = self._build_from_config(model_cls, config)
        else:
            properties, required = self._build_from_fields(model_cls)

        if not properties:
            return None

        name = model_cls.__name__
        return {
            "type": "object",
            "title": name.lower(),
            "description": f"Schema for {name} model",
            "properties": properties,
            "required": required,
            "additionalProperties": False,
        }

    def convert_data_to_model(self, model_cls: Type[BaseModel], data: Dict[str, Any]) -> BaseModel:
        if not (isinstance(model_cls, type) and issubclass(model_cls, BaseModel)):
            raise ValueError(f"{model_cls!r} is not a pydantic model")
        return model_cls.model_validate(data)

    def _writable_fields(self, model_cls: Type[BaseModel]) -> Dict[str, Any]:
        return {
            name: info
            for name, info in model_cls.model_fields.items()
            if not info.exclude and not info.frozen
        }

    def _build_from_config(self, model_cls: Type[BaseModel], config: SchemaConfig):
        properties: Dict[str, Any] = {}
        required: List[str] = []
        fields = model_cls.model_fields

        for field_name, field_config in config.items():
            if not _is_valid_field_name(field_name):
                continue
            field_type = field_config.get("type")
            if field_type is None:
                field_info = fields.get(field_name)
                field_type = (
                    cast_type_for_annotation(field_info.annotation) if field_info else "string"
                )
            properties[field_name] = schema_for_cast_type(field_name, field_type)
            if field_config.get("required", False):
                required.append(field_name)

        return properties, required

    def _build_from_fields(self, model_cls: Type[BaseModel]):
        properties: Dict[str, Any] = {}
        required: List[str] = []

        for field_name, field_info in self._writable_fields(model_cls).items():
            if not _is_valid_field_name(field_name):
                continue
            cast_type = cast_type_for_annotation(field_info.annotation)
            properties[field_name] = schema_for_cast_type(field_name, cast_type)
            required.append(field_name)

        return properties, required


def _is_valid_field_name(field: Any) -> bool:
    return isinstance(field, str) and field.strip() != ""
