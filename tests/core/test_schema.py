from datetime import datetime
from decimal import Decimal
from typing import List, Optional

import pytest
from pydantic import BaseModel, Field, ValidationError

from transmute.core.schema import ModelSchemaService, schema_for_cast_type


class Profile(BaseModel):
    name: str
    age: int
    score: Decimal
    active: bool
    tags: List[str]
    born_at: datetime
    nickname: Optional[str] = None
    internal_id: str = Field(default="", exclude=True)


class Empty(BaseModel):
    pass


class TestSchemaForCastType:
    @pytest.mark.parametrize(
        "cast_type, expected",
        [
            ("boolean", "boolean"),
            ("bool", "boolean"),
            ("integer", "number"),
            ("float", "number"),
            ("decimal:2", "number"),
            ("array", "array"),
            ("json", "array"),
            ("collection", "array"),
            ("datetime", "string"),
            ("something_else", "string"),
        ],
    )
    def test_types(self, cast_type, expected):
        assert schema_for_cast_type("field", cast_type)["type"] == expected

    def test_date_description(self):
        schema = schema_for_cast_type("born_at", "date")

        assert schema["description"] == "Born at (ISO 8601 format)"

    def test_array_items(self):
        assert schema_for_cast_type("tags", "array")["items"]["type"] == "string"


class TestModelSchemaService:
    def setup_method(self):
        self.service = ModelSchemaService()

    def test_all_writable_fields_are_required_without_config(self):
        schema = self.service.convert_model_to_schema(Profile)

        assert schema["type"] == "object"
        assert schema["title"] == "profile"
        assert schema["description"] == "Schema for Profile model"
        assert schema["additionalProperties"] is False
        assert "internal_id" not in schema["properties"]
        assert schema["required"] == [
            "name",
            "age",
            "score",
            "active",
            "tags",
            "born_at",
            "nickname",
        ]
        assert schema["properties"]["age"]["type"] == "number"
        assert schema["properties"]["score"]["type"] == "number"
        assert schema["properties"]["active"]["type"] == "boolean"
        assert schema["properties"]["tags"]["type"] == "array"
        assert schema["properties"]["born_at"]["description"].endswith("(ISO 8601 format)")
        assert schema["properties"]["nickname"]["type"] == "string"

    def test_instances_are_accepted(self):
        profile = Profile(
            name="Ada", age=36, score=Decimal("9.5"), active=True, tags=[], born_at=datetime.now()
        )

        assert self.service.convert_model_to_schema(profile)["title"] == "profile"

    def test_config_selects_fields_and_required(self):
        schema = self.service.convert_model_to_schema(
            Profile,
            {
                "name": {"required": True},
                "age": {},
                "summary": {"type": "string", "required": True},
            },
        )

        assert list(schema["properties"]) == ["name", "age", "summary"]
        assert schema["required"] == ["name", "summary"]
        assert schema["properties"]["age"]["type"] == "number"

    def test_config_type_override(self):
        schema = self.service.convert_model_to_schema(Profile, {"name": {"type": "boolean"}})

        assert schema["properties"]["name"]["type"] == "boolean"

    def test_empty_model_has_no_schema(self):
        assert self.service.convert_model_to_schema(Empty) is None

    def test_non_model_has_no_schema(self):
        assert self.service.convert_model_to_schema(dict) is None  # type: ignore[arg-type]

    def test_convert_data_to_model(self):
        profile = self.service.convert_data_to_model(
            Profile,
            {
                "name": "Ada",
                "age": 36,
                "score": "9.5",
                "active": True,
                "tags": ["math"],
                "born_at": "1815-12-10T00:00:00",
            },
        )

        assert isinstance(profile, Profile)
        assert profile.age == 36

    def test_convert_data_to_model_validates(self):
        with pytest.raises(ValidationError):
            self.service.convert_data_to_model(Profile, {"name": "Ada"})
