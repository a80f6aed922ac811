"""Unit tests for structured-output schema conversion."""

from typing import List, Literal, Optional

import pytest
from pydantic import BaseModel, Field

from llm_factory.utils import (
    schema_instruction,
    to_gemini_schema,
    to_json_schema,
    to_openai_response_format,
)


class Address(BaseModel):
    city: str
    zip_code: Optional[str] = None


class Person(BaseModel):
    """A person."""

    name: str = Field(..., description="Full name")
    age: int = 0
    tags: List[str] = []
    role: Literal["admin", "user"] = "user"
    address: Address


class Node(BaseModel):
    value: int
    children: List["Node"] = []


class TestJsonSchema:
    """Test suite for $ref inlining."""

    def test_refs_are_inlined(self):
        schema = to_json_schema(Person)

        assert "$defs" not in schema
        assert schema["properties"]["address"]["properties"]["city"]["type"] == "string"

    def test_dict_schema_is_copied(self):
        raw = {"type": "object", "properties": {"a": {"type": "string"}}}
        schema = to_json_schema(raw)
        schema["properties"]["a"]["type"] = "integer"

        assert raw["properties"]["a"]["type"] == "string"

    def test_recursive_schema_is_rejected(self):
        with pytest.raises(ValueError, match="recursive"):
            to_json_schema(Node)

    def test_invalid_schema_type(self):
        with pytest.raises(TypeError):
            to_json_schema("not a schema")


class TestGeminiSchema:
    """Test suite for Gemini response schemas."""

    def test_types_are_upper_case(self):
        schema = to_gemini_schema(Person)

        assert schema["type"] == "OBJECT"
        assert schema["properties"]["name"] == {"type": "STRING", "description": "Full name"}
        assert schema["properties"]["age"]["type"] == "INTEGER"
        assert schema["properties"]["tags"] == {"type": "ARRAY", "items": {"type": "STRING"}}
        assert schema["required"] == ["name", "address"]

    def test_optional_field_is_nullable(self):
        schema = to_gemini_schema(Address)

        assert schema["properties"]["zip_code"] == {"type": "STRING", "nullable": True}

    def test_literal_becomes_enum(self):
        schema = to_gemini_schema(Person)

        assert schema["properties"]["role"]["enum"] == ["admin", "user"]
        assert schema["properties"]["role"]["type"] == "STRING"

    def test_unsupported_keys_are_dropped(self):
        schema = to_gemini_schema(Person)

        assert "title" not in schema
        assert "default" not in schema["properties"]["age"]

    def test_multi_type_union_falls_back_to_string(self):
        schema = to_gemini_schema(
            {
                "type": "object",
                "properties": {"value": {"anyOf": [{"type": "integer"}, {"type": "string"}]}},
            }
        )

        assert schema["properties"]["value"] == {"type": "STRING"}


class TestOpenAIResponseFormat:
    """Test suite for OpenAI strict response formats."""

    def test_strict_format(self):
        response_format = to_openai_response_format(Person)

        assert response_format["type"] == "json_schema"
        assert response_format["json_schema"]["name"] == "Person"
        assert response_format["json_schema"]["strict"] is True

    def test_every_object_is_closed(self):
        schema = to_openai_response_format(Person)["json_schema"]["schema"]

        assert schema["required"] == ["name", "age", "tags", "role", "address"]
        assert schema["additionalProperties"] is False
        address = schema["properties"]["address"]
        assert address["required"] == ["city", "zip_code"]
        assert address["additionalProperties"] is False

    def test_defaults_are_removed(self):
        schema = to_openai_response_format(Person)["json_schema"]["schema"]

        assert "default" not in schema["properties"]["age"]

    def test_name_is_sanitized(self):
        response_format = to_openai_response_format(
            {"type": "object", "properties": {}}, name="my schema!"
        )

        assert response_format["json_schema"]["name"] == "my_schema_"


def test_schema_instruction_embeds_schema():
    instruction = schema_instruction(Address)

    assert instruction.startswith("Respond only with a single JSON value")
    assert '"zip_code"' in instruction
