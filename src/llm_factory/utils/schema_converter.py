"""
Structured-output schema conversion.

Adapts a pydantic model class (or a plain JSON schema dict) to the format
each vendor expects:

- Gemini accepts an OpenAPI subset: no ``$ref``, no ``anyOf``, ``nullable``
  instead of ``null`` unions, and its own upper-case type names.
- OpenAI strict ``json_schema`` mode requires every property to be listed in
  ``required`` and ``additionalProperties: false`` on every object.
- Anthropic has no native response schema, so the schema is sent as a
  system instruction.
"""

import copy
import json
import re
from typing import Any, Dict, FrozenSet, Optional

from pydantic import BaseModel

GEMINI_TYPES = {
    "string": "STRING",
    "number": "NUMBER",
    "integer": "INTEGER",
    "boolean": "BOOLEAN",
    "array": "ARRAY",
    "object": "OBJECT",
}

GEMINI_FORMATS = {
    "STRING": {"enum", "date-time"},
    "NUMBER": {"float", "double"},
    "INTEGER": {"int32", "int64"},
}

_NAME_PATTERN = re.compile(r"[^a-zA-Z0-9_-]")


def to_json_schema(schema: Any) -> Dict[str, Any]:
    """Return a self-contained JSON schema with every ``$ref`` inlined."""
    if isinstance(schema, dict):
        raw = copy.deepcopy(schema)
    elif isinstance(schema, type) and issubclass(schema, BaseModel):
        raw = schema.model_json_schema()
    else:
        raise TypeError(
            f"output schema must be a pydantic model class or a dict, got {type(schema).__name__}"
        )

    definitions = {}
    definitions.update(raw.pop("definitions", {}))
    definitions.update(raw.pop("$defs", {}))

    def resolve(node: Any, seen: FrozenSet[str]) -> Any:
        if isinstance(node, dict):
            if "$ref" in node:
                name = node["$ref"].rsplit("/", 1)[-1]
                if name in seen:
                    raise ValueError(f"recursive schema reference '{name}' is not supported")
                if name not in definitions:
                    raise ValueError(f"unresolved schema reference '{node['$ref']}'")
                target = resolve(definitions[name], seen | {name})
                siblings = {k: resolve(v, seen) for k, v in node.items() if k != "$ref"}
                return {**target, **siblings}
            return {k: resolve(v, seen) for k, v in node.items()}
        if isinstance(node, list):
            return [resolve(item, seen) for item in node]
        return node

    return resolve(raw, frozenset())


def _literal_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    return "string"


def _convert_gemini_node(node: Dict[str, Any]) -> Dict[str, Any]:
    node = dict(node)
    nullable = False

    union = node.pop("anyOf", None) or node.pop("oneOf", None)
    if union:
        variants = [v for v in union if v.get("type") != "null"]
        nullable = len(variants) != len(union)
        if len(variants) == 1:
            merged = {**variants[0]}
            if "description" in node:
                merged["description"] = node["description"]
            result = _convert_gemini_node(merged)
        else:
            # Gemini has no union type; fall back to a string field.
            result = {"type": "STRING"}
            if "description" in node:
                result["description"] = node["description"]
        if nullable:
            result["nullable"] = True
        return result

    if "const" in node:
        node["enum"] = [node.pop("const")]

    json_type = node.get("type")
    if isinstance(json_type, list):
        nullable = "null" in json_type
        json_type = next((t for t in json_type if t != "null"), "string")
    if json_type is None:
        if "properties" in node:
            json_type = "object"
        elif "enum" in node and node["enum"]:
            json_type = _literal_type(node["enum"][0])
        else:
            json_type = "string"

    gemini_type = GEMINI_TYPES.get(json_type, "STRING")
    result: Dict[str, Any] = {"type": gemini_type}

    if node.get("description"):
        result["description"] = node["description"]
    if node.get("format") in GEMINI_FORMATS.get(gemini_type, set()):
        result["format"] = node["format"]
    if node.get("enum"):
        result["enum"] = list(node["enum"])
    if nullable:
        result["nullable"] = True

    if gemini_type == "OBJECT":
        properties = node.get("properties", {})
        result["properties"] = {
            name: _convert_gemini_node(prop) for name, prop in properties.items()
        }
        required = [name for name in node.get("required", []) if name in properties]
        if required:
            result["required"] = required
    elif gemini_type == "ARRAY":
        result["items"] = _convert_gemini_node(node.get("items", {"type": "string"}))

    return result


def to_gemini_schema(schema: Any) -> Dict[str, Any]:
    """Convert a schema to a Gemini-compatible response schema."""
    converted = _convert_gemini_node(to_json_schema(schema))
    # The top level must have a type
    if "type" not in converted and "properties" in converted:
        converted["type"] = "OBJECT"
    return converted


def _strict_node(node: Any) -> Any:
    if isinstance(node, list):
        return [_strict_node(item) for item in node]
    if not isinstance(node, dict):
        return node

    node = {k: _strict_node(v) for k, v in node.items() if k != "default"}
    if node.get("type") == "object" or "properties" in node:
        properties = node.get("properties", {})
        node["required"] = list(properties)
        node["additionalProperties"] = False
    return node


def to_openai_response_format(schema: Any, name: Optional[str] = None) -> Dict[str, Any]:
    """Build an OpenAI strict ``json_schema`` response format."""
    json_schema = to_json_schema(schema)
    schema_name = name or json_schema.get("title") or "response"
    return {
        "type": "json_schema",
        "json_schema": {
            "name": _NAME_PATTERN.sub("_", schema_name)[:64],
            "schema": _strict_node(json_schema),
            "strict": True,
        },
    }


def schema_instruction(schema: Any) -> str:
    """System instruction asking for JSON that conforms to the schema."""
    json_schema = to_json_schema(schema)
    return (
        "Respond only with a single JSON value that conforms to the following JSON schema. "
        "Do not wrap it in markdown or add any other text.\n"
        f"{json.dumps(json_schema, indent=2)}"
    )
