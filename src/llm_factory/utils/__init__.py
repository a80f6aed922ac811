from .schema_converter import (
    schema_instruction,
    to_gemini_schema,
    to_json_schema,
    to_openai_response_format,
)

__all__ = [
    "schema_instruction",
    "to_gemini_schema",
    "to_json_schema",
    "to_openai_response_format",
]
