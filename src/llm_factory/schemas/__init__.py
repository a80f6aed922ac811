"""Schemas package."""

from .generation import (
    DEFAULT_RETRIES,
    GenerationRequest,
    GenerationResult,
    OutputSchema,
    UsageMetadata,
)

__all__ = [
    "DEFAULT_RETRIES",
    "GenerationRequest",
    "GenerationResult",
    "OutputSchema",
    "UsageMetadata",
]
