"""Generation request and response schemas."""

from typing import Any, Dict, List, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_RETRIES = 3

OutputSchema = Union[Type[BaseModel], Dict[str, Any]]


class GenerationRequest(BaseModel):
    """A generation request addressed to one model or an ordered list of candidates."""

    model: Union[str, List[str]] = Field(
        ..., description="Model id, or ordered list of candidate model ids"
    )
    prompt: str = Field(..., description="Prompt text")
    image: Optional[Union[str, List[str]]] = Field(
        None, description="Base64 encoded image(s), assumed JPEG"
    )
    audio: Optional[Union[str, List[str]]] = Field(
        None, description="Base64 encoded audio clip(s), assumed MP3"
    )
    temperature: Optional[float] = Field(None, ge=0, le=2, description="Sampling temperature")
    max_tokens: Optional[int] = Field(None, ge=1, description="Maximum output tokens")
    output_schema: Optional[OutputSchema] = Field(
        None, description="Pydantic model class or JSON schema for structured output"
    )
    retries: int = Field(DEFAULT_RETRIES, ge=1, description="Attempts per candidate model")

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        json_schema_extra={
            "example": {
                "model": ["gpt-4.1-nano", "claude-3-5-haiku-latest"],
                "prompt": "What are LLMs? Answer in one sentence.",
                "temperature": 0.7,
                "retries": 2,
            }
        },
    )

    @field_validator("model")
    @classmethod
    def validate_candidates(cls, v):
        candidates = [v] if isinstance(v, str) else list(v)
        if not candidates:
            raise ValueError("at least one candidate model is required")
        if any(not m or not m.strip() for m in candidates):
            raise ValueError("model ids must be non-empty strings")
        return v

    @property
    def candidate_models(self) -> List[str]:
        """Ordered candidate list; a single model is the one-element case."""
        if isinstance(self.model, str):
            return [self.model]
        return list(self.model)

    @property
    def model_name(self) -> str:
        """The first candidate, which is the only one once addressed to an adapter."""
        return self.candidate_models[0]

    @property
    def images(self) -> List[str]:
        if self.image is None:
            return []
        return [self.image] if isinstance(self.image, str) else list(self.image)

    @property
    def audios(self) -> List[str]:
        if self.audio is None:
            return []
        return [self.audio] if isinstance(self.audio, str) else list(self.audio)

    def for_model(self, model: str) -> "GenerationRequest":
        """Copy of this request addressed to a single candidate."""
        return self.model_copy(update={"model": model})


class UsageMetadata(BaseModel):
    """Token usage and cost of one successful generation."""

    model: str = Field(..., description="Model that produced the output")
    input_tokens: int = Field(0, ge=0, description="Prompt tokens")
    output_tokens: int = Field(0, ge=0, description="Completion tokens")
    cost: float = Field(0.0, ge=0, description="Cost in USD")

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class GenerationResult(BaseModel):
    """Full response text and its usage metadata."""

    text: str = Field(..., description="Response text")
    metadata: UsageMetadata = Field(..., description="Usage metadata")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "text": "LLMs are neural networks trained on large text corpora.",
                "metadata": {
                    "model": "gpt-4o",
                    "input_tokens": 1000,
                    "output_tokens": 2000,
                    "cost": 0.0225,
                },
            }
        }
    )
