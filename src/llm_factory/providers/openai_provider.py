"""
OpenAI provider implementation for chat completions.
"""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from openai import APIConnectionError, APIError, APIStatusError, APITimeoutError, AsyncOpenAI
from openai import AuthenticationError as OpenAIAuthError
from openai import NotFoundError
from openai import RateLimitError as OpenAIRateLimitError

from ..finops import CostCalculator
from ..schemas import GenerationRequest
from ..utils import to_openai_response_format
from .base import (
    AuthenticationError,
    BaseProvider,
    ModelNotFoundError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
    StreamUsage,
    retry_after_seconds,
)

logger = logging.getLogger(__name__)

# Models that need an audio-capable variant when the request carries audio
AUDIO_MODEL_VARIANTS = {
    "gpt-4o": "gpt-4o-audio-preview",
    "gpt-4o-mini": "gpt-4o-mini-audio-preview",
}


class OpenAIProvider(BaseProvider):
    """OpenAI provider implementation with streaming support."""

    provider_name = "openai"

    def __init__(
        self,
        api_key: Optional[str],
        timeout: float = 60.0,
        cost_calculator: Optional[CostCalculator] = None,
        client: Optional[Any] = None,
    ) -> None:
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            timeout: Request timeout in seconds
            cost_calculator: Calculator used to price usage metadata
            client: Preconfigured async client, mainly for tests
        """
        super().__init__(api_key, timeout, cost_calculator)
        self.client = client or AsyncOpenAI(
            api_key=api_key, timeout=timeout, max_retries=0  # Retries belong to the orchestrator
        )

    def _resolve_model(self, request: GenerationRequest) -> str:
        model = request.model_name
        if request.audios and model in AUDIO_MODEL_VARIANTS:
            swapped = AUDIO_MODEL_VARIANTS[model]
            logger.debug(
                "Switching to audio-capable model",
                extra={"provider": self.provider_name, "model": model, "vendor_model": swapped},
            )
            return swapped
        return model

    def _build_messages(self, request: GenerationRequest) -> List[Dict[str, Any]]:
        if not request.images and not request.audios:
            return [{"role": "user", "content": request.prompt}]

        content: List[Dict[str, Any]] = [{"type": "text", "text": request.prompt}]
        for image in request.images:
            content.append(
                {"type": "image_url", "image_url": {"url": f"data:image/jpeg;base64,{image}"}}
            )
        for audio in request.audios:
            content.append({"type": "input_audio", "input_audio": {"data": audio, "format": "mp3"}})
        return [{"role": "user", "content": content}]

    def _build_params(self, request: GenerationRequest, stream: bool = False) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "model": self._resolve_model(request),
            "messages": self._build_messages(request),
        }
        if request.audios:
            # Text output only, so no audio output configuration is required
            params["modalities"] = ["text"]
        if request.temperature is not None:
            params["temperature"] = request.temperature
        if request.max_tokens is not None:
            params["max_tokens"] = request.max_tokens
        if request.output_schema is not None:
            params["response_format"] = to_openai_response_format(request.output_schema)
        if stream:
            params["stream"] = True
            params["stream_options"] = {"include_usage": True}
        return params

    async def _complete(self, request: GenerationRequest) -> Tuple[str, int, int]:
        response = await self.client.chat.completions.create(**self._build_params(request))

        text = ""
        if response.choices:
            text = response.choices[0].message.content or ""

        usage = response.usage
        if usage is None:
            return text, 0, 0
        return text, usage.prompt_tokens or 0, usage.completion_tokens or 0

    async def _stream_chunks(
        self, request: GenerationRequest, usage: StreamUsage
    ) -> AsyncIterator[str]:
        stream = await self.client.chat.completions.create(
            **self._build_params(request, stream=True)
        )
        async for chunk in stream:
            # The usage chunk arrives last, with no choices
            if getattr(chunk, "usage", None):
                usage.input_tokens = chunk.usage.prompt_tokens or 0
                usage.output_tokens = chunk.usage.completion_tokens or 0
            if chunk.choices:
                content = chunk.choices[0].delta.content
                if content:
                    yield content

    def _translate_error(self, error: Exception) -> ProviderError:
        if isinstance(error, OpenAIAuthError):
            return AuthenticationError(
                "Invalid OpenAI API key", provider="openai", status_code=401, retryable=False
            )
        if isinstance(error, OpenAIRateLimitError):
            return RateLimitError(
                "OpenAI rate limit exceeded",
                provider="openai",
                retry_after=retry_after_seconds(error),
            )
        if isinstance(error, APITimeoutError):
            return ProviderTimeoutError(
                f"OpenAI request timeout after {self.timeout}s", provider="openai"
            )
        if isinstance(error, NotFoundError):
            return ModelNotFoundError(
                f"OpenAI model not found: {error}", provider="openai", status_code=404
            )
        if isinstance(error, APIConnectionError):
            return ProviderError("Failed to connect to OpenAI API", provider="openai")
        if isinstance(error, APIStatusError):
            return ProviderError(
                f"OpenAI API error: {error}",
                provider="openai",
                status_code=error.status_code,
                retryable=error.status_code >= 500,
            )
        if isinstance(error, APIError):
            return ProviderError(f"OpenAI API error: {error}", provider="openai")
        return ProviderError(f"Unexpected error: {error}", provider="openai")
