"""
Anthropic provider implementation for the messages API.
"""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from anthropic import APIConnectionError, APIError, APIStatusError, APITimeoutError, AsyncAnthropic
from anthropic import AuthenticationError as AnthropicAuthError
from anthropic import NotFoundError
from anthropic import RateLimitError as AnthropicRateLimitError

from ..finops import CostCalculator
from ..schemas import GenerationRequest
from ..utils import schema_instruction
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

DEFAULT_MAX_TOKENS = 8192


class AnthropicProvider(BaseProvider):
    """Anthropic provider implementation with streaming support."""

    provider_name = "anthropic"

    def __init__(
        self,
        api_key: Optional[str],
        timeout: float = 60.0,
        cost_calculator: Optional[CostCalculator] = None,
        client: Optional[Any] = None,
        default_max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> None:
        """
        Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key
            timeout: Request timeout in seconds
            cost_calculator: Calculator used to price usage metadata
            client: Preconfigured async client, mainly for tests
            default_max_tokens: max_tokens sent when the request sets none
        """
        super().__init__(api_key, timeout, cost_calculator)
        self.default_max_tokens = default_max_tokens
        self.client = client or AsyncAnthropic(
            api_key=api_key, timeout=timeout, max_retries=0  # Retries belong to the orchestrator
        )

    def _build_content(self, request: GenerationRequest) -> List[Dict[str, Any]]:
        if request.audios:
            raise ProviderError(
                "Audio input is not supported by Anthropic models",
                provider="anthropic",
                error_code="UNSUPPORTED_INPUT",
                retryable=False,
            )

        content: List[Dict[str, Any]] = []
        for image in request.images:
            content.append(
                {
                    "type": "image",
                    "source": {"type": "base64", "media_type": "image/jpeg", "data": image},
                }
            )
        content.append({"type": "text", "text": request.prompt})
        return content

    def _build_params(self, request: GenerationRequest) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "model": request.model_name,
            "messages": [{"role": "user", "content": self._build_content(request)}],
            # Anthropic requires max_tokens
            "max_tokens": request.max_tokens or self.default_max_tokens,
        }
        if request.temperature is not None:
            params["temperature"] = request.temperature
        if request.output_schema is not None:
            params["system"] = schema_instruction(request.output_schema)
        return params

    async def _complete(self, request: GenerationRequest) -> Tuple[str, int, int]:
        response = await self.client.messages.create(**self._build_params(request))

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        usage = response.usage
        if usage is None:
            return text, 0, 0
        return text, usage.input_tokens or 0, usage.output_tokens or 0

    async def _stream_chunks(
        self, request: GenerationRequest, usage: StreamUsage
    ) -> AsyncIterator[str]:
        async with self.client.messages.stream(**self._build_params(request)) as stream:
            async for text in stream.text_stream:
                yield text
            final_message = await stream.get_final_message()

        if final_message.usage is not None:
            usage.input_tokens = final_message.usage.input_tokens or 0
            usage.output_tokens = final_message.usage.output_tokens or 0

    def _translate_error(self, error: Exception) -> ProviderError:
        if isinstance(error, AnthropicAuthError):
            return AuthenticationError(
                "Invalid Anthropic API key", provider="anthropic", status_code=401, retryable=False
            )
        if isinstance(error, AnthropicRateLimitError):
            return RateLimitError(
                "Anthropic rate limit exceeded",
                provider="anthropic",
                retry_after=retry_after_seconds(error),
            )
        if isinstance(error, APITimeoutError):
            return ProviderTimeoutError(
                f"Anthropic request timeout after {self.timeout}s", provider="anthropic"
            )
        if isinstance(error, NotFoundError):
            return ModelNotFoundError(
                f"Anthropic model not found: {error}", provider="anthropic", status_code=404
            )
        if isinstance(error, APIConnectionError):
            return ProviderError("Failed to connect to Anthropic API", provider="anthropic")
        if isinstance(error, APIStatusError):
            return ProviderError(
                f"Anthropic API error: {error}",
                provider="anthropic",
                status_code=error.status_code,
                retryable=error.status_code >= 500,
            )
        if isinstance(error, APIError):
            return ProviderError(f"Anthropic API error: {error}", provider="anthropic")
        return ProviderError(f"Unexpected error: {error}", provider="anthropic")
