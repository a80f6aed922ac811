"""
Google Gemini provider implementation using the google-generativeai SDK.
"""

import base64
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from ..finops import CostCalculator
from ..schemas import GenerationRequest
from ..utils import to_gemini_schema
from .base import (
    AuthenticationError,
    BaseProvider,
    ModelNotFoundError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
    StreamUsage,
)

logger = logging.getLogger(__name__)


def _response_text(response: Any) -> str:
    """Text of the first candidate; empty when the response carries no parts."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return ""
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    return "".join(getattr(part, "text", "") or "" for part in parts)


def _usage_counts(response: Any) -> Tuple[int, int]:
    usage = getattr(response, "usage_metadata", None)
    if usage is None:
        return 0, 0
    return (
        getattr(usage, "prompt_token_count", 0) or 0,
        getattr(usage, "candidates_token_count", 0) or 0,
    )


class GoogleProvider(BaseProvider):
    """Provider for Google Gemini models."""

    provider_name = "google"

    def __init__(
        self,
        api_key: Optional[str],
        timeout: float = 60.0,
        cost_calculator: Optional[CostCalculator] = None,
    ) -> None:
        """
        Initialize Google provider.

        Args:
            api_key: Gemini API key
            timeout: Request timeout in seconds
            cost_calculator: Calculator used to price usage metadata
        """
        super().__init__(api_key, timeout, cost_calculator)
        genai.configure(api_key=api_key)

    def _generation_config(self, request: GenerationRequest) -> Dict[str, Any]:
        config: Dict[str, Any] = {}
        if request.temperature is not None:
            config["temperature"] = request.temperature
        if request.max_tokens is not None:
            config["max_output_tokens"] = request.max_tokens
        if request.output_schema is not None:
            config["response_mime_type"] = "application/json"
            config["response_schema"] = to_gemini_schema(request.output_schema)
        return config

    def _get_model(self, model_name: str, generation_config: Dict[str, Any]) -> Any:
        return genai.GenerativeModel(
            model_name=model_name,
            generation_config=genai.types.GenerationConfig(**generation_config),
        )

    def _build_contents(self, request: GenerationRequest) -> List[Dict[str, Any]]:
        parts: List[Dict[str, Any]] = [{"text": request.prompt}]
        for image in request.images:
            parts.append({"inline_data": {"mime_type": "image/jpeg", "data": base64.b64decode(image)}})
        for audio in request.audios:
            parts.append({"inline_data": {"mime_type": "audio/mp3", "data": base64.b64decode(audio)}})
        return [{"role": "user", "parts": parts}]

    async def _complete(self, request: GenerationRequest) -> Tuple[str, int, int]:
        model = self._get_model(request.model_name, self._generation_config(request))
        response = await model.generate_content_async(
            self._build_contents(request), request_options={"timeout": self.timeout}
        )
        input_tokens, output_tokens = _usage_counts(response)
        return _response_text(response), input_tokens, output_tokens

    async def _stream_chunks(
        self, request: GenerationRequest, usage: StreamUsage
    ) -> AsyncIterator[str]:
        model = self._get_model(request.model_name, self._generation_config(request))
        response = await model.generate_content_async(
            self._build_contents(request),
            stream=True,
            request_options={"timeout": self.timeout},
        )
        async for chunk in response:
            # Each chunk carries the running totals; the last one wins
            if getattr(chunk, "usage_metadata", None) is not None:
                usage.input_tokens, usage.output_tokens = _usage_counts(chunk)
            text = _response_text(chunk)
            if text:
                yield text

    def _translate_error(self, error: Exception) -> ProviderError:
        if isinstance(error, (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied)):
            return AuthenticationError(
                "Invalid Gemini API key", provider="google", status_code=401, retryable=False
            )
        if isinstance(error, google_exceptions.ResourceExhausted):
            return RateLimitError("Gemini rate limit exceeded", provider="google")
        if isinstance(error, google_exceptions.DeadlineExceeded):
            return ProviderTimeoutError(
                f"Gemini request timeout after {self.timeout}s", provider="google"
            )
        if isinstance(error, google_exceptions.NotFound):
            return ModelNotFoundError(
                f"Gemini model not found: {error}", provider="google", status_code=404
            )
        if isinstance(error, google_exceptions.GoogleAPICallError):
            status_code = error.code if isinstance(error.code, int) else None
            return ProviderError(
                f"Gemini API error: {error}",
                provider="google",
                status_code=status_code,
                retryable=status_code is None or status_code >= 500,
            )
        return ProviderError(f"Unexpected error: {error}", provider="google")
