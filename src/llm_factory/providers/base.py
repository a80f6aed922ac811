"""
Base provider abstract class and the provider error hierarchy.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import AsyncIterator, Dict, Optional, Tuple

from ..exceptions import LLMFactoryError, ProviderUnavailableError, RequestCancelledError
from ..finops import CostCalculator, default_cost_calculator
from ..schemas import GenerationRequest, GenerationResult, UsageMetadata
from ..streaming import (
    ByteChannel,
    ByteStreamWithMetadata,
    ChunkCallback,
    CompleteCallback,
    Deferred,
    ErrorCallback,
    StreamWithMetadata,
    invoke_callback,
)

logger = logging.getLogger(__name__)


class ProviderError(LLMFactoryError):
    """Base exception for provider-related errors."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict] = None,
        error_code: Optional[str] = None,
        retryable: bool = True,
    ):
        """
        Initialize provider error.

        Args:
            message: Error message
            provider: Provider name
            status_code: HTTP status code if applicable
            details: Additional error details
            error_code: Error code for categorization
            retryable: Whether the error is retryable
        """
        super().__init__(message, error_code=error_code or "PROVIDER_ERROR", details=details)
        self.provider = provider
        self.status_code = status_code
        self.retryable = retryable
        self.timestamp = datetime.now(timezone.utc)


class RateLimitError(ProviderError):
    """Rate limit exceeded error."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        retry_after: Optional[float] = None,
        status_code: Optional[int] = 429,
    ):
        super().__init__(
            message, provider=provider, status_code=status_code, error_code="RATE_LIMIT"
        )
        self.retry_after = retry_after


def retry_after_seconds(error: Exception) -> Optional[float]:
    """Seconds from the ``retry-after`` header of a vendor error response, if any."""
    response = getattr(error, "response", None)
    if response is None or not response.headers.get("retry-after"):
        return None
    try:
        return float(response.headers["retry-after"])
    except ValueError:
        return None


class AuthenticationError(ProviderError):
    """Authentication/API key error."""

    pass


class ModelNotFoundError(ProviderError):
    """Model not found error."""

    pass


class ProviderTimeoutError(ProviderError):
    """Request timeout error."""

    pass


@dataclass
class StreamUsage:
    """Token counts filled in by a provider while its stream is consumed."""

    input_tokens: int = 0
    output_tokens: int = 0


class BaseProvider(ABC):
    """Abstract base class for vendor adapters.

    Subclasses implement ``_complete`` and ``_stream_chunks``; the four
    generation modes are built on top of them here.
    """

    provider_name: str = "base"

    def __init__(
        self,
        api_key: Optional[str],
        timeout: float = 60.0,
        cost_calculator: Optional[CostCalculator] = None,
    ):
        """
        Initialize the provider.

        Args:
            api_key: API key for the provider
            timeout: Request timeout in seconds
            cost_calculator: Calculator used to price usage metadata

        Raises:
            ProviderUnavailableError: If no API key is given
        """
        if not api_key:
            raise ProviderUnavailableError(self.provider_name, "API key is not configured")
        self.api_key = api_key
        self.timeout = timeout
        self.cost_calculator = cost_calculator or default_cost_calculator

    @abstractmethod
    async def _complete(self, request: GenerationRequest) -> Tuple[str, int, int]:
        """
        Run a single non-streaming completion.

        Args:
            request: Request addressed to one model

        Returns:
            Tuple[str, int, int]: Response text, input tokens, output tokens
        """

    @abstractmethod
    def _stream_chunks(
        self, request: GenerationRequest, usage: StreamUsage
    ) -> AsyncIterator[str]:
        """
        Stream text chunks from the vendor.

        Implementations are async generators that record token counts on
        ``usage`` before they finish.
        """

    def _translate_error(self, error: Exception) -> ProviderError:
        """Map a vendor SDK exception onto the provider error hierarchy."""
        return ProviderError(
            f"{self.provider_name} API error: {error}", provider=self.provider_name
        )

    def _wrap_error(self, error: Exception) -> LLMFactoryError:
        if isinstance(error, LLMFactoryError):
            return error
        return self._translate_error(error)

    def create_metadata(
        self, model: str, input_tokens: int = 0, output_tokens: int = 0
    ) -> UsageMetadata:
        return UsageMetadata(
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost=self.cost_calculator.calculate(model, input_tokens, output_tokens),
        )

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        Generate the full response text.

        Args:
            request: Request addressed to one model

        Returns:
            GenerationResult: Text and usage metadata

        Raises:
            ProviderError: If the vendor call fails
        """
        model = request.model_name
        self._log_request(request)
        start_time = time.time()
        try:
            text, input_tokens, output_tokens = await self._complete(request)
            metadata = self.create_metadata(model, input_tokens, output_tokens)
        except Exception as e:
            error = self._wrap_error(e)
            self._log_error(error, model)
            if error is e:
                raise
            raise error from e

        self._log_response(metadata, time.time() - start_time)
        return GenerationResult(text=text, metadata=metadata)

    def generate_stream(self, request: GenerationRequest) -> StreamWithMetadata:
        """
        Stream the response.

        Nothing is sent to the vendor until the stream is iterated. The
        metadata resolves once the stream has been consumed to the end, and
        fails with the stream's error otherwise.
        """
        model = request.model_name
        metadata: Deferred[UsageMetadata] = Deferred()

        async def relay() -> AsyncIterator[str]:
            usage = StreamUsage()
            self._log_request(request, stream=True)
            start_time = time.time()
            try:
                async for chunk in self._stream_chunks(request, usage):
                    if chunk:
                        yield chunk
                result = self.create_metadata(model, usage.input_tokens, usage.output_tokens)
                metadata.set_result(result)
            except Exception as e:
                error = self._wrap_error(e)
                self._log_error(error, model)
                metadata.set_exception(error)
                if error is e:
                    raise
                raise error from e
            finally:
                # Closed or cancelled before the end of the stream
                if not metadata.done():
                    metadata.set_exception(RequestCancelledError())

            self._log_response(result, time.time() - start_time)

        async def get_metadata() -> UsageMetadata:
            return await metadata.wait()

        return StreamWithMetadata(stream=relay(), get_metadata=get_metadata)

    async def generate_with_callbacks(
        self,
        request: GenerationRequest,
        on_chunk: ChunkCallback,
        on_complete: Optional[CompleteCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        """
        Stream the response through callbacks.

        ``on_chunk`` receives every chunk; afterwards exactly one of
        ``on_complete`` or ``on_error`` is called.
        """
        handle = self.generate_stream(request)
        parts = []
        try:
            async for chunk in handle:
                parts.append(chunk)
                await invoke_callback(on_chunk, chunk)
            metadata = await handle.get_metadata()
        except Exception as e:
            await invoke_callback(on_error, e)
            return
        finally:
            await handle.aclose()

        await invoke_callback(
            on_complete, GenerationResult(text="".join(parts), metadata=metadata)
        )

    def generate_byte_channel(
        self, request: GenerationRequest, maxsize: int = 0
    ) -> ByteStreamWithMetadata:
        """
        Stream the response into a byte channel.

        Production starts immediately, so this must be called with an event
        loop running.
        """
        channel = ByteChannel(maxsize)
        handle = self.generate_stream(request)

        async def pump() -> None:
            try:
                async for chunk in handle:
                    await channel.write(chunk)
            except Exception as e:
                channel.fail(e)
            finally:
                await handle.aclose()
                channel.close()

        channel.attach_producer(asyncio.create_task(pump()))
        return ByteStreamWithMetadata(channel=channel, get_metadata=handle.get_metadata)

    def _log_request(self, request: GenerationRequest, stream: bool = False) -> None:
        """
        Log request details.

        Args:
            request: Request addressed to one model
            stream: Whether the response is streamed
        """
        logger.info(
            f"Provider {self.provider_name} request",
            extra={
                "provider": self.provider_name,
                "model": request.model_name,
                "stream": stream,
                "images": len(request.images),
                "audio": len(request.audios),
                "structured": request.output_schema is not None,
                "temperature": request.temperature,
                "max_tokens": request.max_tokens,
            },
        )

    def _log_response(self, metadata: UsageMetadata, duration: Optional[float] = None) -> None:
        """
        Log response details.

        Args:
            metadata: Usage metadata of the response
            duration: Request duration in seconds
        """
        logger.info(
            f"Provider {self.provider_name} response",
            extra={
                "provider": self.provider_name,
                "model": metadata.model,
                "duration": duration,
                "input_tokens": metadata.input_tokens,
                "output_tokens": metadata.output_tokens,
                "cost": metadata.cost,
            },
        )

    def _log_error(self, error: Exception, model: Optional[str] = None) -> None:
        """
        Log error details.

        Args:
            error: Exception that occurred
            model: Model identifier if available
        """
        logger.error(
            f"Provider {self.provider_name} error",
            extra={
                "provider": self.provider_name,
                "model": model,
                "error_type": type(error).__name__,
                "error_message": str(error),
            },
        )
