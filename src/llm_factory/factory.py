"""
LLM Factory: one entry point for generation across OpenAI, Gemini and Anthropic models.
"""

from typing import Any, List, Optional, Sequence, Union

from .config import Settings, get_settings
from .finops import CostCalculator, default_cost_calculator
from .orchestrator import AttemptObserver, FallbackOrchestrator, ModelRouter, TelemetryObserver
from .schemas import GenerationRequest, GenerationResult
from .streaming import (
    ByteStreamWithMetadata,
    ChunkCallback,
    CompleteCallback,
    ErrorCallback,
    StreamWithMetadata,
)


class LLMFactory:
    """Generate text with automatic retries and fallback across candidate models.

    Every generation method accepts either a ``GenerationRequest`` or its
    fields as keyword arguments. ``model`` may be a single model id or an
    ordered list of candidates; ``retries`` is the number of attempts per
    candidate and defaults to the configured ``DEFAULT_RETRIES``.

    Example:
        factory = LLMFactory()
        result = await factory.generate(
            model=["gpt-4.1-nano", "claude-3-5-haiku-latest"],
            prompt="What are LLMs?",
            retries=2,
        )
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        openai_api_key: Optional[str] = None,
        gemini_api_key: Optional[str] = None,
        anthropic_api_key: Optional[str] = None,
        router: Optional[ModelRouter] = None,
        observer: Optional[AttemptObserver] = None,
        cost_calculator: Optional[CostCalculator] = None,
    ):
        """
        Initialize the factory.

        Args:
            settings: Settings, defaults to the cached environment settings
            openai_api_key: OpenAI key overriding the settings
            gemini_api_key: Gemini key overriding the settings
            anthropic_api_key: Anthropic key overriding the settings
            router: Prebuilt router, skips provider initialization
            observer: Receives attempt events
            cost_calculator: Calculator used for usage metadata
        """
        self.settings = settings or get_settings()
        self.cost_calculator = cost_calculator or default_cost_calculator
        self.router = router or ModelRouter.from_settings(
            self.settings,
            cost_calculator=self.cost_calculator,
            api_keys={
                "openai": openai_api_key,
                "google": gemini_api_key,
                "anthropic": anthropic_api_key,
            },
        )
        self.orchestrator = FallbackOrchestrator(
            self.router,
            observer=observer
            or TelemetryObserver(router=self.router, metrics_enabled=self.settings.metrics_enabled),
            cost_calculator=self.cost_calculator,
            retry_backoff=self.settings.retry_backoff_seconds,
            retry_backoff_max=self.settings.retry_backoff_max_seconds,
            stream_buffer_size=self.settings.stream_buffer_size,
        )

    def _build_request(self, request: Optional[GenerationRequest], **kwargs: Any) -> GenerationRequest:
        if request is not None:
            if kwargs:
                raise TypeError("Pass either a GenerationRequest or keyword arguments, not both")
            return request
        kwargs.setdefault("retries", self.settings.default_retries)
        return GenerationRequest(**kwargs)

    async def generate(
        self, request: Optional[GenerationRequest] = None, **kwargs: Any
    ) -> GenerationResult:
        """
        Generate the full response text.

        Returns:
            GenerationResult: Text and metadata of the candidate that succeeded

        Raises:
            UnsupportedModelError: If the only candidate is not a known model
            AllCandidatesExhaustedError: If every candidate failed
        """
        return await self.orchestrator.generate(self._build_request(request, **kwargs))

    def generate_stream(
        self, request: Optional[GenerationRequest] = None, **kwargs: Any
    ) -> StreamWithMetadata:
        """Stream the response as text chunks; metadata is available once the stream ends."""
        return self.orchestrator.generate_stream(self._build_request(request, **kwargs))

    async def generate_with_callbacks(
        self,
        request: Optional[GenerationRequest] = None,
        *,
        on_chunk: ChunkCallback,
        on_complete: Optional[CompleteCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        **kwargs: Any,
    ) -> None:
        """Stream the response through callbacks."""
        await self.orchestrator.generate_with_callbacks(
            self._build_request(request, **kwargs),
            on_chunk=on_chunk,
            on_complete=on_complete,
            on_error=on_error,
        )

    def generate_byte_channel(
        self, request: Optional[GenerationRequest] = None, **kwargs: Any
    ) -> ByteStreamWithMetadata:
        """Stream the response into a byte channel. Requires a running event loop."""
        return self.orchestrator.generate_byte_channel(self._build_request(request, **kwargs))

    generate_readable_stream = generate_byte_channel

    def is_model_available(self, model: Union[str, Sequence[str]]) -> bool:
        """Whether the model, or any model of a candidate list, can be served."""
        models = [model] if isinstance(model, str) else list(model)
        return any(self.router.is_available(m) for m in models)

    def supported_models(self) -> List[str]:
        return self.router.supported_models()

    def available_models(self) -> List[str]:
        return self.router.available_models()
