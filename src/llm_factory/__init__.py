"""Unified generation across OpenAI, Gemini and Anthropic models with retries and fallback."""

__version__ = "0.8.0"


def get_version():
    return __version__


from .exceptions import (  # noqa: E402
    AllCandidatesExhaustedError,
    AttemptFailedError,
    LLMFactoryError,
    ProviderUnavailableError,
    RequestCancelledError,
    UnknownModelPricingError,
    UnsupportedModelError,
)
from .factory import LLMFactory  # noqa: E402
from .finops import MODEL_PRICING, CostCalculator, calculate_cost  # noqa: E402
from .orchestrator import (  # noqa: E402
    MODEL_PROVIDER_MAP,
    AttemptObserver,
    FallbackOrchestrator,
    ModelRouter,
    TelemetryObserver,
)
from .providers import (  # noqa: E402
    AnthropicProvider,
    BaseProvider,
    GoogleProvider,
    OpenAIProvider,
    ProviderError,
)
from .schemas import GenerationRequest, GenerationResult, UsageMetadata  # noqa: E402
from .streaming import ByteChannel, ByteStreamWithMetadata, StreamWithMetadata  # noqa: E402
from .utils import to_gemini_schema, to_json_schema, to_openai_response_format  # noqa: E402

__all__ = [
    "__version__",
    "AllCandidatesExhaustedError",
    "AnthropicProvider",
    "AttemptFailedError",
    "AttemptObserver",
    "BaseProvider",
    "ByteChannel",
    "ByteStreamWithMetadata",
    "CostCalculator",
    "FallbackOrchestrator",
    "GenerationRequest",
    "GenerationResult",
    "GoogleProvider",
    "LLMFactory",
    "LLMFactoryError",
    "MODEL_PRICING",
    "MODEL_PROVIDER_MAP",
    "ModelRouter",
    "OpenAIProvider",
    "ProviderError",
    "ProviderUnavailableError",
    "RequestCancelledError",
    "StreamWithMetadata",
    "TelemetryObserver",
    "UnknownModelPricingError",
    "UnsupportedModelError",
    "UsageMetadata",
    "calculate_cost",
    "get_version",
    "to_gemini_schema",
    "to_json_schema",
    "to_openai_response_format",
]
