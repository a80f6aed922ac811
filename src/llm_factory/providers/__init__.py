from .anthropic_provider import AnthropicProvider
from .base import (
    AuthenticationError,
    BaseProvider,
    ModelNotFoundError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
    StreamUsage,
)
from .google_provider import GoogleProvider
from .openai_provider import OpenAIProvider

PROVIDER_CLASSES = {
    "openai": OpenAIProvider,
    "google": GoogleProvider,
    "anthropic": AnthropicProvider,
}

__all__ = [
    "AnthropicProvider",
    "AuthenticationError",
    "BaseProvider",
    "GoogleProvider",
    "ModelNotFoundError",
    "OpenAIProvider",
    "PROVIDER_CLASSES",
    "ProviderError",
    "ProviderTimeoutError",
    "RateLimitError",
    "StreamUsage",
]
