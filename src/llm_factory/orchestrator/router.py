"""Model router mapping model ids to the provider that serves them."""

import logging
from typing import Dict, List, Mapping, Optional

from ..config import Settings
from ..exceptions import ProviderUnavailableError, UnsupportedModelError
from ..finops import CostCalculator
from ..providers import (
    AnthropicProvider,
    BaseProvider,
    GoogleProvider,
    OpenAIProvider,
)

logger = logging.getLogger(__name__)

MODEL_PROVIDER_MAP: Dict[str, str] = {
    # OpenAI
    "gpt-4.1": "openai",
    "gpt-4.1-mini": "openai",
    "gpt-4.1-nano": "openai",
    "gpt-4o": "openai",
    "gpt-4o-mini": "openai",
    "gpt-4o-audio-preview": "openai",
    "gpt-4o-mini-audio-preview": "openai",
    # Google
    "gemini-2.5-pro-preview-03-25": "google",
    "gemini-2.0-flash": "google",
    "gemini-2.0-flash-lite": "google",
    # Anthropic
    "claude-3-7-sonnet-latest": "anthropic",
    "claude-3-5-haiku-latest": "anthropic",
}


class ModelRouter:
    """Resolves model ids to initialized providers.

    The model map, the initialized providers and the reasons why the other
    providers are unavailable are fixed at construction.
    """

    def __init__(
        self,
        providers: Mapping[str, BaseProvider],
        unavailable: Optional[Mapping[str, str]] = None,
        model_map: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize model router.

        Args:
            providers: Initialized providers keyed by provider name
            unavailable: Initialization failure reasons keyed by provider name
            model_map: Model id to provider name table
        """
        self._providers = dict(providers)
        self._unavailable = dict(unavailable or {})
        self._model_map = dict(MODEL_PROVIDER_MAP if model_map is None else model_map)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        cost_calculator: Optional[CostCalculator] = None,
        api_keys: Optional[Mapping[str, Optional[str]]] = None,
    ) -> "ModelRouter":
        """
        Build a router with one provider per vendor.

        A vendor that fails to initialize is logged and recorded as
        unavailable; the other vendors stay usable.

        Args:
            settings: Factory settings
            cost_calculator: Calculator shared by the providers
            api_keys: Explicit keys overriding the settings, keyed by provider name
        """
        overrides = dict(api_keys or {})

        def key_for(name: str, secret) -> Optional[str]:
            if overrides.get(name):
                return overrides[name]
            return secret.get_secret_value() if secret is not None else None

        factories = {
            "openai": lambda: OpenAIProvider(
                key_for("openai", settings.openai_api_key),
                timeout=settings.request_timeout,
                cost_calculator=cost_calculator,
            ),
            "google": lambda: GoogleProvider(
                key_for("google", settings.gemini_api_key),
                timeout=settings.request_timeout,
                cost_calculator=cost_calculator,
            ),
            "anthropic": lambda: AnthropicProvider(
                key_for("anthropic", settings.anthropic_api_key),
                timeout=settings.request_timeout,
                cost_calculator=cost_calculator,
                default_max_tokens=settings.anthropic_default_max_tokens,
            ),
        }

        providers: Dict[str, BaseProvider] = {}
        unavailable: Dict[str, str] = {}
        for name, factory in factories.items():
            try:
                providers[name] = factory()
            except ProviderUnavailableError as e:
                unavailable[name] = e.reason or str(e)
                logger.warning(
                    f"Provider {name} not initialized",
                    extra={"provider": name, "reason": unavailable[name]},
                )
            except Exception as e:
                unavailable[name] = str(e)
                logger.warning(
                    f"Provider {name} failed to initialize",
                    extra={"provider": name, "error_type": type(e).__name__, "reason": str(e)},
                )

        return cls(providers, unavailable)

    def is_supported(self, model: str) -> bool:
        """Whether the model is in the routing table."""
        return model in self._model_map

    def provider_name_for(self, model: str) -> str:
        if model not in self._model_map:
            raise UnsupportedModelError(model)
        return self._model_map[model]

    def resolve_provider(self, model: str) -> BaseProvider:
        """
        Get the provider responsible for a model.

        Raises:
            UnsupportedModelError: If the model is not in the routing table
            ProviderUnavailableError: If the owning provider is not initialized
        """
        name = self.provider_name_for(model)
        provider = self._providers.get(name)
        if provider is None:
            raise ProviderUnavailableError(name, self._unavailable.get(name))
        return provider

    def is_available(self, model: str) -> bool:
        """Whether the model is routable to an initialized provider. Never raises."""
        name = self._model_map.get(model)
        return name is not None and name in self._providers

    def supported_models(self) -> List[str]:
        return list(self._model_map)

    def available_models(self) -> List[str]:
        return [model for model in self._model_map if self.is_available(model)]

    def unavailable_reason(self, provider_name: str) -> Optional[str]:
        return self._unavailable.get(provider_name)
