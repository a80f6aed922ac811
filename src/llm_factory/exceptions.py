"""Custom exceptions for LLM Factory."""

from typing import Any, Dict, List, Optional


class LLMFactoryError(Exception):
    """Base exception for LLM Factory."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or "INTERNAL_ERROR"
        self.details = details or {}


class UnsupportedModelError(LLMFactoryError):
    """The model is not present in the routing table."""

    def __init__(self, model: str, **kwargs):
        super().__init__(f"Unsupported model: {model}", error_code="UNSUPPORTED_MODEL", **kwargs)
        self.model = model
        self.details["model"] = model


class ProviderUnavailableError(LLMFactoryError):
    """The provider owning a model could not be initialized."""

    def __init__(self, provider: str, reason: Optional[str] = None, **kwargs):
        message = f"Provider not initialized: {provider}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, error_code="PROVIDER_UNAVAILABLE", **kwargs)
        self.provider = provider
        self.reason = reason
        self.details["provider"] = provider


class AttemptFailedError(LLMFactoryError):
    """A single attempt against a candidate model failed."""

    def __init__(self, model: str, cause: BaseException, **kwargs):
        super().__init__(
            f"Generation failed with model {model}: {cause}",
            error_code="ATTEMPT_FAILED",
            **kwargs,
        )
        self.model = model
        self.cause = cause
        self.details["model"] = model
        self.details["cause"] = type(cause).__name__


class AllCandidatesExhaustedError(LLMFactoryError):
    """Every candidate model failed after its retry budget was spent."""

    def __init__(
        self,
        last_model: Optional[str],
        last_error: Optional[BaseException],
        attempts: Optional[List[Any]] = None,
        **kwargs,
    ):
        self.last_model = last_model
        self.last_error = last_error
        self.attempts = list(attempts or [])
        super().__init__(
            f"All models failed after retries. Last model: {last_model}. "
            f"Last error: {self.last_error_message}",
            error_code="ALL_CANDIDATES_EXHAUSTED",
            **kwargs,
        )
        self.details["last_model"] = last_model
        self.details["attempts"] = len(self.attempts)

    @property
    def last_error_message(self) -> str:
        error = self.last_error
        if isinstance(error, AttemptFailedError):
            error = error.cause
        if error is None:
            return "no attempt was made"
        return str(error)


class UnknownModelPricingError(LLMFactoryError):
    """No pricing entry exists for the model."""

    def __init__(self, model: str, **kwargs):
        super().__init__(
            f"No pricing information available for model: {model}",
            error_code="UNKNOWN_MODEL_PRICING",
            **kwargs,
        )
        self.model = model


class RequestCancelledError(LLMFactoryError):
    """The request was cancelled before an attempt succeeded."""

    def __init__(self, message: str = "Generation request was cancelled", **kwargs):
        super().__init__(message, error_code="REQUEST_CANCELLED", **kwargs)


__all__ = [
    "LLMFactoryError",
    "UnsupportedModelError",
    "ProviderUnavailableError",
    "AttemptFailedError",
    "AllCandidatesExhaustedError",
    "UnknownModelPricingError",
    "RequestCancelledError",
]
