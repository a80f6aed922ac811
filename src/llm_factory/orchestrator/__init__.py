"""Fallback-and-retry orchestration across candidate models."""

from llm_factory.orchestrator.observer import AttemptObserver, TelemetryObserver
from llm_factory.orchestrator.orchestrator import FallbackOrchestrator
from llm_factory.orchestrator.retry_handler import RetryHandler
from llm_factory.orchestrator.router import MODEL_PROVIDER_MAP, ModelRouter
from llm_factory.orchestrator.session import AttemptRecord, StreamSession

__all__ = [
    "AttemptObserver",
    "AttemptRecord",
    "FallbackOrchestrator",
    "MODEL_PROVIDER_MAP",
    "ModelRouter",
    "RetryHandler",
    "StreamSession",
    "TelemetryObserver",
]
