"""Pytest configuration and fixtures."""

import asyncio
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from llm_factory.finops import CostCalculator, TokenPricing
from llm_factory.orchestrator import AttemptObserver, FallbackOrchestrator, ModelRouter
from llm_factory.providers import BaseProvider

TEST_PRICING = {
    "X": TokenPricing(input=2.50, output=10.00),
    "A": TokenPricing(input=1.00, output=2.00),
    "B": TokenPricing(input=3.00, output=15.00),
    "C": TokenPricing(input=0.10, output=0.40),
    "Y": TokenPricing(input=1.00, output=1.00),
}

TEST_MODEL_MAP = {"X": "fake", "A": "fake", "B": "fake", "C": "fake", "Y": "missing"}


@dataclass
class Partial:
    """Emit ``count`` chunks, then fail with ``error``."""

    count: int
    error: Exception


class ScriptedProvider(BaseProvider):
    """Provider whose outcome per call is scripted per model.

    Each script entry is consumed by one call: ``"ok"`` succeeds, an
    exception fails before any output and ``Partial`` fails mid-stream.
    Once a model's script runs out every call succeeds.
    """

    provider_name = "fake"

    def __init__(
        self,
        script: Optional[Dict[str, Sequence]] = None,
        chunks: Optional[Dict[str, List[str]]] = None,
        usage: Tuple[int, int] = (1000, 2000),
        delay: float = 0.0,
    ):
        super().__init__("test-key", cost_calculator=CostCalculator(TEST_PRICING))
        self.script = {model: list(steps) for model, steps in (script or {}).items()}
        self.chunks = chunks or {}
        self.usage = usage
        self.delay = delay
        self.calls: List[str] = []
        self.requests = []

    def chunks_for(self, model: str) -> List[str]:
        return self.chunks.get(model, [f"{model}1 ", f"{model}2 ", f"{model}3"])

    def _next_step(self, request):
        self.calls.append(request.model_name)
        self.requests.append(request)
        steps = self.script.get(request.model_name)
        return steps.pop(0) if steps else "ok"

    async def _complete(self, request):
        step = self._next_step(request)
        await asyncio.sleep(self.delay)
        if isinstance(step, Partial):
            raise step.error
        if isinstance(step, Exception):
            raise step
        return "".join(self.chunks_for(request.model_name)), self.usage[0], self.usage[1]

    async def _stream_chunks(self, request, usage):
        step = self._next_step(request)
        chunks = self.chunks_for(request.model_name)
        if isinstance(step, Exception):
            raise step
        if isinstance(step, Partial):
            for chunk in chunks[: step.count]:
                await asyncio.sleep(self.delay)
                yield chunk
            raise step.error
        for chunk in chunks:
            await asyncio.sleep(self.delay)
            yield chunk
        usage.input_tokens, usage.output_tokens = self.usage


class RecordingObserver(AttemptObserver):
    """Records every orchestration event."""

    def __init__(self):
        self.events = []

    def attempt_started(self, session, model, attempt):
        self.events.append(("started", model, attempt))

    def attempt_failed(self, session, model, attempt, error, duration):
        self.events.append(("failed", model, attempt))

    def attempt_succeeded(self, session, model, attempt, metadata, duration):
        self.events.append(("succeeded", model, attempt))

    def candidate_skipped(self, session, model, error):
        self.events.append(("skipped", model, None))

    def exhausted(self, session, error):
        self.events.append(("exhausted", None, None))

    def of(self, kind):
        return [(model, attempt) for event, model, attempt in self.events if event == kind]


def build_orchestrator(provider, observer=None, **kwargs) -> FallbackOrchestrator:
    router = ModelRouter(
        {"fake": provider},
        unavailable={"missing": "API key is not configured"},
        model_map=TEST_MODEL_MAP,
    )
    return FallbackOrchestrator(
        router,
        observer=observer or RecordingObserver(),
        cost_calculator=CostCalculator(TEST_PRICING),
        **kwargs,
    )


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def test_pricing():
    return CostCalculator(TEST_PRICING)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove provider keys and factory settings from the environment."""
    for name in (
        "OPENAI_API_KEY",
        "GEMINI_API_KEY",
        "GOOGLE_API_KEY",
        "ANTHROPIC_API_KEY",
        "DEFAULT_RETRIES",
        "RETRY_BACKOFF_SECONDS",
        "LOG_LEVEL",
        "LOG_FORMAT",
        "STREAM_BUFFER_SIZE",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
