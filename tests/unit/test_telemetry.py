"""Unit tests for logging and metrics."""

import pytest
from conftest import ScriptedProvider, build_orchestrator
from prometheus_client import CollectorRegistry

from llm_factory.exceptions import AllCandidatesExhaustedError
from llm_factory.orchestrator import StreamSession, TelemetryObserver
from llm_factory.schemas import GenerationRequest
from llm_factory.telemetry import MetricsCollector, RequestContext, setup_logging
from llm_factory.telemetry.logger import SecretRedactor, add_context_vars, redact_sensitive_data


@pytest.fixture
def metrics():
    return MetricsCollector(registry=CollectorRegistry())


class TestSecretRedaction:
    """Test suite for API key redaction."""

    @pytest.mark.parametrize(
        "secret",
        ["sk-abcdefghijklmnop1234", "sk-ant-REDACTED", "AIzaSyA1234567890abcdefgh"],
    )
    def test_api_keys_are_redacted(self, secret):
        redacted = SecretRedactor.redact(f"request failed for key {secret}")

        assert secret not in redacted
        assert "[API_KEY_REDACTED]" in redacted

    def test_plain_text_is_untouched(self):
        assert SecretRedactor.redact("model gpt-4o failed") == "model gpt-4o failed"

    def test_event_dict_is_redacted(self):
        event = redact_sensitive_data(
            None, "info", {"event": "call", "error": "bad key sk-abcdefghijklmnop1234", "count": 3}
        )

        assert event["error"] == "bad key [API_KEY_REDACTED]"
        assert event["count"] == 3


class TestRequestContext:
    """Test suite for request id propagation."""

    def test_request_id_is_added(self):
        with RequestContext("req-123"):
            event = add_context_vars(None, "info", {"event": "x"})

        assert event["request_id"] == "req-123"
        assert "request_id" not in add_context_vars(None, "info", {"event": "y"})

    def test_session_takes_request_id_from_context(self):
        with RequestContext("req-9"):
            session = StreamSession(request=GenerationRequest(model="A", prompt="hi"), mode="generate")

        assert session.request_id == "req-9"

    def test_setup_logging_json(self):
        setup_logging(level="WARNING", format="json")


class TestMetricsCollector:
    """Test suite for Prometheus metrics."""

    def test_record_successful_attempt(self, metrics):
        metrics.record_attempt(
            "openai", "gpt-4o", "generate", success=True, latency=0.2,
            tokens_input=100, tokens_output=50, cost=0.01,
        )

        labels = {"provider": "openai", "model": "gpt-4o", "mode": "generate", "outcome": "success"}
        assert metrics.sample("attempts_total", labels) == 1
        assert metrics.sample("tokens_total", {"model": "gpt-4o", "direction": "input"}) == 100
        assert metrics.sample("cost_usd_total", {"model": "gpt-4o"}) == pytest.approx(0.01)

    def test_failed_attempt_records_no_usage(self, metrics):
        metrics.record_attempt("openai", "gpt-4o", "stream", success=False, latency=0.1)

        assert metrics.sample("tokens_total", {"model": "gpt-4o", "direction": "input"}) == 0.0

    def test_export(self, metrics):
        metrics.record_exhausted("generate")

        assert b"llm_factory_exhausted_total" in metrics.export()


class TestTelemetryObserver:
    """Test suite for the default attempt observer."""

    @pytest.mark.asyncio
    async def test_attempts_are_counted(self, metrics):
        provider = ScriptedProvider(script={"A": [RuntimeError("down")]})
        observer = TelemetryObserver(metrics=metrics)
        orchestrator = build_orchestrator(provider, observer)

        await orchestrator.generate(GenerationRequest(model=["nope", "A", "B"], prompt="hi", retries=1))

        failed = {"provider": "unknown", "model": "A", "mode": "generate", "outcome": "failure"}
        succeeded = {"provider": "unknown", "model": "B", "mode": "generate", "outcome": "success"}
        assert metrics.sample("attempts_total", failed) == 1
        assert metrics.sample("attempts_total", succeeded) == 1
        assert metrics.sample("candidates_skipped_total", {"model": "nope"}) == 1

    @pytest.mark.asyncio
    async def test_exhaustion_is_counted(self, metrics):
        provider = ScriptedProvider(script={"A": [RuntimeError("down")]})
        orchestrator = build_orchestrator(provider, TelemetryObserver(metrics=metrics))

        with pytest.raises(AllCandidatesExhaustedError):
            await orchestrator.generate(GenerationRequest(model="A", prompt="hi", retries=1))

        assert metrics.sample("exhausted_total", {"mode": "generate"}) == 1

    @pytest.mark.asyncio
    async def test_disabled_metrics(self, metrics):
        orchestrator = build_orchestrator(
            ScriptedProvider(), TelemetryObserver(metrics=metrics, metrics_enabled=False)
        )

        await orchestrator.generate(GenerationRequest(model="A", prompt="hi", retries=1))

        labels = {"provider": "unknown", "model": "A", "mode": "generate", "outcome": "success"}
        assert metrics.sample("attempts_total", labels) == 0.0
