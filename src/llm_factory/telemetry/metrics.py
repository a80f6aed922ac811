"""Metrics collection with Prometheus integration."""

import time
from contextlib import contextmanager

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, generate_latest


class MetricsCollector:
    """Prometheus metrics for generation attempts."""

    def __init__(self, namespace: str = "llm_factory", registry: CollectorRegistry | None = None):
        """Initialize metrics collector."""
        self.namespace = namespace
        self.registry = registry or REGISTRY
        self._counters: dict[str, Counter] = {}
        self._histograms: dict[str, Histogram] = {}

        self._init_default_metrics()

    def _init_default_metrics(self):
        """Initialize default metrics."""
        self._counters["attempts"] = Counter(
            f"{self.namespace}_attempts_total",
            "Generation attempts",
            ["provider", "model", "mode", "outcome"],
            registry=self.registry,
        )

        self._histograms["attempt_latency"] = Histogram(
            f"{self.namespace}_attempt_latency_seconds",
            "Generation attempt latency",
            ["provider", "model", "mode"],
            buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
            registry=self.registry,
        )

        self._counters["tokens"] = Counter(
            f"{self.namespace}_tokens_total",
            "Tokens processed",
            ["model", "direction"],
            registry=self.registry,
        )

        self._counters["cost_usd"] = Counter(
            f"{self.namespace}_cost_usd_total",
            "Total cost in USD",
            ["model"],
            registry=self.registry,
        )

        self._counters["skipped"] = Counter(
            f"{self.namespace}_candidates_skipped_total",
            "Candidates skipped because they are not routable",
            ["model"],
            registry=self.registry,
        )

        self._counters["exhausted"] = Counter(
            f"{self.namespace}_exhausted_total",
            "Requests that failed on every candidate",
            ["mode"],
            registry=self.registry,
        )

    def increment_counter(self, name: str, value: float = 1.0, labels: dict[str, str] | None = None):
        """Increment a counter metric."""
        counter = self._counters[name]
        if labels:
            counter.labels(**labels).inc(value)
        else:
            counter.inc(value)

    def observe_histogram(self, name: str, value: float, labels: dict[str, str] | None = None):
        """Observe a histogram value."""
        histogram = self._histograms[name]
        if labels:
            histogram.labels(**labels).observe(value)
        else:
            histogram.observe(value)

    @contextmanager
    def timer(self, name: str, labels: dict[str, str] | None = None):
        """Context manager for timing operations."""
        start_time = time.time()
        try:
            yield
        finally:
            self.observe_histogram(name, time.time() - start_time, labels)

    def record_attempt(
        self,
        provider: str,
        model: str,
        mode: str,
        success: bool,
        latency: float,
        tokens_input: int = 0,
        tokens_output: int = 0,
        cost: float = 0.0,
    ):
        """Record the outcome of one generation attempt."""
        outcome = "success" if success else "failure"
        self.increment_counter(
            "attempts",
            labels={"provider": provider, "model": model, "mode": mode, "outcome": outcome},
        )
        self.observe_histogram(
            "attempt_latency", latency, labels={"provider": provider, "model": model, "mode": mode}
        )

        if not success:
            return

        if tokens_input > 0:
            self.increment_counter(
                "tokens", value=tokens_input, labels={"model": model, "direction": "input"}
            )
        if tokens_output > 0:
            self.increment_counter(
                "tokens", value=tokens_output, labels={"model": model, "direction": "output"}
            )
        if cost > 0:
            self.increment_counter("cost_usd", value=cost, labels={"model": model})

    def record_skipped(self, model: str):
        self.increment_counter("skipped", labels={"model": model})

    def record_exhausted(self, mode: str):
        self.increment_counter("exhausted", labels={"mode": mode})

    def sample(self, name: str, labels: dict[str, str] | None = None) -> float:
        """Current value of a sample, 0.0 when it has not been recorded."""
        value = self.registry.get_sample_value(f"{self.namespace}_{name}", labels or {})
        return value or 0.0

    def export(self) -> bytes:
        """Metrics in Prometheus text exposition format."""
        return generate_latest(self.registry)


metrics_collector = MetricsCollector()
