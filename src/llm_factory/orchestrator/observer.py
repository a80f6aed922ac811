"""Observability hooks for orchestration events."""

from typing import Optional

from ..schemas import UsageMetadata
from ..telemetry import MetricsCollector, get_logger, metrics_collector
from .router import ModelRouter
from .session import StreamSession


class AttemptObserver:
    """Receives orchestration events. The default implementation ignores them."""

    def attempt_started(self, session: StreamSession, model: str, attempt: int) -> None:
        pass

    def attempt_failed(
        self,
        session: StreamSession,
        model: str,
        attempt: int,
        error: BaseException,
        duration: float,
    ) -> None:
        pass

    def attempt_succeeded(
        self,
        session: StreamSession,
        model: str,
        attempt: int,
        metadata: UsageMetadata,
        duration: float,
    ) -> None:
        pass

    def candidate_skipped(self, session: StreamSession, model: str, error: BaseException) -> None:
        pass

    def exhausted(self, session: StreamSession, error: BaseException) -> None:
        pass


class TelemetryObserver(AttemptObserver):
    """Logs attempts through structlog and records Prometheus metrics."""

    def __init__(
        self,
        router: Optional[ModelRouter] = None,
        metrics: Optional[MetricsCollector] = None,
        metrics_enabled: bool = True,
    ):
        self.router = router
        self.metrics = metrics or metrics_collector
        self.metrics_enabled = metrics_enabled
        self.logger = get_logger(__name__)

    def _provider_name(self, model: str) -> str:
        if self.router is None or not self.router.is_supported(model):
            return "unknown"
        return self.router.provider_name_for(model)

    def attempt_started(self, session, model, attempt):
        self.logger.debug(
            "attempt_started",
            request_id=session.request_id,
            mode=session.mode,
            model=model,
            attempt=attempt,
            retries=session.retries,
        )

    def attempt_failed(self, session, model, attempt, error, duration):
        self.logger.warning(
            f"Generation failed with model {model} (attempt {attempt}/{session.retries})",
            request_id=session.request_id,
            mode=session.mode,
            model=model,
            attempt=attempt,
            error_type=type(getattr(error, "cause", error)).__name__,
            error=str(error),
        )
        if self.metrics_enabled:
            self.metrics.record_attempt(
                self._provider_name(model), model, session.mode, success=False, latency=duration
            )

    def attempt_succeeded(self, session, model, attempt, metadata, duration):
        self.logger.info(
            "attempt_succeeded",
            request_id=session.request_id,
            mode=session.mode,
            model=model,
            attempt=attempt,
            input_tokens=metadata.input_tokens,
            output_tokens=metadata.output_tokens,
            cost=metadata.cost,
            duration=duration,
        )
        if self.metrics_enabled:
            self.metrics.record_attempt(
                self._provider_name(model),
                model,
                session.mode,
                success=True,
                latency=duration,
                tokens_input=metadata.input_tokens,
                tokens_output=metadata.output_tokens,
                cost=metadata.cost,
            )

    def candidate_skipped(self, session, model, error):
        self.logger.warning(
            f"Skipping model {model}: {error}",
            request_id=session.request_id,
            mode=session.mode,
            model=model,
        )
        if self.metrics_enabled:
            self.metrics.record_skipped(model)

    def exhausted(self, session, error):
        self.logger.error(
            "all_candidates_exhausted",
            request_id=session.request_id,
            mode=session.mode,
            candidates=session.candidates,
            attempts=len(session.attempts),
            error=str(error),
        )
        if self.metrics_enabled:
            self.metrics.record_exhausted(session.mode)
