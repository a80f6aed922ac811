"""
Fallback-and-retry orchestration across candidate models.

Every generation mode runs the same loop: for each candidate in order, try
it up to ``retries`` times, then move on to the next one. Candidates that
are not in the routing table are skipped without spending any attempts.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Tuple

from ..exceptions import (
    AllCandidatesExhaustedError,
    AttemptFailedError,
    RequestCancelledError,
    UnsupportedModelError,
)
from ..finops import CostCalculator, default_cost_calculator
from ..providers import BaseProvider, ProviderError
from ..schemas import GenerationRequest, GenerationResult, UsageMetadata
from ..streaming import (
    ByteChannel,
    ByteStreamWithMetadata,
    Channel,
    ChunkCallback,
    CompleteCallback,
    Deferred,
    ErrorCallback,
    StreamWithMetadata,
    invoke_callback,
)
from .observer import AttemptObserver, TelemetryObserver
from .retry_handler import RetryHandler
from .router import ModelRouter
from .session import StreamSession

logger = logging.getLogger(__name__)

# (provider, request addressed to one candidate, candidate) -> (result, attributed metadata)
AttemptFn = Callable[
    [BaseProvider, GenerationRequest, str], Awaitable[Tuple[Any, UsageMetadata]]
]


class FallbackOrchestrator:
    """Runs generation requests across ordered candidate models."""

    def __init__(
        self,
        router: ModelRouter,
        observer: Optional[AttemptObserver] = None,
        cost_calculator: Optional[CostCalculator] = None,
        retry_backoff: float = 0.0,
        retry_backoff_max: float = 10.0,
        stream_buffer_size: int = 0,
    ):
        """
        Initialize orchestrator.

        Args:
            router: Router resolving candidates to providers
            observer: Receives attempt events, defaults to structlog/Prometheus telemetry
            cost_calculator: Calculator used to price the winning attempt
            retry_backoff: Initial wait between attempts of one candidate, 0 for none
            retry_backoff_max: Upper bound of the exponential backoff
            stream_buffer_size: Chunks buffered per stream before the producer waits, 0 for unbounded
        """
        self.router = router
        self.observer = observer or TelemetryObserver(router=router)
        self.cost_calculator = cost_calculator or default_cost_calculator
        self.retry_backoff = retry_backoff
        self.retry_backoff_max = retry_backoff_max
        self.stream_buffer_size = stream_buffer_size

    def _notify(self, event: str, *args: Any) -> None:
        try:
            getattr(self.observer, event)(*args)
        except Exception:
            logger.exception("Attempt observer failed", extra={"hook": event})

    def _attribute(self, metadata: UsageMetadata, model: str) -> UsageMetadata:
        """Metadata attributed to the candidate that produced it, priced for that candidate."""
        return UsageMetadata(
            model=model,
            input_tokens=metadata.input_tokens,
            output_tokens=metadata.output_tokens,
            cost=self.cost_calculator.calculate(model, metadata.input_tokens, metadata.output_tokens),
        )

    async def _try_candidate(self, session: StreamSession, model: str, attempt_fn: AttemptFn) -> Any:
        handler = RetryHandler(
            max_attempts=session.retries,
            min_wait=self.retry_backoff,
            max_wait=self.retry_backoff_max,
        )

        async def attempt() -> Any:
            number = session.start_attempt()
            self._notify("attempt_started", session, model, number)
            start_time = time.perf_counter()
            try:
                provider = self.router.resolve_provider(model)
                result, metadata = await attempt_fn(provider, session.request.for_model(model), model)
            except asyncio.CancelledError:
                session.record(model, number, "cancelled")
                raise
            except Exception as e:
                error = AttemptFailedError(model, e)
                session.record(model, number, "failure", error)
                self._notify(
                    "attempt_failed", session, model, number, error, time.perf_counter() - start_time
                )
                raise error from e

            session.record(model, number, "success")
            self._notify(
                "attempt_succeeded", session, model, number, metadata, time.perf_counter() - start_time
            )
            return result

        return await handler.execute(attempt)

    async def _run(self, session: StreamSession, attempt_fn: AttemptFn) -> Any:
        """
        Drive one request through its candidates.

        Raises:
            UnsupportedModelError: If the only candidate is not in the routing table
            AllCandidatesExhaustedError: If every candidate failed
        """
        candidates = session.candidates
        for index in range(len(candidates)):
            model = session.start_candidate(index)

            if not self.router.is_supported(model):
                error = UnsupportedModelError(model)
                if len(candidates) == 1:
                    raise error
                session.skip_candidate(model, error)
                self._notify("candidate_skipped", session, model, error)
                continue

            session.last_candidate = model
            try:
                return await self._try_candidate(session, model, attempt_fn)
            except AttemptFailedError:
                continue

        error = AllCandidatesExhaustedError(
            session.last_candidate, session.last_error, session.attempts
        )
        self._notify("exhausted", session, error)
        raise error

    def _start_producer(
        self,
        session: StreamSession,
        attempt_fn: AttemptFn,
        channel: Channel,
        metadata: Deferred,
    ) -> asyncio.Task:
        async def produce() -> None:
            try:
                result = await self._run(session, attempt_fn)
            except Exception as e:
                metadata.set_exception(e)
                channel.fail(e)
            else:
                metadata.set_result(result)
                channel.close()

        def finalize(task: asyncio.Task) -> None:
            # Cancelled, possibly before it ever ran
            if not metadata.done():
                metadata.set_exception(RequestCancelledError())
            channel.close()

        task = asyncio.create_task(produce())
        task.add_done_callback(finalize)
        channel.attach_producer(task)
        return task

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        Generate the full response from the first candidate that succeeds.

        Returns:
            GenerationResult: Text and metadata attributed to the winning candidate

        Raises:
            UnsupportedModelError: If the only candidate is not in the routing table
            AllCandidatesExhaustedError: If every candidate failed
        """
        session = StreamSession(request=request, mode="generate")

        async def attempt(provider, candidate_request, model):
            result = await provider.generate(candidate_request)
            metadata = self._attribute(result.metadata, model)
            return GenerationResult(text=result.text, metadata=metadata), metadata

        return await self._run(session, attempt)

    def generate_stream(self, request: GenerationRequest) -> StreamWithMetadata:
        """
        Stream the response, falling back across candidates.

        Nothing is requested until the stream is first iterated or
        ``get_metadata`` is awaited, whichever comes first. Chunks relayed
        before an attempt failed stay in the stream, followed by the next
        attempt's chunks. Awaiting ``get_metadata`` without iterating buffers
        every chunk, so with a bounded buffer the stream must still be read
        for it to resolve.
        """
        session = StreamSession(request=request, mode="stream")
        channel: Channel[str] = Channel(self.stream_buffer_size)
        metadata: Deferred[UsageMetadata] = Deferred()

        async def attempt(provider, candidate_request, model):
            handle = provider.generate_stream(candidate_request)
            try:
                async for chunk in handle:
                    await channel.send(chunk)
                provider_metadata = await handle.get_metadata()
            finally:
                await handle.aclose()
            attributed = self._attribute(provider_metadata, model)
            return attributed, attributed

        producer: Optional[asyncio.Task] = None

        def ensure_started() -> None:
            nonlocal producer
            if producer is None:
                producer = self._start_producer(session, attempt, channel, metadata)

        async def relay():
            ensure_started()
            try:
                async for chunk in channel:
                    yield chunk
            finally:
                await channel.cancel()

        async def get_metadata() -> UsageMetadata:
            ensure_started()
            return await metadata.wait()

        return StreamWithMetadata(stream=relay(), get_metadata=get_metadata)

    def generate_byte_channel(self, request: GenerationRequest) -> ByteStreamWithMetadata:
        """
        Stream the response into a single byte channel shared by every attempt.

        Production starts immediately, so this must be called with an event
        loop running. Bytes from failed attempts stay ahead of the next
        attempt's bytes.
        """
        session = StreamSession(request=request, mode="byte_channel")
        channel = ByteChannel(self.stream_buffer_size)
        metadata: Deferred[UsageMetadata] = Deferred()

        async def attempt(provider, candidate_request, model):
            handle = provider.generate_byte_channel(candidate_request)
            try:
                async for chunk in handle.channel:
                    await channel.write(chunk)
                provider_metadata = await handle.get_metadata()
            finally:
                await handle.cancel()
            attributed = self._attribute(provider_metadata, model)
            return attributed, attributed

        self._start_producer(session, attempt, channel, metadata)

        async def get_metadata() -> UsageMetadata:
            return await metadata.wait()

        return ByteStreamWithMetadata(channel=channel, get_metadata=get_metadata)

    async def generate_with_callbacks(
        self,
        request: GenerationRequest,
        on_chunk: ChunkCallback,
        on_complete: Optional[CompleteCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        """
        Stream the response through callbacks, falling back across candidates.

        ``on_chunk`` fires for every chunk of every attempt. Exactly one of
        ``on_complete`` (with the winning attempt's text only) or ``on_error``
        (after every candidate failed) is called. Without ``on_error`` the
        final error is raised instead.
        """
        session = StreamSession(request=request, mode="callbacks")

        async def attempt(provider, candidate_request, model):
            outcome: Deferred[GenerationResult] = Deferred()

            async def chunk_received(chunk: str) -> None:
                session.chunks.append(chunk)
                await invoke_callback(on_chunk, chunk)

            await provider.generate_with_callbacks(
                candidate_request,
                on_chunk=chunk_received,
                on_complete=outcome.set_result,
                on_error=outcome.set_exception,
            )
            if not outcome.done():
                raise ProviderError(
                    f"Provider {provider.provider_name} finished without completing or failing",
                    provider=provider.provider_name,
                )
            result = await outcome.wait()
            attributed = self._attribute(result.metadata, model)
            return GenerationResult(text=session.text, metadata=attributed), attributed

        try:
            result = await self._run(session, attempt)
        except Exception as e:
            if on_error is None:
                raise
            await invoke_callback(on_error, e)
            return

        await invoke_callback(on_complete, result)
