"""Per-request orchestration state."""

from dataclasses import dataclass, field
from typing import List, Optional
from uuid import uuid4

from ..schemas import GenerationRequest
from ..telemetry.logger import request_id_var


@dataclass(frozen=True)
class AttemptRecord:
    """Outcome of one attempt against one candidate."""

    model: str
    attempt_number: int
    outcome: str
    error: Optional[BaseException] = None


@dataclass
class StreamSession:
    """State of one request as it moves through its candidates.

    Owned by a single request; never shared between concurrent requests.
    """

    request: GenerationRequest
    mode: str
    request_id: str = field(default_factory=lambda: request_id_var.get() or str(uuid4()))
    candidate_index: int = 0
    attempt_index: int = 0
    last_candidate: Optional[str] = None
    last_error: Optional[BaseException] = None
    attempts: List[AttemptRecord] = field(default_factory=list)
    chunks: List[str] = field(default_factory=list)

    @property
    def candidates(self) -> List[str]:
        return self.request.candidate_models

    @property
    def retries(self) -> int:
        return self.request.retries

    def start_candidate(self, index: int) -> str:
        self.candidate_index = index
        self.attempt_index = 0
        return self.candidates[index]

    def skip_candidate(self, model: str, error: BaseException) -> None:
        """Note a candidate that was never tried.

        It only becomes the reported candidate while nothing has been tried yet.
        """
        if not self.attempts:
            self.last_candidate = model
            self.last_error = error

    def start_attempt(self) -> int:
        self.attempt_index += 1
        self.chunks = []
        return self.attempt_index

    def record(
        self, model: str, attempt_number: int, outcome: str, error: Optional[BaseException] = None
    ) -> AttemptRecord:
        record = AttemptRecord(model, attempt_number, outcome, error)
        self.attempts.append(record)
        if error is not None:
            self.last_error = error
        return record

    @property
    def text(self) -> str:
        """Text accumulated by the active attempt."""
        return "".join(self.chunks)
