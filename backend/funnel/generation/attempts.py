"""
Bounded attempt loop for page-content generation, expressed as immutable state.

Each completion call moves a ``GenerationState`` to a new state through one of
two pure transitions:

- ``record_transport_error``: the call itself failed. Retry the same
  conversation after ``attempt * backoff_unit`` seconds, or FAIL once the
  attempt bound is reached.
- ``record_response``: the call returned text. ACCEPT it if it validates,
  otherwise append a corrective user message and retry, or give up as
  EXHAUSTED (the caller then falls back to default content).
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable

from funnel.generation.prompts.landing_page import build_correction_message
from funnel.generation.response_parser import content_validation_error

Message = dict[str, str]


class AttemptStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


@dataclass(frozen=True)
class GenerationState:
    messages: tuple[Message, ...]
    max_attempts: int = 3
    attempts: int = 0
    status: AttemptStatus = AttemptStatus.PENDING
    last_error: str | None = None
    raw_text: str | None = None
    wait_seconds: float = 0.0

    @property
    def done(self) -> bool:
        return self.status is not AttemptStatus.PENDING


def initial_state(system_prompt: str, user_prompt: str, *, max_attempts: int = 3) -> GenerationState:
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    return GenerationState(
        messages=(
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ),
        max_attempts=max_attempts,
    )


def record_transport_error(
    state: GenerationState,
    error: str,
    *,
    backoff_unit: float = 1.0,
) -> GenerationState:
    attempts = state.attempts + 1
    if attempts >= state.max_attempts:
        return replace(
            state,
            attempts=attempts,
            status=AttemptStatus.FAILED,
            last_error=error,
            wait_seconds=0.0,
        )
    return replace(
        state,
        attempts=attempts,
        last_error=error,
        wait_seconds=attempts * backoff_unit,
    )


def record_response(
    state: GenerationState,
    raw_text: str,
    *,
    validate: Callable[[str], str | None] = content_validation_error,
) -> GenerationState:
    attempts = state.attempts + 1
    error = validate(raw_text)
    if error is None:
        return replace(
            state,
            attempts=attempts,
            status=AttemptStatus.ACCEPTED,
            last_error=None,
            raw_text=raw_text,
            wait_seconds=0.0,
        )
    if attempts >= state.max_attempts:
        return replace(
            state,
            attempts=attempts,
            status=AttemptStatus.EXHAUSTED,
            last_error=error,
            raw_text=raw_text,
            wait_seconds=0.0,
        )
    return replace(
        state,
        attempts=attempts,
        messages=state.messages + ({"role": "user", "content": build_correction_message(error)},),
        last_error=error,
        raw_text=raw_text,
        wait_seconds=0.0,
    )
