import asyncio
import logging

from openai import AsyncOpenAI, OpenAIError

from funnel.core.config import settings
from funnel.generation.attempts import (
    AttemptStatus,
    initial_state,
    record_response,
    record_transport_error,
)

logger = logging.getLogger(__name__)


class LLMTransportError(RuntimeError):
    """The completion endpoint failed on every allowed attempt."""


class LLMClient:
    """Client for an OpenAI-compatible chat-completion endpoint."""

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
        *,
        timeout: float | None = None,
        max_attempts: int | None = None,
        retry_backoff_seconds: float | None = None,
    ):
        self.model_name = model_name or settings.MODEL_DEFAULT
        self.base_url = base_url or settings.LLM_BASE_URL
        self.api_key = api_key or settings.LLM_API_KEY
        self.timeout = timeout if timeout is not None else settings.LLM_TIMEOUT_SECONDS
        self.max_attempts = max_attempts or settings.LLM_MAX_ATTEMPTS
        self.retry_backoff_seconds = (
            retry_backoff_seconds
            if retry_backoff_seconds is not None
            else settings.LLM_RETRY_BACKOFF_SECONDS
        )
        self._client: AsyncOpenAI | None = None

    @property
    def client(self) -> AsyncOpenAI:
        # Built on first use so a missing key surfaces as a failed call, not a failed boot.
        if self._client is None:
            self._client = AsyncOpenAI(
                base_url=self.base_url,
                api_key=self.api_key,
                timeout=self.timeout,
                # Every network call must count against max_attempts.
                max_retries=0,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    def _chat_completion_kwargs(self, *, temperature: float | None, max_tokens: int | None) -> dict:
        """Build provider/model-compatible kwargs for chat completions."""
        kwargs: dict = {}
        model_name = (self.model_name or "").lower()
        # GPT-5 family rejects non-default temperature values and the legacy token cap.
        if model_name.startswith("gpt-5"):
            if max_tokens is not None:
                kwargs["max_completion_tokens"] = max_tokens
            return kwargs
        if temperature is not None:
            kwargs["temperature"] = temperature
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        return kwargs

    async def _create_completion(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float | None,
        max_tokens: int | None,
    ) -> str:
        response = await self.client.chat.completions.create(
            model=self.model_name,
            messages=messages,
            **self._chat_completion_kwargs(temperature=temperature, max_tokens=max_tokens),
        )
        if not getattr(response, "choices", None):
            logger.error("Received no choices from %s: %s", self.model_name, response)
            raise LLMTransportError(f"Provider {self.model_name} returned no output.")
        return response.choices[0].message.content or ""

    async def generate_page_content(self, system_prompt: str, user_prompt: str) -> str | None:
        """
        Ask the model for the landing-page JSON, retrying up to ``max_attempts`` calls.

        Transport failures are retried with a growing backoff and raise
        ``LLMTransportError`` once the attempts run out. Responses that fail the
        local JSON check are retried with the parse error fed back to the model;
        when the attempts run out the last raw text is returned anyway so the
        caller can fall back to default content.
        """
        state = initial_state(system_prompt, user_prompt, max_attempts=self.max_attempts)
        last_exc: Exception | None = None

        while not state.done:
            if state.wait_seconds:
                await asyncio.sleep(state.wait_seconds)
            attempt_no = state.attempts + 1
            logger.info(
                "Issuing page content request to model %s (attempt %s/%s)...",
                self.model_name,
                attempt_no,
                state.max_attempts,
            )
            try:
                raw_text = await self._create_completion(
                    list(state.messages),
                    temperature=settings.LLM_TEMPERATURE,
                    max_tokens=settings.LLM_MAX_TOKENS,
                )
            except (OpenAIError, LLMTransportError) as exc:
                last_exc = exc
                state = record_transport_error(state, str(exc), backoff_unit=self.retry_backoff_seconds)
                if not state.done:
                    logger.warning(
                        "Completion call to %s failed on attempt %s/%s: %s. Retrying in %.1fs...",
                        self.model_name,
                        attempt_no,
                        state.max_attempts,
                        exc,
                        state.wait_seconds,
                    )
                continue

            state = record_response(state, raw_text)
            if state.status is AttemptStatus.PENDING:
                logger.warning(
                    "Page content from %s failed validation on attempt %s/%s: %s. Asking for a correction...",
                    self.model_name,
                    attempt_no,
                    state.max_attempts,
                    state.last_error,
                )

        if state.status is AttemptStatus.FAILED:
            logger.error(
                "Completion calls to %s failed after %s attempts: %s",
                self.model_name,
                state.attempts,
                state.last_error,
            )
            raise LLMTransportError(
                f"Completion service unavailable after {state.attempts} attempts: {state.last_error}"
            ) from last_exc

        if state.status is AttemptStatus.EXHAUSTED:
            logger.error(
                "Page content from %s still invalid after %s attempts: %s",
                self.model_name,
                state.attempts,
                state.last_error,
            )
        else:
            logger.info(
                "Received valid page content from %s (attempt %s).",
                self.model_name,
                state.attempts,
            )
        return state.raw_text

    async def generate_text(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Single free-text completion. No retries and no structure requirement."""
        logger.info("Issuing text request to model %s...", self.model_name)
        try:
            text_response = await self._create_completion(
                [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=settings.LLM_TEMPERATURE if temperature is None else temperature,
                max_tokens=max_tokens,
            )
        except OpenAIError as exc:
            logger.error("Error generating text response from %s: %s", self.model_name, exc)
            raise LLMTransportError(str(exc)) from exc
        return text_response
