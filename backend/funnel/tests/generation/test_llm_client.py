import unittest
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from openai import OpenAIError

from funnel.generation.llm_client import LLMClient, LLMTransportError

VALID = '{"pageTitle": "X", "heroTitle": "Y"}'


def _response(content: str | None) -> MagicMock:
    mock_message = MagicMock()
    mock_message.content = content

    mock_choice = MagicMock()
    mock_choice.message = mock_message

    mock_response = MagicMock()
    mock_response.choices = [mock_choice]
    return mock_response


def _mock_openai(create: AsyncMock) -> MagicMock:
    mock_completions = MagicMock()
    mock_completions.create = create

    mock_chat = MagicMock()
    mock_chat.completions = mock_completions

    mock_client_instance = AsyncMock()
    mock_client_instance.chat = mock_chat
    return mock_client_instance


class GeneratePageContentTests(unittest.IsolatedAsyncioTestCase):
    async def _run(self, create: AsyncMock, **client_kwargs):
        with patch("funnel.generation.llm_client.AsyncOpenAI", return_value=_mock_openai(create)), patch(
            "funnel.generation.llm_client.asyncio.sleep", new_callable=AsyncMock
        ) as sleep:
            client = LLMClient(model_name="test-model", api_key="dummy_key", **client_kwargs)
            result = await client.generate_page_content("system", "user prompt")
        return result, sleep

    async def test_valid_first_response_makes_one_call(self):
        create = AsyncMock(return_value=_response(VALID))

        result, sleep = await self._run(create)

        self.assertEqual(result, VALID)
        create.assert_called_once()
        sleep.assert_not_called()
        kwargs = create.call_args.kwargs
        self.assertEqual(kwargs["model"], "test-model")
        self.assertEqual(kwargs["temperature"], 0.7)
        self.assertEqual(kwargs["max_tokens"], 4000)

    async def test_invalid_json_is_retried_with_correction_message(self):
        create = AsyncMock(side_effect=[_response("not json"), _response(VALID)])

        result, sleep = await self._run(create)

        self.assertEqual(result, VALID)
        self.assertEqual(create.call_count, 2)
        second_messages = create.call_args_list[1].kwargs["messages"]
        self.assertEqual(len(second_messages), 3)
        self.assertEqual(second_messages[-1]["role"], "user")
        self.assertIn("Invalid JSON", second_messages[-1]["content"])
        sleep.assert_not_called()

    async def test_invalid_json_on_every_attempt_returns_last_raw_text(self):
        create = AsyncMock(return_value=_response("not json at all"))

        result, _ = await self._run(create)

        self.assertEqual(result, "not json at all")
        self.assertEqual(create.call_count, 3)

    async def test_transport_errors_are_retried_with_growing_backoff(self):
        create = AsyncMock(side_effect=[OpenAIError("down"), OpenAIError("down"), _response(VALID)])

        result, sleep = await self._run(create, retry_backoff_seconds=2.0)

        self.assertEqual(result, VALID)
        self.assertEqual(create.call_count, 3)
        self.assertEqual([call.args[0] for call in sleep.await_args_list], [2.0, 4.0])
        # same conversation is resent after a transport failure
        self.assertEqual(len(create.call_args_list[2].kwargs["messages"]), 2)

    async def test_transport_failure_on_every_attempt_is_fatal(self):
        create = AsyncMock(side_effect=OpenAIError("down"))

        with self.assertRaises(LLMTransportError):
            await self._run(create)
        self.assertEqual(create.call_count, 3)

    async def test_empty_choices_count_as_transport_failure(self):
        empty = MagicMock()
        empty.choices = []
        create = AsyncMock(side_effect=[empty, _response(VALID)])

        result, _ = await self._run(create)

        self.assertEqual(result, VALID)
        self.assertEqual(create.call_count, 2)

    async def test_mixed_failures_never_exceed_attempt_bound(self):
        create = AsyncMock(side_effect=[OpenAIError("down"), _response("nope"), _response("nope again")])

        result, _ = await self._run(create)

        self.assertEqual(result, "nope again")
        self.assertEqual(create.call_count, 3)


@pytest.mark.asyncio
async def test_generate_text_is_a_single_call_returning_text_as_is():
    create = AsyncMock(return_value=_response("```html\n<h2>新標題</h2>\n```"))

    with patch("funnel.generation.llm_client.AsyncOpenAI", return_value=_mock_openai(create)):
        client = LLMClient(model_name="test-model", api_key="dummy_key")
        result = await client.generate_text("system", "refine", max_tokens=2000)

    assert result == "```html\n<h2>新標題</h2>\n```"
    create.assert_called_once()
    assert create.call_args.kwargs["max_tokens"] == 2000


@pytest.mark.asyncio
async def test_generate_text_does_not_retry_transport_errors():
    create = AsyncMock(side_effect=OpenAIError("down"))

    with patch("funnel.generation.llm_client.AsyncOpenAI", return_value=_mock_openai(create)):
        client = LLMClient(model_name="test-model", api_key="dummy_key")
        with pytest.raises(LLMTransportError):
            await client.generate_text("system", "refine")

    create.assert_called_once()


def test_sdk_client_is_built_without_its_own_retries():
    with patch("funnel.generation.llm_client.AsyncOpenAI") as mock_openai:
        client = LLMClient(model_name="test-model", api_key="dummy_key", timeout=30)
        _ = client.client

    kwargs = mock_openai.call_args.kwargs
    assert kwargs["max_retries"] == 0
    assert kwargs["timeout"] == 30
    assert kwargs["api_key"] == "dummy_key"


def test_gpt5_models_use_completion_token_cap_without_temperature():
    client = LLMClient(model_name="gpt-5-mini", api_key="dummy_key")

    assert client._chat_completion_kwargs(temperature=0.7, max_tokens=100) == {"max_completion_tokens": 100}
