"""Tests for the step engine operations and the Anthropic client."""

from unittest.mock import AsyncMock, MagicMock, Mock

import anthropic
import httpx
import pytest

from remedy_core.engine.client import AnthropicReasoningClient, ReasoningClient
from remedy_core.engine.decision import StepDecision
from remedy_core.engine.errors import ReasoningModelError, StepTimeoutError
from remedy_core.engine.parser import ParseFailure
from remedy_core.engine.step import analyze_issue, step
from remedy_core.types import RemediationStep, StepHistory

from fakes import FakeReasoningClient, action_response, observe_response, resolved_response


class TestStep:
    """Test suite for the step operation."""

    @pytest.mark.asyncio
    async def test_returns_decision(self, issue):
        client = FakeReasoningClient([action_response("ScaleDeployment", {"replicas": "3"})])

        result = await step(issue, StepHistory(), 1, 10, client=client)

        assert isinstance(result, StepDecision)
        assert result.next_action.action == "ScaleDeployment"
        assert len(client.prompts) == 1

    @pytest.mark.asyncio
    async def test_prompt_reflects_history_and_budget(self, issue):
        client = FakeReasoningClient([observe_response()])
        history = StepHistory.of([RemediationStep(step_number=1, reasoning="looked around")])

        await step(issue, history, 2, 5, client=client)

        assert "This is step 2 of a maximum of 5 steps." in client.prompts[0]
        assert "looked around" in client.prompts[0]

    @pytest.mark.asyncio
    async def test_history_not_mutated(self, issue):
        client = FakeReasoningClient([resolved_response()])
        history = StepHistory.of([RemediationStep(step_number=1, reasoning="first")])

        await step(issue, history, 2, 5, client=client)

        assert len(history) == 1

    @pytest.mark.asyncio
    async def test_parse_failure_returned_not_raised(self, issue):
        client = FakeReasoningClient(["Sorry, I cannot help with that."])

        result = await step(issue, StepHistory(), 1, 10, client=client)

        assert isinstance(result, ParseFailure)
        assert result.raw == "Sorry, I cannot help with that."

    @pytest.mark.asyncio
    async def test_invalid_step_number(self, issue):
        client = FakeReasoningClient([observe_response()])
        with pytest.raises(ValueError, match="step_number"):
            await step(issue, StepHistory(), 0, 10, client=client)
        with pytest.raises(ValueError, match="max_steps"):
            await step(issue, StepHistory(), 1, 0, client=client)
        assert client.prompts == []

    @pytest.mark.asyncio
    async def test_timeout_raises_step_timeout(self, issue):
        """A model call that outlives the deadline raises, never returns a decision."""
        client = FakeReasoningClient([observe_response()], delay=1.0)

        with pytest.raises(StepTimeoutError) as exc_info:
            await step(issue, StepHistory(), 1, 10, client=client, timeout=0.01)

        assert exc_info.value.timeout == 0.01
        assert isinstance(exc_info.value, ReasoningModelError)

    @pytest.mark.asyncio
    async def test_deadline_passed_to_client(self, issue):
        client = FakeReasoningClient([observe_response()])
        await step(issue, StepHistory(), 1, 10, client=client, timeout=30.0)
        assert client.timeouts == [30.0]

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, issue):
        client = FakeReasoningClient([ReasoningModelError("connection refused")])

        with pytest.raises(ReasoningModelError, match="connection refused"):
            await step(issue, StepHistory(), 1, 10, client=client)


class TestAnalyzeIssue:
    """Test suite for analyze_issue."""

    @pytest.mark.asyncio
    async def test_fills_model_and_provider(self, issue):
        client = FakeReasoningClient(['{"analysis": "OOM", "confidence": 0.9, "recommendations": ["raise memory"]}'])

        analysis = await analyze_issue(issue, client=client)

        assert analysis.analysis == "OOM"
        assert analysis.model == "fake-model"
        assert analysis.provider == "fake"
        assert "## Issue Details" in client.prompts[0]

    @pytest.mark.asyncio
    async def test_timeout(self, issue):
        client = FakeReasoningClient(["{}"], delay=1.0)
        with pytest.raises(StepTimeoutError):
            await analyze_issue(issue, client=client, timeout=0.01)


def _text_block(text: str) -> Mock:
    block = Mock()
    block.type = "text"
    block.text = text
    return block


def _anthropic_mock(response=None, error=None) -> MagicMock:
    mock_client = MagicMock()
    mock_client.messages.create = AsyncMock(return_value=response, side_effect=error)
    return mock_client


_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


class TestAnthropicReasoningClient:
    """Test suite for AnthropicReasoningClient."""

    def test_satisfies_protocol(self):
        client = AnthropicReasoningClient(anthropic_client=_anthropic_mock())
        assert isinstance(client, ReasoningClient)
        assert client.provider == "anthropic"
        assert client.model_name == "claude-sonnet-4-5"

    @pytest.mark.asyncio
    async def test_joins_text_blocks(self):
        thinking = Mock()
        thinking.type = "thinking"
        response = Mock()
        response.stop_reason = "end_turn"
        response.content = [_text_block('{"reasoning": '), thinking, _text_block('"ok"}')]
        mock_client = _anthropic_mock(response=response)
        client = AnthropicReasoningClient(anthropic_client=mock_client, model="claude-test", max_tokens=100)

        text = await client.complete("prompt", timeout=5.0)

        assert text == '{"reasoning": "ok"}'
        kwargs = mock_client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["max_tokens"] == 100
        assert kwargs["timeout"] == 5.0
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]

    @pytest.mark.asyncio
    async def test_timeout_mapped(self):
        client = AnthropicReasoningClient(
            anthropic_client=_anthropic_mock(error=anthropic.APITimeoutError(request=_REQUEST))
        )
        with pytest.raises(StepTimeoutError):
            await client.complete("prompt", timeout=1.0)

    @pytest.mark.asyncio
    async def test_connection_error_mapped(self):
        client = AnthropicReasoningClient(
            anthropic_client=_anthropic_mock(error=anthropic.APIConnectionError(request=_REQUEST))
        )
        with pytest.raises(ReasoningModelError, match="Connection to reasoning model failed") as exc_info:
            await client.complete("prompt")
        assert isinstance(exc_info.value.cause, anthropic.APIConnectionError)

    @pytest.mark.asyncio
    async def test_rate_limit_mapped(self):
        error = anthropic.RateLimitError(
            "slow down", response=httpx.Response(429, request=_REQUEST), body=None
        )
        client = AnthropicReasoningClient(anthropic_client=_anthropic_mock(error=error))
        with pytest.raises(ReasoningModelError, match="Rate limited"):
            await client.complete("prompt")
